"""Tests for the location providers."""

from unittest.mock import Mock

import pytest

from location import (
    BrowserLocationProvider,
    Coords,
    LocationFailureKind,
    LocationOptions,
    StaticLocationProvider,
    parse_error_code,
)


def pending_provider():
    provider = BrowserLocationProvider()
    on_success, on_failure = Mock(), Mock()
    provider.request_once(on_success, on_failure, LocationOptions())
    return provider, on_success, on_failure


def test_browser_provider_delivers_coordinates_once():
    provider, on_success, on_failure = pending_provider()

    assert provider.deliver({"lat": 37.7749, "lon": -122.4194, "nonce": 7}) is True
    # Streamlit replays the same component value on the next rerun.
    assert provider.deliver({"lat": 37.7749, "lon": -122.4194, "nonce": 7}) is False

    on_success.assert_called_once_with(Coords(37.7749, -122.4194))
    on_failure.assert_not_called()
    assert provider.pending is False


def test_browser_provider_maps_error_codes():
    provider, on_success, on_failure = pending_provider()

    provider.deliver({"code": 1, "nonce": 1})

    on_failure.assert_called_once_with(LocationFailureKind.PERMISSION_DENIED)
    on_success.assert_not_called()


def test_browser_provider_ignores_payload_without_request():
    provider = BrowserLocationProvider()

    assert provider.deliver({"lat": 1, "lon": 2, "nonce": 3}) is False
    assert provider.deliver(None) is False


def test_malformed_success_payload_is_a_failure():
    provider, on_success, on_failure = pending_provider()

    provider.deliver({"lat": "north", "nonce": 2})

    on_failure.assert_called_once_with(LocationFailureKind.OTHER)
    on_success.assert_not_called()


def test_only_one_request_pending():
    provider, _, _ = pending_provider()
    later_success = Mock()

    provider.request_once(later_success, Mock(), LocationOptions(timeout_ms=1))
    provider.deliver({"lat": 1, "lon": 2, "nonce": 4})

    later_success.assert_not_called()
    assert provider.options is None


@pytest.mark.parametrize("code,kind", [
    (1, LocationFailureKind.PERMISSION_DENIED),
    (2, LocationFailureKind.POSITION_UNAVAILABLE),
    ("3", LocationFailureKind.TIMEOUT),
    (0, LocationFailureKind.OTHER),
    (None, LocationFailureKind.OTHER),
])
def test_parse_error_code(code, kind):
    assert parse_error_code(code) is kind


def test_static_provider_requires_exactly_one_outcome():
    with pytest.raises(ValueError):
        StaticLocationProvider()
    with pytest.raises(ValueError):
        StaticLocationProvider(Coords(0, 0), LocationFailureKind.TIMEOUT)


def test_static_provider_failure():
    provider = StaticLocationProvider(failure=LocationFailureKind.TIMEOUT)
    on_success, on_failure = Mock(), Mock()

    provider.request_once(on_success, on_failure, LocationOptions())

    on_failure.assert_called_once_with(LocationFailureKind.TIMEOUT)
    on_success.assert_not_called()


def test_browser_without_geolocation_is_unsupported():
    provider, on_success, on_failure = pending_provider()

    provider.deliver({"unsupported": True, "nonce": 11})

    on_failure.assert_called_once_with(LocationFailureKind.UNSUPPORTED)
    on_success.assert_not_called()


def test_cancelled_answer_is_not_replayed_into_next_request():
    provider, first_success, _ = pending_provider()
    provider.cancel()

    assert provider.deliver({"lat": 1, "lon": 2, "nonce": 12}) is False

    next_success = Mock()
    provider.request_once(next_success, Mock(), LocationOptions())
    assert provider.deliver({"lat": 1, "lon": 2, "nonce": 12}) is False

    first_success.assert_not_called()
    next_success.assert_not_called()
    assert provider.pending is True
