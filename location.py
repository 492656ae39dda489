"""Location providers: where the coordinator gets the device's coordinates from."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Protocol


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Coords:
    latitude: float
    longitude: float


class LocationFailureKind(enum.Enum):
    PERMISSION_DENIED = "permission_denied"
    POSITION_UNAVAILABLE = "position_unavailable"
    TIMEOUT = "timeout"
    OTHER = "other"
    # The page runs in a browser without a geolocation API.
    UNSUPPORTED = "unsupported"


# GeolocationPositionError.code values reported by browsers.
BROWSER_ERROR_CODES = {
    1: LocationFailureKind.PERMISSION_DENIED,
    2: LocationFailureKind.POSITION_UNAVAILABLE,
    3: LocationFailureKind.TIMEOUT,
}


@dataclass(frozen=True)
class LocationOptions:
    high_accuracy: bool = True
    timeout_ms: int = 10000
    cache_max_age_ms: int = 0


SuccessCallback = Callable[[Coords], None]
FailureCallback = Callable[[LocationFailureKind], None]


class LocationProvider(Protocol):
    def request_once(
        self,
        on_success: SuccessCallback,
        on_failure: FailureCallback,
        options: LocationOptions,
    ) -> None: ...


@dataclass
class _PendingRequest:
    on_success: SuccessCallback
    on_failure: FailureCallback
    options: LocationOptions


class BrowserLocationProvider:
    """Bridges a one-shot browser geolocation request.

    ``request_once`` only records the request; the page then shows the
    browser-side control and hands whatever the browser answered to
    :meth:`deliver`. Streamlit replays the last component value on every
    rerun, so each payload carries a ``nonce`` and is delivered at most once.
    """

    def __init__(self):
        self._pending: Optional[_PendingRequest] = None
        self._seen_nonces = set()

    @property
    def pending(self) -> bool:
        return self._pending is not None

    @property
    def options(self) -> Optional[LocationOptions]:
        return self._pending.options if self._pending else None

    def cancel(self) -> None:
        """Forget the pending request; a late browser answer is then ignored."""
        self._pending = None

    def request_once(self, on_success, on_failure, options) -> None:
        if self._pending is not None:
            logger.debug("Location request already pending; ignoring new request")
            return
        self._pending = _PendingRequest(on_success, on_failure, options)

    def deliver(self, payload) -> bool:
        """Dispatch a browser *payload* to the pending request.

        Returns True when a callback was invoked.
        """
        if not isinstance(payload, dict):
            return False
        nonce = payload.get("nonce")
        if nonce is not None:
            if nonce in self._seen_nonces:
                return False
            # An answer arriving after a cancel is spent too, so a later
            # request never picks it up from a replay.
            self._seen_nonces.add(nonce)
        if self._pending is None:
            return False

        request, self._pending = self._pending, None

        if payload.get("unsupported"):
            logger.info("Browser has no geolocation support")
            request.on_failure(LocationFailureKind.UNSUPPORTED)
            return True

        if "code" in payload:
            kind = parse_error_code(payload.get("code"))
            logger.info("Browser geolocation failed: %s", kind.value)
            request.on_failure(kind)
            return True

        try:
            coords = Coords(float(payload["lat"]), float(payload["lon"]))
        except (KeyError, TypeError, ValueError):
            logger.warning("Malformed geolocation payload: %r", payload)
            request.on_failure(LocationFailureKind.OTHER)
            return True

        request.on_success(coords)
        return True


def parse_error_code(code) -> LocationFailureKind:
    try:
        return BROWSER_ERROR_CODES.get(int(code), LocationFailureKind.OTHER)
    except (TypeError, ValueError):
        return LocationFailureKind.OTHER


class StaticLocationProvider:
    """Answers every request immediately with fixed coordinates or a fixed failure."""

    def __init__(self, coords: Optional[Coords] = None, failure: Optional[LocationFailureKind] = None):
        if (coords is None) == (failure is None):
            raise ValueError("Provide exactly one of coords or failure")
        self.coords = coords
        self.failure = failure
        self.requests = []

    def request_once(self, on_success, on_failure, options) -> None:
        self.requests.append(options)
        if self.coords is not None:
            on_success(self.coords)
        else:
            on_failure(self.failure)
