"""Input coordinator for the map QR generator.

The coordinator decides which location source is authoritative (a fetched
geolocation always wins over the manual address), turns it into a map-search
URL and drives the status message, loading indicator and QR renderer. All UI
effects go through a small presentation port so the logic runs the same under
Streamlit, Flask or a test double.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol

from location import Coords, LocationFailureKind, LocationOptions, LocationProvider
from utils.maps_url import address_url, coordinates_url, join_address
from utils.qr_generator import CodeCapacityExceeded, QRCodeRenderer


logger = logging.getLogger(__name__)


LOCATION_OPTIONS = LocationOptions(high_accuracy=True, timeout_ms=10000, cache_max_age_ms=0)

QR_WIDTH = 256
QR_HEIGHT = 256
QR_COLOR_DARK = "#333333"
QR_COLOR_LIGHT = "#ffffff"
QR_ERROR_CORRECTION = "H"

WELCOME_MESSAGE = "Click 'Get My Current Location' or enter an address manually."
LOCATION_FETCHED_MESSAGE = "Location fetched successfully! Click 'Generate QR Code'."
MANUAL_OVERRIDE_TEXT = "Manual address entered. Geolocation data cleared."
GEO_SUCCESS_MESSAGE = "QR code generated from your current latitude/longitude."
MANUAL_SUCCESS_MESSAGE = "QR code generated from the manual address."
CANCELLED_MESSAGE = "Location request cancelled. " + WELCOME_MESSAGE


class Severity(str, enum.Enum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class StatusMessage:
    text: str
    severity: Severity


@dataclass
class LocationState:
    fetched: bool = False
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    def set(self, coords: Coords) -> None:
        self.fetched = True
        self.latitude = coords.latitude
        self.longitude = coords.longitude

    def clear(self) -> None:
        self.fetched = False
        self.latitude = None
        self.longitude = None


@dataclass
class ManualAddress:
    street: str = ""
    city: str = ""
    region: str = ""

    def clear(self) -> None:
        self.street = ""
        self.city = ""
        self.region = ""

    def joined(self) -> str:
        return join_address(self.street, self.city, self.region)


class Source(str, enum.Enum):
    CURRENT_LOCATION = "current location"
    MANUAL_ADDRESS = "manual address"


# -----------------------------
# Errors
# -----------------------------
class LocationError(Exception):
    """Base class for recoverable location problems shown to the user."""

    code = "location_failed"
    message = "Geolocation failed. Please enter location manually."

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class UnsupportedCapability(LocationError):
    code = "unsupported"
    message = "Your browser does not support Geolocation."


class PermissionDenied(LocationError):
    message = "Geolocation permission denied. Please enable it in your browser settings."


class PositionUnavailable(LocationError):
    message = "Location information is unavailable."


class LocationTimeout(LocationError):
    message = "The request to get user location timed out."


class UnknownLocationFailure(LocationError):
    pass


class NoLocationProvided(LocationError):
    code = "no_location"
    message = (
        "Please provide a valid location, either by clicking 'Get Location' "
        "or entering a manual address."
    )


class CodeTooLarge(LocationError):
    code = "too_long"
    message = "That address is too long to fit in a QR code. Please shorten it."


FAILURE_ERRORS = {
    LocationFailureKind.UNSUPPORTED: UnsupportedCapability,
    LocationFailureKind.PERMISSION_DENIED: PermissionDenied,
    LocationFailureKind.POSITION_UNAVAILABLE: PositionUnavailable,
    LocationFailureKind.TIMEOUT: LocationTimeout,
    LocationFailureKind.OTHER: UnknownLocationFailure,
}


def error_for_failure(kind) -> LocationError:
    return FAILURE_ERRORS.get(kind, UnknownLocationFailure)()


# -----------------------------
# Presentation port
# -----------------------------
class Presenter(Protocol):
    def show_message(self, message: Optional[StatusMessage]) -> None:
        """Show *message*, or hide the message area when it is None."""

    def set_loading(self, loading: bool) -> None: ...

    def show_location(self, text: str) -> None: ...

    def code_container(self) -> Any: ...

    def play_transition(self) -> None: ...


RendererFactory = Callable[..., QRCodeRenderer]


def resolve_url(location: LocationState, address: ManualAddress):
    """Apply the precedence rule and return ``(url, source)``.

    Raises NoLocationProvided when neither source is usable.
    """
    if location.fetched and location.latitude is not None and location.longitude is not None:
        return coordinates_url(location.latitude, location.longitude), Source.CURRENT_LOCATION

    joined = address.joined()
    if joined:
        return address_url(joined), Source.MANUAL_ADDRESS

    raise NoLocationProvided()


class InputCoordinator:
    def __init__(
        self,
        presenter: Presenter,
        provider: Optional[LocationProvider] = None,
        renderer_factory: RendererFactory = QRCodeRenderer,
    ):
        self.presenter = presenter
        self.provider = provider
        self.renderer_factory = renderer_factory
        self.location = LocationState()
        self.address = ManualAddress()
        self.status: Optional[StatusMessage] = None
        self.loading = False
        self.location_text = ""
        self.renderer: Optional[QRCodeRenderer] = None
        self.last_source: Optional[Source] = None
        self.last_error: Optional[LocationError] = None

    # -- effects --------------------------------------------------------
    def _message(self, text: str, severity: Severity) -> None:
        self.status = StatusMessage(text, severity)
        self.presenter.show_message(self.status)

    def _hide_message(self) -> None:
        self.status = None
        self.presenter.show_message(None)

    def _set_loading(self, loading: bool) -> None:
        self.loading = loading
        self.presenter.set_loading(loading)

    def _show_location(self, text: str) -> None:
        self.location_text = text
        self.presenter.show_location(text)

    # -- events ---------------------------------------------------------
    def start(self) -> None:
        self._message(WELCOME_MESSAGE, Severity.INFO)

    def reset(self) -> None:
        self.address.clear()
        self._show_location("")
        self.location.clear()
        self._hide_message()

    def request_location(self) -> None:
        if self.provider is None:
            error = UnsupportedCapability()
            logger.warning("Location requested but no provider is available")
            self._message(error.message, Severity.ERROR)
            return
        if self.loading:
            logger.debug("Location request already in flight")
            return

        self._set_loading(True)
        self.reset()
        logger.info("Requesting device location")
        self.provider.request_once(
            self.on_location_resolved,
            self.on_location_failed,
            LOCATION_OPTIONS,
        )

    def on_location_resolved(self, coords: Coords) -> None:
        self.location.set(coords)
        logger.info("Location resolved to %s,%s", coords.latitude, coords.longitude)

        self._show_location(f"Lat: {coords.latitude:.4f}, Lng: {coords.longitude:.4f}")
        # Geolocation takes priority over anything typed before.
        self.address.clear()

        self._message(LOCATION_FETCHED_MESSAGE, Severity.INFO)
        self._set_loading(False)

    def on_location_failed(self, kind) -> None:
        error = error_for_failure(kind)
        logger.warning("Location request failed: %s", getattr(kind, "value", kind))
        self._message(error.message, Severity.ERROR)
        self._set_loading(False)

    def on_manual_field_edited(self) -> None:
        if not self.location.fetched:
            return
        self.location.clear()
        logger.debug("Manual edit cleared fetched location")
        self._show_location(MANUAL_OVERRIDE_TEXT)

    def edit_address(self, street=None, city=None, region=None) -> None:
        """Update the manual fields that are given, then run the edit event."""
        if street is not None:
            self.address.street = street
        if city is not None:
            self.address.city = city
        if region is not None:
            self.address.region = region
        self.on_manual_field_edited()

    def cancel_location_request(self) -> None:
        """Abandon an outstanding location request and re-enable the trigger."""
        if not self.loading:
            return
        cancel = getattr(self.provider, "cancel", None)
        if cancel is not None:
            cancel()
        logger.info("Location request cancelled")
        self._message(CANCELLED_MESSAGE, Severity.INFO)
        self._set_loading(False)

    def set_provider(self, provider: Optional[LocationProvider]) -> None:
        self.cancel_location_request()
        self.provider = provider

    def _render(self, url: str) -> None:
        if self.renderer is not None:
            self.renderer.set_content(url)
            return
        self.renderer = self.renderer_factory(
            self.presenter.code_container(),
            text=url,
            width=QR_WIDTH,
            height=QR_HEIGHT,
            color_dark=QR_COLOR_DARK,
            color_light=QR_COLOR_LIGHT,
            error_correction=QR_ERROR_CORRECTION,
        )

    def _generate_failed(self, error: LocationError) -> None:
        self.last_error = error
        self._message(error.message, Severity.ERROR)
        return None

    def generate(self) -> Optional[str]:
        try:
            url, source = resolve_url(self.location, self.address)
        except NoLocationProvided as error:
            logger.info("Generate requested without a usable location")
            return self._generate_failed(error)

        try:
            self._render(url)
        except CodeCapacityExceeded as exc:
            logger.warning("QR code rejected %s: %s", source.value, exc)
            return self._generate_failed(CodeTooLarge())

        self.last_error = None
        self.last_source = source
        if source is Source.CURRENT_LOCATION:
            self._message(GEO_SUCCESS_MESSAGE, Severity.SUCCESS)
        else:
            self._message(MANUAL_SUCCESS_MESSAGE, Severity.SUCCESS)
        logger.info("QR code generated from %s: %s", source.value, url)

        self.presenter.play_transition()
        return url
