"""
Flask app that serves map QR codes and URLs for an address or coordinates.
"""

import io
import logging
import math
import os

from flask import Flask, jsonify, request, send_file

from coordinator import InputCoordinator
from location import Coords, StaticLocationProvider
from settings_store import configure_logging, load_settings

app = Flask(__name__)

logger = logging.getLogger(__name__)


class HeadlessPresenter:
    """Presentation port that just remembers what it was asked to show."""

    def __init__(self):
        self.message = None
        self.loading = False
        self.location_text = ""

    def show_message(self, message):
        self.message = message

    def set_loading(self, loading):
        self.loading = loading

    def show_location(self, text):
        self.location_text = text

    def code_container(self):
        return None

    def play_transition(self):
        pass


class InvalidCoordinates(ValueError):
    pass


# -----------------------------
# Helper: Parse query arguments
# -----------------------------
def parse_coords(args):
    lat = (args.get("lat") or "").strip()
    lng = (args.get("lng") or "").strip()
    if not lat and not lng:
        return None
    if not lat or not lng:
        raise InvalidCoordinates("Both lat and lng are required.")
    try:
        coords = Coords(float(lat), float(lng))
    except ValueError as exc:
        raise InvalidCoordinates("lat and lng must be numbers.") from exc
    if not (math.isfinite(coords.latitude) and math.isfinite(coords.longitude)):
        raise InvalidCoordinates("lat and lng must be finite numbers.")
    return coords


def run_coordinator(args):
    """Drive a fresh coordinator from request *args*; returns (coordinator, url)."""
    coords = parse_coords(args)
    presenter = HeadlessPresenter()

    if coords is not None:
        coordinator = InputCoordinator(presenter, provider=StaticLocationProvider(coords))
        coordinator.request_location()
    else:
        coordinator = InputCoordinator(presenter)
        coordinator.edit_address(
            street=args.get("street", ""),
            city=args.get("city", ""),
            region=args.get("region", ""),
        )

    url = coordinator.generate()
    return coordinator, url


def bad_request(error, message):
    return jsonify({"error": error, "message": message}), 400


def handle_request(args):
    try:
        coordinator, url = run_coordinator(args)
    except InvalidCoordinates as exc:
        logger.info("Rejected coordinates: %s", exc)
        return None, bad_request("invalid_coordinates", str(exc))

    if url is None:
        error = coordinator.last_error
        return None, bad_request(error.code, error.message)
    return coordinator, None


# -----------------------------
# Routes
# -----------------------------
@app.route("/api/url")
def map_url():
    coordinator, error = handle_request(request.args)
    if error is not None:
        return error
    return jsonify({
        "url": coordinator.renderer.text,
        "source": coordinator.last_source.value,
        "message": coordinator.status.text,
    })


@app.route("/qr.png")
def qr_png():
    coordinator, error = handle_request(request.args)
    if error is not None:
        return error
    return send_file(io.BytesIO(coordinator.renderer.to_png()), mimetype="image/png")


# -----------------------------
# Run Server
# -----------------------------
if __name__ == "__main__":
    settings = load_settings()
    configure_logging(settings)
    host = os.getenv("FLASK_HOST", "0.0.0.0")
    port = int(os.getenv("FLASK_PORT", str(settings.get("flask_port", 5000))))
    app.run(host=host, port=port, debug=False)
