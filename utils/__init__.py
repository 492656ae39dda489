"""Utility package for the map QR generator.

This package exposes the QR rendering and map URL helpers used throughout the
application.
"""

from .maps_url import address_url, coordinates_url, encode_uri_component, join_address, maps_search_url
from .qr_generator import QRCodeRenderer, generate_qr

__all__ = [
    "QRCodeRenderer",
    "address_url",
    "coordinates_url",
    "encode_uri_component",
    "generate_qr",
    "join_address",
    "maps_search_url",
]
