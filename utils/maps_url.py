from decimal import Decimal
from urllib.parse import quote


MAPS_SEARCH_ENDPOINT = "https://www.google.com/maps/search/?api=1&query="

# Characters left alone by JavaScript's encodeURIComponent.
_URI_COMPONENT_SAFE = "-_.!~*'()"


def encode_uri_component(value: str) -> str:
    return quote(value, safe=_URI_COMPONENT_SAFE)


def format_coordinate(value) -> str:
    """Render *value* the way a browser prints a number: unrounded, and
    without a trailing ``.0`` for whole degrees."""
    number = float(value)
    if number.is_integer():
        return str(int(number))
    text = repr(number)
    if "e" not in text:
        return text
    # Browsers only switch to exponent form below 1e-6, and write "1e-7"
    # where Python writes "1e-07".
    if abs(number) < 1e-6:
        mantissa, exponent = text.split("e")
        return f"{mantissa}e{int(exponent)}"
    return format(Decimal(text), "f")


def maps_search_url(query: str) -> str:
    """Return the map-search URL for an already encoded *query* value."""
    return f"{MAPS_SEARCH_ENDPOINT}{query}"


def coordinates_url(latitude, longitude) -> str:
    return maps_search_url(f"{format_coordinate(latitude)},{format_coordinate(longitude)}")


def join_address(street: str, city: str, region: str) -> str:
    return f"{street or ''} {city or ''} {region or ''}".strip()


def address_url(address: str) -> str:
    return maps_search_url(encode_uri_component(address))
