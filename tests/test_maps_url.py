import pytest

from utils.maps_url import (
    address_url,
    coordinates_url,
    encode_uri_component,
    format_coordinate,
    join_address,
)


def test_coordinates_are_not_rounded():
    assert coordinates_url(37.774929123, -122.419415) == (
        "https://www.google.com/maps/search/?api=1&query=37.774929123,-122.419415"
    )


@pytest.mark.parametrize("value,expected", [
    (45.0, "45"),
    (-0.5, "-0.5"),
    (0, "0"),
    (12.3456789, "12.3456789"),
    (0.00005, "0.00005"),
    (-0.00002, "-0.00002"),
    (0.000001234, "0.000001234"),
    (1e-7, "1e-7"),
    (-2.5e-8, "-2.5e-8"),
])
def test_format_coordinate(value, expected):
    assert format_coordinate(value) == expected


def test_encode_uri_component_rules():
    assert encode_uri_component("a b&c=d/e?") == "a%20b%26c%3Dd%2Fe%3F"
    assert encode_uri_component("keep-_.!~*'()") == "keep-_.!~*'()"
    assert encode_uri_component("Zürich") == "Z%C3%BCrich"


def test_join_address_trims_ends_only():
    assert join_address("1 Main St", "Springfield", "") == "1 Main St Springfield"
    assert join_address("", "", "Ohio") == "Ohio"
    assert join_address("A", "", "B") == "A  B"
    assert join_address(" ", " ", " ") == ""


def test_address_url():
    assert address_url("10 Downing St London") == (
        "https://www.google.com/maps/search/?api=1&query=10%20Downing%20St%20London"
    )
