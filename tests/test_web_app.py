import pytest

from web_app import app


@pytest.fixture
def client():
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client


def test_url_from_coordinates(client):
    response = client.get("/api/url?lat=37.7749&lng=-122.4194")

    assert response.status_code == 200
    body = response.get_json()
    assert body["url"] == "https://www.google.com/maps/search/?api=1&query=37.7749,-122.4194"
    assert body["source"] == "current location"


def test_url_from_address(client):
    response = client.get("/api/url", query_string={"street": "1 Main St", "city": "Springfield"})

    assert response.status_code == 200
    body = response.get_json()
    assert body["url"].endswith("query=1%20Main%20St%20Springfield")
    assert body["source"] == "manual address"


def test_coordinates_take_precedence_over_address(client):
    response = client.get("/api/url", query_string={"lat": "1.5", "lng": "2", "city": "Paris"})

    assert response.get_json()["url"].endswith("query=1.5,2")


def test_no_location_is_bad_request(client):
    response = client.get("/api/url?street=%20%20")

    assert response.status_code == 400
    body = response.get_json()
    assert body["error"] == "no_location"
    assert "valid location" in body["message"]


@pytest.mark.parametrize("query", ["lat=1", "lat=abc&lng=2", "lat=nan&lng=2"])
def test_invalid_coordinates(client, query):
    response = client.get(f"/qr.png?{query}")

    assert response.status_code == 400
    assert response.get_json()["error"] == "invalid_coordinates"


def test_qr_png(client):
    response = client.get("/qr.png?city=Springfield")

    assert response.status_code == 200
    assert response.mimetype == "image/png"
    assert response.data.startswith(b"\x89PNG")


def test_coordinates_near_zero(client):
    response = client.get("/api/url?lat=0.00005&lng=-0.00002")

    assert response.get_json()["url"].endswith("query=0.00005,-0.00002")


@pytest.mark.parametrize("path", ["/api/url", "/qr.png"])
def test_address_too_long_for_a_code(client, path):
    response = client.get(path, query_string={"street": "北京市朝阳区" * 60})

    assert response.status_code == 400
    body = response.get_json()
    assert body["error"] == "too_long"
    assert "too long" in body["message"]
