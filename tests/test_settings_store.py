import json

from settings_store import DEFAULT_SETTINGS, load_settings, save_settings


def test_defaults_when_file_missing(tmp_path, monkeypatch):
    monkeypatch.setenv("MAPQR_SETTINGS_FILE", str(tmp_path / "missing.json"))

    assert load_settings() == DEFAULT_SETTINGS


def test_save_then_load_merges_defaults(tmp_path, monkeypatch):
    path = tmp_path / "settings.json"
    monkeypatch.setenv("MAPQR_SETTINGS_FILE", str(path))

    save_settings({"geolocation_enabled": False})

    stored = json.loads(path.read_text(encoding="utf-8"))
    assert stored["flask_port"] == 5000
    assert load_settings()["geolocation_enabled"] is False


def test_invalid_file_falls_back_to_defaults(tmp_path, monkeypatch):
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")
    monkeypatch.setenv("MAPQR_SETTINGS_FILE", str(path))

    assert load_settings() == DEFAULT_SETTINGS
