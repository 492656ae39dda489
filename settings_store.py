import json
import logging
import os


logger = logging.getLogger(__name__)

SETTINGS_FILE = "app_settings.json"


DEFAULT_SETTINGS = {
    "geolocation_enabled": True,
    "flask_port": 5000,
    "log_level": "INFO",
    "qr_save_dir": "qr_codes",
}


def settings_path():
    return os.getenv("MAPQR_SETTINGS_FILE", SETTINGS_FILE)


def load_settings():
    settings = DEFAULT_SETTINGS.copy()
    path = settings_path()
    if os.path.exists(path):
        try:
            with open(path, "r", encoding="utf-8") as file_obj:
                data = json.load(file_obj)
                if isinstance(data, dict):
                    settings.update(data)
        except (OSError, ValueError) as exc:
            # Fall back to defaults if settings file is invalid.
            logger.warning("Ignoring unreadable settings file %s: %s", path, exc)
    return settings


def save_settings(settings):
    merged = DEFAULT_SETTINGS.copy()
    merged.update(settings or {})
    with open(settings_path(), "w", encoding="utf-8") as file_obj:
        json.dump(merged, file_obj, indent=2)
    return merged


def configure_logging(settings):
    level = str(settings.get("log_level", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
