"""Local key-value persistence and the last-response weather cache."""
import json
import logging
import os
import tempfile
from typing import Dict, Optional
from weather_data import WeatherResponse

DEFAULT_PREFS_DIR = os.path.join("~", ".myweather")
PREFERENCE_NAME = "weatherAppPreference"
WEATHER_RESPONSE_DATA = "weatherResponseData"


class KeyValueStore:
    """
    String key-value store persisted as one JSON file per preference name.

    Every read goes to disk; there is no in-memory layer to invalidate.
    """

    def __init__(self, name: str, prefs_dir: Optional[str] = None):
        base_dir = os.path.expanduser(prefs_dir or DEFAULT_PREFS_DIR)
        os.makedirs(base_dir, exist_ok=True)
        self.name = name
        self.path = os.path.join(base_dir, f"{name}.json")

    def _read(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logging.error(f"Unreadable preference file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logging.error(f"Preference file {self.path} does not hold an object")
            return {}
        return data

    def get_string(self, key: str, default: Optional[str] = None) -> Optional[str]:
        value = self._read().get(key)
        return value if isinstance(value, str) else default

    def put_string(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def _write(self, data: Dict[str, str]) -> None:
        # Write to a sibling temp file and rename so readers never see half a file
        directory = os.path.dirname(self.path)
        fd, tmp_path = tempfile.mkstemp(prefix=f".{self.name}.", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
        logging.debug(f"Saved preference file {self.path}")


class WeatherCache:
    """The single most recent successful weather response, stored as JSON text."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    @classmethod
    def open(cls, prefs_dir: Optional[str] = None) -> "WeatherCache":
        return cls(KeyValueStore(PREFERENCE_NAME, prefs_dir))

    def save(self, weather: WeatherResponse) -> None:
        """Overwrite the cached response."""
        self.store.put_string(WEATHER_RESPONSE_DATA, json.dumps(weather.to_dict()))
        logging.info(f"Cached weather response for {weather.name!r}")

    def load(self) -> Optional[str]:
        """Return the cached JSON text, or None if nothing was ever saved."""
        return self.store.get_string(WEATHER_RESPONSE_DATA)
