"""Presentation logic - turns the cached weather response into screen fields."""
import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from preferences import WeatherCache
from weather_data import WeatherResponse

ICON_PREFIX = "ic_"


@dataclass
class DisplayFields:
    """Text shown on the weather screen. Empty values mean "not populated"."""
    weather_icon: Optional[str] = None
    weather_desc: str = ""
    city_name: str = ""
    current_temp: str = ""
    feels_like: str = ""
    min_temp: str = ""
    max_temp: str = ""
    sunrise_time: str = ""
    sunset_time: str = ""
    wind_speed: str = ""
    wind_dir: str = ""
    pressure: str = ""
    humidity: str = ""

    def is_empty(self) -> bool:
        return self == DisplayFields()


def get_celsius_temp(temp: float) -> str:
    """
    Text for a temperature value.

    The API is already asked for metric units, so the value is shown as is.
    """
    return str(temp)


def format_clock_time(epoch_seconds: int) -> str:
    """Local wall-clock HH:MM for a UNIX timestamp."""
    return datetime.fromtimestamp(epoch_seconds).strftime("%H:%M")


def icon_resource_name(icon_code: str) -> str:
    return ICON_PREFIX + icon_code


def find_icon(icons_dir: Optional[str], resource_name: Optional[str]) -> Optional[str]:
    """Path of the PNG for an icon resource, or None if it is not bundled."""
    if not icons_dir or not resource_name:
        return None
    path = os.path.join(icons_dir, f"{resource_name}.png")
    return path if os.path.exists(path) else None


def calculate_fields(weather: WeatherResponse) -> DisplayFields:
    """
    Map a weather response onto display fields.

    Condition entries are applied in order onto the same fields, so with
    several entries the last one is what ends up displayed.
    """
    fields = DisplayFields()
    for condition in weather.weather:
        fields.weather_desc = condition.description
        logging.debug(f"Icon type: {condition.icon}")
        fields.weather_icon = icon_resource_name(condition.icon)
        fields.city_name = weather.name
        fields.current_temp = f"{get_celsius_temp(weather.main.temp)}℃"
        fields.feels_like = f"Feels like {get_celsius_temp(weather.main.feels_like)}℃"
        fields.sunrise_time = format_clock_time(weather.sys.sunrise)
        fields.sunset_time = format_clock_time(weather.sys.sunset)
        fields.wind_speed = f"{weather.wind.speed}\nm/s"
        fields.wind_dir = f"{weather.wind.deg}°"
        fields.min_temp = get_celsius_temp(weather.main.temp_min)
        fields.max_temp = get_celsius_temp(weather.main.temp_max)
        fields.pressure = f"{int(weather.main.pressure)}hPa"
        fields.humidity = f"{weather.main.humidity}%"
    return fields


class WeatherPresenter:
    """Reads the cached response and pushes its fields to the screen."""

    def __init__(self, cache: WeatherCache, screen, icons_dir: Optional[str] = None):
        self.cache = cache
        self.screen = screen
        self.icons_dir = icons_dir

    def render(self) -> bool:
        """
        Populate the screen from the cache.

        Returns:
            True if the screen was updated, False if the cache had nothing usable
        """
        cached = self.cache.load()
        if not cached:
            logging.debug("No cached weather response; leaving screen as is")
            return False

        try:
            weather = WeatherResponse.from_dict(json.loads(cached))
            fields = calculate_fields(weather)
        except (ValueError, OverflowError, OSError) as e:
            logging.error(f"Cached weather response is unreadable: {e}")
            return False

        self.screen.set_fields(fields, icon_path=find_icon(self.icons_dir, fields.weather_icon))
        return True
