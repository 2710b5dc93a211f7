"""Weather domain model - the current-weather payload and its JSON mapping."""
import math
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Any, Dict, List, Optional


def _finite(value: Any, name: str) -> float:
    """Coerce a JSON number to float, rejecting NaN/inf and non-numbers."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"'{name}' must be a number, got {value!r}")
    result = float(value)
    if not math.isfinite(result):
        raise ValueError(f"'{name}' must be finite, got {value!r}")
    return result


def _epoch(value: Any, name: str) -> int:
    seconds = _finite(value, name)
    if seconds < 0 or seconds != int(seconds):
        raise ValueError(f"'{name}' must be a non-negative integer, got {value!r}")
    # Must also be representable as local wall-clock time
    try:
        datetime.fromtimestamp(int(seconds))
    except (OverflowError, OSError, ValueError) as e:
        raise ValueError(f"'{name}' is not a valid timestamp, got {value!r}: {e}") from e
    return int(seconds)


@dataclass
class Coord:
    """Geographic coordinates in decimal degrees."""
    lat: float
    lon: float

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Coord":
        return cls(lat=_finite(data["lat"], "coord.lat"), lon=_finite(data["lon"], "coord.lon"))


@dataclass
class Weather:
    """One weather condition entry, e.g. ("Clouds", "broken clouds", "04d")."""
    id: int
    main: str
    description: str
    icon: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Weather":
        return cls(
            id=int(data.get("id", 0)),
            main=str(data.get("main", "")),
            description=str(data.get("description", "")),
            icon=str(data.get("icon", "")),
        )


@dataclass
class Main:
    temp: float
    feels_like: float
    temp_min: float
    temp_max: float
    pressure: float
    humidity: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Main":
        return cls(
            temp=_finite(data["temp"], "main.temp"),
            feels_like=_finite(data["feels_like"], "main.feels_like"),
            temp_min=_finite(data["temp_min"], "main.temp_min"),
            temp_max=_finite(data["temp_max"], "main.temp_max"),
            pressure=_finite(data["pressure"], "main.pressure"),
            humidity=int(_finite(data["humidity"], "main.humidity")),
        )


@dataclass
class Wind:
    speed: float
    deg: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Wind":
        return cls(
            speed=_finite(data.get("speed", 0.0), "wind.speed"),
            deg=int(_finite(data.get("deg", 0), "wind.deg")),
        )


@dataclass
class Sys:
    """Country code plus sunrise/sunset as UNIX epoch seconds (UTC)."""
    sunrise: int
    sunset: int
    country: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Sys":
        return cls(
            sunrise=_epoch(data["sunrise"], "sys.sunrise"),
            sunset=_epoch(data["sunset"], "sys.sunset"),
            country=str(data.get("country", "")),
        )


@dataclass
class WeatherResponse:
    """
    Current weather for one location at one point in time.

    Mirrors the OpenWeather Current Weather API response body so that
    to_dict() produces the same JSON shape that from_dict() accepts.
    """
    name: str
    weather: List[Weather]
    main: Main
    wind: Wind
    sys: Sys
    coord: Optional[Coord] = None
    base: str = ""
    visibility: Optional[int] = None
    clouds: Dict[str, int] = field(default_factory=dict)
    dt: int = 0
    timezone: int = 0
    id: int = 0
    cod: int = 200

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WeatherResponse":
        """
        Build a response from decoded API JSON.

        Raises:
            ValueError: If a required block is missing or a number is not finite
        """
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
        for block in ("weather", "main", "wind", "sys"):
            if block not in data:
                raise ValueError(f"Response missing '{block}' block")
        try:
            coord = Coord.from_dict(data["coord"]) if data.get("coord") else None
            visibility = data.get("visibility")
            return cls(
                name=str(data.get("name", "")),
                weather=[Weather.from_dict(entry) for entry in data["weather"]],
                main=Main.from_dict(data["main"]),
                wind=Wind.from_dict(data["wind"]),
                sys=Sys.from_dict(data["sys"]),
                coord=coord,
                base=str(data.get("base", "")),
                visibility=int(visibility) if visibility is not None else None,
                clouds={k: int(v) for k, v in (data.get("clouds") or {}).items()},
                dt=int(data.get("dt", 0)),
                timezone=int(data.get("timezone", 0)),
                id=int(data.get("id", 0)),
                cod=int(data.get("cod", 200)),
            )
        except KeyError as e:
            raise ValueError(f"Response missing field {e}") from e
        except (TypeError, AttributeError) as e:
            raise ValueError(f"Malformed response: {e}") from e

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        if self.coord is None:
            data.pop("coord")
        if self.visibility is None:
            data.pop("visibility")
        return data
