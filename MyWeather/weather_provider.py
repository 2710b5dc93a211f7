"""Weather provider abstraction - allows swapping different weather APIs."""
from abc import ABC, abstractmethod
from typing import Optional
from weather_data import Coord, WeatherResponse


class WeatherProviderBase(ABC):
    """Abstract base class for weather data providers."""

    @abstractmethod
    def get_current(self, coord: Coord) -> WeatherResponse:
        """
        Fetch current weather data for the given coordinates.

        Returns:
            WeatherResponse: Current weather information

        Raises:
            WeatherProviderError: If the provider fails to fetch data
        """
        pass


class WeatherProviderError(Exception):
    """Exception raised when a weather provider fails."""
    pass


class WeatherHttpError(WeatherProviderError):
    """The API answered with a non-2xx status code."""

    def __init__(self, status_code: int, message: Optional[str] = None):
        self.status_code = status_code
        super().__init__(message or f"HTTP {status_code}")


class WeatherTransportError(WeatherProviderError):
    """The request never produced an HTTP response (DNS, connect, timeout...)."""
    pass


class WeatherParseError(WeatherProviderError):
    """The response body could not be mapped to a WeatherResponse."""
    pass
