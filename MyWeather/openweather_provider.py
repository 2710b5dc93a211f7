"""OpenWeather Current Weather API provider implementation."""
import logging
import requests
from weather_provider import (
    WeatherProviderBase,
    WeatherProviderError,
    WeatherHttpError,
    WeatherTransportError,
    WeatherParseError,
)
from weather_data import Coord, WeatherResponse

METRIC_UNIT = "metric"


class OpenWeatherProvider(WeatherProviderBase):
    """
    Weather provider using OpenWeather Current Weather API.

    Uses the free Current Weather API: https://openweathermap.org/current
    A single request per call; retrying is left to whoever triggers the fetch.
    """

    BASE_URL = "https://api.openweathermap.org/data/2.5"

    def __init__(
        self,
        api_key: str,
        units: str = METRIC_UNIT,
        base_url: str = BASE_URL,
        timeout: int = 10
    ):
        """
        Initialize OpenWeather provider.

        Args:
            api_key: OpenWeather API key (sent as "appid")
            units: Unit system requested from the API ("metric", "imperial", "standard")
            base_url: API root; "/weather" is appended
            timeout: HTTP request timeout in seconds
        """
        self.api_key = api_key
        self.units = units
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @property
    def url(self) -> str:
        return f"{self.base_url}/weather"

    def get_current(self, coord: Coord) -> WeatherResponse:
        """
        Fetch current weather from OpenWeather Current Weather API.

        Returns:
            WeatherResponse: Current weather information

        Raises:
            WeatherHttpError: The API returned a non-2xx status
            WeatherTransportError: The request failed before a response arrived
            WeatherParseError: The body is not a valid current-weather document
        """
        params = {
            "lat": coord.lat,
            "lon": coord.lon,
            "units": self.units,
            "appid": self.api_key,
        }

        logging.info(f"Making OpenWeather API request: {self.url}")
        logging.debug(f"Request parameters: lat={coord.lat}, lon={coord.lon}, units={self.units}")
        try:
            response = requests.get(self.url, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logging.error(f"Network error during API request: {e}")
            raise WeatherTransportError(str(e)) from e

        logging.info(f"API response status: {response.status_code}")
        if not response.ok:
            logging.error(f"API request failed with status {response.status_code}")
            self._handle_error_response(response)

        try:
            data = response.json()
            logging.debug(f"API response (truncated): {str(data)[:500]}...")
            weather = WeatherResponse.from_dict(data)
        except ValueError as e:
            logging.error(f"Failed to parse API response: {e}", exc_info=True)
            raise WeatherParseError(f"Failed to parse response: {e}") from e

        logging.info(f"Successfully parsed weather data: {weather.name} {weather.main.temp}")
        return weather

    def _handle_error_response(self, response: requests.Response) -> None:
        """Parse and raise error from OpenWeather error response."""
        status = response.status_code
        try:
            error_data = response.json()
        except ValueError:
            # Not JSON, use HTTP status
            logging.error(f"Non-JSON error response: HTTP {status}, body: {response.text[:500]}")
            raise WeatherHttpError(status, f"HTTP {status}: {response.text[:200]}")

        logging.error(f"OpenWeather API error response: {error_data}")
        message = error_data.get("message", "Unknown error") if isinstance(error_data, dict) else error_data
        raise WeatherHttpError(status, f"OpenWeather API error {status}: {message}")
