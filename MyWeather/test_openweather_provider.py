"""Tests for OpenWeather provider."""
import pytest
import requests
from unittest.mock import Mock, patch
from openweather_provider import (
    OpenWeatherProvider,
    WeatherProviderError,
    WeatherHttpError,
    WeatherTransportError,
    WeatherParseError,
)
from weather_data import Coord, WeatherResponse


@pytest.fixture
def sample_openweather_response():
    """Sample OpenWeather API response."""
    return {
        "coord": {"lon": -94.04, "lat": 33.44},
        "weather": [
            {
                "id": 803,
                "main": "Clouds",
                "description": "broken clouds",
                "icon": "04d"
            }
        ],
        "base": "stations",
        "main": {
            "temp": 19.4,
            "feels_like": 19.72,
            "temp_min": 18.1,
            "temp_max": 21.0,
            "pressure": 1014,
            "humidity": 89
        },
        "visibility": 10000,
        "wind": {"speed": 3.13, "deg": 93},
        "clouds": {"all": 53},
        "dt": 1684929490,
        "sys": {"country": "US", "sunrise": 1684925000, "sunset": 1684976000},
        "timezone": -18000,
        "name": "Testville",
        "id": 123
    }


@pytest.fixture
def provider():
    """Create OpenWeather provider instance."""
    return OpenWeatherProvider(api_key="test_key", units="metric")


@pytest.fixture
def coord():
    return Coord(lat=33.44, lon=-94.04)


def _ok_response(body):
    mock_response = Mock()
    mock_response.ok = True
    mock_response.status_code = 200
    mock_response.json.return_value = body
    return mock_response


def test_openweather_provider_success(provider, coord, sample_openweather_response):
    """Test successful API call and parsing."""
    with patch('openweather_provider.requests.get') as mock_get:
        mock_get.return_value = _ok_response(sample_openweather_response)

        weather = provider.get_current(coord)

        assert isinstance(weather, WeatherResponse)
        assert weather.name == "Testville"
        assert weather.main.temp == 19.4
        assert weather.main.humidity == 89
        assert weather.wind.speed == 3.13
        assert weather.wind.deg == 93
        assert weather.weather[0].description == "broken clouds"
        assert weather.sys.sunset == 1684976000


def test_openweather_provider_request_parameters(provider, coord, sample_openweather_response):
    """The request carries lat, lon, metric units and the app id."""
    with patch('openweather_provider.requests.get') as mock_get:
        mock_get.return_value = _ok_response(sample_openweather_response)

        provider.get_current(coord)

        mock_get.assert_called_once()
        args, kwargs = mock_get.call_args
        assert args[0] == "https://api.openweathermap.org/data/2.5/weather"
        assert kwargs["params"] == {
            "lat": 33.44,
            "lon": -94.04,
            "units": "metric",
            "appid": "test_key",
        }
        assert kwargs["timeout"] == 10


def test_openweather_provider_custom_base_url(coord, sample_openweather_response):
    """A trailing slash on the base URL is tolerated."""
    provider = OpenWeatherProvider(api_key="k", base_url="http://localhost:8080/data/")
    with patch('openweather_provider.requests.get') as mock_get:
        mock_get.return_value = _ok_response(sample_openweather_response)

        provider.get_current(coord)

        assert mock_get.call_args[0][0] == "http://localhost:8080/data/weather"


@pytest.mark.parametrize("status", [400, 401, 404, 500])
def test_openweather_provider_http_error(provider, coord, status):
    """Non-2xx responses raise WeatherHttpError carrying the status."""
    with patch('openweather_provider.requests.get') as mock_get:
        mock_response = Mock()
        mock_response.ok = False
        mock_response.status_code = status
        mock_response.json.return_value = {
            "cod": status,
            "message": "Invalid API key"
        }
        mock_get.return_value = mock_response

        with pytest.raises(WeatherHttpError) as exc_info:
            provider.get_current(coord)

        assert exc_info.value.status_code == status
        assert str(status) in str(exc_info.value)
        assert "Invalid API key" in str(exc_info.value)


def test_openweather_provider_http_error_non_json(provider, coord):
    """An HTML error page still yields the status code."""
    with patch('openweather_provider.requests.get') as mock_get:
        mock_response = Mock()
        mock_response.ok = False
        mock_response.status_code = 502
        mock_response.json.side_effect = ValueError("No JSON object could be decoded")
        mock_response.text = "<html>Bad Gateway</html>"
        mock_get.return_value = mock_response

        with pytest.raises(WeatherHttpError) as exc_info:
            provider.get_current(coord)

        assert exc_info.value.status_code == 502
        assert "Bad Gateway" in str(exc_info.value)


def test_openweather_provider_network_error(provider, coord):
    """Test handling of network errors."""
    with patch('openweather_provider.requests.get') as mock_get:
        mock_get.side_effect = requests.exceptions.ConnectionError("Connection timeout")

        with pytest.raises(WeatherTransportError) as exc_info:
            provider.get_current(coord)

        assert "Connection timeout" in str(exc_info.value)
        assert isinstance(exc_info.value, WeatherProviderError)


def test_openweather_provider_invalid_json(provider, coord):
    """A 200 with an unreadable body is a parse error."""
    with patch('openweather_provider.requests.get') as mock_get:
        mock_response = _ok_response(None)
        mock_response.json.side_effect = ValueError("Expecting value")
        mock_get.return_value = mock_response

        with pytest.raises(WeatherParseError):
            provider.get_current(coord)


def test_openweather_provider_missing_main(provider, coord, sample_openweather_response):
    """Test handling of missing main block."""
    del sample_openweather_response["main"]

    with patch('openweather_provider.requests.get') as mock_get:
        mock_get.return_value = _ok_response(sample_openweather_response)

        with pytest.raises(WeatherParseError) as exc_info:
            provider.get_current(coord)

        assert "missing 'main' block" in str(exc_info.value)
