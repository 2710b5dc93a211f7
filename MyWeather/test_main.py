"""Tests for configuration loading and the command-line entry point."""
import json
import pytest
from unittest.mock import Mock, patch
import main
from location import ACCESS_FINE_LOCATION, DENIED, PermissionStore
from preferences import WeatherCache
from weather_data import Coord

ENV_VARS = [
    "WEATHER_API_KEY",
    "WEATHER_LAT",
    "WEATHER_LON",
    "WEATHER_NETWORK_LOCATION",
    "WEATHER_BASE_URL",
    "WEATHER_PREFS_DIR",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    with patch('main.load_dotenv'):
        yield monkeypatch


@pytest.fixture
def sample_body():
    return {
        "coord": {"lon": 13.4, "lat": 52.52},
        "weather": [{"id": 800, "main": "Clear", "description": "clear sky", "icon": "01d"}],
        "main": {"temp": 9.8, "feels_like": 7.9, "temp_min": 8.0, "temp_max": 11.0,
                 "pressure": 1021, "humidity": 66},
        "wind": {"speed": 3.6, "deg": 270},
        "sys": {"country": "DE", "sunrise": 1697694000, "sunset": 1697732400},
        "name": "Testville",
    }


def test_load_config_requires_api_key():
    with pytest.raises(SystemExit) as exc_info:
        main.load_config()

    assert "WEATHER_API_KEY" in str(exc_info.value)


def test_load_config_defaults(clean_env):
    clean_env.setenv("WEATHER_API_KEY", "abc")

    config = main.load_config()

    assert config.api_key == "abc"
    assert config.fixed_location is None
    assert config.network_location is True
    assert config.base_url == "https://api.openweathermap.org/data/2.5"
    assert config.prefs_dir is None


def test_load_config_fixed_location(clean_env):
    clean_env.setenv("WEATHER_API_KEY", "abc")
    clean_env.setenv("WEATHER_LAT", "52.52")
    clean_env.setenv("WEATHER_LON", "13.40")
    clean_env.setenv("WEATHER_NETWORK_LOCATION", "0")

    config = main.load_config()

    assert config.fixed_location == Coord(lat=52.52, lon=13.40)
    assert config.network_location is False


def test_load_config_half_coordinates(clean_env):
    clean_env.setenv("WEATHER_API_KEY", "abc")
    clean_env.setenv("WEATHER_LAT", "52.52")

    with pytest.raises(SystemExit):
        main.load_config()


def test_load_config_invalid_coordinates(clean_env):
    clean_env.setenv("WEATHER_API_KEY", "abc")
    clean_env.setenv("WEATHER_LAT", "north")
    clean_env.setenv("WEATHER_LON", "13.40")

    with pytest.raises(SystemExit) as exc_info:
        main.load_config()

    assert "Invalid coordinates" in str(exc_info.value)


def test_parse_args_defaults():
    args = main.parse_args([])

    assert args.timeout == 10
    assert args.once is False
    assert args.snapshot is None


def _run(tmp_path, sample_body, extra_args, online=True):
    mock_response = Mock()
    mock_response.ok = True
    mock_response.status_code = 200
    mock_response.json.return_value = sample_body
    argv = ["--once", "--prefs-dir", str(tmp_path), "--log-file", str(tmp_path / "app.log")] + extra_args
    with patch('main.signal.signal'), \
            patch('main.is_network_available', return_value=online), \
            patch('openweather_provider.requests.get', return_value=mock_response) as mock_get:
        main.main(argv)
    return mock_get


def test_main_once_fetches_and_renders(tmp_path, clean_env, sample_body, capsys):
    clean_env.setenv("WEATHER_API_KEY", "abc")
    clean_env.setenv("WEATHER_LAT", "52.52")
    clean_env.setenv("WEATHER_LON", "13.40")

    mock_get = _run(tmp_path, sample_body, ["--grant-location", "--snapshot", str(tmp_path / "screen.png")])

    assert mock_get.call_args[1]["params"]["appid"] == "abc"
    assert mock_get.call_args[1]["params"]["units"] == "metric"
    out = capsys.readouterr().out
    assert "City: Testville" in out
    assert "Weather: clear sky" in out
    assert json.loads(WeatherCache.open(str(tmp_path)).load())["name"] == "Testville"
    assert (tmp_path / "screen.png").exists()


def test_main_once_offline(tmp_path, clean_env, sample_body, capsys):
    clean_env.setenv("WEATHER_API_KEY", "abc")
    clean_env.setenv("WEATHER_LAT", "52.52")
    clean_env.setenv("WEATHER_LON", "13.40")

    mock_get = _run(tmp_path, sample_body, ["--grant-location"], online=False)

    mock_get.assert_not_called()
    assert "No internet available!" in capsys.readouterr().out


def test_main_revoke_location(tmp_path, clean_env, sample_body, capsys):
    clean_env.setenv("WEATHER_API_KEY", "abc")
    clean_env.setenv("WEATHER_LAT", "52.52")
    clean_env.setenv("WEATHER_LON", "13.40")

    mock_get = _run(tmp_path, sample_body, ["--revoke-location", "--yes"])

    mock_get.assert_not_called()
    assert PermissionStore.open(str(tmp_path)).status(ACCESS_FINE_LOCATION) == DENIED
    out = capsys.readouterr().out
    assert "[Permissions Required]" in out
    assert "--grant-location" in out
