"""Single-screen weather display for the current location."""
import argparse
import logging
import os
import signal
import sys
from dataclasses import dataclass
from typing import List, Optional

from dotenv import load_dotenv

from connectivity import is_network_available
from location import (
    LOCATION_PERMISSIONS,
    ConfiguredLocationManager,
    FusedLocationClient,
    IpGeolocator,
    PermissionRequester,
    PermissionStore,
)
from looper import MainLooper
from openweather_provider import METRIC_UNIT, OpenWeatherProvider
from preferences import DEFAULT_PREFS_DIR, WeatherCache
from screen import MENU_QUIT, MENU_REFRESH, ConsoleScreen, WeatherScreen
from weather_app import APP_PACKAGE, WeatherApp
from weather_data import Coord
from weather_service import WeatherService

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
DEFAULT_ICONS_DIR = os.path.join(BASE_DIR, "icons")
DEFAULT_LOG_FILE = os.path.join(os.path.expanduser(DEFAULT_PREFS_DIR), "myweather.log")


@dataclass
class AppConfig:
    api_key: str
    fixed_location: Optional[Coord]
    network_location: bool
    base_url: str
    prefs_dir: Optional[str]


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser("Current weather for this device's location")
    parser.add_argument("--log-file", default=DEFAULT_LOG_FILE)
    parser.add_argument("--timeout", type=int, default=10, help="HTTP timeout in seconds")
    parser.add_argument("--prefs-dir", default=None, help="Directory holding cached data and permissions")
    parser.add_argument("--icons-dir", default=DEFAULT_ICONS_DIR)
    parser.add_argument("--snapshot", default=None, help="Also render the screen to this PNG file")
    parser.add_argument("--once", action="store_true", help="Fetch and show once, then exit")
    parser.add_argument("--yes", action="store_true", help="Accept every dialog")
    parser.add_argument("--grant-location", action="store_true", help="Allow location access")
    parser.add_argument("--revoke-location", action="store_true", help="Deny location access")
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args(argv)


def setup_logging(log_file: str, verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO
    log_dir = os.path.dirname(os.path.abspath(log_file))
    os.makedirs(log_dir, exist_ok=True)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stderr),
            logging.FileHandler(log_file)
        ]
    )


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() not in ("0", "false", "no", "off")


def load_config() -> AppConfig:
    load_dotenv()
    api_key = os.getenv("WEATHER_API_KEY")
    lat = os.getenv("WEATHER_LAT")
    lon = os.getenv("WEATHER_LON")

    if not api_key:
        raise SystemExit("Missing WEATHER_API_KEY in environment")
    if bool(lat) != bool(lon):
        raise SystemExit("Set both WEATHER_LAT and WEATHER_LON, or neither")

    fixed_location = None
    if lat and lon:
        try:
            fixed_location = Coord.from_dict({"lat": float(lat), "lon": float(lon)})
        except ValueError as exc:
            raise SystemExit(f"Invalid coordinates: {exc}") from exc

    config = AppConfig(
        api_key=api_key,
        fixed_location=fixed_location,
        network_location=_env_flag("WEATHER_NETWORK_LOCATION", True),
        base_url=os.getenv("WEATHER_BASE_URL", OpenWeatherProvider.BASE_URL),
        prefs_dir=os.getenv("WEATHER_PREFS_DIR") or None,
    )
    logging.info(
        "Configuration loaded: fixed_location=%s network_location=%s units=%s",
        config.fixed_location,
        config.network_location,
        METRIC_UNIT,
    )
    return config


def build_app(
    config: AppConfig,
    screen: WeatherScreen,
    looper: MainLooper,
    permission_store: PermissionStore,
    args: argparse.Namespace
) -> WeatherApp:
    provider = OpenWeatherProvider(
        api_key=config.api_key,
        units=METRIC_UNIT,
        base_url=config.base_url,
        timeout=args.timeout,
    )
    location_manager = ConfiguredLocationManager(
        fixed_location=config.fixed_location,
        network_enabled=config.network_location,
    )

    def ask_for_location(permissions: List[str]) -> bool:
        return screen.confirm(
            "Location Permission",
            f"Allow {APP_PACKAGE} to access this device's location ({', '.join(permissions)})?",
            "Allow",
            "Deny",
        )

    app = WeatherApp(
        screen=screen,
        cache=WeatherCache.open(args.prefs_dir or config.prefs_dir),
        location_manager=location_manager,
        location_client=FusedLocationClient(
            location_manager, looper, IpGeolocator(timeout=args.timeout)
        ),
        permission_requester=PermissionRequester(permission_store, ask_for_location),
        weather_service=WeatherService(provider, looper),
        connectivity_check=is_network_available,
        icons_dir=args.icons_dir,
    )
    logging.info("Weather app ready")
    return app


def menu_loop(app: WeatherApp, screen: ConsoleScreen, looper: MainLooper) -> None:
    while True:
        action = screen.read_menu_action()
        if action == MENU_QUIT:
            break
        if action != MENU_REFRESH:
            continue
        try:
            app.refresh()
            looper.run_pending()
        except Exception as exc:
            logging.exception("Unexpected error: %s", exc)
            screen.show_notice(f"Unexpected error: {exc}")


def signal_handler(signum, frame):
    logging.info("Received signal %s, shutting down", signum)
    raise KeyboardInterrupt()


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    setup_logging(args.log_file, args.verbose)
    config = load_config()

    permission_store = PermissionStore.open(args.prefs_dir or config.prefs_dir)
    if args.grant_location:
        permission_store.grant(LOCATION_PERMISSIONS)
        logging.info("Location permissions granted")
    elif args.revoke_location:
        permission_store.deny(LOCATION_PERMISSIONS)
        logging.info("Location permissions revoked")

    looper = MainLooper()
    screen = ConsoleScreen(assume_yes=args.yes, snapshot_path=args.snapshot)
    app = build_app(config, screen, looper, permission_store, args)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        app.on_create()
        looper.run_pending()
        if not args.once:
            menu_loop(app, screen, looper)
    except KeyboardInterrupt:
        logging.info("Stopping")


if __name__ == "__main__":
    main()
