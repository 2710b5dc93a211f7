"""The weather app - location gate, permission gate, fetch, cache and render."""
import logging
from typing import Callable, List, Optional
from connectivity import is_network_available
from layout import WeatherPresenter
from location import (
    LOCATION_PERMISSIONS,
    PRIORITY_HIGH_ACCURACY,
    FusedLocationClient,
    LocationManager,
    LocationRequest,
    LocationResult,
    PermissionReport,
    PermissionRequester,
    is_location_enabled,
)
from preferences import WeatherCache
from screen import (
    ACTION_APPLICATION_DETAILS_SETTINGS,
    ACTION_LOCATION_SOURCE_SETTINGS,
    ProgressIndicator,
    WeatherScreen,
)
from weather_data import Coord, WeatherResponse
from weather_provider import WeatherHttpError, WeatherProviderError
from weather_service import WeatherService

APP_PACKAGE = "myweather"

NO_INTERNET_MESSAGE = "No internet available!"
BAD_REQUEST_MESSAGE = "Error 400: Bad connection"
NOT_FOUND_MESSAGE = "Error 404: Not Found!"
GENERIC_ERROR_MESSAGE = "Generic error!"


def error_message(error: WeatherProviderError) -> str:
    """User-facing notice for a failed weather fetch."""
    if isinstance(error, WeatherHttpError):
        if error.status_code == 400:
            return BAD_REQUEST_MESSAGE
        if error.status_code == 404:
            return NOT_FOUND_MESSAGE
        return GENERIC_ERROR_MESSAGE
    return f"Error: {error}"


class WeatherApp:
    """
    Drives the single weather screen.

    on_create() renders whatever is cached, then walks the location gate and
    the permission gate towards a location request. Each location fix leads
    to one weather fetch whose result is cached and rendered. refresh() asks
    for a new fix directly, and does nothing while permissions are missing.
    """

    def __init__(
        self,
        screen: WeatherScreen,
        cache: WeatherCache,
        location_manager: LocationManager,
        location_client: FusedLocationClient,
        permission_requester: PermissionRequester,
        weather_service: WeatherService,
        connectivity_check: Callable[[], bool] = is_network_available,
        icons_dir: Optional[str] = None
    ):
        self.screen = screen
        self.cache = cache
        self.location_manager = location_manager
        self.location_client = location_client
        self.permission_requester = permission_requester
        self.weather_service = weather_service
        self.connectivity_check = connectivity_check
        self.presenter = WeatherPresenter(cache, screen, icons_dir)
        # Only the most recently shown indicator is tracked
        self.progress: Optional[ProgressIndicator] = None

    def on_create(self) -> None:
        self.setup_ui()
        if not is_location_enabled(self.location_manager):
            self.turn_location_settings_on()
        else:
            self.request_permissions()

    def setup_ui(self) -> None:
        self.presenter.render()

    def refresh(self) -> None:
        logging.info("Refresh requested")
        self.request_location_data()

    # Location gate

    def turn_location_settings_on(self) -> None:
        logging.info("Location providers are disabled")
        if self.screen.confirm(
            "Locations Disabled",
            "Your location provider is turned off. "
            "Turn on locations to receive accurate weather data?",
            "Ok",
            "Cancel",
        ):
            self.screen.open_settings(ACTION_LOCATION_SOURCE_SETTINGS)

    # Permission gate

    def request_permissions(self) -> None:
        self.permission_requester.check(
            LOCATION_PERMISSIONS,
            self._on_permissions_checked,
            self._on_permission_rationale,
        )

    def _on_permissions_checked(self, report: PermissionReport) -> None:
        if report.all_granted:
            self.request_location_data()

    def _on_permission_rationale(self, denied: List[str]) -> None:
        self.open_rationale_dialog_for_permission()

    def open_rationale_dialog_for_permission(self) -> None:
        if self.screen.confirm(
            "Permissions Required",
            "This app requires Coarse and Fine location to provide you weather service. "
            "Please enable permissions from the Settings.",
            "OK",
            "Cancel",
        ):
            self.screen.open_settings(ACTION_APPLICATION_DETAILS_SETTINGS, APP_PACKAGE)

    # Location fetch

    def has_location_permissions(self) -> bool:
        store = self.permission_requester.store
        return all(store.is_granted(p) for p in LOCATION_PERMISSIONS)

    def request_location_data(self) -> None:
        if not self.has_location_permissions():
            logging.warning("Location permissions not granted; skipping location request")
            return
        request = LocationRequest(priority=PRIORITY_HIGH_ACCURACY)
        self.location_client.request_location_updates(request, self._on_location_result)

    def _on_location_result(self, result: LocationResult) -> None:
        last_location = result.last_location
        if last_location is None:
            logging.warning("Location callback delivered no fix")
            return
        self.get_location_weather(last_location.latitude, last_location.longitude)

    # Weather fetch

    def get_location_weather(self, latitude: float, longitude: float) -> None:
        if not self.connectivity_check():
            self.screen.show_notice(NO_INTERNET_MESSAGE)
            return

        self.progress = self.screen.show_progress()
        self.weather_service.fetch_async(
            Coord(lat=latitude, lon=longitude),
            self._on_weather_success,
            self._on_weather_error,
        )

    def _on_weather_success(self, weather: WeatherResponse) -> None:
        self._hide_progress()
        logging.debug(f"Data: {weather}")
        self.screen.set_content_visible(True)
        self.cache.save(weather)
        self.setup_ui()

    def _on_weather_error(self, error: WeatherProviderError) -> None:
        self._hide_progress()
        logging.error(f"Weather request failed: {error}")
        self.screen.show_notice(error_message(error))

    def _hide_progress(self) -> None:
        if self.progress is not None:
            self.progress.hide()
