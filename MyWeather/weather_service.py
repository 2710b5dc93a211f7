"""Weather service - single-attempt fetch with results delivered on the main loop."""
import logging
from typing import Callable
from looper import MainLooper
from weather_provider import WeatherProviderBase, WeatherProviderError
from weather_data import Coord, WeatherResponse


class WeatherService:
    """
    Wraps a weather provider and hands its outcome to callbacks.

    Every fetch is exactly one provider call: there is no retry, no
    backoff and no in-memory cache. Durable caching of the last good
    response belongs to WeatherCache.
    """

    def __init__(self, provider: WeatherProviderBase, looper: MainLooper):
        """
        Initialize weather service.

        Args:
            provider: Weather provider to use
            looper: Loop on which success/error callbacks are delivered
        """
        self.provider = provider
        self.looper = looper

    def fetch_async(
        self,
        coord: Coord,
        on_success: Callable[[WeatherResponse], None],
        on_error: Callable[[WeatherProviderError], None],
    ) -> None:
        """
        Fetch current weather for coord and post exactly one callback.

        Provider errors are delivered through on_error; nothing is raised.
        """
        logging.info(f"Fetching weather for lat={coord.lat}, lon={coord.lon}")
        try:
            weather = self.provider.get_current(coord)
        except WeatherProviderError as e:
            logging.warning(f"Weather fetch failed: {e}")
            self.looper.post(on_error, e)
            return
        logging.info(f"Weather fetch successful: {weather.main.temp}, {weather.name}")
        self.looper.post(on_success, weather)
