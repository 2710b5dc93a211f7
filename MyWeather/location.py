"""Location providers, location permissions and one-shot location requests."""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence
import requests
from looper import MainLooper
from preferences import KeyValueStore
from weather_data import Coord

GPS_PROVIDER = "gps"
NETWORK_PROVIDER = "network"

PRIORITY_HIGH_ACCURACY = 100

ACCESS_COARSE_LOCATION = "ACCESS_COARSE_LOCATION"
ACCESS_FINE_LOCATION = "ACCESS_FINE_LOCATION"
LOCATION_PERMISSIONS = [ACCESS_COARSE_LOCATION, ACCESS_FINE_LOCATION]

PERMISSIONS_PREFERENCE = "permissions"
GRANTED = "granted"
DENIED = "denied"


@dataclass
class Location:
    latitude: float
    longitude: float
    provider: str


@dataclass
class LocationResult:
    """Fixes delivered by one callback, oldest first."""
    locations: List[Location] = field(default_factory=list)

    @property
    def last_location(self) -> Optional[Location]:
        return self.locations[-1] if self.locations else None


@dataclass
class LocationRequest:
    priority: int = PRIORITY_HIGH_ACCURACY


class LocationUnavailableError(Exception):
    """A provider was asked for a fix and could not produce one."""
    pass


class LocationManager(ABC):
    """Host-level switchboard of location providers."""

    @abstractmethod
    def is_provider_enabled(self, provider: str) -> bool:
        pass

    @abstractmethod
    def get_fixed_location(self) -> Optional[Coord]:
        """Position reported by the satellite provider, if it has one."""
        pass


class ConfiguredLocationManager(LocationManager):
    """
    Location providers driven by configuration.

    The "gps" provider is on when a fixed device position is configured;
    the "network" provider is on when IP-based positioning is allowed.
    """

    def __init__(self, fixed_location: Optional[Coord] = None, network_enabled: bool = True):
        self.fixed_location = fixed_location
        self.network_enabled = network_enabled

    def is_provider_enabled(self, provider: str) -> bool:
        if provider == GPS_PROVIDER:
            return self.fixed_location is not None
        if provider == NETWORK_PROVIDER:
            return self.network_enabled
        return False

    def get_fixed_location(self) -> Optional[Coord]:
        return self.fixed_location


def is_location_enabled(manager: LocationManager) -> bool:
    """True when either the satellite or the network provider is enabled."""
    return (manager.is_provider_enabled(GPS_PROVIDER)
            or manager.is_provider_enabled(NETWORK_PROVIDER))


class IpGeolocator:
    """Approximate position of this host from its public IP address."""

    URL = "http://ip-api.com/json/"

    def __init__(self, url: str = URL, timeout: int = 10):
        self.url = url
        self.timeout = timeout

    def locate(self) -> Coord:
        """
        Raises:
            LocationUnavailableError: On network failure or a lookup the service rejects
        """
        try:
            response = requests.get(
                self.url,
                params={"fields": "status,message,lat,lon"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            raise LocationUnavailableError(f"IP geolocation failed: {e}") from e

        if data.get("status") != "success":
            raise LocationUnavailableError(f"IP geolocation rejected: {data.get('message', 'unknown')}")
        try:
            return Coord.from_dict(data)
        except (KeyError, ValueError) as e:
            raise LocationUnavailableError(f"IP geolocation returned bad coordinates: {e}") from e


class FusedLocationClient:
    """
    Produces a single location fix from the best enabled provider.

    Requests are high accuracy, so "gps" is tried before "network". The fix is posted to the looper. If no provider yields
    a fix, the failure is logged and the callback never runs.
    """

    def __init__(
        self,
        manager: LocationManager,
        looper: MainLooper,
        geolocator: Optional[IpGeolocator] = None
    ):
        self.manager = manager
        self.looper = looper
        self.geolocator = geolocator or IpGeolocator()

    def request_location_updates(
        self,
        request: LocationRequest,
        callback: Callable[[LocationResult], None]
    ) -> None:
        logging.debug(f"Location request with priority {request.priority}")
        # High accuracy: the configured fix first, then the network lookup
        for provider in (GPS_PROVIDER, NETWORK_PROVIDER):
            if not self.manager.is_provider_enabled(provider):
                continue
            try:
                coord = self._fix_from(provider)
            except LocationUnavailableError as e:
                logging.warning(f"Location provider {provider!r} failed: {e}")
                continue
            logging.info(f"Location fix from {provider}: lat={coord.lat}, lon={coord.lon}")
            location = Location(latitude=coord.lat, longitude=coord.lon, provider=provider)
            self.looper.post(callback, LocationResult([location]))
            return

        logging.warning("No location provider produced a fix; request left pending")

    def _fix_from(self, provider: str) -> Coord:
        if provider == GPS_PROVIDER:
            coord = self.manager.get_fixed_location()
            if coord is None:
                raise LocationUnavailableError("no fixed position configured")
            return coord
        return self.geolocator.locate()


class PermissionStore:
    """Persisted grant/deny decisions for location permissions."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    @classmethod
    def open(cls, prefs_dir: Optional[str] = None) -> "PermissionStore":
        return cls(KeyValueStore(PERMISSIONS_PREFERENCE, prefs_dir))

    def status(self, permission: str) -> Optional[str]:
        return self.store.get_string(permission)

    def is_granted(self, permission: str) -> bool:
        return self.status(permission) == GRANTED

    def grant(self, permissions: Sequence[str]) -> None:
        for permission in permissions:
            self.store.put_string(permission, GRANTED)

    def deny(self, permissions: Sequence[str]) -> None:
        for permission in permissions:
            self.store.put_string(permission, DENIED)


@dataclass
class PermissionReport:
    granted: List[str]
    denied: List[str]

    @property
    def all_granted(self) -> bool:
        return not self.denied


class PermissionRequester:
    """
    Checks a bundle of permissions, asking the user when undecided.

    Permissions denied on an earlier run are never asked again; they go to
    on_rationale so the caller can send the user to settings. A rationale
    and a permanent denial are the same case here.
    """

    def __init__(self, store: PermissionStore, prompt: Callable[[List[str]], bool]):
        self.store = store
        self.prompt = prompt

    def check(
        self,
        permissions: Sequence[str],
        on_checked: Callable[[PermissionReport], None],
        on_rationale: Callable[[List[str]], None],
    ) -> None:
        previously_denied = [p for p in permissions if self.store.status(p) == DENIED]
        if previously_denied:
            logging.info(f"Permissions previously denied: {previously_denied}")
            on_rationale(previously_denied)
            return

        undecided = [p for p in permissions if self.store.status(p) is None]
        if undecided:
            if self.prompt(undecided):
                self.store.grant(undecided)
            else:
                self.store.deny(undecided)

        granted = [p for p in permissions if self.store.is_granted(p)]
        denied = [p for p in permissions if not self.store.is_granted(p)]
        logging.info(f"Permission check: granted={granted} denied={denied}")
        on_checked(PermissionReport(granted=granted, denied=denied))
