"""Data models for Airthings Cloud integration."""

from dataclasses import dataclass, field
from datetime import datetime

from .const import DEFAULT_DEVICE_LIMIT

Readings = dict[str, float | int | str]


@dataclass(frozen=True)
class AirthingsCredentials:
    """Client id and secret used for the client-credentials grant."""

    client_id: str
    client_secret: str = field(repr=False)


@dataclass(frozen=True)
class AccessToken:
    """Represents a bearer token with its absolute expiration timestamp."""

    token: str = field(repr=False)
    token_type: str
    expires_at: datetime


@dataclass(frozen=True)
class DeviceSegment:
    """Time-bounded association between a device and a location."""

    id: str
    name: str
    started: datetime
    active: bool


@dataclass(frozen=True)
class LocationRef:
    """Location reference embedded in a device."""

    id: str
    name: str


@dataclass(frozen=True)
class Device:
    """Represents an Airthings device."""

    id: str
    device_type: str
    sensors: tuple[str, ...]
    segment: DeviceSegment
    location: LocationRef


@dataclass(frozen=True)
class Location:
    """Represents an Airthings location."""

    id: str
    name: str


@dataclass(frozen=True)
class LocationInfo(Location):
    """Location with building metadata and its devices."""

    devices: tuple[Device, ...]
    lat: float
    lng: float
    labels: dict = field(default_factory=dict)
    address: str | None = None
    building_height: float | None = None
    building_size: float | None = None
    building_type: str | None = None
    building_volume: float | None = None
    building_year: int | None = None
    country_code: str | None = None
    floors: int | None = None
    timezone: str | None = None
    usage_hours: dict | None = None
    ventilation_type: dict | None = None


@dataclass(frozen=True)
class DeviceSamples:
    """Latest readings of one device within a location."""

    id: str
    data: Readings
    segment: DeviceSegment


@dataclass(frozen=True)
class LocationSamples(Location):
    """Latest readings of every device in a location."""

    devices: tuple[DeviceSamples, ...]


@dataclass(frozen=True)
class DeviceFilter:
    """Query parameters accepted by the device list endpoint."""

    show_inactive: bool = False
    limit: int = DEFAULT_DEVICE_LIMIT
    offset: int = 0


@dataclass(slots=True)
class AirthingsDeviceData:
    """A device together with its latest readings, as polled by the coordinator."""

    device: Device
    readings: Readings
