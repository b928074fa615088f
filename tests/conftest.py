"""Pytest configuration and fixtures for Airthings Cloud tests."""

from datetime import UTC, datetime, timedelta

import pytest

from custom_components.airthings_cloud.models import AirthingsCredentials

TEST_CLIENT_ID = "test-client-id"
TEST_CLIENT_SECRET = "test-client-secret"  # noqa: S105
TEST_ACCESS_TOKEN = "test-access-token"  # noqa: S105
TEST_TOKEN_LIFETIME = 3600
TEST_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


class FakeClock:
    """Callable clock returning a settable instant."""

    def __init__(self, now: datetime) -> None:
        """Initialize the clock at the given instant."""
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    """Fixture providing a clock frozen at TEST_NOW."""
    return FakeClock(TEST_NOW)


@pytest.fixture
def credentials() -> AirthingsCredentials:
    """Fixture providing test client credentials."""
    return AirthingsCredentials(
        client_id=TEST_CLIENT_ID,
        client_secret=TEST_CLIENT_SECRET,
    )


@pytest.fixture
def sample_token_response() -> dict:
    """Fixture providing a sample token endpoint response."""
    return {
        "access_token": TEST_ACCESS_TOKEN,
        "token_type": "Bearer",
        "expires_in": TEST_TOKEN_LIFETIME,
    }


@pytest.fixture
def sample_device() -> dict:
    """Fixture providing a single device object as returned by the API."""
    return {
        "id": "2930012345",
        "deviceType": "WAVE_PLUS",
        "sensors": ["radonShortTermAvg", "temp", "humidity", "co2", "voc"],
        "segment": {
            "id": "seg-1",
            "name": "Living room",
            "started": "2023-09-12T10:15:00",
            "active": True,
        },
        "location": {"id": "loc-1", "name": "Home"},
    }


@pytest.fixture
def sample_devices_response(sample_device: dict) -> dict:
    """Fixture providing a sample device list response with two devices."""
    return {
        "devices": [
            sample_device,
            {
                "id": "2960054321",
                "deviceType": "VIEW_PLUS",
                "sensors": ["pm1", "pm25", "co2", "temp"],
                "segment": {
                    "id": "seg-2",
                    "name": "Office",
                    "started": "2024-01-03T08:00:00+00:00",
                    "active": True,
                },
                "location": {"id": "loc-2", "name": "Work"},
            },
        ],
    }


@pytest.fixture
def sample_readings() -> dict:
    """Fixture providing the readings of a device."""
    return {
        "battery": 87,
        "co2": 612.0,
        "humidity": 41.5,
        "radonShortTermAvg": 24,
        "temp": 21.3,
        "time": 1714564800,
        "voc": 95.0,
        "relayDeviceType": "hub",
    }


@pytest.fixture
def sample_device_samples_response(sample_readings: dict) -> dict:
    """Fixture providing a latest-samples response for one device."""
    return {"data": sample_readings}


@pytest.fixture
def sample_locations_response() -> dict:
    """Fixture providing a sample location list response."""
    return {
        "locations": [
            {"id": "loc-1", "name": "Home"},
            {"id": "loc-2", "name": "Work"},
        ],
    }


@pytest.fixture
def sample_location_response(sample_device: dict) -> dict:
    """Fixture providing a location with building metadata."""
    return {
        "id": "loc-1",
        "name": "Home",
        "labels": {},
        "devices": [sample_device],
        "lat": 59.91,
        "lng": 10.75,
        "address": "Storgata 1, Oslo",
        "buildingType": "house",
        "buildingYear": 1978,
        "countryCode": "NO",
        "floors": 2,
        "timezone": "Europe/Oslo",
    }


@pytest.fixture
def sample_location_samples_response(sample_readings: dict) -> dict:
    """Fixture providing the latest samples of a location."""
    return {
        "id": "loc-1",
        "name": "Home",
        "devices": [
            {
                "id": "2930012345",
                "data": sample_readings,
                "segment": {
                    "id": "seg-1",
                    "name": "Living room",
                    "started": "2023-09-12T10:15:00",
                    "active": True,
                },
            },
        ],
    }
