"""Coordinator for Airthings Cloud integration."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from homeassistant.exceptions import ConfigEntryAuthFailed
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator, UpdateFailed

from . import api
from .const import DEFAULT_POLL_INTERVAL, DEVICE_PAGE_SIZE, DOMAIN
from .models import AirthingsDeviceData, DeviceFilter, Readings

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

    from .models import Device

_LOGGER = logging.getLogger(__name__)


class AirthingsDataUpdateCoordinator(
    DataUpdateCoordinator[dict[str, AirthingsDeviceData]]
):
    """Coordinator that polls Airthings devices and their latest samples."""

    def __init__(
        self,
        hass: HomeAssistant,
        client: api.AirthingsApi,
        config_entry: ConfigEntry | None = None,
    ) -> None:
        """Initialize the coordinator."""
        super().__init__(
            hass,
            _LOGGER,
            config_entry=config_entry,
            name=DOMAIN,
            update_interval=timedelta(seconds=DEFAULT_POLL_INTERVAL),
        )
        self.client = client

    async def _async_update_data(self) -> dict[str, AirthingsDeviceData]:
        """Fetch devices, then the latest samples of each of their locations."""
        try:
            devices = await self._async_fetch_devices()
            readings = await self._async_fetch_readings(devices)
        except api.AirthingsApiAuthError as err:
            raise ConfigEntryAuthFailed(f"Authentication failed: {err}") from err
        except api.AirthingsApiClientError as err:
            raise UpdateFailed(f"API error while polling devices: {err}") from err

        missing = [device.id for device in devices if device.id not in readings]
        if missing:
            _LOGGER.debug("Did not receive samples for devices: %s", missing)

        return {
            device.id: AirthingsDeviceData(
                device=device,
                readings=readings.get(device.id, {}),
            )
            for device in devices
        }

    async def _async_fetch_devices(self) -> list[Device]:
        """Page through the device list until a short page is returned."""
        devices: list[Device] = []
        offset = 0

        while True:
            page = await self.client.list_devices(
                DeviceFilter(limit=DEVICE_PAGE_SIZE, offset=offset)
            )
            devices.extend(page)
            if len(page) < DEVICE_PAGE_SIZE:
                return devices
            offset += DEVICE_PAGE_SIZE
            _LOGGER.debug("Fetching next device page at offset %d", offset)

    async def _async_fetch_readings(self, devices: list[Device]) -> dict[str, Readings]:
        location_ids = list(dict.fromkeys(device.location.id for device in devices))
        readings: dict[str, Readings] = {}

        for location_id in location_ids:
            samples = await self.client.get_location_samples(location_id)
            for device_samples in samples.devices:
                readings[device_samples.id] = device_samples.data

        _LOGGER.debug(
            "Polled samples for %d devices in %d locations",
            len(readings),
            len(location_ids),
        )
        return readings
