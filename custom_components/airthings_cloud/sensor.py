"""Sensor entities for Airthings Cloud devices.

One sensor entity is created per device and per reading that has a known
description. Values come from the latest samples polled by the coordinator.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from homeassistant.components.sensor import (
    SensorDeviceClass,
    SensorEntity,
    SensorEntityDescription,
    SensorStateClass,
)
from homeassistant.const import (
    CONCENTRATION_MICROGRAMS_PER_CUBIC_METER,
    CONCENTRATION_PARTS_PER_BILLION,
    CONCENTRATION_PARTS_PER_MILLION,
    PERCENTAGE,
    SIGNAL_STRENGTH_DECIBELS_MILLIWATT,
    EntityCategory,
    UnitOfIlluminance,
    UnitOfPressure,
    UnitOfTemperature,
)
from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import DOMAIN
from .coordinator import AirthingsDataUpdateCoordinator

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback

    from .models import Device

_LOGGER = logging.getLogger(__name__)

CONCENTRATION_BECQUERELS_PER_CUBIC_METER = "Bq/m³"

_MEASUREMENT = SensorStateClass.MEASUREMENT


def _pm(key: str, name: str, device_class: SensorDeviceClass) -> SensorEntityDescription:
    return SensorEntityDescription(
        key=key,
        name=name,
        device_class=device_class,
        native_unit_of_measurement=CONCENTRATION_MICROGRAMS_PER_CUBIC_METER,
        state_class=_MEASUREMENT,
    )


SENSOR_DESCRIPTIONS: dict[str, SensorEntityDescription] = {
    description.key: description
    for description in (
        SensorEntityDescription(
            key="temp",
            name="Temperature",
            device_class=SensorDeviceClass.TEMPERATURE,
            native_unit_of_measurement=UnitOfTemperature.CELSIUS,
            state_class=_MEASUREMENT,
        ),
        SensorEntityDescription(
            key="humidity",
            name="Humidity",
            device_class=SensorDeviceClass.HUMIDITY,
            native_unit_of_measurement=PERCENTAGE,
            state_class=_MEASUREMENT,
        ),
        SensorEntityDescription(
            key="co2",
            name="CO2",
            device_class=SensorDeviceClass.CO2,
            native_unit_of_measurement=CONCENTRATION_PARTS_PER_MILLION,
            state_class=_MEASUREMENT,
        ),
        SensorEntityDescription(
            key="voc",
            name="VOC",
            device_class=SensorDeviceClass.VOLATILE_ORGANIC_COMPOUNDS_PARTS,
            native_unit_of_measurement=CONCENTRATION_PARTS_PER_BILLION,
            state_class=_MEASUREMENT,
        ),
        SensorEntityDescription(
            key="pressure",
            name="Pressure",
            device_class=SensorDeviceClass.ATMOSPHERIC_PRESSURE,
            native_unit_of_measurement=UnitOfPressure.HPA,
            state_class=_MEASUREMENT,
        ),
        SensorEntityDescription(
            key="radonShortTermAvg",
            name="Radon",
            native_unit_of_measurement=CONCENTRATION_BECQUERELS_PER_CUBIC_METER,
            state_class=_MEASUREMENT,
        ),
        _pm("pm1", "PM1", SensorDeviceClass.PM1),
        _pm("pm25", "PM2.5", SensorDeviceClass.PM25),
        _pm("pm10", "PM10", SensorDeviceClass.PM10),
        SensorEntityDescription(
            key="lux",
            name="Illuminance",
            device_class=SensorDeviceClass.ILLUMINANCE,
            native_unit_of_measurement=UnitOfIlluminance.LUX,
            state_class=_MEASUREMENT,
        ),
        SensorEntityDescription(
            key="light",
            name="Light",
            native_unit_of_measurement=PERCENTAGE,
            state_class=_MEASUREMENT,
        ),
        SensorEntityDescription(
            key="mold",
            name="Mold risk",
            state_class=_MEASUREMENT,
        ),
        SensorEntityDescription(
            key="virusRisk",
            name="Virus risk",
            state_class=_MEASUREMENT,
        ),
        SensorEntityDescription(
            key="outdoorTemp",
            name="Outdoor temperature",
            device_class=SensorDeviceClass.TEMPERATURE,
            native_unit_of_measurement=UnitOfTemperature.CELSIUS,
            state_class=_MEASUREMENT,
        ),
        SensorEntityDescription(
            key="outdoorHumidity",
            name="Outdoor humidity",
            device_class=SensorDeviceClass.HUMIDITY,
            native_unit_of_measurement=PERCENTAGE,
            state_class=_MEASUREMENT,
        ),
        SensorEntityDescription(
            key="outdoorPressure",
            name="Outdoor pressure",
            device_class=SensorDeviceClass.ATMOSPHERIC_PRESSURE,
            native_unit_of_measurement=UnitOfPressure.HPA,
            state_class=_MEASUREMENT,
        ),
        _pm("outdoorPm1", "Outdoor PM1", SensorDeviceClass.PM1),
        _pm("outdoorPm25", "Outdoor PM2.5", SensorDeviceClass.PM25),
        _pm("outdoorPm10", "Outdoor PM10", SensorDeviceClass.PM10),
        SensorEntityDescription(
            key="battery",
            name="Battery",
            device_class=SensorDeviceClass.BATTERY,
            native_unit_of_measurement=PERCENTAGE,
            state_class=_MEASUREMENT,
            entity_category=EntityCategory.DIAGNOSTIC,
        ),
        SensorEntityDescription(
            key="rssi",
            name="Signal strength",
            device_class=SensorDeviceClass.SIGNAL_STRENGTH,
            native_unit_of_measurement=SIGNAL_STRENGTH_DECIBELS_MILLIWATT,
            state_class=_MEASUREMENT,
            entity_category=EntityCategory.DIAGNOSTIC,
            entity_registry_enabled_default=False,
        ),
    )
}


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up sensor entities for Airthings devices."""
    coordinator: AirthingsDataUpdateCoordinator = hass.data[DOMAIN][entry.entry_id][
        "coordinator"
    ]

    entities = [
        AirthingsSensorEntity(coordinator, device_data.device, description)
        for device_data in coordinator.data.values()
        for key, description in SENSOR_DESCRIPTIONS.items()
        if key in device_data.readings or key in device_data.device.sensors
    ]
    _LOGGER.debug("Adding %d Airthings sensor entities", len(entities))
    async_add_entities(entities)


class AirthingsSensorEntity(
    CoordinatorEntity[AirthingsDataUpdateCoordinator], SensorEntity
):
    """Sensor entity for a single reading of an Airthings device."""

    _attr_has_entity_name = True

    def __init__(
        self,
        coordinator: AirthingsDataUpdateCoordinator,
        device: Device,
        description: SensorEntityDescription,
    ) -> None:
        """Initialize the sensor entity.

        Args:
            coordinator: Coordinator polling the device samples.
            device: Device the reading belongs to.
            description: Description of the reading.

        """
        super().__init__(coordinator)
        self.entity_description = description
        self._device_id = device.id
        self._attr_unique_id = f"{device.id}_{description.key}"
        self._attr_device_info = DeviceInfo(
            identifiers={(DOMAIN, device.id)},
            name=device.segment.name,
            manufacturer="Airthings",
            model=device.device_type,
            serial_number=device.id,
            suggested_area=device.location.name,
        )

    @property
    def available(self) -> bool:
        """Return True if the device is still reported by the API."""
        return super().available and self._device_id in (self.coordinator.data or {})

    @property
    def native_value(self) -> float | int | str | None:
        """Return the latest reading, or None if it was not reported."""
        device_data = (self.coordinator.data or {}).get(self._device_id)
        if device_data is None:
            return None
        return device_data.readings.get(self.entity_description.key)
