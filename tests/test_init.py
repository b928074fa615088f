"""Tests for the Airthings Cloud integration setup."""

from unittest.mock import AsyncMock, Mock, patch

import pytest

from custom_components.airthings_cloud import (
    PLATFORMS,
    async_setup_entry,
    async_unload_entry,
)
from custom_components.airthings_cloud.const import (
    CONF_CLIENT_ID,
    CONF_CLIENT_SECRET,
    DOMAIN,
)
from custom_components.airthings_cloud.models import AirthingsCredentials

from .conftest import TEST_CLIENT_ID, TEST_CLIENT_SECRET


@pytest.fixture
def mock_hass() -> Mock:
    """Create a mock Home Assistant instance."""
    hass = Mock()
    hass.data = {}
    hass.config_entries.async_forward_entry_setups = AsyncMock()
    hass.config_entries.async_unload_platforms = AsyncMock(return_value=True)
    return hass


@pytest.fixture
def mock_entry() -> Mock:
    """Create a mock config entry with credentials."""
    entry = Mock()
    entry.entry_id = "test_entry_id"
    entry.data = {
        CONF_CLIENT_ID: TEST_CLIENT_ID,
        CONF_CLIENT_SECRET: TEST_CLIENT_SECRET,
    }
    return entry


class TestAsyncSetupEntry:
    """Tests for async_setup_entry."""

    @pytest.mark.asyncio
    async def test_sets_up_client_and_coordinator(
        self, mock_hass: Mock, mock_entry: Mock
    ) -> None:
        """Test that setup stores the client and coordinator and forwards platforms."""
        coordinator = Mock()
        coordinator.data = {}
        coordinator.async_config_entry_first_refresh = AsyncMock()
        with (
            patch("custom_components.airthings_cloud.get_async_client") as get_client,
            patch("custom_components.airthings_cloud.api.AirthingsApi") as client_class,
            patch(
                "custom_components.airthings_cloud.AirthingsDataUpdateCoordinator",
                return_value=coordinator,
            ),
        ):
            result = await async_setup_entry(mock_hass, mock_entry)

        assert result is True
        client_class.assert_called_once_with(
            AirthingsCredentials(TEST_CLIENT_ID, TEST_CLIENT_SECRET),
            get_client.return_value,
        )
        coordinator.async_config_entry_first_refresh.assert_awaited_once()
        stored = mock_hass.data[DOMAIN][mock_entry.entry_id]
        assert stored["coordinator"] is coordinator
        assert stored["client"] is client_class.return_value
        mock_hass.config_entries.async_forward_entry_setups.assert_awaited_once_with(
            mock_entry, PLATFORMS
        )

    @pytest.mark.asyncio
    async def test_returns_false_without_credentials(
        self, mock_hass: Mock, mock_entry: Mock
    ) -> None:
        """Test that an entry without credentials is not set up."""
        mock_entry.data = {CONF_CLIENT_ID: TEST_CLIENT_ID}
        result = await async_setup_entry(mock_hass, mock_entry)
        assert result is False
        assert DOMAIN not in mock_hass.data


class TestAsyncUnloadEntry:
    """Tests for async_unload_entry."""

    @pytest.mark.asyncio
    async def test_removes_entry_data(self, mock_hass: Mock, mock_entry: Mock) -> None:
        """Test that unloading drops the stored entry data."""
        mock_hass.data[DOMAIN] = {mock_entry.entry_id: {"coordinator": Mock()}}
        result = await async_unload_entry(mock_hass, mock_entry)
        assert result is True
        assert mock_entry.entry_id not in mock_hass.data[DOMAIN]

    @pytest.mark.asyncio
    async def test_keeps_entry_data_when_unload_fails(
        self, mock_hass: Mock, mock_entry: Mock
    ) -> None:
        """Test that entry data is kept when platforms fail to unload."""
        mock_hass.config_entries.async_unload_platforms.return_value = False
        mock_hass.data[DOMAIN] = {mock_entry.entry_id: {"coordinator": Mock()}}
        result = await async_unload_entry(mock_hass, mock_entry)
        assert result is False
        assert mock_entry.entry_id in mock_hass.data[DOMAIN]
