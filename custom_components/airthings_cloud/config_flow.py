"""
Configuration flow for Airthings Cloud integration.

This module handles the setup of the integration through Home Assistant's
config flow system, validating the API client credentials before the entry
is created.
"""

import logging
from typing import Any

import voluptuous as vol
from homeassistant.config_entries import ConfigFlow, ConfigFlowResult
from homeassistant.helpers.httpx_client import get_async_client

from . import api
from .const import (
    CONF_CLIENT_ID,
    CONF_CLIENT_SECRET,
    DOMAIN,
    ERROR_API_ERROR,
    ERROR_CANNOT_CONNECT,
    ERROR_INVALID_AUTH,
    ERROR_UNKNOWN,
)
from .models import AirthingsCredentials

_LOGGER = logging.getLogger(__name__)

STEP_USER_DATA_SCHEMA = vol.Schema(
    {
        vol.Required(CONF_CLIENT_ID): str,
        vol.Required(CONF_CLIENT_SECRET): str,
    }
)


class AirthingsCloudConfigFlow(ConfigFlow, domain=DOMAIN):
    """Handle configuration flow for Airthings Cloud integration."""

    VERSION = 1

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        """
        Handle the initial step of the config flow.

        Args:
            user_input: User input data containing client id and secret.

        Returns:
            ConfigFlowResult indicating the next step or errors.

        """
        errors: dict[str, str] = {}

        if user_input is not None:
            client_id = user_input[CONF_CLIENT_ID]
            credentials = AirthingsCredentials(
                client_id=client_id,
                client_secret=user_input[CONF_CLIENT_SECRET],
            )

            try:
                client = api.AirthingsApi(credentials, get_async_client(self.hass))
                devices = await client.list_devices()
                _LOGGER.info(
                    "Validated Airthings credentials, %d devices found", len(devices)
                )

            except api.AirthingsApiAuthError as err:
                _LOGGER.warning(
                    "Authentication failed (%s): %s", ERROR_INVALID_AUTH, err
                )
                errors["base"] = ERROR_INVALID_AUTH
            except api.AirthingsApiDecodeError:
                _LOGGER.exception("Unexpected API response (%s)", ERROR_API_ERROR)
                errors["base"] = ERROR_API_ERROR
            except api.AirthingsApiRequestError as err:
                if err.status_code is None:
                    _LOGGER.exception("Connection error (%s)", ERROR_CANNOT_CONNECT)
                    errors["base"] = ERROR_CANNOT_CONNECT
                else:
                    _LOGGER.exception("API client error (%s)", ERROR_API_ERROR)
                    errors["base"] = ERROR_API_ERROR
            except api.AirthingsApiClientError:
                _LOGGER.exception("API client error (%s)", ERROR_API_ERROR)
                errors["base"] = ERROR_API_ERROR
            except Exception:
                _LOGGER.exception(
                    "Unexpected error during authentication (%s)",
                    ERROR_UNKNOWN,
                )
                errors["base"] = ERROR_UNKNOWN

            else:
                await self.async_set_unique_id(client_id)
                self._abort_if_unique_id_configured()

                return self.async_create_entry(
                    title=f"Airthings ({client_id})",
                    data={
                        CONF_CLIENT_ID: client_id,
                        CONF_CLIENT_SECRET: credentials.client_secret,
                    },
                )

        return self.async_show_form(
            step_id="user",
            data_schema=STEP_USER_DATA_SCHEMA,
            errors=errors,
        )
