"""Constants for the Airthings Cloud integration.

This module contains all the constants used throughout the integration,
including API endpoints, configuration keys, and default intervals.
"""

from datetime import timedelta

DOMAIN = "airthings_cloud"

TOKEN_URL = "https://accounts-api.airthings.com/v1/token"
API_URL = "https://ext-api.airthings.com/v1"

# Scope requested by earlier versions of the token endpoint.
SCOPE_READ_CURRENT_VALUE = "read:device:current_value"

# Subtracted from the token expiry so a token never expires mid-request.
DEFAULT_TOKEN_EXPIRY_SKEW = timedelta(seconds=15)

DEFAULT_DEVICE_LIMIT = 10
DEVICE_PAGE_SIZE = 50
DEFAULT_POLL_INTERVAL = 300

CONF_CLIENT_ID = "client_id"
CONF_CLIENT_SECRET = "client_secret"  # noqa: S105

ERROR_INVALID_AUTH = "invalid_auth"
ERROR_CANNOT_CONNECT = "cannot_connect"
ERROR_API_ERROR = "api_error"
ERROR_UNKNOWN = "unknown_error"
