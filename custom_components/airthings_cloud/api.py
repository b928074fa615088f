"""API client for the Airthings consumer API.

This module provides the client-credentials token exchange, the cached
token lifecycle, and typed access to devices, locations and their latest
samples.
"""

from __future__ import annotations

import asyncio
import base64
import logging
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any, Self
from urllib.parse import quote

import httpx

from .const import API_URL, DEFAULT_TOKEN_EXPIRY_SKEW, TOKEN_URL
from .models import (
    AccessToken,
    AirthingsCredentials,
    Device,
    DeviceFilter,
    DeviceSamples,
    DeviceSegment,
    Location,
    LocationInfo,
    LocationRef,
    LocationSamples,
    Readings,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from types import TracebackType

_LOGGER = logging.getLogger(__name__)

_NUMBER = (int, float)
_READING_VALUE = (int, float, str)


class AirthingsApiClientError(Exception):
    """Base exception for Airthings API client errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """Initialize the error with an optional HTTP status code."""
        super().__init__(message)
        self.status_code = status_code


class AirthingsApiAuthError(AirthingsApiClientError):
    """Exception raised when the token exchange fails."""


class AirthingsApiRequestError(AirthingsApiClientError):
    """Exception raised when a resource request fails."""


class AirthingsApiDecodeError(AirthingsApiRequestError):
    """Exception raised when a response body does not match the expected shape."""


class AirthingsApiPreconditionError(AirthingsApiClientError):
    """Exception raised when no access token is available for a request."""


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _path_segment(value: str) -> str:
    """Percent-encode an id so it stays a single path segment."""
    return quote(value, safe="")


def create_basic_auth(credentials: AirthingsCredentials) -> str:
    """Create the Basic authorization value for the token endpoint.

    Args:
        credentials: Client id and secret.

    Returns:
        "Basic " followed by base64 of "id:secret".

    """
    raw = f"{credentials.client_id}:{credentials.client_secret}".encode()
    return f"Basic {base64.b64encode(raw).decode('ascii')}"


def create_token_headers(credentials: AirthingsCredentials) -> dict[str, str]:
    """Create HTTP headers for token requests."""
    return {
        "Authorization": create_basic_auth(credentials),
        "content-type": "application/json",
        "accept": "application/json",
    }


def create_headers(token: AccessToken) -> dict[str, str]:
    """Create HTTP headers for resource requests.

    Args:
        token: Access token to present as a bearer credential.

    Returns:
        Dictionary containing HTTP headers for API requests.

    """
    return {
        "Authorization": f"Bearer {token.token}",
        "accept": "application/json",
    }


def create_device_query(device_filter: DeviceFilter | None) -> dict[str, str]:
    """Create the query parameters of the device list request.

    Returns an empty mapping when no filter is given, so the server defaults
    apply.
    """
    if device_filter is None:
        return {}
    return {
        "showInactive": "true" if device_filter.show_inactive else "false",
        "limit": str(device_filter.limit),
        "offset": str(device_filter.offset),
    }


def is_http_error(status: int) -> bool:
    """Check if HTTP status code is outside the 2xx range.

    Args:
        status: HTTP status code to check.

    Returns:
        True if status code is not a success code, False otherwise.

    """
    return not 200 <= status < 300  # noqa: PLR2004


def is_token_valid(
    token: AccessToken | None,
    now: datetime,
    skew: timedelta = DEFAULT_TOKEN_EXPIRY_SKEW,
) -> bool:
    """Check if a token can still be used at the given instant.

    Args:
        token: Cached token, or None if none was fetched yet.
        now: Current time.
        skew: Safety margin subtracted from the token expiry.

    Returns:
        True if a token exists and expires_at - skew is later than now.

    """
    return token is not None and token.expires_at - skew > now


def validate_response(response: httpx.Response) -> Any:
    """Validate HTTP response and return parsed JSON data.

    Args:
        response: HTTP response object to validate.

    Returns:
        Parsed JSON data from response.

    Raises:
        AirthingsApiRequestError: If the status code is not 2xx.
        AirthingsApiDecodeError: If the body is not valid JSON.

    """
    if is_http_error(response.status_code):
        client_error = f"Request failed: {response.status_code}"
        raise AirthingsApiRequestError(client_error, response.status_code)

    try:
        return response.json()
    except ValueError as err:
        decode_error = f"Invalid JSON in response: {err}"
        raise AirthingsApiDecodeError(decode_error, response.status_code) from err


def _type_name(expected: type | tuple[type, ...]) -> str:
    if isinstance(expected, tuple):
        return " or ".join(t.__name__ for t in expected)
    return expected.__name__


def _accepts_bool(expected: type | tuple[type, ...]) -> bool:
    if isinstance(expected, tuple):
        return bool in expected
    return expected is bool


def _ensure_object(data: Any, context: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        error_msg = f"Expected an object for {context}, got {type(data).__name__}"
        raise AirthingsApiDecodeError(error_msg)
    return data


def _require(
    data: dict[str, Any],
    key: str,
    expected: type | tuple[type, ...],
    context: str,
) -> Any:
    if key not in data:
        error_msg = f"Missing '{key}' in {context}"
        raise AirthingsApiDecodeError(error_msg)
    return _check_type(data[key], key, expected, context)


def _optional(
    data: dict[str, Any],
    key: str,
    expected: type | tuple[type, ...],
    context: str,
) -> Any:
    value = data.get(key)
    if value is None:
        return None
    return _check_type(value, key, expected, context)


def _check_type(
    value: Any,
    key: str,
    expected: type | tuple[type, ...],
    context: str,
) -> Any:
    # JSON booleans decode to bool, which is a subclass of int.
    if not isinstance(value, expected) or (
        isinstance(value, bool) and not _accepts_bool(expected)
    ):
        error_msg = (
            f"Invalid '{key}' in {context}: expected {_type_name(expected)}, "
            f"got {type(value).__name__}"
        )
        raise AirthingsApiDecodeError(error_msg)
    return value


def _parse_timestamp(value: str, context: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as err:
        error_msg = f"Invalid timestamp in {context}: {value!r}"
        raise AirthingsApiDecodeError(error_msg) from err
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed


def extract_access_token(data: Any, issued_at: datetime) -> AccessToken:
    """Extract the access token from a token endpoint response.

    Args:
        data: Token response body.
        issued_at: Instant the token request was issued.

    Returns:
        AccessToken expiring expires_in seconds after issued_at.

    Raises:
        AirthingsApiDecodeError: If the body is not a valid token response.

    """
    context = "token response"
    body = _ensure_object(data, context)
    expires_in = _require(body, "expires_in", _NUMBER, context)
    return AccessToken(
        token=_require(body, "access_token", str, context),
        token_type=_require(body, "token_type", str, context),
        expires_at=issued_at + timedelta(seconds=expires_in),
    )


def decode_segment(data: Any) -> DeviceSegment:
    """Decode a device segment object."""
    context = "segment"
    segment = _ensure_object(data, context)
    return DeviceSegment(
        id=_require(segment, "id", str, context),
        name=_require(segment, "name", str, context),
        started=_parse_timestamp(_require(segment, "started", str, context), context),
        active=_require(segment, "active", bool, context),
    )


def decode_location_ref(data: Any) -> LocationRef:
    """Decode the location reference embedded in a device."""
    context = "device location"
    location = _ensure_object(data, context)
    return LocationRef(
        id=_require(location, "id", str, context),
        name=_require(location, "name", str, context),
    )


def decode_device(data: Any) -> Device:
    """Decode a device object.

    Args:
        data: Device JSON object.

    Returns:
        Device with its segment and location reference.

    Raises:
        AirthingsApiDecodeError: If the object does not match the device shape.

    """
    context = "device"
    device = _ensure_object(data, context)
    sensors = _require(device, "sensors", list, context)
    return Device(
        id=_require(device, "id", str, context),
        device_type=_require(device, "deviceType", str, context),
        sensors=tuple(_check_type(s, "sensors", str, context) for s in sensors),
        segment=decode_segment(_require(device, "segment", dict, context)),
        location=decode_location_ref(_require(device, "location", dict, context)),
    )


def decode_readings(data: Any) -> Readings:
    """Decode a flat mapping of sensor name to reading value.

    Values are passed through unchanged; only their JSON types are checked.
    """
    context = "readings"
    readings = _ensure_object(data, context)
    for key, value in readings.items():
        _check_type(value, key, _READING_VALUE, context)
    return dict(readings)


def decode_location(data: Any) -> Location:
    """Decode a location summary object."""
    context = "location"
    location = _ensure_object(data, context)
    return Location(
        id=_require(location, "id", str, context),
        name=_require(location, "name", str, context),
    )


def decode_location_info(data: Any) -> LocationInfo:
    """Decode a location with its building metadata and devices.

    Args:
        data: Location JSON object.

    Returns:
        LocationInfo; building attributes absent from the body are None.

    Raises:
        AirthingsApiDecodeError: If the object does not match the location shape.

    """
    context = "location"
    location = _ensure_object(data, context)
    devices = _require(location, "devices", list, context)
    return LocationInfo(
        id=_require(location, "id", str, context),
        name=_require(location, "name", str, context),
        devices=tuple(decode_device(d) for d in devices),
        lat=_require(location, "lat", _NUMBER, context),
        lng=_require(location, "lng", _NUMBER, context),
        labels=_optional(location, "labels", dict, context) or {},
        address=_optional(location, "address", str, context),
        building_height=_optional(location, "buildingHeight", _NUMBER, context),
        building_size=_optional(location, "buildingSize", _NUMBER, context),
        building_type=_optional(location, "buildingType", str, context),
        building_volume=_optional(location, "buildingVolume", _NUMBER, context),
        building_year=_optional(location, "buildingYear", int, context),
        country_code=_optional(location, "countryCode", str, context),
        floors=_optional(location, "floors", int, context),
        timezone=_optional(location, "timezone", str, context),
        usage_hours=_optional(location, "usageHours", dict, context),
        ventilation_type=_optional(location, "ventilationType", dict, context),
    )


def decode_device_samples(data: Any) -> DeviceSamples:
    """Decode the samples of one device inside a location samples response."""
    context = "device samples"
    samples = _ensure_object(data, context)
    return DeviceSamples(
        id=_require(samples, "id", str, context),
        data=decode_readings(_require(samples, "data", dict, context)),
        segment=decode_segment(_require(samples, "segment", dict, context)),
    )


def decode_location_samples(data: Any) -> LocationSamples:
    """Decode the latest samples of every device in a location."""
    context = "location samples"
    location = _ensure_object(data, context)
    devices = _require(location, "devices", list, context)
    return LocationSamples(
        id=_require(location, "id", str, context),
        name=_require(location, "name", str, context),
        devices=tuple(decode_device_samples(d) for d in devices),
    )


def extract_devices(data: Any) -> list[Device]:
    """Extract device list from API response.

    Args:
        data: API response data dictionary.

    Returns:
        List of Device objects.

    """
    body = _ensure_object(data, "device list")
    return [decode_device(d) for d in _require(body, "devices", list, "device list")]


def extract_readings(data: Any) -> Readings:
    """Extract the readings nested under "data" in a latest-samples response."""
    body = _ensure_object(data, "device samples")
    return decode_readings(_require(body, "data", dict, "device samples"))


def extract_locations(data: Any) -> list[Location]:
    """Extract location list from API response."""
    body = _ensure_object(data, "location list")
    return [
        decode_location(loc)
        for loc in _require(body, "locations", list, "location list")
    ]


async def async_fetch_token(
    session: httpx.AsyncClient,
    credentials: AirthingsCredentials,
    issued_at: datetime,
    scopes: Iterable[str] = (),
) -> AccessToken:
    """Exchange client credentials for an access token.

    Args:
        session: HTTP client session.
        credentials: Client id and secret.
        issued_at: Instant the expiry is counted from.
        scopes: Optional scopes to request; none are sent when empty.

    Returns:
        The new AccessToken.

    Raises:
        AirthingsApiAuthError: If the request fails, the status code is not
            2xx, or the body is not a valid token response.

    """
    payload: dict[str, str] = {"grant_type": "client_credentials"}
    scope = " ".join(scopes)
    if scope:
        payload["scope"] = scope

    _LOGGER.debug("Requesting access token for client %s", credentials.client_id)
    try:
        response = await session.post(
            TOKEN_URL,
            headers=create_token_headers(credentials),
            json=payload,
        )
    except httpx.HTTPError as err:
        error_msg = f"Token request failed: {err}"
        raise AirthingsApiAuthError(error_msg) from err

    if is_http_error(response.status_code):
        error_msg = f"Token request failed: {response.status_code}"
        raise AirthingsApiAuthError(error_msg, response.status_code)

    try:
        token = extract_access_token(response.json(), issued_at)
    except (ValueError, AirthingsApiDecodeError) as err:
        error_msg = f"Invalid token response: {err}"
        raise AirthingsApiAuthError(error_msg, response.status_code) from err

    _LOGGER.debug("Obtained access token expiring at %s", token.expires_at)
    return token


class TokenManager:
    """Holds the cached access token of one client and refreshes it on demand."""

    def __init__(
        self,
        session: httpx.AsyncClient,
        credentials: AirthingsCredentials,
        *,
        scopes: Iterable[str] = (),
        expiry_skew: timedelta = DEFAULT_TOKEN_EXPIRY_SKEW,
        clock: Callable[[], datetime] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the token manager.

        Args:
            session: HTTP client session used for the token exchange.
            credentials: Client id and secret.
            scopes: Optional scopes to request.
            expiry_skew: Safety margin subtracted from the token expiry.
            clock: Callable returning the current aware datetime.
            logger: Logger receiving refresh failures.

        """
        self._session = session
        self._credentials = credentials
        self._scopes = tuple(scopes)
        self.expiry_skew = expiry_skew
        self._clock = clock or _utcnow
        self._logger = logger or _LOGGER
        self._token: AccessToken | None = None
        self._lock = asyncio.Lock()

    @property
    def token(self) -> AccessToken | None:
        """Return the cached token, or None if none was fetched yet."""
        return self._token

    def is_valid(self, now: datetime | None = None) -> bool:
        """Check the cached token against the skew rule."""
        if now is None:
            now = self._clock()
        return is_token_valid(self._token, now, self.expiry_skew)

    async def ensure_token(self) -> AccessToken | None:
        """Return a token valid for immediate use, refreshing it if needed.

        Concurrent callers share a single refresh.
        """
        if self.is_valid():
            return self._token
        async with self._lock:
            if not self.is_valid():
                await self.refresh()
        return self._token

    async def refresh(self) -> AccessToken:
        """Fetch a new token and replace the cached one.

        The cached token is left untouched when the exchange fails.
        """
        try:
            token = await async_fetch_token(
                self._session,
                self._credentials,
                self._clock(),
                self._scopes,
            )
        except AirthingsApiAuthError as err:
            self._logger.warning("Airthings token refresh failed: %s", err)
            raise
        self._token = token
        return token


class AirthingsApi:
    """Typed client for the Airthings consumer API."""

    def __init__(
        self,
        credentials: AirthingsCredentials,
        session: httpx.AsyncClient | None = None,
        *,
        scopes: Iterable[str] = (),
        expiry_skew: timedelta = DEFAULT_TOKEN_EXPIRY_SKEW,
        clock: Callable[[], datetime] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            credentials: Client id and secret.
            session: HTTP client session. When omitted the client creates
                one and closes it in async_close.
            scopes: Optional scopes to request with each token.
            expiry_skew: Safety margin subtracted from the token expiry.
            clock: Callable returning the current aware datetime.
            logger: Logger receiving request failures.

        """
        self._owns_session = session is None
        self._session = session if session is not None else httpx.AsyncClient()
        self._logger = logger or _LOGGER
        self.token_manager = TokenManager(
            self._session,
            credentials,
            scopes=scopes,
            expiry_skew=expiry_skew,
            clock=clock,
            logger=self._logger,
        )

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.async_close()

    async def async_close(self) -> None:
        """Close the HTTP session if it was created by this client."""
        if self._owns_session:
            await self._session.aclose()

    async def _async_get(self, path: str, params: dict[str, str] | None = None) -> Any:
        token = await self.token_manager.ensure_token()
        if token is None:
            error_msg = "No credentials available: could not obtain an access token"
            raise AirthingsApiPreconditionError(error_msg)

        url = f"{API_URL}{path}"
        _LOGGER.debug("GET %s", path)
        try:
            response = await self._session.get(
                url,
                headers=create_headers(token),
                params=params,
            )
        except httpx.HTTPError as err:
            self._logger.warning("Airthings request to %s failed: %s", path, err)
            error_msg = f"Request to {path} failed: {err}"
            raise AirthingsApiRequestError(error_msg) from err

        try:
            return validate_response(response)
        except AirthingsApiRequestError as err:
            self._logger.warning("Airthings request to %s failed: %s", path, err)
            raise

    async def _async_get_decoded(
        self,
        path: str,
        decode: Callable[[Any], Any],
        params: dict[str, str] | None = None,
    ) -> Any:
        data = await self._async_get(path, params)
        try:
            return decode(data)
        except AirthingsApiDecodeError as err:
            self._logger.warning("Unexpected response from %s: %s", path, err)
            raise

    async def list_devices(
        self,
        device_filter: DeviceFilter | None = None,
    ) -> list[Device]:
        """Fetch the devices of the account.

        Args:
            device_filter: Optional showInactive/limit/offset query.

        Returns:
            List of Device objects.

        """
        devices = await self._async_get_decoded(
            "/devices",
            extract_devices,
            create_device_query(device_filter),
        )
        _LOGGER.debug("Retrieved %d devices from Airthings API", len(devices))
        return devices

    async def get_device(self, device_id: str) -> Device:
        """Fetch a single device by its serial number."""
        return await self._async_get_decoded(
            f"/devices/{_path_segment(device_id)}",
            decode_device,
        )

    async def get_device_samples(self, device_id: str) -> Readings:
        """Fetch the latest readings of a device."""
        return await self._async_get_decoded(
            f"/devices/{_path_segment(device_id)}/latest-samples",
            extract_readings,
        )

    async def list_locations(self) -> list[Location]:
        """Fetch the locations of the account."""
        return await self._async_get_decoded("/locations", extract_locations)

    async def get_location(self, location_id: str) -> LocationInfo:
        """Fetch a location with its building metadata and devices."""
        return await self._async_get_decoded(
            f"/locations/{_path_segment(location_id)}",
            decode_location_info,
        )

    async def get_location_samples(self, location_id: str) -> LocationSamples:
        """Fetch the latest samples of every device in a location."""
        return await self._async_get_decoded(
            f"/locations/{_path_segment(location_id)}/latest-samples",
            decode_location_samples,
        )
