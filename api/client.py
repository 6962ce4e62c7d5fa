"""
Async client for the salon REST API.

Responses use the envelope ``{success, message, data}``; the client
returns ``data`` and raises typed errors for failed requests. Reads go
through a FetchCache when one is supplied.
"""

import functools
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import urlencode

import httpx

from config import settings
from fetch.cache import FetchCache, Fetcher
from models.api import ApiResponse
from models.booking import Appointment, BookingRequest
from models.service import Service
from models.stylist import Stylist
from utils.error_handler import log_error, parse_api_error, parse_transport_error
from utils.exceptions import ApiValidationError
from utils.logging_config import get_logger
from validation.booking import validate_booking_data

logger = get_logger(__name__, log_file="api.log")


def _clean_params(params: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Drop unset parameters and render booleans the way the API expects."""
    cleaned: Dict[str, Any] = {}
    for name, value in (params or {}).items():
        if value is None:
            continue
        cleaned[name] = str(value).lower() if isinstance(value, bool) else value
    return cleaned


def cache_key(method: str, path: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """
    Build the cache key for a request.

    Parameters are sorted so equivalent requests share an entry.
    """
    query = urlencode(sorted(_clean_params(params).items()))
    return f"{method.upper()} {path}{'?' + query if query else ''}"


def _items(data: Any, name: str) -> List[Any]:
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        return data.get(name) or []
    return []


class ApiClient:
    """REST API client with optional read cache."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        token: Optional[str] = None,
        cache: Optional[FetchCache] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize API client.

        Args:
            base_url: API root (defaults to API_BASE_URL from settings)
            timeout: Request timeout in seconds (defaults to settings)
            token: Bearer token for authenticated endpoints
            cache: FetchCache used for GET helpers
            transport: Custom httpx transport (used in tests)
        """
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.cache = cache
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout or settings.api_timeout,
            headers=headers,
            transport=transport,
        )

    async def close(self) -> None:
        """Close HTTP client and stop cached requests."""
        if self.cache is not None:
            self.cache.close()
        await self.client.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # ========== Transport ==========

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        json: Optional[Any] = None,
    ) -> Any:
        """
        Perform a request and unwrap the response envelope.

        Returns:
            The envelope's ``data`` (or the raw body for non-envelope responses)

        Raises:
            NetworkError: If the API cannot be reached
            BookingError / ApiValidationError: If the API rejects the request
        """
        try:
            response = await self.client.request(
                method, path, params=_clean_params(params), json=json
            )
        except httpx.RequestError as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise parse_transport_error(e) from e

        payload = self._decode(response)

        if response.is_error:
            error = parse_api_error(
                response.status_code, payload if isinstance(payload, dict) else None
            )
            log_error(
                error, {"method": method, "path": path, "status": response.status_code}
            )
            raise error

        if isinstance(payload, dict) and "success" in payload:
            envelope = ApiResponse.model_validate(payload)
            if not envelope.success:
                logger.warning(f"{method} {path} unsuccessful: {envelope.message}")
                raise parse_api_error(response.status_code, payload)
            return envelope.data

        return payload

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        content_type = response.headers.get("content-type", "")
        if "application/json" in content_type:
            try:
                return response.json()
            except ValueError:
                return {"message": response.text or "Unknown error occurred"}

        if response.is_error:
            return {"message": response.text or "Unknown error occurred"}
        return response.text

    async def get_json(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post_json(self, path: str, body: Any) -> Any:
        return await self.request("POST", path, json=body)

    def fetcher(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Fetcher:
        """Zero-argument coroutine factory for FetchCache."""
        return functools.partial(self.get_json, path, params)

    async def _read(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        if self.cache is None:
            return await self.get_json(path, params)

        result = await self.cache.get(cache_key("GET", path, params), self.fetcher(path, params))
        return result.data

    # ========== Services ==========

    async def get_services(self, params: Optional[Mapping[str, Any]] = None) -> List[Service]:
        data = await self._read("/services", params)
        return [Service.model_validate(item) for item in _items(data, "services")]

    async def get_service(self, service_id: str) -> Service:
        return Service.model_validate(await self._read(f"/services/{service_id}"))

    async def get_services_by_category(
        self, category: str, params: Optional[Mapping[str, Any]] = None
    ) -> List[Service]:
        data = await self._read(f"/services/category/{category}", params)
        return [Service.model_validate(item) for item in _items(data, "services")]

    async def get_featured_services(
        self, params: Optional[Mapping[str, Any]] = None
    ) -> List[Service]:
        data = await self._read("/services/featured/list", params)
        return [Service.model_validate(item) for item in _items(data, "services")]

    # ========== Stylists ==========

    async def get_stylists(self, params: Optional[Mapping[str, Any]] = None) -> List[Stylist]:
        data = await self._read("/stylists", params)
        return [Stylist.model_validate(item) for item in _items(data, "stylists")]

    async def get_stylist(self, stylist_id: str) -> Stylist:
        return Stylist.model_validate(await self._read(f"/stylists/{stylist_id}"))

    async def get_stylists_by_service(self, service_id: str) -> List[Stylist]:
        data = await self._read(f"/stylists/service/{service_id}")
        return [Stylist.model_validate(item) for item in _items(data, "stylists")]

    async def get_stylist_availability(self, stylist_id: str, date: str) -> Any:
        # Availability changes with every booking, never cached
        return await self.get_json(f"/stylists/{stylist_id}/availability", {"date": date})

    # ========== Appointments ==========

    async def create_appointment(self, booking: BookingRequest) -> Appointment:
        """
        Validate a booking locally and submit it.

        Raises:
            ApiValidationError: If local validation fails (nothing is sent)
        """
        result = validate_booking_data(booking)
        if not result.is_valid:
            raise ApiValidationError(
                "Validation failed",
                [{"field": path, "message": message} for path, message in result.errors.items()],
            )

        data = await self.post_json("/appointments", booking.to_payload())
        if self.cache is not None:
            # Slots for the stylist/date just changed
            self.cache.clear()
        return Appointment.model_validate(data)

    async def get_my_appointments(
        self, params: Optional[Mapping[str, Any]] = None
    ) -> List[Appointment]:
        data = await self.get_json("/appointments/my-appointments", params)
        return [Appointment.model_validate(item) for item in _items(data, "appointments")]

    async def cancel_appointment(
        self, appointment_id: str, cancellation_reason: Optional[str] = None
    ) -> Appointment:
        data = await self.request(
            "PATCH",
            f"/appointments/{appointment_id}/cancel",
            json={"cancellationReason": cancellation_reason},
        )
        return Appointment.model_validate(data)

    async def reschedule_appointment(
        self,
        appointment_id: str,
        new_date: str,
        new_time_slot: str,
        reason: Optional[str] = None,
    ) -> Appointment:
        data = await self.request(
            "PATCH",
            f"/appointments/{appointment_id}/reschedule",
            json={"newDate": new_date, "newTimeSlot": new_time_slot, "reason": reason},
        )
        return Appointment.model_validate(data)

    async def get_available_slots(self, stylist_id: str, service_id: str, date: str) -> List[str]:
        data = await self.get_json(
            "/appointments/available-slots",
            {"stylistId": stylist_id, "serviceId": service_id, "date": date},
        )
        return list(_items(data, "slots"))

    async def get_available_time_slots(self, stylist_id: str, date: str) -> List[str]:
        data = await self.get_json(
            "/appointments/time-slots/available", {"stylistId": stylist_id, "date": date}
        )
        return list(_items(data, "timeSlots"))

    async def get_available_dates(self, stylist_id: str) -> List[str]:
        data = await self.get_json(
            "/appointments/dates/available", {"stylistId": stylist_id}
        )
        return list(_items(data, "dates"))
