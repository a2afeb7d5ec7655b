"""
Async client for the Gift Tracker HTTP API.

Failures come back as typed, human-readable errors: NetworkError when no
response arrived, AuthorizationError for 401/403, ClientValidationError when a
body is rejected before sending, ApiError for everything else.
"""

import logging
from typing import Any, Dict, Optional, Type

import httpx
from pydantic import BaseModel, ValidationError

from gifttracker.client.errors import ApiError, AuthorizationError, ClientValidationError, NetworkError
from gifttracker.models.contact import ContactCreate, ContactUpdate
from gifttracker.models.event import EventCreate, EventUpdate
from gifttracker.models.gift import GiftCreate, GiftUpdate
from gifttracker.models.user import UserUpdate
from gifttracker.services.monitoring import ErrorType, Monitor

logger = logging.getLogger(__name__)

SUPPORTED_METHODS = ("GET", "POST", "PUT", "DELETE")


def _validate(schema: Type[BaseModel], body: Dict[str, Any]) -> Dict[str, Any]:
    try:
        return schema.model_validate(body).model_dump(mode="json", exclude_unset=True)
    except ValidationError as e:
        problems = "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors())
        raise ClientValidationError(f"Please check the form: {problems}") from e


def _drop_empty(params: Dict[str, Optional[str]]) -> Dict[str, str]:
    return {key: value for key, value in params.items() if value is not None}


class ApiClient:
    def __init__(self, base_url: str, token: Optional[str] = None, monitor: Optional[Monitor] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None, timeout: float = 10.0):
        self.token = token
        self.monitor = monitor or Monitor()
        self._client = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        await self._client.aclose()

    async def request(self, path: str, method: str, query_params: Optional[Dict[str, str]] = None,
                      body: Optional[Dict[str, Any]] = None) -> Any:
        method = method.upper()
        if method not in SUPPORTED_METHODS:
            raise ValueError(f"Unsupported method: {method}")

        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            response = await self._client.request(
                method,
                path,
                params=query_params or None,
                json=body if method in ("POST", "PUT") and body is not None else None,
                headers=headers,
            )
        except httpx.RequestError as e:
            logger.error(f"API {method} error for {path}: {e}")
            self.monitor.log_error(ErrorType.NETWORK, str(e), {"path": path, "method": method})
            raise NetworkError("No response received from server. Please check your connection.") from e

        if response.is_error:
            self._raise_for_status(response, path, method)

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    def _raise_for_status(self, response: httpx.Response, path: str, method: str):
        status_code = response.status_code
        try:
            message = response.json().get("message") or "An unexpected error occurred"
        except ValueError:
            message = "An unexpected error occurred"

        logger.error(f"API {method} error for {path}: {status_code} {message}")
        if status_code == 403:
            self.monitor.log_error(ErrorType.AUTH, message, {"path": path, "status": status_code})
            raise AuthorizationError("You don't have permission to access this resource", status_code)
        if status_code == 401:
            self.monitor.log_error(ErrorType.AUTH, message, {"path": path, "status": status_code})
            raise AuthorizationError("Please login to continue", status_code)

        self.monitor.log_error(ErrorType.API, message, {"path": path, "status": status_code})
        raise ApiError(message, status_code)

    # --- Users ---
    async def get_current_user(self):
        return await self.request("/users", "GET")

    async def update_user(self, user: Dict[str, Any]):
        return await self.request("/users", "PUT", body=_validate(UserUpdate, user))

    # --- Gifts ---
    async def get_gifts(self, type: Optional[str] = None, contact_id: Optional[str] = None,
                        event_id: Optional[str] = None):
        params = _drop_empty({"type": type, "contactId": contact_id, "eventId": event_id})
        return await self.request("/gifts", "GET", query_params=params)

    async def get_gift(self, gift_id: str):
        return await self.request(f"/gifts/{gift_id}", "GET")

    async def create_gift(self, gift: Dict[str, Any]):
        return await self.request("/gifts", "POST", body=_validate(GiftCreate, gift))

    async def update_gift(self, gift_id: str, gift: Dict[str, Any]):
        return await self.request(f"/gifts/{gift_id}", "PUT", body=_validate(GiftUpdate, gift))

    async def delete_gift(self, gift_id: str):
        return await self.request(f"/gifts/{gift_id}", "DELETE")

    # --- Contacts ---
    async def get_contacts(self):
        return await self.request("/contacts", "GET")

    async def create_contact(self, contact: Dict[str, Any]):
        return await self.request("/contacts", "POST", body=_validate(ContactCreate, contact))

    async def update_contact(self, contact_id: str, contact: Dict[str, Any]):
        return await self.request(f"/contacts/{contact_id}", "PUT", body=_validate(ContactUpdate, contact))

    async def delete_contact(self, contact_id: str):
        return await self.request(f"/contacts/{contact_id}", "DELETE")

    # --- Events ---
    async def get_events(self, start_date: Optional[str] = None, end_date: Optional[str] = None):
        params = _drop_empty({"startDate": start_date, "endDate": end_date})
        return await self.request("/events", "GET", query_params=params)

    async def create_event(self, event: Dict[str, Any]):
        return await self.request("/events", "POST", body=_validate(EventCreate, event))

    async def update_event(self, event_id: str, event: Dict[str, Any]):
        return await self.request(f"/events/{event_id}", "PUT", body=_validate(EventUpdate, event))

    async def delete_event(self, event_id: str):
        return await self.request(f"/events/{event_id}", "DELETE")

    # --- Notifications ---
    async def get_notifications(self):
        return await self.request("/notifications", "GET")

    async def mark_notification_read(self, notification_id: str):
        return await self.request(f"/notifications/{notification_id}/read", "PUT")

    # --- Images ---
    async def get_upload_url(self, content_type: str, filename: Optional[str] = None):
        return await self.request("/images/upload-url", "POST",
                                  body={"contentType": content_type, "filename": filename})

    async def upload_image(self, content: bytes, content_type: str, filename: Optional[str] = None) -> str:
        """Uploads straight to the object store through a pre-signed URL and returns the public image URL."""
        target = await self.get_upload_url(content_type, filename)
        try:
            response = await self._client.put(target["uploadUrl"], content=content,
                                              headers={"Content-Type": content_type})
        except httpx.RequestError as e:
            self.monitor.log_error(ErrorType.NETWORK, str(e), {"imageId": target["imageId"]})
            raise NetworkError("Image upload failed. Please check your connection.") from e
        if response.is_error:
            self.monitor.log_error(ErrorType.API, f"Image upload returned {response.status_code}",
                                   {"imageId": target["imageId"]})
            raise ApiError("Image upload failed.", response.status_code)
        return target["imageUrl"]
