"""Tracking API Client - HTTP access to the remote fitness server.

This module handles all network I/O for tracking data.
All I/O is contained here; business logic is in the core module.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ..core.dates import DAY_KEY_PATTERN
from ..core.models import (
    BodyFatEntry,
    BodyFatMeasurements,
    CreatineEntry,
    GrantedPermission,
    MacroEntry,
    MacroGoals,
    PermissionType,
    ProgressPhoto,
    ReceivedPermission,
    SessionRecord,
    Sex,
    WeightEntry,
)
from ..core.trends import prepare_weight_history


logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class ApiError(Exception):
    """A write request was rejected or could not be sent."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass
class ApiConfig:
    """Configuration for the tracking API client.

    Attributes:
        base_url: Server root, e.g. http://localhost:3000
        timeout: Per-request timeout in seconds
    """

    base_url: str = "http://localhost:3000"
    timeout: float = 10.0


def _parse_list(model: type[M], items: Any) -> list[M]:
    """Validate a list of payloads, skipping malformed items."""
    parsed: list[M] = []
    for item in items or []:
        try:
            parsed.append(model.model_validate(item))
        except ValidationError as e:
            logger.warning("Skipping malformed %s: %s", model.__name__, e.error_count())
    return parsed


class TrackingApiClient:
    """Client for the remote tracking, session and sharing endpoints.

    Reads degrade to empty results on failure and log the error.
    Writes raise ApiError carrying the server's message.
    """

    def __init__(
        self,
        config: ApiConfig | None = None,
        token: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the API client.

        Args:
            config: API configuration
            token: Bearer token forwarded on every request
            transport: Optional httpx transport (used by tests)
        """
        self.config = config or ApiConfig()
        self._token = token
        self._transport = transport
        self._client: httpx.Client | None = None

    @property
    def client(self) -> httpx.Client:
        """Lazy initialization of the HTTP client."""
        if self._client is None:
            headers = {"Content-Type": "application/json"}
            if self._token:
                headers["Authorization"] = f"Bearer {self._token}"
            self._client = httpx.Client(
                base_url=self.config.base_url,
                headers=headers,
                timeout=self.config.timeout,
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def photo_url(self, photo_id: str | int) -> str:
        """Absolute URL of a stored progress photo."""
        return f"{self.config.base_url.rstrip('/')}/api/tracking/photos/{photo_id}"

    # ==================== Request Helpers ====================

    def _get(self, path: str, params: dict | None = None) -> dict | None:
        try:
            response = self.client.get(path, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.error("GET %s failed with %d", path, e.response.status_code)
            return None
        except (httpx.HTTPError, ValueError) as e:
            logger.error("GET %s failed: %s", path, str(e))
            return None

    def _send(self, method: str, path: str, payload: dict | None = None) -> dict:
        try:
            response = self.client.request(method, path, json=payload)
        except httpx.HTTPError as e:
            logger.error("%s %s failed: %s", method, path, str(e))
            raise ApiError(f"Request failed: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.is_error:
            message = data.get("error") if isinstance(data, dict) else None
            logger.warning("%s %s returned %d", method, path, response.status_code)
            raise ApiError(message or f"Server returned {response.status_code}", response.status_code)
        return data if isinstance(data, dict) else {"data": data}

    # ==================== Account ====================

    def get_current_user_id(self) -> str | None:
        """Id of the user the bearer token belongs to."""
        data = self._get("/api/auth/me")
        user = (data or {}).get("user") or {}
        user_id = user.get("id")
        return str(user_id) if user_id is not None else None

    # ==================== Weight ====================

    def get_weight_history(self, limit: int = 90) -> list[WeightEntry]:
        """Fetch weight history, latest first, with invalid masses removed."""
        data = self._get("/api/tracking/bodystats/weight", {"limit": limit})
        if data is None:
            return []
        return prepare_weight_history(data.get("entries") or [])

    def log_weight(self, weight_kg: float, recorded_at: str, note: str | None = None) -> dict:
        """Log a weight in kilograms."""
        return self._send(
            "POST",
            "/api/tracking/bodystats/weight",
            {"weightKg": weight_kg, "recordedAt": recorded_at, "note": note},
        )

    def delete_weight(self, entry_id: str | int) -> dict:
        return self._send("DELETE", f"/api/tracking/bodystats/weight/{entry_id}")

    def get_height_cm(self) -> Optional[float]:
        """Stored height in centimeters, if the user has set one."""
        data = self._get("/api/tracking/bodystats/height")
        height = (data or {}).get("height") or {}
        try:
            value = float(height.get("height_cm"))
        except (TypeError, ValueError):
            return None
        return value if value > 0 else None

    # ==================== Macros ====================

    def get_macros_history(self, days: int = 30) -> list[MacroEntry]:
        data = self._get("/api/tracking/macros/log", {"days": days})
        if data is None:
            return []
        return _parse_list(MacroEntry, data.get("entries"))

    def log_macros(self, entry: MacroEntry) -> dict:
        """Log a macros entry; its date and time become the taken-at timestamp."""
        taken_at = entry.date
        if DAY_KEY_PATTERN.fullmatch(entry.date):
            taken_at = f"{entry.date}T{entry.time or '12:00'}:00"
        return self._send(
            "POST",
            "/api/tracking/macros/log",
            {
                "name": entry.name,
                "protein": entry.protein,
                "carbs": entry.carbs,
                "fat": entry.fat,
                "calories": entry.calories,
                "errorMargin": entry.error_margin or 0,
                "takenAt": taken_at,
                "note": entry.note,
            },
        )

    def delete_macros(self, entry_id: str | int) -> dict:
        return self._send("DELETE", f"/api/tracking/macros/log/{entry_id}")

    def get_macros_goals(self) -> MacroGoals:
        """Fetch macro goals, falling back to defaults."""
        data = self._get("/api/tracking/macros/goals")
        goals = (data or {}).get("goals")
        if not goals:
            return MacroGoals()
        try:
            return MacroGoals.model_validate(goals)
        except ValidationError:
            logger.warning("Server returned invalid macro goals, using defaults")
            return MacroGoals()

    def set_macros_goals(self, goals: MacroGoals) -> dict:
        return self._send("PUT", "/api/tracking/macros/goals", goals.model_dump())

    # ==================== Creatine ====================

    def get_creatine_history(self, limit: int = 90) -> list[CreatineEntry]:
        data = self._get("/api/tracking/creatine/log", {"limit": limit})
        if data is None:
            return []
        return _parse_list(CreatineEntry, data.get("entries"))

    def log_creatine(self, grams: float, taken_at: str, note: str | None = None) -> dict:
        return self._send(
            "POST",
            "/api/tracking/creatine/log",
            {"grams": grams, "takenAt": taken_at, "note": note},
        )

    def delete_creatine(self, entry_id: str | int) -> dict:
        return self._send("DELETE", f"/api/tracking/creatine/log/{entry_id}")

    # ==================== Body Fat ====================

    def get_body_fat_history(self, limit: int = 90) -> list[BodyFatEntry]:
        data = self._get("/api/tracking/bodystats/bodyfat/log", {"limit": limit})
        if data is None:
            return []
        return _parse_list(BodyFatEntry, data.get("entries"))

    def log_body_fat(
        self,
        percentage: float,
        measurements: BodyFatMeasurements,
        sex: Sex,
        date: str,
    ) -> dict:
        """Log a US Navy body fat reading; a bare date is stored at noon."""
        calculated_at = f"{date}T12:00:00" if DAY_KEY_PATTERN.fullmatch(date) else date
        return self._send(
            "POST",
            "/api/tracking/bodystats/bodyfat/log",
            {
                "percentage": percentage,
                "measurements": measurements.model_dump(),
                "gender": sex.value,
                "calculatedAt": calculated_at,
                "method": "us_navy",
            },
        )

    def delete_body_fat(self, entry_id: str | int) -> dict:
        return self._send("DELETE", f"/api/tracking/bodystats/bodyfat/log/{entry_id}")

    # ==================== Photos ====================

    def get_photo_list(self, limit: int = 50) -> list[ProgressPhoto]:
        data = self._get("/api/tracking/photos", {"limit": limit})
        if data is None:
            return []
        return _parse_list(ProgressPhoto, data.get("photos"))

    def delete_photo(self, photo_id: str | int) -> dict:
        return self._send("DELETE", f"/api/tracking/photos/{photo_id}")

    # ==================== Sessions ====================

    def get_sessions(self, limit: int = 50) -> list[SessionRecord]:
        data = self._get("/api/sessions", {"limit": limit})
        if data is None:
            return []
        return _parse_list(SessionRecord, data.get("sessions"))

    def get_session(self, session_id: str | int) -> SessionRecord | None:
        data = self._get(f"/api/sessions/{session_id}")
        if data is None:
            return None
        try:
            return SessionRecord.model_validate(data.get("session", data))
        except ValidationError:
            logger.error("Malformed session payload for %s", session_id)
            return None

    # ==================== Sharing ====================

    def grant_permission(
        self,
        friend_id: str | int,
        permission_type: PermissionType,
        payload: dict | None = None,
    ) -> dict:
        return self._send(
            "POST",
            "/api/sharing/permissions",
            {"friendId": friend_id, "permissionType": permission_type.value, "payload": payload},
        )

    def revoke_permission(self, permission_id: str | int) -> dict:
        return self._send("DELETE", f"/api/sharing/permissions/{permission_id}")

    def get_granted_permissions(self) -> list[GrantedPermission]:
        data = self._get("/api/sharing/permissions/granted")
        if data is None:
            return []
        return _parse_list(GrantedPermission, data.get("permissions"))

    def get_received_permissions(self) -> list[ReceivedPermission]:
        data = self._get("/api/sharing/permissions/received")
        if data is None:
            return []
        return _parse_list(ReceivedPermission, data.get("permissions"))

    def get_friend_sessions(self, friend_id: str | int, limit: int = 20) -> list[SessionRecord]:
        data = self._get(f"/api/sharing/sessions/friend/{friend_id}", {"limit": limit})
        if data is None:
            return []
        return _parse_list(SessionRecord, data.get("sessions"))

    def get_friend_session(self, friend_id: str | int, session_id: str | int) -> SessionRecord | None:
        data = self._get(f"/api/sharing/sessions/friend/{friend_id}/{session_id}")
        if data is None:
            return None
        try:
            return SessionRecord.model_validate(data.get("session", data))
        except ValidationError:
            logger.error("Malformed friend session payload for %s", session_id)
            return None

    def get_friend_live_session(
        self, friend_id: str | int, session_id: str | int
    ) -> SessionRecord | None:
        """Live view of a friend's session; None when not shared or not found."""
        path = f"/api/sharing/watch/friend/{friend_id}/session/{session_id}/live"
        try:
            response = self.client.get(path)
        except httpx.HTTPError as e:
            logger.error("GET %s failed: %s", path, str(e))
            return None
        if response.status_code in (403, 404):
            return None
        if response.is_error:
            logger.error("GET %s failed with %d", path, response.status_code)
            return None
        try:
            live = response.json().get("liveSession")
        except ValueError:
            logger.error("GET %s returned invalid JSON", path)
            return None
        if not live:
            return None
        try:
            return SessionRecord.model_validate(live)
        except ValidationError:
            logger.error("Malformed live session payload for %s", session_id)
            return None
