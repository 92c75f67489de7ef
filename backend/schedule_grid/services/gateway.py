"""Interfaces to the collaborators the grid engine depends on.

The engine only talks to the remote schedule service, the user
confirmation gate and the feedback channel through the types below.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from typing import Protocol

import httpx
from pydantic import BaseModel, ValidationError

from schedule_grid.core.config import get_settings
from schedule_grid.core.exceptions import RemoteOperationError
from schedule_grid.schemas.grid import GridFilters, GridSnapshot, LessonEntry
from schedule_grid.schemas.schedule import ScheduleCreate, ScheduleUpdate

logger = logging.getLogger(__name__)

ConfirmDestructive = Callable[[str], bool]


class NotificationKind(str, Enum):
    success = "success"
    warning = "warning"
    error = "error"


class Notifier(Protocol):
    def notify(self, kind: NotificationKind, message: str) -> None: ...


class LoggingNotifier:
    _levels = {
        NotificationKind.success: logging.INFO,
        NotificationKind.warning: logging.WARNING,
        NotificationKind.error: logging.ERROR,
    }

    def notify(self, kind: NotificationKind, message: str) -> None:
        logger.log(self._levels.get(kind, logging.INFO), "[%s] %s", kind.value, message)


class ScheduleGateway(Protocol):
    async def fetch_grid(self, faculty_id: int, filters: GridFilters) -> GridSnapshot: ...

    async def create_lesson(self, payload: ScheduleCreate) -> LessonEntry: ...

    async def update_lesson(self, schedule_group_id: int, payload: ScheduleUpdate) -> LessonEntry: ...

    async def delete_lesson(self, schedule_group_id: int) -> None: ...

    async def set_lock(self, schedule_id: int, schedule_group_id: int | None, blocked: bool) -> None: ...


class HttpScheduleGateway:
    def __init__(
        self,
        base_url: str | None = None,
        *,
        api_prefix: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        settings = get_settings()
        self._prefix = settings.api_prefix if api_prefix is None else api_prefix
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.remote_base_url,
            timeout=settings.remote_timeout_seconds if timeout is None else timeout,
            transport=transport,
            headers={"Content-Type": "application/json", **(headers or {})},
        )

    async def __aenter__(self) -> "HttpScheduleGateway":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_grid(self, faculty_id: int, filters: GridFilters) -> GridSnapshot:
        response = await self._request(
            "fetch_grid", "GET", f"/schedule/faculty/{faculty_id}", params=filters.as_query()
        )
        return _decode("fetch_grid", response, GridSnapshot)

    async def create_lesson(self, payload: ScheduleCreate) -> LessonEntry:
        response = await self._request("create_lesson", "POST", "/schedules", json=payload.model_dump(mode="json"))
        return _decode("create_lesson", response, LessonEntry)

    async def update_lesson(self, schedule_group_id: int, payload: ScheduleUpdate) -> LessonEntry:
        response = await self._request(
            "update_lesson", "PUT", f"/schedules/{schedule_group_id}", json=payload.model_dump(mode="json")
        )
        return _decode("update_lesson", response, LessonEntry)

    async def delete_lesson(self, schedule_group_id: int) -> None:
        await self._request("delete_lesson", "DELETE", f"/schedules/{schedule_group_id}")

    async def set_lock(self, schedule_id: int, schedule_group_id: int | None, blocked: bool) -> None:
        await self._request(
            "set_lock",
            "POST",
            "/schedules/lock",
            json={"schedule_id": schedule_id, "schedule_group_id": schedule_group_id, "blocked": blocked},
        )

    async def _request(self, operation: str, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, f"{self._prefix}{path}", **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise RemoteOperationError(
                operation,
                _error_message(exc.response),
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise RemoteOperationError(operation, str(exc) or f"{operation} request failed") from exc
        return response


def _decode(operation: str, response: httpx.Response, model: type[BaseModel]):
    try:
        return model.model_validate(response.json())
    except (ValueError, ValidationError) as exc:
        logger.warning("Malformed %s response: %s", operation, exc)
        raise RemoteOperationError(operation, f"Malformed response from the schedule service ({operation})") from exc


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("message", "detail"):
            if isinstance(body.get(key), str) and body[key]:
                return body[key]
    return f"Remote request failed with status {response.status_code}"
