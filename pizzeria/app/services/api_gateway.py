import asyncio
import inspect
import json
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any, TypeVar

import httpx
from pydantic import ValidationError

from pizzeria.app.services.schemas import (
    NewReservation,
    RemoteModel,
    Reservation,
    ReservationStats,
    ReservationUpdate,
    Shift,
    ShiftUpdate,
)


logger = logging.getLogger(__name__)

JSON_HEADERS = {"Content-Type": "application/json"}

ModelT = TypeVar("ModelT", bound=RemoteModel)

ReservationsCallback = Callable[[list[Reservation]], Awaitable[None] | None]


class ApiError(Exception):
    """A failed call to the reservations service (non-2xx or network failure)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class Subscription:
    """Handle for a live reservations feed; the caller must cancel it."""

    def __init__(self, task: asyncio.Task) -> None:
        self._task = task

    @property
    def closed(self) -> bool:
        return self._task.done()

    def cancel(self) -> None:
        if not self._task.done():
            self._task.cancel()

    async def wait_closed(self) -> None:
        try:
            await self._task
        except asyncio.CancelledError:
            pass


async def _iter_sse_data(response: httpx.Response) -> AsyncIterator[str]:
    """Yield the data payload of each server-sent event."""
    data_lines: list[str] = []
    async for line in response.aiter_lines():
        if not line:
            if data_lines:
                yield "\n".join(data_lines)
                data_lines = []
            continue
        if line.startswith(":"):
            continue
        field, _, value = line.partition(":")
        if field == "data":
            data_lines.append(value[1:] if value.startswith(" ") else value)
    if data_lines:
        yield "\n".join(data_lines)


class ApiGatewayClient:
    """Async client for the pizzeria reservations service.

    Every call is sent once: there are no retries, no backoff and no
    request deduplication.
    """

    def __init__(self, client: httpx.AsyncClient, base_url: str) -> None:
        self._client = client
        self.base_url = base_url.rstrip("/")

    @property
    def health_url(self) -> str:
        origin = self.base_url.removesuffix("/api")
        return f"{origin}/health"

    async def _request(
        self,
        method: str,
        endpoint: str,
        *,
        params: dict[str, Any] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        url = f"{self.base_url}{endpoint}"
        try:
            response = await self._client.request(
                method,
                url,
                params=params,
                content=json.dumps(payload) if payload is not None else None,
                headers=JSON_HEADERS,
            )
        except httpx.HTTPError as exc:
            logger.error("API request failed: %s %s: %s", method, url, exc)
            raise ApiError(str(exc) or f"Network error calling {endpoint}") from exc

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {"data": body}

        if not response.is_success:
            message = body.get("error") or f"HTTP error! status: {response.status_code}"
            logger.error("API request failed: %s %s: %s", method, url, message)
            raise ApiError(message, status_code=response.status_code)

        return body

    @staticmethod
    def _parse(model: type[ModelT], data: Any, endpoint: str) -> ModelT:
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            logger.error("Unexpected %s payload from %s: %s", model.__name__, endpoint, exc)
            raise ApiError(f"Invalid response from {endpoint}") from exc

    # Reservations

    async def list_reservations(
        self,
        date: str | None = None,
        status: str | None = None,
        limit: int | None = None,
    ) -> list[Reservation]:
        params = {"date": date, "status": status, "limit": limit}
        params = {key: value for key, value in params.items() if value}
        body = await self._request("GET", "/reservations", params=params or None)
        return [self._parse(Reservation, item, "/reservations") for item in body.get("data") or []]

    async def get_reservation(self, reservation_id: str) -> Reservation | None:
        try:
            body = await self._request("GET", f"/reservations/{reservation_id}")
        except ApiError as exc:
            if exc.status_code == 404:
                return None
            raise
        data = body.get("data")
        return self._parse(Reservation, data, f"/reservations/{reservation_id}") if data else None

    async def create_reservation(self, reservation: NewReservation) -> str:
        body = await self._request("POST", "/reservations", payload=reservation.to_payload())
        data = body.get("data") or {}
        return str(data.get("id") or "")

    async def update_reservation(self, reservation_id: str, updates: ReservationUpdate) -> None:
        await self._request("PUT", f"/reservations/{reservation_id}", payload=updates.to_payload())

    async def delete_reservation(self, reservation_id: str) -> None:
        await self._request("DELETE", f"/reservations/{reservation_id}")

    async def accept_reservation(self, reservation_id: str) -> None:
        await self._request("POST", f"/reservations/{reservation_id}/accept")

    async def reject_reservation(self, reservation_id: str, reason: str | None = None) -> None:
        payload = {"reason": reason} if reason else {}
        await self._request("POST", f"/reservations/{reservation_id}/reject", payload=payload)

    # Shifts

    async def get_shifts(self, date: str) -> list[Shift]:
        body = await self._request("GET", f"/shifts/{date}")
        return [self._parse(Shift, item, f"/shifts/{date}") for item in body.get("data") or []]

    async def get_shift(self, date: str, time: str) -> Shift | None:
        try:
            body = await self._request("GET", f"/shifts/{date}/{time}")
        except ApiError as exc:
            if exc.status_code == 404:
                return None
            raise
        data = body.get("data")
        return self._parse(Shift, data, f"/shifts/{date}/{time}") if data else None

    async def update_shift(self, date: str, time: str, updates: ShiftUpdate) -> None:
        await self._request("PUT", f"/shifts/{date}/{time}", payload=updates.to_payload())

    async def initialize_shifts(self, date: str) -> None:
        await self._request("POST", f"/shifts/{date}/initialize")

    async def get_stats(self, date: str) -> ReservationStats:
        body = await self._request("GET", f"/shifts/{date}/stats")
        return self._parse(ReservationStats, body.get("data") or {}, f"/shifts/{date}/stats")

    async def get_available_times(self) -> list[str]:
        body = await self._request("GET", "/shifts/times/available")
        return [str(item) for item in body.get("data") or []]

    # Live updates

    def subscribe_to_reservations(self, date: str, callback: ReservationsCallback) -> Subscription:
        """Stream the reservation list for ``date``; call ``cancel()`` on the handle to stop."""
        task = asyncio.create_task(self._stream_reservations(date, callback))
        return Subscription(task)

    async def _stream_reservations(self, date: str, callback: ReservationsCallback) -> None:
        url = f"{self.base_url}/reservations/stream/{date}"
        try:
            async with self._client.stream("GET", url, headers={"Accept": "text/event-stream"}) as response:
                if not response.is_success:
                    logger.error("SSE connection error: %s returned %s", url, response.status_code)
                    return
                async for data in _iter_sse_data(response):
                    try:
                        message = json.loads(data)
                        if not isinstance(message, dict) or message.get("type") != "reservations":
                            continue
                        reservations = [Reservation.model_validate(item) for item in message.get("data") or []]
                    except (ValueError, ValidationError) as exc:
                        logger.error("Error parsing SSE data: %s", exc)
                        continue
                    try:
                        result = callback(reservations)
                        if inspect.isawaitable(result):
                            await result
                    except Exception:
                        logger.exception("Reservations callback failed for %s", date)
        except httpx.HTTPError as exc:
            logger.error("SSE connection error: %s", exc)

    # Liveness

    async def health_check(self) -> bool:
        try:
            response = await self._client.get(self.health_url, headers=JSON_HEADERS)
        except httpx.HTTPError as exc:
            logger.error("Health check failed: %s", exc)
            return False
        return response.is_success
