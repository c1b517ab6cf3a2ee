import logging

from pizzeria.app.services.api_gateway import ApiError, ApiGatewayClient


logger = logging.getLogger(__name__)

DEFAULT_TIMES = [
    "19:00", "19:15", "19:30", "19:45",
    "20:00", "20:15", "20:30", "20:45",
    "21:00", "21:15", "21:30",
]


class AvailabilityResolver:
    """Keeps the time-slot options consistent with the chosen date.

    Requests are numbered; ``refresh`` returns ``None`` for a response that
    was overtaken by a later request so callers never apply a stale list.
    """

    def __init__(self, gateway: ApiGatewayClient) -> None:
        self._gateway = gateway
        self._sequence = 0

    async def resolve(self, date: str) -> list[str]:
        if not date:
            return []
        try:
            shifts = await self._gateway.get_shifts(date)
        except ApiError as exc:
            logger.error("Error loading available times for %s: %s", date, exc)
            return []
        return [shift.time for shift in shifts if shift.enabled]

    async def refresh(self, date: str) -> list[str] | None:
        self._sequence += 1
        request_id = self._sequence
        times = await self.resolve(date)
        if request_id != self._sequence:
            logger.debug("Dropping stale availability for %s", date)
            return None
        return times


async def check_shift_availability(
    gateway: ApiGatewayClient,
    date: str,
    time: str,
    requested_seats: int,
) -> bool:
    """Advisory pre-check; the reservations service has the final word."""
    try:
        shift = await gateway.get_shift(date, time)
        if shift is None or not shift.enabled:
            return False
        reservations = await gateway.list_reservations(date=date)
    except ApiError as exc:
        logger.error("Error checking availability for %s %s: %s", date, time, exc)
        return False

    booked = sum(
        reservation.seats
        for reservation in reservations
        if reservation.time == time and reservation.status != "rejected"
    )
    return booked + requested_seats <= shift.max_reservations


async def available_times(gateway: ApiGatewayClient) -> list[str]:
    try:
        return await gateway.get_available_times()
    except ApiError as exc:
        logger.error("Error loading available times, using defaults: %s", exc)
        return list(DEFAULT_TIMES)
