import asyncio
from datetime import date

import pytest

from pizzeria.app.services.api_gateway import ApiError
from pizzeria.app.services.schemas import NewReservation, Reservation, Shift


TODAY = date(2030, 1, 15)


def fixed_today() -> date:
    return TODAY


class FakeGateway:
    """In-memory stand-in for ApiGatewayClient."""

    def __init__(self) -> None:
        self.shifts: dict[str, list[Shift]] = {}
        self.reservations: list[Reservation] = []
        self.created: list[NewReservation] = []
        self.initialized: list[str] = []
        self.shift_calls: list[str] = []
        self.failing_dates: set[str] = set()
        self.gates: dict[str, asyncio.Event] = {}
        self.create_error: Exception | None = None
        self.on_create = None
        self.healthy = True

    def add_shifts(self, day: str, *times: str, disabled: tuple[str, ...] = (), capacity: int = 20) -> None:
        self.shifts[day] = [
            Shift(date=day, time=time, enabled=time not in disabled, max_reservations=capacity)
            for time in times
        ]

    async def get_shifts(self, day: str) -> list[Shift]:
        self.shift_calls.append(day)
        gate = self.gates.get(day)
        if gate is not None:
            await gate.wait()
        if day in self.failing_dates:
            raise ApiError("HTTP error! status: 500", status_code=500)
        return list(self.shifts.get(day, []))

    async def get_shift(self, day: str, time: str) -> Shift | None:
        if day in self.failing_dates:
            raise ApiError("HTTP error! status: 500", status_code=500)
        return next((shift for shift in self.shifts.get(day, []) if shift.time == time), None)

    async def list_reservations(self, date=None, status=None, limit=None) -> list[Reservation]:
        return [reservation for reservation in self.reservations if date is None or reservation.date == date]

    async def initialize_shifts(self, day: str) -> None:
        self.initialized.append(day)

    async def create_reservation(self, reservation: NewReservation) -> str:
        if self.on_create is not None:
            self.on_create()
        if self.create_error is not None:
            raise self.create_error
        self.created.append(reservation)
        return f"res-{len(self.created)}"

    async def health_check(self) -> bool:
        return self.healthy


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def clock():
    return fixed_today
