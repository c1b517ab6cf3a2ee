from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


ReservationStatus = Literal["pending", "accepted", "rejected"]


class RemoteModel(BaseModel):
    # The reservations service speaks camelCase JSON.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class NewReservation(RemoteModel):
    full_name: str
    phone: str
    email: str
    # "YYYY-MM-DD" / "HH:MM"
    date: str
    time: str
    seats: int = Field(ge=1)
    special_requests: str | None = None
    status: ReservationStatus = "pending"


class Reservation(NewReservation):
    id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ReservationUpdate(RemoteModel):
    full_name: str | None = None
    phone: str | None = None
    email: str | None = None
    date: str | None = None
    time: str | None = None
    seats: int | None = Field(default=None, ge=1)
    special_requests: str | None = None
    status: ReservationStatus | None = None


class Shift(RemoteModel):
    time: str
    date: str | None = None
    enabled: bool
    max_reservations: int


class ShiftUpdate(RemoteModel):
    enabled: bool | None = None
    max_reservations: int | None = Field(default=None, ge=0)


class ShiftStat(RemoteModel):
    time: str
    reservations: int = 0
    seats: int = 0
    available: bool = False


class ReservationStats(RemoteModel):
    date: str | None = None
    total_reservations: int = 0
    total_seats: int = 0
    pending_reservations: int = 0
    accepted_reservations: int = 0
    rejected_reservations: int = 0
    shift_stats: list[ShiftStat] = Field(default_factory=list)
