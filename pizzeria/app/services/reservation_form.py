import logging
import re
from collections.abc import Callable
from datetime import date
from enum import Enum
from typing import Any

from pydantic import BaseModel

from pizzeria.app.services.api_gateway import ApiGatewayClient
from pizzeria.app.services.availability import AvailabilityResolver
from pizzeria.app.services.schemas import NewReservation
from pizzeria.app.widgets.events import PointerEvents
from pizzeria.app.widgets.pickers import (
    DEFAULT_COUNTRY_CODE,
    DatePicker,
    PeopleSelector,
    PhoneInput,
    TimePicker,
)


logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

GENERIC_ERROR_MESSAGE = "We could not send your reservation. Please try again or call us."

ERROR_MESSAGES = {
    "first_name": "First name is required",
    "last_name": "Last name is required",
    "phone": "Phone number is required",
    "email": "Email is required",
    "email_invalid": "Please enter a valid email address",
    "date": "Please choose a date",
    "time": "Please choose a time",
}

# Date goes before time so a new time is checked against the new date's slots.
FIELD_ORDER = (
    "first_name",
    "last_name",
    "country_code",
    "phone",
    "email",
    "date",
    "time",
    "seats",
    "special_requests",
)


class SubmissionPhase(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    FAILED = "failed"


class ReservationDraft(BaseModel):
    first_name: str = ""
    last_name: str = ""
    phone: str = ""
    country_code: str = DEFAULT_COUNTRY_CODE
    email: str = ""
    date: str = ""
    time: str = ""
    seats: int = 1
    special_requests: str = ""


class SuccessPanel(BaseModel):
    """What the guest submitted, echoed back verbatim."""

    name: str
    date: str
    time: str
    seats: int


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match(value.strip()))


def validate_draft(draft: ReservationDraft) -> dict[str, str]:
    errors: dict[str, str] = {}
    if not draft.first_name.strip():
        errors["first_name"] = ERROR_MESSAGES["first_name"]
    if not draft.last_name.strip():
        errors["last_name"] = ERROR_MESSAGES["last_name"]
    if not draft.phone.strip():
        errors["phone"] = ERROR_MESSAGES["phone"]
    if not draft.email.strip():
        errors["email"] = ERROR_MESSAGES["email"]
    elif not is_valid_email(draft.email):
        errors["email"] = ERROR_MESSAGES["email_invalid"]
    if not draft.date:
        errors["date"] = ERROR_MESSAGES["date"]
    if not draft.time:
        errors["time"] = ERROR_MESSAGES["time"]
    return errors


class ReservationFormController:
    """State of one open reservation modal.

    Phases run idle -> validating -> submitting -> success | failed. A failed
    submission leaves the submit control enabled so the guest can retry.
    """

    def __init__(
        self,
        gateway: ApiGatewayClient,
        *,
        events: PointerEvents | None = None,
        min_seats: int = 1,
        max_seats: int = 10,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self._gateway = gateway
        self._resolver = AvailabilityResolver(gateway)
        self.draft = ReservationDraft(seats=min_seats)
        self.errors: dict[str, str] = {}
        self.phase = SubmissionPhase.IDLE
        self.available_times: list[str] = []
        self.success: SuccessPanel | None = None
        self.error_message: str | None = None
        self.reservation_id: str | None = None
        self.closed = False

        self.date_picker = DatePicker(self._apply_date, clock=clock)
        self.time_picker = TimePicker(self._apply_time)
        self.people_selector = PeopleSelector(
            self._apply_seats, value=min_seats, minimum=min_seats, maximum=max_seats
        )
        self.phone_input = PhoneInput(self._apply_phone, self._apply_country_code)
        if events is not None:
            for widget in self.widgets:
                widget.mount(events)

    @property
    def widgets(self) -> tuple:
        return (self.date_picker, self.time_picker, self.people_selector, self.phone_input)

    @property
    def submit_enabled(self) -> bool:
        return self.phase not in (SubmissionPhase.SUBMITTING, SubmissionPhase.SUCCESS) and not self.closed

    @property
    def show_error(self) -> bool:
        return self.phase == SubmissionPhase.FAILED

    def _clear_error(self, field: str) -> None:
        self.errors.pop(field, None)
        widget = {
            "date": self.date_picker,
            "time": self.time_picker,
            "phone": self.phone_input,
            "seats": self.people_selector,
        }.get(field)
        if widget is not None:
            widget.error = None

    # Widget callbacks

    def _apply_date(self, value: str) -> None:
        self.draft.date = value
        self._clear_error("date")

    def _apply_time(self, value: str) -> None:
        self.draft.time = value
        self._clear_error("time")

    def _apply_seats(self, value: int) -> None:
        self.draft.seats = value
        self._clear_error("seats")

    def _apply_phone(self, value: str) -> None:
        self.draft.phone = value
        self._clear_error("phone")

    def _apply_country_code(self, value: str) -> None:
        self.draft.country_code = value

    # Field setters

    def set_first_name(self, value: str) -> None:
        self.draft.first_name = value
        self._clear_error("first_name")

    def set_last_name(self, value: str) -> None:
        self.draft.last_name = value
        self._clear_error("last_name")

    def set_email(self, value: str) -> None:
        self.draft.email = value
        self._clear_error("email")

    def set_special_requests(self, value: str) -> None:
        self.draft.special_requests = value
        self._clear_error("special_requests")

    def set_phone(self, raw: str) -> None:
        self.phone_input.input(raw)

    def set_country_code(self, code: str) -> None:
        self.phone_input.select_country(code)

    def set_seats(self, count: int) -> None:
        self.people_selector.select(count)

    def set_time(self, value: str) -> None:
        if not value:
            self.time_picker.value = ""
            self._apply_time("")
            return
        self.time_picker.select(value)

    async def set_date(self, value: str) -> None:
        if value:
            day = date.fromisoformat(value)
            if self.date_picker.is_disabled(day):
                raise ValueError(f"{value} is in the past")
            self.date_picker.select(day)
        else:
            self.date_picker.value = ""
            self._apply_date("")
        await self.refresh_availability()

    async def pick_date(self, day: date) -> None:
        self.date_picker.select(day)
        await self.refresh_availability()

    async def set_field(self, name: str, value: Any) -> None:
        setter = getattr(self, f"set_{name}", None)
        if name not in FIELD_ORDER or setter is None:
            raise ValueError(f"Unknown field {name!r}")
        result = setter(value)
        if result is not None:
            await result

    async def apply(self, updates: dict[str, Any]) -> None:
        for name in updates:
            if name not in FIELD_ORDER:
                raise ValueError(f"Unknown field {name!r}")
        for name in FIELD_ORDER:
            if name in updates:
                await self.set_field(name, updates[name])

    # Availability

    async def refresh_availability(self) -> list[str]:
        times = await self._resolver.refresh(self.draft.date)
        if times is None:
            return self.available_times
        self.available_times = times
        self.time_picker.options = list(times)
        if self.draft.time and self.draft.time not in times:
            logger.info("Time %s no longer available on %s, clearing", self.draft.time, self.draft.date)
            self.time_picker.value = ""
            self.draft.time = ""
        return times

    # Validation & submission

    def validate(self) -> dict[str, str]:
        self.errors = validate_draft(self.draft)
        self.date_picker.error = self.errors.get("date")
        self.time_picker.error = self.errors.get("time")
        self.phone_input.error = self.errors.get("phone")
        return dict(self.errors)

    def build_reservation(self) -> NewReservation:
        draft = self.draft
        return NewReservation(
            full_name=f"{draft.first_name} {draft.last_name}",
            phone=draft.phone,
            email=draft.email,
            date=draft.date,
            time=draft.time,
            seats=draft.seats,
            special_requests=draft.special_requests or None,
            status="pending",
        )

    async def submit(self) -> SubmissionPhase:
        if not self.submit_enabled:
            return self.phase

        self.phase = SubmissionPhase.VALIDATING
        self.error_message = None
        if self.validate():
            self.phase = SubmissionPhase.IDLE
            return self.phase

        self.phase = SubmissionPhase.SUBMITTING
        reservation = self.build_reservation()
        try:
            self.reservation_id = await self._gateway.create_reservation(reservation)
        except Exception as exc:
            logger.error("Reservation submission failed: %s", exc)
            self.error_message = str(exc) or GENERIC_ERROR_MESSAGE
            self.phase = SubmissionPhase.FAILED
            return self.phase

        self.success = SuccessPanel(
            name=reservation.full_name,
            date=reservation.date,
            time=reservation.time,
            seats=reservation.seats,
        )
        self.phase = SubmissionPhase.SUCCESS
        logger.info("Reservation %s submitted for %s %s", self.reservation_id, reservation.date, reservation.time)
        return self.phase

    def dismiss_error(self) -> None:
        if self.phase == SubmissionPhase.FAILED:
            self.phase = SubmissionPhase.IDLE
            self.error_message = None

    def acknowledge_success(self) -> bool:
        if self.phase != SubmissionPhase.SUCCESS:
            return False
        self.close()
        return True

    def close(self) -> None:
        for widget in self.widgets:
            widget.unmount()
        self.closed = True
