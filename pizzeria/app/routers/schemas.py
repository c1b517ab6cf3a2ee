from pydantic import BaseModel, ConfigDict, Field

from pizzeria.app.services.reservation_form import (
    ReservationDraft,
    ReservationFormController,
    SubmissionPhase,
    SuccessPanel,
)


class ModalUpdateIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    first_name: str | None = Field(default=None, max_length=120)
    last_name: str | None = Field(default=None, max_length=120)
    country_code: str | None = Field(default=None, max_length=5)
    phone: str | None = Field(default=None, max_length=32)
    email: str | None = Field(default=None, max_length=254)
    # "YYYY-MM-DD"; empty string clears the date
    date: str | None = None
    # "HH:MM"; must be one of the available times for the date
    time: str | None = None
    seats: int | None = None
    special_requests: str | None = Field(default=None, max_length=1024)


class ModalStateOut(BaseModel):
    id: str
    phase: SubmissionPhase
    draft: ReservationDraft
    errors: dict[str, str]
    available_times: list[str]
    no_time_slots: bool
    submit_enabled: bool
    success: SuccessPanel | None = None
    error_message: str | None = None
    reservation_id: str | None = None

    @classmethod
    def from_controller(cls, modal_id: str, controller: ReservationFormController) -> "ModalStateOut":
        return cls(
            id=modal_id,
            phase=controller.phase,
            draft=controller.draft.model_copy(),
            errors=dict(controller.errors),
            available_times=list(controller.available_times),
            no_time_slots=not controller.time_picker.has_options,
            submit_enabled=controller.submit_enabled,
            success=controller.success,
            error_message=controller.error_message if controller.show_error else None,
            reservation_id=controller.reservation_id,
        )


class AvailabilityOut(BaseModel):
    date: str
    times: list[str]


class ShiftCheckOut(BaseModel):
    date: str
    time: str
    seats: int
    available: bool
    advisory: bool = True


class LiveOccupancyOut(BaseModel):
    date: str
    watching: bool
    updates: int
    seats_by_time: dict[str, int]
