import asyncio

import pytest

from pizzeria.app.services.api_gateway import ApiError
from pizzeria.app.services.reservation_form import (
    GENERIC_ERROR_MESSAGE,
    ReservationDraft,
    ReservationFormController,
    SubmissionPhase,
    is_valid_email,
    validate_draft,
)
from pizzeria.app.widgets.events import PointerEvents


pytestmark = pytest.mark.asyncio

DAY = "2030-01-20"
OTHER_DAY = "2030-01-21"


async def _filled(gateway, clock) -> ReservationFormController:
    gateway.add_shifts(DAY, "19:00", "19:30", "21:00", disabled=("21:00",))
    controller = ReservationFormController(gateway, clock=clock)
    controller.set_first_name("Mario")
    controller.set_last_name("Rossi")
    controller.set_phone("333 123-4567")
    controller.set_email("mario@example.com")
    await controller.set_date(DAY)
    controller.set_time("19:30")
    controller.set_seats(4)
    return controller


async def test_missing_fields_block_submission(gateway, clock):
    controller = ReservationFormController(gateway, clock=clock)

    phase = await controller.submit()

    assert phase == SubmissionPhase.IDLE
    assert set(controller.errors) == {"first_name", "last_name", "phone", "email", "date", "time"}
    assert gateway.created == []


async def test_blank_names_are_rejected_after_trimming(gateway, clock):
    controller = await _filled(gateway, clock)
    controller.set_first_name("   ")

    await controller.submit()

    assert list(controller.errors) == ["first_name"]
    assert gateway.created == []


async def test_complete_draft_is_valid(gateway, clock):
    controller = await _filled(gateway, clock)

    assert controller.validate() == {}


@pytest.mark.parametrize(
    ("email", "valid"),
    [("a@b.com", True), ("a@b", False), ("abc", False), (" a@b.com ", True), ("a b@c.com", False)],
)
async def test_email_format(email, valid):
    assert is_valid_email(email) is valid
    errors = validate_draft(ReservationDraft(email=email))
    assert ("email" in errors) is not valid


async def test_editing_a_field_clears_only_its_error(gateway, clock):
    controller = ReservationFormController(gateway, clock=clock)
    controller.validate()

    controller.set_email("mario@example.com")

    assert "email" not in controller.errors
    assert set(controller.errors) == {"first_name", "last_name", "phone", "date", "time"}


async def test_edited_field_is_not_revalidated_until_submit(gateway, clock):
    controller = ReservationFormController(gateway, clock=clock)
    controller.validate()

    controller.set_email("not-an-email")

    assert "email" not in controller.errors
    await controller.submit()
    assert controller.errors["email"] == "Please enter a valid email address"


async def test_date_change_clears_time_missing_from_new_slots(gateway, clock):
    controller = await _filled(gateway, clock)
    gateway.add_shifts(OTHER_DAY, "20:00", "20:30")

    await controller.set_date(OTHER_DAY)

    assert controller.available_times == ["20:00", "20:30"]
    assert controller.draft.time == ""
    assert controller.time_picker.value == ""


async def test_date_change_keeps_time_present_in_new_slots(gateway, clock):
    controller = await _filled(gateway, clock)
    gateway.add_shifts(OTHER_DAY, "19:30", "20:00")

    await controller.set_date(OTHER_DAY)

    assert controller.draft.time == "19:30"


async def test_only_enabled_shifts_are_offered(gateway, clock):
    controller = await _filled(gateway, clock)

    assert controller.available_times == ["19:00", "19:30"]
    with pytest.raises(ValueError):
        controller.set_time("21:00")


async def test_empty_date_makes_no_request(gateway, clock):
    controller = ReservationFormController(gateway, clock=clock)

    await controller.set_date("")

    assert controller.available_times == []
    assert gateway.shift_calls == []
    assert not controller.time_picker.has_options


async def test_availability_failure_yields_no_slots_and_no_field_error(gateway, clock):
    controller = ReservationFormController(gateway, clock=clock)
    gateway.failing_dates.add(DAY)

    await controller.set_date(DAY)

    assert controller.available_times == []
    assert "date" not in controller.errors
    assert "time" not in controller.errors


async def test_past_dates_are_refused(gateway, clock):
    controller = ReservationFormController(gateway, clock=clock)

    with pytest.raises(ValueError):
        await controller.set_date("2030-01-14")
    assert controller.draft.date == ""


async def test_stale_availability_response_is_dropped(gateway, clock):
    gateway.add_shifts(DAY, "19:00")
    gateway.add_shifts(OTHER_DAY, "20:00")
    gate = asyncio.Event()
    gateway.gates[DAY] = gate
    controller = ReservationFormController(gateway, clock=clock)

    first = asyncio.create_task(controller.set_date(DAY))
    await asyncio.sleep(0)
    await controller.set_date(OTHER_DAY)
    gate.set()
    await first

    assert controller.draft.date == OTHER_DAY
    assert controller.available_times == ["20:00"]


async def test_successful_submission(gateway, clock):
    controller = await _filled(gateway, clock)
    phases = []
    gateway.on_create = lambda: phases.append((controller.phase, controller.submit_enabled))

    phase = await controller.submit()

    assert phase == SubmissionPhase.SUCCESS
    assert phases == [(SubmissionPhase.SUBMITTING, False)]
    sent = gateway.created[0]
    assert sent.full_name == "Mario Rossi"
    assert sent.status == "pending"
    assert sent.phone == "333 123-4567"
    assert sent.special_requests is None
    assert controller.success.model_dump() == {"name": "Mario Rossi", "date": DAY, "time": "19:30", "seats": 4}
    assert controller.reservation_id == "res-1"
    assert not controller.submit_enabled


async def test_success_acknowledgement_closes_modal(gateway, clock):
    events = PointerEvents()
    controller = await _filled(gateway, clock)
    for widget in controller.widgets:
        widget.mount(events)
    assert controller.acknowledge_success() is False

    await controller.submit()

    assert controller.acknowledge_success() is True
    assert controller.closed
    assert events.listener_count == 0


async def test_failed_submission_shows_server_message(gateway, clock):
    controller = await _filled(gateway, clock)
    gateway.create_error = ApiError("Shift is fully booked", status_code=409)

    phase = await controller.submit()

    assert phase == SubmissionPhase.FAILED
    assert controller.show_error
    assert controller.error_message == "Shift is fully booked"
    assert controller.submit_enabled
    assert controller.success is None


async def test_failed_submission_falls_back_to_generic_message(gateway, clock):
    controller = await _filled(gateway, clock)
    gateway.create_error = ApiError("")

    await controller.submit()

    assert controller.error_message == GENERIC_ERROR_MESSAGE


async def test_retry_after_failure(gateway, clock):
    controller = await _filled(gateway, clock)
    gateway.create_error = RuntimeError("connection reset")
    await controller.submit()

    controller.dismiss_error()
    assert controller.phase == SubmissionPhase.IDLE
    assert controller.error_message is None

    gateway.create_error = None
    assert await controller.submit() == SubmissionPhase.SUCCESS
    assert len(gateway.created) == 1


async def test_submit_is_ignored_while_submitting(gateway, clock):
    controller = await _filled(gateway, clock)
    controller.phase = SubmissionPhase.SUBMITTING

    assert await controller.submit() == SubmissionPhase.SUBMITTING
    assert gateway.created == []


async def test_apply_sets_date_before_time(gateway, clock):
    gateway.add_shifts(DAY, "19:00", "20:00")
    controller = ReservationFormController(gateway, clock=clock)

    await controller.apply({"time": "20:00", "date": DAY, "seats": 25, "phone": "+39 12-3a4"})

    assert controller.draft.date == DAY
    assert controller.draft.time == "20:00"
    assert controller.draft.seats == 10
    assert controller.draft.phone == "39 12-34"


async def test_apply_rejects_unknown_fields(gateway, clock):
    controller = ReservationFormController(gateway, clock=clock)

    with pytest.raises(ValueError):
        await controller.apply({"status": "accepted"})
