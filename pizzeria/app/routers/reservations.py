from fastapi import APIRouter, Depends, HTTPException, Response, status

from pizzeria.app.core.dependencies import get_modals
from pizzeria.app.routers.schemas import ModalStateOut, ModalUpdateIn
from pizzeria.app.services.modal_sessions import ModalSessions
from pizzeria.app.services.reservation_form import ReservationFormController


router = APIRouter(prefix="/reservations/modal")


def _controller(modal_id: str, modals: ModalSessions) -> ReservationFormController:
    controller = modals.get(modal_id)
    if controller is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Reservation modal not found")
    return controller


@router.post("", response_model=ModalStateOut, status_code=status.HTTP_201_CREATED)
async def open_modal(modals: ModalSessions = Depends(get_modals)) -> ModalStateOut:
    modal_id, controller = modals.open()
    return ModalStateOut.from_controller(modal_id, controller)


@router.get("/{modal_id}", response_model=ModalStateOut)
async def get_modal(modal_id: str, modals: ModalSessions = Depends(get_modals)) -> ModalStateOut:
    return ModalStateOut.from_controller(modal_id, _controller(modal_id, modals))


@router.patch("/{modal_id}", response_model=ModalStateOut)
async def update_modal(
    modal_id: str,
    payload: ModalUpdateIn,
    modals: ModalSessions = Depends(get_modals),
) -> ModalStateOut:
    """Apply field edits; each edited field loses its validation error."""
    controller = _controller(modal_id, modals)
    updates = payload.model_dump(exclude_unset=True, exclude_none=True)
    try:
        await controller.apply(updates)
    except ValueError as exc:
        raise HTTPException(status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    return ModalStateOut.from_controller(modal_id, controller)


@router.post("/{modal_id}/submit", response_model=ModalStateOut)
async def submit_modal(modal_id: str, modals: ModalSessions = Depends(get_modals)) -> ModalStateOut:
    controller = _controller(modal_id, modals)
    await controller.submit()
    return ModalStateOut.from_controller(modal_id, controller)


@router.post("/{modal_id}/dismiss-error", response_model=ModalStateOut)
async def dismiss_error(modal_id: str, modals: ModalSessions = Depends(get_modals)) -> ModalStateOut:
    controller = _controller(modal_id, modals)
    controller.dismiss_error()
    return ModalStateOut.from_controller(modal_id, controller)


@router.post("/{modal_id}/acknowledge", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def acknowledge(modal_id: str, modals: ModalSessions = Depends(get_modals)) -> Response:
    controller = _controller(modal_id, modals)
    if not controller.acknowledge_success():
        raise HTTPException(status.HTTP_409_CONFLICT, detail="Reservation has not been submitted")
    modals.close(modal_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{modal_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def cancel_modal(modal_id: str, modals: ModalSessions = Depends(get_modals)) -> Response:
    if not modals.close(modal_id):
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Reservation modal not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
