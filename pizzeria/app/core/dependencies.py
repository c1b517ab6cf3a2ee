from fastapi import HTTPException, Request, status

from pizzeria.app.core.config import Environment
from pizzeria.app.services.api_gateway import ApiGatewayClient
from pizzeria.app.services.connectivity import ConnectivityMonitor
from pizzeria.app.services.live_feed import ReservationFeed
from pizzeria.app.services.modal_sessions import ModalSessions
from pizzeria.app.services.shift_initializer import ShiftInitializationStatus


def _state(request: Request, name: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, detail=f"{name} not initialised")
    return value


def get_environment(request: Request) -> Environment:
    return _state(request, "environment")


def get_gateway(request: Request) -> ApiGatewayClient:
    return _state(request, "gateway")


def get_modals(request: Request) -> ModalSessions:
    return _state(request, "modals")


def get_monitor(request: Request) -> ConnectivityMonitor:
    return _state(request, "monitor")


def get_feed(request: Request) -> ReservationFeed:
    return _state(request, "feed")


def get_shift_status(request: Request) -> ShiftInitializationStatus:
    return _state(request, "shift_status")
