from fastapi import APIRouter, Depends

from pizzeria.app.core.dependencies import get_monitor, get_shift_status
from pizzeria.app.services.connectivity import (
    CompactStatusView,
    ConnectivityMonitor,
    DetailedStatusView,
)
from pizzeria.app.services.shift_initializer import ShiftInitializationStatus


router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, bool]:
    """Basic liveness probe."""
    return {"ok": True}


@router.get("/status", response_model=CompactStatusView | DetailedStatusView)
async def server_status(
    details: bool = False,
    monitor: ConnectivityMonitor = Depends(get_monitor),
) -> CompactStatusView | DetailedStatusView:
    """Connection state of the reservations service as last probed."""
    return monitor.detailed() if details else monitor.compact()


@router.post("/status/recheck", response_model=DetailedStatusView)
async def recheck_status(monitor: ConnectivityMonitor = Depends(get_monitor)) -> DetailedStatusView:
    await monitor.check_now()
    return monitor.detailed()


@router.get("/shifts/status", response_model=ShiftInitializationStatus)
async def shift_initialization_status(
    shift_status: ShiftInitializationStatus = Depends(get_shift_status),
) -> ShiftInitializationStatus:
    return shift_status
