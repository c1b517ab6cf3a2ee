import logging
from datetime import date, timedelta

from pydantic import BaseModel

from pizzeria.app.services.api_gateway import ApiError, ApiGatewayClient


logger = logging.getLogger(__name__)


class ShiftInitializationStatus(BaseModel):
    initialized: bool = False
    initializing: bool = False
    initialization_error: str | None = None


async def ensure_shifts_initialized(
    gateway: ApiGatewayClient,
    *,
    days: int = 30,
    today: date | None = None,
) -> tuple[int, int]:
    """Make sure shifts exist for the next ``days`` dates; return (created, skipped)."""
    start = today or date.today()
    created = 0
    skipped = 0
    logger.info("Checking shifts for the next %d days", days)

    for offset in range(days):
        day = (start + timedelta(days=offset)).isoformat()
        try:
            existing = await gateway.get_shifts(day)
        except ApiError as exc:
            logger.error("Could not check shifts for %s, initializing anyway: %s", day, exc)
            await gateway.initialize_shifts(day)
            created += 1
            continue

        if existing:
            skipped += 1
        else:
            await gateway.initialize_shifts(day)
            created += 1

    logger.info("Shift initialization done: %d dates initialized, %d already present", created, skipped)
    return created, skipped


async def run_shift_initialization(
    gateway: ApiGatewayClient,
    status: ShiftInitializationStatus,
    *,
    days: int = 30,
) -> None:
    status.initializing = True
    status.initialization_error = None
    try:
        await ensure_shifts_initialized(gateway, days=days)
        status.initialized = True
    except ApiError as exc:
        logger.error("Shift initialization failed: %s", exc)
        status.initialization_error = "An error occurred while initializing shifts"
    finally:
        status.initializing = False
