import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from pizzeria.app.core.config import resolve_environment, settings
from pizzeria.app.core.http_client import build_gateway, build_http_client
from pizzeria.app.services.connectivity import ConnectivityMonitor
from pizzeria.app.services.live_feed import ReservationFeed
from pizzeria.app.services.modal_sessions import ModalSessions
from pizzeria.app.services.shift_initializer import ShiftInitializationStatus, run_shift_initialization
import pizzeria.app.routers.availability as availability
import pizzeria.app.routers.health as health
import pizzeria.app.routers.reservations as reservations


logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    environment = resolve_environment(settings.APP_ENV, settings.API_URL)
    http_client = build_http_client(settings)
    gateway = build_gateway(http_client, environment)

    app.state.environment = environment
    app.state.gateway = gateway
    app.state.modals = ModalSessions(
        gateway,
        idle_seconds=settings.MODAL_IDLE_SECONDS,
        max_sessions=settings.MODAL_MAX_SESSIONS,
    )
    app.state.feed = ReservationFeed(gateway, max_dates=settings.LIVE_FEED_MAX_DATES)
    app.state.monitor = ConnectivityMonitor(gateway.health_check, interval=settings.HEALTH_POLL_SECONDS)
    app.state.shift_status = ShiftInitializationStatus()

    app.state.monitor.start()
    init_task = None
    if settings.INITIALIZE_SHIFTS_ON_STARTUP:
        init_task = asyncio.create_task(
            run_shift_initialization(gateway, app.state.shift_status, days=settings.SHIFT_INITIALIZATION_DAYS)
        )
    logger.info("Reservation widget started against %s", environment.api_url)
    try:
        yield
    finally:
        if init_task is not None and not init_task.done():
            init_task.cancel()
        app.state.modals.close_all()
        await app.state.feed.close()
        await app.state.monitor.stop()
        await http_client.aclose()


app = FastAPI(
    title="Pizzeria Reservation Widget",
    lifespan=lifespan,
)

app.include_router(health.router, prefix=settings.API_PREFIX)
app.include_router(availability.router, prefix=settings.API_PREFIX)
app.include_router(reservations.router, prefix=settings.API_PREFIX)
