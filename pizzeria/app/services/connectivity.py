import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from enum import Enum

from pydantic import BaseModel


logger = logging.getLogger(__name__)

DEFAULT_POLL_SECONDS = 30.0


class ConnectivityStatus(str, Enum):
    UNKNOWN = "unknown"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


STATUS_ICONS = {
    ConnectivityStatus.UNKNOWN: "❓",
    ConnectivityStatus.CONNECTED: "✅",
    ConnectivityStatus.DISCONNECTED: "❌",
}
STATUS_TEXT = {
    ConnectivityStatus.UNKNOWN: "Unknown",
    ConnectivityStatus.CONNECTED: "Connected",
    ConnectivityStatus.DISCONNECTED: "Disconnected",
}
CHECKING_ICON = "🔄"
CHECKING_TEXT = "Checking..."


class CompactStatusView(BaseModel):
    status: ConnectivityStatus
    icon: str
    tooltip: str


class DetailedStatusView(BaseModel):
    status: ConnectivityStatus
    icon: str
    text: str
    last_checked: str | None = None
    can_recheck: bool


class ConnectivityMonitor:
    """Polls a liveness probe and keeps a tri-state connection status.

    One failed probe is enough to report ``disconnected``.
    """

    def __init__(
        self,
        probe: Callable[[], Awaitable[bool]],
        interval: float = DEFAULT_POLL_SECONDS,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._probe = probe
        self.interval = interval
        self._clock = clock
        self.status = ConnectivityStatus.UNKNOWN
        self.is_checking = False
        self.last_checked: datetime | None = None
        self.probe_count = 0
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def check_now(self) -> ConnectivityStatus:
        self.is_checking = True
        try:
            connected = await self._probe()
        except Exception as exc:
            logger.error("Connection check failed: %s", exc)
            connected = False
        finally:
            self.is_checking = False
        self.probe_count += 1
        self.last_checked = self._clock()
        self.status = ConnectivityStatus.CONNECTED if connected else ConnectivityStatus.DISCONNECTED
        return self.status

    async def _run(self) -> None:
        while True:
            await self.check_now()
            await asyncio.sleep(self.interval)

    def start(self) -> None:
        if not self.running:
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    def _icon_and_text(self) -> tuple[str, str]:
        if self.is_checking:
            return CHECKING_ICON, CHECKING_TEXT
        return STATUS_ICONS[self.status], STATUS_TEXT[self.status]

    def _last_checked_text(self) -> str | None:
        return self.last_checked.strftime("%H:%M:%S") if self.last_checked else None

    def compact(self) -> CompactStatusView:
        icon, text = self._icon_and_text()
        tooltip = f"Server: {text}"
        last_checked = self._last_checked_text()
        if last_checked:
            tooltip = f"{tooltip} ({last_checked})"
        return CompactStatusView(status=self.status, icon=icon, tooltip=tooltip)

    def detailed(self) -> DetailedStatusView:
        icon, text = self._icon_and_text()
        return DetailedStatusView(
            status=self.status,
            icon=icon,
            text=f"Server: {text}",
            last_checked=self._last_checked_text(),
            can_recheck=not self.is_checking,
        )
