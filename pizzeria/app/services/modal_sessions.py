import logging
import time
from collections.abc import Callable
from uuid import uuid4

from pizzeria.app.services.api_gateway import ApiGatewayClient
from pizzeria.app.services.reservation_form import ReservationFormController
from pizzeria.app.widgets.events import PointerEvents


logger = logging.getLogger(__name__)


class ModalSessions:
    """Open reservation modals, one form controller each. Nothing is persisted.

    A modal untouched for ``idle_seconds`` is closed the next time the
    registry is used, and opening beyond ``max_sessions`` closes the least
    recently touched one.
    """

    def __init__(
        self,
        gateway: ApiGatewayClient,
        *,
        idle_seconds: float = 1800.0,
        max_sessions: int = 500,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._gateway = gateway
        self._modals: dict[str, ReservationFormController] = {}
        self._touched: dict[str, float] = {}
        self.idle_seconds = idle_seconds
        self.max_sessions = max(1, max_sessions)
        self._clock = clock
        self.events = PointerEvents()

    def __len__(self) -> int:
        return len(self._modals)

    def _touch(self, modal_id: str) -> None:
        self._touched.pop(modal_id, None)
        self._touched[modal_id] = self._clock()

    def expire_idle(self) -> int:
        cutoff = self._clock() - self.idle_seconds
        idle = [modal_id for modal_id, touched in self._touched.items() if touched <= cutoff]
        for modal_id in idle:
            logger.info("Expiring idle reservation modal %s", modal_id)
            self.close(modal_id)
        return len(idle)

    def open(self) -> tuple[str, ReservationFormController]:
        self.expire_idle()
        while len(self._modals) >= self.max_sessions:
            oldest = next(iter(self._touched))
            logger.warning("Too many open reservation modals, closing %s", oldest)
            self.close(oldest)
        modal_id = str(uuid4())
        controller = ReservationFormController(self._gateway, events=self.events)
        self._modals[modal_id] = controller
        self._touch(modal_id)
        logger.debug("Opened reservation modal %s", modal_id)
        return modal_id, controller

    def get(self, modal_id: str) -> ReservationFormController | None:
        self.expire_idle()
        controller = self._modals.get(modal_id)
        if controller is not None:
            self._touch(modal_id)
        return controller

    def close(self, modal_id: str) -> bool:
        controller = self._modals.pop(modal_id, None)
        self._touched.pop(modal_id, None)
        if controller is None:
            return False
        controller.close()
        logger.debug("Closed reservation modal %s", modal_id)
        return True

    def close_all(self) -> None:
        for modal_id in list(self._modals):
            self.close(modal_id)
