import logging
from collections import Counter
from functools import partial

from pizzeria.app.services.api_gateway import ApiGatewayClient, Subscription
from pizzeria.app.services.schemas import Reservation


logger = logging.getLogger(__name__)


class ReservationFeed:
    """Latest pushed reservation list per watched date.

    Each update replaces the whole list for its date. At most ``max_dates``
    streams stay open; watching another date releases the least recently
    watched one.
    """

    def __init__(self, gateway: ApiGatewayClient, max_dates: int = 8) -> None:
        self._gateway = gateway
        self.max_dates = max(1, max_dates)
        self._subscriptions: dict[str, Subscription] = {}
        self._latest: dict[str, list[Reservation]] = {}
        self._updates: Counter[str] = Counter()

    def watch(self, date: str) -> None:
        subscription = self._subscriptions.get(date)
        if subscription is not None and not subscription.closed:
            self._subscriptions[date] = self._subscriptions.pop(date)
            return
        self._subscriptions.pop(date, None)
        while len(self._subscriptions) >= self.max_dates:
            oldest = next(iter(self._subscriptions))
            logger.info("Releasing live reservations for %s", oldest)
            self.unwatch(oldest)
        logger.info("Subscribing to live reservations for %s", date)
        self._subscriptions[date] = self._gateway.subscribe_to_reservations(date, partial(self._replace, date))

    def _replace(self, date: str, reservations: list[Reservation]) -> None:
        self._latest[date] = list(reservations)
        self._updates[date] += 1

    def is_watching(self, date: str) -> bool:
        subscription = self._subscriptions.get(date)
        return subscription is not None and not subscription.closed

    def latest(self, date: str) -> list[Reservation] | None:
        return self._latest.get(date)

    @property
    def watched_dates(self) -> list[str]:
        return list(self._subscriptions)

    def update_count(self, date: str) -> int:
        return self._updates[date]

    def seats_by_time(self, date: str) -> dict[str, int]:
        seats: Counter[str] = Counter()
        for reservation in self._latest.get(date) or []:
            if reservation.status != "rejected":
                seats[reservation.time] += reservation.seats
        return dict(sorted(seats.items()))

    def unwatch(self, date: str) -> None:
        subscription = self._subscriptions.pop(date, None)
        if subscription is not None:
            subscription.cancel()
        self._latest.pop(date, None)
        self._updates.pop(date, None)

    async def close(self) -> None:
        subscriptions = list(self._subscriptions.values())
        self._subscriptions.clear()
        for subscription in subscriptions:
            subscription.cancel()
            await subscription.wait_closed()
