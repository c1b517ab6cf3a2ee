import asyncio
import json

import httpx
import pytest

from pizzeria.app.services.api_gateway import ApiGatewayClient
from pizzeria.app.services.live_feed import ReservationFeed


pytestmark = pytest.mark.asyncio


def _event(*bookings) -> str:
    data = [
        {
            "fullName": "Guest",
            "phone": "333",
            "email": "guest@example.com",
            "date": "2030-01-20",
            "time": time,
            "seats": seats,
            "status": status,
        }
        for time, seats, status in bookings
    ]
    return "data: " + json.dumps({"type": "reservations", "data": data}) + "\n\n"


async def test_latest_push_replaces_previous_list():
    stream = _event(("19:00", 2, "pending"), ("19:00", 4, "accepted")) + _event(
        ("19:30", 3, "accepted"), ("19:30", 5, "rejected")
    )

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, headers={"content-type": "text/event-stream"}, text=stream)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        feed = ReservationFeed(ApiGatewayClient(client, "https://reservations.test/api"))
        feed.watch("2030-01-20")
        for _ in range(20):
            if feed.update_count("2030-01-20") == 2:
                break
            await asyncio.sleep(0.01)
        await feed.close()

    assert feed.update_count("2030-01-20") == 2
    assert [reservation.time for reservation in feed.latest("2030-01-20")] == ["19:30", "19:30"]
    assert feed.seats_by_time("2030-01-20") == {"19:30": 3}


async def test_unwatch_cancels_subscription():
    async def endless():
        while True:
            yield _event(("20:00", 2, "pending")).encode()
            await asyncio.sleep(0.01)

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, headers={"content-type": "text/event-stream"}, content=endless())

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        feed = ReservationFeed(ApiGatewayClient(client, "https://reservations.test/api"))
        feed.watch("2030-01-20")
        feed.watch("2030-01-20")
        await asyncio.sleep(0.03)
        assert feed.is_watching("2030-01-20")

        feed.unwatch("2030-01-20")
        await asyncio.sleep(0.02)

        assert not feed.is_watching("2030-01-20")
        assert feed.latest("2030-01-20") is None
        await feed.close()


async def test_open_subscriptions_stay_bounded():
    opened = []

    async def endless():
        while True:
            yield b": keep-alive\n\n"
            await asyncio.sleep(0.01)

    def handler(request: httpx.Request) -> httpx.Response:
        opened.append(request.url.path.rsplit("/", 1)[-1])
        return httpx.Response(200, headers={"content-type": "text/event-stream"}, content=endless())

    days = [f"2030-01-{day:02d}" for day in range(10, 30)]
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        feed = ReservationFeed(ApiGatewayClient(client, "https://reservations.test/api"), max_dates=3)
        for day in days:
            feed.watch(day)
        feed.watch("2030-01-27")
        await asyncio.sleep(0.03)

        assert feed.watched_dates == ["2030-01-28", "2030-01-29", "2030-01-27"]
        assert sum(feed.is_watching(day) for day in days) == 3
        assert not feed.is_watching("2030-01-10")
        await feed.close()

    assert len(opened) == 3
