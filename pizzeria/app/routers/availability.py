from datetime import date as date_type

from fastapi import APIRouter, Depends, HTTPException, Query, status

from pizzeria.app.core.config import Environment
from pizzeria.app.core.dependencies import get_environment, get_feed, get_gateway
from pizzeria.app.routers.schemas import AvailabilityOut, LiveOccupancyOut, ShiftCheckOut
from pizzeria.app.services.api_gateway import ApiGatewayClient
from pizzeria.app.services.availability import AvailabilityResolver, check_shift_availability
from pizzeria.app.services.live_feed import ReservationFeed


router = APIRouter()


def _check_date(value: str) -> str:
    try:
        return date_type.fromisoformat(value).isoformat()
    except ValueError as exc:
        raise HTTPException(status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Invalid date, expected YYYY-MM-DD") from exc


@router.get("/availability/{date}", response_model=AvailabilityOut)
async def list_available_times(
    date: str,
    gateway: ApiGatewayClient = Depends(get_gateway),
) -> AvailabilityOut:
    day = _check_date(date)
    times = await AvailabilityResolver(gateway).resolve(day)
    return AvailabilityOut(date=day, times=times)


@router.get("/availability/{date}/{time}", response_model=ShiftCheckOut)
async def check_slot(
    date: str,
    time: str,
    seats: int = Query(default=1, ge=1, le=50),
    gateway: ApiGatewayClient = Depends(get_gateway),
) -> ShiftCheckOut:
    """Advisory capacity pre-check; the reservations service decides on submit."""
    day = _check_date(date)
    available = await check_shift_availability(gateway, day, time, seats)
    return ShiftCheckOut(date=day, time=time, seats=seats, available=available)


@router.get("/occupancy/{date}", response_model=LiveOccupancyOut)
async def live_occupancy(
    date: str,
    environment: Environment = Depends(get_environment),
    feed: ReservationFeed = Depends(get_feed),
) -> LiveOccupancyOut:
    if not environment.features.real_time_updates:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Real-time updates are disabled")
    day = _check_date(date)
    if date_type.fromisoformat(day) < date_type.today():
        raise HTTPException(status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Live updates start from today")
    feed.watch(day)
    return LiveOccupancyOut(
        date=day,
        watching=feed.is_watching(day),
        updates=feed.update_count(day),
        seats_by_time=feed.seats_by_time(day),
    )
