import datetime as dt
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.security import Identity
from backend.app.db.models import BookingStatus
from backend.app.db.session import get_session
from backend.app.routers.deps import get_identity, pages, require
from backend.app.routers.schemas import (
    BookingCreateIn,
    BookingListOut,
    BookingOut,
    BookingStatusIn,
    BookingUpdateIn,
    Pagination,
)
from backend.app.services import bookings as bookings_service
from backend.app.services.permissions import Capability


router = APIRouter(prefix="/bookings", tags=["bookings"])


def _page(bookings, total: int, page: int, limit: int) -> BookingListOut:
    return BookingListOut(
        bookings=[BookingOut.model_validate(b) for b in bookings],
        pagination=Pagination(page=page, limit=limit, total=total, pages=pages(total, limit)),
    )


@router.post("", response_model=BookingOut, status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: BookingCreateIn,
    identity: Identity = Depends(require(Capability.BOOK_TABLES)),
    session: AsyncSession = Depends(get_session),
) -> BookingOut:
    booking = await bookings_service.create_booking(
        session,
        identity,
        restaurant_id=payload.restaurant_id,
        on=payload.date,
        time=payload.time,
        party_size=payload.party_size,
        special_requests=payload.special_requests,
    )
    return BookingOut.model_validate(booking)


@router.get("/my-bookings", response_model=BookingListOut)
async def my_bookings(
    status_filter: BookingStatus | None = Query(default=None, alias="status"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
) -> BookingListOut:
    bookings, total = await bookings_service.list_user_bookings(
        session, identity, status=status_filter, page=page, limit=limit
    )
    return _page(bookings, total, page, limit)


@router.get("/restaurant/{restaurant_id}", response_model=BookingListOut)
async def restaurant_bookings(
    restaurant_id: UUID,
    status_filter: BookingStatus | None = Query(default=None, alias="status"),
    date: dt.date | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    identity: Identity = Depends(require(Capability.MANAGE_RESTAURANTS)),
    session: AsyncSession = Depends(get_session),
) -> BookingListOut:
    bookings, total = await bookings_service.list_restaurant_bookings(
        session,
        identity,
        restaurant_id,
        status=status_filter,
        on=date,
        page=page,
        limit=limit,
    )
    return _page(bookings, total, page, limit)


@router.get("/{booking_id}", response_model=BookingOut)
async def get_booking(
    booking_id: UUID,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
) -> BookingOut:
    booking = await bookings_service.get_booking(session, identity, booking_id)
    return BookingOut.model_validate(booking)


@router.put("/{booking_id}", response_model=BookingOut)
async def update_booking(
    booking_id: UUID,
    payload: BookingUpdateIn,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
) -> BookingOut:
    changes = {
        field: value
        for field, value in payload.model_dump(exclude_unset=True).items()
        if value is not None or field == "special_requests"
    }
    booking = await bookings_service.update_booking(session, identity, booking_id, changes)
    return BookingOut.model_validate(booking)


@router.patch("/{booking_id}/status", response_model=BookingOut)
async def update_booking_status(
    booking_id: UUID,
    payload: BookingStatusIn,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
) -> BookingOut:
    booking = await bookings_service.change_status(session, identity, booking_id, payload.status)
    return BookingOut.model_validate(booking)


@router.post("/{booking_id}/cancel", response_model=BookingOut)
async def cancel_booking(
    booking_id: UUID,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
) -> BookingOut:
    booking = await bookings_service.cancel_booking(session, identity, booking_id)
    return BookingOut.model_validate(booking)
