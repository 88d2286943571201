import datetime as dt
import logging
from contextlib import nullcontext
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from backend.app.core.config import settings
from backend.app.core.errors import CapacityConflict, NotFound
from backend.app.core.security import Identity
from backend.app.db.models import Booking, BookingStatus, Restaurant
from backend.app.services import booking_rules
from backend.app.services.availability import (
    BookedParty,
    CapacityLimits,
    ConflictPolicy,
    SlotWindow,
    has_room,
    usage_at,
)
from backend.app.services.pagination import paginate
from backend.app.services.permissions import ensure_manages
from backend.app.services.slot_guard import hold_slot, slot_key


logger = logging.getLogger(__name__)

RESCHEDULING_FIELDS = frozenset({"date", "time", "party_size"})


def conflict_policy() -> ConflictPolicy:
    return ConflictPolicy(settings.CONFLICT_POLICY)


def opening_window(restaurant: Restaurant) -> SlotWindow:
    return SlotWindow(
        opening=restaurant.opening_time,
        closing=restaurant.closing_time,
        interval_minutes=settings.SLOT_INTERVAL_MINUTES,
    )


async def booked_parties(
    session: AsyncSession,
    restaurant_id: UUID,
    on: dt.date,
    *,
    time: str | None = None,
    exclude_id: UUID | None = None,
) -> list[BookedParty]:
    """Non-cancelled bookings for a restaurant's day, optionally at one time only."""
    stmt = select(Booking.time, Booking.party_size).where(
        Booking.restaurant_id == restaurant_id,
        Booking.date == on,
        Booking.status != BookingStatus.CANCELLED,
    )
    if time is not None:
        stmt = stmt.where(Booking.time == time)
    if exclude_id is not None:
        stmt = stmt.where(Booking.id != exclude_id)

    rows = await session.execute(stmt)
    return [BookedParty(time=row.time, party_size=row.party_size) for row in rows]


async def _ensure_room(
    session: AsyncSession,
    restaurant: Restaurant,
    on: dt.date,
    time: str,
    party_size: int,
    *,
    exclude_id: UUID | None = None,
) -> None:
    policy = conflict_policy()
    booked = await booked_parties(
        session,
        restaurant.id,
        on,
        time=time if policy is ConflictPolicy.EXACT else None,
        exclude_id=exclude_id,
    )
    usage = usage_at(time, booked, policy=policy, duration_minutes=settings.SERVICE_DURATION_MINUTES)
    limits = CapacityLimits(total_tables=restaurant.total_tables, capacity=restaurant.capacity)
    if not has_room(limits, usage, party_size):
        logger.info(
            f"Rejected party of {party_size} at {restaurant.id} {on} {time}: "
            f"{usage.parties}/{limits.total_tables} tables, {usage.covers}/{limits.capacity} seats"
        )
        raise CapacityConflict()


async def _load(
    session: AsyncSession,
    booking_id: UUID,
    *,
    for_update: bool = False,
) -> tuple[Booking, Restaurant]:
    """Fetch a booking together with its restaurant and guest."""
    stmt = (
        select(Booking)
        .where(Booking.id == booking_id)
        .options(selectinload(Booking.restaurant), selectinload(Booking.user))
        .execution_options(populate_existing=True)
    )
    if for_update:
        stmt = stmt.with_for_update()
    booking = await session.scalar(stmt)
    if booking is None:
        raise NotFound("Booking not found")
    return booking, booking.restaurant


def _actor(identity: Identity, booking: Booking, restaurant: Restaurant) -> booking_rules.Actor:
    return booking_rules.classify_actor(
        identity,
        booking_user_id=booking.user_id,
        restaurant_owner_id=restaurant.owner_id,
    )


def _target_slot(booking: Booking, changes: dict) -> tuple[dt.date, str, int]:
    return (
        changes.get("date", booking.date),
        changes.get("time", booking.time),
        changes.get("party_size", booking.party_size),
    )


def _hold_key(booking: Booking, changes: dict) -> str | None:
    """Hold key for the slot an edit moves into, or None when nothing is rescheduled."""
    if not changes.keys() & RESCHEDULING_FIELDS:
        return None
    on, time, _ = _target_slot(booking, changes)
    return slot_key(booking.restaurant_id, on, time, conflict_policy())


async def create_booking(
    session: AsyncSession,
    identity: Identity,
    *,
    restaurant_id: UUID,
    on: dt.date,
    time: str,
    party_size: int,
    special_requests: str | None,
) -> Booking:
    """Accept a booking if the slot still has a free table and enough seats."""
    async with hold_slot(slot_key(restaurant_id, on, time, conflict_policy())):
        async with session.begin():
            restaurant = await session.get(Restaurant, restaurant_id, with_for_update=True)
            if restaurant is None:
                raise NotFound("Restaurant not found")

            await _ensure_room(session, restaurant, on, time, party_size)

            booking = Booking(
                user_id=identity.user_id,
                restaurant_id=restaurant_id,
                date=on,
                time=time,
                party_size=party_size,
                special_requests=special_requests,
                status=BookingStatus.PENDING,
            )
            session.add(booking)

    logger.info(f"Booking {booking.id} created: party of {party_size} at {restaurant_id} {on} {time}")
    booking, _ = await _load(session, booking.id)
    return booking


async def get_booking(session: AsyncSession, identity: Identity, booking_id: UUID) -> Booking:
    booking, restaurant = await _load(session, booking_id)
    booking_rules.authorize_view(_actor(identity, booking, restaurant))
    return booking


async def update_booking(
    session: AsyncSession,
    identity: Identity,
    booking_id: UUID,
    changes: dict,
) -> Booking:
    """Edit a non-terminal booking; rescheduling re-checks the target slot."""
    async with session.begin():
        booking, restaurant = await _load(session, booking_id)
        booking_rules.authorize_edit(_actor(identity, booking, restaurant), booking.status)
    key = _hold_key(booking, changes)

    while True:
        async with hold_slot(key) if key is not None else nullcontext():
            async with session.begin():
                booking, restaurant = await _load(session, booking_id, for_update=True)
                # Status or slot may have moved while we waited for the hold.
                booking_rules.authorize_edit(_actor(identity, booking, restaurant), booking.status)
                current_key = _hold_key(booking, changes)
                if current_key == key:
                    if key is not None:
                        on, time, party_size = _target_slot(booking, changes)
                        await _ensure_room(
                            session, restaurant, on, time, party_size, exclude_id=booking.id
                        )
                    for field, value in changes.items():
                        setattr(booking, field, value)
                    break
        logger.info(f"Booking {booking_id} moved while waiting; retrying under {current_key}")
        key = current_key

    logger.info(f"Booking {booking_id} updated: {sorted(changes)}")
    return booking


async def change_status(
    session: AsyncSession,
    identity: Identity,
    booking_id: UUID,
    target: BookingStatus,
) -> Booking:
    async with session.begin():
        booking, restaurant = await _load(session, booking_id, for_update=True)
        booking_rules.authorize_status_change(
            _actor(identity, booking, restaurant), booking.status, target
        )
        previous = booking.status
        booking.status = target

    logger.info(f"Booking {booking_id} status {previous.value} -> {target.value}")
    return booking


async def cancel_booking(session: AsyncSession, identity: Identity, booking_id: UUID) -> Booking:
    async with session.begin():
        booking, restaurant = await _load(session, booking_id, for_update=True)
        booking_rules.authorize_cancel(_actor(identity, booking, restaurant), booking.status)
        booking.status = BookingStatus.CANCELLED

    logger.info(f"Booking {booking_id} cancelled")
    return booking


async def list_user_bookings(
    session: AsyncSession,
    identity: Identity,
    *,
    status: BookingStatus | None,
    page: int,
    limit: int,
) -> tuple[list[Booking], int]:
    stmt = select(Booking).where(Booking.user_id == identity.user_id)
    if status is not None:
        stmt = stmt.where(Booking.status == status)
    stmt = stmt.options(selectinload(Booking.restaurant), selectinload(Booking.user))
    stmt = stmt.order_by(Booking.created_at.desc())
    return await paginate(session, stmt, page=page, limit=limit)


async def list_restaurant_bookings(
    session: AsyncSession,
    identity: Identity,
    restaurant_id: UUID,
    *,
    status: BookingStatus | None,
    on: dt.date | None,
    page: int,
    limit: int,
) -> tuple[list[Booking], int]:
    restaurant = await session.get(Restaurant, restaurant_id)
    if restaurant is None:
        raise NotFound("Restaurant not found")
    ensure_manages(identity, restaurant.owner_id, "view bookings for")

    stmt = select(Booking).where(Booking.restaurant_id == restaurant_id)
    if status is not None:
        stmt = stmt.where(Booking.status == status)
    if on is not None:
        stmt = stmt.where(Booking.date == on)
    stmt = stmt.options(selectinload(Booking.restaurant), selectinload(Booking.user))
    stmt = stmt.order_by(Booking.date.asc(), Booking.time.asc())
    return await paginate(session, stmt, page=page, limit=limit)
