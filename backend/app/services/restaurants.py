import datetime as dt
import logging
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload, undefer

from backend.app.core.config import settings
from backend.app.core.errors import Conflict, NotFound
from backend.app.core.security import Identity
from backend.app.db.models import Booking, Restaurant, Table
from backend.app.services.availability import CapacityLimits, available_slots
from backend.app.services.bookings import booked_parties, conflict_policy, opening_window
from backend.app.services.pagination import paginate
from backend.app.services.permissions import ensure_manages


logger = logging.getLogger(__name__)


async def get_restaurant(
    session: AsyncSession,
    restaurant_id: UUID,
    *,
    with_owner: bool = False,
) -> Restaurant:
    """Load a restaurant with its booking count, and its owner when ``with_owner``."""
    stmt = (
        select(Restaurant)
        .where(Restaurant.id == restaurant_id)
        .options(undefer(Restaurant.booking_count))
        .execution_options(populate_existing=True)
    )
    if with_owner:
        stmt = stmt.options(selectinload(Restaurant.owner))
    restaurant = await session.scalar(stmt)
    if restaurant is None:
        raise NotFound("Restaurant not found")
    return restaurant


async def search_restaurants(
    session: AsyncSession,
    *,
    city: str | None,
    cuisine: str | None,
    price_range: int | None,
    min_rating: float | None,
    search: str | None,
    page: int,
    limit: int,
) -> tuple[list[Restaurant], int]:
    stmt = select(Restaurant).options(undefer(Restaurant.booking_count))
    if city:
        stmt = stmt.where(Restaurant.city.ilike(f"%{city}%"))
    if cuisine:
        # One cuisine label per restaurant, matched case-insensitively.
        stmt = stmt.where(Restaurant.cuisine.ilike(cuisine))
    if price_range is not None:
        stmt = stmt.where(Restaurant.price_range == price_range)
    if min_rating is not None:
        stmt = stmt.where(Restaurant.rating >= min_rating)
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(
            or_(
                Restaurant.name.ilike(pattern),
                Restaurant.description.ilike(pattern),
                Restaurant.cuisine.ilike(pattern),
            )
        )
    stmt = stmt.order_by(Restaurant.rating.desc(), Restaurant.name.asc())
    return await paginate(session, stmt, page=page, limit=limit)


async def list_owned_restaurants(session: AsyncSession, identity: Identity) -> list[Restaurant]:
    result = await session.scalars(
        select(Restaurant)
        .where(Restaurant.owner_id == identity.user_id)
        .options(undefer(Restaurant.booking_count))
        .order_by(Restaurant.name)
    )
    return list(result.all())


async def create_restaurant(session: AsyncSession, identity: Identity, fields: dict) -> Restaurant:
    async with session.begin():
        restaurant = Restaurant(owner_id=identity.user_id, **fields)
        session.add(restaurant)

    logger.info(f"Restaurant {restaurant.id} created by {identity.user_id}")
    return await get_restaurant(session, restaurant.id)


async def update_restaurant(
    session: AsyncSession,
    identity: Identity,
    restaurant_id: UUID,
    changes: dict,
) -> Restaurant:
    async with session.begin():
        restaurant = await session.get(Restaurant, restaurant_id, with_for_update=True)
        if restaurant is None:
            raise NotFound("Restaurant not found")
        ensure_manages(identity, restaurant.owner_id, "update")

        for field, value in changes.items():
            setattr(restaurant, field, value)

    logger.info(f"Restaurant {restaurant_id} updated: {sorted(changes)}")
    return await get_restaurant(session, restaurant_id)


async def delete_restaurant(session: AsyncSession, identity: Identity, restaurant_id: UUID) -> None:
    """Delete a restaurant that has never been booked; bookings are kept forever."""
    async with session.begin():
        restaurant = await session.get(Restaurant, restaurant_id)
        if restaurant is None:
            raise NotFound("Restaurant not found")
        ensure_manages(identity, restaurant.owner_id, "delete")

        bookings = await session.scalar(
            select(func.count(Booking.id)).where(Booking.restaurant_id == restaurant_id)
        )
        if bookings:
            raise Conflict("Restaurant has bookings and cannot be deleted")
        await session.delete(restaurant)

    logger.info(f"Restaurant {restaurant_id} deleted by {identity.user_id}")


async def list_tables(session: AsyncSession, identity: Identity, restaurant_id: UUID) -> list[Table]:
    restaurant = await get_restaurant(session, restaurant_id)
    ensure_manages(identity, restaurant.owner_id, "view tables of")
    result = await session.scalars(
        select(Table).where(Table.restaurant_id == restaurant_id).order_by(Table.table_number)
    )
    return list(result.all())


async def add_table(
    session: AsyncSession,
    identity: Identity,
    restaurant_id: UUID,
    *,
    table_number: str,
    capacity: int,
    is_active: bool,
) -> Table:
    async with session.begin():
        restaurant = await session.get(Restaurant, restaurant_id)
        if restaurant is None:
            raise NotFound("Restaurant not found")
        ensure_manages(identity, restaurant.owner_id, "add tables to")

        taken = await session.scalar(
            select(Table.id).where(
                Table.restaurant_id == restaurant_id,
                Table.table_number == table_number,
            )
        )
        if taken is not None:
            raise Conflict(f"Table {table_number} already exists")

        table = Table(
            restaurant_id=restaurant_id,
            table_number=table_number,
            capacity=capacity,
            is_active=is_active,
        )
        session.add(table)
    return table


async def restaurant_availability(
    session: AsyncSession,
    restaurant_id: UUID,
    on: dt.date,
    *,
    party_size: int = 1,
) -> list[str]:
    """Start times on ``on`` that would still accept a party of ``party_size``."""
    restaurant = await get_restaurant(session, restaurant_id)
    booked = await booked_parties(session, restaurant_id, on)
    return available_slots(
        opening_window(restaurant),
        CapacityLimits(total_tables=restaurant.total_tables, capacity=restaurant.capacity),
        booked,
        party_size=party_size,
        policy=conflict_policy(),
        duration_minutes=settings.SERVICE_DURATION_MINUTES,
    )
