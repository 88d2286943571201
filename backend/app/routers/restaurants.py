import datetime as dt
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.security import Identity
from backend.app.db.session import get_session
from backend.app.routers.deps import pages, require
from backend.app.routers.schemas import (
    AvailabilityOut,
    Pagination,
    RestaurantDetailOut,
    RestaurantIn,
    RestaurantListOut,
    RestaurantOut,
    RestaurantUpdateIn,
    TableIn,
    TableOut,
)
from backend.app.services import restaurants as restaurants_service
from backend.app.services.permissions import Capability


router = APIRouter(prefix="/restaurants", tags=["restaurants"])

manager = require(Capability.MANAGE_RESTAURANTS)


@router.get("", response_model=RestaurantListOut)
async def list_restaurants(
    city: str | None = None,
    cuisine: str | None = None,
    price_range: int | None = Query(default=None, ge=1, le=4),
    min_rating: float | None = Query(default=None, ge=0, le=5),
    search: str | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
) -> RestaurantListOut:
    restaurants, total = await restaurants_service.search_restaurants(
        session,
        city=city,
        cuisine=cuisine,
        price_range=price_range,
        min_rating=min_rating,
        search=search,
        page=page,
        limit=limit,
    )
    return RestaurantListOut(
        restaurants=[RestaurantOut.model_validate(r) for r in restaurants],
        pagination=Pagination(page=page, limit=limit, total=total, pages=pages(total, limit)),
    )


@router.get("/my/restaurants", response_model=list[RestaurantOut])
async def my_restaurants(
    identity: Identity = Depends(manager),
    session: AsyncSession = Depends(get_session),
) -> list[RestaurantOut]:
    restaurants = await restaurants_service.list_owned_restaurants(session, identity)
    return [RestaurantOut.model_validate(r) for r in restaurants]


@router.post("", response_model=RestaurantOut, status_code=status.HTTP_201_CREATED)
async def create_restaurant(
    payload: RestaurantIn,
    identity: Identity = Depends(manager),
    session: AsyncSession = Depends(get_session),
) -> RestaurantOut:
    restaurant = await restaurants_service.create_restaurant(session, identity, payload.model_dump())
    return RestaurantOut.model_validate(restaurant)


@router.get("/{restaurant_id}", response_model=RestaurantDetailOut)
async def get_restaurant(
    restaurant_id: UUID,
    session: AsyncSession = Depends(get_session),
) -> RestaurantDetailOut:
    restaurant = await restaurants_service.get_restaurant(session, restaurant_id, with_owner=True)
    return RestaurantDetailOut.model_validate(restaurant)


@router.put("/{restaurant_id}", response_model=RestaurantOut)
async def update_restaurant(
    restaurant_id: UUID,
    payload: RestaurantUpdateIn,
    identity: Identity = Depends(manager),
    session: AsyncSession = Depends(get_session),
) -> RestaurantOut:
    # Explicit nulls are ignored; every column an owner edits here is required.
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    restaurant = await restaurants_service.update_restaurant(session, identity, restaurant_id, changes)
    return RestaurantOut.model_validate(restaurant)


@router.delete("/{restaurant_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_restaurant(
    restaurant_id: UUID,
    identity: Identity = Depends(manager),
    session: AsyncSession = Depends(get_session),
) -> Response:
    await restaurants_service.delete_restaurant(session, identity, restaurant_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{restaurant_id}/availability", response_model=AvailabilityOut)
async def get_availability(
    restaurant_id: UUID,
    date: dt.date,
    party_size: int = Query(default=1, ge=1, le=20),
    session: AsyncSession = Depends(get_session),
) -> AvailabilityOut:
    slots = await restaurants_service.restaurant_availability(
        session, restaurant_id, date, party_size=party_size
    )
    return AvailabilityOut(
        date=date,
        party_size=party_size,
        available_slots=slots,
        total_slots=len(slots),
    )


@router.get("/{restaurant_id}/tables", response_model=list[TableOut])
async def list_tables(
    restaurant_id: UUID,
    identity: Identity = Depends(manager),
    session: AsyncSession = Depends(get_session),
) -> list[TableOut]:
    tables = await restaurants_service.list_tables(session, identity, restaurant_id)
    return [TableOut.model_validate(t) for t in tables]


@router.post("/{restaurant_id}/tables", response_model=TableOut, status_code=status.HTTP_201_CREATED)
async def add_table(
    restaurant_id: UUID,
    payload: TableIn,
    identity: Identity = Depends(manager),
    session: AsyncSession = Depends(get_session),
) -> TableOut:
    table = await restaurants_service.add_table(
        session,
        identity,
        restaurant_id,
        table_number=payload.table_number,
        capacity=payload.capacity,
        is_active=payload.is_active,
    )
    return TableOut.model_validate(table)
