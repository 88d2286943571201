import logging
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.errors import NotFound
from backend.app.core.security import Identity
from backend.app.db.models import Restaurant, Review


logger = logging.getLogger(__name__)


async def create_review(
    session: AsyncSession,
    identity: Identity,
    *,
    restaurant_id: UUID,
    rating: int,
    comment: str | None,
) -> Review:
    """Store a review and refresh the restaurant's aggregate rating in the same transaction."""
    async with session.begin():
        restaurant = await session.get(Restaurant, restaurant_id, with_for_update=True)
        if restaurant is None:
            raise NotFound("Restaurant not found")

        review = Review(
            user_id=identity.user_id,
            restaurant_id=restaurant_id,
            rating=rating,
            comment=comment,
        )
        session.add(review)
        await session.flush()

        average, count = (
            await session.execute(
                select(func.avg(Review.rating), func.count(Review.id)).where(
                    Review.restaurant_id == restaurant_id
                )
            )
        ).one()
        restaurant.rating = round(float(average), 2)
        restaurant.review_count = count

    logger.info(f"Review {review.id} for {restaurant_id}: rating now {restaurant.rating} over {count}")
    return review


async def list_reviews(session: AsyncSession, restaurant_id: UUID) -> list[Review]:
    if await session.get(Restaurant, restaurant_id) is None:
        raise NotFound("Restaurant not found")
    result = await session.scalars(
        select(Review)
        .where(Review.restaurant_id == restaurant_id)
        .order_by(Review.created_at.desc())
    )
    return list(result.all())
