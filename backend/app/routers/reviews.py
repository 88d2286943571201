from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.security import Identity
from backend.app.db.session import get_session
from backend.app.routers.deps import require
from backend.app.routers.schemas import ReviewIn, ReviewOut
from backend.app.services import reviews as reviews_service
from backend.app.services.permissions import Capability


router = APIRouter(prefix="/reviews", tags=["reviews"])


@router.post("", response_model=ReviewOut, status_code=status.HTTP_201_CREATED)
async def create_review(
    payload: ReviewIn,
    identity: Identity = Depends(require(Capability.WRITE_REVIEWS)),
    session: AsyncSession = Depends(get_session),
) -> ReviewOut:
    review = await reviews_service.create_review(
        session,
        identity,
        restaurant_id=payload.restaurant_id,
        rating=payload.rating,
        comment=payload.comment,
    )
    return ReviewOut.model_validate(review)


@router.get("/restaurant/{restaurant_id}", response_model=list[ReviewOut])
async def restaurant_reviews(
    restaurant_id: UUID,
    session: AsyncSession = Depends(get_session),
) -> list[ReviewOut]:
    reviews = await reviews_service.list_reviews(session, restaurant_id)
    return [ReviewOut.model_validate(r) for r in reviews]
