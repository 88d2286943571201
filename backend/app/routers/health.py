import logging

from fastapi import APIRouter, Depends
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.errors import ServiceUnavailable
from backend.app.core.redis_client import require_redis
from backend.app.db.session import get_session


logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/healthz")
async def healthz() -> dict[str, bool]:
    """Basic liveness check."""
    return {"ok": True}


@router.get("/readiness")
async def readiness(session: AsyncSession = Depends(get_session)) -> dict[str, bool]:
    """Ensure the database and Redis (slot holds) are reachable."""
    client = require_redis()

    await session.execute(text("SELECT 1"))
    try:
        await client.ping()
    except RedisError as exc:
        logger.warning(f"Redis ping failed: {exc}")
        raise ServiceUnavailable("Redis unavailable") from exc

    return {"ready": True}
