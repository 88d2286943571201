from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession


async def paginate(session: AsyncSession, stmt: Select, *, page: int, limit: int) -> tuple[list, int]:
    """Return one page of ``stmt``'s rows and the unpaged total."""
    total = await session.scalar(
        select(func.count()).select_from(stmt.order_by(None).subquery())
    )
    result = await session.scalars(stmt.offset((page - 1) * limit).limit(limit))
    return list(result.all()), total or 0
