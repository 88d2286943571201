import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date
from uuid import UUID, uuid4

from backend.app.core import redis_client as redis_module
from backend.app.core.config import settings
from backend.app.core.errors import SlotBusy
from backend.app.services.availability import ConflictPolicy


logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 0.05


def slot_key(restaurant_id: UUID, on: date, time: str, policy: ConflictPolicy) -> str:
    # Under the overlap policy neighbouring times compete, so the whole day is one key.
    if policy is ConflictPolicy.OVERLAP:
        return f"hold:{restaurant_id}:{on.strftime('%Y%m%d')}"
    return f"hold:{restaurant_id}:{on.strftime('%Y%m%d')}:{time.replace(':', '')}"


@asynccontextmanager
async def hold_slot(key: str) -> AsyncIterator[str]:
    """Hold ``key`` in Redis for the duration of a check-then-write sequence.

    Waits up to ``SLOT_LOCK_WAIT_SECONDS`` for a concurrent holder to finish,
    then gives up with :class:`SlotBusy`. The hold expires on its own after
    ``SLOT_LOCK_TTL_MS`` if the process dies while holding it.
    """
    client = redis_module.require_redis()
    token = str(uuid4())
    loop = asyncio.get_running_loop()
    deadline = loop.time() + settings.SLOT_LOCK_WAIT_SECONDS

    while not await client.set(key, token, nx=True, px=settings.SLOT_LOCK_TTL_MS):
        if loop.time() >= deadline:
            logger.warning(f"Gave up waiting for slot hold {key}")
            raise SlotBusy()
        await asyncio.sleep(POLL_INTERVAL_SECONDS)

    try:
        yield token
    finally:
        # Only release our own hold; it may have expired and been re-taken.
        if await client.get(key) == token:
            await client.delete(key)
