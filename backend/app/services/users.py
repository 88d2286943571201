import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from backend.app.core.errors import AuthenticationRequired, AuthorizationDenied, Conflict, NotFound
from backend.app.core.security import Identity, hash_password, verify_password
from backend.app.db.models import User, UserRole


logger = logging.getLogger(__name__)

SELF_REGISTERABLE_ROLES = frozenset({UserRole.CUSTOMER, UserRole.RESTAURANT_OWNER})


def identity_of(user: User) -> Identity:
    return Identity(user_id=user.id, email=user.email, role=user.role)


async def register_user(
    session: AsyncSession,
    *,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    phone: str | None,
    role: UserRole,
) -> User:
    if role not in SELF_REGISTERABLE_ROLES:
        raise AuthorizationDenied(f"Cannot register with role {role.value}")

    email = email.strip().lower()
    # bcrypt blocks; run it in the threadpool
    password_hash = await run_in_threadpool(hash_password, password)

    async with session.begin():
        taken = await session.scalar(select(User.id).where(User.email == email))
        if taken is not None:
            raise Conflict("Email already registered")

        user = User(
            email=email,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            phone=phone,
            role=role,
        )
        session.add(user)

    logger.info(f"Registered {role.value} user {user.id}")
    return user


async def authenticate(session: AsyncSession, *, email: str, password: str) -> User:
    user = await session.scalar(select(User).where(User.email == email.strip().lower()))
    if user is None or not await run_in_threadpool(verify_password, password, user.password_hash):
        raise AuthenticationRequired("Invalid email or password")
    return user


async def get_user(session: AsyncSession, user_id: UUID) -> User:
    user = await session.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


async def update_profile(session: AsyncSession, user_id: UUID, changes: dict) -> User:
    async with session.begin():
        user = await session.get(User, user_id)
        if user is None:
            raise NotFound("User not found")
        for field, value in changes.items():
            setattr(user, field, value)
    return user
