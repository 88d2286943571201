from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import UUID

import bcrypt
import jwt
from jwt.exceptions import InvalidTokenError

from backend.app.core.config import settings
from backend.app.core.errors import InvalidToken
from backend.app.db.models import UserRole


@dataclass(frozen=True)
class Identity:
    """Who is calling, as far as authorization decisions are concerned."""

    user_id: UUID
    email: str
    role: UserRole


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("ascii")


def verify_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("ascii"))


def create_access_token(identity: Identity) -> str:
    now = datetime.now(timezone.utc)
    claims = {
        "sub": str(identity.user_id),
        "email": identity.email,
        "role": identity.role.value,
        "iat": now,
        "exp": now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    }
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Identity:
    try:
        claims = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
        return Identity(
            user_id=UUID(claims["sub"]),
            email=claims["email"],
            role=UserRole(claims["role"]),
        )
    except (InvalidTokenError, KeyError, ValueError) as exc:
        raise InvalidToken("Invalid or expired token") from exc
