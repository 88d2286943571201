from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from backend.app.core.errors import AuthenticationRequired
from backend.app.core.security import Identity, decode_access_token
from backend.app.services.permissions import Capability, ensure_can


bearer_scheme = HTTPBearer(auto_error=False)


async def get_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Identity:
    if credentials is None:
        raise AuthenticationRequired("Access token required")
    return decode_access_token(credentials.credentials)


def require(capability: Capability):
    """Dependency factory: the caller's role must grant ``capability``."""

    async def _dependency(identity: Identity = Depends(get_identity)) -> Identity:
        ensure_can(identity, capability)
        return identity

    return _dependency


def pages(total: int, limit: int) -> int:
    return (total + limit - 1) // limit
