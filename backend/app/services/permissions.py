import enum
from uuid import UUID

from backend.app.core.errors import AuthorizationDenied
from backend.app.core.security import Identity
from backend.app.db.models import UserRole


class Capability(str, enum.Enum):
    BOOK_TABLES = "book_tables"
    WRITE_REVIEWS = "write_reviews"
    MANAGE_RESTAURANTS = "manage_restaurants"
    ACT_ON_ANY_RESTAURANT = "act_on_any_restaurant"


ROLE_CAPABILITIES: dict[UserRole, frozenset[Capability]] = {
    UserRole.CUSTOMER: frozenset({Capability.BOOK_TABLES, Capability.WRITE_REVIEWS}),
    UserRole.RESTAURANT_OWNER: frozenset({Capability.MANAGE_RESTAURANTS}),
    UserRole.ADMIN: frozenset(Capability),
}


def can(identity: Identity, capability: Capability) -> bool:
    return capability in ROLE_CAPABILITIES[identity.role]


def ensure_can(identity: Identity, capability: Capability) -> None:
    if not can(identity, capability):
        raise AuthorizationDenied(
            "Insufficient permissions",
            your_role=identity.role.value,
        )


def ensure_manages(identity: Identity, owner_id: UUID, action: str) -> None:
    """Owners act on their own restaurants; admins on any."""
    if identity.user_id == owner_id or can(identity, Capability.ACT_ON_ANY_RESTAURANT):
        return
    raise AuthorizationDenied(f"Not authorized to {action} this restaurant")
