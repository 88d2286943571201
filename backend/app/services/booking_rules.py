"""Who may do what to a booking, and in which states.

Every decision first reduces the caller to an :class:`Actor` relative to the
booking, then looks the actor up in tables that cover every member of the
enum. Terminal statuses freeze a booking entirely.
"""
import enum
from uuid import UUID

from backend.app.core.errors import AuthorizationDenied, InvalidStateTransition
from backend.app.core.security import Identity
from backend.app.db.models import BookingStatus, UserRole


TERMINAL_STATUSES = frozenset({BookingStatus.CANCELLED, BookingStatus.COMPLETED})


class Actor(enum.Enum):
    ADMIN = "admin"
    RESTAURANT_OWNER = "restaurant_owner"
    CUSTOMER = "customer"
    OUTSIDER = "outsider"


_STATUS_TARGETS: dict[Actor, frozenset[BookingStatus]] = {
    Actor.ADMIN: frozenset(BookingStatus),
    Actor.RESTAURANT_OWNER: frozenset(BookingStatus),
    Actor.CUSTOMER: frozenset({BookingStatus.CANCELLED}),
    Actor.OUTSIDER: frozenset(),
}

_CAN_VIEW: dict[Actor, bool] = {
    Actor.ADMIN: True,
    Actor.RESTAURANT_OWNER: True,
    Actor.CUSTOMER: True,
    Actor.OUTSIDER: False,
}

_CAN_EDIT: dict[Actor, bool] = {
    Actor.ADMIN: True,
    Actor.RESTAURANT_OWNER: False,
    Actor.CUSTOMER: True,
    Actor.OUTSIDER: False,
}

_CAN_CANCEL: dict[Actor, bool] = {
    Actor.ADMIN: True,
    Actor.RESTAURANT_OWNER: True,
    Actor.CUSTOMER: True,
    Actor.OUTSIDER: False,
}


def classify_actor(identity: Identity, *, booking_user_id: UUID, restaurant_owner_id: UUID) -> Actor:
    if identity.role is UserRole.ADMIN:
        return Actor.ADMIN
    if identity.user_id == restaurant_owner_id:
        return Actor.RESTAURANT_OWNER
    if identity.user_id == booking_user_id:
        return Actor.CUSTOMER
    return Actor.OUTSIDER


def _status_label(status: BookingStatus) -> str:
    return status.value.lower().replace("_", "-")


def ensure_not_terminal(status: BookingStatus) -> None:
    if status in TERMINAL_STATUSES:
        raise InvalidStateTransition(f"Cannot modify a {_status_label(status)} booking")


def authorize_view(actor: Actor) -> None:
    if not _CAN_VIEW[actor]:
        raise AuthorizationDenied("Not authorized to view this booking")


def authorize_edit(actor: Actor, current: BookingStatus) -> None:
    if not _CAN_EDIT[actor]:
        raise AuthorizationDenied("Not authorized to modify this booking")
    ensure_not_terminal(current)


def authorize_status_change(actor: Actor, current: BookingStatus, target: BookingStatus) -> None:
    allowed = _STATUS_TARGETS[actor]
    if not allowed:
        raise AuthorizationDenied("Not authorized to update this booking")
    if target not in allowed:
        raise AuthorizationDenied("Customers can only cancel bookings")
    ensure_not_terminal(current)


def authorize_cancel(actor: Actor, current: BookingStatus) -> None:
    if not _CAN_CANCEL[actor]:
        raise AuthorizationDenied("Not authorized to cancel this booking")
    if current is BookingStatus.CANCELLED:
        raise InvalidStateTransition("Booking is already cancelled")
    if current is BookingStatus.COMPLETED:
        raise InvalidStateTransition("Cannot cancel a completed booking")
