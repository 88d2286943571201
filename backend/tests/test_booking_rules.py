from uuid import uuid4

import pytest

from backend.app.core.errors import AuthorizationDenied, InvalidStateTransition
from backend.app.core.security import Identity
from backend.app.db.models import BookingStatus, UserRole
from backend.app.services.booking_rules import (
    _CAN_CANCEL,
    _CAN_EDIT,
    _CAN_VIEW,
    _STATUS_TARGETS,
    Actor,
    authorize_cancel,
    authorize_edit,
    authorize_status_change,
    authorize_view,
    classify_actor,
)
from backend.app.services.permissions import ROLE_CAPABILITIES, Capability, can, ensure_manages


def _identity(role: UserRole) -> Identity:
    return Identity(user_id=uuid4(), email="someone@example.com", role=role)


def test_decision_tables_cover_every_actor_and_role():
    for table in (_STATUS_TARGETS, _CAN_VIEW, _CAN_EDIT, _CAN_CANCEL):
        assert set(table) == set(Actor)
    assert set(ROLE_CAPABILITIES) == set(UserRole)


def test_legacy_owner_role_name_is_accepted():
    assert UserRole("OWNER") is UserRole.RESTAURANT_OWNER


def test_classify_actor_prefers_admin_then_owner_then_customer():
    admin = _identity(UserRole.ADMIN)
    assert classify_actor(admin, booking_user_id=admin.user_id, restaurant_owner_id=uuid4()) is Actor.ADMIN

    owner = _identity(UserRole.RESTAURANT_OWNER)
    assert (
        classify_actor(owner, booking_user_id=owner.user_id, restaurant_owner_id=owner.user_id)
        is Actor.RESTAURANT_OWNER
    )

    customer = _identity(UserRole.CUSTOMER)
    assert (
        classify_actor(customer, booking_user_id=customer.user_id, restaurant_owner_id=uuid4())
        is Actor.CUSTOMER
    )
    assert (
        classify_actor(customer, booking_user_id=uuid4(), restaurant_owner_id=uuid4())
        is Actor.OUTSIDER
    )


def test_customer_may_only_cancel():
    authorize_status_change(Actor.CUSTOMER, BookingStatus.PENDING, BookingStatus.CANCELLED)

    with pytest.raises(AuthorizationDenied, match="Customers can only cancel bookings"):
        authorize_status_change(Actor.CUSTOMER, BookingStatus.PENDING, BookingStatus.CONFIRMED)


@pytest.mark.parametrize("actor", [Actor.ADMIN, Actor.RESTAURANT_OWNER])
@pytest.mark.parametrize("target", list(BookingStatus))
def test_staff_may_set_any_status(actor, target):
    authorize_status_change(actor, BookingStatus.CONFIRMED, target)


def test_outsider_cannot_touch_booking():
    with pytest.raises(AuthorizationDenied):
        authorize_view(Actor.OUTSIDER)
    with pytest.raises(AuthorizationDenied):
        authorize_edit(Actor.OUTSIDER, BookingStatus.PENDING)
    with pytest.raises(AuthorizationDenied, match="Not authorized to update this booking"):
        authorize_status_change(Actor.OUTSIDER, BookingStatus.PENDING, BookingStatus.CANCELLED)
    with pytest.raises(AuthorizationDenied):
        authorize_cancel(Actor.OUTSIDER, BookingStatus.PENDING)


@pytest.mark.parametrize(
    "status,label",
    [(BookingStatus.CANCELLED, "cancelled"), (BookingStatus.COMPLETED, "completed")],
)
def test_terminal_bookings_are_frozen(status, label):
    with pytest.raises(InvalidStateTransition, match=f"Cannot modify a {label} booking"):
        authorize_edit(Actor.CUSTOMER, status)
    with pytest.raises(InvalidStateTransition, match=label):
        authorize_status_change(Actor.ADMIN, status, BookingStatus.CONFIRMED)


def test_non_terminal_statuses_stay_editable():
    for status in (BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingStatus.NO_SHOW):
        authorize_edit(Actor.CUSTOMER, status)
        authorize_status_change(Actor.RESTAURANT_OWNER, status, BookingStatus.COMPLETED)


def test_restaurant_owner_cannot_edit_details():
    with pytest.raises(AuthorizationDenied, match="Not authorized to modify this booking"):
        authorize_edit(Actor.RESTAURANT_OWNER, BookingStatus.PENDING)


def test_cancel_rejects_finished_bookings():
    authorize_cancel(Actor.CUSTOMER, BookingStatus.CONFIRMED)

    with pytest.raises(InvalidStateTransition, match="already cancelled"):
        authorize_cancel(Actor.CUSTOMER, BookingStatus.CANCELLED)
    with pytest.raises(InvalidStateTransition, match="completed"):
        authorize_cancel(Actor.RESTAURANT_OWNER, BookingStatus.COMPLETED)


def test_capabilities_by_role():
    customer = _identity(UserRole.CUSTOMER)
    owner = _identity(UserRole.RESTAURANT_OWNER)
    admin = _identity(UserRole.ADMIN)

    assert can(customer, Capability.BOOK_TABLES)
    assert not can(customer, Capability.MANAGE_RESTAURANTS)
    assert can(owner, Capability.MANAGE_RESTAURANTS)
    assert not can(owner, Capability.BOOK_TABLES)
    assert all(can(admin, capability) for capability in Capability)


def test_ensure_manages_allows_owner_and_admin_only():
    owner = _identity(UserRole.RESTAURANT_OWNER)
    ensure_manages(owner, owner.user_id, "update")
    ensure_manages(_identity(UserRole.ADMIN), owner.user_id, "update")

    with pytest.raises(AuthorizationDenied, match="Not authorized to update this restaurant"):
        ensure_manages(_identity(UserRole.RESTAURANT_OWNER), owner.user_id, "update")
