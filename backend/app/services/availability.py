"""Seat accounting for a restaurant's day.

Availability is aggregate: a restaurant has ``total_tables`` and ``capacity``
(seats), and every non-cancelled booking that conflicts with a candidate time
uses one table and ``party_size`` seats. Which bookings conflict is decided by
the :class:`ConflictPolicy`.
"""
from __future__ import annotations

import enum
from collections.abc import Iterable, Iterator
from dataclasses import dataclass


class ConflictPolicy(str, enum.Enum):
    # Only bookings at the identical HH:MM compete for the same tables.
    EXACT = "exact"
    # Bookings compete when their seating intervals intersect.
    OVERLAP = "overlap"


@dataclass(frozen=True)
class CapacityLimits:
    total_tables: int
    capacity: int


@dataclass(frozen=True)
class SlotUsage:
    parties: int = 0
    covers: int = 0


@dataclass(frozen=True)
class BookedParty:
    time: str
    party_size: int


def parse_hhmm(value: str) -> int:
    """Return minutes since midnight for an ``H:MM``/``HH:MM`` string."""
    hours, sep, minutes = value.partition(":")
    if not sep or not hours.isdigit() or not minutes.isdigit() or len(minutes) != 2:
        raise ValueError(f"invalid time of day: {value!r}")
    h, m = int(hours), int(minutes)
    if h > 23 or m > 59:
        raise ValueError(f"invalid time of day: {value!r}")
    return h * 60 + m


def format_hhmm(minutes: int) -> str:
    hours, mins = divmod(minutes, 60)
    return f"{hours:02d}:{mins:02d}"


def conflicts(
    candidate: str,
    existing: str,
    *,
    policy: ConflictPolicy,
    duration_minutes: int,
) -> bool:
    if policy is ConflictPolicy.EXACT:
        return parse_hhmm(candidate) == parse_hhmm(existing)
    return abs(parse_hhmm(candidate) - parse_hhmm(existing)) < duration_minutes


def usage_at(
    time: str,
    booked: Iterable[BookedParty],
    *,
    policy: ConflictPolicy = ConflictPolicy.EXACT,
    duration_minutes: int = 90,
) -> SlotUsage:
    """Tables and seats already taken by bookings that conflict with ``time``."""
    parties = 0
    covers = 0
    for party in booked:
        if conflicts(time, party.time, policy=policy, duration_minutes=duration_minutes):
            parties += 1
            covers += party.party_size
    return SlotUsage(parties=parties, covers=covers)


def has_room(limits: CapacityLimits, usage: SlotUsage, party_size: int) -> bool:
    """A new party fits when a table is free and its seats stay within capacity."""
    if usage.parties >= limits.total_tables:
        return False
    return usage.covers + party_size <= limits.capacity


@dataclass(frozen=True)
class SlotWindow:
    """Bookable start times from ``opening`` up to, not including, ``closing``.

    Iterating yields zero-padded ``HH:MM`` strings in order. The window is a
    plain iterable, so it can be walked any number of times. A closing time
    at or before the opening time yields nothing.
    """

    opening: str
    closing: str
    interval_minutes: int = 30

    def __post_init__(self) -> None:
        if self.interval_minutes <= 0:
            raise ValueError("interval_minutes must be positive")

    def __iter__(self) -> Iterator[str]:
        current = parse_hhmm(self.opening)
        end = parse_hhmm(self.closing)
        while current < end:
            yield format_hhmm(current)
            current += self.interval_minutes


def available_slots(
    window: SlotWindow,
    limits: CapacityLimits,
    booked: Iterable[BookedParty],
    *,
    party_size: int = 1,
    policy: ConflictPolicy = ConflictPolicy.EXACT,
    duration_minutes: int = 90,
) -> list[str]:
    """Slots in ``window`` where a party of ``party_size`` would be accepted."""
    booked = list(booked)
    return [
        slot
        for slot in window
        if has_room(
            limits,
            usage_at(slot, booked, policy=policy, duration_minutes=duration_minutes),
            party_size,
        )
    ]
