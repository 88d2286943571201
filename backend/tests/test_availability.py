import pytest

from backend.app.services.availability import (
    BookedParty,
    CapacityLimits,
    ConflictPolicy,
    SlotUsage,
    SlotWindow,
    available_slots,
    conflicts,
    format_hhmm,
    has_room,
    parse_hhmm,
    usage_at,
)


def test_window_enumerates_half_hour_slots_up_to_closing():
    window = SlotWindow("11:30", "13:30", 30)

    assert list(window) == ["11:30", "12:00", "12:30", "13:00"]


def test_window_can_be_walked_twice():
    window = SlotWindow("18:00", "19:00", 30)

    assert list(window) == list(window) == ["18:00", "18:30"]


@pytest.mark.parametrize("opening,closing", [("12:00", "12:00"), ("22:00", "11:00")])
def test_window_without_positive_span_is_empty(opening, closing):
    assert list(SlotWindow(opening, closing, 30)) == []


def test_window_rolls_minutes_into_hours():
    window = SlotWindow("10:45", "12:00", 30)

    assert list(window) == ["10:45", "11:15", "11:45"]


def test_window_uses_configured_interval():
    assert list(SlotWindow("17:00", "19:00", 45)) == ["17:00", "17:45", "18:30"]


def test_window_rejects_non_positive_interval():
    with pytest.raises(ValueError):
        SlotWindow("11:00", "12:00", 0)


@pytest.mark.parametrize("value", ["", "12", "24:00", "12:60", "ab:cd", "12:5"])
def test_parse_rejects_malformed_times(value):
    with pytest.raises(ValueError):
        parse_hhmm(value)


def test_parse_and_format_are_zero_padded():
    assert parse_hhmm("9:05") == 9 * 60 + 5
    assert format_hhmm(9 * 60 + 5) == "09:05"


def test_table_rule_blocks_when_every_table_is_taken():
    limits = CapacityLimits(total_tables=1, capacity=4)
    usage = SlotUsage(parties=1, covers=3)

    assert not has_room(limits, usage, 2)
    # Even a party that would fit the remaining seat needs its own table.
    assert not has_room(limits, usage, 1)


def test_party_size_rule_blocks_when_seats_run_out():
    limits = CapacityLimits(total_tables=5, capacity=4)
    usage = SlotUsage(parties=1, covers=3)

    assert not has_room(limits, usage, 2)
    assert has_room(limits, usage, 1)


def test_exact_policy_only_counts_identical_times():
    booked = [
        BookedParty("19:00", 2),
        BookedParty("19:00", 3),
        BookedParty("19:15", 4),
        BookedParty("19:30", 6),
    ]

    assert usage_at("19:00", booked) == SlotUsage(parties=2, covers=5)
    assert usage_at("18:30", booked) == SlotUsage()


def test_overlap_policy_counts_intersecting_seatings():
    assert conflicts("20:00", "19:00", policy=ConflictPolicy.OVERLAP, duration_minutes=90)
    assert conflicts("18:00", "19:00", policy=ConflictPolicy.OVERLAP, duration_minutes=90)
    assert not conflicts("20:30", "19:00", policy=ConflictPolicy.OVERLAP, duration_minutes=90)

    booked = [BookedParty("19:00", 2), BookedParty("21:00", 4)]
    usage = usage_at("20:00", booked, policy=ConflictPolicy.OVERLAP, duration_minutes=90)
    assert usage == SlotUsage(parties=2, covers=6)


def test_available_slots_drop_full_times():
    window = SlotWindow("11:30", "13:30", 30)
    limits = CapacityLimits(total_tables=1, capacity=4)

    slots = available_slots(window, limits, [BookedParty("12:00", 2)])

    assert slots == ["11:30", "12:30", "13:00"]


def test_available_slots_hide_times_with_no_seat_left():
    window = SlotWindow("12:00", "12:30", 30)
    limits = CapacityLimits(total_tables=5, capacity=4)

    assert available_slots(window, limits, [BookedParty("12:00", 4)]) == []
    assert available_slots(window, limits, [BookedParty("12:00", 3)]) == ["12:00"]


def test_available_slots_respect_party_size():
    window = SlotWindow("12:00", "13:00", 30)
    limits = CapacityLimits(total_tables=5, capacity=4)
    booked = [BookedParty("12:00", 3)]

    assert available_slots(window, limits, booked, party_size=2) == ["12:30"]


def test_listed_slot_accepts_a_single_guest():
    window = SlotWindow("11:00", "15:00", 30)
    limits = CapacityLimits(total_tables=3, capacity=7)
    booked = [
        BookedParty("11:00", 4),
        BookedParty("11:00", 3),
        BookedParty("12:00", 2),
        BookedParty("12:00", 2),
        BookedParty("12:00", 2),
        BookedParty("13:30", 6),
    ]

    for slot in available_slots(window, limits, booked):
        assert has_room(limits, usage_at(slot, booked), 1)


def test_accepted_bookings_never_exceed_limits():
    limits = CapacityLimits(total_tables=4, capacity=10)
    booked: list[BookedParty] = []

    for party_size in [3, 5, 1, 4, 2, 1, 1, 6, 1]:
        if has_room(limits, usage_at("19:00", booked), party_size):
            booked.append(BookedParty("19:00", party_size))
        usage = usage_at("19:00", booked)
        assert usage.parties <= limits.total_tables
        assert usage.covers <= limits.capacity

    assert [party.party_size for party in booked] == [3, 5, 1, 1]
