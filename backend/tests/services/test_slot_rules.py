from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace

from app.core.timezone_utils import to_studio_time
from app.services.availability import (
    PARTIAL_TYPES,
    REASON_CAPACITY,
    REASON_FULLY_BOOKED,
    REASON_GROUP_CLASS,
    REASON_NOTICE,
    REASON_PAST,
    REASON_STUDIO_CLOSED,
    Occupancy,
    SlotStatus,
    evaluate_occupancy,
    evaluate_slot,
    expand_block,
    generate_day_slots,
    overlaps,
)

START = datetime(2030, 3, 4, 3, 0, tzinfo=timezone.utc)  # 10:00 in Bangkok
END = START + timedelta(hours=1)


def _session(teacher_id: str, type: str = "private", start: datetime = START) -> Occupancy:
    return Occupancy(
        id=f"b-{teacher_id}-{type}",
        teacher_id=teacher_id,
        start=start,
        end=start + timedelta(hours=1),
        type=type,
        status="confirmed",
    )


def _block(teacher_id, reason=None, start: datetime = START, hours: int = 1) -> Occupancy:
    return Occupancy(
        id=f"blk-{teacher_id}",
        teacher_id=teacher_id,
        start=start,
        end=start + timedelta(hours=hours),
        type="blocked",
        status="confirmed",
        block_reason=reason,
    )


def test_overlaps_is_half_open():
    assert overlaps(START, END, START + timedelta(minutes=30), END + timedelta(minutes=30))
    assert not overlaps(START, END, END, END + timedelta(hours=1))
    assert not overlaps(START, END, START - timedelta(hours=1), START)


def test_empty_slot_is_available_for_every_type():
    slot = evaluate_occupancy(START, END, [], "t1", 2)
    assert slot.status == SlotStatus.AVAILABLE
    assert slot.allowed_types == ["private", "duo", "group"]
    assert slot.is_bookable


def test_studio_wide_block_blocks_everyone():
    slot = evaluate_occupancy(START, END, [_block(None, "Songkran")], "t1", 2)
    assert slot.status == SlotStatus.BLOCKED
    assert slot.block_reason == "Songkran"

    unnamed = evaluate_occupancy(START, END, [_block(None)], None, 2)
    assert unnamed.block_reason == REASON_STUDIO_CLOSED


def test_own_session_blocks_requested_teacher():
    slot = evaluate_occupancy(START, END, [_session("t1")], "t1", 2)
    assert slot.status == SlotStatus.BLOCKED
    assert slot.block_reason == REASON_FULLY_BOOKED


def test_own_block_reports_its_reason():
    slot = evaluate_occupancy(START, END, [_block("t1", "Dentist")], "t1", 2)
    assert slot.status == SlotStatus.BLOCKED
    assert slot.block_reason == "Dentist"


def test_other_teachers_block_does_not_affect_requested_teacher():
    slot = evaluate_occupancy(START, END, [_block("t2", "Leave")], "t1", 2)
    assert slot.status == SlotStatus.AVAILABLE


def test_other_teacher_private_session_makes_slot_partial():
    slot = evaluate_occupancy(START, END, [_session("t2")], "t1", 2)
    assert slot.status == SlotStatus.PARTIAL
    assert slot.allowed_types == PARTIAL_TYPES
    assert slot.allows("duo")
    assert not slot.allows("group")
    assert slot.teacher_count == 1


def test_group_class_blocks_the_studio():
    slot = evaluate_occupancy(START, END, [_session("t2", "group")], "t1", 2)
    assert slot.status == SlotStatus.BLOCKED
    assert slot.block_reason == REASON_GROUP_CLASS


def test_capacity_reached_blocks_slot():
    occupancies = [_session("t2"), _session("t3", "duo")]
    slot = evaluate_occupancy(START, END, occupancies, "t1", 2)
    assert slot.status == SlotStatus.BLOCKED
    assert slot.block_reason == REASON_CAPACITY
    assert slot.teacher_count == 2

    roomier = evaluate_occupancy(START, END, occupancies, "t1", 3)
    assert roomier.status == SlotStatus.PARTIAL


def test_touching_session_does_not_count():
    earlier = _session("t2", "group", start=START - timedelta(hours=1))
    assert evaluate_occupancy(START, END, [earlier], "t1", 2).status == SlotStatus.AVAILABLE


def test_evaluate_slot_blocks_past_and_short_notice():
    now = START - timedelta(hours=2)
    assert evaluate_slot(START, END, [], "t1", now, 24, 2).block_reason == REASON_NOTICE
    assert evaluate_slot(START, END, [], "t1", END, 24, 2).block_reason == REASON_PAST
    far = START - timedelta(days=3)
    assert evaluate_slot(START, END, [], "t1", far, 24, 2).status == SlotStatus.AVAILABLE


def test_generate_day_slots_covers_opening_hours():
    slots = generate_day_slots(date(2030, 3, 4), 7, 22, 60)
    assert len(slots) == 15
    assert to_studio_time(slots[0][0]).hour == 7
    assert to_studio_time(slots[-1][1]).hour == 22


def test_generate_day_slots_drops_slots_running_past_close():
    slots = generate_day_slots(date(2030, 3, 4), 7, 22, 90)
    assert to_studio_time(slots[-1][0]).hour == 20


def test_expand_single_block_only_when_overlapping():
    block = SimpleNamespace(
        id="blk",
        teacher_id="t1",
        start_time=START,
        end_time=END,
        type="blocked",
        status="confirmed",
        block_reason="Lunch",
        teacher=None,
        recurrence_frequency=None,
        recurrence_until=None,
    )
    assert len(expand_block(block, START - timedelta(hours=3), START + timedelta(hours=3))) == 1
    assert expand_block(block, END, END + timedelta(hours=1)) == []


def test_expand_weekly_block_until_date():
    block = SimpleNamespace(
        id="blk",
        teacher_id="t1",
        start_time=START,
        end_time=END,
        type="blocked",
        status="confirmed",
        block_reason="Training",
        teacher=None,
        recurrence_frequency="weekly",
        recurrence_until=START + timedelta(days=15),
    )
    occurrences = expand_block(block, START - timedelta(days=1), START + timedelta(days=60))
    assert [o.start for o in occurrences] == [
        START,
        START + timedelta(days=7),
        START + timedelta(days=14),
    ]
    assert all(o.block_reason == "Training" for o in occurrences)


def test_expand_daily_block_skips_to_window():
    block = SimpleNamespace(
        id="blk",
        teacher_id=None,
        start_time=START,
        end_time=END,
        type="blocked",
        status="confirmed",
        block_reason=None,
        teacher=None,
        recurrence_frequency="daily",
        recurrence_until=None,
    )
    window_start = START + timedelta(days=10)
    occurrences = expand_block(block, window_start, window_start + timedelta(days=2))
    assert [o.start for o in occurrences] == [window_start, window_start + timedelta(days=1)]
    assert occurrences[0].is_studio_wide
