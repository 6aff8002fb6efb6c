from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from app.core.constants import SLOT_STEP
from app.core.slots import SlotRange, generate_slot_starts, to_event_time

DAY = date(2024, 9, 1)


@pytest.mark.parametrize(
    "start,end,expected",
    [
        (time(9, 0), time(10, 0), 4),
        (time(8, 0), time(8, 15), 1),
        (time(10, 0), time(18, 0), 32),
        (time(0, 0), time(23, 45), 95),
    ],
)
def test_window_multiple_of_step_yields_exact_count(start, end, expected):
    slots = list(SlotRange(DAY, start, end))
    first = datetime.combine(DAY, start, tzinfo=timezone.utc)
    stop = datetime.combine(DAY, end, tzinfo=timezone.utc)

    assert len(slots) == expected == (stop - first) // SLOT_STEP
    assert slots[0] == first
    assert slots[-1] < stop
    assert all(b - a == SLOT_STEP for a, b in zip(slots, slots[1:]))


@pytest.mark.parametrize("start,end", [(time(10, 0), time(10, 0)), (time(11, 0), time(10, 0))])
def test_end_not_after_start_yields_nothing(start, end):
    r = SlotRange(DAY, start, end)
    assert list(r) == []
    assert len(r) == 0


def test_partial_last_step_is_included_only_if_it_starts_before_end():
    slots = list(SlotRange(DAY, time(9, 0), time(9, 20)))
    assert [s.time() for s in slots] == [time(9, 0), time(9, 15)]
    assert len(SlotRange(DAY, time(9, 0), time(9, 20))) == 2


def test_range_can_be_iterated_again():
    r = SlotRange(DAY, time(9, 0), time(10, 0))
    assert list(r) == list(r)
    assert len(r) == 4


def test_instants_are_utc_for_event_timezone():
    brussels = ZoneInfo("Europe/Brussels")
    summer = list(generate_slot_starts(DAY, time(9, 0), time(10, 0), brussels))
    winter = list(generate_slot_starts(date(2024, 12, 1), time(9, 0), time(9, 30), brussels))

    assert all(s.tzinfo == timezone.utc for s in summer + winter)
    assert summer[0] == datetime(2024, 9, 1, 7, 0, tzinfo=timezone.utc)  # CEST
    assert winter[0] == datetime(2024, 12, 1, 8, 0, tzinfo=timezone.utc)  # CET
    assert [to_event_time(s, brussels).strftime("%H:%M") for s in summer] == ["09:00", "09:15", "09:30", "09:45"]


def test_same_input_same_output():
    a = list(generate_slot_starts(DAY, time(14, 0), time(15, 30), ZoneInfo("Europe/Brussels")))
    b = list(generate_slot_starts(DAY, time(14, 0), time(15, 30), ZoneInfo("Europe/Brussels")))
    assert a == b
    assert a[-1] - a[0] == timedelta(minutes=75)


def test_fall_back_day_offers_repeated_hour_once():
    brussels = ZoneInfo("Europe/Brussels")
    slots = list(generate_slot_starts(date(2024, 10, 27), time(2, 0), time(3, 30), brussels))
    local = [to_event_time(s, brussels).strftime("%H:%M") for s in slots]

    assert local == ["02:00", "02:15", "02:30", "02:45", "03:00", "03:15"]
    assert slots == sorted(set(slots))


def test_spring_forward_day_skips_missing_wall_times():
    brussels = ZoneInfo("Europe/Brussels")
    r = generate_slot_starts(date(2024, 3, 31), time(1, 0), time(4, 0), brussels)
    local = [to_event_time(s, brussels).strftime("%H:%M") for s in r]

    assert local == ["01:00", "01:15", "01:30", "01:45", "03:00", "03:15", "03:30", "03:45"]
    assert len(r) == 8
    assert len(generate_slot_starts(date(2024, 3, 31), time(2, 0), time(3, 0), brussels)) == 0
