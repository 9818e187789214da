"""
Tests de la grilla de slots de una arena
"""
from datetime import date, datetime

import pytest

from app.utils.time_slots import (
    build_day_slots,
    operating_window,
    parse_hhmm,
    slot_price,
)

DAY = date(2026, 3, 10)


def labels(slots):
    return [(s.start_label, s.end_label) for s in slots]


def test_hourly_slots_cover_the_whole_window():
    slots = build_day_slots("09:00", "11:00", DAY, 60)
    assert labels(slots) == [("09:00", "10:00"), ("10:00", "11:00")]


def test_trailing_partial_slot_is_dropped():
    slots = build_day_slots("09:00", "11:00", DAY, 90)
    assert labels(slots) == [("09:00", "10:30")]


def test_slots_are_half_open_and_contiguous():
    slots = build_day_slots("08:00", "12:00", DAY, 30)
    assert len(slots) == 8
    for current, following in zip(slots, slots[1:]):
        assert current.end == following.start


def test_close_before_open_wraps_to_next_day():
    slots = build_day_slots("22:00", "02:00", DAY, 60)
    assert labels(slots) == [
        ("22:00", "23:00"),
        ("23:00", "00:00"),
        ("00:00", "01:00"),
        ("01:00", "02:00"),
    ]
    assert slots[-1].end == datetime(2026, 3, 11, 2, 0)


def test_open_equal_close_is_a_full_day():
    slots = build_day_slots("06:00", "06:00", DAY, 180)
    assert len(slots) == 8
    assert slots[0].start == datetime(2026, 3, 10, 6, 0)
    assert slots[-1].end == datetime(2026, 3, 11, 6, 0)


@pytest.mark.parametrize(
    "open_time,close_time",
    [(None, "22:00"), ("08:00", None), ("8h", "22:00"), ("25:00", "26:00"), ("", "")],
)
def test_invalid_hours_give_empty_grid(open_time, close_time):
    assert build_day_slots(open_time, close_time, DAY, 60) == []


def test_non_positive_slot_gives_empty_grid():
    assert build_day_slots("08:00", "22:00", DAY, 0) == []


def test_parse_hhmm():
    assert parse_hhmm("07:05").hour == 7
    assert parse_hhmm("7:05").minute == 5
    assert parse_hhmm("23:60") is None
    assert parse_hhmm("abc") is None


def test_operating_window_invalid():
    assert operating_window("xx", "22:00", DAY) is None


def test_slot_price_rounds_half_up():
    assert slot_price(100, 60) == 100
    assert slot_price(100, 90) == 150
    assert slot_price(75, 30) == 38  # 37.5
    assert slot_price(None, 60) is None
