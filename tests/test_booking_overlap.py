"""
Tests del detector de solapamientos (sin base de datos)
"""
from datetime import datetime

from app.models.match import Match, MatchKind, MatchPresence, MatchStatus
from app.models.reservation import Reservation, ReservationStatus
from app.utils.booking_overlap import (
    first_overlapping,
    intervals_overlap,
    is_blocking_match,
    is_blocking_reservation,
    match_interval,
    reservation_interval,
)


def dt(hour, minute=0):
    return datetime(2026, 3, 10, hour, minute)


def make_reservation(**kwargs):
    data = dict(
        id=1,
        court_id=7,
        start_at=dt(10),
        end_at=dt(11),
        status=ReservationStatus.PENDING,
    )
    data.update(kwargs)
    return Reservation(**data)


def make_match(**kwargs):
    data = dict(
        id=3,
        title="Pelada de terça",
        court_id=7,
        date=dt(18),
        kind=MatchKind.PELADA,
        status=MatchStatus.SCHEDULED,
        max_players=10,
    )
    data.update(kwargs)
    return Match(**data)


def test_touching_intervals_do_not_overlap():
    assert not intervals_overlap(dt(10), dt(11), dt(11), dt(12))
    assert not intervals_overlap(dt(11), dt(12), dt(10), dt(11))


def test_partial_and_contained_intervals_overlap():
    assert intervals_overlap(dt(10), dt(11), dt(10, 30), dt(11, 30))
    assert intervals_overlap(dt(10), dt(12), dt(10, 30), dt(11))
    assert intervals_overlap(dt(10, 30), dt(11), dt(10), dt(12))


def test_canceled_reservation_does_not_block():
    assert is_blocking_reservation(make_reservation())
    assert not is_blocking_reservation(make_reservation(status=ReservationStatus.CANCELED))


def test_only_active_matches_block():
    assert is_blocking_match(make_match(status=MatchStatus.SCHEDULED))
    assert is_blocking_match(make_match(status=MatchStatus.LIVE))
    for status in (MatchStatus.CANCELED, MatchStatus.EXPIRED, MatchStatus.FINISHED):
        assert not is_blocking_match(make_match(status=status))


def test_match_interval_uses_default_duration():
    interval = match_interval(make_match())
    assert interval.start == dt(18)
    assert interval.end == dt(19)
    assert interval.source == "match"


def test_reservation_conflict_detail():
    detail = reservation_interval(make_reservation()).to_conflict()
    assert detail["type"] == "reservation"
    assert detail["id"] == 1
    assert detail["courtId"] == 7
    assert detail["startAt"] == "2026-03-10T10:00:00"
    assert detail["endAt"] == "2026-03-10T11:00:00"
    assert detail["status"] == "PENDING"


def test_match_busy_meta_has_capacity_and_no_user_data():
    match = make_match(presences=[MatchPresence(user_id=1), MatchPresence(user_id=2)])
    meta = match_interval(match).to_busy_meta()
    assert meta == {
        "source": "match",
        "kind": "PELADA",
        "id": 3,
        "title": "Pelada de terça",
        "status": "SCHEDULED",
        "capacity": {"confirmed": 2, "max": 10},
    }


def test_first_overlapping_keeps_input_order():
    first = reservation_interval(make_reservation(id=1, start_at=dt(9), end_at=dt(11)))
    second = reservation_interval(make_reservation(id=2, start_at=dt(10), end_at=dt(12)))
    assert first_overlapping([first, second], dt(10, 30), dt(11, 30)) is first
    assert first_overlapping([first, second], dt(11), dt(11, 30)) is second
    assert first_overlapping([first, second], dt(12), dt(13)) is None
