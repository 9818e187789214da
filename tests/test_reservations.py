"""
Tests de reservas: alta sin solapamientos, precio y transiciones de estado
"""
from datetime import timedelta

import pytest

from app.crud import reservation as reservation_crud
from app.exceptions import AuthorizationError, ConflictError, NotFoundError
from app.models.court import Court
from app.models.reservation import PaymentStatus, Reservation, ReservationStatus
from app.routers import reservations as router
from app.schemas.reservation import ReservationCreate


def reserve(db, user, court, start, minutes=60):
    return router.create_reservation(
        reservation=ReservationCreate(
            court_id=court.id, start_at=start, duration_minutes=minutes
        ),
        db=db,
        current_user=user,
    )


def test_create_reservation_defaults(db, player, court, at):
    reservation = reserve(db, player, court, at(10), minutes=90)

    assert reservation.status == ReservationStatus.PENDING
    assert reservation.payment_status == PaymentStatus.UNPAID
    assert reservation.end_at == at(11, 30)
    assert reservation.total_price == 150
    assert reservation.user_id == player.id


def test_court_without_price_gives_null_total(db, player, arena, at):
    court = Court(name="Sem preço", arena_id=arena.id)
    db.add(court)
    db.commit()

    reservation = reserve(db, player, court, at(10))
    assert reservation.total_price is None


def test_overlapping_reservation_is_rejected(db, player, player_b, court, at):
    first = reserve(db, player, court, at(10))

    with pytest.raises(ConflictError) as exc_info:
        reserve(db, player_b, court, at(10, 30))

    conflict = exc_info.value.conflict
    assert conflict["type"] == "reservation"
    assert conflict["id"] == first.id
    assert conflict["startAt"] == at(10).isoformat()
    assert db.query(Reservation).count() == 1


def test_touching_reservations_are_allowed(db, player, player_b, court, at):
    reserve(db, player, court, at(10))
    reserve(db, player_b, court, at(11))
    reserve(db, player_b, court, at(9))

    assert db.query(Reservation).count() == 3


def test_same_time_on_another_court_is_allowed(db, player, court, arena, at):
    other = Court(name="Quadra 2", arena_id=arena.id, price_per_hour=80)
    db.add(other)
    db.commit()

    reserve(db, player, court, at(10))
    reserve(db, player, other, at(10))

    assert db.query(Reservation).count() == 2


def test_canceled_reservation_frees_the_slot(db, player, player_b, arena_owner, court, at):
    first = reserve(db, player, court, at(10))
    router.cancel_reservation(reservation_id=first.id, db=db, current_user=player)

    second = reserve(db, player_b, court, at(10))
    assert second.status == ReservationStatus.PENDING


def test_unknown_court(db, player, at):
    with pytest.raises(NotFoundError):
        router.create_reservation(
            reservation=ReservationCreate(court_id=999, start_at=at(10)),
            db=db,
            current_user=player,
        )


def test_unique_index_race_is_reported_as_conflict(db, player, player_b, court, at, monkeypatch):
    """Si otra transacción inserta entre la verificación y el commit, responde 409"""
    existing = reserve(db, player, court, at(10))

    real_find = reservation_crud.find_court_conflict
    calls = []

    def miss_first_check(*args, **kwargs):
        calls.append(1)
        if len(calls) == 1:
            return None
        return real_find(*args, **kwargs)

    monkeypatch.setattr(reservation_crud, "find_court_conflict", miss_first_check)

    with pytest.raises(ConflictError) as exc_info:
        reserve(db, player_b, court, at(10))

    assert exc_info.value.conflict["id"] == existing.id
    assert db.query(Reservation).count() == 1


def test_owner_confirms_and_registers_payment(db, player, arena_owner, court, at):
    reservation = reserve(db, player, court, at(10))

    confirmed = router.confirm_reservation(
        reservation_id=reservation.id, db=db, current_user=arena_owner
    )
    assert confirmed.status == ReservationStatus.CONFIRMED

    paid = router.pay_reservation(reservation_id=reservation.id, db=db, current_user=arena_owner)
    assert paid.payment_status == PaymentStatus.PAID

    with pytest.raises(ConflictError):
        router.pay_reservation(reservation_id=reservation.id, db=db, current_user=arena_owner)


def test_pay_before_confirm_is_rejected(db, player, arena_owner, court, at):
    reservation = reserve(db, player, court, at(10))

    with pytest.raises(ConflictError) as exc_info:
        router.pay_reservation(reservation_id=reservation.id, db=db, current_user=arena_owner)
    assert exc_info.value.conflict["current"] == "PENDING"


def test_player_cannot_confirm_own_reservation(db, player, court, at):
    reservation = reserve(db, player, court, at(10))

    with pytest.raises(AuthorizationError):
        router.confirm_reservation(reservation_id=reservation.id, db=db, current_user=player)


def test_other_arena_owner_cannot_touch_reservation(db, player, other_arena_owner, court, at):
    reservation = reserve(db, player, court, at(10))

    with pytest.raises(AuthorizationError):
        router.cancel_reservation(
            reservation_id=reservation.id, db=db, current_user=other_arena_owner
        )
    with pytest.raises(AuthorizationError):
        router.read_reservation(
            reservation_id=reservation.id, db=db, current_user=other_arena_owner
        )


def test_cancel_twice_is_rejected(db, player, court, at):
    reservation = reserve(db, player, court, at(10))
    router.cancel_reservation(reservation_id=reservation.id, db=db, current_user=player)

    with pytest.raises(ConflictError):
        router.cancel_reservation(reservation_id=reservation.id, db=db, current_user=player)


def test_agenda_is_scoped_by_role(
    db, player, player_b, arena_owner, other_arena_owner, admin, court, at
):
    reserve(db, player, court, at(10))
    reserve(db, player_b, court, at(12))
    reserve(db, player_b, court, at(10) + timedelta(days=1))

    def agenda(user, **filters):
        return router.read_agenda(db=db, current_user=user, **filters)

    assert len(agenda(admin)) == 3
    assert len(agenda(arena_owner)) == 3
    assert agenda(other_arena_owner) == []
    assert [r.user_id for r in agenda(player)] == [player.id]

    day = at(10).date()
    assert len(agenda(arena_owner, target_date=day)) == 2
    assert len(agenda(arena_owner, court_id=court.id, target_date=day)) == 2
    assert len(agenda(arena_owner, arena_id=court.arena_id + 1)) == 0


def test_my_reservations(db, player, player_b, court, at):
    reserve(db, player, court, at(10))
    reserve(db, player_b, court, at(12))

    mine = router.read_my_reservations(db=db, current_user=player_b)
    assert [r.user_id for r in mine] == [player_b.id]
