"""
Tests de partidos: conflictos con reservas, presencias, transiciones y estadísticas
"""
from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from app.exceptions import AuthorizationError, ConflictError, NotFoundError
from app.models.match import Match, MatchKind, MatchPlayerStat, MatchStatus
from app.routers import matches as router
from app.routers import reservations as reservations_router
from app.schemas.match import MatchCreate, StatEvent
from app.schemas.reservation import ReservationCreate


def create_match(db, user, court, date, **kwargs):
    return router.create_match(
        match=MatchCreate(title="Fut de quinta", court_id=court.id, date=date, **kwargs),
        db=db,
        current_user=user,
    )


def reserve(db, user, court, start, minutes=60):
    return reservations_router.create_reservation(
        reservation=ReservationCreate(
            court_id=court.id, start_at=start, duration_minutes=minutes
        ),
        db=db,
        current_user=user,
    )


def insert_match(db, court, organizer, date, **kwargs):
    """Partido cargado directo en la base, sin pasar por las validaciones de alta"""
    kwargs.setdefault("status", MatchStatus.SCHEDULED)
    match = Match(
        title="Pelada antiga",
        court_id=court.id,
        organizer_id=organizer.id,
        date=date,
        **kwargs,
    )
    db.add(match)
    db.commit()
    db.refresh(match)
    return match


def test_create_match_defaults(db, organizer, court, at):
    match = create_match(db, organizer, court, at(18))

    assert match.status == MatchStatus.SCHEDULED
    assert match.kind == MatchKind.BOOKING
    assert match.max_players == 14
    assert match.price_per_player == 30
    assert match.organizer_id == organizer.id


def test_regular_user_cannot_create_matches(db, player, court, at):
    with pytest.raises(AuthorizationError):
        create_match(db, player, court, at(18))


def test_arena_owner_only_on_own_courts(db, arena_owner, other_arena_owner, court, at):
    create_match(db, arena_owner, court, at(18))
    with pytest.raises(AuthorizationError):
        create_match(db, other_arena_owner, court, at(20))


def test_unknown_court(db, organizer, at):
    with pytest.raises(NotFoundError):
        router.create_match(
            match=MatchCreate(title="Sem quadra", court_id=999, date=at(18)),
            db=db,
            current_user=organizer,
        )


def test_reservation_blocks_match(db, player, organizer, court, at):
    reservation = reserve(db, player, court, at(10))

    with pytest.raises(ConflictError) as exc_info:
        create_match(db, organizer, court, at(10, 30))

    conflict = exc_info.value.conflict
    assert conflict["type"] == "reservation"
    assert conflict["id"] == reservation.id
    assert db.query(Match).count() == 0


def test_match_blocks_reservation(db, player, organizer, court, at):
    match = create_match(db, organizer, court, at(18), kind=MatchKind.PELADA)

    with pytest.raises(ConflictError) as exc_info:
        reserve(db, player, court, at(17, 30))

    conflict = exc_info.value.conflict
    assert conflict["type"] == "match"
    assert conflict["id"] == match.id
    assert conflict["title"] == "Fut de quinta"


def test_matches_cannot_overlap(db, organizer, court, at):
    create_match(db, organizer, court, at(18))

    with pytest.raises(ConflictError) as exc_info:
        create_match(db, organizer, court, at(18, 30))
    assert exc_info.value.conflict["type"] == "match"

    # Termina a las 19:00, el siguiente puede empezar justo ahí
    create_match(db, organizer, court, at(19))
    assert db.query(Match).count() == 2


def test_reservation_reported_before_match(db, player, organizer, court, at):
    create_match(db, organizer, court, at(12))
    reserve(db, player, court, at(13))

    with pytest.raises(ConflictError) as exc_info:
        reserve(db, player, court, at(12, 30), minutes=90)
    assert exc_info.value.conflict["type"] == "reservation"


def test_finished_match_does_not_block(db, organizer, court, at):
    insert_match(db, court, organizer, at(18), status=MatchStatus.FINISHED)
    create_match(db, organizer, court, at(18))
    assert db.query(Match).count() == 2


def test_cancel_reservation_then_create_match(db, player, organizer, court, at):
    reservation = reserve(db, player, court, at(10))
    with pytest.raises(ConflictError):
        create_match(db, organizer, court, at(10, 30))

    reservations_router.cancel_reservation(
        reservation_id=reservation.id, db=db, current_user=player
    )
    match = create_match(db, organizer, court, at(10, 30))
    assert match.status == MatchStatus.SCHEDULED


def test_join_is_idempotent(db, organizer, player, court, at):
    match = create_match(db, organizer, court, at(18))

    router.join_match(match_id=match.id, db=db, current_user=player)
    joined = router.join_match(match_id=match.id, db=db, current_user=player)

    assert joined.presence_count == 1
    assert joined.has_player(player.id)


def test_capacity_is_enforced(db, organizer, player, player_b, player_c, court, at):
    match = create_match(db, organizer, court, at(18), max_players=2)

    router.join_match(match_id=match.id, db=db, current_user=player)
    router.join_match(match_id=match.id, db=db, current_user=player_b)

    with pytest.raises(ConflictError) as exc_info:
        router.join_match(match_id=match.id, db=db, current_user=player_c)
    assert str(exc_info.value) == "Match is full"

    router.leave_match(match_id=match.id, db=db, current_user=player_b)
    joined = router.join_match(match_id=match.id, db=db, current_user=player_c)

    assert sorted(p.user_id for p in joined.presences) == sorted([player.id, player_c.id])


def test_leave_without_presence_is_a_noop(db, organizer, player, court, at):
    match = create_match(db, organizer, court, at(18))
    result = router.unjoin_match(match_id=match.id, db=db, current_user=player)
    assert result.presence_count == 0


def test_cannot_join_canceled_match(db, organizer, player, court, at):
    match = create_match(db, organizer, court, at(18))
    router.cancel_match(match_id=match.id, db=db, current_user=organizer)

    with pytest.raises(ConflictError):
        router.join_match(match_id=match.id, db=db, current_user=player)


def test_lifecycle_by_organizer(db, organizer, court, at):
    match = create_match(db, organizer, court, at(18))

    live = router.start_match(match_id=match.id, db=db, current_user=organizer)
    assert live.status == MatchStatus.LIVE
    assert live.started_at is not None

    finished = router.finish_match(match_id=match.id, db=db, current_user=organizer)
    assert finished.status == MatchStatus.FINISHED
    assert finished.finished_at is not None

    with pytest.raises(ConflictError):
        router.cancel_match(match_id=match.id, db=db, current_user=organizer)


def test_arena_owner_can_manage_match_on_own_court(db, organizer, arena_owner, court, at):
    match = create_match(db, organizer, court, at(18))
    canceled = router.cancel_match(match_id=match.id, db=db, current_user=arena_owner)
    assert canceled.status == MatchStatus.CANCELED


def test_players_cannot_manage_match(db, organizer, player, other_arena_owner, court, at):
    match = create_match(db, organizer, court, at(18))

    for user in (player, other_arena_owner):
        with pytest.raises(AuthorizationError):
            router.start_match(match_id=match.id, db=db, current_user=user)


def test_uncancel_rechecks_the_slot(db, organizer, player, court, at):
    match = create_match(db, organizer, court, at(10))
    router.cancel_match(match_id=match.id, db=db, current_user=organizer)

    # El horario quedó libre y alguien lo reservó
    reservation = reserve(db, player, court, at(10))

    with pytest.raises(ConflictError) as exc_info:
        router.uncancel_match(match_id=match.id, db=db, current_user=organizer)
    assert exc_info.value.conflict["id"] == reservation.id

    db.refresh(match)
    assert match.status == MatchStatus.CANCELED


def test_uncancel_when_slot_is_free(db, organizer, court, at):
    match = create_match(db, organizer, court, at(10))
    router.cancel_match(match_id=match.id, db=db, current_user=organizer)

    restored = router.uncancel_match(match_id=match.id, db=db, current_user=organizer)
    assert restored.status == MatchStatus.SCHEDULED
    assert restored.canceled_at is None


def test_manual_expire(db, organizer, court, at):
    match = create_match(db, organizer, court, at(10))
    expired = router.expire_match(match_id=match.id, db=db, current_user=organizer)
    assert expired.status == MatchStatus.EXPIRED
    assert expired.canceled_at is not None


# Vencimiento automático


def test_under_subscribed_match_expires_on_read(db, organizer, player, court):
    match = insert_match(
        db, court, organizer, datetime.now() - timedelta(minutes=31), min_players=4
    )

    read = router.read_match(match_id=match.id, db=db, current_user=player)
    assert read.status == MatchStatus.EXPIRED
    assert read.canceled_at is not None

    # Quedó persistido
    db.expire_all()
    assert db.get(Match, match.id).status == MatchStatus.EXPIRED


def test_match_within_grace_period_stays_scheduled(db, organizer, player, court):
    match = insert_match(
        db, court, organizer, datetime.now() - timedelta(minutes=29), min_players=4
    )

    read = router.read_match(match_id=match.id, db=db, current_user=player)
    assert read.status == MatchStatus.SCHEDULED
    assert read.canceled_at is None


def test_failed_expiration_write_does_not_break_the_read(db, organizer, player, court, monkeypatch):
    match = insert_match(
        db, court, organizer, datetime.now() - timedelta(minutes=31), min_players=4
    )

    def failing_commit():
        raise OperationalError("UPDATE matches", {}, Exception("database is locked"))

    monkeypatch.setattr(db, "commit", failing_commit)

    read = router.read_match(match_id=match.id, db=db, current_user=player)
    assert read.status == MatchStatus.SCHEDULED
    assert read.canceled_at is None


def test_expired_candidate_does_not_block_reservation(db, organizer, player, court):
    start = datetime.now().replace(second=0, microsecond=0) - timedelta(minutes=40)
    match = insert_match(db, court, organizer, start, min_players=4)

    reservation = reserve(db, player, court, start + timedelta(minutes=30), minutes=30)
    assert reservation.id is not None

    db.refresh(match)
    assert match.status == MatchStatus.EXPIRED


def test_list_applies_expiration_and_role_scope(
    db, organizer, arena_owner, other_arena_owner, player, court, at
):
    insert_match(db, court, organizer, datetime.now() - timedelta(hours=2), min_players=2)
    create_match(db, organizer, court, at(18))

    listed = router.read_matches(db=db, current_user=player)
    assert sorted(m.status for m in listed) == sorted(
        [MatchStatus.EXPIRED, MatchStatus.SCHEDULED]
    )

    scheduled = router.read_matches(
        match_status=MatchStatus.SCHEDULED, db=db, current_user=organizer
    )
    assert len(scheduled) == 1

    assert len(router.read_matches(db=db, current_user=arena_owner)) == 2
    assert router.read_matches(db=db, current_user=other_arena_owner) == []


def test_organizer_sees_only_own_matches(db, organizer, arena_owner, court, at):
    create_match(db, organizer, court, at(18))
    create_match(db, arena_owner, court, at(20))

    listed = router.read_matches(db=db, current_user=organizer)
    assert [m.organizer_id for m in listed] == [organizer.id]



def test_status_filter_is_applied_before_paging(db, organizer, court, at):
    past = datetime.now().replace(second=0, microsecond=0) - timedelta(hours=3)
    for i in range(3):
        insert_match(db, court, organizer, past + timedelta(minutes=10 * i), min_players=4)
    upcoming = create_match(db, organizer, court, at(18))

    scheduled = router.read_matches(
        match_status=MatchStatus.SCHEDULED, limit=1, db=db, current_user=organizer
    )
    assert [m.id for m in scheduled] == [upcoming.id]

    expired = router.read_matches(
        match_status=MatchStatus.EXPIRED, skip=1, limit=2, db=db, current_user=organizer
    )
    assert len(expired) == 2
    assert all(m.status == MatchStatus.EXPIRED for m in expired)


# Estadísticas


def stat_event(user, type_="goal", mode="unofficial", delta=1):
    return StatEvent(user_id=user.id, type=type_, mode=mode, delta=delta)


def test_unofficial_stats_by_present_player(db, organizer, player, court, at):
    match = create_match(db, organizer, court, at(18))
    router.join_match(match_id=match.id, db=db, current_user=player)

    stat = router.record_stat_event(
        match_id=match.id, event=stat_event(player), db=db, current_user=player
    )
    assert stat.goals_unofficial == 1

    for _ in range(2):
        stat = router.record_stat_event(
            match_id=match.id, event=stat_event(player, delta=-1), db=db, current_user=player
        )
    assert stat.goals_unofficial == 0
    assert db.query(MatchPlayerStat).count() == 1


def test_unofficial_stats_require_presence(db, organizer, player, court, at):
    match = create_match(db, organizer, court, at(18))

    with pytest.raises(AuthorizationError):
        router.record_stat_event(
            match_id=match.id, event=stat_event(player), db=db, current_user=player
        )


def test_unofficial_stats_only_about_yourself(db, organizer, player, player_b, court, at):
    match = create_match(db, organizer, court, at(18))
    router.join_match(match_id=match.id, db=db, current_user=player)
    router.join_match(match_id=match.id, db=db, current_user=player_b)

    with pytest.raises(AuthorizationError):
        router.record_stat_event(
            match_id=match.id, event=stat_event(player_b), db=db, current_user=player
        )


def test_official_stats(db, organizer, player, court, at):
    match = create_match(db, organizer, court, at(18))

    stat = router.record_stat_event(
        match_id=match.id,
        event=stat_event(player, type_="assist", mode="official"),
        db=db,
        current_user=organizer,
    )
    assert stat.assists_official == 1

    with pytest.raises(AuthorizationError):
        router.record_stat_event(
            match_id=match.id,
            event=stat_event(player, mode="official"),
            db=db,
            current_user=player,
        )

    stats = router.read_match_stats(match_id=match.id, db=db, current_user=player)
    assert [(s.user_id, s.assists_official) for s in stats] == [(player.id, 1)]


def test_official_stats_for_unknown_user(db, organizer, court, at):
    match = create_match(db, organizer, court, at(18))
    ghost = StatEvent(user_id=999, type="goal", mode="official", delta=1)

    with pytest.raises(NotFoundError):
        router.record_stat_event(match_id=match.id, event=ghost, db=db, current_user=organizer)
