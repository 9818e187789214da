from datetime import datetime
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.crud import match as crud
from app.crud.court import get_court
from app.exceptions import AuthorizationError, NotFoundError
from app.schemas.match import MatchCreate, MatchResponse, PlayerStatResponse, StatEvent
from app.services.auth import get_current_user
from app.models.match import MatchStatus
from app.models.user import User
from app.utils import access_policy as policy

router = APIRouter()

TRANSITION_PERMISSIONS = {
    "start": policy.MATCH_START,
    "finish": policy.MATCH_FINISH,
    "cancel": policy.MATCH_CANCEL,
    "uncancel": policy.MATCH_UNCANCEL,
    "expire": policy.MATCH_EXPIRE,
}


def _get_match_or_404(db: Session, match_id: int, now: datetime):
    match = crud.get_match_for_read(db, match_id, now)
    if match is None:
        raise NotFoundError("Match not found")
    return match


@router.get("/", response_model=List[MatchResponse])
def read_matches(
    match_status: Annotated[Optional[MatchStatus], Query(alias="status")] = None,
    court_id: Annotated[Optional[int], Query(alias="courtId")] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return crud.get_matches_for_user(
        db,
        current_user,
        datetime.now(),
        status=match_status,
        court_id=court_id,
        skip=skip,
        limit=limit,
    )


@router.get("/{match_id}", response_model=MatchResponse)
def read_match(
    match_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    match = _get_match_or_404(db, match_id, datetime.now())
    policy.require_permission(current_user, policy.MATCH_VIEW, match)
    return match


@router.post("/", response_model=MatchResponse, status_code=status.HTTP_201_CREATED)
def create_match(
    match: MatchCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    policy.require_permission(
        current_user, policy.MATCH_CREATE_ANY, message="Only organizers can create matches"
    )

    court = get_court(db, match.court_id)
    if court is None:
        raise NotFoundError("Court not found")

    policy.require_permission(
        current_user,
        policy.MATCH_CREATE,
        court,
        message="Can only create matches on courts of your own arenas",
    )
    return crud.create_match(db, match, current_user.id, datetime.now())


@router.post("/{match_id}/join", response_model=MatchResponse)
def join_match(
    match_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    match = _get_match_or_404(db, match_id, datetime.now())
    policy.require_permission(current_user, policy.MATCH_JOIN, match)
    return crud.join_match(db, match, current_user.id)


@router.delete("/{match_id}/join", response_model=MatchResponse)
def unjoin_match(
    match_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    match = _get_match_or_404(db, match_id, datetime.now())
    return crud.leave_match(db, match, current_user.id)


@router.post("/{match_id}/leave", response_model=MatchResponse)
def leave_match(
    match_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    match = _get_match_or_404(db, match_id, datetime.now())
    return crud.leave_match(db, match, current_user.id)


def _transition(db: Session, current_user: User, match_id: int, action: str):
    now = datetime.now()
    match = _get_match_or_404(db, match_id, now)
    policy.require_permission(
        current_user,
        TRANSITION_PERMISSIONS[action],
        match,
        message="Only the organizer or the arena owner can manage this match",
    )
    return crud.transition_match(db, match, action, now)


@router.patch("/{match_id}/start", response_model=MatchResponse)
def start_match(
    match_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _transition(db, current_user, match_id, "start")


@router.patch("/{match_id}/finish", response_model=MatchResponse)
def finish_match(
    match_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _transition(db, current_user, match_id, "finish")


@router.patch("/{match_id}/cancel", response_model=MatchResponse)
def cancel_match(
    match_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _transition(db, current_user, match_id, "cancel")


@router.patch("/{match_id}/uncancel", response_model=MatchResponse)
def uncancel_match(
    match_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _transition(db, current_user, match_id, "uncancel")


@router.patch("/{match_id}/expire", response_model=MatchResponse)
def expire_match(
    match_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _transition(db, current_user, match_id, "expire")


@router.get("/{match_id}/stats", response_model=List[PlayerStatResponse])
def read_match_stats(
    match_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    match = _get_match_or_404(db, match_id, datetime.now())
    policy.require_permission(current_user, policy.MATCH_VIEW, match)
    return crud.get_match_stats(db, match.id)


@router.post("/{match_id}/stats/event", response_model=PlayerStatResponse)
def record_stat_event(
    match_id: int,
    event: StatEvent,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Suma o resta un gol o asistencia a un jugador.

    Las estadísticas oficiales las carga el organizador, el dueño de la arena o
    un admin. Las no oficiales solo el propio jugador, y solo si confirmó
    presencia en el partido.
    """
    match = _get_match_or_404(db, match_id, datetime.now())

    if event.mode == "official":
        policy.require_permission(
            current_user,
            policy.MATCH_STATS_OFFICIAL,
            match,
            message="Only the organizer or the arena owner can record official stats",
        )
        if db.query(User).filter(User.id == event.user_id).first() is None:
            raise NotFoundError("User not found")
    else:
        if event.user_id != current_user.id:
            raise AuthorizationError("Unofficial stats can only be recorded for yourself")
        policy.require_permission(
            current_user,
            policy.MATCH_STATS_UNOFFICIAL,
            match,
            message="Only confirmed players can record unofficial stats",
        )

    return crud.record_stat_event(db, match, event)
