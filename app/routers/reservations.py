from datetime import date, datetime
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.crud import reservation as crud
from app.crud.court import get_court
from app.exceptions import NotFoundError
from app.schemas.reservation import ReservationCreate, ReservationResponse
from app.services.auth import get_current_user
from app.models.user import User
from app.utils.access_policy import (
    RESERVATION_CANCEL,
    RESERVATION_CONFIRM,
    RESERVATION_CREATE,
    RESERVATION_PAY,
    RESERVATION_VIEW,
    require_permission,
)

router = APIRouter()


@router.post("/", response_model=ReservationResponse, status_code=status.HTTP_201_CREATED)
def create_reservation(
    reservation: ReservationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    court = get_court(db, reservation.court_id)
    if court is None:
        raise NotFoundError("Court not found")

    require_permission(current_user, RESERVATION_CREATE, court)
    return crud.create_reservation(db, reservation, current_user.id, now=datetime.now())


@router.get("/", response_model=List[ReservationResponse])
def read_agenda(
    target_date: Annotated[Optional[date], Query(alias="date")] = None,
    arena_id: Annotated[Optional[int], Query(alias="arenaId")] = None,
    court_id: Annotated[Optional[int], Query(alias="courtId")] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Agenda de reservas.

    admin ve todas, arena_owner las de sus arenas y el resto solo las propias.
    """
    return crud.get_reservations(
        db,
        current_user,
        target_date=target_date,
        arena_id=arena_id,
        court_id=court_id,
        skip=skip,
        limit=limit,
    )


@router.get("/me", response_model=List[ReservationResponse])
def read_my_reservations(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return crud.get_user_reservations(db, current_user.id, skip=skip, limit=limit)


def _get_reservation_or_404(db: Session, reservation_id: int):
    reservation = crud.get_reservation(db, reservation_id)
    if reservation is None:
        raise NotFoundError("Reservation not found")
    return reservation


@router.get("/{reservation_id}", response_model=ReservationResponse)
def read_reservation(
    reservation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    reservation = _get_reservation_or_404(db, reservation_id)
    require_permission(current_user, RESERVATION_VIEW, reservation)
    return reservation


def _transition(db: Session, current_user: User, reservation_id: int, action: str, permission: str, message: str):
    reservation = _get_reservation_or_404(db, reservation_id)
    require_permission(current_user, permission, reservation, message=message)
    return crud.transition_reservation(db, reservation, action)


@router.patch("/{reservation_id}/confirm", response_model=ReservationResponse)
def confirm_reservation(
    reservation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _transition(
        db,
        current_user,
        reservation_id,
        "confirm",
        RESERVATION_CONFIRM,
        "Only the arena owner can confirm reservations",
    )


@router.patch("/{reservation_id}/pay", response_model=ReservationResponse)
def pay_reservation(
    reservation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _transition(
        db,
        current_user,
        reservation_id,
        "pay",
        RESERVATION_PAY,
        "Only the arena owner can register payments",
    )


@router.patch("/{reservation_id}/cancel", response_model=ReservationResponse)
def cancel_reservation(
    reservation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _transition(
        db,
        current_user,
        reservation_id,
        "cancel",
        RESERVATION_CANCEL,
        "Not allowed to cancel this reservation",
    )
