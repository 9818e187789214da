"""
Política de acceso basada en roles y en la propiedad del recurso.

Toda decisión de autorización pasa por `permissions_for(user, resource)`, que
devuelve el conjunto de acciones permitidas. Los routers solo preguntan si la
acción que necesitan está en ese conjunto.
"""

from typing import FrozenSet, Optional

from app.exceptions import AuthorizationError
from app.models.arena import Arena
from app.models.court import Court
from app.models.match import Match
from app.models.reservation import Reservation
from app.models.user import UserRole

# Acciones globales
ARENA_CREATE = "arena:create"
RESERVATION_CREATE = "reservation:create"
MATCH_CREATE_ANY = "match:create:any"

# Arenas y canchas
ARENA_VIEW = "arena:view"
ARENA_UPDATE = "arena:update"
COURT_CREATE = "court:create"
COURT_VIEW = "court:view"
COURT_UPDATE = "court:update"
MATCH_CREATE = "match:create"

# Reservas
RESERVATION_VIEW = "reservation:view"
RESERVATION_CONFIRM = "reservation:confirm"
RESERVATION_PAY = "reservation:pay"
RESERVATION_CANCEL = "reservation:cancel"

# Partidos
MATCH_VIEW = "match:view"
MATCH_JOIN = "match:join"
MATCH_START = "match:start"
MATCH_FINISH = "match:finish"
MATCH_CANCEL = "match:cancel"
MATCH_UNCANCEL = "match:uncancel"
MATCH_EXPIRE = "match:expire"
MATCH_STATS_OFFICIAL = "match:stats:official"
MATCH_STATS_UNOFFICIAL = "match:stats:unofficial"

MATCH_MANAGEMENT = frozenset(
    {
        MATCH_START,
        MATCH_FINISH,
        MATCH_CANCEL,
        MATCH_UNCANCEL,
        MATCH_EXPIRE,
        MATCH_STATS_OFFICIAL,
    }
)

MATCH_ORGANIZER_ROLES = (UserRole.OWNER, UserRole.ARENA_OWNER, UserRole.ADMIN)
ARENA_MANAGER_ROLES = (UserRole.ARENA_OWNER, UserRole.ADMIN)


def is_admin(user) -> bool:
    return user is not None and user.role == UserRole.ADMIN


def owns_arena(user, arena: Optional[Arena]) -> bool:
    return (
        user is not None
        and arena is not None
        and user.role == UserRole.ARENA_OWNER
        and arena.owner_id == user.id
    )


def owns_court(user, court: Optional[Court]) -> bool:
    return court is not None and owns_arena(user, court.arena)


def _global_permissions(user) -> set:
    perms = {RESERVATION_CREATE}
    if user.role in ARENA_MANAGER_ROLES:
        perms.add(ARENA_CREATE)
    if user.role in MATCH_ORGANIZER_ROLES:
        perms.add(MATCH_CREATE_ANY)
    return perms


def _arena_permissions(user, arena: Arena) -> set:
    perms = {ARENA_VIEW}
    if is_admin(user) or owns_arena(user, arena):
        perms |= {ARENA_UPDATE, COURT_CREATE}
    return perms


def _court_permissions(user, court: Court) -> set:
    perms = {COURT_VIEW, RESERVATION_CREATE}
    if is_admin(user) or owns_court(user, court):
        perms |= {COURT_UPDATE, MATCH_CREATE}
    elif user.role == UserRole.OWNER:
        # Los organizadores pueden armar partidos en cualquier cancha
        perms.add(MATCH_CREATE)
    return perms


def _reservation_permissions(user, reservation: Reservation) -> set:
    perms = set()
    if is_admin(user) or owns_court(user, reservation.court):
        perms |= {
            RESERVATION_VIEW,
            RESERVATION_CONFIRM,
            RESERVATION_PAY,
            RESERVATION_CANCEL,
        }
    if reservation.user_id == user.id:
        perms |= {RESERVATION_VIEW, RESERVATION_CANCEL}
    return perms


def _match_permissions(user, match: Match) -> set:
    perms = {MATCH_VIEW, MATCH_JOIN}
    if is_admin(user) or match.organizer_id == user.id or owns_court(user, match.court):
        perms |= MATCH_MANAGEMENT
    if match.has_player(user.id):
        perms.add(MATCH_STATS_UNOFFICIAL)
    return perms


def permissions_for(user, resource=None) -> FrozenSet[str]:
    """
    Resuelve las acciones que `user` puede ejecutar sobre `resource`.

    Args:
        user: Usuario autenticado (None para accesos públicos)
        resource: Arena, Court, Reservation, Match o None para acciones globales

    Returns:
        FrozenSet[str]: Acciones permitidas
    """
    if user is None:
        # Lecturas públicas: directorio de arenas y disponibilidad
        if isinstance(resource, Arena):
            return frozenset({ARENA_VIEW})
        if isinstance(resource, Court):
            return frozenset({COURT_VIEW})
        return frozenset()

    if resource is None:
        perms = _global_permissions(user)
    elif isinstance(resource, Arena):
        perms = _arena_permissions(user, resource)
    elif isinstance(resource, Court):
        perms = _court_permissions(user, resource)
    elif isinstance(resource, Reservation):
        perms = _reservation_permissions(user, resource)
    elif isinstance(resource, Match):
        perms = _match_permissions(user, resource)
    else:
        raise TypeError(f"Unsupported resource type: {type(resource).__name__}")

    return frozenset(perms)


def can(user, action: str, resource=None) -> bool:
    return action in permissions_for(user, resource)


def require_permission(user, action: str, resource=None, message: Optional[str] = None):
    if not can(user, action, resource):
        raise AuthorizationError(message or "Not enough permissions")
