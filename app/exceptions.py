"""
Errores de dominio de la API.

Cada error lleva el código HTTP con el que se responde; los handlers registrados
en app.main los convierten en respuestas JSON con la forma {"detail": ..., **extra}.
"""

from typing import Any, Dict, Optional


class AppError(Exception):
    status_code = 500
    default_message = "Internal Server Error"

    def __init__(self, message: Optional[str] = None, **extra: Any):
        self.message = message or self.default_message
        self.extra: Dict[str, Any] = extra
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message, **self.extra}


class ValidationError(AppError):
    """Entrada mal formada o incompleta. Siempre indica el campo que falló."""

    status_code = 400
    default_message = "Invalid data"

    def __init__(self, message: Optional[str] = None, field: Optional[str] = None, **extra):
        if field is not None:
            extra.setdefault("errors", [{"field": field, "message": message}])
        super().__init__(message, **extra)


class AuthenticationError(AppError):
    status_code = 401
    default_message = "Could not validate credentials"


class AuthorizationError(AppError):
    status_code = 403
    default_message = "Not enough permissions"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class ConflictError(AppError):
    """
    Conflicto de estado o de horario.

    `conflict` es el detalle legible por máquina: tipo ("reservation", "match",
    "status", "capacity") y la entidad que bloquea la operación.
    """

    status_code = 409
    default_message = "Conflict"

    def __init__(self, message: Optional[str] = None, conflict: Optional[dict] = None):
        super().__init__(message, conflict=conflict or {})

    @property
    def conflict(self) -> dict:
        return self.extra["conflict"]
