from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Optional

from app.models.user import UserRole


class CamelModel(BaseModel):
    """Base de los schemas: JSON en camelCase, acepta también snake_case."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


def strip_timezone(value: Optional[datetime]) -> Optional[datetime]:
    # Todas las horas se manejan como hora local sin zona
    if value is not None and value.tzinfo is not None:
        return value.replace(tzinfo=None)
    return value


class PublicUser(CamelModel):
    """Datos públicos de un usuario: nunca incluye el email."""

    id: int
    name: str
    role: UserRole
