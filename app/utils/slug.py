"""Generación de slugs URL-safe para arenas."""

import re
import unicodedata


def slugify(text: str) -> str:
    """
    Convierte un texto en slug (minúsculas, guiones, sin acentos).

    Args:
        text: Texto a convertir (ej: "Arena São Jorge")

    Returns:
        str: Slug (ej: "arena-sao-jorge")
    """
    text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    text = text.lower().strip()
    text = re.sub(r"[^\w\s-]", "", text)
    text = re.sub(r"[\s_]+", "-", text)
    text = re.sub(r"-+", "-", text)
    return text.strip("-") or "arena"
