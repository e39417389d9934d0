from __future__ import annotations

import re

from ..core.exceptions import ErrorKind, ValidationError

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} est obligatoire", kind=ErrorKind.MISSING_FIELD)
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} doit contenir au moins {min_len} caractères")
    return value


def require_email(value: str) -> str:
    value = require_non_empty(value, "Email").lower()
    if not _EMAIL_RE.match(value):
        raise ValidationError("Veuillez saisir une adresse email valide")
    return value
