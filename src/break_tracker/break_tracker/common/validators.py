from __future__ import annotations

import re
from typing import Optional

from ..core.exceptions import ValidationError

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_email(value: Optional[str], field_name: str = "Email") -> Optional[str]:
    """Email is optional; when given it must look like one."""
    v = (value or "").strip()
    if not v:
        return None
    if not _EMAIL_RE.match(v):
        raise ValidationError(f"{field_name} is not a valid address")
    return v.lower()
