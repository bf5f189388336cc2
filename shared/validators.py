"""
Input validators — framework-agnostic, pure functions.
"""

from __future__ import annotations

import re
from typing import Any, Optional

import validators as _validators
from bson import ObjectId

_USERNAME_RE = re.compile(r"^[A-Za-z0-9_.-]{3,32}$")


def validate_email(email: Optional[str]) -> bool:
    """Return True if *email* is a syntactically valid address."""
    if not email:
        return False
    return bool(_validators.email(email))


def validate_username(username: str) -> bool:
    """3–32 characters of letters, digits, ``_``, ``.`` or ``-``."""
    return bool(_USERNAME_RE.match(username))


def validate_image_url(url: str) -> bool:
    """Return True if *url* is an absolute HTTP/S URL."""
    return bool(_validators.url(url)) and url.lower().startswith(("http://", "https://"))


def to_object_id(value: Any) -> Optional[ObjectId]:
    """Coerce *value* to an ObjectId, or ``None`` when it is not a valid id."""
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None
