"""
Random code and token generators — pure, side-effect-free functions.

All generators use the ``secrets`` module.
"""

from __future__ import annotations

import secrets
import string


def generate_otp_code(length: int = 6) -> str:
    """Generate a cryptographically secure numeric OTP.

    Args:
        length: Number of digits (default 6).

    Returns:
        String of random decimal digits (leading zeros allowed).
    """
    return "".join(secrets.choice(string.digits) for _ in range(length))


def generate_reset_token(num_bytes: int = 32) -> str:
    """Generate a hex-encoded random token (256 bits by default)."""
    return secrets.token_hex(num_bytes)


def generate_random_string(length: int) -> str:
    """Random lowercase alphanumeric string, used for username suffixes."""
    alphabet = string.ascii_lowercase + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(length))


def generate_username(display_name: str, suffix_length: int = 7) -> str:
    """Build a unique-ish username from a display name.

    Spaces are removed and the result lower-cased before a random suffix is
    appended, e.g. ``"John Doe"`` → ``"johndoe8a3b7f2"``.
    """
    base = "".join(display_name.split()).lower() or "user"
    return base + generate_random_string(suffix_length)


def generate_unusable_password(length: int = 16) -> str:
    """Random password for accounts that only ever sign in through Google."""
    return secrets.token_urlsafe(length)
