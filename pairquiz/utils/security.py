"""Code and token helpers: session codes, voucher codes, participant tokens."""

from __future__ import annotations

import hashlib
import secrets
import string

CODE_ALPHABET = string.ascii_uppercase + string.digits
TOKEN_BYTES = 24
VOUCHER_SUFFIX_LENGTH = 6


def generate_code(length: int) -> str:
    """Return ``length`` random characters from ``A-Z0-9``."""
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def normalise_code(code: str) -> str:
    """Session codes are case-insensitive and rendered uppercase."""
    return code.strip().upper()


def generate_voucher_code(prefix: str) -> str:
    return f"{prefix}-{generate_code(VOUCHER_SUFFIX_LENGTH)}"


def generate_token() -> str:
    """Generate a URL-safe participant token."""
    return secrets.token_urlsafe(TOKEN_BYTES)


def hash_token(token: str, salt: str) -> str:
    """Create deterministic token hash via sha256(token + salt)."""
    payload = f"{token}{salt}".encode("utf-8")
    return hashlib.sha256(payload).hexdigest()
