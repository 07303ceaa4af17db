"""
Confirmation code generation.

Codes are the first 8 hex characters of the SHA-256 digest of a random UUID.
Short codes can collide (about 1 in 16**8); the store's unique constraint on
the code column is what detects that, and the booking engine retries.
"""

import hashlib
import re
import uuid

CODE_LENGTH = 8

_CODE_PATTERN = re.compile(rf"^[0-9a-f]{{{CODE_LENGTH}}}$")


def generate_confirmation_code() -> str:
    """Return a fresh, non-sequential 8-character lowercase hex code."""
    raw_id = str(uuid.uuid4())
    return hashlib.sha256(raw_id.encode("ascii")).hexdigest()[:CODE_LENGTH]


def is_confirmation_code(text: str) -> bool:
    """Check that text has the shape of a confirmation code."""
    return bool(_CODE_PATTERN.match(text))
