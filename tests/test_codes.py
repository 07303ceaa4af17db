"""
Tests for confirmation code generation.
"""

import hashlib
import uuid

from dayslot.domain import codes
from dayslot.domain.codes import CODE_LENGTH, generate_confirmation_code, is_confirmation_code


def test_code_is_eight_lowercase_hex_characters():
    code = generate_confirmation_code()

    assert len(code) == CODE_LENGTH == 8
    assert is_confirmation_code(code)


def test_code_is_hash_prefix_of_random_uuid(monkeypatch):
    """The code is the SHA-256 prefix of a fresh UUID4."""
    fixed = uuid.UUID("12345678-1234-4234-8234-123456789abc")
    monkeypatch.setattr(codes.uuid, "uuid4", lambda: fixed)

    expected = hashlib.sha256(str(fixed).encode("ascii")).hexdigest()[:8]

    assert generate_confirmation_code() == expected


def test_codes_do_not_repeat():
    generated = {generate_confirmation_code() for _ in range(200)}

    assert len(generated) == 200


def test_is_confirmation_code_rejects_other_shapes():
    assert not is_confirmation_code("ABCDEF12")
    assert not is_confirmation_code("abcdef1")
    assert not is_confirmation_code("abcdef123")
    assert not is_confirmation_code("ghijklmn")
