# tests/unit/test_auth.py
from datetime import timedelta

import jwt
import pytest

from gpae.auth import (
    DUMMY_HASH_FOR_TIMING_ATTACK,
    PyJWTError,
    create_access_token,
    decode_access_token,
    get_password_hash,
    verify_password,
)


def test_password_round_trip():
    hashed = get_password_hash("s3cret")

    assert hashed != "s3cret"
    assert verify_password("s3cret", hashed) is True
    assert verify_password("wrong", hashed) is False


def test_verify_against_garbage_hash_is_false():
    assert verify_password("s3cret", "not-a-bcrypt-hash") is False
    assert verify_password("s3cret", DUMMY_HASH_FOR_TIMING_ATTACK) is False


def test_token_carries_subject_and_expiry():
    token = create_access_token({"sub": "01J0000000000000000000000A", "role": "admin"})
    payload = decode_access_token(token)

    assert payload["sub"] == "01J0000000000000000000000A"
    assert payload["role"] == "admin"
    assert "exp" in payload


def test_expired_token_is_rejected():
    token = create_access_token({"sub": "u1"}, expires_delta=timedelta(seconds=-10))

    with pytest.raises(PyJWTError):
        decode_access_token(token)


def test_forged_token_is_rejected():
    token = jwt.encode({"sub": "u1"}, "another-secret-key-of-sufficient-length", algorithm="HS256")

    with pytest.raises(PyJWTError):
        decode_access_token(token)
