"""
Tests for password hashing and access tokens.
"""

from datetime import timedelta

import jwt
import pytest
from fastapi import HTTPException

from booknest.core.config import get_settings
from booknest.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from booknest.models.enums import UserRole


def test_hash_and_verify():
    hashed = hash_password("Secret123")
    assert hashed != "Secret123"
    assert verify_password("Secret123", hashed)
    assert not verify_password("Secret124", hashed)


def test_hashes_are_salted():
    assert hash_password("Secret123") != hash_password("Secret123")


def test_verify_against_malformed_hash():
    assert not verify_password("Secret123", "not-a-bcrypt-hash")


def test_token_round_trip():
    token = create_access_token(user_id=42, email="ada@example.com", role="ADMIN")
    data = decode_access_token(token)
    assert data.user_id == 42
    assert data.email == "ada@example.com"
    assert data.role == UserRole.ADMIN
    assert data.is_admin


def test_participant_token_is_not_admin():
    token = create_access_token(user_id=7, email="p@example.com", role="PARTICIPANT")
    assert not decode_access_token(token).is_admin


def test_expired_token():
    token = create_access_token(
        user_id=1, email="a@example.com", role="PARTICIPANT", expires_delta=timedelta(seconds=-1)
    )
    with pytest.raises(HTTPException) as exc_info:
        decode_access_token(token)
    assert exc_info.value.status_code == 401
    assert exc_info.value.detail == "Token has expired"


def test_token_signed_with_other_key():
    settings = get_settings()
    forged = jwt.encode(
        {"sub": "1", "role": "ADMIN", "iss": settings.TOKEN_ISSUER, "exp": 9999999999},
        "not-the-secret-key",
        algorithm=settings.ALGORITHM,
    )
    with pytest.raises(HTTPException) as exc_info:
        decode_access_token(forged)
    assert exc_info.value.status_code == 401


def test_token_from_other_issuer():
    settings = get_settings()
    foreign = jwt.encode(
        {"sub": "1", "role": "ADMIN", "iss": "someone-else", "exp": 9999999999},
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
    )
    with pytest.raises(HTTPException):
        decode_access_token(foreign)
