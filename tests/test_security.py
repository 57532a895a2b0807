import hashlib

import pytest
from jose import jwt

import settings
from errors import AuthenticationError
from models import User
from security import (
    decrypt_payload,
    encrypt_payload,
    generate_invite_code,
    generate_user_token,
    hash_password,
    read_token,
    sign_token,
    token_matches_user,
    verify_password,
)


def make_user(password="password123"):
    return User(id=7, email="ada@example.com", password=hash_password(password))


def test_password_hash_round_trip():
    hashed = hash_password("s3cret")
    assert hashed != "s3cret"
    assert verify_password("s3cret", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password(None, hashed)


def test_payload_is_not_readable_without_the_key():
    encrypted = encrypt_payload({"user_id": 7, "email": "ada@example.com"})
    assert "ada@example.com" not in encrypted
    assert decrypt_payload(encrypted) == {"user_id": 7, "email": "ada@example.com"}

    other_key = hashlib.sha256(b"another key").digest()
    with pytest.raises(Exception):
        decrypt_payload(encrypted, other_key)


def test_token_round_trip_matches_user():
    user = make_user()
    payload, _ = read_token(generate_user_token(user))
    assert payload["user_id"] == 7
    assert token_matches_user(payload, user)


def test_token_stops_matching_after_password_change():
    user = make_user()
    payload, _ = read_token(generate_user_token(user))
    user.password = hash_password("a new password")
    assert not token_matches_user(payload, user)


def test_rotated_token_carries_same_payload():
    user = make_user()
    payload, encrypted = read_token(generate_user_token(user))
    rotated_payload, _ = read_token(sign_token(encrypted))
    assert rotated_payload == payload


@pytest.mark.parametrize("token", [None, "", "not-a-jwt", "a.b.c"])
def test_garbage_tokens_rejected(token):
    with pytest.raises(AuthenticationError):
        read_token(token)


def test_expired_token_rejected():
    encrypted = encrypt_payload({"user_id": 1})
    with pytest.raises(AuthenticationError):
        read_token(sign_token(encrypted, expires_hours=-1))


def test_token_signed_with_other_secret_rejected():
    encrypted = encrypt_payload({"user_id": 1})
    forged = jwt.encode({"data": encrypted}, "not-the-secret", algorithm=settings.JWT_ALGORITHM)
    with pytest.raises(AuthenticationError):
        read_token(forged)


def test_invite_codes_are_unique_enough():
    codes = {generate_invite_code() for _ in range(200)}
    assert len(codes) == 200
