"""
Password hashing and session tokens.

A session token is an HS256 JWT whose only claim besides ``exp`` is ``data``:
a JWE (``dir`` + A256GCM) holding the user id, email and a fingerprint of the
stored password hash. Changing the email or password therefore invalidates
every outstanding token. Each successful verification hands back a fresh
token with a new expiry (sliding expiration).

The encryption key is derived once at import from ``ENC_KEY``; the functions
below take it as a parameter and keep no other state.
"""
import hashlib
import json
import secrets
from datetime import datetime, timedelta, timezone
from typing import Tuple

import bcrypt
from jose import jwe, jwt
from jose.exceptions import JOSEError

import settings
from errors import AuthenticationError

ENCRYPTION_KEY: bytes = hashlib.sha256(settings.ENC_KEY.encode("utf-8")).digest()


# --------------------------------------
# Passwords

def hash_password(password: str, rounds: int = settings.BCRYPT_ROUNDS) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str | None, hashed: str | None) -> bool:
    if password is None or hashed is None:
        return False
    return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))


def password_fingerprint(hashed: str) -> str:
    return hashlib.sha256(hashed.encode("utf-8")).hexdigest()[:32]


# --------------------------------------
# Payload encryption

def encrypt_payload(payload: dict, key: bytes = ENCRYPTION_KEY) -> str:
    token = jwe.encrypt(json.dumps(payload).encode("utf-8"), key, algorithm="dir", encryption="A256GCM")
    return token.decode("ascii") if isinstance(token, bytes) else token


def decrypt_payload(data: str, key: bytes = ENCRYPTION_KEY) -> dict:
    return json.loads(jwe.decrypt(data, key))


# --------------------------------------
# Tokens

def sign_token(encrypted_data: str, secret: str = settings.JWT_SECRET,
               expires_hours: int = settings.JWT_EXPIRES_HOURS) -> str:
    expires = datetime.now(timezone.utc) + timedelta(hours=expires_hours)
    return jwt.encode({"data": encrypted_data, "exp": expires}, secret, algorithm=settings.JWT_ALGORITHM)


def generate_user_token(user) -> str:
    encrypted = encrypt_payload({
        "user_id": user.id,
        "email": user.email,
        "pwd": password_fingerprint(user.password),
    })
    return sign_token(encrypted)


def read_token(token: str | None, secret: str = settings.JWT_SECRET,
               key: bytes = ENCRYPTION_KEY) -> Tuple[dict, str]:
    """Verify signature and expiry, decrypt. Returns (payload, encrypted data)."""
    if not token:
        raise AuthenticationError()
    try:
        claims = jwt.decode(token, secret, algorithms=[settings.JWT_ALGORITHM])
        data = claims["data"]
        return decrypt_payload(data, key), data
    except (JOSEError, KeyError, ValueError):
        raise AuthenticationError()


def token_matches_user(payload: dict, user) -> bool:
    return (
        user is not None
        and payload.get("email") == user.email
        and payload.get("pwd") == password_fingerprint(user.password)
    )


def generate_invite_code() -> str:
    return secrets.token_urlsafe(9)
