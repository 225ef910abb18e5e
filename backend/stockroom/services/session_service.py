# Overview: Service-layer operations for sessions; access tokens, refresh-token rotation, login and logout.

"""
Session Token Management Service

A session is a pair of tokens:

- access token: signed JWT {userId, role, iat, exp}, short-lived, never
  stored server-side; require_auth trusts its claims without a DB lookup.
- refresh token: 64 hex chars from secrets.token_hex(32). Only its SHA-256
  digest and expiry are stored on the user row. Every successful refresh
  replaces both, so a refresh token is single-use: replaying an old one
  fails closed.

Logout clears the stored digest. Access tokens already issued stay valid
until their own exp; that window is bounded by ACCESS_TOKEN_TTL.
"""

from __future__ import annotations

import hashlib
import logging
import secrets
import time
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy.exc import SQLAlchemyError

from ..errors import (
    AppError, AppErrorCode, AuthenticationError, ForbiddenError, NotFoundError,
)
from ..extensions import db
from ..models import User
from ..time_utils import as_utc, utcnow
from . import auth_service
from .concurrency import REPEATABLE_READ, lock_for_update, run_in_transaction, run_with_retry


logger = logging.getLogger(__name__)

_REFRESH_INVALID = "invalid"
_REFRESH_EXPIRED = "expired"


@dataclass
class LoginResult:
    """Tokens handed to the client after login or refresh."""
    access_token: str
    refresh_token: str
    user_id: int
    max_age: int


def generate_token() -> str:
    """Return 64-character hex string (32 bytes of entropy) from a CSPRNG."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    Hash token for database storage using SHA-256.

    Refresh tokens are already high-entropy, so a fast digest is enough.
    Returns hex-encoded hash string.
    """
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def issue_access_token(user_id: int, role: str) -> str:
    config = current_app.config
    now = int(time.time())
    claims = {
        "userId": user_id,
        "role": role,
        "iat": now,
        "exp": now + int(config["ACCESS_TOKEN_TTL"]),
    }
    return jwt.encode(claims, config["ACCESS_TOKEN_SECRET"], algorithm=config["ACCESS_TOKEN_ALGORITHM"])


def decode_access_token(token: str | None, *, verify_exp: bool = True) -> dict:
    """
    Verify an access token and return its claims.

    Raises:
        AuthenticationError TOKEN_MISSING: no token
        AuthenticationError TOKEN_EXPIRED: signature fine, exp in the past
        ForbiddenError TOKEN_INVALID: bad signature, malformed, or missing claims
    """
    if not token:
        raise AuthenticationError("Missing access token.", code=AppErrorCode.TOKEN_MISSING)

    config = current_app.config
    try:
        claims = jwt.decode(
            token,
            config["ACCESS_TOKEN_SECRET"],
            algorithms=[config["ACCESS_TOKEN_ALGORITHM"]],
            options={"verify_exp": verify_exp},
        )
    except ExpiredSignatureError:
        raise AuthenticationError("Access token expired.", code=AppErrorCode.TOKEN_EXPIRED)
    except JWTError:
        raise ForbiddenError("Invalid access token.", code=AppErrorCode.TOKEN_INVALID)

    user_id = claims.get("userId")
    if not isinstance(user_id, int) or isinstance(user_id, bool) or not isinstance(claims.get("role"), str):
        raise ForbiddenError("Invalid access token.", code=AppErrorCode.TOKEN_INVALID)
    return claims


def refresh_token_expired(expires_at) -> bool:
    """True when there is no stored expiry or it has passed, whatever tzinfo the driver returned."""
    return expires_at is None or as_utc(expires_at) <= utcnow()


def _store_new_refresh_token(user: User) -> str:
    token = generate_token()
    user.refresh_token_hash = hash_token(token)
    user.refresh_token_expires_at = utcnow() + timedelta(seconds=int(current_app.config["REFRESH_TOKEN_TTL"]))
    return token


def _result(user_id: int, role: str, refresh_token: str) -> LoginResult:
    return LoginResult(
        access_token=issue_access_token(user_id, role),
        refresh_token=refresh_token,
        user_id=user_id,
        max_age=int(current_app.config["REFRESH_TOKEN_TTL"]),
    )


def login(username: str, password: str) -> LoginResult:
    """
    Verify credentials and start a session.

    Unknown username and wrong password raise the same empty NotFoundError,
    and both pay for one bcrypt check.
    """
    def _op():
        user = lock_for_update(db.session.query(User).filter_by(username=username)).first()
        if user is None:
            auth_service.verify_password(password, auth_service.dummy_hash())
            return None
        if not auth_service.verify_password(password, user.password_hash):
            return None
        refresh_token = _store_new_refresh_token(user)
        return user.id, user.role, refresh_token

    outcome = run_with_retry(lambda: run_in_transaction(_op, isolation_level=REPEATABLE_READ))
    if outcome is None:
        logger.info("Login failed for username %r", username)
        raise NotFoundError()

    user_id, role, refresh_token = outcome
    logger.info("User %s logged in", user_id)
    return _result(user_id, role, refresh_token)


def refresh(access_token: str | None, refresh_token: str | None) -> LoginResult:
    """
    Rotate the refresh token and mint a new access token.

    The access token only identifies the user here; its exp is ignored but
    its signature is not.
    """
    if not access_token or not refresh_token:
        raise AuthenticationError("Missing token.", code=AppErrorCode.TOKEN_MISSING)

    claims = decode_access_token(access_token, verify_exp=False)
    user_id = claims["userId"]
    token_hash = hash_token(refresh_token)

    def _op():
        user = lock_for_update(
            db.session.query(User).filter_by(id=user_id, refresh_token_hash=token_hash)
        ).first()
        if user is None:
            return _REFRESH_INVALID
        if refresh_token_expired(user.refresh_token_expires_at):
            return _REFRESH_EXPIRED
        new_token = _store_new_refresh_token(user)
        return user.id, user.role, new_token

    outcome = run_with_retry(lambda: run_in_transaction(_op, isolation_level=REPEATABLE_READ))
    if outcome == _REFRESH_INVALID:
        logger.warning("Refresh rejected for user %s: token does not match", user_id)
        raise ForbiddenError("Invalid refresh token.", code=AppErrorCode.TOKEN_INVALID)
    if outcome == _REFRESH_EXPIRED:
        logger.info("Refresh rejected for user %s: token expired", user_id)
        raise ForbiddenError("Refresh token expired.", code=AppErrorCode.TOKEN_EXPIRED)

    user_id, role, new_token = outcome
    return _result(user_id, role, new_token)


def logout(access_token: str | None) -> None:
    """Clear the stored refresh token of the access token's user. Never raises."""
    if not access_token:
        return

    def _op():
        user = db.session.get(User, claims["userId"])
        if user is None:
            return False
        user.refresh_token_hash = None
        user.refresh_token_expires_at = None
        return True

    try:
        claims = decode_access_token(access_token, verify_exp=False)
        if run_in_transaction(_op, isolation_level=REPEATABLE_READ):
            logger.info("User %s logged out", claims["userId"])
    except (AppError, SQLAlchemyError) as exc:
        logger.debug("Logout cleanup skipped: %s", exc)
