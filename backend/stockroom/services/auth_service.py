# Overview: Service-layer operations for user accounts; password hashing, credential rules and user CRUD.

"""
Authentication Service

Passwords are hashed with bcrypt (cost factor from BCRYPT_ROUNDS, 12 by
default) and never stored or logged in plaintext. Refresh tokens and the
login/refresh/logout protocol live in session_service.py.
"""

from __future__ import annotations

import logging
import re

import bcrypt
from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..errors import AppErrorCode, BadRequestError, NotFoundError, conflict_from_integrity_error
from ..extensions import db
from ..models import User
from ..roles import Role, parse_role
from .concurrency import READ_COMMITTED, run_in_transaction


logger = logging.getLogger(__name__)

USERNAME_PATTERN = re.compile(r"^[A-Za-z]\w{4,19}$")
PASSWORD_PATTERN = re.compile(r"^\w{8,19}$")

USER_CONSTRAINT_FIELDS = {
    "username": {"name": "username", "message": "Username already taken."},
}

_dummy_hashes: dict[int, str] = {}


def validate_username(username) -> bool:
    """Letter first, then 4-19 word characters."""
    return isinstance(username, str) and USERNAME_PATTERN.fullmatch(username) is not None


def validate_password(password) -> bool:
    """8-19 word characters."""
    return isinstance(password, str) and PASSWORD_PATTERN.fullmatch(password) is not None


def _rounds() -> int:
    return int(current_app.config.get("BCRYPT_ROUNDS", 12))


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=_rounds())
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    bcrypt.checkpw() compares in constant time. A malformed stored hash is
    treated as a mismatch.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def dummy_hash() -> str:
    """
    A valid hash of a random secret, checked when a username is unknown so a
    failed login costs the same whether or not the account exists.
    """
    rounds = _rounds()
    if rounds not in _dummy_hashes:
        _dummy_hashes[rounds] = bcrypt.hashpw(b"not-a-real-password", bcrypt.gensalt(rounds=rounds)).decode('utf-8')
    return _dummy_hashes[rounds]


def _require_role(role) -> Role:
    parsed = parse_role(role)
    if parsed is None:
        raise BadRequestError(
            "Invalid request.",
            code=AppErrorCode.REQ_FORMAT,
            fields={"role": {"message": f"Must be one of: {', '.join(r.value for r in Role)}."}},
        )
    return parsed


def _require_name(name) -> str:
    if not isinstance(name, str) or not name.strip() or len(name) > 128:
        raise BadRequestError(
            "Invalid request.",
            code=AppErrorCode.REQ_FORMAT,
            fields={"name": {"message": "Name must be 1-128 characters."}},
        )
    return name.strip()


def create_user(username: str, password: str, name: str, role: str = Role.BASIC.value) -> int:
    """
    Create a user with a bcrypt password hash and return its id.

    Raises:
        BadRequestError: username/password/name/role fail their rules
        ConflictError: username already taken
    """
    fields = {}
    if not validate_username(username):
        fields["username"] = {"message": "Username must start with a letter and be 5-20 word characters."}
    if not validate_password(password):
        fields["password"] = {"message": "Password must be 8-19 word characters."}
    if fields:
        raise BadRequestError("Invalid request.", code=AppErrorCode.REQ_FORMAT, fields=fields)
    name = _require_name(name)
    parsed_role = _require_role(role)

    password_hash = hash_password(password)

    def _op():
        user = User(username=username, password_hash=password_hash, name=name, role=parsed_role.value)
        db.session.add(user)
        db.session.flush()
        return user.id

    try:
        user_id = run_in_transaction(_op, isolation_level=READ_COMMITTED)
    except IntegrityError as exc:
        raise conflict_from_integrity_error(exc, USER_CONSTRAINT_FIELDS) from exc

    logger.info("User %s created with role %s (id=%s)", username, parsed_role.value, user_id)
    return user_id


def list_users(role: str | None = None) -> list[User]:
    query = db.session.query(User)
    if role is not None:
        query = query.filter(User.role == _require_role(role).value)
    return query.order_by(User.id.asc()).all()


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError()
    return user


def update_user(user_id: int, *, name: str | None = None, role: str | None = None) -> User:
    """Patch a user's display name and/or role. Omitted fields are left untouched."""
    if name is not None:
        name = _require_name(name)
    if role is not None:
        role = _require_role(role).value

    def _op():
        user = db.session.get(User, user_id)
        if user is None:
            return None
        if name is not None:
            user.name = name
        if role is not None:
            user.role = role
        return user.id

    if run_in_transaction(_op, isolation_level=READ_COMMITTED) is None:
        raise NotFoundError()
    return get_user(user_id)


def ensure_admin_account(username: str, password: str) -> tuple[int, bool]:
    """
    Make sure an admin account named `username` exists.

    Returns (user_id, created). An existing account is promoted to admin
    but its password is left alone.
    """
    existing = db.session.query(User).filter_by(username=username).first()
    if existing is not None:
        if existing.role != Role.ADMIN.value:
            existing.role = Role.ADMIN.value
            db.session.commit()
            logger.info("Existing user %s promoted to admin", username)
        return existing.id, False

    user_id = create_user(username, password, name=username, role=Role.ADMIN.value)
    logger.info("Bootstrap admin %s created", username)
    return user_id, True
