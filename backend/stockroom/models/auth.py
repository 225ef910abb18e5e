from __future__ import annotations

from ..extensions import db
from ..roles import Role
from ..time_utils import to_utc_z


class User(db.Model):
    """
    User accounts for authentication and attribution.

    The refresh token is never stored in plaintext: only its SHA-256 digest
    and expiry live here, and both columns are set or cleared together.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.CheckConstraint(
            "(refresh_token_hash IS NULL AND refresh_token_expires_at IS NULL) OR "
            "(refresh_token_hash IS NOT NULL AND refresh_token_expires_at IS NOT NULL)",
            name="ck_users_refresh_token_pair",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), nullable=False, unique=True, index=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    name = db.Column(db.String(128), nullable=False)
    role = db.Column(db.String(16), nullable=False, default=Role.BASIC.value)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    refresh_token_hash = db.Column(db.String(64), nullable=True, unique=True)
    refresh_token_expires_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r} role={self.role!r}>"

    def to_dict(self) -> dict:
        return {
            "userId": self.id,
            "username": self.username,
            "name": self.name,
            "role": self.role,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }

    def to_profile(self) -> dict:
        return {"userId": self.id, "name": self.name}
