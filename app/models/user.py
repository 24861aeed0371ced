"""ORM model for site and back-office accounts (auth and RBAC)."""

import enum
import uuid

from sqlalchemy import Boolean, Column, DateTime, Integer, String, func

from app.models.base import Base


class Role(str, enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"


def _new_user_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    """
    User account for JWT authentication and role-based access control.

    email is stored normalized (trimmed, lower-case); the unique index makes
    uniqueness case-insensitive. token_version is embedded in every token and
    bumped to revoke all of the user's outstanding tokens.
    """

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_user_id)
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(16), nullable=False, default=Role.USER.value)
    is_active = Column(Boolean, nullable=False, default=True)
    token_version = Column(Integer, nullable=False, default=0)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email} role={self.role}>"
