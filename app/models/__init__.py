"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.password_reset import PasswordResetToken
from app.models.user import Role, User

__all__ = ["Base", "PasswordResetToken", "Role", "User"]
