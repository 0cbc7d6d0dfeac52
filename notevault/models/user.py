"""
User model for authentication and identity.
"""

import secrets
from datetime import datetime, timedelta

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from notevault.db import Base
from notevault.models.base import TimestampMixin, UTCDateTime, utcnow
from notevault.settings import settings


class User(Base, TimestampMixin):
    """User account model."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    last_name: Mapped[str] = mapped_column(String(50), nullable=False)

    # Local auth
    hashed_password: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Session management
    session_token: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True, index=True)
    session_expires_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    # Status
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)
    last_seen_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def generate_session_token(self) -> str:
        """Generate a new session token and set expiry."""
        self.session_token = secrets.token_hex(32)
        self.session_expires_at = utcnow() + timedelta(hours=settings.session_expire_hours)
        return self.session_token

    def clear_session(self) -> None:
        """Clear session token."""
        self.session_token = None
        self.session_expires_at = None

    def is_session_valid(self) -> bool:
        """Check if current session is valid."""
        if not self.session_token or not self.session_expires_at:
            return False
        return utcnow() < self.session_expires_at

    def update_last_seen(self) -> None:
        """Update last seen timestamp."""
        self.last_seen_at = utcnow()

    def __repr__(self) -> str:
        return f"<User {self.email}>"
