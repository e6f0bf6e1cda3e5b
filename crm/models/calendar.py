"""Google integration model (one Google connection per user).

The row started out as the Calendar connection; the same refresh token also
serves Sheets, Drive and Contacts when the user granted those scopes.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, UUIDMixin, TimestampMixin


class CalendarIntegration(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "calendar_integration"

    user_id: Mapped[str] = mapped_column(String(100), unique=True)
    provider: Mapped[str] = mapped_column(String(20), default="google")
    refresh_token: Mapped[str] = mapped_column(Text)
    access_token: Mapped[str | None] = mapped_column(Text, default=None)
    token_expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)

    # Granted Google services
    scopes: Mapped[list] = mapped_column(JSON, default=list)
    calendar_enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    sheets_enabled: Mapped[bool] = mapped_column(Boolean, default=False)
    drive_enabled: Mapped[bool] = mapped_column(Boolean, default=False)
    contacts_enabled: Mapped[bool] = mapped_column(Boolean, default=False)

    def is_enabled(self, service: str) -> bool:
        return bool(getattr(self, f"{service}_enabled", False))

    def __repr__(self) -> str:
        return f"<CalendarIntegration {self.provider} user={self.user_id}>"
