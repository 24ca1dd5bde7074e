# src/veltis/models/nonce.py
"""Durable storage for wallet challenge nonces."""

from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from veltis.db.session import Base
from veltis.db.time import utcnow


class AuthNonce(Base):
    """Outstanding sign-in challenge; at most one row per wallet."""

    __tablename__ = "auth_nonces"

    wallet_address: Mapped[str] = mapped_column(String(42), primary_key=True)
    nonce: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
