# src/veltis/models/user.py
"""SQLAlchemy model for wallet-keyed user identities."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from veltis.db.session import Base
from veltis.db.time import utcnow

KYC_STATUS_NOT_SUBMITTED = "not_submitted"


def _new_user_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    """Platform identity keyed by a lowercase Ethereum wallet address."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_user_id)
    wallet_address: Mapped[str] = mapped_column(String(42), unique=True, nullable=False)
    smart_account_address: Mapped[str | None] = mapped_column(String(42), nullable=True)
    email: Mapped[str | None] = mapped_column(Text, nullable=True)
    name: Mapped[str | None] = mapped_column(Text, nullable=True)
    institution: Mapped[str | None] = mapped_column(Text, nullable=True)
    role: Mapped[str | None] = mapped_column(Text, nullable=True)
    kyc_status: Mapped[str] = mapped_column(
        Text, nullable=False, default=KYC_STATUS_NOT_SUBMITTED
    )
    kyc_submission_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    terms_accepted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    terms_accepted_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
