"""CRUD-style helpers for managing wallet users."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from veltis.db.time import utcnow
from veltis.models.user import KYC_STATUS_NOT_SUBMITTED, User
from veltis.services.errors import StoreUnavailableError

PLACEHOLDER_USER_ID = "00000000-0000-0000-0000-000000000000"

__all__ = [
    "PLACEHOLDER_USER_ID",
    "get_user",
    "get_user_by_wallet",
    "get_or_create_user",
    "kyc_submitted_on",
    "placeholder_user",
    "update_user",
]


def get_user(db: Session, user_id: str) -> User | None:
    """Return a single user by primary key."""
    return db.get(User, user_id)


def get_user_by_wallet(db: Session, wallet_address: str) -> User | None:
    """Return the user owning a lowercase wallet address."""
    return db.query(User).filter(User.wallet_address == wallet_address).first()


def get_or_create_user(db: Session, wallet_address: str) -> tuple[User, bool]:
    """Return `(user, created)` for a wallet, inserting a bare record if missing.

    Raises:
        StoreUnavailableError: If the database cannot serve the lookup or insert.
    """
    try:
        user = get_user_by_wallet(db, wallet_address)
        if user is not None:
            return user, False

        user = User(wallet_address=wallet_address)
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            # Another request created the same wallet between lookup and insert.
            db.rollback()
            existing = get_user_by_wallet(db, wallet_address)
            if existing is None:
                raise
            return existing, False
        db.refresh(user)
        return user, True
    except SQLAlchemyError as err:
        db.rollback()
        raise StoreUnavailableError("Failed to get or create user") from err


def placeholder_user(wallet_address: str) -> User:
    """Return an unsaved stand-in identity for degraded development environments."""
    now = utcnow()
    return User(
        id=PLACEHOLDER_USER_ID,
        wallet_address=wallet_address,
        smart_account_address=None,
        email=None,
        name="Development User",
        institution=None,
        role=None,
        kyc_status=KYC_STATUS_NOT_SUBMITTED,
        terms_accepted=False,
        created_at=now,
        updated_at=now,
    )


def update_user(db: Session, db_user: User, update_data: dict[str, Any]) -> User:
    """Apply partial profile updates to an existing user."""
    for key, value in update_data.items():
        setattr(db_user, key, value)
    if "terms_accepted" in update_data:
        if not db_user.terms_accepted:
            db_user.terms_accepted_date = None
        elif db_user.terms_accepted_date is None:
            db_user.terms_accepted_date = utcnow()
    db_user.updated_at = utcnow()

    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def kyc_submitted_on(user: User) -> datetime | None:
    """Return the KYC submission date when documents were submitted."""
    if user.kyc_status == KYC_STATUS_NOT_SUBMITTED:
        return None
    return user.kyc_submission_date
