# src/veltis/models/__init__.py
"""SQLAlchemy models for the VELTIS backend."""

from .nonce import AuthNonce
from .user import KYC_STATUS_NOT_SUBMITTED, User

__all__ = [
    "AuthNonce",
    "KYC_STATUS_NOT_SUBMITTED",
    "User",
]
