"""User-related Pydantic schemas."""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class UserPayload(BaseModel):
    """Public view of a user identity."""

    id: str
    wallet_address: str
    smart_account_address: str | None = None
    email: str | None = None
    name: str | None = None
    institution: str | None = None
    role: str | None = None
    kyc_status: str
    terms_accepted: bool

    model_config = ConfigDict(from_attributes=True)


class UserResponse(BaseModel):
    """Envelope for a single user."""

    user: UserPayload


class ProfileUpdateRequest(BaseModel):
    """Schema for updating user profile information."""

    email: str | None = Field(None, max_length=254, description="Contact email")
    name: str | None = Field(None, min_length=1, max_length=100, description="Display name")
    institution: str | None = Field(None, max_length=200, description="Affiliated institution")
    role: str | None = Field(
        None,
        max_length=50,
        description="Account role (Individual, Institution, Corporate)",
    )
    terms_accepted: bool | None = Field(None, description="Acceptance of the platform terms")

    @field_validator("name", "terms_accepted")
    @classmethod
    def reject_null(cls, v: object) -> object:
        """Omit a field to leave it unchanged; explicit null is not a value."""
        if v is None:
            raise ValueError("Field may be omitted but not set to null")
        return v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str | None) -> str | None:
        """Reject values that are obviously not email addresses."""
        if v is None:
            return v
        if not _EMAIL_PATTERN.match(v):
            raise ValueError("Email must be a valid address (e.g., name@example.org)")
        return v


class KycStatusResponse(BaseModel):
    """KYC review state of the authenticated user."""

    status: str
    submission_date: datetime | None = None
    message: str | None = None
