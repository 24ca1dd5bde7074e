"""Endpoints for the authenticated user's own profile and KYC state."""

from __future__ import annotations

from fastapi import APIRouter

from veltis.api.v1.dependencies import CurrentUserDep, SessionDep
from veltis.models import KYC_STATUS_NOT_SUBMITTED
from veltis.schemas.user import (
    KycStatusResponse,
    ProfileUpdateRequest,
    UserPayload,
    UserResponse,
)
from veltis.services import user_service

router = APIRouter(prefix="/users", tags=["users"])


@router.patch(
    "/me/profile",
    summary="Update the authenticated user's profile",
    response_model=UserResponse,
)
async def update_profile(
    payload: ProfileUpdateRequest,
    user: CurrentUserDep,
    db: SessionDep,
) -> UserResponse:
    """Apply the supplied profile fields; omitted fields are left unchanged."""
    updated = user_service.update_user(db, user, payload.model_dump(exclude_unset=True))
    return UserResponse(user=UserPayload.model_validate(updated))


@router.get(
    "/me/kyc",
    summary="Return the authenticated user's KYC status",
    response_model=KycStatusResponse,
)
async def read_kyc_status(user: CurrentUserDep) -> KycStatusResponse:
    if user.kyc_status == KYC_STATUS_NOT_SUBMITTED:
        return KycStatusResponse(
            status=KYC_STATUS_NOT_SUBMITTED,
            message="KYC documents have not been submitted",
        )
    return KycStatusResponse(
        status=user.kyc_status,
        submission_date=user_service.kyc_submitted_on(user),
    )
