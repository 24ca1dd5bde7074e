# src/veltis/api/v1/endpoints/auth.py
"""Wallet authentication endpoints for the VELTIS API."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from veltis.api.v1.dependencies import (
    ChallengeIssuerDep,
    CurrentIdentityDep,
    CurrentUserDep,
    SessionIssuerDep,
    SignatureVerifierDep,
)
from veltis.schemas.auth import (
    LogoutResponse,
    NonceRequest,
    NonceResponse,
    VerifyRequest,
    VerifyResponse,
)
from veltis.schemas.user import UserPayload, UserResponse
from veltis.services.errors import AuthError

router = APIRouter(prefix="/auth", tags=["authentication"])
logger = logging.getLogger(__name__)


def _to_http(err: AuthError) -> HTTPException:
    return HTTPException(status_code=err.status_code, detail=err.message)


def _internal_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal server error",
    )


@router.post(
    "/nonce",
    summary="Issue a sign-in nonce for a wallet",
    response_model=NonceResponse,
)
async def request_nonce(payload: NonceRequest, issuer: ChallengeIssuerDep) -> NonceResponse:
    """Generate a single-use nonce, replacing any outstanding one for the wallet."""
    try:
        nonce = await issuer.issue(payload.wallet_address or "")
    except AuthError as err:
        raise _to_http(err) from err
    except Exception as err:
        logger.exception("Nonce generation error")
        raise _internal_error() from err
    return NonceResponse(nonce=nonce)


@router.post(
    "/verify",
    summary="Verify a signed nonce and start a session",
    response_model=VerifyResponse,
)
async def verify_wallet(
    payload: VerifyRequest,
    verifier: SignatureVerifierDep,
    session_issuer: SessionIssuerDep,
) -> VerifyResponse:
    """Check the wallet's signature over its challenge and return a bearer token."""
    wallet_address = payload.wallet_address or ""
    try:
        lookup = await verifier.authenticate(wallet_address, payload.signature or "")
        issued = await session_issuer.issue(wallet_address, lookup)
    except AuthError as err:
        logger.info("Wallet verification rejected for %s: %s", wallet_address, err.message)
        raise _to_http(err) from err
    except Exception as err:
        logger.exception("Verification error")
        raise _internal_error() from err

    return VerifyResponse(token=issued.token, user=UserPayload.model_validate(issued.user))


@router.get(
    "/user",
    summary="Return the authenticated user",
    response_model=UserResponse,
)
async def read_current_user(user: CurrentUserDep) -> UserResponse:
    return UserResponse(user=UserPayload.model_validate(user))


@router.post(
    "/logout",
    summary="Log out the authenticated user",
    response_model=LogoutResponse,
)
async def logout(identity: CurrentIdentityDep) -> LogoutResponse:
    """Acknowledge logout; tokens are stateless so the client simply discards it."""
    logger.info("User %s logged out", identity.user_id)
    return LogoutResponse(message="Logged out successfully")
