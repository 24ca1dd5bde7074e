"""Shared API dependencies for authentication and nonce services."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from veltis.db.session import get_db
from veltis.models import User
from veltis.services import (
    ChallengeIssuer,
    DurableNonceBackend,
    NonceFallbackPolicy,
    SessionIssuer,
    SignatureVerifier,
    VolatileNonceStore,
)
from veltis.services import user_service
from veltis.services.errors import UnauthorizedError
from veltis.services.session import AuthenticatedIdentity, decode_access_token

# HTTP Bearer scheme; missing credentials are turned into 401 below
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]

_BEARER_CHALLENGE = {"WWW-Authenticate": "Bearer"}


def _unauthorized(detail: str = "Unauthorized") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers=_BEARER_CHALLENGE,
    )


def get_volatile_nonce_store(request: Request) -> VolatileNonceStore:
    """Return the process-wide in-memory nonce store created at startup."""
    store: VolatileNonceStore | None = getattr(request.app.state, "volatile_nonce_store", None)
    if store is None:
        raise RuntimeError("Volatile nonce store is not initialised; was startup skipped?")
    return store


VolatileStoreDep = Annotated[VolatileNonceStore, Depends(get_volatile_nonce_store)]


def get_nonce_policy(db: SessionDep, volatile: VolatileStoreDep) -> NonceFallbackPolicy:
    """Build the durable-then-volatile nonce policy for this request."""
    return NonceFallbackPolicy(DurableNonceBackend(db), volatile)


NoncePolicyDep = Annotated[NonceFallbackPolicy, Depends(get_nonce_policy)]


def get_challenge_issuer(policy: NoncePolicyDep) -> ChallengeIssuer:
    return ChallengeIssuer(policy)


def get_signature_verifier(policy: NoncePolicyDep) -> SignatureVerifier:
    return SignatureVerifier(policy)


def get_session_issuer(db: SessionDep, policy: NoncePolicyDep) -> SessionIssuer:
    return SessionIssuer(db, policy)


ChallengeIssuerDep = Annotated[ChallengeIssuer, Depends(get_challenge_issuer)]
SignatureVerifierDep = Annotated[SignatureVerifier, Depends(get_signature_verifier)]
SessionIssuerDep = Annotated[SessionIssuer, Depends(get_session_issuer)]


def get_current_identity(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> AuthenticatedIdentity:
    """Validate the bearer token and return its identity claims.

    No database lookup or revocation check is made; validity depends only on
    the token signature and expiry.

    Raises:
        HTTPException: 401 if the header is missing or the token is invalid or expired.
    """
    if credentials is None or not credentials.credentials:
        raise _unauthorized()
    try:
        return decode_access_token(credentials.credentials)
    except UnauthorizedError as err:
        raise _unauthorized(err.message) from err


CurrentIdentityDep = Annotated[AuthenticatedIdentity, Depends(get_current_identity)]


def get_current_user(identity: CurrentIdentityDep, db: SessionDep) -> User:
    """Load the authenticated user's record.

    Raises:
        HTTPException: 404 if the token subject has no stored user.
    """
    user = user_service.get_user(db, identity.user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return user


# Type alias for current user dependency
CurrentUserDep = Annotated[User, Depends(get_current_user)]
