"""Session token minting and validation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy.orm import Session

from veltis.core import security
from veltis.core.settings import settings
from veltis.models import User
from veltis.services import user_service
from veltis.services.errors import (
    StoreUnavailableError,
    UnauthorizedError,
    UserResolutionError,
)
from veltis.services.nonce_store import NonceFallbackPolicy, NonceLookup

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthenticatedIdentity:
    """Claims extracted from a validated session token."""

    user_id: str
    wallet_address: str | None


@dataclass(frozen=True)
class IssuedSession:
    """Token and identity returned after a successful wallet sign-in."""

    token: str
    user: User


def create_access_token(
    user_id: str,
    wallet_address: str,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed JWT binding a user id to a wallet address."""
    now = datetime.now(UTC)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode: dict[str, object] = {
        "sub": user_id,
        "wallet": wallet_address,
        "iat": int(now.timestamp()),
        "exp": expire,
    }
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


def decode_access_token(token: str) -> AuthenticatedIdentity:
    """Validate signature and expiry and return the token's identity claims.

    Raises:
        UnauthorizedError: If the token is empty, malformed, badly signed,
            expired, or has no subject.
    """
    if not token:
        raise UnauthorizedError("Missing token")
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except ExpiredSignatureError as err:
        raise UnauthorizedError("Token expired") from err
    except JWTError as err:
        raise UnauthorizedError("Invalid token") from err

    subject = payload.get("sub")
    if not subject or not isinstance(subject, str):
        raise UnauthorizedError("Invalid token payload")
    wallet = payload.get("wallet")
    return AuthenticatedIdentity(
        user_id=subject,
        wallet_address=wallet if isinstance(wallet, str) else None,
    )


class SessionIssuer:
    """Turn a verified wallet into an authenticated session."""

    def __init__(
        self,
        db: Session,
        policy: NonceFallbackPolicy,
        *,
        allow_placeholder_identity: bool | None = None,
    ) -> None:
        self._db = db
        self._policy = policy
        self._allow_placeholder = (
            settings.allow_placeholder_identity
            if allow_placeholder_identity is None
            else allow_placeholder_identity
        )

    def resolve_user(self, wallet_address: str) -> User:
        """Return the identity for a wallet, creating it on first sign-in."""
        try:
            user, created = user_service.get_or_create_user(self._db, wallet_address)
        except StoreUnavailableError as err:
            if not self._allow_placeholder:
                logger.error("User resolution failed for %s: %s", wallet_address, err)
                raise UserResolutionError() from err
            logger.warning("Using placeholder identity for %s", wallet_address)
            return user_service.placeholder_user(wallet_address)
        if created:
            logger.info("Created user %s for wallet %s", user.id, wallet_address)
        return user

    async def issue(self, wallet_address: str, lookup: NonceLookup) -> IssuedSession:
        """Resolve the user, mint a token and consume the nonce.

        Must only be called after the signature was verified.
        """
        wallet_key = security.normalize_wallet_address(wallet_address)
        user = self.resolve_user(wallet_key)
        token = create_access_token(user.id, wallet_key)
        await self._policy.consume(wallet_key, lookup)
        return IssuedSession(token=token, user=user)
