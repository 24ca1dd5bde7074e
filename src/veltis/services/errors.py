"""Exceptions raised by the wallet authentication services.

Each exception carries the HTTP status code and a stable message so the
API layer can translate it without inspecting the failure itself.
"""

from __future__ import annotations

from fastapi import status


class AuthError(RuntimeError):
    """Base exception for wallet authentication failures."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class InvalidInputError(AuthError):
    """Raised for malformed wallet addresses or missing signatures."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid wallet address"


class NonceNotFoundError(AuthError):
    """Raised when no live nonce exists for a wallet in any store."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Nonce not found or expired"


class InvalidSignatureError(AuthError):
    """Raised when the recovered signer does not match the claimed wallet."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid signature"


class StoreUnavailableError(AuthError):
    """Raised when the durable store cannot serve a request.

    Treated as transient: retried and then routed to the volatile store.
    """

    default_message = "Durable store unavailable"


class NonceIssuanceError(AuthError):
    """Raised when neither the durable nor the volatile store accepted a nonce."""

    default_message = "Failed to issue nonce"


class UserResolutionError(AuthError):
    """Raised when the user identity cannot be looked up or created."""

    default_message = "Failed to get or create user"


class UnauthorizedError(AuthError):
    """Raised when a bearer token is missing, malformed, or expired."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"
