# src/veltis/services/__init__.py
"""Business logic services for the VELTIS backend."""

from .challenge import ChallengeIssuer
from .nonce_store import (
    DurableNonceBackend,
    NonceBackend,
    NonceFallbackPolicy,
    NonceLookup,
    VolatileNonceStore,
)
from .retry import RetryPolicy
from .session import SessionIssuer
from .signature import SignatureVerifier

__all__ = [
    "ChallengeIssuer",
    "DurableNonceBackend",
    "NonceBackend",
    "NonceFallbackPolicy",
    "NonceLookup",
    "RetryPolicy",
    "SessionIssuer",
    "SignatureVerifier",
    "VolatileNonceStore",
]
