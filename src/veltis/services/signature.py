"""Wallet signature verification against the outstanding challenge nonce."""

from __future__ import annotations

import asyncio
import logging

from veltis.core import security
from veltis.core.settings import settings
from veltis.services.errors import (
    InvalidInputError,
    InvalidSignatureError,
    NonceNotFoundError,
)
from veltis.services.nonce_store import NonceFallbackPolicy, NonceLookup

logger = logging.getLogger(__name__)


class SignatureVerifier:
    """Decide whether a wallet address controls the key that signed its challenge."""

    def __init__(self, policy: NonceFallbackPolicy, platform: str | None = None) -> None:
        self._policy = policy
        self._platform = platform or settings.platform_name

    def message_for(self, wallet_address: str, nonce: str) -> str:
        """Return the canonical challenge text for an address/nonce pair."""
        return security.build_sign_message(self._platform, wallet_address, nonce)

    async def recover(self, message: str, signature: str) -> str:
        """Recover the signing address off the event loop."""
        return await asyncio.to_thread(security.recover_signer, message, signature)

    async def verify(self, wallet_address: str, nonce: str, signature: str) -> bool:
        """Return True if `signature` over the challenge was made by `wallet_address`.

        Malformed signatures and recovery failures are reported as False.
        """
        message = self.message_for(wallet_address, nonce)
        try:
            recovered = await self.recover(message, signature)
        except Exception as err:
            logger.info("Signature recovery failed for %s: %s", wallet_address, err)
            return False
        return recovered.lower() == wallet_address.lower()

    async def authenticate(self, wallet_address: str, signature: str) -> NonceLookup:
        """Validate input, resolve the live nonce and check the signature.

        Returns the nonce lookup so the caller can consume the nonce afterwards.

        Raises:
            InvalidInputError: Malformed address or empty signature.
            NonceNotFoundError: No live nonce in any store.
            InvalidSignatureError: Recovered signer does not match the address.
        """
        if not security.is_valid_wallet_address(wallet_address):
            raise InvalidInputError("Invalid wallet address")
        if not signature or not signature.strip():
            raise InvalidInputError("Signature is required")

        wallet_key = security.normalize_wallet_address(wallet_address)
        lookup = await self._policy.resolve(wallet_key)
        if lookup is None:
            raise NonceNotFoundError()

        if not await self.verify(wallet_address, lookup.nonce, signature.strip()):
            raise InvalidSignatureError()
        return lookup
