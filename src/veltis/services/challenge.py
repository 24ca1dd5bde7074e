"""Challenge issuance for wallet sign-in."""

from __future__ import annotations

import logging
from typing import Literal

from veltis.core import security
from veltis.core.settings import settings
from veltis.services.errors import InvalidInputError
from veltis.services.nonce_store import NonceFallbackPolicy

logger = logging.getLogger(__name__)


class ChallengeIssuer:
    """Issue exactly one outstanding nonce per wallet address."""

    def __init__(
        self,
        policy: NonceFallbackPolicy,
        nonce_format: Literal["token", "numeric"] | None = None,
    ) -> None:
        self._policy = policy
        self._nonce_format = nonce_format or settings.nonce_format

    async def issue(self, wallet_address: str) -> str:
        """Generate and store a nonce, replacing any previous one for the wallet.

        Raises:
            InvalidInputError: If the address is not `0x` + 40 hex characters.
            NonceIssuanceError: If neither store accepted the nonce.
        """
        if not security.is_valid_wallet_address(wallet_address):
            raise InvalidInputError("Invalid wallet address")

        wallet_key = security.normalize_wallet_address(wallet_address)
        nonce = security.generate_nonce(self._nonce_format)
        backend = await self._policy.store(wallet_key, nonce)
        logger.info("Issued nonce for wallet %s (%s store)", wallet_key, backend.name)
        return nonce
