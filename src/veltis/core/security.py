"""Wallet address and signature utilities built on eth-account."""
from __future__ import annotations

import re
import secrets
from typing import Literal

from eth_account import Account
from eth_account.messages import encode_defunct

WALLET_ADDRESS_PATTERN = re.compile(r"0x[0-9a-fA-F]{40}")
NONCE_TOKEN_BYTES = 16  # 128 bits
NUMERIC_NONCE_DIGITS = 6


def is_valid_wallet_address(address: str | None) -> bool:
    """Return True for `0x` followed by 40 hex characters (any case)."""
    return bool(address) and WALLET_ADDRESS_PATTERN.fullmatch(address) is not None


def normalize_wallet_address(address: str) -> str:
    """Return the lowercase storage key for a wallet address."""
    return address.strip().lower()


def generate_nonce(kind: Literal["token", "numeric"] = "token") -> str:
    """Return a fresh challenge nonce.

    `token` yields 32 hex characters; `numeric` yields a zero-padded six digit
    string matching what older wallet clients expect.
    """
    if kind == "numeric":
        return f"{secrets.randbelow(10**NUMERIC_NONCE_DIGITS):0{NUMERIC_NONCE_DIGITS}d}"
    return secrets.token_hex(NONCE_TOKEN_BYTES)


def build_sign_message(platform: str, wallet_address: str, nonce: str) -> str:
    """Return the exact text a wallet signs to authenticate."""
    return (
        f"Welcome to {platform}!\n\n"
        "Please sign this message to authenticate.\n\n"
        f"Wallet: {wallet_address}\n"
        f"Nonce: {nonce}"
    )


def recover_signer(message: str, signature: str) -> str:
    """Recover the checksummed address that produced an EIP-191 personal signature.

    Raises whatever eth-account raises for malformed signatures.
    """
    return Account.recover_message(encode_defunct(text=message), signature=signature)
