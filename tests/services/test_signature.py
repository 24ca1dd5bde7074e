"""Tests for challenge issuance and signature verification."""

from unittest.mock import AsyncMock

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct

from veltis.core import security
from veltis.services import ChallengeIssuer, NonceLookup, SignatureVerifier
from veltis.services.errors import (
    InvalidInputError,
    InvalidSignatureError,
    NonceNotFoundError,
)


def _sign(account, message: str) -> str:
    signed = Account.sign_message(encode_defunct(text=message), private_key=account.key)
    return "0x" + bytes(signed.signature).hex()


def test_sign_message_layout():
    message = security.build_sign_message(
        "VELTIS", "0xABCDEF0000000000000000000000000000000001", "abc123"
    )
    assert message == (
        "Welcome to VELTIS!\n\n"
        "Please sign this message to authenticate.\n\n"
        "Wallet: 0xABCDEF0000000000000000000000000000000001\n"
        "Nonce: abc123"
    )


@pytest.mark.parametrize(
    ("address", "valid"),
    [
        ("0xABCDEF0000000000000000000000000000000001", True),
        ("0xabcdef0000000000000000000000000000000001", True),
        ("0xabcdef000000000000000000000000000000001", False),
        ("abcdef0000000000000000000000000000000001", False),
        ("0x" + "a" * 40 + "\n", False),
        (None, False),
    ],
)
def test_wallet_address_validation(address, valid):
    assert security.is_valid_wallet_address(address) is valid


def test_nonces_are_unique():
    assert len({security.generate_nonce() for _ in range(100)}) == 100


class TestChallengeIssuer:
    @pytest.mark.asyncio
    async def test_stores_under_lowercase_key(self, mocker):
        policy = mocker.MagicMock()
        policy.store = AsyncMock(return_value=mocker.MagicMock(name="durable"))

        nonce = await ChallengeIssuer(policy).issue("0xABCDEF0000000000000000000000000000000001")

        policy.store.assert_awaited_once_with("0xabcdef0000000000000000000000000000000001", nonce)

    @pytest.mark.asyncio
    async def test_rejects_bad_address_before_storing(self, mocker):
        policy = mocker.MagicMock()
        policy.store = AsyncMock()

        with pytest.raises(InvalidInputError):
            await ChallengeIssuer(policy).issue("0x1234")
        policy.store.assert_not_awaited()


class TestSignatureVerifier:
    @pytest.mark.asyncio
    async def test_verify_accepts_matching_signer(self, mocker):
        account = Account.create()
        verifier = SignatureVerifier(mocker.MagicMock(), platform="VELTIS")
        signature = _sign(account, verifier.message_for(account.address, "n1"))

        assert await verifier.verify(account.address, "n1", signature) is True
        assert await verifier.verify(account.address, "n2", signature) is False
        assert await verifier.verify(account.address, "n1", "not-hex") is False

    @pytest.mark.asyncio
    async def test_authenticate_without_nonce(self, mocker):
        policy = mocker.MagicMock()
        policy.resolve = AsyncMock(return_value=None)
        verifier = SignatureVerifier(policy)
        recover = mocker.patch.object(verifier, "recover", new=AsyncMock())

        with pytest.raises(NonceNotFoundError):
            await verifier.authenticate("0x" + "1" * 40, "0x" + "22" * 65)
        recover.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_authenticate_returns_lookup(self, mocker):
        account = Account.create()
        lookup = NonceLookup(nonce="n1", backend=None)
        policy = mocker.MagicMock()
        policy.resolve = AsyncMock(return_value=lookup)
        verifier = SignatureVerifier(policy, platform="VELTIS")
        signature = _sign(account, verifier.message_for(account.address, "n1"))

        assert await verifier.authenticate(account.address, signature) is lookup
        policy.resolve.assert_awaited_once_with(account.address.lower())

    @pytest.mark.asyncio
    async def test_authenticate_rejects_wrong_signer(self, mocker):
        policy = mocker.MagicMock()
        policy.resolve = AsyncMock(return_value=NonceLookup(nonce="n1", backend=None))
        verifier = SignatureVerifier(policy, platform="VELTIS")
        claimed = Account.create()
        signature = _sign(Account.create(), verifier.message_for(claimed.address, "n1"))

        with pytest.raises(InvalidSignatureError):
            await verifier.authenticate(claimed.address, signature)
