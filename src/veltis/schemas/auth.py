"""Wallet authentication Pydantic schemas."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from veltis.schemas.user import UserPayload


class WalletRequest(BaseModel):
    """Base for requests naming a wallet; surrounding whitespace is dropped."""

    wallet_address: str | None = Field(
        None,
        alias="walletAddress",
        description="Ethereum wallet address (0x + 40 hex characters)",
    )

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("wallet_address")
    @classmethod
    def strip_wallet_address(cls, v: str | None) -> str | None:
        return v.strip() if isinstance(v, str) else v


class NonceRequest(WalletRequest):
    """Request for a sign-in challenge nonce."""


class NonceResponse(BaseModel):
    """Challenge nonce the wallet must embed in the signed message."""

    nonce: str = Field(..., description="Single-use nonce, valid for 15 minutes")


class VerifyRequest(WalletRequest):
    """Signed challenge submitted to obtain a session token."""

    signature: str | None = Field(None, description="EIP-191 personal_sign signature (hex)")


class VerifyResponse(BaseModel):
    """Session token and identity returned after a successful sign-in."""

    token: str = Field(..., description="JWT bearer token valid for 24 hours")
    user: UserPayload


class LogoutResponse(BaseModel):
    """Acknowledgement that the client should discard its token."""

    message: str
