"""
Request schemas for the auto-sender management endpoints.

Only shape checks happen here; address decoding and reserve rules are
enforced by the service so the HTTP layer and direct callers agree.
"""

from typing import Optional
from pydantic import BaseModel, Field, SecretStr


def address_field(description: str):
    return Field(min_length=32, max_length=44, pattern=r"^[A-Za-z0-9]+$", description=description)


class AutoSenderCreate(BaseModel):
    """Body of POST /auto-senders."""
    source_address: str = address_field("Wallet that is watched and swept")
    destination_address: str = address_field("Wallet that receives the sweeps")
    signing_secret: SecretStr = Field(description="Base58 encoded secret key of the source wallet")
    reserve_amount: Optional[float] = Field(default=None, ge=0, description="SOL left behind in the source wallet")
    name: Optional[str] = Field(default=None, min_length=1, max_length=64)


class SigningSecretUpdate(BaseModel):
    """Body of POST /auto-senders/{id}/secret."""
    signing_secret: SecretStr


class RateUpdate(BaseModel):
    sol_to_usd_rate: float = Field(ge=0, description="USD per SOL")


class ThresholdUpdate(BaseModel):
    min_usd_threshold: float = Field(ge=0, description="Balances worth this much or less are not swept")
