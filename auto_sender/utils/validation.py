"""
Validation utilities for Solana addresses, signing secrets and sweep amounts.
"""

import math
from typing import Union

import base58
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from auto_sender.core.exceptions import ConfigurationError, ValidationError


class SolanaValidator:
    """Validator for Solana blockchain data."""

    @staticmethod
    def is_valid_pubkey(address: str) -> bool:
        """
        Validate if a string is a valid Solana public key.

        Args:
            address: String to validate

        Returns:
            True if valid, False otherwise
        """
        try:
            if not address or len(address) < 32 or len(address) > 44:
                return False
            Pubkey.from_string(address)
            return True
        except Exception:
            return False


def validate_wallet_address(wallet: str) -> bool:
    """Validate wallet address format."""
    return SolanaValidator.is_valid_pubkey(wallet)


def require_wallet_address(wallet: str, field: str) -> str:
    """Return the address unchanged or raise ValidationError."""
    if not validate_wallet_address(wallet):
        raise ValidationError(
            f"Invalid Solana address for {field}",
            {"field": field}
        )
    return wallet


def require_non_negative(value: Union[int, float], field: str) -> float:
    """Return the amount as float or raise ValidationError for negative/NaN input."""
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number", {"field": field})
    if math.isnan(amount) or math.isinf(amount) or amount < 0:
        raise ValidationError(
            f"{field} must be a non-negative finite number",
            {"field": field, "value": value}
        )
    return amount


def keypair_from_secret(secret: str) -> Keypair:
    """
    Rebuild a keypair from a base58 encoded 64-byte secret key.

    Raises:
        ConfigurationError: the secret cannot be decoded into a keypair
    """
    try:
        secret_bytes = base58.b58decode(secret)
        return Keypair.from_bytes(secret_bytes)
    except Exception as e:
        # the decode error text can echo parts of the input
        raise ConfigurationError(
            "Signing secret is not a valid base58 keypair",
            {"reason": type(e).__name__}
        ) from None


def parse_destination(address: str) -> Pubkey:
    """Parse a destination address, raising ConfigurationError when malformed."""
    try:
        return Pubkey.from_string(address)
    except Exception:
        raise ConfigurationError(
            "Destination address is malformed",
            {"destination": address}
        ) from None
