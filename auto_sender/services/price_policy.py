"""
Threshold policy deciding whether a wallet balance should be swept.
Pure functions only; no RPC, no clock, no logging.
"""

import math

from auto_sender.core.config import SolanaConfig
from auto_sender.models.auto_sender import Decision, DecisionKind, PriceThreshold


def transferable_amount(balance: float, reserve_amount: float) -> float:
    """Balance above the reserve, never negative."""
    return max(0.0, balance - reserve_amount)


def decide(balance: float, reserve_amount: float, threshold: PriceThreshold) -> Decision:
    """
    Decide whether ``balance`` (SOL) should be swept.

    The USD gate is inclusive: a balance worth exactly ``min_usd_threshold``
    is left alone. The minimum-amount gate applies only after the USD gate
    passes. An amount that rounds down to zero lamports is never a transfer,
    whatever ``min_transfer_amount`` is set to.
    """
    balance_usd = balance * threshold.sol_to_usd_rate

    if balance_usd <= threshold.min_usd_threshold:
        return Decision(
            kind=DecisionKind.BELOW_USD_THRESHOLD,
            balance=balance,
            balance_usd=balance_usd,
        )

    amount = transferable_amount(balance, reserve_amount)
    lamports = math.floor(amount * SolanaConfig.LAMPORTS_PER_SOL)
    if lamports <= 0 or amount < threshold.min_transfer_amount:
        return Decision(
            kind=DecisionKind.INSUFFICIENT_AMOUNT,
            balance=balance,
            balance_usd=balance_usd,
            transfer_amount=amount,
        )

    return Decision(
        kind=DecisionKind.TRANSFER,
        balance=balance,
        balance_usd=balance_usd,
        transfer_amount=amount,
    )
