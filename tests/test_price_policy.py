"""
Test the sweep threshold policy.
"""

import pytest

from auto_sender.models.auto_sender import DecisionKind, PriceThreshold
from auto_sender.services.price_policy import decide, transferable_amount


THRESHOLD = PriceThreshold(sol_to_usd_rate=195, min_usd_threshold=15, min_transfer_amount=0.0001)


def test_transfer_when_balance_above_reserve():
    """Balance 10, reserve 5 at $195 sweeps exactly 5."""
    decision = decide(10, 5, THRESHOLD)

    assert decision.kind is DecisionKind.TRANSFER
    assert decision.should_transfer
    assert decision.balance_usd == 1950
    assert decision.transfer_amount == 5


def test_balance_below_reserve_is_no_op():
    """0.05 SOL is worth $9.75, under the gate before the reserve is even considered."""
    decision = decide(0.05, 5, THRESHOLD)

    assert not decision.should_transfer
    assert decision.transfer_amount == 0


def test_balance_below_reserve_above_usd_gate():
    decision = decide(1, 5, THRESHOLD)

    assert decision.kind is DecisionKind.INSUFFICIENT_AMOUNT
    assert decision.transfer_amount == 0


def test_usd_gate_applies_before_reserve():
    """Rate 10, balance 1 -> $10 <= $15, even with no reserve at all."""
    threshold = PriceThreshold(sol_to_usd_rate=10, min_usd_threshold=15, min_transfer_amount=0.0001)
    decision = decide(1, 0, threshold)

    assert decision.kind is DecisionKind.BELOW_USD_THRESHOLD
    assert decision.balance_usd == 10
    assert decision.transfer_amount == 0


def test_usd_gate_is_inclusive():
    threshold = PriceThreshold(sol_to_usd_rate=10, min_usd_threshold=15, min_transfer_amount=0.0001)

    assert decide(1.5, 0, threshold).kind is DecisionKind.BELOW_USD_THRESHOLD
    assert decide(1.6, 0, threshold).kind is DecisionKind.TRANSFER


@pytest.mark.parametrize("balance,rate,threshold", [
    (0, 195, 15),
    (0.0769, 195, 15),
    (100, 0, 0),
    (3, 5, 15),
])
def test_never_transfers_at_or_below_usd_threshold(balance, rate, threshold):
    policy = PriceThreshold(sol_to_usd_rate=rate, min_usd_threshold=threshold)
    assert balance * rate <= threshold
    assert decide(balance, 0, policy).kind is DecisionKind.BELOW_USD_THRESHOLD


@pytest.mark.parametrize("balance,reserve,expected", [
    (10, 5, 5),
    (5, 5, 0),
    (4.5, 5, 0),
    (0, 0, 0),
    (7.25, 0.25, 7),
])
def test_transferable_amount_never_negative(balance, reserve, expected):
    assert transferable_amount(balance, reserve) == pytest.approx(expected)
    assert transferable_amount(balance, reserve) >= 0


def test_minimum_amount_gate():
    """Just above the reserve but below the fee floor is not worth a transaction."""
    decision = decide(5.00005, 5, THRESHOLD)

    assert decision.kind is DecisionKind.INSUFFICIENT_AMOUNT
    assert decision.transfer_amount == pytest.approx(0.00005)


def test_minimum_amount_gate_ignores_large_usd_value():
    threshold = PriceThreshold(sol_to_usd_rate=1_000_000, min_usd_threshold=1, min_transfer_amount=1)
    decision = decide(5.5, 5, threshold)

    assert decision.kind is DecisionKind.INSUFFICIENT_AMOUNT


@pytest.mark.parametrize("balance,reserve", [
    (5, 5),
    (4, 5),
    (5.0000000001, 5),
])
def test_zero_minimum_never_transfers_nothing(balance, reserve):
    """With no minimum configured, a sub-lamport amount is still a no-op."""
    threshold = PriceThreshold(sol_to_usd_rate=195, min_usd_threshold=15, min_transfer_amount=0)
    decision = decide(balance, reserve, threshold)

    assert decision.kind is DecisionKind.INSUFFICIENT_AMOUNT
    assert not decision.should_transfer


def test_zero_minimum_allows_single_lamport():
    threshold = PriceThreshold(sol_to_usd_rate=195, min_usd_threshold=15, min_transfer_amount=0)

    assert decide(5.000000002, 5, threshold).kind is DecisionKind.TRANSFER
