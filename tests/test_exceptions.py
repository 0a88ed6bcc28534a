"""
Test error codes and details carried by the exception hierarchy.
"""

import pytest

from auto_sender.core.exceptions import (
    AutoSenderException,
    AutoSenderNotFoundError,
    ConfigurationError,
    NotFoundError,
    SolanaError,
    TransactionRejectedError,
    TransientError,
    ValidationError,
)


@pytest.mark.parametrize("error,code", [
    (ConfigurationError("bad key", {"source_address": "abc"}), "CONFIGURATION_ERROR"),
    (ValidationError("bad input", {"field": "reserve_amount"}), "VALIDATION_ERROR"),
    (NotFoundError("missing", {"id": "x"}), "NOT_FOUND"),
    (SolanaError("rpc down", details={"endpoint": "local"}), "SOLANA_ERROR"),
])
def test_codes_and_details(error, code):
    assert isinstance(error, AutoSenderException)
    assert error.code == code
    assert error.details
    assert str(error) == error.message


def test_transient_error_carries_stage():
    error = TransientError("timed out", stage="confirm", details={"signature": "sig"})

    assert isinstance(error, SolanaError)
    assert error.code == "TRANSIENT_ERROR"
    assert error.stage == "confirm"
    assert error.details == {"stage": "confirm", "signature": "sig"}


def test_transaction_rejected_carries_signature():
    error = TransactionRejectedError("failed on-chain", signature="abc")

    assert isinstance(error, SolanaError)
    assert not isinstance(error, TransientError)
    assert error.code == "TRANSACTION_REJECTED"
    assert error.signature == "abc"
    assert error.details == {"signature": "abc"}


def test_transaction_rejected_without_signature():
    error = TransactionRejectedError("refused at preflight")

    assert error.code == "TRANSACTION_REJECTED"
    assert error.signature is None


def test_not_found_for_config():
    error = AutoSenderNotFoundError("autoSender_123")

    assert isinstance(error, NotFoundError)
    assert error.code == "NOT_FOUND"
    assert error.details == {"config_id": "autoSender_123"}
    assert "autoSender_123" in error.message


def test_default_code():
    assert AutoSenderException("boom").code == "UNKNOWN_ERROR"
    assert AutoSenderException("boom").details == {}
