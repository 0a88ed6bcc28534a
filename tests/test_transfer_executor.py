"""
Test transaction building, signing, submission and confirmation.
"""

import httpx
import pytest
from solana.rpc.core import RPCException
from solders.keypair import Keypair
from solders.transaction import Transaction

from auto_sender.core.exceptions import (
    ConfigurationError,
    TransactionRejectedError,
    TransientError,
)
from auto_sender.models.auto_sender import AutoSenderConfig
from auto_sender.services.balance_oracle import BalanceOracle
from auto_sender.services.transfer_executor import TransferExecutor, sol_to_lamports
from tests.fakes import encode_secret


def make_config(source: Keypair, destination: str) -> AutoSenderConfig:
    return AutoSenderConfig(
        source_address=str(source.pubkey()),
        destination_address=destination,
        reserve_amount=5,
        name="Test Sweeper",
    )


def transfer_lamports(raw: bytes) -> int:
    tx = Transaction.from_bytes(raw)
    data = bytes(tx.message.instructions[0].data)
    # System program transfer: u32 discriminator followed by u64 lamports
    return int.from_bytes(data[4:12], "little")


def test_sol_to_lamports_rounds_down():
    assert sol_to_lamports(5) == 5_000_000_000
    assert sol_to_lamports(0.0000000019) == 1
    assert sol_to_lamports(1.23456789912) == 1_234_567_899


def test_load_signer_accepts_matching_key(solana_client, source, destination):
    executor = TransferExecutor(solana_client)
    keypair = executor.load_signer(make_config(source, destination), encode_secret(source))

    assert keypair.pubkey() == source.pubkey()


def test_load_signer_rejects_mismatched_key(solana_client, source, destination):
    executor = TransferExecutor(solana_client)

    with pytest.raises(ConfigurationError) as exc_info:
        executor.load_signer(make_config(source, destination), encode_secret(Keypair()))

    assert exc_info.value.code == "CONFIGURATION_ERROR"
    assert exc_info.value.details["source_address"] == str(source.pubkey())


def test_load_signer_rejects_garbage_secret(solana_client, source, destination):
    executor = TransferExecutor(solana_client)

    with pytest.raises(ConfigurationError) as exc_info:
        executor.load_signer(make_config(source, destination), "not-a-key-0OIl")

    assert "not-a-key" not in str(exc_info.value.details)


async def test_execute_submits_signed_transfer(rpc, solana_client, source, destination):
    executor = TransferExecutor(solana_client)
    config = make_config(source, destination)

    result = await executor.execute(config, source, 5)

    assert result.amount_transferred == 5
    assert result.lamports == 5_000_000_000
    assert result.signature == str(rpc.signatures[0])
    assert result.destination == destination

    tx = Transaction.from_bytes(rpc.sent[0])
    assert tx.message.account_keys[0] == source.pubkey()
    assert str(tx.message.account_keys[1]) == destination
    assert tx.message.recent_blockhash == rpc.blockhashes[0]
    assert transfer_lamports(rpc.sent[0]) == 5_000_000_000
    tx.verify()


async def test_each_attempt_uses_fresh_blockhash(rpc, solana_client, source, destination):
    executor = TransferExecutor(solana_client)
    config = make_config(source, destination)

    await executor.execute(config, source, 1)
    await executor.execute(config, source, 1)

    assert len(rpc.blockhashes) == 2
    assert rpc.blockhashes[0] != rpc.blockhashes[1]
    assert Transaction.from_bytes(rpc.sent[1]).message.recent_blockhash == rpc.blockhashes[1]


async def test_malformed_destination_is_configuration_error(rpc, solana_client, source):
    executor = TransferExecutor(solana_client)
    config = make_config(source, "not-a-valid-address")

    with pytest.raises(ConfigurationError):
        await executor.execute(config, source, 1)
    assert rpc.sent == []


async def test_blockhash_failure_is_transient(rpc, solana_client, source, destination):
    rpc.blockhash_error = httpx.ConnectError("connection refused")
    executor = TransferExecutor(solana_client)

    with pytest.raises(TransientError) as exc_info:
        await executor.execute(make_config(source, destination), source, 1)

    assert exc_info.value.stage == "blockhash"
    assert rpc.sent == []


async def test_submission_network_failure_is_transient(rpc, solana_client, source, destination):
    rpc.send_error = httpx.ReadTimeout("timed out")
    executor = TransferExecutor(solana_client)

    with pytest.raises(TransientError) as exc_info:
        await executor.execute(make_config(source, destination), source, 1)

    assert exc_info.value.stage == "submit"


async def test_preflight_rejection_is_distinguishable(rpc, solana_client, source, destination):
    rpc.send_error = RPCException("Transaction simulation failed: insufficient lamports")
    executor = TransferExecutor(solana_client)

    with pytest.raises(TransactionRejectedError) as exc_info:
        await executor.execute(make_config(source, destination), source, 1)

    assert not isinstance(exc_info.value, TransientError)
    assert exc_info.value.code == "TRANSACTION_REJECTED"


async def test_confirmation_timeout_is_transient(rpc, solana_client, source, destination):
    rpc.confirm_error = TimeoutError("not confirmed in time")
    executor = TransferExecutor(solana_client)

    with pytest.raises(TransientError) as exc_info:
        await executor.execute(make_config(source, destination), source, 1)

    assert exc_info.value.stage == "confirm"
    assert exc_info.value.details["signature"] == str(rpc.signatures[0])


async def test_on_chain_failure_is_rejection(rpc, solana_client, source, destination):
    rpc.confirm_err_value = {"InstructionError": [0, {"Custom": 1}]}
    executor = TransferExecutor(solana_client)

    with pytest.raises(TransactionRejectedError) as exc_info:
        await executor.execute(make_config(source, destination), source, 1)

    assert exc_info.value.signature == str(rpc.signatures[0])


async def test_balance_oracle_converts_lamports(rpc, solana_client, source):
    rpc.set_balance(str(source.pubkey()), 2.5)
    oracle = BalanceOracle(solana_client)

    assert await oracle.get_balance(str(source.pubkey())) == 2.5
    assert await oracle.get_balance_lamports(str(source.pubkey())) == 2_500_000_000


async def test_balance_oracle_failure_is_transient(rpc, solana_client, source):
    rpc.balance_error = httpx.ConnectError("connection refused")
    oracle = BalanceOracle(solana_client)

    with pytest.raises(TransientError) as exc_info:
        await oracle.get_balance(str(source.pubkey()))

    assert exc_info.value.stage == "balance"
