"""
Transfer executor: builds, signs, submits and confirms a native SOL sweep.
"""

import math

from solders.keypair import Keypair
from solders.system_program import transfer, TransferParams
from solders.transaction import Transaction
import structlog

from auto_sender.core.config import SolanaConfig
from auto_sender.core.exceptions import ConfigurationError, ValidationError
from auto_sender.models.auto_sender import AutoSenderConfig, TransferResult
from auto_sender.services.solana_client import SolanaClient
from auto_sender.utils.validation import keypair_from_secret, parse_destination


logger = structlog.get_logger(__name__)


def sol_to_lamports(amount: float) -> int:
    """Whole lamports for ``amount`` SOL, rounded down."""
    return math.floor(amount * SolanaConfig.LAMPORTS_PER_SOL)


class TransferExecutor:
    """
    Single-attempt sweep of ``amount`` SOL from a config's source wallet.

    No retries happen here: every failure propagates and the next scheduler
    tick starts over with a fresh balance and blockhash.
    """

    def __init__(self, solana_client: SolanaClient):
        self.solana_client = solana_client
        self.logger = logger.bind(service="transfer_executor")

    def load_signer(self, config: AutoSenderConfig, secret: str) -> Keypair:
        """
        Rebuild the source keypair and check it against the declared address.

        Raises:
            ConfigurationError: undecodable secret or key/address mismatch
        """
        keypair = keypair_from_secret(secret)
        derived = str(keypair.pubkey())
        if derived != config.source_address:
            raise ConfigurationError(
                "Signing key does not match source address",
                {"source_address": config.source_address, "derived_address": derived}
            )
        return keypair

    async def execute(self, config: AutoSenderConfig, keypair: Keypair, amount: float) -> TransferResult:
        """
        Transfer ``amount`` SOL to the config's destination and wait for
        confirmation at the client's commitment level.

        Raises:
            ConfigurationError: malformed destination
            TransientError: RPC/network failure at any step
            TransactionRejectedError: the cluster refused the transaction
        """
        destination = parse_destination(config.destination_address)
        lamports = sol_to_lamports(amount)
        if lamports <= 0:
            raise ValidationError("Transfer amount rounds to zero lamports", {"amount": amount})

        # Fresh blockhash per attempt; stale ones are rejected by the cluster
        latest = await self.solana_client.get_latest_blockhash()

        instruction = transfer(
            TransferParams(
                from_pubkey=keypair.pubkey(),
                to_pubkey=destination,
                lamports=lamports,
            )
        )
        transaction = Transaction.new_signed_with_payer(
            [instruction],
            keypair.pubkey(),
            [keypair],
            latest.blockhash,
        )

        signature = await self.solana_client.send_raw_transaction(bytes(transaction))
        self.logger.debug(
            "Sweep transaction submitted",
            config_id=config.id,
            signature=str(signature),
            lamports=lamports,
        )

        await self.solana_client.confirm_transaction(
            signature,
            last_valid_block_height=latest.last_valid_block_height,
        )

        return TransferResult(
            amount_transferred=amount,
            lamports=lamports,
            signature=str(signature),
            destination=config.destination_address,
        )
