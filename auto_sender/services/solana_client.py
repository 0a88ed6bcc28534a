"""
Solana RPC client service for the auto-sender.
Wraps the four RPC calls a sweep needs and converts library failures into
TransientError / TransactionRejectedError.
"""

from typing import Optional, Union

from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment
from solana.rpc.core import RPCException
from solana.rpc.types import TxOpts
from solders.hash import Hash
from solders.pubkey import Pubkey
from solders.signature import Signature
import structlog

from auto_sender.core.config import SolanaConfig
from auto_sender.core.exceptions import TransientError, TransactionRejectedError


logger = structlog.get_logger(__name__)


class LatestBlockhash:
    """Blockhash plus the last block height at which it is still accepted."""

    __slots__ = ("blockhash", "last_valid_block_height")

    def __init__(self, blockhash: Hash, last_valid_block_height: int):
        self.blockhash = blockhash
        self.last_valid_block_height = last_valid_block_height


class SolanaClient:
    """
    Async Solana RPC client used by the balance oracle and transfer executor.

    Provides:
    - get_balance: confirmed lamport balance of an address
    - get_latest_blockhash: fresh replay-protection context per attempt
    - send_raw_transaction: submit signed bytes
    - confirm_transaction: wait for the configured commitment level
    """

    def __init__(
        self,
        client: Optional[AsyncClient] = None,
        endpoint: Optional[str] = None,
        commitment: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        """Initialize Solana client with configuration."""
        rpc_config = SolanaConfig.get_rpc_config()
        self.endpoint = endpoint or rpc_config["endpoint"]
        self.commitment = Commitment(commitment or rpc_config["commitment"])
        self.client = client or AsyncClient(
            endpoint=self.endpoint,
            commitment=self.commitment,
            timeout=timeout or rpc_config["timeout"],
        )
        self.logger = logger.bind(service="solana_client")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Close the RPC client connection."""
        await self.client.close()

    async def get_health(self) -> bool:
        """Check if the RPC endpoint is healthy."""
        try:
            return await self.client.is_connected()
        except Exception as e:
            self.logger.error("Health check failed", error=str(e))
            return False

    async def get_balance(self, address: Union[str, Pubkey]) -> int:
        """Lamport balance of ``address`` at the configured commitment."""
        if isinstance(address, str):
            address = Pubkey.from_string(address)
        try:
            response = await self.client.get_balance(address, commitment=self.commitment)
            return int(response.value)
        except Exception as e:
            self.logger.warning("Failed to get balance", address=str(address), error=str(e))
            raise TransientError(f"Failed to get balance: {e}", stage="balance") from e

    async def get_latest_blockhash(self) -> LatestBlockhash:
        """Fetch a blockhash. Never cache the result across attempts."""
        try:
            response = await self.client.get_latest_blockhash(commitment=self.commitment)
            return LatestBlockhash(
                blockhash=response.value.blockhash,
                last_valid_block_height=response.value.last_valid_block_height,
            )
        except Exception as e:
            self.logger.warning("Failed to get latest blockhash", error=str(e))
            raise TransientError(f"Failed to get latest blockhash: {e}", stage="blockhash") from e

    async def send_raw_transaction(self, raw_transaction: bytes) -> Signature:
        """
        Submit a signed transaction.

        A JSON-RPC error reply (preflight simulation refused the transaction)
        is a rejection; anything else is a transport failure.
        """
        try:
            response = await self.client.send_raw_transaction(
                raw_transaction,
                opts=TxOpts(skip_preflight=False, preflight_commitment=self.commitment),
            )
            return response.value
        except RPCException as e:
            self.logger.warning("Transaction rejected at submission", error=str(e))
            raise TransactionRejectedError(f"Transaction rejected: {e}") from e
        except Exception as e:
            self.logger.warning("Failed to submit transaction", error=str(e))
            raise TransientError(f"Failed to submit transaction: {e}", stage="submit") from e

    async def confirm_transaction(
        self,
        signature: Signature,
        last_valid_block_height: Optional[int] = None,
    ) -> None:
        """
        Wait until ``signature`` reaches the configured commitment.

        Raises TransactionRejectedError when the cluster reports an execution
        error, TransientError when the wait itself fails or times out.
        """
        try:
            response = await self.client.confirm_transaction(
                signature,
                self.commitment,
                last_valid_block_height=last_valid_block_height,
            )
        except Exception as e:
            self.logger.warning("Confirmation wait failed", signature=str(signature), error=str(e))
            raise TransientError(
                f"Confirmation failed: {e}",
                stage="confirm",
                details={"signature": str(signature)},
            ) from e

        status = response.value[0] if response.value else None
        if status is None:
            raise TransientError(
                "Transaction status unavailable after confirmation wait",
                stage="confirm",
                details={"signature": str(signature)},
            )
        if status.err is not None:
            raise TransactionRejectedError(
                f"Transaction failed on-chain: {status.err}",
                signature=str(signature),
            )
