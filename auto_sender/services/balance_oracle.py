"""
Balance oracle: confirmed SOL balance of a source wallet.
"""

from auto_sender.core.config import SolanaConfig
from auto_sender.services.solana_client import SolanaClient


class BalanceOracle:
    """Reads wallet balances through the shared RPC client."""

    def __init__(self, solana_client: SolanaClient):
        self.solana_client = solana_client

    async def get_balance_lamports(self, address: str) -> int:
        return await self.solana_client.get_balance(address)

    async def get_balance(self, address: str) -> float:
        """Balance in SOL. RPC failures surface as TransientError."""
        lamports = await self.get_balance_lamports(address)
        return lamports / SolanaConfig.LAMPORTS_PER_SOL
