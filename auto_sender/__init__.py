"""Solana Auto-Sender: sweeps excess wallet balances to a configured destination."""

__version__ = "0.1.0"
