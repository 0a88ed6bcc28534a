"""
Stats tracker: writes evaluation outcomes back onto auto-sender configs.
"""

from datetime import datetime, timedelta
from typing import Callable, Optional

from auto_sender.core.exceptions import AutoSenderException
from auto_sender.models.auto_sender import AutoSenderConfig, TransferResult


class StatsTracker:
    """
    Updates per-config counters after each evaluation.

    ``total_transferred`` and ``transfer_count`` only move in
    ``record_transfer``, which callers invoke after on-chain confirmation.
    """

    def __init__(
        self,
        backoff_base_seconds: float = 0.0,
        backoff_max_seconds: float = 30.0,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.backoff_base_seconds = backoff_base_seconds
        self.backoff_max_seconds = backoff_max_seconds
        self._clock = clock

    def now(self) -> datetime:
        return self._clock()

    def record_check(self, config: AutoSenderConfig) -> datetime:
        """Mark the config as evaluated, whatever the outcome."""
        checked_at = self._clock()
        config.last_checked_at = checked_at
        return checked_at

    def record_transfer(self, config: AutoSenderConfig, result: TransferResult) -> None:
        """Apply a confirmed sweep."""
        config.last_transfer_at = self._clock()
        config.total_transferred += result.amount_transferred
        config.transfer_count += 1
        config.last_signature = result.signature
        self.clear_failures(config)

    def record_no_op(self, config: AutoSenderConfig) -> None:
        self.clear_failures(config)

    def record_failure(self, config: AutoSenderConfig, error: Exception, transient: bool) -> None:
        """Remember the last error and, for transient failures, schedule backoff."""
        now = self._clock()
        if isinstance(error, AutoSenderException):
            config.last_error = error.message
            config.last_error_code = error.code
        else:
            config.last_error = str(error) or type(error).__name__
            config.last_error_code = "INTERNAL_ERROR"
        config.last_error_at = now
        config.consecutive_failures += 1

        delay = self.backoff_delay(config.consecutive_failures) if transient else None
        config.next_attempt_at = now + timedelta(seconds=delay) if delay else None

    def clear_failures(self, config: AutoSenderConfig) -> None:
        config.consecutive_failures = 0
        config.next_attempt_at = None

    def clear_error(self, config: AutoSenderConfig) -> None:
        config.last_error = None
        config.last_error_code = None
        config.last_error_at = None
        self.clear_failures(config)

    def backoff_delay(self, failures: int) -> Optional[float]:
        """Exponential delay for the n-th consecutive transient failure, or None if disabled."""
        if self.backoff_base_seconds <= 0 or failures <= 0:
            return None
        return min(self.backoff_base_seconds * (2 ** min(failures - 1, 32)), self.backoff_max_seconds)

    def in_backoff(self, config: AutoSenderConfig) -> bool:
        return config.next_attempt_at is not None and self._clock() < config.next_attempt_at
