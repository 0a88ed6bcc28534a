"""
In-memory domain types for auto-sender configs, sweep decisions and outcomes.
"""

import uuid
from datetime import datetime
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Dict, Any


def _utcnow() -> datetime:
    return datetime.utcnow()


def _new_config_id() -> str:
    return f"autoSender_{uuid.uuid4().hex[:16]}"


@dataclass
class AutoSenderConfig:
    """
    One sweeper: watches ``source_address`` and moves everything above
    ``reserve_amount`` to ``destination_address``.

    The signing secret is deliberately not a field; it lives in the
    SecretStore keyed by ``id``.
    """
    source_address: str
    destination_address: str
    reserve_amount: float = 5.0
    name: str = "Auto-Sender"
    id: str = field(default_factory=_new_config_id)
    is_active: bool = True
    created_at: datetime = field(default_factory=_utcnow)

    # Stats
    last_checked_at: Optional[datetime] = None
    last_transfer_at: Optional[datetime] = None
    total_transferred: float = 0.0
    transfer_count: int = 0
    last_signature: Optional[str] = None

    # Failure tracking
    last_error: Optional[str] = None
    last_error_code: Optional[str] = None
    last_error_at: Optional[datetime] = None
    consecutive_failures: int = 0
    next_attempt_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """Public view of the config. Never includes key material."""
        return {
            "id": self.id,
            "name": self.name,
            "source_address": self.source_address,
            "destination_address": self.destination_address,
            "is_active": self.is_active,
            "reserve_amount": self.reserve_amount,
            "created_at": self.created_at.isoformat(),
            "last_checked_at": self.last_checked_at.isoformat() if self.last_checked_at else None,
            "last_transfer_at": self.last_transfer_at.isoformat() if self.last_transfer_at else None,
            "total_transferred": self.total_transferred,
            "transfer_count": self.transfer_count,
            "last_signature": self.last_signature,
            "last_error": self.last_error,
            "last_error_code": self.last_error_code,
            "last_error_at": self.last_error_at.isoformat() if self.last_error_at else None,
            "consecutive_failures": self.consecutive_failures,
        }


@dataclass
class PriceThreshold:
    """Process-wide USD gate applied on every tick."""
    sol_to_usd_rate: float = 195.0
    min_usd_threshold: float = 15.0
    min_transfer_amount: float = 0.0001


class DecisionKind(Enum):
    """Result of the threshold policy."""
    TRANSFER = "transfer"
    BELOW_USD_THRESHOLD = "below_usd_threshold"
    INSUFFICIENT_AMOUNT = "insufficient_amount"


@dataclass(frozen=True)
class Decision:
    """Policy outcome for one balance reading."""
    kind: DecisionKind
    balance: float
    balance_usd: float
    transfer_amount: float = 0.0

    @property
    def should_transfer(self) -> bool:
        return self.kind is DecisionKind.TRANSFER


@dataclass(frozen=True)
class TransferResult:
    """Confirmed on-chain sweep."""
    amount_transferred: float
    lamports: int
    signature: str
    destination: str


class OutcomeStatus(Enum):
    """How a single evaluation of a config ended."""
    TRANSFERRED = "transferred"
    NO_OP = "no_op"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class EvaluationOutcome:
    """What happened to one config during one tick."""
    config_id: str
    status: OutcomeStatus
    decision: Optional[Decision] = None
    transfer: Optional[TransferResult] = None
    error_code: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "config_id": self.config_id,
            "status": self.status.value,
            "error_code": self.error_code,
            "error": self.error,
        }
        if self.decision:
            data["decision"] = {
                "kind": self.decision.kind.value,
                "balance": self.decision.balance,
                "balance_usd": self.decision.balance_usd,
                "transfer_amount": self.decision.transfer_amount,
            }
        if self.transfer:
            data["transfer"] = {
                "amount": self.transfer.amount_transferred,
                "lamports": self.transfer.lamports,
                "signature": self.transfer.signature,
            }
        return data
