"""Domain models for the Auto-Sender service."""

from .auto_sender import (
    AutoSenderConfig,
    PriceThreshold,
    DecisionKind,
    Decision,
    TransferResult,
    OutcomeStatus,
    EvaluationOutcome,
)

__all__ = [
    "AutoSenderConfig",
    "PriceThreshold",
    "DecisionKind",
    "Decision",
    "TransferResult",
    "OutcomeStatus",
    "EvaluationOutcome",
]
