"""Failure taxonomy shared by roster and scoring operations.

Expected rule rejections are returned as ``OperationResult`` values carrying
a ``Failure``; only unexpected faults (storage, consistency) are raised.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional


class FailureKind(str, Enum):
    VALIDATION_FAILURE = "VALIDATION_FAILURE"
    TRANSFERS_CLOSED = "TRANSFERS_CLOSED"
    TRANSFER_QUOTA_EXCEEDED = "TRANSFER_QUOTA_EXCEEDED"
    NOT_FOUND = "NOT_FOUND"
    OWNERSHIP_VIOLATION = "OWNERSHIP_VIOLATION"
    SETTLEMENT_CONSISTENCY_FAILURE = "SETTLEMENT_CONSISTENCY_FAILURE"


@dataclass(frozen=True)
class Failure:
    """A rejected operation: what kind, why, and every violated rule."""

    kind: FailureKind
    reason: str
    violations: List[str] = field(default_factory=list)


@dataclass
class OperationResult:
    """Outcome of a state-checked operation."""

    value: Any = None
    failure: Optional[Failure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, value: Any = None) -> "OperationResult":
        return cls(value=value)

    @classmethod
    def failed(
        cls,
        kind: FailureKind,
        reason: str,
        violations: Optional[List[str]] = None,
    ) -> "OperationResult":
        return cls(failure=Failure(kind, reason, list(violations or [])))


class EngineError(Exception):
    """Base class for unexpected engine faults."""

    kind: Optional[FailureKind] = None


class StorageError(EngineError):
    """Raised when the backing store cannot complete a read or write."""


class ConcurrentModificationError(StorageError):
    """Raised when a roster write is based on a stale version."""


class SettlementConsistencyError(EngineError):
    """Raised when a settlement attempt failed and was rolled back."""

    kind = FailureKind.SETTLEMENT_CONSISTENCY_FAILURE
