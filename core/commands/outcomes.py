"""
Shop Command Layer: Operation Result Contract
================================================
Every mutation produces exactly one result. No exceptions.

success=True  → the returned snapshot is the new state, persist it.
success=False → the returned snapshot is the untouched input, the
                error explains why.

Rules:
- Exactly one result per operation
- Result is immutable (frozen dataclass)
- Failure must carry a RejectionReason
- Success must NOT carry one
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from core.commands.rejection import ErrorKind, RejectionReason


@dataclass(frozen=True)
class OperationResult:
    """
    Deterministic result of one engine operation.

    Fields:
        success:  True if the operation was applied.
        snapshot: Resulting state (the unchanged input on failure).
        error:    RejectionReason (mandatory on failure, None on success).
    """

    success: bool
    snapshot: Any
    error: Optional[RejectionReason] = None

    def __post_init__(self):
        if not isinstance(self.success, bool):
            raise ValueError("success must be a bool.")

        if not self.success and self.error is None:
            raise ValueError(
                "Failed result must include a RejectionReason. "
                "No silent rejections allowed."
            )

        if self.success and self.error is not None:
            raise ValueError("Successful result must NOT include a RejectionReason.")

    @classmethod
    def ok(cls, snapshot: Any) -> OperationResult:
        return cls(success=True, snapshot=snapshot)

    @classmethod
    def rejected(cls, snapshot: Any, reason: RejectionReason) -> OperationResult:
        return cls(success=False, snapshot=snapshot, error=reason)

    @property
    def error_code(self) -> Optional[str]:
        return self.error.code if self.error else None

    @property
    def is_invariant_violation(self) -> bool:
        return self.error is not None and self.error.kind == ErrorKind.INVARIANT_VIOLATION

    def to_dict(self) -> dict:
        """Caller-facing `{success, error}` shape."""
        return {
            "success": self.success,
            "error": self.error.message if self.error else None,
            "code": self.error_code,
        }
