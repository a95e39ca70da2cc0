"""
Shop Command Layer: Rejection Model
======================================
Structured rejection reasons for refused operations.

This is NOT an exception. It is an explanation structure that is
returned to the caller inside an OperationResult.

Every rejection must be:
- Deterministic (same input, same rejection)
- Classified (VALIDATION or INVARIANT_VIOLATION)
- Machine-readable (code)
- Human-readable (message)
"""

from __future__ import annotations

from dataclasses import dataclass


# ══════════════════════════════════════════════════════════════
# ERROR KINDS
# ══════════════════════════════════════════════════════════════

class ErrorKind:
    """
    Failure taxonomy shared by every engine.

    VALIDATION and INVARIANT_VIOLATION are returned as rejections.
    LOOKUP_MISS is never a rejection: calculations carry it as a warning.
    """

    VALIDATION = "VALIDATION"
    INVARIANT_VIOLATION = "INVARIANT_VIOLATION"
    LOOKUP_MISS = "LOOKUP_MISS"

    REJECTABLE = frozenset({VALIDATION, INVARIANT_VIOLATION})
    ALL = frozenset({VALIDATION, INVARIANT_VIOLATION, LOOKUP_MISS})


# ══════════════════════════════════════════════════════════════
# REJECTION REASON (frozen explanation structure)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RejectionReason:
    """
    Structured reason for an operation rejection.

    Fields:
        code:        Machine-readable rejection code (e.g. 'ORDER_LOCKED').
        message:     Human-readable explanation.
        policy_name: Name of the policy that caused rejection.
        kind:        VALIDATION | INVARIANT_VIOLATION.
    """

    code: str
    message: str
    policy_name: str
    kind: str = ErrorKind.VALIDATION

    def __post_init__(self):
        if not self.code or not isinstance(self.code, str):
            raise ValueError("code must be a non-empty string.")

        if not self.message or not isinstance(self.message, str):
            raise ValueError("message must be a non-empty string.")

        if not self.policy_name or not isinstance(self.policy_name, str):
            raise ValueError("policy_name must be a non-empty string.")

        if self.kind not in ErrorKind.REJECTABLE:
            raise ValueError(
                f"kind '{self.kind}' not valid. "
                f"Must be one of: {sorted(ErrorKind.REJECTABLE)}"
            )

    @property
    def is_invariant_violation(self) -> bool:
        return self.kind == ErrorKind.INVARIANT_VIOLATION

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "policy_name": self.policy_name,
            "kind": self.kind,
        }


# ══════════════════════════════════════════════════════════════
# STANDARD REJECTION CODES
# ══════════════════════════════════════════════════════════════

class ReasonCode:
    """
    Known rejection codes. Extensible by engines.

    Convention: SCREAMING_SNAKE_CASE.
    """

    # ── Lookups ───────────────────────────────────────────────
    LINE_NOT_FOUND = "LINE_NOT_FOUND"
    PART_NOT_FOUND = "PART_NOT_FOUND"

    # ── Validation ────────────────────────────────────────────
    PART_INACTIVE = "PART_INACTIVE"
    INVALID_QUANTITY = "INVALID_QUANTITY"
    INVALID_HOURS = "INVALID_HOURS"
    INVALID_UNIT_COST = "INVALID_UNIT_COST"
    INVALID_ORDER_KIND = "INVALID_ORDER_KIND"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"
    MISSING_FIELD = "MISSING_FIELD"

    # ── Invariants ────────────────────────────────────────────
    ORDER_LOCKED = "ORDER_LOCKED"
    OVER_RECEIPT = "OVER_RECEIPT"
    LINE_ALREADY_RECEIVED = "LINE_ALREADY_RECEIVED"
    BELOW_RECEIVED_QUANTITY = "BELOW_RECEIVED_QUANTITY"
