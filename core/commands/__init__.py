"""
Shop Command Layer: Results and Rejections
=============================================
Every operation produces exactly one OperationResult.
Rejected operations are first-class results, never exceptions.
"""

from core.commands.outcomes import OperationResult
from core.commands.rejection import (
    ErrorKind,
    ReasonCode,
    RejectionReason,
)

__all__ = [
    "ErrorKind",
    "OperationResult",
    "ReasonCode",
    "RejectionReason",
]
