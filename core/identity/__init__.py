"""
Shop Identity: Record Id Factories
====================================
Record identity is assigned by the caller's repository. Engines that
create records (order lines, receiving entries) receive an injected
factory instead of generating ids themselves.
"""

from __future__ import annotations

import uuid
from typing import Protocol


class IdFactory(Protocol):
    """Injectable record-id source."""

    def __call__(self) -> str:
        ...  # pragma: no cover


def uuid_ids() -> str:
    """Production factory: random UUID4 strings."""
    return str(uuid.uuid4())


class SequentialIds:
    """
    Test factory: deterministic ids with a prefix.

    Usage:
        ids = SequentialIds("line")
        assert ids() == "line-0001"
    """

    def __init__(self, prefix: str = "id") -> None:
        self._prefix = prefix
        self._sequence = 0

    def __call__(self) -> str:
        self._sequence += 1
        return f"{self._prefix}-{self._sequence:04d}"


__all__ = [
    "IdFactory",
    "SequentialIds",
    "uuid_ids",
]
