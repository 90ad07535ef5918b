"""
Exception types raised by the analytics engine.
"""

from __future__ import annotations

from typing import Optional


class StudyflowError(Exception):
    """Base exception for all engine errors."""


class ContractViolationError(StudyflowError, ValueError):
    """Raised when a caller passes input the boundary layer should have rejected."""


class MalformedRecordError(StudyflowError):
    """Raised by the normalizer for a stored session it cannot interpret."""

    def __init__(self, message: str, kind: str, record_id: Optional[int] = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.record_id = record_id
