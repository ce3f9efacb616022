"""Adapters turning stored records into engine candidates."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from .application import ApplicationAdapter
from .profile import ProfileAdapter
from .records import is_application_record, record_id


@runtime_checkable
class RecordAdapter(Protocol):
    """Store-specific record adapter contract.

    Implementations map one stored document shape onto the engine's
    :class:`~placementrounds.schemas.Candidate`.
    """

    source: str

    def can_handle(self, record: dict[str, Any]) -> bool:
        """Return True when the adapter understands the record's shape."""

    def to_candidate(self, record: dict[str, Any]) -> dict[str, Any]:
        """Return a candidate dictionary accepted by ``Candidate.model_validate``."""


__all__ = [
    "RecordAdapter",
    "ApplicationAdapter",
    "ProfileAdapter",
    "is_application_record",
    "record_id",
]
