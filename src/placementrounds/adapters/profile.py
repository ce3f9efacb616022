"""Adapter for flat student profile documents."""

from __future__ import annotations

from typing import Any

from ..schemas import Candidate


class ProfileAdapter:
    """Student profile documents already use the candidate field names."""

    source = "profile"

    def can_handle(self, record: dict[str, Any]) -> bool:
        return isinstance(record, dict) and "student" not in record

    def to_candidate(self, record: dict[str, Any]) -> dict[str, Any]:
        candidate = Candidate.model_validate(record)
        return candidate.model_dump(mode="python")
