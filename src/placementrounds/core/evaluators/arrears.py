"""Arrears limit criteria."""

from __future__ import annotations

from typing import Literal

from ...schemas import Candidate, JobPosting
from .result import CriterionResult

ArrearsKind = Literal["current", "history"]


class ArrearsEvaluator:
    """Pass when the candidate's arrears stay within the job limit (0 means unset)."""

    def __init__(self, kind: ArrearsKind) -> None:
        if kind not in ("current", "history"):
            raise ValueError(f"Unknown arrears kind: {kind!r}")
        self.kind = kind
        self.method = f"{kind}_arrears"

    def evaluate(self, candidate: Candidate, job: JobPosting) -> CriterionResult:
        if self.kind == "current":
            count, limit = candidate.current_arrears, job.max_current_arrears
        else:
            count, limit = candidate.history_arrears, job.max_history_arrears
        details = {"candidate": count, "maximum": limit}
        if not limit or count <= limit:
            return CriterionResult(self.method, True, details=details)
        reason = (
            f"{self.kind.capitalize()} arrears limit exceeded "
            f"(Your arrears: {count}, Maximum allowed: {limit})"
        )
        return CriterionResult(self.method, False, reason, details)
