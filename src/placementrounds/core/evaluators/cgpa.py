"""Minimum CGPA criterion."""

from __future__ import annotations

from ...schemas import Candidate, JobPosting
from .result import CriterionResult, format_number


class CgpaEvaluator:
    """Pass when the candidate's CGPA meets the job minimum (0 means unset)."""

    method = "cgpa"

    def evaluate(self, candidate: Candidate, job: JobPosting) -> CriterionResult:
        required = job.min_cgpa
        details = {"candidate": candidate.cgpa, "required": required}
        if not required or candidate.cgpa >= required:
            return CriterionResult(self.method, True, details=details)
        reason = (
            f"CGPA requirement not met (Your CGPA: {format_number(candidate.cgpa)}, "
            f"Required: {format_number(required)})"
        )
        return CriterionResult(self.method, False, reason, details)
