"""Eligible batch criterion."""

from __future__ import annotations

from ...schemas import Candidate, JobPosting
from .result import CriterionResult


class BatchEvaluator:
    """Loose batch match: either label may contain the other, ignoring case.

    Batch labels are free-form ("2025", "Batch 2025", "2021-2025"), so a
    substring match in either direction counts.
    """

    method = "batch"

    def evaluate(self, candidate: Candidate, job: JobPosting) -> CriterionResult:
        eligible = [label.lower() for label in job.eligible_batches]
        batch = candidate.batch.lower()
        details = {"candidate": candidate.batch, "eligible": list(job.eligible_batches)}
        if not eligible:
            return CriterionResult(self.method, True, details=details)

        matched = [label for label in eligible if batch in label or label in batch]
        details["matched"] = matched
        if matched:
            return CriterionResult(self.method, True, details=details)
        reason = (
            f"Batch requirement not met (Your batch: {candidate.batch}, "
            f"Required: {', '.join(job.eligible_batches)})"
        )
        return CriterionResult(self.method, False, reason, details)
