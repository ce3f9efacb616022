"""Gender preference criterion."""

from __future__ import annotations

from ...schemas import Candidate, JobPosting
from .result import CriterionResult


class GenderEvaluator:
    method = "gender"

    def evaluate(self, candidate: Candidate, job: JobPosting) -> CriterionResult:
        preference = job.gender_preference.lower()
        details = {"candidate": candidate.gender, "preference": job.gender_preference}
        if preference == "any" or preference == candidate.gender.lower():
            return CriterionResult(self.method, True, details=details)
        reason = (
            f"Gender preference not met (Your gender: {candidate.gender}, "
            f"Required: {job.gender_preference})"
        )
        return CriterionResult(self.method, False, reason, details)
