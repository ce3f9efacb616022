"""Required skills criterion."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from ...schemas import Candidate, JobPosting
from .result import CriterionResult

SkillsMatch = Literal["all", "any"]


@dataclass
class SkillsConfig:
    """How required skills are matched.

    ``all`` is the applicant-facing rule; ``any`` is used when scanning for a
    broad notification audience.
    """

    match: SkillsMatch = "all"


class SkillsEvaluator:
    """Case-insensitive comparison of required skills against the candidate's."""

    method = "skills"

    def __init__(self, *, config: SkillsConfig | None = None) -> None:
        self._config = config or SkillsConfig()
        if self._config.match not in ("all", "any"):
            raise ValueError(f"Unsupported skills match mode: {self._config.match!r}")

    @property
    def match(self) -> SkillsMatch:
        return self._config.match

    def evaluate(self, candidate: Candidate, job: JobPosting) -> CriterionResult:
        required = [skill.lower() for skill in job.required_skills]
        owned = {skill.lower() for skill in candidate.skills}
        missing = [skill for skill in required if skill not in owned]
        details = {"required": required, "missing": missing, "match": self.match}

        if not required:
            return CriterionResult(self.method, True, details=details)

        if self.match == "any":
            passed = len(missing) < len(required)
        else:
            passed = not missing
        if passed:
            return CriterionResult(self.method, True, details=details)
        return CriterionResult(self.method, False, f"Missing skills: {', '.join(missing)}", details)
