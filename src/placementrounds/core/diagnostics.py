"""Round-label drift diagnostics.

Resolution stays strict; these helpers only report labels that look like
the same round under a different spelling so operators can fix them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from rapidfuzz import fuzz

from ..schemas import JobPosting
from .round_keys import RoundKeyResolver


@dataclass
class DriftConfig:
    """Similarity threshold (0-100) above which two labels are reported."""

    min_similarity: float = 90.0


class LabelDriftDetector:
    def __init__(
        self,
        *,
        config: DriftConfig | None = None,
        resolver: RoundKeyResolver | None = None,
    ) -> None:
        self._config = config or DriftConfig()
        self._resolver = resolver or RoundKeyResolver()

    @property
    def min_similarity(self) -> float:
        return self._config.min_similarity

    def duplicate_round_names(self, job: JobPosting) -> list[tuple[int, int]]:
        """Pairs of round indexes whose names normalize to the same label."""
        seen: dict[str, int] = {}
        duplicates: list[tuple[int, int]] = []
        for index in range(len(job.rounds)):
            normalized = self._resolver.normalize(job.round_name(index))
            if normalized in seen:
                duplicates.append((seen[normalized], index))
            else:
                seen[normalized] = index
        return duplicates

    def suspected_drift(self, desired_name: str, round_status: Mapping[str, object] | None) -> list[str]:
        """Existing keys that do not resolve to ``desired_name`` but look alike."""
        if not desired_name or not round_status:
            return []
        if self._resolver.resolve(desired_name, round_status) is not None:
            return []
        target = self._resolver.normalize(desired_name)
        return [
            key
            for key in round_status
            if fuzz.token_set_ratio(target, self._resolver.normalize(key)) >= self._config.min_similarity
        ]


def find_duplicate_round_names(job: JobPosting) -> list[tuple[int, int]]:
    return LabelDriftDetector().duplicate_round_names(job)


def suspected_drift(
    desired_name: str,
    round_status: Mapping[str, object] | None,
    *,
    min_similarity: float = 90.0,
) -> list[str]:
    detector = LabelDriftDetector(config=DriftConfig(min_similarity=min_similarity))
    return detector.suspected_drift(desired_name, round_status)
