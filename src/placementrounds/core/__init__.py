"""Core eligibility and round-progression engine components."""

from __future__ import annotations

# NOTE: keep imports explicit for export clarity.
from .diagnostics import DriftConfig, LabelDriftDetector, find_duplicate_round_names, suspected_drift
from .eligibility import (
    Criterion,
    EligibilityEvaluator,
    EligibilityOutcome,
    default_criteria,
    eligibility_reasons,
    eligible_candidates,
    is_eligible,
    matches_notification_audience,
)
from .errors import InvalidJobConfiguration, ProgressionError
from .progression import (
    ApplicantCounts,
    ProgressionResult,
    RoundProgression,
    StatusWrite,
    apply_decision,
    apply_status_writes,
    compute_applicant_counts,
    round_participants,
)
from .round_keys import (
    DEFAULT_SYNONYMS,
    RoundKeyResolver,
    RoundKeyResolverConfig,
    normalize_round_label,
    resolve_round_key,
)

__all__ = [
    "ApplicantCounts",
    "Criterion",
    "DEFAULT_SYNONYMS",
    "DriftConfig",
    "EligibilityEvaluator",
    "EligibilityOutcome",
    "InvalidJobConfiguration",
    "LabelDriftDetector",
    "ProgressionError",
    "ProgressionResult",
    "RoundKeyResolver",
    "RoundKeyResolverConfig",
    "RoundProgression",
    "StatusWrite",
    "apply_decision",
    "apply_status_writes",
    "compute_applicant_counts",
    "default_criteria",
    "eligibility_reasons",
    "eligible_candidates",
    "find_duplicate_round_names",
    "is_eligible",
    "matches_notification_audience",
    "normalize_round_label",
    "resolve_round_key",
    "round_participants",
    "suspected_drift",
]
