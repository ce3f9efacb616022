"""Resolution of round labels against a candidate's stored round keys.

Round status maps are keyed by whatever label an operator typed when the
round was first recorded. Before writing a status for a round we look for
the key already used for that round, so label drift ("HR Interview" vs
"hr  interview") updates the existing entry instead of adding a second one.
Only two synonym rewrites are applied; anything looser would risk
overwriting another round's status.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Mapping, Sequence

_WHITESPACE_RE = re.compile(r"\s+")

DEFAULT_SYNONYMS: tuple[tuple[str, str], ...] = (
    ("shortlisting", "shortlist"),
    ("interview round", "interview"),
)


def normalize_round_label(
    label: str | None,
    synonyms: Sequence[tuple[str, str]] = DEFAULT_SYNONYMS,
) -> str:
    text = _WHITESPACE_RE.sub(" ", str(label or "").lower()).strip()
    for source, target in synonyms:
        text = text.replace(source, target)
    return text


def resolve_round_key(
    desired_name: str | None,
    round_status: Mapping[str, object] | None,
    *,
    synonyms: Sequence[tuple[str, str]] = DEFAULT_SYNONYMS,
) -> str | None:
    """Return the existing key in ``round_status`` for ``desired_name``.

    Tries a case-insensitive trimmed match first, then the normalized form.
    Returns ``None`` when nothing matches; callers decide whether a new key
    may be created.
    """
    if not desired_name or not round_status:
        return None

    wanted = desired_name.lower().strip()
    for key in round_status:
        if key.lower().strip() == wanted:
            return key

    target = normalize_round_label(desired_name, synonyms)
    for key in round_status:
        if normalize_round_label(key, synonyms) == target:
            return key
    return None


@dataclass
class RoundKeyResolverConfig:
    """Synonym rewrites applied during normalization."""

    synonyms: tuple[tuple[str, str], ...] = DEFAULT_SYNONYMS


class RoundKeyResolver:
    """Configured resolver shared by the progression engine and diagnostics."""

    def __init__(self, *, config: RoundKeyResolverConfig | None = None) -> None:
        self._config = config or RoundKeyResolverConfig()
        self._synonyms = tuple(tuple(pair) for pair in self._config.synonyms)

    def normalize(self, label: str | None) -> str:
        return normalize_round_label(label, self._synonyms)

    def resolve(self, desired_name: str | None, round_status: Mapping[str, object] | None) -> str | None:
        return resolve_round_key(desired_name, round_status, synonyms=self._synonyms)

    def resolve_or_create(
        self,
        desired_name: str,
        round_status: Mapping[str, object] | None,
    ) -> tuple[str, bool]:
        """Return ``(key, created)``, falling back to ``desired_name`` verbatim."""
        resolved = self.resolve(desired_name, round_status)
        if resolved is None:
            return desired_name, True
        return resolved, False

    def status_for(
        self,
        round_name: str,
        round_status: Mapping[str, str] | None,
        default: str = "pending",
    ) -> str:
        """Status stored for ``round_name``, or ``default`` when unrecorded."""
        if not round_status:
            return default
        key = self.resolve(round_name, round_status) or round_name
        return round_status.get(key, default)
