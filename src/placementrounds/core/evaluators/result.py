"""Result type shared by the eligibility criteria."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True)
class CriterionResult:
    """Outcome of one eligibility criterion."""

    criterion: str
    passed: bool
    reason: str | None = None
    details: dict[str, Any] = field(default_factory=dict)


def format_number(value: float | int) -> str:
    """Render numbers the way the student job board prints them (7.0 -> 7)."""
    return f"{value:g}"
