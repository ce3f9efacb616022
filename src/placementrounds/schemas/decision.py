"""Round statuses, operator actions and decision batches."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .fields import coerce_str_list


class RoundStatus(str, Enum):
    """Status of a candidate within one round."""

    PENDING = "pending"
    SHORTLISTED = "shortlisted"
    WAITLISTED = "waitlisted"
    REJECTED = "rejected"
    SELECTED = "selected"


class RoundAction(str, Enum):
    """Bulk action an operator submits for the round under review."""

    SHORTLIST = "shortlist"
    SELECT = "select"
    WAITLIST = "waitlist"
    REJECT = "reject"
    REJECT_REMAINING = "reject-remaining"

    @property
    def closes_round(self) -> bool:
        """Whether unselected members of the view are rejected."""
        return self in _ROUND_CLOSING

    @property
    def advances_pipeline(self) -> bool:
        return self in _ADVANCING


_ROUND_CLOSING = frozenset({RoundAction.SHORTLIST, RoundAction.SELECT, RoundAction.REJECT_REMAINING})
_ADVANCING = frozenset({RoundAction.SHORTLIST, RoundAction.REJECT_REMAINING})


class RoundDecision(BaseModel):
    """A batch of operator decisions for one round of a job."""

    round_index: int = Field(validation_alias=AliasChoices("round_index", "roundIndex"))
    action: RoundAction
    selected: list[str] = Field(default_factory=list)
    view: list[str] | None = None

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    @field_validator("action", mode="before")
    @classmethod
    def _action(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower().replace("_", "-")
        return value

    @field_validator("selected", mode="before")
    @classmethod
    def _selected(cls, value: Any) -> list[str]:
        return coerce_str_list(value)

    @field_validator("view", mode="before")
    @classmethod
    def _view(cls, value: Any) -> list[str] | None:
        if value is None:
            return None
        return coerce_str_list(value)
