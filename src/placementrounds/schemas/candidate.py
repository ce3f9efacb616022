"""Candidate snapshot consumed by the eligibility and progression engine."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .fields import (
    coerce_float,
    coerce_int,
    coerce_status_map,
    coerce_str,
    coerce_str_list,
)


class Candidate(BaseModel):
    """One student's profile snapshot plus their per-round status map."""

    candidate_id: str = Field(validation_alias=AliasChoices("candidate_id", "id", "studentId"))
    name: str | None = None
    cgpa: float = 0.0
    skills: list[str] = Field(default_factory=list)
    batch: str = ""
    gender: str = ""
    current_arrears: int = Field(
        default=0,
        validation_alias=AliasChoices("current_arrears", "currentArrears"),
    )
    history_arrears: int = Field(
        default=0,
        validation_alias=AliasChoices("history_arrears", "historyArrears"),
    )
    round_status: dict[str, str] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("round_status", "roundStatus", "rounds"),
    )

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @field_validator("candidate_id", mode="before")
    @classmethod
    def _candidate_id(cls, value: Any) -> str:
        return coerce_str(value)

    @field_validator("cgpa", mode="before")
    @classmethod
    def _cgpa(cls, value: Any) -> float:
        return coerce_float(value)

    @field_validator("current_arrears", "history_arrears", mode="before")
    @classmethod
    def _arrears(cls, value: Any) -> int:
        return coerce_int(value)

    @field_validator("batch", "gender", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return coerce_str(value)

    @field_validator("skills", mode="before")
    @classmethod
    def _skills(cls, value: Any) -> list[str]:
        return coerce_str_list(value)

    @field_validator("round_status", mode="before")
    @classmethod
    def _round_status(cls, value: Any) -> dict[str, str]:
        return coerce_status_map(value)

    def with_round_status(self, round_status: dict[str, str]) -> "Candidate":
        """Return a copy carrying ``round_status`` in place of the current map."""
        return self.model_copy(update={"round_status": dict(round_status)})
