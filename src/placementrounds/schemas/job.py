from __future__ import annotations

from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from .fields import coerce_float, coerce_int, coerce_str, coerce_str_list

# Legacy ``eligibilityCriteria`` keys and the top-level field each one fills.
_LEGACY_CRITERIA: dict[str, tuple[str, ...]] = {
    "cgpa": ("min_cgpa", "minCgpa", "minCGPA"),
    "skills": ("required_skills", "requiredSkills", "skills"),
    "batch": ("eligible_batches", "eligibleBatches", "eligibleBatch"),
    "currentArrears": ("max_current_arrears", "maxCurrentArrears"),
    "historyArrears": ("max_history_arrears", "maxHistoryArrears"),
}


class RoundDefinition(BaseModel):
    """One stage of a job's hiring workflow."""

    name: str | None = Field(default=None, validation_alias=AliasChoices("name", "roundName"))

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _from_label(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"name": data}
        return data

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, value: Any) -> str | None:
        text = coerce_str(value).strip()
        return text or None

    def display_name(self, index: int) -> str:
        return self.name or f"Round {index + 1}"


class JobPosting(BaseModel):
    """Admission criteria and ordered hiring workflow of a job."""

    job_id: str = Field(default="", validation_alias=AliasChoices("job_id", "jobId", "id"))
    company: str | None = None
    position: str | None = None
    min_cgpa: float = Field(
        default=0.0,
        validation_alias=AliasChoices("min_cgpa", "minCgpa", "minCGPA"),
    )
    required_skills: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("required_skills", "requiredSkills", "skills"),
    )
    eligible_batches: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("eligible_batches", "eligibleBatches", "eligibleBatch"),
    )
    gender_preference: str = Field(
        default="any",
        validation_alias=AliasChoices("gender_preference", "genderPreference"),
    )
    max_current_arrears: int = Field(
        default=0,
        validation_alias=AliasChoices("max_current_arrears", "maxCurrentArrears"),
    )
    max_history_arrears: int = Field(
        default=0,
        validation_alias=AliasChoices("max_history_arrears", "maxHistoryArrears"),
    )
    rounds: list[RoundDefinition] = Field(default_factory=list)
    current_round_index: int = Field(
        default=0,
        validation_alias=AliasChoices("current_round_index", "currentRoundIndex"),
    )

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _merge_legacy_criteria(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        criteria = data.get("eligibilityCriteria")
        if not isinstance(criteria, dict):
            return data
        merged = dict(data)
        for legacy_key, field_keys in _LEGACY_CRITERIA.items():
            if legacy_key not in criteria:
                continue
            if any(merged.get(key) not in (None, "", []) for key in field_keys):
                continue
            merged[field_keys[0]] = criteria[legacy_key]
        return merged

    @field_validator("job_id", mode="before")
    @classmethod
    def _job_id(cls, value: Any) -> str:
        return coerce_str(value)

    @field_validator("min_cgpa", mode="before")
    @classmethod
    def _min_cgpa(cls, value: Any) -> float:
        return coerce_float(value)

    @field_validator("max_current_arrears", "max_history_arrears", "current_round_index", mode="before")
    @classmethod
    def _counts(cls, value: Any) -> int:
        return coerce_int(value)

    @field_validator("required_skills", "eligible_batches", mode="before")
    @classmethod
    def _labels(cls, value: Any) -> list[str]:
        return coerce_str_list(value)

    @field_validator("gender_preference", mode="before")
    @classmethod
    def _gender_preference(cls, value: Any) -> str:
        return coerce_str(value).strip() or "any"

    @field_validator("rounds", mode="before")
    @classmethod
    def _rounds(cls, value: Any) -> Any:
        if value is None:
            return []
        return value

    def round_name(self, index: int) -> str:
        return self.rounds[index].display_name(index)

    def is_final_round(self, index: int) -> bool:
        return index >= len(self.rounds) - 1
