"""Pydantic configuration schema for CLI YAML input."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError


class EligibilitySettings(BaseModel):
    skills_match: Literal["all", "any"] | None = None


class RoundKeySettings(BaseModel):
    synonyms: list[tuple[str, str]] | None = None


class DiagnosticsSettings(BaseModel):
    min_similarity: float | None = Field(default=None, ge=0.0, le=100.0)


class PipelineSettings(BaseModel):
    max_attempts: int | None = Field(default=None, ge=1)


class AppConfig(BaseModel):
    eligibility: EligibilitySettings = Field(default_factory=EligibilitySettings)
    audience: EligibilitySettings = Field(default_factory=EligibilitySettings)
    round_keys: RoundKeySettings = Field(default_factory=RoundKeySettings)
    diagnostics: DiagnosticsSettings = Field(default_factory=DiagnosticsSettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)

    def to_settings(self) -> dict[str, Any]:
        settings: dict[str, Any] = {}
        for section in ("eligibility", "audience", "round_keys", "diagnostics", "pipeline"):
            values = getattr(self, section).model_dump(exclude_none=True)
            if values:
                settings[section] = values
        return settings


def load_config(raw: Any) -> AppConfig:
    if raw is None:
        return AppConfig()
    if not isinstance(raw, dict):
        raise ValidationError.from_exception_data(
            "AppConfig",
            [{"type": "dict_type", "loc": ("config",), "input": raw}],
        )
    return AppConfig.model_validate(raw)
