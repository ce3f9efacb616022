"""Dependency injection container for the progression engine."""

from __future__ import annotations

from dependency_injector import containers, providers

from .adapters import ApplicationAdapter, ProfileAdapter
from .core import (
    DriftConfig,
    EligibilityEvaluator,
    LabelDriftDetector,
    RoundKeyResolver,
    RoundKeyResolverConfig,
    RoundProgression,
    default_criteria,
)
from .pipeline import AdapterRegistry, ProgressionPipeline


class ProgressionContainer(containers.DeclarativeContainer):
    """Dependency-injector container definition."""

    config = providers.Configuration()

    application_adapter = providers.Singleton(ApplicationAdapter)
    profile_adapter = providers.Singleton(ProfileAdapter)

    adapter_registry = providers.Singleton(
        AdapterRegistry,
        adapters=providers.List(application_adapter, profile_adapter),
    )

    eligibility_evaluator = providers.Singleton(
        EligibilityEvaluator,
        criteria=providers.Callable(default_criteria, skills_match="all"),
    )
    audience_evaluator = providers.Singleton(
        EligibilityEvaluator,
        criteria=providers.Callable(default_criteria, skills_match="any"),
    )

    round_key_resolver = providers.Singleton(RoundKeyResolver)

    drift_detector = providers.Singleton(
        LabelDriftDetector,
        resolver=round_key_resolver,
    )

    progression_engine = providers.Singleton(
        RoundProgression,
        resolver=round_key_resolver,
        eligibility=eligibility_evaluator,
    )

    pipeline = providers.Factory(
        ProgressionPipeline,
        engine=progression_engine,
        drift_detector=drift_detector,
        eligibility=eligibility_evaluator,
        audience=audience_evaluator,
        registry=adapter_registry,
        max_attempts=config.pipeline.max_attempts.as_int(),
    )


def create_container(*, settings: dict | None = None) -> ProgressionContainer:
    """Instantiate container with optional overrides."""

    container = ProgressionContainer()
    container.config.from_dict({"pipeline": {"max_attempts": 3}})

    if not settings:
        return container

    pipeline_settings = settings.get("pipeline", {}) if isinstance(settings, dict) else {}
    if pipeline_settings:
        container.config.pipeline.from_dict(pipeline_settings)

    eligibility_settings = settings.get("eligibility", {})
    if "skills_match" in eligibility_settings:
        container.eligibility_evaluator.override(
            providers.Singleton(
                EligibilityEvaluator,
                criteria=default_criteria(skills_match=eligibility_settings["skills_match"]),
            )
        )

    audience_settings = settings.get("audience", {})
    if "skills_match" in audience_settings:
        container.audience_evaluator.override(
            providers.Singleton(
                EligibilityEvaluator,
                criteria=default_criteria(skills_match=audience_settings["skills_match"]),
            )
        )

    key_settings = settings.get("round_keys", {})
    if "synonyms" in key_settings:
        resolver_config = RoundKeyResolverConfig(
            synonyms=tuple(tuple(pair) for pair in key_settings["synonyms"])
        )
        container.round_key_resolver.override(
            providers.Singleton(RoundKeyResolver, config=resolver_config)
        )

    diagnostics_settings = settings.get("diagnostics", {})
    if "min_similarity" in diagnostics_settings:
        drift_config = DriftConfig(min_similarity=float(diagnostics_settings["min_similarity"]))
        container.drift_detector.override(
            providers.Singleton(
                LabelDriftDetector,
                config=drift_config,
                resolver=container.round_key_resolver,
            )
        )

    return container
