"""Criterion evaluators for the eligibility check."""

from .arrears import ArrearsEvaluator
from .batch import BatchEvaluator
from .cgpa import CgpaEvaluator
from .gender import GenderEvaluator
from .result import CriterionResult
from .skills import SkillsConfig, SkillsEvaluator

__all__ = [
    "ArrearsEvaluator",
    "BatchEvaluator",
    "CgpaEvaluator",
    "CriterionResult",
    "GenderEvaluator",
    "SkillsConfig",
    "SkillsEvaluator",
]
