"""
Surface Triage - Filtering Package

Rule-based narrowing of the record set:
- fields.py: per-category field registry (FieldDefinition, FieldRegistry)
- operators.py: operator catalog for text and enum fields
- evaluator.py: AND/OR rule-set evaluation (RuleSetEvaluator)
- router.py: category partitioning by scanner source (CategoryRouter)
"""

from surface_triage.filtering.evaluator import RuleSetEvaluator, evaluate
from surface_triage.filtering.fields import (
    CATEGORY_FIELDS,
    DEFAULT_REGISTRY,
    FieldDefinition,
    FieldRegistry,
)
from surface_triage.filtering.operators import (
    ENUM_OPERATORS,
    OPERATOR_LABELS,
    TEXT_OPERATORS,
    compare,
    operators_for,
)
from surface_triage.filtering.router import CATEGORY_MEMBERSHIP, CategoryRouter, route

__all__ = [
    # Fields
    "CATEGORY_FIELDS",
    "DEFAULT_REGISTRY",
    "FieldDefinition",
    "FieldRegistry",
    # Operators
    "ENUM_OPERATORS",
    "OPERATOR_LABELS",
    "TEXT_OPERATORS",
    "compare",
    "operators_for",
    # Evaluation
    "RuleSetEvaluator",
    "evaluate",
    # Routing
    "CATEGORY_MEMBERSHIP",
    "CategoryRouter",
    "route",
]
