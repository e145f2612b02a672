"""
Surface Triage - Operator Catalog

Comparison operators split by field kind. Both operands are lower-cased
before comparison, so matching is case-insensitive and not locale-aware.
"""

import logging
from typing import Callable, Dict, List

from surface_triage.config import FieldPolicy
from surface_triage.models import FieldKind, NULLARY_OPERATORS, Operator
from surface_triage.utils.exceptions import UnknownOperatorError

logger = logging.getLogger(__name__)

TEXT_OPERATORS: List[Operator] = [
    Operator.CONTAINS,
    Operator.NOT_CONTAINS,
    Operator.IS,
    Operator.IS_NOT,
    Operator.STARTS_WITH,
    Operator.ENDS_WITH,
    Operator.IS_EMPTY,
    Operator.IS_NOT_EMPTY,
]

ENUM_OPERATORS: List[Operator] = [
    Operator.IS,
    Operator.IS_NOT,
]

OPERATOR_LABELS: Dict[Operator, str] = {
    Operator.CONTAINS: "contains",
    Operator.NOT_CONTAINS: "does not contain",
    Operator.IS: "is",
    Operator.IS_NOT: "is not",
    Operator.STARTS_WITH: "starts with",
    Operator.ENDS_WITH: "ends with",
    Operator.IS_EMPTY: "is empty",
    Operator.IS_NOT_EMPTY: "is not empty",
}

_COMPARATORS: Dict[str, Callable[[str, str], bool]] = {
    Operator.IS.value: lambda a, b: a == b,
    Operator.IS_NOT.value: lambda a, b: a != b,
    Operator.CONTAINS.value: lambda a, b: b in a,
    Operator.NOT_CONTAINS.value: lambda a, b: b not in a,
    Operator.STARTS_WITH.value: lambda a, b: a.startswith(b),
    Operator.ENDS_WITH.value: lambda a, b: a.endswith(b),
    Operator.IS_EMPTY.value: lambda a, b: a == "",
    Operator.IS_NOT_EMPTY.value: lambda a, b: a != "",
}


def operators_for(kind: FieldKind) -> List[Operator]:
    """Operators offered for a field kind, in display order."""
    if FieldKind(kind) == FieldKind.ENUM:
        return list(ENUM_OPERATORS)
    return list(TEXT_OPERATORS)


def is_nullary(operator: str) -> bool:
    return operator.lower() in NULLARY_OPERATORS


def is_valid_for(operator: str, kind: FieldKind) -> bool:
    return operator.lower() in {op.value for op in operators_for(kind)}


def compare(operator: str, actual: str, expected: str) -> bool:
    """
    Apply an operator to an extracted value and a rule value.

    Unknown operators are always satisfied.

    Args:
        operator: Operator key (e.g. 'contains')
        actual: Value extracted from the record
        expected: Value typed into the rule

    Returns:
        True if the record satisfies the comparison
    """
    comparator = _COMPARATORS.get(operator.lower())
    if comparator is None:
        return True
    return comparator((actual or "").lower(), (expected or "").lower())


def compile_comparison(
    operator: str,
    kind: FieldKind,
    expected: str,
    policy: FieldPolicy = FieldPolicy.PERMISSIVE,
) -> Callable[[str], bool]:
    """
    Build a single-argument matcher for one rule.

    An operator outside the kind's set matches every record under the
    permissive policy and raises UnknownOperatorError under the strict one.

    Args:
        operator: Operator key from the rule
        kind: Kind of the field the rule targets
        expected: Rule value
        policy: Resolution policy for invalid operators

    Returns:
        Callable taking the extracted field value
    """
    if not is_valid_for(operator, kind):
        if policy == FieldPolicy.STRICT:
            raise UnknownOperatorError(operator, FieldKind(kind).value)
        logger.debug(
            f"Operator '{operator}' not valid for {FieldKind(kind).value} fields; "
            f"rule matches every record"
        )
        return lambda actual: True

    comparator = _COMPARATORS[operator.lower()]
    needle = (expected or "").lower()
    return lambda actual: comparator((actual or "").lower(), needle)
