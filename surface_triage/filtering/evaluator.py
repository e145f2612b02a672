"""
Surface Triage - Rule-Set Evaluator

Combines the active rules of a rule-set into one predicate and applies it
to a record list.

A rule is active when its operator takes no value (is_empty,
is_not_empty) or its trimmed value is non-empty. Inactive rules are
skipped, and a rule-set with no active rule returns its input unchanged.
Output preserves input order.
"""

import logging
from typing import Callable, Iterable, List, Optional

from surface_triage.filtering.fields import DEFAULT_REGISTRY, FieldRegistry
from surface_triage.filtering.operators import compile_comparison
from surface_triage.models import Category, Record, Rule, RuleLogic, RuleSet

logger = logging.getLogger(__name__)

Predicate = Callable[[Record], bool]


class RuleSetEvaluator:
    """Compiles rule-sets against a field registry and filters records."""

    def __init__(self, registry: Optional[FieldRegistry] = None):
        """
        Initialize the evaluator.

        Args:
            registry: Field registry to resolve rule fields against. Its
                policy also governs invalid operators. Defaults to the
                built-in permissive registry.
        """
        self.registry = registry or DEFAULT_REGISTRY

    def compile_rule(self, rule: Rule, category: Category) -> Predicate:
        """Build the record predicate for one rule."""
        definition = self.registry.resolve(category, rule.field)
        matcher = compile_comparison(
            rule.operator, definition.kind, rule.value, self.registry.policy
        )
        return lambda record: matcher(definition.extract(record))

    def build_predicate(self, rule_set: RuleSet) -> Optional[Predicate]:
        """
        Compile a rule-set into a single predicate.

        Returns:
            The combined predicate, or None when no rule is active (the
            rule-set then admits every record)
        """
        active = rule_set.active_rules()
        if not active:
            return None

        predicates = [self.compile_rule(rule, rule_set.category) for rule in active]

        if rule_set.logic == RuleLogic.OR:
            return lambda record: any(p(record) for p in predicates)
        return lambda record: all(p(record) for p in predicates)

    def evaluate(self, rule_set: RuleSet, records: Iterable[Record]) -> List[Record]:
        """
        Filter records with a rule-set.

        Args:
            rule_set: Rules and logic to apply
            records: Records to filter

        Returns:
            Matching records in input order
        """
        records = list(records)
        predicate = self.build_predicate(rule_set)
        if predicate is None:
            return records

        matched = [record for record in records if predicate(record)]
        logger.debug(
            f"Evaluated {len(rule_set.active_rules())} active rule(s) "
            f"({rule_set.logic.value}) on {rule_set.category.value}: "
            f"{len(matched)}/{len(records)} matched"
        )
        return matched


def evaluate(
    rule_set: RuleSet,
    records: Iterable[Record],
    registry: Optional[FieldRegistry] = None,
) -> List[Record]:
    """Filter records with a rule-set using the given or default registry."""
    return RuleSetEvaluator(registry).evaluate(rule_set, records)
