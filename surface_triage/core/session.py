"""
Triage session state.

A TriageSession owns the loaded record set and one rule-set per category.
The presentation layer holds the session and calls into it after every
operator action; nothing is kept in module-level state.

Reloading builds the classified record list and fresh, empty rule-sets
first and swaps them in together, so no view is ever evaluated against a
mix of old and new state.
"""

import logging
from typing import Dict, Iterable, List, Optional, Union

from surface_triage.analysis.severity import DEFAULT_CLASSIFIER, SeverityClassifier, SeverityResult
from surface_triage.config import TriageSettings
from surface_triage.filtering.evaluator import RuleSetEvaluator
from surface_triage.filtering.fields import FieldDefinition, FieldRegistry
from surface_triage.filtering.operators import operators_for
from surface_triage.filtering.router import CategoryRouter
from surface_triage.models import Category, Dataset, Record, Rule, RuleLogic, RuleSet
from surface_triage.utils.audit import AuditLogger

logger = logging.getLogger(__name__)

CategoryRef = Union[Category, str]


class TriageSession:
    """Record set plus per-category rule-sets for one operator session."""

    def __init__(
        self,
        settings: Optional[TriageSettings] = None,
        classifier: Optional[SeverityClassifier] = None,
        router: Optional[CategoryRouter] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        """
        Initialize an empty session.

        Args:
            settings: Field policy and default logic (default: from env)
            classifier: Severity classifier (default: built-in policy)
            router: Category router (default: built-in membership)
            audit_logger: Optional audit trail; created from
                settings.audit_dir when not supplied
        """
        self.settings = settings or TriageSettings.from_env()
        self.classifier = classifier or DEFAULT_CLASSIFIER
        self.router = router or CategoryRouter()
        self.registry = FieldRegistry(policy=self.settings.field_policy)
        self.evaluator = RuleSetEvaluator(self.registry)

        if audit_logger is None and self.settings.audit_dir is not None:
            audit_logger = AuditLogger(self.settings.audit_dir)
        self.audit = audit_logger

        self.source: Optional[str] = None
        self._records: List[Record] = []
        self._rule_sets: Dict[Category, RuleSet] = self._fresh_rule_sets()

    def _fresh_rule_sets(self) -> Dict[Category, RuleSet]:
        return {
            category: RuleSet(category=category, logic=self.settings.default_logic)
            for category in Category
        }

    # -- record set -------------------------------------------------------

    @property
    def records(self) -> List[Record]:
        return list(self._records)

    def load(self, records: Union[Dataset, Iterable[Record]], source: str = "<records>") -> int:
        """
        Replace the record set and reset every rule-set.

        Records are re-classified on every load; any severity carried by
        the input is replaced.

        Args:
            records: Dataset or iterable of records
            source: Label for logging and the audit trail

        Returns:
            Number of records loaded
        """
        entries = records.entries if isinstance(records, Dataset) else records
        classified = self.classifier.classify_all(entries)
        rule_sets = self._fresh_rule_sets()

        self._records, self._rule_sets, self.source = classified, rule_sets, source

        logger.info(f"Session loaded {len(classified)} records from {source}")
        if self.audit:
            self.audit.log_dataset_load(source, len(classified))
        return len(classified)

    reload = load

    def category_records(self, category: CategoryRef) -> List[Record]:
        """Unfiltered records routed to a category."""
        return self.router.records_for(Category.from_string(category), self._records)

    # -- presentation contract -------------------------------------------

    def current_rule_set(self, category: CategoryRef) -> RuleSet:
        return self._rule_sets[Category.from_string(category)]

    def filtered_records(self, category: CategoryRef) -> List[Record]:
        """Category records that pass the category's rule-set."""
        category = Category.from_string(category)
        return self.evaluator.evaluate(self._rule_sets[category], self.category_records(category))

    def enum_options(self, category: CategoryRef, field: str) -> List[str]:
        """Option list for a field, derived from the category's current records."""
        category = Category.from_string(category)
        return self.registry.enum_options(category, field, self.category_records(category))

    def fields(self, category: CategoryRef) -> List[FieldDefinition]:
        return self.registry.fields_for(category)

    def classify(self, record: Record) -> SeverityResult:
        return self.classifier.classify(record)

    # -- rule mutation ----------------------------------------------------

    def add_rule(
        self,
        category: CategoryRef,
        field: Optional[str] = None,
        operator: Optional[str] = None,
        value: str = "",
    ) -> Rule:
        """
        Add a rule to a category's rule-set.

        Missing field/operator default to the category's first field and
        that field's first operator, giving an inactive rule the operator
        can then edit.
        """
        category = Category.from_string(category)
        if field is None:
            definition = self.registry.fields_for(category)[0]
            field = definition.key
        else:
            definition = self.registry.resolve(category, field)
        if operator is None:
            operator = operators_for(definition.kind)[0].value

        rule = self._rule_sets[category].add_rule(field=field, operator=operator, value=value)
        self._audit_rule(category, "add", rule)
        return rule

    def edit_rule(
        self,
        category: CategoryRef,
        rule_id: str,
        field: Optional[str] = None,
        operator: Optional[str] = None,
        value: Optional[str] = None,
    ) -> Rule:
        category = Category.from_string(category)
        rule = self._rule_sets[category].update_rule(rule_id, field=field, operator=operator, value=value)
        self._audit_rule(category, "edit", rule)
        return rule

    def remove_rule(self, category: CategoryRef, rule_id: str) -> Rule:
        category = Category.from_string(category)
        rule = self._rule_sets[category].remove_rule(rule_id)
        self._audit_rule(category, "remove", rule)
        return rule

    def set_logic(self, category: CategoryRef, logic: Union[RuleLogic, str]) -> RuleLogic:
        category = Category.from_string(category)
        self._rule_sets[category].set_logic(logic)
        self._audit_rule(category, "logic")
        return self._rule_sets[category].logic

    def toggle_logic(self, category: CategoryRef) -> RuleLogic:
        category = Category.from_string(category)
        logic = self._rule_sets[category].toggle_logic()
        self._audit_rule(category, "logic")
        return logic

    def clear_rules(self, category: CategoryRef) -> None:
        category = Category.from_string(category)
        self._rule_sets[category].clear()
        self._audit_rule(category, "clear")

    def apply_rule_set(self, rule_set: RuleSet) -> None:
        """Replace a category's rule-set with a loaded one."""
        self._rule_sets[rule_set.category] = rule_set
        self._audit_rule(rule_set.category, "load")

    def _audit_rule(self, category: Category, action: str, rule: Optional[Rule] = None) -> None:
        if self.audit:
            self.audit.log_rule_change(
                category.value, action, rule.model_dump() if rule else None
            )
