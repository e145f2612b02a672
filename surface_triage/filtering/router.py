"""
Surface Triage - Category Router

Partitions the record set into category views by scanner source. Records
without a source are placed by their type. The inventory view admits
everything.
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Optional, Union

from surface_triage.models import Category, Record


@dataclass(frozen=True)
class CategoryMembership:
    """Sources (and, for sourceless records, types) admitted by a category."""

    sources: FrozenSet[str]
    kinds: FrozenSet[str] = frozenset()

    def admits(self, record: Record) -> bool:
        source = record.source.strip().lower()
        if source:
            return source in self.sources
        return record.kind.strip().lower() in self.kinds


CATEGORY_MEMBERSHIP: Dict[Category, CategoryMembership] = {
    Category.REGISTRY: CategoryMembership(
        sources=frozenset({"registry", "registry-msi", "os_catalog"}),
        kinds=frozenset({"uwp"}),
    ),
    Category.AUTORUNS: CategoryMembership(
        sources=frozenset({"persistence"}),
    ),
    Category.SERVICES: CategoryMembership(
        sources=frozenset({"service"}),
        kinds=frozenset({"service", "driver", "sharedservice"}),
    ),
    Category.FILESYSTEM: CategoryMembership(
        sources=frozenset({"filesystem"}),
        kinds=frozenset({"portable"}),
    ),
}


class CategoryRouter:
    """Routes records to the category views that admit them."""

    def __init__(self, membership: Optional[Dict[Category, CategoryMembership]] = None):
        self.membership = dict(CATEGORY_MEMBERSHIP if membership is None else membership)

    def admits(self, category: Union[Category, str], record: Record) -> bool:
        category = Category.from_string(category)
        if category == Category.INVENTORY:
            return True
        rule = self.membership.get(category)
        return rule is not None and rule.admits(record)

    def records_for(self, category: Category, records: Iterable[Record]) -> List[Record]:
        """Subset of records for one category, in input order."""
        return [record for record in records if self.admits(category, record)]

    def route(self, records: Iterable[Record]) -> Dict[Category, List[Record]]:
        """
        Partition records into every category view.

        Args:
            records: Full record set

        Returns:
            Mapping of each Category to its subset (input order preserved)
        """
        records = list(records)
        return {category: self.records_for(category, records) for category in Category}


DEFAULT_ROUTER = CategoryRouter()


def route(records: Iterable[Record]) -> Dict[Category, List[Record]]:
    return DEFAULT_ROUTER.route(records)
