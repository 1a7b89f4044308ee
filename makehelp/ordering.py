"""Ordering strategies for categories, targets and file documentation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from .errors import UnknownCategoryError
from .logging import get_logger
from .models import Category, HelpModel

logger = get_logger("ordering")


@dataclass
class OrderingService:
    """Reorders a HelpModel in place.

    An explicit category order always wins over `keep_order_categories`.
    """

    keep_order_categories: bool = False
    keep_order_targets: bool = False
    keep_order_files: bool = False
    category_order: List[str] = field(default_factory=list)

    def apply(self, model: HelpModel) -> HelpModel:
        model.categories = self.order_categories(model.categories)
        for category in model.categories:
            if self.keep_order_targets:
                category.targets.sort(key=lambda target: target.discovery_order)
            else:
                category.targets.sort(key=lambda target: (target.name.lower(), target.name))
        self._order_files(model)
        return model

    def order_categories(self, categories: List[Category]) -> List[Category]:
        if self.category_order:
            return self._explicit_order(categories)
        if self.keep_order_categories:
            return sorted(categories, key=lambda category: category.discovery_order)
        return sorted(categories, key=_alphabetical)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _explicit_order(self, categories: List[Category]) -> List[Category]:
        by_name = {category.name: category for category in categories}
        ordered: List[Category] = []
        for name in self.category_order:
            if name not in by_name:
                raise UnknownCategoryError(name, [c.name for c in categories if c.name])
            if by_name[name] not in ordered:
                ordered.append(by_name[name])
        remainder = [category for category in categories if category not in ordered]
        ordered.extend(sorted(remainder, key=_alphabetical))
        logger.debug("Category order: %s", ", ".join(c.name for c in ordered))
        return ordered

    def _order_files(self, model: HelpModel) -> None:
        if self.keep_order_files:
            key = lambda doc: (not doc.is_entry_point, doc.discovery_order)  # noqa: E731
        else:
            key = lambda doc: (not doc.is_entry_point, doc.source_file.lower())  # noqa: E731
        model.file_docs.sort(key=key)


def _alphabetical(category: Category) -> tuple[str, str]:
    return category.name.lower(), category.name


__all__ = ["OrderingService"]
