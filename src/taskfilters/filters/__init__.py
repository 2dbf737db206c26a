"""Task filters.

A filter is either backed by an in-memory predicate (the built-ins) or by
a query expression evaluated against the task store (custom filters).
Both kinds are evaluated through ``TaskFilter.evaluate``; custom filters
consult the set of task numbers matched by the last query.
"""

from collections.abc import Collection
from dataclasses import dataclass, field
from typing import Callable, Union

from ..models import FilterRecord, Task
from ..options import ObservableBool

TaskFilterFn = Callable[[Task, Task | None], bool]


@dataclass(frozen=True)
class BuiltInPredicate:
    """Filter kind evaluated by a pure predicate."""

    predicate: TaskFilterFn


@dataclass(frozen=True)
class CustomQuery:
    """Filter kind evaluated by the query bridge."""

    expression: str | None = None


FilterKind = Union[BuiltInPredicate, CustomQuery]


@dataclass
class FilterResult:
    """Result of applying a filter to a task tree."""

    visible: list[Task] = field(default_factory=list)
    hidden: list[Task] = field(default_factory=list)

    @property
    def hidden_count(self) -> int:
        return len(self.hidden)


class TaskFilter:
    """A named filter with an enabled flag and a human description."""

    def __init__(
        self,
        title: str,
        kind: FilterKind,
        description: str = "",
        enabled: ObservableBool | None = None,
    ):
        self._title = title
        self._kind = kind
        self.description = description
        self.enabled_property = enabled if enabled is not None else ObservableBool(False)
        # Set by the registry owning this filter to keep titles unique
        self.rename_check: Callable[["TaskFilter", str], None] | None = None

    @property
    def title(self) -> str:
        return self._title

    @title.setter
    def title(self, value: str) -> None:
        if self.is_built_in:
            raise AttributeError(f"Built-in filter {self._title!r} cannot be renamed")
        if value != self._title and self.rename_check is not None:
            self.rename_check(self, value)
        self._title = value

    @property
    def kind(self) -> FilterKind:
        return self._kind

    @property
    def is_built_in(self) -> bool:
        return isinstance(self._kind, BuiltInPredicate)

    @property
    def expression(self) -> str | None:
        if isinstance(self._kind, CustomQuery):
            return self._kind.expression
        return None

    @expression.setter
    def expression(self, value: str | None) -> None:
        if self.is_built_in:
            raise AttributeError(f"Built-in filter {self._title!r} has no expression")
        self._kind = CustomQuery(value)

    @property
    def enabled(self) -> bool:
        return self.enabled_property.value

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self.enabled_property.value = value

    def evaluate(
        self,
        parent: Task,
        child: Task | None,
        cache: Collection[int] = frozenset(),
    ) -> bool:
        """Decide whether ``child`` is visible under ``parent``.

        ``cache`` holds the task numbers matched by the last query and is
        only consulted by custom filters.
        """
        if child is None:
            return True
        kind = self._kind
        if isinstance(kind, BuiltInPredicate):
            return kind.predicate(parent, child)
        return child.task_id in cache

    def bind(self, cache: Collection[int]) -> TaskFilterFn:
        """Return a two-argument predicate evaluating this filter against ``cache``."""
        return lambda parent, child: self.evaluate(parent, child, cache)

    def to_record(self) -> FilterRecord:
        return FilterRecord(
            title=self._title,
            description=self.description,
            enabled=self.enabled,
            expression=self.expression,
            built_in=self.is_built_in,
        )

    @classmethod
    def from_record(cls, record: FilterRecord) -> "TaskFilter":
        """Create a custom filter from a stored record.

        Built-in records cannot be materialized here; resolve them against
        the built-in catalog by title instead.
        """
        if record.built_in:
            raise ValueError(f"Record {record.title!r} describes a built-in filter")
        return cls(
            record.title,
            CustomQuery(record.expression),
            description=record.description,
            enabled=ObservableBool(record.enabled),
        )

    def __repr__(self) -> str:
        kind = "built-in" if self.is_built_in else f"custom({self.expression!r})"
        return f"TaskFilter({self._title!r}, {kind}, enabled={self.enabled})"


def _show_all(parent: Task, child: Task | None) -> bool:
    return True


VOID_FILTER = TaskFilter("filter.void", BuiltInPredicate(_show_all))


from .builtin import (  # noqa: E402
    BuiltInFilters,
    completed_predicate,
    due_today_predicate,
    in_progress_today_predicate,
    overdue_predicate,
)

__all__ = [
    "TaskFilterFn",
    "BuiltInPredicate",
    "CustomQuery",
    "FilterKind",
    "FilterResult",
    "TaskFilter",
    "VOID_FILTER",
    "BuiltInFilters",
    "completed_predicate",
    "due_today_predicate",
    "overdue_predicate",
    "in_progress_today_predicate",
]
