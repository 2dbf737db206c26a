"""Built-in task filters that need no query.

Each predicate factory takes a ``today`` provider which is called once per
evaluation. Tasks with a missing end date are never due, so the date-based
predicates hide them.
"""

from datetime import date
from functools import lru_cache
from typing import Callable

from ..models import Task
from ..options import BooleanOption, mirror_option
from . import BuiltInPredicate, TaskFilter, TaskFilterFn

Today = Callable[[], date]

COMPLETED_TASKS = "filter.completedTasks"
DUE_TODAY_TASKS = "filter.dueTodayTasks"
OVERDUE_TASKS = "filter.overdueTasks"
IN_PROGRESS_TODAY_TASKS = "filter.inProgressTodayTasks"


def completed_predicate() -> TaskFilterFn:
    """Hide tasks that are 100% complete."""

    def predicate(parent: Task, child: Task | None) -> bool:
        if child is None:
            return True
        return child.completion < 100

    return predicate


def due_today_predicate(today: Today = date.today) -> TaskFilterFn:
    """Show only unfinished tasks ending today."""

    def predicate(parent: Task, child: Task | None) -> bool:
        if child is None:
            return True
        return child.completion < 100 and child.end is not None and child.end == today()

    return predicate


def overdue_predicate(today: Today = date.today) -> TaskFilterFn:
    """Show only unfinished tasks that ended before today."""

    def predicate(parent: Task, child: Task | None) -> bool:
        if child is None:
            return True
        return child.completion < 100 and child.end is not None and child.end < today()

    return predicate


def in_progress_today_predicate(today: Today = date.today) -> TaskFilterFn:
    """Show only unfinished tasks whose [start, end] range contains today."""

    def predicate(parent: Task, child: Task | None) -> bool:
        if child is None:
            return True
        if child.completion >= 100 or child.start is None or child.end is None:
            return False
        now = today()
        return child.start <= now <= child.end

    return predicate


class BuiltInFilters:
    """The four built-in filters and the options their enabled flags mirror."""

    def __init__(self, today: Today = date.today):
        self.completed_option = BooleanOption(COMPLETED_TASKS, False)
        self.due_today_option = BooleanOption(DUE_TODAY_TASKS, False)
        self.overdue_option = BooleanOption(OVERDUE_TASKS, False)
        self.in_progress_today_option = BooleanOption(IN_PROGRESS_TODAY_TASKS, False)

        self.completed = self._create(
            self.completed_option,
            completed_predicate(),
            "Hide completed tasks",
        )
        self.due_today = self._create(
            self.due_today_option,
            due_today_predicate(today),
            "Show unfinished tasks due today",
        )
        self.overdue = self._create(
            self.overdue_option,
            overdue_predicate(today),
            "Show unfinished tasks past their end date",
        )
        self.in_progress_today = self._create(
            self.in_progress_today_option,
            in_progress_today_predicate(today),
            "Show unfinished tasks running today",
        )

    @staticmethod
    def _create(option: BooleanOption, predicate: TaskFilterFn, description: str) -> TaskFilter:
        return TaskFilter(
            option.name,
            BuiltInPredicate(predicate),
            description=description,
            enabled=mirror_option(option),
        )

    @property
    def options(self) -> list[BooleanOption]:
        return [
            self.completed_option,
            self.due_today_option,
            self.overdue_option,
            self.in_progress_today_option,
        ]

    @property
    def all_filters(self) -> list[TaskFilter]:
        return [self.completed, self.due_today, self.overdue, self.in_progress_today]

    def find(self, title: str) -> TaskFilter | None:
        for f in self.all_filters:
            if f.title == title:
                return f
        return None


@lru_cache
def get_builtin_filters() -> BuiltInFilters:
    """Process-wide built-in filters, created on first use."""
    return BuiltInFilters()
