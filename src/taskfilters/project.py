"""Project wiring for taskfilters.

Connects the task store, the persisted options, the filter catalog and
the filter manager:
1. Load persisted option values into the built-in filters
2. Load custom filters and activate the enabled one
3. Forward task model changes and edits to the manager
"""

from dataclasses import dataclass
from typing import Any

from .config import Settings, get_settings
from .filters import VOID_FILTER, BuiltInFilters, FilterResult, TaskFilter
from .filters.builtin import get_builtin_filters
from .logging import configure_logging, get_logger
from .manager import FilterManager
from .options import OptionStore
from .registry import FilterRegistry
from .store import TaskStore
from .tree import TaskTree

logger = get_logger(__name__)


@dataclass(frozen=True)
class TaskEdit:
    """An undoable edit of a task's custom property."""

    task_id: int
    property_name: str
    value: Any


class Project:
    """A task store together with its filters."""

    def __init__(
        self,
        settings: Settings | None = None,
        builtins: BuiltInFilters | None = None,
    ):
        """Initialize the project.

        Args:
            settings: Optional settings override
            builtins: Built-in filters, defaults to the process-wide instance
        """
        self.settings = settings or get_settings()

        configure_logging(
            level=self.settings.log_level,
            format=self.settings.log_format,
        )

        self.store = TaskStore(self.settings.db_path)

        self.builtins = builtins or get_builtin_filters()
        self.option_store = OptionStore(self.settings.options_path)
        for option in self.builtins.options:
            self.option_store.register(option)

        self.registry = FilterRegistry(self.builtins)
        self.manager = FilterManager(
            self.registry,
            self.store,
            recent_limit=self.settings.recent_filter_limit,
            query_timeout=self.settings.query_timeout,
        )
        self.store.add_listener(self.manager)

    def open(self) -> "Project":
        """Load the saved filters and activate the enabled one.

        Raises:
            ValueError: If the filters file is malformed
            QueryError: If the enabled custom filter can't be evaluated
        """
        stored = self.registry.load(self.settings.filters_path)
        self.manager.import_filters(self.registry.builtin_filters + stored)
        logger.info(
            "project_opened",
            db=str(self.settings.db_path),
            active=self.manager.active_filter.title,
        )
        return self

    def save_filters(self) -> None:
        self.registry.save(self.settings.filters_path, active=self.manager.active_filter)

    def enable(self, f: TaskFilter) -> None:
        """Activate ``f`` and persist it as the only enabled filter.

        The stored flags are left untouched if activation fails.
        """
        self.manager.set_active_filter(f)
        for other in self.registry.filters:
            other.enabled = other is f
        self.save_filters()

    def disable_all(self) -> None:
        """Clear every enabled flag and fall back to showing all tasks."""
        for f in self.registry.filters:
            f.enabled = False
        self.manager.set_active_filter(VOID_FILTER)
        self.save_filters()

    def set_property(self, task_id: int, name: str, value: Any) -> None:
        """Set a custom property value as an undoable edit."""
        self.store.set_property(task_id, name, value)
        self.manager.undoable_edit_happened(TaskEdit(task_id, name, value))

    def tree(self) -> TaskTree:
        return TaskTree(self.store.load_tasks())

    def apply(self) -> tuple[TaskTree, FilterResult]:
        """Evaluate the active filter over the current tasks."""
        tree = self.tree()
        return tree, self.manager.apply(tree)
