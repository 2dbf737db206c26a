"""Active filter management.

The manager holds the single active filter, keeps the task numbers
matched by the active custom filter and refreshes them whenever the task
data may have changed. Filter changes are computed by ``transition`` as a
new state plus a list of effects, which the manager then executes in
order.
"""

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from .filters import VOID_FILTER, CustomQuery, FilterResult, TaskFilter, TaskFilterFn
from .logging import get_logger
from .models import Task
from .options import BooleanOption
from .properties import PropertyClass
from .query import QueryBridge, QueryError, run_query
from .registry import FilterRegistry
from .tree import TaskTree, apply_filter

logger = get_logger(__name__)

RECENT_FILTER_LIST_SIZE = 5

FilterChangedListener = Callable[[TaskFilter], None]


class Effect(Enum):
    """Side effects of an active filter change, executed in list order."""

    CLEAR_CACHE = "clear_cache"
    REFRESH_CACHE = "refresh_cache"
    NOTIFY_LISTENERS = "notify_listeners"
    SYNC_RENDER = "sync_render"


@dataclass(frozen=True)
class FilterState:
    """The active filter and the recently used filters, most recent first."""

    active: TaskFilter = VOID_FILTER
    recent: tuple[TaskFilter, ...] = ()


def transition(
    state: FilterState,
    new_filter: TaskFilter,
    limit: int = RECENT_FILTER_LIST_SIZE,
) -> tuple[FilterState, list[Effect]]:
    """Compute the state after activating ``new_filter``.

    The filter moves to the front of the recent list (the void filter is
    never recorded there) and the list is cut to ``limit`` entries. Custom
    filters need their results refreshed; built-ins only drop the results
    of any previous custom filter.
    """
    recent = state.recent
    if new_filter is not VOID_FILTER:
        rest = tuple(f for f in recent if f.title != new_filter.title)
        recent = ((new_filter,) + rest)[:limit]

    effects = [Effect.CLEAR_CACHE if new_filter.is_built_in else Effect.REFRESH_CACHE]
    effects += [Effect.NOTIFY_LISTENERS, Effect.SYNC_RENDER]
    return FilterState(active=new_filter, recent=recent), effects


def _no_sync() -> None:
    pass


class FilterManager:
    """Manages the active filter, both built-in and custom.

    All state changes happen under a reentrant lock so that activation,
    refresh and import never interleave when the manager is shared between
    threads. Listeners and the ``sync`` callback run on the calling thread
    while the lock is held.
    """

    def __init__(
        self,
        registry: FilterRegistry,
        bridge: QueryBridge,
        *,
        recent_limit: int = RECENT_FILTER_LIST_SIZE,
        query_timeout: float | None = None,
    ):
        """Initialize the manager.

        Args:
            registry: Catalog of built-in and custom filters
            bridge: Store evaluating custom filter expressions
            recent_limit: Maximum length of the recent filter list
            query_timeout: Seconds to wait for a query, None to wait forever
        """
        if recent_limit < 1:
            raise ValueError("recent_limit must be at least 1")
        self.registry = registry
        self.bridge = bridge
        self.recent_limit = recent_limit
        self.query_timeout = query_timeout

        self._lock = threading.RLock()
        self._state = FilterState(
            active=VOID_FILTER,
            recent=tuple(registry.builtin_filters[:recent_limit]),
        )
        self._results: set[int] = set()

        self.filter_listeners: list[FilterChangedListener] = []
        # Render-sync callback, replaced by the consumer
        self.sync: Callable[[], None] = _no_sync
        # How many tasks the last apply() filtered out
        self.hidden_task_count = 0

    # State
    @property
    def active_filter(self) -> TaskFilter:
        return self._state.active

    @active_filter.setter
    def active_filter(self, value: TaskFilter) -> None:
        self.set_active_filter(value)

    @property
    def recent_filters(self) -> list[TaskFilter]:
        return list(self._state.recent)

    @property
    def filters(self) -> list[TaskFilter]:
        return self.registry.filters

    @property
    def options(self) -> list[BooleanOption]:
        return self.registry.builtins.options

    @property
    def custom_filter_results(self) -> frozenset[int]:
        return frozenset(self._results)

    def set_active_filter(self, new_filter: TaskFilter) -> None:
        """Make ``new_filter`` the active filter.

        When this returns, the results of a custom filter reflect the store
        as of the call and listeners have been notified.

        Raises:
            QueryError: If the results of a custom filter can't be computed.
                The filter stays active with empty results and listeners
                are not notified.
        """
        with self._lock:
            self._state, effects = transition(self._state, new_filter, self.recent_limit)
            logger.debug("active_filter_changed", title=new_filter.title, effects=[e.value for e in effects])
            for effect in effects:
                self._run(effect)

    def _run(self, effect: Effect) -> None:
        if effect is Effect.CLEAR_CACHE:
            self._results.clear()
        elif effect is Effect.REFRESH_CACHE:
            self.refresh_custom_filter_results()
        elif effect is Effect.NOTIFY_LISTENERS:
            self._fire_filter_changed(self._state.active)
        elif effect is Effect.SYNC_RENDER:
            self.sync()

    # Listeners
    def add_filter_listener(self, listener: FilterChangedListener) -> None:
        self.filter_listeners.append(listener)

    def remove_filter_listener(self, listener: FilterChangedListener) -> None:
        self.filter_listeners.remove(listener)

    def _fire_filter_changed(self, value: TaskFilter) -> None:
        for listener in list(self.filter_listeners):
            listener(value)

    # Custom filters
    def create_custom_filter(
        self,
        title: str = "",
        expression: str | None = None,
        description: str = "",
    ) -> TaskFilter:
        """Create a custom filter evaluated against this manager's results."""
        return TaskFilter(title, CustomQuery(expression), description=description)

    def import_filters(self, filters: list[TaskFilter]) -> None:
        """Replace the custom filters and activate the enabled one.

        Built-in entries are resolved to the process singletons and never
        added to the custom list. Custom entries rejected by the registry
        for a clashing title are never activated. If several entries are
        enabled, the last one in list order becomes active and a warning is
        logged.
        """
        with self._lock:
            resolved = [self.registry.resolve(f) for f in filters]
            kept = {id(f) for f in self.registry.replace_custom_filters(resolved)}
            enabled = [f for f in resolved if f.enabled and (f.is_built_in or id(f) in kept)]
            logger.info(
                "filters_imported",
                custom=len(self.registry.custom_filters),
                enabled=[f.title for f in enabled],
            )
            if len(enabled) > 1:
                logger.warning(
                    "multiple_enabled_filters",
                    titles=[f.title for f in enabled],
                    activated=enabled[-1].title,
                )
            if enabled:
                self.set_active_filter(enabled[-1])

    # Results
    def refresh(self) -> None:
        self.refresh_custom_filter_results()

    def refresh_custom_filter_results(self) -> None:
        """Recompute the task numbers matched by the active custom filter.

        The results are cleared first and stay empty for built-in filters
        or when the query fails.

        Raises:
            QueryError: If the query bridge fails
        """
        with self._lock:
            self._results.clear()
            active = self._state.active
            if not active.is_built_in:
                logger.debug("refresh_custom_filter_results", title=active.title, expression=active.expression)
                try:
                    rows = run_query(
                        self.bridge,
                        active.expression,
                        PropertyClass.INTEGER,
                        timeout=self.query_timeout,
                    )
                except QueryError as e:
                    logger.error(
                        "custom_filter_query_failed",
                        title=active.title,
                        expression=active.expression,
                        error=str(e),
                    )
                    raise
                for task_num, _value in rows:
                    self._results.add(task_num)
                logger.debug("custom_filter_results_refreshed", title=active.title, count=len(self._results))
            self.sync()

    # Evaluation
    def is_visible(self, parent: Task, child: Task | None) -> bool:
        return self._state.active.evaluate(parent, child, self._results)

    @property
    def filter_fn(self) -> TaskFilterFn:
        """Predicate for the active filter, reading the live results."""
        return self._state.active.bind(self._results)

    def apply(self, tree: TaskTree) -> FilterResult:
        """Evaluate the active filter over ``tree`` and record the hidden count."""
        with self._lock:
            result = apply_filter(tree, self.is_visible)
            self.hidden_task_count = result.hidden_count
        return result

    # Task model notifications
    def on_task_progress_changed(self, task: Task) -> None:
        self._on_task_changed()

    def on_task_schedule_changed(self, task: Task) -> None:
        self._on_task_changed()

    def _on_task_changed(self) -> None:
        with self._lock:
            active = self._state.active
            if not active.is_built_in:
                self.refresh_custom_filter_results()
            elif active is not VOID_FILTER:
                self.sync()

    # Undo notifications
    def undo_or_redo_happened(self) -> None:
        self.refresh_custom_filter_results()

    def undoable_edit_happened(self, event: Any = None) -> None:
        self.refresh_custom_filter_results()

    def undo_reset(self) -> None:
        pass
