"""Query bridge interface.

The filter manager submits custom filter expressions through this narrow
interface and never parses them itself.
"""

from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Iterable, Protocol, runtime_checkable

from .properties import PropertyClass


class QueryError(Exception):
    """The store is unavailable or the expression could not be evaluated."""

    def __init__(self, message: str, expression: str | None = None):
        super().__init__(message)
        self.expression = expression


class QueryTimeoutError(QueryError):
    """The query did not finish within the configured timeout."""


@runtime_checkable
class QueryBridge(Protocol):
    """Protocol for stores that can evaluate filter expressions.

    Implement this protocol to back custom filters with a different store.
    """

    def query(
        self,
        expression: str | None,
        result_type: PropertyClass = PropertyClass.INTEGER,
    ) -> Iterable[tuple[int, Any]]:
        """Evaluate ``expression`` against the stored tasks.

        Args:
            expression: Opaque filter expression
            result_type: Type of the value column in each returned row

        Returns:
            (task_number, value) pairs for every matching task

        Raises:
            QueryError: If the store is unavailable or the expression is invalid
        """
        ...


def run_query(
    bridge: QueryBridge,
    expression: str | None,
    result_type: PropertyClass = PropertyClass.INTEGER,
    timeout: float | None = None,
) -> list[tuple[int, Any]]:
    """Run a query to completion and return all rows.

    With a timeout the query runs on a worker thread and the caller blocks
    for at most ``timeout`` seconds. The worker is abandoned, not cancelled,
    when the timeout elapses.
    """
    if timeout is None:
        return list(bridge.query(expression, result_type))

    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="taskfilters-query")
    try:
        future = executor.submit(lambda: list(bridge.query(expression, result_type)))
        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError:
            raise QueryTimeoutError(
                f"Query did not finish within {timeout}s", expression=expression
            ) from None
    finally:
        executor.shutdown(wait=False)
