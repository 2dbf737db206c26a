"""Test doubles and builders shared by the tests."""

from datetime import date
from typing import Any

from taskfilters.models import Task
from taskfilters.properties import PropertyClass

TODAY = date(2024, 5, 15)


class StubBridge:
    """Query bridge returning canned task numbers per expression."""

    def __init__(self, results: dict[str | None, list[int]] | None = None, error: Exception | None = None):
        self.results = results or {}
        self.error = error
        self.calls: list[str | None] = []

    def query(self, expression: str | None, result_type: PropertyClass = PropertyClass.INTEGER) -> list[tuple[int, Any]]:
        self.calls.append(expression)
        if self.error is not None:
            raise self.error
        return [(num, num) for num in self.results.get(expression, [])]


def make_task(task_id: int, **kwargs: Any) -> Task:
    return Task(task_id=task_id, name=kwargs.pop("name", f"Task {task_id}"), **kwargs)
