"""Task tree evaluation.

Visibility is decided top-down, one parent/child edge at a time. A task
hidden by the filter hides its whole subtree.
"""

from collections.abc import Iterable, Iterator

from .filters import FilterResult, TaskFilterFn
from .logging import get_logger
from .models import Task

logger = get_logger(__name__)

ROOT_ID = -1


class TaskTree:
    """Tasks arranged by ``parent_id`` under a synthetic root.

    Tasks whose parent is unknown, themselves, or part of a parent cycle
    are attached to the root so that every task is reachable.
    """

    def __init__(self, tasks: Iterable[Task]):
        self.root = Task(task_id=ROOT_ID, name="<root>")
        self._tasks: dict[int, Task] = {}
        self._children: dict[int, list[Task]] = {ROOT_ID: []}

        for task in tasks:
            if task.task_id in self._tasks:
                raise ValueError(f"Duplicate task number: {task.task_id}")
            self._tasks[task.task_id] = task
        for task in self._tasks.values():
            parent_id = task.parent_id if task.parent_id in self._tasks else ROOT_ID
            self._children.setdefault(parent_id, []).append(task)

        reachable = self._reachable_from(self.root)
        for task in self._tasks.values():
            if task.task_id in reachable:
                continue
            logger.warning("task_parent_cycle", task_id=task.task_id, parent_id=task.parent_id)
            self._children[task.parent_id].remove(task)
            self._children[ROOT_ID].append(task)
            reachable |= self._reachable_from(task)

    def _reachable_from(self, task: Task) -> set[int]:
        seen = {task.task_id}
        stack = [task]
        while stack:
            for child in self._children.get(stack.pop().task_id, []):
                if child.task_id not in seen:
                    seen.add(child.task_id)
                    stack.append(child)
        return seen

    def __len__(self) -> int:
        return len(self._tasks)

    def get(self, task_id: int) -> Task | None:
        return self._tasks.get(task_id)

    def children(self, task: Task) -> list[Task]:
        return list(self._children.get(task.task_id, []))

    def walk(self, task: Task | None = None, depth: int = 0) -> Iterator[tuple[Task, int]]:
        """Yield (task, depth) pairs in pre-order, excluding the root."""
        stack = [(child, depth) for child in reversed(self.children(task or self.root))]
        while stack:
            node, level = stack.pop()
            yield node, level
            stack.extend((child, level + 1) for child in reversed(self.children(node)))


def apply_filter(tree: TaskTree, fn: TaskFilterFn) -> FilterResult:
    """Split the tree's tasks into visible and hidden ones, in pre-order."""
    result = FilterResult()
    stack = [(tree.root, child) for child in reversed(tree.children(tree.root))]
    while stack:
        parent, child = stack.pop()
        if fn(parent, child):
            result.visible.append(child)
            stack.extend((child, grandchild) for grandchild in reversed(tree.children(child)))
        else:
            result.hidden.append(child)
            result.hidden.extend(task for task, _ in tree.walk(child))
    return result
