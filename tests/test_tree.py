"""Unit tests for task tree evaluation."""

import pytest

from taskfilters.filters import VOID_FILTER
from taskfilters.tree import ROOT_ID, TaskTree, apply_filter

from .helpers import make_task


@pytest.fixture
def tree() -> TaskTree:
    return TaskTree([
        make_task(1, name="Design"),
        make_task(2, name="Sketch", parent_id=1, completion=100),
        make_task(3, name="Review", parent_id=1),
        make_task(4, name="Detail", parent_id=2),
        make_task(5, name="Build"),
    ])


def test_walk_is_preorder_with_depth(tree):
    assert [(t.task_id, depth) for t, depth in tree.walk()] == [
        (1, 0), (2, 1), (4, 2), (3, 1), (5, 0),
    ]


def test_void_filter_shows_all(tree):
    result = apply_filter(tree, VOID_FILTER.evaluate)
    assert [t.task_id for t in result.visible] == [1, 2, 4, 3, 5]
    assert result.hidden_count == 0


def test_hidden_task_hides_subtree(tree):
    result = apply_filter(tree, lambda parent, child: child.completion < 100)

    assert [t.task_id for t in result.visible] == [1, 3, 5]
    assert [t.task_id for t in result.hidden] == [2, 4]


def test_predicate_receives_parent(tree):
    edges = []

    def record(parent, child):
        edges.append((parent.task_id, child.task_id))
        return True

    apply_filter(tree, record)

    assert (ROOT_ID, 1) in edges
    assert (1, 2) in edges
    assert (2, 4) in edges


def test_unknown_parent_attaches_to_root():
    tree = TaskTree([make_task(1, parent_id=42)])
    assert tree.children(tree.root)[0].task_id == 1


def test_duplicate_task_numbers_rejected():
    with pytest.raises(ValueError):
        TaskTree([make_task(1), make_task(1)])


def test_self_parent_attaches_to_root():
    tree = TaskTree([make_task(1), make_task(2, parent_id=2)])

    result = apply_filter(tree, VOID_FILTER.evaluate)

    assert [t.task_id for t in result.visible] == [1, 2]
    assert len(result.visible) + result.hidden_count == len(tree)


def test_parent_cycle_is_broken_at_root():
    tree = TaskTree([make_task(1, parent_id=2), make_task(2, parent_id=1), make_task(3)])

    assert [(t.task_id, depth) for t, depth in tree.walk()] == [(3, 0), (1, 0), (2, 1)]

    result = apply_filter(tree, lambda parent, child: child.task_id != 1)
    assert [t.task_id for t in result.visible] == [3]
    assert [t.task_id for t in result.hidden] == [1, 2]


def test_deep_chain_does_not_recurse():
    depth = 5000
    tasks = [make_task(0)] + [make_task(i, parent_id=i - 1) for i in range(1, depth)]
    tree = TaskTree(tasks)

    assert [d for _, d in tree.walk()][-1] == depth - 1
    assert len(apply_filter(tree, VOID_FILTER.evaluate).visible) == depth
    hidden = apply_filter(tree, lambda parent, child: child.task_id < 10)
    assert hidden.hidden_count == depth - 10
