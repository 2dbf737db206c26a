"""Unit tests for TaskFilter and its two kinds."""

import pytest

from taskfilters.filters import VOID_FILTER, BuiltInPredicate, CustomQuery, TaskFilter
from taskfilters.models import FilterRecord

from .helpers import make_task

ROOT = make_task(-1)


def test_void_filter_shows_everything():
    assert VOID_FILTER.is_built_in
    assert VOID_FILTER.title == "filter.void"
    assert VOID_FILTER.evaluate(ROOT, make_task(1, completion=100))
    assert VOID_FILTER.evaluate(ROOT, None)


def test_custom_filter_consults_cache():
    f = TaskFilter("urgent", CustomQuery("priority > 3"))
    cache = {2, 5, 9}

    assert not f.is_built_in
    assert f.expression == "priority > 3"
    assert f.evaluate(ROOT, make_task(5), cache)
    assert not f.evaluate(ROOT, make_task(3), cache)
    assert f.evaluate(ROOT, None, cache)
    # Without a cache nothing matches
    assert not f.evaluate(ROOT, make_task(5))


def test_bind_reads_live_cache():
    f = TaskFilter("urgent", CustomQuery("priority > 3"))
    cache: set[int] = set()
    fn = f.bind(cache)

    assert not fn(ROOT, make_task(7))
    cache.add(7)
    assert fn(ROOT, make_task(7))


def test_builtin_ignores_cache():
    f = TaskFilter("none", BuiltInPredicate(lambda parent, child: False))
    assert not f.evaluate(ROOT, make_task(1), {1})


def test_builtin_filter_is_immutable():
    f = TaskFilter("b", BuiltInPredicate(lambda parent, child: True))
    with pytest.raises(AttributeError):
        f.title = "other"
    with pytest.raises(AttributeError):
        f.expression = "x > 1"
    assert f.expression is None


def test_custom_filter_can_be_renamed_and_edited():
    f = TaskFilter("", CustomQuery())
    f.title = "costly"
    f.expression = "cost > 100"
    f.description = "Expensive tasks"

    assert f.title == "costly"
    assert f.kind == CustomQuery("cost > 100")


def test_record_conversion():
    f = TaskFilter("costly", CustomQuery("cost > 100"), description="Expensive")
    f.enabled = True

    record = f.to_record()
    assert record == FilterRecord(
        title="costly", description="Expensive", enabled=True, expression="cost > 100", built_in=False
    )

    restored = TaskFilter.from_record(record)
    assert restored.title == "costly"
    assert restored.expression == "cost > 100"
    assert restored.enabled


def test_builtin_record_is_not_materialized():
    with pytest.raises(ValueError):
        TaskFilter.from_record(FilterRecord(title="filter.completedTasks", built_in=True))
