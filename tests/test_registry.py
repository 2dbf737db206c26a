"""Tests for the filter registry and filter persistence."""

import json

import pytest

from taskfilters.filters import VOID_FILTER, CustomQuery, TaskFilter
from taskfilters.models import FilterRecord


def custom(title: str, expression: str = "x > 1") -> TaskFilter:
    return TaskFilter(title, CustomQuery(expression))


def test_filters_lists_builtins_first(registry, builtins):
    registry.add_custom_filter(custom("a"))
    assert registry.filters == builtins.all_filters + registry.custom_filters
    assert len(registry.filters) == 5


def test_find(registry, builtins):
    a = registry.add_custom_filter(custom("a"))
    assert registry.find("a") is a
    assert registry.find("filter.dueTodayTasks") is builtins.due_today
    assert registry.find("filter.void") is VOID_FILTER
    assert registry.find("missing") is None


def test_add_rejects_duplicates_and_builtins(registry, builtins):
    registry.add_custom_filter(custom("a"))
    with pytest.raises(ValueError):
        registry.add_custom_filter(custom("a"))
    with pytest.raises(ValueError):
        registry.add_custom_filter(builtins.completed)
    with pytest.raises(ValueError):
        registry.add_custom_filter(custom("filter.completedTasks"))


def test_remove(registry):
    a = registry.add_custom_filter(custom("a"))
    registry.add_custom_filter(custom("b"))

    assert registry.remove_custom_filter("a") is a
    assert [f.title for f in registry.custom_filters] == ["b"]
    with pytest.raises(KeyError):
        registry.remove_custom_filter("a")


def test_export_filters(registry):
    registry.add_custom_filter(custom("a", "cost > 100"))
    assert registry.export_filters() == [FilterRecord(title="a", expression="cost > 100")]


def test_save_and_load(tmp_path, registry, builtins):
    path = tmp_path / "filters.json"
    a = registry.add_custom_filter(custom("a", "cost > 100"))
    registry.add_custom_filter(custom("b", "priority > 3"))

    registry.save(path, active=a)
    loaded = registry.load(path)

    assert [(f.title, f.expression, f.enabled) for f in loaded] == [
        ("a", "cost > 100", True),
        ("b", "priority > 3", False),
    ]
    assert all(not f.is_built_in for f in loaded)


def test_load_resolves_builtin_records(tmp_path, registry, builtins):
    path = tmp_path / "filters.json"
    path.write_text(json.dumps({
        "filters": [
            {"title": "filter.overdueTasks", "built_in": True, "enabled": True},
            {"title": "filter.unknown", "built_in": True},
            {"title": "mine", "expression": "num = 1"},
        ]
    }))

    loaded = registry.load(path)

    assert loaded[0] is builtins.overdue
    assert not builtins.overdue.enabled
    assert [f.title for f in loaded] == ["filter.overdueTasks", "mine"]


def test_load_missing_file(tmp_path, registry):
    assert registry.load(tmp_path / "nope.json") == []


def test_load_invalid_file(tmp_path, registry):
    path = tmp_path / "filters.json"
    path.write_text(json.dumps({"filters": [{"description": "no title"}]}))
    with pytest.raises(ValueError):
        registry.load(path)


def test_replace_skips_duplicate_titles(registry):
    first = custom("a", "priority > 3")
    second = custom("a", "cost > 100")

    kept = registry.replace_custom_filters([first, second])

    assert kept == [first]
    assert registry.find("a") is first
    assert [f.title for f in registry.custom_filters] == ["a"]


def test_replace_skips_reserved_titles(registry):
    clash = custom("filter.completedTasks")
    void = custom("filter.void")

    registry.replace_custom_filters([clash, void, custom("b")])

    assert [f.title for f in registry.custom_filters] == ["b"]
    assert registry.find("filter.completedTasks").is_built_in


def test_load_skips_duplicate_and_reserved_records(tmp_path, registry):
    path = tmp_path / "filters.json"
    path.write_text(json.dumps({
        "filters": [
            {"title": "mine", "expression": "num = 1"},
            {"title": "mine", "expression": "num = 2"},
            {"title": "filter.overdueTasks", "expression": "num = 3"},
        ]
    }))

    loaded = registry.load(path)

    assert [(f.title, f.expression) for f in loaded] == [("mine", "num = 1")]


def test_rename_keeps_titles_unique(registry):
    a = registry.add_custom_filter(custom("a"))
    registry.add_custom_filter(custom("b"))

    with pytest.raises(ValueError):
        a.title = "b"
    with pytest.raises(ValueError):
        a.title = "filter.overdueTasks"
    with pytest.raises(ValueError):
        registry.rename("a", "b")
    assert a.title == "a"

    assert registry.rename("a", "c") is a
    assert registry.find("c") is a
    with pytest.raises(KeyError):
        registry.rename("a", "d")


def test_rename_check_follows_membership(registry):
    a = registry.add_custom_filter(custom("a"))
    registry.add_custom_filter(custom("b"))
    registry.remove_custom_filter("a")

    a.title = "b"

    assert a.title == "b"


def test_imported_filters_are_checked_on_rename(registry):
    a, b = custom("a"), custom("b")
    registry.replace_custom_filters([a, b])

    with pytest.raises(ValueError):
        b.title = "a"
