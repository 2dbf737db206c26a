"""Shared fixtures for the taskfilters tests."""

import pytest
import structlog

from taskfilters.config import get_settings
from taskfilters.filters import BuiltInFilters
from taskfilters.filters.builtin import get_builtin_filters
from taskfilters.manager import FilterManager
from taskfilters.registry import FilterRegistry

from .helpers import TODAY, StubBridge, make_task


@pytest.fixture(autouse=True)
def _reset_caches():
    get_settings.cache_clear()
    get_builtin_filters.cache_clear()
    yield
    get_settings.cache_clear()
    get_builtin_filters.cache_clear()
    structlog.reset_defaults()


@pytest.fixture
def builtins() -> BuiltInFilters:
    return BuiltInFilters(today=lambda: TODAY)


@pytest.fixture
def registry(builtins: BuiltInFilters) -> FilterRegistry:
    return FilterRegistry(builtins)


@pytest.fixture
def bridge() -> StubBridge:
    return StubBridge({"priority > 3": [2, 5, 9], "cost > 100": [1]})


@pytest.fixture
def manager(registry: FilterRegistry, bridge: StubBridge) -> FilterManager:
    return FilterManager(registry, bridge)


@pytest.fixture
def root():
    return make_task(-1, name="<root>")
