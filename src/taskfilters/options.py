"""Persisted boolean options and observable values mirrored onto them.

Each built-in filter exposes its enabled flag as an ``ObservableBool``
kept in sync with a named ``BooleanOption``. Writes carry the object that
made them (the trigger) so the two sides never echo each other.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from .logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class OptionChangeEvent:
    """Change notification delivered to option watchers."""

    option: "BooleanOption"
    old_value: bool
    new_value: bool
    trigger: Any = None


OptionWatcher = Callable[[OptionChangeEvent], None]
ValueSubscriber = Callable[[bool, bool], None]


class BooleanOption:
    """A named boolean option with change watchers."""

    def __init__(self, name: str, default: bool = False):
        self.name = name
        self.default = default
        self._value = default
        self._watchers: list[OptionWatcher] = []

    @property
    def value(self) -> bool:
        return self._value

    def set_value(self, value: bool, trigger: Any = None) -> None:
        """Set the value; watchers are notified only if it changed."""
        old = self._value
        if old == value:
            return
        self._value = value
        event = OptionChangeEvent(self, old, value, trigger)
        for watcher in list(self._watchers):
            watcher(event)

    def add_watcher(self, watcher: OptionWatcher) -> None:
        self._watchers.append(watcher)

    def remove_watcher(self, watcher: OptionWatcher) -> None:
        self._watchers.remove(watcher)

    def __repr__(self) -> str:
        return f"BooleanOption({self.name!r}, value={self._value})"


class ObservableBool:
    """A boolean value that notifies subscribers with (old, new) on change."""

    def __init__(self, value: bool = False):
        self._value = value
        self._subscribers: list[ValueSubscriber] = []

    @property
    def value(self) -> bool:
        return self._value

    @value.setter
    def value(self, new: bool) -> None:
        old = self._value
        if old == new:
            return
        self._value = new
        for subscriber in list(self._subscribers):
            subscriber(old, new)

    def subscribe(self, subscriber: ValueSubscriber) -> None:
        self._subscribers.append(subscriber)

    def unsubscribe(self, subscriber: ValueSubscriber) -> None:
        self._subscribers.remove(subscriber)

    def __bool__(self) -> bool:
        return self._value

    def __repr__(self) -> str:
        return f"ObservableBool({self._value})"


def mirror_option(option: BooleanOption) -> ObservableBool:
    """Create an observable that stays in sync with ``option`` both ways.

    The observable writes the option with itself as the trigger; option
    events triggered by the observable are not propagated back.
    """
    prop = ObservableBool(option.value)

    def push_to_option(old: bool, new: bool) -> None:
        if new != old:
            option.set_value(new, trigger=prop)

    def pull_from_option(event: OptionChangeEvent) -> None:
        if event.new_value != event.old_value and event.trigger is not prop:
            prop.value = event.new_value

    prop.subscribe(push_to_option)
    option.add_watcher(pull_from_option)
    return prop


class OptionStore:
    """JSON file holding option values, saved whenever a registered option changes."""

    def __init__(self, path: Path | None = None):
        """Initialize the store.

        Args:
            path: JSON file to load from and save to. ``None`` keeps
                values in memory only.
        """
        self.path = path
        self._options: dict[str, BooleanOption] = {}
        self._stored = self._read()

    def _read(self) -> dict[str, Any]:
        if self.path is None or not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            logger.warning("options_file_unreadable", path=str(self.path), error=str(e))
            return {}
        return data if isinstance(data, dict) else {}

    def register(self, option: BooleanOption) -> BooleanOption:
        """Load the stored value into ``option`` and persist its future changes."""
        self._options[option.name] = option
        stored = self._stored.get(option.name)
        if isinstance(stored, bool):
            option.set_value(stored, trigger=self)
        option.add_watcher(self._on_change)
        return option

    def _on_change(self, event: OptionChangeEvent) -> None:
        logger.debug(
            "option_changed",
            option=event.option.name,
            value=event.new_value,
        )
        self.save()

    @property
    def options(self) -> list[BooleanOption]:
        return list(self._options.values())

    def save(self) -> None:
        """Write all registered option values to disk."""
        self._stored.update({name: opt.value for name, opt in self._options.items()})
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._stored, indent=2, sort_keys=True), encoding="utf-8")
