"""Catalog of built-in and custom filters."""

from pathlib import Path

from pydantic import ValidationError

from .filters import VOID_FILTER, BuiltInFilters, TaskFilter
from .logging import get_logger
from .models import FilterCatalog, FilterRecord

logger = get_logger(__name__)


class FilterRegistry:
    """Registry for the built-in filters and the user's custom filters.

    Built-in filters are injected and never copied; custom filters are kept
    in insertion order.
    """

    def __init__(self, builtins: BuiltInFilters):
        self.builtins = builtins
        self._custom: list[TaskFilter] = []

    @property
    def builtin_filters(self) -> list[TaskFilter]:
        return self.builtins.all_filters

    @property
    def custom_filters(self) -> list[TaskFilter]:
        return self._custom.copy()

    @property
    def filters(self) -> list[TaskFilter]:
        """All available filters, built-ins first."""
        return self.builtin_filters + self._custom

    def find(self, title: str) -> TaskFilter | None:
        """Find a filter by title, including the void filter."""
        if title == VOID_FILTER.title:
            return VOID_FILTER
        for f in self.filters:
            if f.title == title:
                return f
        return None

    def resolve(self, f: TaskFilter) -> TaskFilter:
        """Map a built-in filter to the process singleton with the same title."""
        if not f.is_built_in:
            return f
        found = self.find(f.title)
        if found is None or not found.is_built_in:
            raise KeyError(f"Unknown built-in filter: {f.title}")
        return found

    def _is_reserved(self, title: str) -> bool:
        return title == VOID_FILTER.title or self.builtins.find(title) is not None

    def _check_rename(self, f: TaskFilter, title: str) -> None:
        other = self.find(title)
        if other is not None and other is not f:
            raise ValueError(f"Filter {title!r} already exists")

    def add_custom_filter(self, f: TaskFilter) -> TaskFilter:
        if f.is_built_in:
            raise ValueError(f"Built-in filter {f.title!r} cannot be added as a custom filter")
        if self.find(f.title) is not None:
            raise ValueError(f"Filter {f.title!r} already exists")
        f.rename_check = self._check_rename
        self._custom.append(f)
        logger.info("custom_filter_added", title=f.title, expression=f.expression)
        return f

    def remove_custom_filter(self, title: str) -> TaskFilter:
        for i, f in enumerate(self._custom):
            if f.title == title:
                del self._custom[i]
                f.rename_check = None
                logger.info("custom_filter_removed", title=title)
                return f
        raise KeyError(title)

    def rename(self, title: str, new_title: str) -> TaskFilter:
        """Rename a custom filter, keeping titles unique."""
        for f in self._custom:
            if f.title == title:
                f.title = new_title
                logger.info("custom_filter_renamed", title=title, new_title=new_title)
                return f
        raise KeyError(title)

    def replace_custom_filters(self, filters: list[TaskFilter]) -> list[TaskFilter]:
        """Replace the custom set with the non-built-in entries of ``filters``.

        Entries whose title is taken by a built-in filter or by an earlier
        entry are skipped.

        Returns:
            The custom filters now in the registry
        """
        for f in self._custom:
            f.rename_check = None
        custom: list[TaskFilter] = []
        seen: set[str] = set()
        for f in filters:
            if f.is_built_in:
                continue
            if self._is_reserved(f.title) or f.title in seen:
                logger.warning("duplicate_filter_skipped", title=f.title)
                continue
            seen.add(f.title)
            f.rename_check = self._check_rename
            custom.append(f)
        self._custom = custom
        return custom.copy()

    # Import / export
    def export_filters(self) -> list[FilterRecord]:
        """Get records for the custom filters."""
        return [f.to_record() for f in self._custom]

    def records_to_filters(self, records: list[FilterRecord]) -> list[TaskFilter]:
        """Materialize stored records; built-in records resolve to the singletons.

        Unknown built-in titles are skipped, as are custom records whose
        title is reserved by a built-in filter or repeats an earlier record.
        The enabled flag of a built-in record is not applied to the
        singleton, since it is owned by the persisted option.
        """
        result: list[TaskFilter] = []
        seen: set[str] = set()
        for record in records:
            if record.built_in:
                builtin = self.builtins.find(record.title)
                if builtin is None:
                    logger.warning("unknown_builtin_filter", title=record.title)
                    continue
                result.append(builtin)
            elif self._is_reserved(record.title) or record.title in seen:
                logger.warning("duplicate_filter_skipped", title=record.title)
            else:
                seen.add(record.title)
                result.append(TaskFilter.from_record(record))
        return result

    def load(self, path: Path) -> list[TaskFilter]:
        """Read filters from a JSON file.

        Returns:
            The stored filters, built-ins resolved to the singletons. An
            absent file yields an empty list.

        Raises:
            ValueError: If the file is not a valid filters document
        """
        if not path.exists():
            return []
        try:
            catalog = FilterCatalog.model_validate_json(path.read_text(encoding="utf-8"))
        except ValidationError as e:
            raise ValueError(f"Invalid filters file {path}: {e}") from e
        return self.records_to_filters(catalog.filters)

    def save(self, path: Path, active: TaskFilter | None = None) -> None:
        """Write the custom filters to a JSON file.

        The active custom filter, if any, is stored with ``enabled`` set so
        it is restored on the next import.
        """
        records = []
        for f in self._custom:
            record = f.to_record()
            if active is not None:
                record.enabled = f is active
            records.append(record)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(FilterCatalog(filters=records).model_dump_json(indent=2), encoding="utf-8")
        logger.debug("filters_saved", path=str(path), count=len(records))
