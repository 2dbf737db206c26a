"""Custom property types and value coercion."""

from datetime import date
from enum import Enum
from typing import Any


class PropertyClass(str, Enum):
    """Type of a custom task property column."""

    TEXT = "text"
    BOOLEAN = "boolean"
    INTEGER = "int"
    DOUBLE = "double"
    DATE = "date"

    @property
    def sql_type(self) -> str:
        return _SQL_TYPES[self]

    @classmethod
    def decode(cls, type_name: str | None) -> "PropertyClass":
        """Parse a type name, falling back to TEXT for unknown names."""
        if type_name == "integer":
            return cls.INTEGER
        try:
            return cls(type_name)
        except ValueError:
            return cls.TEXT

    def coerce(self, value: Any) -> Any:
        """Convert a raw value to this type, returning None if it can't be."""
        if value is None:
            return None
        if self is PropertyClass.TEXT:
            return str(value)
        if self is PropertyClass.BOOLEAN:
            if isinstance(value, str):
                return value.strip().lower() == "true"
            return bool(value)
        if self is PropertyClass.INTEGER:
            try:
                return int(value)
            except (TypeError, ValueError):
                return None
        if self is PropertyClass.DOUBLE:
            try:
                return float(value)
            except (TypeError, ValueError):
                return None
        # DATE
        if isinstance(value, date):
            return value
        if isinstance(value, str) and value.strip():
            try:
                return date.fromisoformat(value.strip())
            except ValueError:
                return None
        return None


_SQL_TYPES = {
    PropertyClass.TEXT: "TEXT",
    PropertyClass.BOOLEAN: "INTEGER",
    PropertyClass.INTEGER: "INTEGER",
    PropertyClass.DOUBLE: "REAL",
    PropertyClass.DATE: "TEXT",
}
