"""SQLite task store.

Holds the project's tasks together with user-defined custom property
columns, evaluates custom filter expressions (it implements the
``QueryBridge`` protocol) and notifies task listeners about progress and
schedule changes.
"""

import re
import sqlite3
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Any, Generator, Protocol

from .logging import get_logger
from .models import Task
from .properties import PropertyClass
from .query import QueryError

logger = get_logger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_BUILTIN_COLUMNS = {"uid", "num", "name", "completion", "start_date", "end_date", "parent_num"}


class TaskListener(Protocol):
    """Receives task model notifications."""

    def on_task_progress_changed(self, task: Task) -> None: ...

    def on_task_schedule_changed(self, task: Task) -> None: ...


def _date_or_none(value: str | None) -> date | None:
    return date.fromisoformat(value) if value else None


class TaskStore:
    """SQLite-backed task store."""

    def __init__(self, db_path: Path):
        """Initialize the store.

        Args:
            db_path: Path to the SQLite database file
        """
        self.db_path = db_path
        self._listeners: list[TaskListener] = []
        self._ensure_db_exists()
        self._create_tables()

    def _ensure_db_exists(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Get a database connection with row factory."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def _create_tables(self) -> None:
        with self._get_connection() as conn:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS tasks (
                    uid INTEGER PRIMARY KEY AUTOINCREMENT,
                    num INTEGER NOT NULL UNIQUE,
                    name TEXT NOT NULL DEFAULT '',
                    completion INTEGER NOT NULL DEFAULT 0,
                    start_date TEXT,
                    end_date TEXT,
                    parent_num INTEGER
                );

                CREATE TABLE IF NOT EXISTS custom_properties (
                    name TEXT PRIMARY KEY,
                    property_class TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_tasks_parent ON tasks(parent_num);
            """)
            conn.commit()

    # Listeners
    def add_listener(self, listener: TaskListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: TaskListener) -> None:
        self._listeners.remove(listener)

    # Custom properties
    def custom_properties(self) -> dict[str, PropertyClass]:
        """Get the defined custom property columns and their types."""
        with self._get_connection() as conn:
            rows = conn.execute("SELECT name, property_class FROM custom_properties ORDER BY name").fetchall()
        return {row["name"]: PropertyClass.decode(row["property_class"]) for row in rows}

    def define_property(self, name: str, property_class: PropertyClass) -> None:
        """Add a custom property column to the tasks table."""
        if not _IDENTIFIER.match(name):
            raise ValueError(f"Invalid property name: {name!r}")
        if name.lower() in _BUILTIN_COLUMNS or name in self.custom_properties():
            raise ValueError(f"Property {name!r} already exists")
        with self._get_connection() as conn:
            conn.execute(f'ALTER TABLE tasks ADD COLUMN "{name}" {property_class.sql_type}')
            conn.execute(
                "INSERT INTO custom_properties (name, property_class) VALUES (?, ?)",
                (name, property_class.value),
            )
            conn.commit()
        logger.info("custom_property_defined", name=name, property_class=property_class.value)

    # Tasks
    def add_task(self, task: Task) -> Task:
        """Insert a task and its custom property values."""
        props = self.custom_properties()
        unknown = set(task.properties) - set(props)
        if unknown:
            raise ValueError(f"Unknown custom properties: {', '.join(sorted(unknown))}")

        columns = ["num", "name", "completion", "start_date", "end_date", "parent_num"]
        values: list[Any] = [
            task.task_id,
            task.name,
            task.completion,
            task.start.isoformat() if task.start else None,
            task.end.isoformat() if task.end else None,
            task.parent_id,
        ]
        for name, value in task.properties.items():
            columns.append(f'"{name}"')
            values.append(self._to_sql(props[name], value))

        placeholders = ", ".join("?" for _ in columns)
        with self._get_connection() as conn:
            try:
                conn.execute(
                    f"INSERT INTO tasks ({', '.join(columns)}) VALUES ({placeholders})",
                    values,
                )
            except sqlite3.IntegrityError as e:
                raise ValueError(f"Task {task.task_id} already exists") from e
            conn.commit()
        return task

    def get_task(self, task_id: int) -> Task | None:
        with self._get_connection() as conn:
            row = conn.execute("SELECT * FROM tasks WHERE num = ?", (task_id,)).fetchone()
        if row is None:
            return None
        return self._to_task(row, self.custom_properties())

    def load_tasks(self) -> list[Task]:
        """Get all tasks ordered by task number."""
        props = self.custom_properties()
        with self._get_connection() as conn:
            rows = conn.execute("SELECT * FROM tasks ORDER BY num").fetchall()
        return [self._to_task(row, props) for row in rows]

    def set_completion(self, task_id: int, completion: int) -> Task:
        """Update completion and notify listeners of the progress change."""
        if not 0 <= completion <= 100:
            raise ValueError("completion must be between 0 and 100")
        task = self._update(task_id, "completion = ?", (completion,))
        for listener in list(self._listeners):
            listener.on_task_progress_changed(task)
        return task

    def set_dates(self, task_id: int, start: date | None, end: date | None) -> Task:
        """Update the schedule and notify listeners of the change."""
        if start and end and start > end:
            raise ValueError("start must not be after end")
        task = self._update(
            task_id,
            "start_date = ?, end_date = ?",
            (start.isoformat() if start else None, end.isoformat() if end else None),
        )
        for listener in list(self._listeners):
            listener.on_task_schedule_changed(task)
        return task

    def set_property(self, task_id: int, name: str, value: Any) -> Task:
        """Set a custom property value."""
        props = self.custom_properties()
        if name not in props:
            raise ValueError(f"Unknown custom property: {name!r}")
        return self._update(task_id, f'"{name}" = ?', (self._to_sql(props[name], value),))

    def _update(self, task_id: int, assignments: str, params: tuple) -> Task:
        with self._get_connection() as conn:
            cursor = conn.execute(f"UPDATE tasks SET {assignments} WHERE num = ?", (*params, task_id))
            conn.commit()
        if cursor.rowcount == 0:
            raise KeyError(task_id)
        task = self.get_task(task_id)
        assert task is not None
        return task

    # Query bridge
    def query(
        self,
        expression: str | None,
        result_type: PropertyClass = PropertyClass.INTEGER,
    ) -> list[tuple[int, Any]]:
        """Select (task number, value) for every task matching ``expression``.

        The expression is used verbatim as an SQL WHERE clause over the tasks
        table. A blank expression matches all tasks.
        """
        where = f" WHERE ({expression})" if expression and expression.strip() else ""
        sql = f"SELECT num, num AS value FROM tasks{where} ORDER BY num"
        try:
            with self._get_connection() as conn:
                rows = conn.execute(sql).fetchall()
        except sqlite3.Error as e:
            raise QueryError(f"Query failed: {e}", expression=expression) from e
        return [(row["num"], result_type.coerce(row["value"])) for row in rows]

    # Conversion
    @staticmethod
    def _to_sql(property_class: PropertyClass, value: Any) -> Any:
        coerced = property_class.coerce(value)
        if isinstance(coerced, date):
            return coerced.isoformat()
        if isinstance(coerced, bool):
            return int(coerced)
        return coerced

    @staticmethod
    def _to_task(row: sqlite3.Row, props: dict[str, PropertyClass]) -> Task:
        return Task(
            task_id=row["num"],
            name=row["name"],
            completion=row["completion"],
            start=_date_or_none(row["start_date"]),
            end=_date_or_none(row["end_date"]),
            parent_id=row["parent_num"],
            properties={name: cls.coerce(row[name]) for name, cls in props.items()},
        )
