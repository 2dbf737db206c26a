"""taskfilters CLI using Typer.

Commands:
- filters / recent: list the available and recently used filters
- show: print the tasks visible under a filter
- add-filter / remove-filter / enable / disable: manage filters
- add-task / set-progress / set-dates / define-property / set-property: edit tasks
"""

from datetime import date
from typing import Annotated, Optional

import typer

from .config import get_settings
from .logging import get_logger
from .models import Task
from .project import Project
from .properties import PropertyClass
from .query import QueryError

app = typer.Typer(
    name="taskfilters",
    help="Filter a project's task tree with built-in and custom filters.",
    add_completion=False,
)

logger = get_logger(__name__)


def parse_date(value: str | None) -> date | None:
    """Parse a date string in YYYY-MM-DD format."""
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise typer.BadParameter(f"Invalid date format: {value}. Use YYYY-MM-DD.")


def _fail(message: str) -> typer.Exit:
    typer.echo(f"Error: {message}", err=True)
    return typer.Exit(1)


def _open_project() -> Project:
    try:
        return Project(get_settings()).open()
    except (ValueError, QueryError) as e:
        raise _fail(str(e))


@app.command("filters")
def list_filters() -> None:
    """List built-in and custom filters.

    The active filter is marked with "*"; enabled filters are flagged.
    """
    project = _open_project()
    active = project.manager.active_filter

    for f in project.manager.filters:
        marker = "*" if f is active else " "
        kind = "built-in" if f.is_built_in else "custom"
        line = f"{marker} {f.title} [{kind}]"
        if f.expression:
            line += f" where {f.expression}"
        if f.description:
            line += f" - {f.description}"
        if f.enabled:
            line += " (enabled)"
        typer.echo(line)


@app.command()
def recent() -> None:
    """List recently used filters, most recent first."""
    project = _open_project()
    for i, f in enumerate(project.manager.recent_filters, 1):
        typer.echo(f"{i}. {f.title}")


@app.command()
def show(
    filter_title: Annotated[Optional[str], typer.Option("--filter", "-f", help="Title of the filter to apply")] = None,
    expression: Annotated[Optional[str], typer.Option("--expression", "-e", help="Ad-hoc query expression")] = None,
) -> None:
    """Print the task tree as seen through a filter.

    Without options the enabled filter, if any, is applied.

    Example:
        taskfilters show --expression "priority > 3"
    """
    if filter_title and expression:
        raise _fail("--filter and --expression are mutually exclusive")

    project = _open_project()
    manager = project.manager

    try:
        if expression is not None:
            manager.set_active_filter(manager.create_custom_filter("adhoc", expression))
        elif filter_title is not None:
            f = project.registry.find(filter_title)
            if f is None:
                raise _fail(f"Unknown filter: {filter_title}")
            manager.set_active_filter(f)
        tree, result = project.apply()
    except QueryError as e:
        logger.error("show_failed", error=str(e))
        raise _fail(str(e))

    visible = {t.task_id for t in result.visible}
    typer.echo(f"Filter: {manager.active_filter.title}")
    for task, depth in tree.walk():
        if task.task_id not in visible:
            continue
        dates = f"{task.start or '?'}..{task.end or '?'}"
        typer.echo(f"{'  ' * depth}#{task.task_id} {task.name} ({task.completion}%, {dates})")
    typer.echo(f"Hidden tasks: {manager.hidden_task_count}")


@app.command("add-filter")
def add_filter(
    title: Annotated[str, typer.Option("--title", "-t", help="Unique filter title")],
    expression: Annotated[str, typer.Option("--expression", "-e", help="Query expression")],
    description: Annotated[str, typer.Option("--description", "-d", help="Description")] = "",
) -> None:
    """Add a custom filter."""
    project = _open_project()
    try:
        project.registry.add_custom_filter(
            project.manager.create_custom_filter(title, expression, description)
        )
    except ValueError as e:
        raise _fail(str(e))
    project.save_filters()
    typer.echo(f"Added filter '{title}'.")


@app.command("remove-filter")
def remove_filter(
    title: Annotated[str, typer.Argument(help="Title of the custom filter")],
) -> None:
    """Remove a custom filter."""
    project = _open_project()
    try:
        removed = project.registry.remove_custom_filter(title)
    except KeyError:
        raise _fail(f"Unknown custom filter: {title}")
    if project.manager.active_filter is removed:
        project.disable_all()
    else:
        project.save_filters()
    typer.echo(f"Removed filter '{title}'.")


@app.command()
def enable(
    title: Annotated[str, typer.Argument(help="Title of the filter")],
) -> None:
    """Make a filter the enabled one."""
    project = _open_project()
    f = project.registry.find(title)
    if f is None:
        raise _fail(f"Unknown filter: {title}")
    try:
        project.enable(f)
    except QueryError as e:
        raise _fail(str(e))
    typer.echo(f"Enabled filter '{title}'.")


@app.command()
def disable() -> None:
    """Disable all filters."""
    project = _open_project()
    project.disable_all()
    typer.echo("All filters disabled.")


@app.command("add-task")
def add_task(
    num: Annotated[int, typer.Option("--num", "-n", help="Task number")],
    name: Annotated[str, typer.Option("--name", help="Task name")],
    completion: Annotated[int, typer.Option("--completion", "-c", min=0, max=100, help="Completion percentage")] = 0,
    start: Annotated[Optional[str], typer.Option("--start", "-s", help="Start date (YYYY-MM-DD)")] = None,
    end: Annotated[Optional[str], typer.Option("--end", "-e", help="End date (YYYY-MM-DD)")] = None,
    parent: Annotated[Optional[int], typer.Option("--parent", "-p", help="Parent task number")] = None,
) -> None:
    """Add a task to the store."""
    project = _open_project()
    try:
        task = Task(
            task_id=num,
            name=name,
            completion=completion,
            start=parse_date(start),
            end=parse_date(end),
            parent_id=parent,
        )
        project.store.add_task(task)
    except (ValueError, typer.BadParameter) as e:
        raise _fail(str(e))
    typer.echo(f"Added task #{num}.")


@app.command("set-progress")
def set_progress(
    num: Annotated[int, typer.Argument(help="Task number")],
    completion: Annotated[int, typer.Argument(min=0, max=100, help="Completion percentage")],
) -> None:
    """Update a task's completion."""
    project = _open_project()
    try:
        project.store.set_completion(num, completion)
    except KeyError:
        raise _fail(f"Unknown task: {num}")
    except QueryError as e:
        raise _fail(str(e))
    typer.echo(f"Task #{num} is {completion}% complete.")


@app.command("set-dates")
def set_dates(
    num: Annotated[int, typer.Argument(help="Task number")],
    start: Annotated[Optional[str], typer.Option("--start", "-s", help="Start date (YYYY-MM-DD)")] = None,
    end: Annotated[Optional[str], typer.Option("--end", "-e", help="End date (YYYY-MM-DD)")] = None,
) -> None:
    """Update a task's schedule."""
    project = _open_project()
    try:
        project.store.set_dates(num, parse_date(start), parse_date(end))
    except KeyError:
        raise _fail(f"Unknown task: {num}")
    except (ValueError, QueryError) as e:
        raise _fail(str(e))
    typer.echo(f"Rescheduled task #{num}.")


@app.command("define-property")
def define_property(
    name: Annotated[str, typer.Argument(help="Column name")],
    type_name: Annotated[str, typer.Option("--type", "-t", help="text, boolean, int, double or date")] = "text",
) -> None:
    """Define a custom task property usable in filter expressions."""
    project = _open_project()
    try:
        project.store.define_property(name, PropertyClass.decode(type_name))
    except ValueError as e:
        raise _fail(str(e))
    typer.echo(f"Defined property '{name}'.")


@app.command("set-property")
def set_property(
    num: Annotated[int, typer.Argument(help="Task number")],
    name: Annotated[str, typer.Argument(help="Property name")],
    value: Annotated[str, typer.Argument(help="Property value")],
) -> None:
    """Set a custom property value on a task."""
    project = _open_project()
    try:
        project.set_property(num, name, value)
    except KeyError:
        raise _fail(f"Unknown task: {num}")
    except (ValueError, QueryError) as e:
        raise _fail(str(e))
    typer.echo(f"Set {name}={value} on task #{num}.")


def main() -> None:
    """CLI entry point."""
    app()
