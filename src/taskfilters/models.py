"""Pydantic data models for taskfilters.

Tasks loaded from the store and filters read from disk are validated
against these schemas.
"""

from datetime import date
from typing import Any

from pydantic import BaseModel, Field


class Task(BaseModel):
    """A task as seen by the filters.

    Only the fields consumed by the predicates are modelled. ``end`` is the
    inclusive end date shown to the user.
    """

    task_id: int = Field(description="Task number, unique within a project")
    name: str = Field(default="", description="Task name")
    completion: int = Field(default=0, ge=0, le=100, description="Completion percentage")
    start: date | None = Field(default=None, description="First day of the task")
    end: date | None = Field(default=None, description="Last day of the task (inclusive)")
    parent_id: int | None = Field(default=None, description="Parent task number, None for top level")

    # Custom property values keyed by column name
    properties: dict[str, Any] = Field(default_factory=dict)


class FilterRecord(BaseModel):
    """A filter as written to and read from persistent storage."""

    title: str = Field(description="Unique filter title")
    description: str = Field(default="", description="Human readable description")
    enabled: bool = Field(default=False, description="Whether the filter was active when saved")
    expression: str | None = Field(default=None, description="Query expression of a custom filter")
    built_in: bool = Field(default=False, description="True for the built-in filters")


class FilterCatalog(BaseModel):
    """Top level document of the filters file."""

    filters: list[FilterRecord] = Field(default_factory=list)
