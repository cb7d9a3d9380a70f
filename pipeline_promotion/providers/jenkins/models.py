"""Pydantic models for Jenkins JSON API responses."""

from collections.abc import Sequence
from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import BaseModel, Field, field_validator


class BuildRef(BaseModel):
    """Build entry of a job's build list."""

    number: int
    url: str = ""


class JobInfo(BaseModel):
    """A job from Jenkins API."""

    name: str
    full_name: str | None = Field(default=None, alias="fullName")
    url: str = ""
    builds: Sequence[BuildRef] = ()
    last_build: BuildRef | None = Field(default=None, alias="lastBuild")


class Build(BaseModel):
    """A build from Jenkins API.

    ``actions`` and ``causes`` are heterogeneous plugin payloads, kept as
    plain mappings; empty or null entries Jenkins emits are dropped.
    """

    number: int
    url: str = ""
    display_name: str = Field(default="", alias="displayName")
    full_display_name: str | None = Field(default=None, alias="fullDisplayName")
    description: str | None = None
    building: bool = False
    in_queue: bool = Field(default=False, alias="inQueue")
    result: str | None = None
    timestamp: int = 0
    duration: int = 0
    actions: Sequence[dict[str, Any]] = ()
    causes: Sequence[dict[str, Any]] = ()

    @field_validator("actions", "causes", mode="before")
    @classmethod
    def _drop_empty(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        return [item for item in value if isinstance(item, dict) and item]

    @property
    def state(self) -> str:
        if self.building:
            return "building"
        if self.in_queue:
            return "queued"
        return "completed"

    @property
    def started_at(self) -> datetime | None:
        if not self.timestamp:
            return None
        return datetime.fromtimestamp(self.timestamp / 1000, tz=timezone.utc)

    @property
    def finished_at(self) -> datetime | None:
        if self.building or self.started_at is None:
            return None
        return self.started_at + timedelta(milliseconds=self.duration)

    @property
    def all_causes(self) -> Sequence[dict[str, Any]]:
        """Causes reported at top level and through ``CauseAction`` entries."""
        nested = [
            cause
            for action in self.actions
            for cause in action.get("causes") or ()
            if isinstance(cause, dict)
        ]
        return [*self.causes, *nested]

    @property
    def parameters(self) -> Sequence[dict[str, Any]]:
        return [
            parameter
            for action in self.actions
            for parameter in action.get("parameters") or ()
            if isinstance(parameter, dict)
        ]
