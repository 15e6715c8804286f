# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Artfolio Developers

"""Typed records for the rows we exchange with the backend.

Rows arrive as loosely-shaped dicts, sometimes with nested relation
objects (a work joined with its task box, for example).  We convert them
here, once, and the rest of the client only ever sees these records.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .artfolio_exceptions import ArtfolioInvalidRecord
from .misc_utils import clamp


DefaultBrightness = 100
MinBrightness = 50
MaxBrightness = 150
DefaultRadiusPercent = 5.0
UncategorizedUnit = "Uncategorized"


def _from_row(cls, row: dict[str, Any]):
    try:
        return cls.model_validate(row)
    except ValidationError as e:
        raise ArtfolioInvalidRecord(f"Bad {cls.__name__} row: {e}") from e


class Artifact(BaseModel):
    """A submitted work: one image from one student in one task box."""

    model_config = ConfigDict(frozen=True)

    id: str
    student_id: str
    task_box_id: Optional[str] = None
    image_url: str
    brightness: int = DefaultBrightness
    reflection: Optional[str] = None
    created_at: datetime
    unit_name: Optional[str] = None

    @field_validator("brightness", mode="before")
    @classmethod
    def _clamp_brightness(cls, v):
        if v is None:
            return DefaultBrightness
        return clamp(int(v), MinBrightness, MaxBrightness)

    @field_validator("reflection", mode="before")
    @classmethod
    def _empty_reflection_is_none(cls, v):
        return v or None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Artifact:
        """Build from a ``works`` row, optionally joined with ``task_boxes``."""
        if not isinstance(row, dict):
            raise ArtfolioInvalidRecord(f"Bad Artifact row: {row!r}")
        row = dict(row)
        task_box = row.pop("task_boxes", None)
        if isinstance(task_box, dict) and not row.get("unit_name"):
            row["unit_name"] = task_box.get("unit_name")
        return _from_row(cls, row)


class Annotation(BaseModel):
    """A circled comment on a work, positioned in percent of the image."""

    model_config = ConfigDict(frozen=True)

    id: str
    work_id: str
    user_id: str
    x_percent: float = Field(ge=0, le=100)
    y_percent: float = Field(ge=0, le=100)
    radius_percent: float = Field(default=DefaultRadiusPercent, gt=0)
    comment: Optional[str] = None
    color: str
    created_at: datetime

    @field_validator("comment", mode="before")
    @classmethod
    def _empty_comment_is_none(cls, v):
        return v or None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Annotation:
        return _from_row(cls, row)


class Reaction(BaseModel):
    """One reaction event: append-only, never retracted."""

    model_config = ConfigDict(frozen=True)

    work_id: str
    sender_id: str
    # not restricted to the known kinds, unknown ones get a fallback mark
    reaction_type: str

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Reaction:
        return _from_row(cls, row)


class Favorite(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str
    work_id: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Favorite:
        return _from_row(cls, row)


class Viewer(BaseModel):
    """Whoever is looking at the works right now."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    role: Literal["student", "teacher"] = "student"

    @property
    def is_supervisor(self) -> bool:
        return self.role == "teacher"

    def owns(self, artifact: Artifact | None) -> bool:
        if artifact is None:
            return False
        return artifact.student_id == self.user_id


def ordered_playback_sequence(artifacts: Sequence[Artifact]) -> list[Artifact]:
    """Oldest first; the sort is stable so equal timestamps keep their order."""
    return sorted(artifacts, key=lambda a: a.created_at)


def group_by_unit(artifacts: Sequence[Artifact]) -> dict[str, list[Artifact]]:
    """Group works by the unit name of their task box.

    Groups appear in the order they are first seen and each group keeps
    the order of the input.  Works without a unit land in
    ``"Uncategorized"``.
    """
    groups: dict[str, list[Artifact]] = {}
    for a in artifacts:
        groups.setdefault(a.unit_name or UncategorizedUnit, []).append(a)
    return groups
