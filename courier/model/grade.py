from __future__ import annotations

import pydantic as p

from .base import BaseModel

Grade = float | int | None
Outcomes = dict[int, float | int]


class GradeItem(BaseModel):
    """One gradebook row for a module and user."""

    item_number: int = 0
    outcome_id: int | None = None
    scale_id: int | None = None
    graded_date: int | None = None
    grade: str | None = None


class OutcomeInfo(BaseModel):
    name: str = ""
    scale: str | None = None


class GradeInfo(BaseModel):
    """Basic grading configuration of a course module."""

    scale: str | None = None
    outcomes: list[OutcomeInfo] = p.Field(default_factory=list)


class GradingForm(BaseModel):
    grade: Grade = None
    attempt_number: int = -1
    add_attempt: bool = False
    workflow_state: str = ""
    apply_to_all: bool = False
    outcomes: Outcomes = p.Field(default_factory=dict)
    plugin_data: dict[str, object] = p.Field(default_factory=dict)


def scale_index(options: str, selected: str) -> int:
    """
    Position of `selected` among the comma separated `options` of a scale.

    Index 0 is reserved for "no grade", so the first real option is 1 and
    anything not found maps to 0.
    """
    values = [""] + [o.strip() for o in options.split(",")]
    try:
        return values.index(selected.strip()) if selected.strip() else 0
    except ValueError:
        return 0


def parse_grade(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        return float(value.strip())
    except ValueError:
        return None
