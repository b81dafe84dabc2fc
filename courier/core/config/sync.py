from __future__ import annotations

import typing as t

import annotated_types as ant

from courier.model import TieBreak

from .base import BaseSettings


class SyncSettings(BaseSettings):
    component: str = "mod_assign"
    min_interval_seconds: t.Annotated[int, ant.Ge(0)] = 300
    tie_break: TieBreak = TieBreak.Local
    recheck_grade_block_before_write: bool = False
    # the user queued writes belong to when a caller omits it
    user_id: t.Annotated[int, ant.Gt(0)] | None = None
