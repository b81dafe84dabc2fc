import datetime
import typing as t

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, MappedAsDataclass
from sqlalchemy.types import DateTime, Float, JSON

metadata = MetaData()


class base(MappedAsDataclass, DeclarativeBase):
    metadata = metadata
    type_annotation_map = {
        dict[str, t.Any]: JSON,
        datetime.datetime: DateTime(timezone=True),
    }


class pending_submissions(base):
    __tablename__ = "pending_submissions"

    assignment_id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(primary_key=True)
    course_id: Mapped[int]
    plugin_data: Mapped[dict[str, t.Any]]
    online_time_modified: Mapped[int]
    time_created: Mapped[int]
    time_modified: Mapped[int]
    submitted: Mapped[bool] = mapped_column(default=False)
    submission_statement_accepted: Mapped[bool] = mapped_column(default=False)


class pending_grades(base):
    __tablename__ = "pending_grades"

    assignment_id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(primary_key=True)
    course_id: Mapped[int]
    grade: Mapped[float | None] = mapped_column(Float)
    attempt_number: Mapped[int]
    add_attempt: Mapped[bool]
    workflow_state: Mapped[str]
    apply_to_all: Mapped[bool]
    outcomes: Mapped[dict[str, t.Any]]
    plugin_data: Mapped[dict[str, t.Any]]
    time_modified: Mapped[int]


class sync_times(base):
    __tablename__ = "sync_times"

    component: Mapped[str] = mapped_column(primary_key=True)
    resource_id: Mapped[str] = mapped_column(primary_key=True)
    synced_at: Mapped[datetime.datetime]
