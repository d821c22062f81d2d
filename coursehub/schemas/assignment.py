"""
coursehub/schemas/assignment.py
Assignment and submission schemas
"""
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from coursehub.orm.assignment import SubmissionStatus
from coursehub.schemas.common import ORMModel


class AssignmentCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    due_date: datetime

    @field_validator("due_date")
    @classmethod
    def to_naive_utc(cls, value: datetime) -> datetime:
        # Stored naive UTC; offsets are folded in here
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value


class AssignmentOut(ORMModel):
    id: str
    course_id: str
    title: str
    description: Optional[str] = None
    due_date: datetime
    created_at: datetime


class SubmissionOut(ORMModel):
    id: str
    assignment_id: str
    student_id: str
    file_url: str
    status: SubmissionStatus
    submit_time: datetime


class StudentAssignmentOut(AssignmentOut):
    submitted: bool
    submission: Optional[SubmissionOut] = None
