"""
coursehub/orm/assignment.py
Assignments and student submissions
"""
from enum import Enum

from sqlalchemy import Column, String, Text, DateTime, ForeignKey, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship

from coursehub.orm.base import Base, BaseModel, new_id, utcnow


class SubmissionStatus(str, Enum):
    submitted = "submitted"
    late = "late"


class Assignment(BaseModel):
    __tablename__ = "assignments"

    course_id = Column(
        String(36),
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    due_date = Column(DateTime, nullable=False, index=True)

    course = relationship("Course", back_populates="assignments")
    submissions = relationship("Submission", back_populates="assignment")

    def is_late_at(self, moment) -> bool:
        return moment > self.due_date

    def __repr__(self):
        return f"<Assignment(id={self.id}, course_id={self.course_id}, due={self.due_date})>"


class Submission(Base):
    """
    One row per (assignment, student). A resubmission overwrites this row;
    earlier files are not versioned.
    """
    __tablename__ = "submissions"
    __table_args__ = (
        UniqueConstraint("assignment_id", "student_id", name="uq_submissions_assignment_student"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    assignment_id = Column(
        String(36),
        ForeignKey("assignments.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    student_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    file_url = Column(String(500), nullable=False)
    status = Column(SQLEnum(SubmissionStatus), nullable=False)
    submit_time = Column(DateTime, default=utcnow, nullable=False)

    assignment = relationship("Assignment", back_populates="submissions")
    student = relationship("User", back_populates="submissions")

    def __repr__(self):
        return f"<Submission(id={self.id}, assignment_id={self.assignment_id}, status={self.status})>"
