from .base import Base

from .user import User, UserRole
from .course import Course, Chapter, CourseLevel, CourseStatus
from .material import Material
from .assignment import Assignment, Submission, SubmissionStatus

__all__ = [
    "Base",
    "User",
    "UserRole",
    "Course",
    "Chapter",
    "CourseLevel",
    "CourseStatus",
    "Material",
    "Assignment",
    "Submission",
    "SubmissionStatus",
]
