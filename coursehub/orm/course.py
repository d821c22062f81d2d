"""
coursehub/orm/course.py
Courses offered in a given semester, with their chapters
"""
from enum import Enum

from sqlalchemy import Column, Integer, String, Text, ForeignKey, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship

from coursehub.orm.base import BaseModel


class CourseLevel(str, Enum):
    undergraduate = "undergraduate"
    graduate = "graduate"


class CourseStatus(str, Enum):
    active = "active"
    archived = "archived"


class Course(BaseModel):
    """
    A course run in one semester.

    The same code may be offered again in a later semester, so uniqueness
    is on (code, semester) rather than on code alone.
    """
    __tablename__ = "courses"
    __table_args__ = (
        UniqueConstraint("code", "semester", name="uq_courses_code_semester"),
    )

    title = Column(String(200), nullable=False)
    code = Column(String(50), nullable=False, index=True)
    semester = Column(String(50), nullable=False, index=True)
    level = Column(SQLEnum(CourseLevel), nullable=False, index=True)
    status = Column(SQLEnum(CourseStatus), nullable=False, default=CourseStatus.active, index=True)
    description = Column(Text, nullable=True)
    syllabus = Column(Text, nullable=True)

    chapters = relationship(
        "Chapter",
        back_populates="course",
        order_by="Chapter.order",
    )
    materials = relationship("Material", back_populates="course")
    assignments = relationship("Assignment", back_populates="course")

    def __repr__(self):
        return f"<Course(id={self.id}, code='{self.code}', semester='{self.semester}')>"


class Chapter(BaseModel):
    __tablename__ = "course_chapters"

    course_id = Column(
        String(36),
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    title = Column(String(200), nullable=False)
    order = Column(Integer, nullable=False, default=0)

    course = relationship("Course", back_populates="chapters")
    materials = relationship("Material", back_populates="chapter")

    def __repr__(self):
        return f"<Chapter(id={self.id}, course_id={self.course_id}, order={self.order})>"
