"""
coursehub/schemas/course.py
Course, chapter and material schemas
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from coursehub.orm.course import CourseLevel, CourseStatus
from coursehub.schemas.common import ORMModel


class CourseCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=200)
    code: str = Field(..., min_length=1, max_length=50)
    semester: str = Field(..., min_length=1, max_length=50)
    level: CourseLevel
    description: Optional[str] = None
    syllabus: Optional[str] = None


class CourseUpdate(BaseModel):
    """Fields left out of the body are not touched"""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    syllabus: Optional[str] = None
    status: Optional[CourseStatus] = None

    @field_validator("title", "status")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class CourseOut(ORMModel):
    id: str
    title: str
    code: str
    semester: str
    level: CourseLevel
    status: CourseStatus
    description: Optional[str] = None
    syllabus: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class CourseSummary(CourseOut):
    material_count: int = 0
    assignment_count: int = 0


class ChapterCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=200)
    order: int = Field(0, ge=0)


class ChapterOut(ORMModel):
    id: str
    course_id: str
    title: str
    order: int


class MaterialOut(ORMModel):
    id: str
    course_id: str
    chapter_id: Optional[str] = None
    title: str
    type: str
    file_url: str
    file_size: int
    uploaded_at: datetime


class CourseDetail(CourseOut):
    chapters: List[ChapterOut] = []
    materials: List[MaterialOut] = []
