"""
coursehub/services/course_service.py
Course catalogue queries and admin writes
"""
import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from coursehub.errors import ConflictError, ErrorCode, NotFoundError, ValidationFailed
from coursehub.orm.assignment import Assignment
from coursehub.orm.course import Chapter, Course, CourseLevel, CourseStatus
from coursehub.orm.material import Material
from coursehub.schemas.course import (
    ChapterCreate,
    ChapterOut,
    CourseCreate,
    CourseDetail,
    CourseOut,
    CourseSummary,
    CourseUpdate,
    MaterialOut,
)

logger = logging.getLogger(__name__)

LEVEL_ALL = "all"


@dataclass(frozen=True)
class CourseFilter:
    """
    Catalogue filter. A field left as None does not constrain the result;
    every other field must match exactly.
    """
    semester: Optional[str] = None
    level: Optional[CourseLevel] = None
    status: Optional[CourseStatus] = None

    @classmethod
    def from_query(
        cls,
        semester: Optional[str] = None,
        level: Optional[str] = None,
        status: Optional[str] = None,
    ) -> "CourseFilter":
        parsed_level = None
        if level and level != LEVEL_ALL:
            try:
                parsed_level = CourseLevel(level)
            except ValueError:
                raise ValidationFailed(
                    f"Invalid level. Must be one of: {LEVEL_ALL}, {', '.join(l.value for l in CourseLevel)}",
                    details={"field": "level", "value": level},
                )

        parsed_status = None
        if status:
            try:
                parsed_status = CourseStatus(status)
            except ValueError:
                raise ValidationFailed(
                    f"Invalid status. Must be one of: {', '.join(s.value for s in CourseStatus)}",
                    details={"field": "status", "value": status},
                )

        return cls(semester=semester or None, level=parsed_level, status=parsed_status)

    def clauses(self) -> list:
        where = []
        if self.semester is not None:
            where.append(Course.semester == self.semester)
        if self.level is not None:
            where.append(Course.level == self.level)
        if self.status is not None:
            where.append(Course.status == self.status)
        return where

    def matches(self, course) -> bool:
        """Same predicate as clauses(), evaluated in process"""
        if self.semester is not None and course.semester != self.semester:
            return False
        if self.level is not None and course.level != self.level:
            return False
        if self.status is not None and course.status != self.status:
            return False
        return True


async def list_courses(db: AsyncSession, course_filter: CourseFilter) -> List[CourseSummary]:
    """Newest first, each annotated with material and assignment counts"""
    material_count = (
        select(func.count(Material.id))
        .where(Material.course_id == Course.id)
        .correlate(Course)
        .scalar_subquery()
    )
    assignment_count = (
        select(func.count(Assignment.id))
        .where(Assignment.course_id == Course.id)
        .correlate(Course)
        .scalar_subquery()
    )
    stmt = (
        select(
            Course,
            material_count.label("material_count"),
            assignment_count.label("assignment_count"),
        )
        .where(*course_filter.clauses())
        .order_by(Course.created_at.desc())
    )
    result = await db.execute(stmt)

    courses = []
    for course, materials, assignments in result.all():
        summary = CourseSummary.model_validate(course)
        summary.material_count = materials or 0
        summary.assignment_count = assignments or 0
        courses.append(summary)
    return courses


async def get_course_or_404(db: AsyncSession, course_id: str) -> Course:
    course = await db.get(Course, course_id)
    if course is None:
        raise NotFoundError("Course", course_id)
    return course


async def get_course_detail(db: AsyncSession, course_id: str) -> CourseDetail:
    course = await get_course_or_404(db, course_id)

    chapters = await db.execute(
        select(Chapter).where(Chapter.course_id == course_id).order_by(Chapter.order.asc())
    )
    materials = await list_materials(db, course_id)

    return CourseDetail(
        **CourseOut.model_validate(course).model_dump(),
        chapters=[ChapterOut.model_validate(c) for c in chapters.scalars().all()],
        materials=materials,
    )


async def _course_exists(db: AsyncSession, code: str, semester: str) -> bool:
    existing = await db.execute(
        select(Course.id).where(Course.code == code, Course.semester == semester)
    )
    return existing.first() is not None


async def create_course(db: AsyncSession, data: CourseCreate) -> CourseOut:
    duplicate = ConflictError(
        "A course with this code already exists in this semester",
        code=ErrorCode.DUPLICATE_COURSE,
        details={"code": data.code, "semester": data.semester},
    )

    if await _course_exists(db, data.code, data.semester):
        raise duplicate

    course = Course(
        title=data.title,
        code=data.code,
        semester=data.semester,
        level=data.level,
        status=CourseStatus.active,
        description=data.description,
        syllabus=data.syllabus,
    )
    db.add(course)
    try:
        await db.commit()
    except IntegrityError:
        # Lost a race with a concurrent insert of the same (code, semester)
        await db.rollback()
        raise duplicate

    await db.refresh(course)
    logger.info(f"Course created: {course.code} ({course.semester}) id={course.id}")
    return CourseOut.model_validate(course)


async def update_course(db: AsyncSession, course_id: str, data: CourseUpdate) -> CourseOut:
    course = await get_course_or_404(db, course_id)

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(course, field, value)

    await db.commit()
    await db.refresh(course)
    logger.info(f"Course updated: id={course.id}")
    return CourseOut.model_validate(course)


async def create_chapter(db: AsyncSession, course_id: str, data: ChapterCreate) -> ChapterOut:
    await get_course_or_404(db, course_id)

    chapter = Chapter(course_id=course_id, title=data.title, order=data.order)
    db.add(chapter)
    await db.commit()
    await db.refresh(chapter)
    return ChapterOut.model_validate(chapter)


async def list_materials(db: AsyncSession, course_id: str) -> List[MaterialOut]:
    result = await db.execute(
        select(Material)
        .where(Material.course_id == course_id)
        .order_by(Material.uploaded_at.desc())
    )
    return [MaterialOut.model_validate(m) for m in result.scalars().all()]
