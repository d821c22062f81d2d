"""
coursehub/routes/courses.py
Course catalogue: public reads, admin writes
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from coursehub.database import get_db
from coursehub.schemas.common import ok
from coursehub.schemas.course import ChapterCreate, CourseCreate, CourseUpdate
from coursehub.security.rbac import Identity, require_admin
from coursehub.services import course_service
from coursehub.services.course_service import CourseFilter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/courses", tags=["Courses"])


@router.get("")
async def list_courses(
    semester: Optional[str] = Query(None),
    level: Optional[str] = Query(None, description="undergraduate, graduate or all"),
    status: Optional[str] = Query(None, description="active or archived"),
    db: AsyncSession = Depends(get_db),
):
    course_filter = CourseFilter.from_query(semester=semester, level=level, status=status)
    courses = await course_service.list_courses(db, course_filter)
    return ok({"courses": courses, "total": len(courses)})


@router.get("/{course_id}")
async def get_course(course_id: str, db: AsyncSession = Depends(get_db)):
    return ok(await course_service.get_course_detail(db, course_id))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_course(
    data: CourseCreate,
    admin: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    course = await course_service.create_course(db, data)
    logger.info(f"Admin {admin.user_id} created course {course.id}")
    return ok(course)


@router.put("/{course_id}")
async def update_course(
    course_id: str,
    data: CourseUpdate,
    admin: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return ok(await course_service.update_course(db, course_id, data))


@router.post("/{course_id}/chapters", status_code=status.HTTP_201_CREATED)
async def create_chapter(
    course_id: str,
    data: ChapterCreate,
    admin: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return ok(await course_service.create_chapter(db, course_id, data))
