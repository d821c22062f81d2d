"""
coursehub/services/material_service.py
Material upload: file on disk plus a metadata row, committed together
"""
import logging
from typing import Optional

from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from coursehub.errors import NotFoundError
from coursehub.orm.course import Chapter
from coursehub.orm.material import Material
from coursehub.schemas.course import MaterialOut
from coursehub.services.course_service import get_course_or_404
from coursehub.uploads import FileStore

logger = logging.getLogger(__name__)


async def create_material(
    db: AsyncSession,
    store: FileStore,
    upload: UploadFile,
    course_id: str,
    title: str,
    chapter_id: Optional[str] = None,
    material_type: Optional[str] = None,
) -> MaterialOut:
    await get_course_or_404(db, course_id)

    if chapter_id:
        chapter = await db.get(Chapter, chapter_id)
        if chapter is None or chapter.course_id != course_id:
            raise NotFoundError("Chapter", chapter_id)

    async with store.staged(upload) as stored:
        material = Material(
            course_id=course_id,
            chapter_id=chapter_id or None,
            title=title,
            type=material_type or stored.extension or "file",
            file_url=stored.url,
            file_size=stored.size,
        )
        db.add(material)
        try:
            await db.commit()
        except Exception:
            await db.rollback()
            raise

    await db.refresh(material)
    logger.info(f"Material uploaded: course={course_id} id={material.id} size={material.file_size}")
    return MaterialOut.model_validate(material)
