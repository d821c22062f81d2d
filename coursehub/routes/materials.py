"""
coursehub/routes/materials.py
Course materials: listing and admin upload
"""
from typing import Optional

from fastapi import APIRouter, Depends, Form, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from coursehub.database import get_db
from coursehub.schemas.common import ok
from coursehub.security.rbac import Identity, require_admin
from coursehub.services import course_service, material_service
from coursehub.uploads import FileStore, accept_upload, get_file_store

router = APIRouter(tags=["Materials"])


@router.get("/courses/{course_id}/materials")
async def list_materials(course_id: str, db: AsyncSession = Depends(get_db)):
    return ok({"materials": await course_service.list_materials(db, course_id)})


@router.post("/materials/upload", status_code=status.HTTP_201_CREATED)
async def upload_material(
    admin: Identity = Depends(require_admin),
    file: UploadFile = Depends(accept_upload),
    course_id: str = Form(..., min_length=1),
    title: str = Form(..., min_length=1),
    chapter_id: Optional[str] = Form(None),
    material_type: Optional[str] = Form(None, alias="type"),
    db: AsyncSession = Depends(get_db),
    store: FileStore = Depends(get_file_store),
):
    """Multipart upload; guards run in order: token, admin role, file check."""
    material = await material_service.create_material(
        db,
        store,
        file,
        course_id=course_id,
        title=title,
        chapter_id=chapter_id,
        material_type=material_type,
    )
    return ok({"id": material.id, "file_url": material.file_url})
