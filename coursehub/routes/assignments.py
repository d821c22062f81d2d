"""
coursehub/routes/assignments.py
Assignments per course, student submissions and submission downloads
"""
from fastapi import APIRouter, Depends, Response, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from coursehub.database import get_db
from coursehub.schemas.assignment import AssignmentCreate
from coursehub.schemas.common import ok
from coursehub.security.rbac import Identity, get_current_identity, require_admin
from coursehub.services import assignment_service
from coursehub.uploads import FileStore, accept_upload, get_submission_store

router = APIRouter(tags=["Assignments"])


@router.get("/courses/{course_id}/assignments")
async def list_assignments(
    course_id: str,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    assignments = await assignment_service.list_assignments(db, course_id, identity)
    return ok({"assignments": assignments})


@router.post("/courses/{course_id}/assignments", status_code=status.HTTP_201_CREATED)
async def create_assignment(
    course_id: str,
    data: AssignmentCreate,
    admin: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return ok(await assignment_service.create_assignment(db, course_id, data))


@router.post("/assignments/{assignment_id}/submit")
async def submit_assignment(
    assignment_id: str,
    response: Response,
    identity: Identity = Depends(get_current_identity),
    file: UploadFile = Depends(accept_upload),
    db: AsyncSession = Depends(get_db),
    store: FileStore = Depends(get_submission_store),
):
    submission, created = await assignment_service.submit_assignment(
        db, store, assignment_id, identity, file
    )
    if created:
        response.status_code = status.HTTP_201_CREATED
        message = "Submission received"
    else:
        message = "Resubmission received"
    return ok(
        {"submission_id": submission.id, "status": submission.status.value},
        message=message,
    )


@router.get("/submissions/files/{filename}")
async def download_submission(
    filename: str,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
    store: FileStore = Depends(get_submission_store),
):
    """The submitting student or an admin only"""
    path = await assignment_service.get_submission_file(db, store, filename, identity)
    return FileResponse(path)
