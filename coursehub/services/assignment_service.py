"""
coursehub/services/assignment_service.py
Assignment listing and the submission upsert

A student has at most one submission per assignment. Submitting again
overwrites that row in place (file, status, time) and the replaced file is
deleted once the new one is committed.
"""
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple, Union

from fastapi import UploadFile
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from coursehub.errors import NotFoundError
from coursehub.orm.assignment import Assignment, Submission, SubmissionStatus
from coursehub.orm.base import utcnow
from coursehub.schemas.assignment import (
    AssignmentCreate,
    AssignmentOut,
    StudentAssignmentOut,
    SubmissionOut,
)
from coursehub.security.rbac import Identity
from coursehub.services.course_service import get_course_or_404
from coursehub.uploads import FileStore

logger = logging.getLogger(__name__)


def submission_status_for(assignment: Assignment, moment: datetime) -> SubmissionStatus:
    if assignment.is_late_at(moment):
        return SubmissionStatus.late
    return SubmissionStatus.submitted


async def create_assignment(db: AsyncSession, course_id: str, data: AssignmentCreate) -> AssignmentOut:
    await get_course_or_404(db, course_id)

    assignment = Assignment(
        course_id=course_id,
        title=data.title,
        description=data.description,
        due_date=data.due_date,
    )
    db.add(assignment)
    await db.commit()
    await db.refresh(assignment)
    logger.info(f"Assignment created: course={course_id} id={assignment.id} due={assignment.due_date}")
    return AssignmentOut.model_validate(assignment)


async def list_assignments(
    db: AsyncSession,
    course_id: str,
    identity: Identity,
) -> List[Union[AssignmentOut, StudentAssignmentOut]]:
    """Ordered by due date; students also see their own submission per row"""
    result = await db.execute(
        select(Assignment)
        .where(Assignment.course_id == course_id)
        .order_by(Assignment.due_date.asc())
    )
    assignments = result.scalars().all()

    if not identity.is_student:
        return [AssignmentOut.model_validate(a) for a in assignments]

    own = {}
    if assignments:
        subs = await db.execute(
            select(Submission).where(
                Submission.student_id == identity.user_id,
                Submission.assignment_id.in_([a.id for a in assignments]),
            )
        )
        own = {s.assignment_id: s for s in subs.scalars().all()}

    rows = []
    for assignment in assignments:
        submission = own.get(assignment.id)
        rows.append(StudentAssignmentOut(
            **AssignmentOut.model_validate(assignment).model_dump(),
            submitted=submission is not None,
            submission=SubmissionOut.model_validate(submission) if submission else None,
        ))
    return rows


async def _find_submission(db: AsyncSession, assignment_id: str, student_id: str) -> Optional[Submission]:
    result = await db.execute(
        select(Submission).where(
            Submission.assignment_id == assignment_id,
            Submission.student_id == student_id,
        )
    )
    return result.scalar_one_or_none()


async def submit_assignment(
    db: AsyncSession,
    store: FileStore,
    assignment_id: str,
    identity: Identity,
    upload: UploadFile,
    now: Optional[datetime] = None,
) -> Tuple[SubmissionOut, bool]:
    """
    Record a submission. Returns (submission, created); created is False
    when an earlier submission was overwritten.
    """
    assignment = await db.get(Assignment, assignment_id)
    if assignment is None:
        raise NotFoundError("Assignment", assignment_id)

    moment = now or utcnow()
    status = submission_status_for(assignment, moment)
    replaced_url = None

    async with store.staged(upload) as stored:
        submission = await _find_submission(db, assignment_id, identity.user_id)
        created = submission is None
        if created:
            submission = Submission(
                assignment_id=assignment_id,
                student_id=identity.user_id,
                file_url=stored.url,
                status=status,
                submit_time=moment,
            )
            db.add(submission)
        else:
            replaced_url = submission.file_url
            submission.file_url = stored.url
            submission.status = status
            submission.submit_time = moment

        try:
            await db.commit()
        except IntegrityError:
            if not created:
                await db.rollback()
                raise
            # A concurrent first submission got in first; overwrite it instead
            await db.rollback()
            submission = await _find_submission(db, assignment_id, identity.user_id)
            if submission is None:
                raise
            created = False
            replaced_url = submission.file_url
            submission.file_url = stored.url
            submission.status = status
            submission.submit_time = moment
            await db.commit()

    if replaced_url and replaced_url != stored.url:
        store.remove_url(replaced_url)

    await db.refresh(submission)
    logger.info(
        f"{'Submission' if created else 'Resubmission'} for assignment {assignment_id} "
        f"by {identity.user_id}: {status.value}"
    )
    return SubmissionOut.model_validate(submission), created


async def get_submission_file(db: AsyncSession, store: FileStore, filename: str, identity: Identity) -> Path:
    """
    Resolve a submitted file for download. Only the submitting student and
    admins may read it; everyone else gets the same 404 as a missing file.
    """
    url = store.url_for(filename)
    path = store.path_for_url(url)
    submission = None
    if path is not None:
        result = await db.execute(select(Submission).where(Submission.file_url == url))
        submission = result.scalar_one_or_none()

    if submission is None or not (identity.is_admin or submission.student_id == identity.user_id):
        raise NotFoundError("Submission file")
    if not path.is_file():
        logger.error(f"Submission {submission.id} points at missing file {path}")
        raise NotFoundError("Submission file")
    return path
