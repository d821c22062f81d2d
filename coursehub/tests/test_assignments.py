"""
Assignments and the one-submission-per-student upsert
"""
import io
from datetime import datetime, timedelta

from fastapi import UploadFile
from sqlalchemy import func, select

from coursehub.errors import ErrorCode
from coursehub.orm.assignment import Submission, SubmissionStatus
from coursehub.orm.base import utcnow
from coursehub.orm.user import UserRole
from coursehub.security.rbac import Identity
from coursehub.services import assignment_service
from coursehub.services.assignment_service import submit_assignment
from coursehub.tests.conftest import PDF_BYTES, add_assignment, add_course, create_user, pdf_file
from coursehub.uploads import SUBMISSION_URL_PREFIX, FileStore


def submit_url(assignment_id: str) -> str:
    return f"/api/v1/assignments/{assignment_id}/submit"


def stored_names(settings) -> set:
    if not settings.submission_dir.exists():
        return set()
    return {p.name for p in settings.submission_dir.iterdir()}


class TestCreateAssignment:

    async def test_admin_creates_assignment(self, client, db, admin_headers):
        course = await add_course(db)
        response = await client.post(
            f"/api/v1/courses/{course.id}/assignments",
            json={"title": "Homework 1", "due_date": "2024-04-01T23:59:00+08:00"},
            headers=admin_headers,
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["course_id"] == course.id
        assert data["due_date"].startswith("2024-04-01T15:59:00")

    async def test_student_cannot_create(self, client, db, student_headers):
        course = await add_course(db)
        response = await client.post(
            f"/api/v1/courses/{course.id}/assignments",
            json={"title": "Homework 1", "due_date": "2024-04-01T23:59:00"},
            headers=student_headers,
        )
        assert response.status_code == 403

    async def test_unknown_course(self, client, admin_headers):
        response = await client.post(
            "/api/v1/courses/missing/assignments",
            json={"title": "Homework 1", "due_date": "2024-04-01T23:59:00"},
            headers=admin_headers,
        )
        assert response.status_code == 404


class TestListAssignments:

    async def test_student_sees_own_submission(self, client, db, student_headers):
        course = await add_course(db)
        later = await add_assignment(db, course.id, utcnow() + timedelta(days=7), title="Later")
        sooner = await add_assignment(db, course.id, utcnow() + timedelta(days=1), title="Sooner")
        await client.post(submit_url(sooner.id), files=pdf_file(), headers=student_headers)

        response = await client.get(f"/api/v1/courses/{course.id}/assignments", headers=student_headers)

        assert response.status_code == 200
        rows = response.json()["data"]["assignments"]
        assert [r["title"] for r in rows] == ["Sooner", "Later"]
        assert rows[0]["submitted"] is True
        assert rows[0]["submission"]["status"] == "submitted"
        assert rows[1]["submitted"] is False
        assert rows[1]["submission"] is None
        assert later.id == rows[1]["id"]

    async def test_admin_gets_plain_rows(self, client, db, admin_headers):
        course = await add_course(db)
        await add_assignment(db, course.id, utcnow() + timedelta(days=1))

        response = await client.get(f"/api/v1/courses/{course.id}/assignments", headers=admin_headers)

        [row] = response.json()["data"]["assignments"]
        assert "submitted" not in row

    async def test_requires_token(self, client, db):
        course = await add_course(db)
        response = await client.get(f"/api/v1/courses/{course.id}/assignments")
        assert response.status_code == 401

    async def test_unknown_course_lists_nothing(self, client, student_headers):
        response = await client.get("/api/v1/courses/missing/assignments", headers=student_headers)
        assert response.status_code == 200
        assert response.json()["data"]["assignments"] == []


class TestSubmit:

    async def test_first_submission_before_due(self, client, db, settings, student_user, student_headers):
        course = await add_course(db)
        assignment = await add_assignment(db, course.id, utcnow() + timedelta(days=1))

        response = await client.post(submit_url(assignment.id), files=pdf_file(), headers=student_headers)

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Submission received"
        assert body["data"]["status"] == "submitted"

        submission = await db.get(Submission, body["data"]["submission_id"])
        assert submission.student_id == student_user["id"]
        assert len(stored_names(settings)) == 1

    async def test_submission_after_due_is_late(self, client, db, student_headers):
        course = await add_course(db)
        assignment = await add_assignment(db, course.id, utcnow() - timedelta(minutes=1))

        response = await client.post(submit_url(assignment.id), files=pdf_file(), headers=student_headers)

        assert response.status_code == 201
        assert response.json()["data"]["status"] == "late"

    async def test_resubmission_overwrites_single_row(self, client, db, settings, student_user, student_headers):
        course = await add_course(db)
        assignment = await add_assignment(db, course.id, utcnow() + timedelta(days=1))

        first = await client.post(
            submit_url(assignment.id), files=pdf_file("v1.pdf", b"%PDF-1.4 first"), headers=student_headers
        )
        second = await client.post(
            submit_url(assignment.id), files=pdf_file("v2.pdf", b"%PDF-1.4 second"), headers=student_headers
        )

        assert first.status_code == 201
        assert second.status_code == 200
        assert second.json()["message"] == "Resubmission received"
        assert second.json()["data"]["submission_id"] == first.json()["data"]["submission_id"]

        rows = (await db.execute(
            select(Submission).where(
                Submission.assignment_id == assignment.id,
                Submission.student_id == student_user["id"],
            )
        )).scalars().all()
        assert len(rows) == 1

        names = stored_names(settings)
        assert len(names) == 1
        assert rows[0].file_url.endswith(names.pop())
        served = await client.get(rows[0].file_url, headers=student_headers)
        assert served.status_code == 200
        assert served.content == b"%PDF-1.4 second"

    async def test_admin_may_submit(self, client, db, admin_headers):
        course = await add_course(db)
        assignment = await add_assignment(db, course.id, utcnow() + timedelta(days=1))
        response = await client.post(submit_url(assignment.id), files=pdf_file(), headers=admin_headers)
        assert response.status_code == 201

    async def test_unknown_assignment(self, client, settings, student_headers):
        response = await client.post(submit_url("missing"), files=pdf_file(), headers=student_headers)
        assert response.status_code == 404
        assert response.json()["error"]["code"] == ErrorCode.NOT_FOUND
        assert stored_names(settings) == set()

    async def test_no_file(self, client, db, student_headers):
        course = await add_course(db)
        assignment = await add_assignment(db, course.id, utcnow() + timedelta(days=1))
        response = await client.post(submit_url(assignment.id), headers=student_headers)
        assert response.status_code == 400
        assert response.json()["error"]["code"] == ErrorCode.NO_FILE

    async def test_requires_token(self, client, db):
        course = await add_course(db)
        assignment = await add_assignment(db, course.id, utcnow() + timedelta(days=1))
        response = await client.post(submit_url(assignment.id), files=pdf_file())
        assert response.status_code == 401

    async def test_rejected_type_stores_nothing(self, client, db, settings, student_headers):
        course = await add_course(db)
        assignment = await add_assignment(db, course.id, utcnow() + timedelta(days=1))
        response = await client.post(
            submit_url(assignment.id),
            files={"file": ("run.exe", b"MZ", "application/x-msdownload")},
            headers=student_headers,
        )
        assert response.status_code == 415
        assert stored_names(settings) == set()


class TestSubmitService:

    async def test_status_follows_submission_time(self, db, settings, student_user):
        course = await add_course(db)
        due = datetime(2024, 4, 1, 12, 0, 0)
        assignment = await add_assignment(db, course.id, due)
        store = FileStore(settings.submission_dir, SUBMISSION_URL_PREFIX)
        identity = Identity(user_id=student_user["id"], email=student_user["email"], role=UserRole.student)

        on_time, created = await submit_assignment(
            db, store, assignment.id, identity,
            UploadFile(file=io.BytesIO(PDF_BYTES), filename="a.pdf"),
            now=due,
        )
        assert created is True
        assert on_time.status is SubmissionStatus.submitted

        late, created = await submit_assignment(
            db, store, assignment.id, identity,
            UploadFile(file=io.BytesIO(PDF_BYTES), filename="b.pdf"),
            now=due + timedelta(seconds=1),
        )
        assert created is False
        assert late.id == on_time.id
        assert late.status is SubmissionStatus.late
        assert late.submit_time == due + timedelta(seconds=1)

        count = await db.scalar(select(func.count()).select_from(Submission))
        assert count == 1

    async def test_concurrent_first_submission_becomes_update(self, db, settings, student_user, monkeypatch):
        course = await add_course(db)
        assignment = await add_assignment(db, course.id, utcnow() + timedelta(days=1))
        store = FileStore(settings.submission_dir, SUBMISSION_URL_PREFIX)
        identity = Identity(user_id=student_user["id"], email=student_user["email"], role=UserRole.student)

        first, _ = await submit_assignment(
            db, store, assignment.id, identity, UploadFile(file=io.BytesIO(PDF_BYTES), filename="a.pdf")
        )

        # The pre-check misses the row another request has just committed
        real_find = assignment_service._find_submission
        lookups = []

        async def stale_first_lookup(session, assignment_id, student_id):
            lookups.append(assignment_id)
            if len(lookups) == 1:
                return None
            return await real_find(session, assignment_id, student_id)

        monkeypatch.setattr(assignment_service, "_find_submission", stale_first_lookup)

        second, created = await submit_assignment(
            db, store, assignment.id, identity, UploadFile(file=io.BytesIO(PDF_BYTES), filename="b.pdf")
        )

        assert created is False
        assert len(lookups) == 2
        assert second.id == first.id
        assert second.file_url != first.file_url

        count = await db.scalar(select(func.count()).select_from(Submission))
        assert count == 1
        names = stored_names(settings)
        assert len(names) == 1
        assert second.file_url.endswith(names.pop())


class TestSubmissionDownload:

    async def submitted_file_url(self, client, db, headers) -> str:
        course = await add_course(db)
        assignment = await add_assignment(db, course.id, utcnow() + timedelta(days=1))
        response = await client.post(submit_url(assignment.id), files=pdf_file(), headers=headers)
        submission = await db.get(Submission, response.json()["data"]["submission_id"])
        return submission.file_url

    async def test_owner_and_admin_can_download(self, client, db, student_headers, admin_headers):
        url = await self.submitted_file_url(client, db, student_headers)
        assert url.startswith(SUBMISSION_URL_PREFIX + "/")

        for headers in (student_headers, admin_headers):
            response = await client.get(url, headers=headers)
            assert response.status_code == 200
            assert response.content == PDF_BYTES

    async def test_other_student_gets_not_found(self, app, client, db, student_headers):
        url = await self.submitted_file_url(client, db, student_headers)
        other = await create_user(app, "other@test.edu", UserRole.student)

        response = await client.get(url, headers={"Authorization": f"Bearer {other['token']}"})

        assert response.status_code == 404
        assert response.json()["error"]["code"] == ErrorCode.NOT_FOUND

    async def test_anonymous_is_unauthorized(self, client, db, student_headers):
        url = await self.submitted_file_url(client, db, student_headers)
        assert (await client.get(url)).status_code == 401

    async def test_not_served_as_static_upload(self, client, db, settings, student_headers):
        url = await self.submitted_file_url(client, db, student_headers)
        name = url.rsplit("/", 1)[-1]

        response = await client.get(f"{settings.upload_url_prefix}/{name}")

        assert response.status_code == 404
        assert name in stored_names(settings)

    async def test_unknown_file(self, client, admin_headers):
        response = await client.get(f"{SUBMISSION_URL_PREFIX}/nope.pdf", headers=admin_headers)
        assert response.status_code == 404
