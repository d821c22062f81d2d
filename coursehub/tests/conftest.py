"""
Shared fixtures: an isolated app per test over a temporary SQLite file,
plus ready-made admin and student accounts.
"""
from datetime import datetime
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from coursehub.config import Settings
from coursehub.database import close_db, init_db
from coursehub.main import create_app
from coursehub.orm.assignment import Assignment
from coursehub.orm.course import Course, CourseLevel, CourseStatus
from coursehub.orm.user import User, UserRole
from coursehub.security.rbac import create_access_token, hash_password

TEST_PASSWORD = "password123"
PDF_BYTES = b"%PDF-1.4\n% test document\n"


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        jwt_secret="test-secret",
        bcrypt_rounds=4,
        environment="test",
        upload_dir=tmp_path / "uploads",
        submission_dir=tmp_path / "submissions",
        rate_limit_enabled=False,
    )


@pytest_asyncio.fixture
async def app(settings):
    app = create_app(settings)
    await init_db(app.state.context.engine)
    yield app
    await close_db(app.state.context.engine)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def db(app):
    async with app.state.context.sessionmaker() as session:
        yield session


async def create_user(app, email: str, role: UserRole, name: str = "Test User") -> dict:
    """Insert a user directly and return its id, email and a valid token."""
    settings = app.state.context.settings
    async with app.state.context.sessionmaker() as session:
        user = User(
            email=email,
            password_hash=hash_password(TEST_PASSWORD, settings.bcrypt_rounds),
            name=name,
            role=role,
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return {
            "id": user.id,
            "email": user.email,
            "token": create_access_token(user, settings),
        }


@pytest_asyncio.fixture
async def admin_user(app) -> dict:
    return await create_user(app, "admin@test.edu", UserRole.admin, name="Admin")


@pytest_asyncio.fixture
async def student_user(app) -> dict:
    return await create_user(app, "student@test.edu", UserRole.student, name="Student")


@pytest.fixture
def admin_headers(admin_user) -> dict:
    return {"Authorization": f"Bearer {admin_user['token']}"}


@pytest.fixture
def student_headers(student_user) -> dict:
    return {"Authorization": f"Bearer {student_user['token']}"}


async def add_course(
    db,
    code: str = "CS101",
    semester: str = "2024春季",
    level: CourseLevel = CourseLevel.undergraduate,
    status: CourseStatus = CourseStatus.active,
    title: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> Course:
    course = Course(
        title=title or f"Course {code}",
        code=code,
        semester=semester,
        level=level,
        status=status,
    )
    if created_at is not None:
        course.created_at = created_at
    db.add(course)
    await db.commit()
    await db.refresh(course)
    return course


async def add_assignment(db, course_id: str, due_date: datetime, title: str = "Homework") -> Assignment:
    assignment = Assignment(course_id=course_id, title=title, due_date=due_date)
    db.add(assignment)
    await db.commit()
    await db.refresh(assignment)
    return assignment


def pdf_file(name: str = "notes.pdf", content: bytes = PDF_BYTES) -> dict:
    return {"file": (name, content, "application/pdf")}
