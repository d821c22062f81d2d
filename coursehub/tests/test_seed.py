"""
Seed script runs twice without duplicating rows
"""
from sqlalchemy import func, select

from coursehub.orm.course import Course
from coursehub.orm.user import User, UserRole
from coursehub.seed.seed_courses import COURSES, seed_admin, seed_courses
from coursehub.security.rbac import verify_password


async def test_seed_is_idempotent(app, db):
    context = app.state.context

    assert await seed_courses(context) == len(COURSES)
    assert await seed_courses(context) == 0

    total = await db.scalar(select(func.count()).select_from(Course))
    assert total == len(COURSES)

    archived = (await db.execute(select(Course).where(Course.code == "CS504"))).scalar_one()
    assert archived.semester == "2023秋季"
    assert archived.status.value == "archived"


async def test_seed_admin(app, db):
    context = app.state.context

    assert await seed_admin(context, "root@test.edu", "admin-pass") is True
    assert await seed_admin(context, "root@test.edu", "other-pass") is False

    admin = (await db.execute(select(User).where(User.email == "root@test.edu"))).scalar_one()
    assert admin.role is UserRole.admin
    assert verify_password("admin-pass", admin.password_hash, context.settings.bcrypt_rounds)
