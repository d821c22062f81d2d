"""
coursehub/seed/seed_courses.py
Seed an administrator and a sample course catalogue (idempotent)

Usage:
    python -m coursehub.seed
    ADMIN_EMAIL=... ADMIN_PASSWORD=... coursehub-seed
"""
import asyncio
import logging
import os
from typing import Optional

from sqlalchemy import select

from coursehub.config import Settings, configure_logging
from coursehub.database import AppContext, close_db, create_context, init_db
from coursehub.orm.course import Course, CourseLevel, CourseStatus
from coursehub.orm.user import User, UserRole
from coursehub.schemas.auth import normalize_email
from coursehub.security.rbac import hash_password

logger = logging.getLogger(__name__)


COURSES = [
    {
        "title": "软件工程基础",
        "code": "CS101",
        "semester": "2024春季",
        "level": CourseLevel.undergraduate,
        "status": CourseStatus.active,
        "description": "介绍软件工程的基本概念、开发流程、设计模式等核心知识。",
    },
    {
        "title": "高级软件架构",
        "code": "CS502",
        "semester": "2024春季",
        "level": CourseLevel.graduate,
        "status": CourseStatus.active,
        "description": "深入讲解微服务架构、分布式系统设计、云原生应用开发。",
    },
    {
        "title": "软件项目管理",
        "code": "CS503",
        "semester": "2024春季",
        "level": CourseLevel.graduate,
        "status": CourseStatus.active,
        "description": "敏捷开发、DevOps实践、团队协作与项目管理方法论。",
    },
    {
        "title": "云计算与大数据",
        "code": "CS504",
        "semester": "2023秋季",
        "level": CourseLevel.graduate,
        "status": CourseStatus.archived,
        "description": "云计算基础架构、大数据处理技术、分布式计算框架。",
    },
]


async def seed_admin(context: AppContext, email: str, password: str, name: str = "Administrator") -> bool:
    """Create the admin account unless the email is already taken"""
    email = normalize_email(email)
    async with context.sessionmaker() as session:
        result = await session.execute(select(User).where(User.email == email))
        if result.scalar_one_or_none():
            logger.info(f"✓ Admin {email} exists")
            return False

        session.add(User(
            email=email,
            password_hash=hash_password(password, context.settings.bcrypt_rounds),
            name=name,
            role=UserRole.admin,
        ))
        await session.commit()
        logger.info(f"✓ Admin {email} created")
        return True


async def seed_courses(context: AppContext) -> int:
    """Seed courses table (idempotent)"""
    async with context.sessionmaker() as session:
        try:
            created_count = 0
            existing_count = 0

            for course_data in COURSES:
                stmt = select(Course.id).where(
                    Course.code == course_data["code"],
                    Course.semester == course_data["semester"],
                )
                existing = await session.execute(stmt)
                if existing.first() is not None:
                    existing_count += 1
                    continue

                session.add(Course(**course_data))
                logger.info(f"✓ Course {course_data['code']} ({course_data['semester']}) created")
                created_count += 1

            await session.commit()
            logger.info(f"RESULT: {created_count} created, {existing_count} already exist")
            return created_count

        except Exception as e:
            logger.error(f"❌ Error seeding courses: {str(e)}")
            await session.rollback()
            raise


async def seed_database(settings: Optional[Settings] = None) -> None:
    settings = settings or Settings.from_env()
    context = create_context(settings)
    try:
        await init_db(context.engine)
        admin_password = os.getenv("ADMIN_PASSWORD")
        if admin_password:
            await seed_admin(context, os.getenv("ADMIN_EMAIL", "admin@example.edu"), admin_password)
        else:
            logger.warning("ADMIN_PASSWORD not set - skipping admin account")
        await seed_courses(context)
        logger.info("✅ Seeding complete")
    finally:
        await close_db(context.engine)


def main() -> None:
    """Main entry point"""
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))
    asyncio.run(seed_database())


if __name__ == "__main__":
    main()
