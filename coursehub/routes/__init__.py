"""
coursehub/routes
All API routers, mounted together under the versioned prefix
"""
from fastapi import APIRouter

from coursehub.routes import assignments, auth, courses, materials

router = APIRouter()
router.include_router(auth.router)
router.include_router(courses.router)
router.include_router(materials.router)
router.include_router(assignments.router)
