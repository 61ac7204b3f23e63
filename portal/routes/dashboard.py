"""
portal/routes/dashboard.py
Role dashboards
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from portal.database import get_db
from portal.orm.user import User
from portal.security import get_current_user
from portal.services import dashboard_service

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])


@router.get("/me")
async def my_dashboard(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Dashboard for the authenticated user's role."""
    return await dashboard_service.dashboard_for(db, current_user)


@router.get("/staff")
async def staff_dashboard(db: AsyncSession = Depends(get_db)):
    return await dashboard_service.staff_dashboard(db)


@router.get("/student/{student_id}")
async def student_dashboard(student_id: str, db: AsyncSession = Depends(get_db)):
    return await dashboard_service.student_dashboard(db, student_id)


@router.get("/teacher/{teacher_id}")
async def teacher_dashboard(teacher_id: str, db: AsyncSession = Depends(get_db)):
    return await dashboard_service.teacher_dashboard(db, teacher_id)
