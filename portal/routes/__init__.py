"""
portal/routes
One APIRouter per feature area; ALL_ROUTERS is mounted by portal.main
"""
from portal.routes import (
    ai_assistant,
    announcements,
    assessments,
    audit_logs,
    auth,
    course_materials,
    courses,
    dashboard,
    departments,
    facilities,
    registrations,
    scheduled_courses,
    semesters,
    users,
)

ALL_ROUTERS = [
    auth.router,
    users.router,
    departments.router,
    courses.router,
    facilities.buildings_router,
    facilities.rooms_router,
    semesters.router,
    scheduled_courses.router,
    registrations.router,
    course_materials.router,
    assessments.router,
    assessments.student_assessments_router,
    assessments.grading_router,
    assessments.students_router,
    announcements.router,
    audit_logs.router,
    dashboard.router,
    ai_assistant.router,
]
