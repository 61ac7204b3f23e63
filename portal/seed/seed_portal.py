"""
portal/seed/seed_portal.py
Demo data seeding (idempotent)

Loads the CoTBE sample catalog, users, course offerings and
announcements. Every seeded account's password equals its username.
Skipped entirely when any user already exists.
"""
import asyncio
import logging
from datetime import date, datetime, timedelta

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from portal.orm import (
    Announcement, AnnouncementStatus, Assessment, AuditLogEntry, Building,
    Course, CourseMaterial, Department, MaterialType, Registration,
    RegistrationStatus, Room, ScheduledCourse, Semester, TargetAudience,
    Term, User, UserRole,
)
from portal.orm.base import utcnow
from portal.security import hash_password_async
from portal.services.enrollment_service import reconcile_enrollment_counts

logger = logging.getLogger(__name__)


def _ts(value: str) -> datetime:
    return datetime.strptime(value, "%Y-%m-%dT%H:%M")


def _days_ago(days: float) -> datetime:
    return utcnow() - timedelta(days=days)


DEPARTMENTS = [
    ("dept-1", "Computer Science", "Department of Computer Science and Engineering."),
    ("dept-2", "Electrical Engineering", "Department of Electrical and Computer Engineering."),
    ("dept-3", "Mechanical Engineering", "Department of Mechanical and Industrial Engineering."),
    ("dept-4", "Civil Engineering", "Department of Civil and Environmental Engineering."),
    ("dept-5", "Biomedical Engineering", "Department of Biomedical Engineering."),
]

COURSES = [
    ("course-1", "CS101", "Introduction to Programming", "Fundamentals of programming using Python.", 3, "dept-1"),
    ("course-2", "EE201", "Circuit Theory I", "Basic electric circuit analysis.", 4, "dept-2"),
    ("course-3", "MECH210", "Statics", "Principles of engineering mechanics.", 3, "dept-3"),
    ("course-4", "CS350", "Software Engineering", "Software development lifecycle and methodologies.", 3, "dept-1"),
    ("course-5", "EE305", "Digital Logic Design", "Design and analysis of digital circuits.", 3, "dept-2"),
]

BUILDINGS = [
    ("bldg-1", "Main Engineering Building", "1 Engineering Drive, CoTBE Campus"),
    ("bldg-2", "Technology Hall", "2 Innovation Avenue, CoTBE Campus"),
]

ROOMS = [
    ("room-1", "bldg-1", "101", 50, "Lecture Hall"),
    ("room-2", "bldg-2", "A205", 75, "Lecture Hall"),
]

USERS = [
    {
        "user_id": "admin", "email": "admin@cotbe.edu", "role": UserRole.ADMIN,
        "first_name": "Portal", "last_name": "Admin", "joined_days_ago": 1000,
        "job_title": "System Administrator", "phone_number": "0900000000",
    },
    {
        "user_id": "stud1", "email": "s1@cotbe.edu", "role": UserRole.STUDENT,
        "first_name": "Abebe", "last_name": "Bekele", "joined_days_ago": 200,
        "department_id": "dept-1", "enrollment_date": date(2022, 9, 1),
        "date_of_birth": date(2003, 5, 10), "address": "Arat Kilo, Addis Ababa",
        "phone_number": "0911111111",
    },
    {
        "user_id": "teacher-1", "email": "t1@cotbe.edu", "role": UserRole.TEACHER,
        "first_name": "Chaltu", "last_name": "Lemma", "joined_days_ago": 500,
        "department_id": "dept-2", "office_location": "Block C, Room 203",
        "phone_number": "0922222222",
    },
    {
        "user_id": "staff1", "email": "staff1@cotbe.edu", "role": UserRole.STAFF_HEAD,
        "first_name": "Kebede", "last_name": "Tadesse", "joined_days_ago": 1000,
        "job_title": "Registry Head", "phone_number": "0933221100",
    },
    {
        "user_id": "stud2", "email": "s2@cotbe.edu", "role": UserRole.STUDENT,
        "first_name": "Hana", "last_name": "Girma", "joined_days_ago": 150,
        "department_id": "dept-1", "enrollment_date": date(2023, 3, 15),
        "date_of_birth": date(2004, 1, 20), "address": "Bole, Addis Ababa",
        "phone_number": "0933333333",
    },
    {
        "user_id": "stud3", "email": "s3@cotbe.edu", "role": UserRole.STUDENT,
        "first_name": "Yonas", "last_name": "Ayele", "joined_days_ago": 100,
        "department_id": "dept-3", "enrollment_date": date(2023, 9, 1),
        "date_of_birth": date(2002, 11, 5), "address": "Piassa, Addis Ababa",
        "phone_number": "0944444444", "is_active": False,
    },
    {
        "user_id": "teacher-2", "email": "t2@cotbe.edu", "role": UserRole.TEACHER,
        "first_name": "Solomon", "last_name": "Gizaw", "joined_days_ago": 400,
        "department_id": "dept-1", "office_location": "Block A, Room 105",
        "phone_number": "0912987654",
    },
]

SCHEDULED_COURSES = [
    ("sc-fall24-cs101-a", "course-1", "sem-1", "teacher-2", "room-1", "A", 50, "MWF", "09:00", "09:50"),
    ("sc-fall24-ee305-a", "course-5", "sem-1", "teacher-1", "room-2", "A", 30, "TTH", "13:00", "14:15"),
    ("sc-fall24-ee305-b", "course-5", "sem-1", "teacher-1", "room-2", "B", 30, "MW", "15:00", "16:15"),
    ("sc-spring25-cs350-a", "course-4", "sem-2", "teacher-2", "room-1", "A", 40, "TTH", "10:00", "11:15"),
]

REGISTRATIONS = [
    ("reg-1", "stud1", "sc-fall24-cs101-a"),
    ("reg-2", "stud2", "sc-fall24-cs101-a"),
    ("reg-3", "stud1", "sc-fall24-ee305-a"),
]

AUDIT_LOGS = [
    ("log1", "staff1", "USER_LOGIN", "USER", "staff1", "192.168.1.10", "User logged in successfully"),
    ("log2", "teacher-1", "COURSE_MATERIAL_UPLOAD", "COURSE_MATERIAL", "cm-3", "10.0.0.5", 'Uploaded "Digital Logic Gates Tutorial" to EE305'),
    ("log3", "stud1", "COURSE_REGISTRATION", "REGISTRATION", "reg-1", "203.0.113.45", "Registered for CS101"),
    ("log4", "staff1", "USER_UPDATE", "USER", "stud3", "192.168.1.10", "Deactivated user stud3"),
    ("log5", "teacher-1", "ASSESSMENT_GRADE_UPDATE", "STUDENT_ASSESSMENT", "stud1", "10.0.0.5", "Graded Quiz 1 for Abebe Bekele in EE305"),
    ("log6", "admin", "USER_CREATE", "USER", "staff1", "192.168.1.1", "Admin created new staff user staff1"),
]


def _catalog():
    yield from (Department(id=i, name=n, description=d) for i, n, d in DEPARTMENTS)
    yield from (
        Course(id=i, course_code=code, title=t, description=d, credits=c, department_id=dept)
        for i, code, t, d, c, dept in COURSES
    )
    yield from (Building(id=i, name=n, address=a) for i, n, a in BUILDINGS)
    yield from (
        Room(id=i, building_id=b, room_number=num, capacity=cap, type=kind)
        for i, b, num, cap, kind in ROOMS
    )
    yield Semester(
        id="sem-1", name="Fall 2024", academic_year=2024, term=Term.SEMESTER_ONE,
        start_date=date(2024, 9, 2), end_date=date(2024, 12, 20),
        registration_start_date=_ts("2024-07-15T09:00"), registration_end_date=_ts("2024-08-30T17:00"),
        add_drop_start_date=_ts("2024-09-02T09:00"), add_drop_end_date=_ts("2024-09-09T17:00"),
    )
    yield Semester(
        id="sem-2", name="Spring 2025", academic_year=2025, term=Term.SEMESTER_TWO,
        start_date=date(2025, 1, 13), end_date=date(2025, 5, 9),
        registration_start_date=_ts("2024-11-15T09:00"), registration_end_date=_ts("2025-01-10T17:00"),
        add_drop_start_date=_ts("2025-01-13T09:00"), add_drop_end_date=_ts("2025-01-20T17:00"),
    )


def _users(password_hashes):
    now = utcnow()
    for entry in USERS:
        fields = dict(entry)
        joined = fields.pop("joined_days_ago")
        user_id = fields["user_id"]
        is_active = fields.pop("is_active", True)
        yield User(
            username=user_id,
            password_hash=password_hashes[user_id],
            is_active=is_active,
            date_joined=now - timedelta(days=joined),
            last_login=now if is_active else now - timedelta(days=30),
            **fields,
        )


def _offerings():
    for sc_id, course_id, sem_id, teacher_id, room_id, section, cap, days, start, end in SCHEDULED_COURSES:
        yield ScheduledCourse(
            scheduled_course_id=sc_id, course_id=course_id, semester_id=sem_id,
            teacher_id=teacher_id, room_id=room_id, section_number=section,
            max_capacity=cap, current_enrollment=0,
            days_of_week=days, start_time=start, end_time=end,
        )

    codes = {course_id: code for course_id, code, *_ in COURSES}
    for sc_id, course_id, *_ in SCHEDULED_COURSES:
        code = codes[course_id]
        yield Assessment(
            name=f"Quiz 1 ({code})", description="Short quiz on the first weeks of material.",
            max_score=20, due_date=_ts("2024-09-15T23:59"), type="Quiz",
            scheduled_course_id=sc_id,
        )
        yield Assessment(
            name=f"Midterm ({code})", description="Mid-semester written exam.",
            max_score=30, due_date=_ts("2024-10-15T23:59"), type="Exam",
            scheduled_course_id=sc_id,
        )

    for reg_id, student_id, sc_id in REGISTRATIONS:
        yield Registration(
            registration_id=reg_id, student_id=student_id, scheduled_course_id=sc_id,
            registration_date=_days_ago(30), status=RegistrationStatus.REGISTERED,
        )

    yield CourseMaterial(
        id="cm-1", title="Lecture 1 Slides", description="Introduction to CS101",
        material_type=MaterialType.FILE, file_path="/materials/cs101_lec1.pdf",
        scheduled_course_id="sc-fall24-cs101-a",
    )
    yield CourseMaterial(
        id="cm-2", title="Syllabus CS101", description="Course outline and grading policy.",
        material_type=MaterialType.FILE, file_path="/materials/cs101_syllabus.pdf",
        scheduled_course_id="sc-fall24-cs101-a",
    )
    yield CourseMaterial(
        id="cm-3", title="Digital Logic Gates Tutorial", description="External tutorial on basic gates.",
        material_type=MaterialType.LINK, url="https://example.com/digital-logic-tutorial",
        scheduled_course_id="sc-fall24-ee305-a",
    )


def _communications():
    yield Announcement(
        announcement_id="anno-1", title="Welcome to Fall 2024 Semester!",
        content="We are excited to welcome all new and returning students to the Fall 2024 semester. "
                "Please check your course schedules and familiarize yourself with the portal.",
        author_id="staff1", target_audience=TargetAudience.ALL_USERS,
        status=AnnouncementStatus.PUBLISHED, publish_date=_days_ago(5),
    )
    yield Announcement(
        announcement_id="anno-2", title="CS Department Meeting",
        content="There will be a mandatory meeting for all Computer Science students on "
                "September 5th at 2 PM in Room 101.",
        author_id="teacher-2", target_audience=TargetAudience.DEPARTMENT_STUDENTS,
        status=AnnouncementStatus.PUBLISHED, publish_date=_days_ago(3), department_id="dept-1",
    )
    yield Announcement(
        announcement_id="anno-3", title="Faculty Workshop on New Grading Policy",
        content="All faculty members are invited to a workshop on the new grading policy. "
                "Date: September 10th, 10 AM. Venue: Admin Conference Hall.",
        author_id="staff1", target_audience=TargetAudience.ALL_TEACHERS,
        status=AnnouncementStatus.PUBLISHED, publish_date=_days_ago(2),
    )
    yield Announcement(
        announcement_id="anno-4", title="Portal Maintenance Downtime",
        content="The CoTBE portal will be down for scheduled maintenance on Saturday, "
                "September 7th, from 2 AM to 4 AM.",
        author_id="staff1", target_audience=TargetAudience.ALL_USERS,
        status=AnnouncementStatus.PUBLISHED, publish_date=_days_ago(1),
    )
    yield Announcement(
        announcement_id="anno-5", title="Staff Training Session",
        content="A training session for all administrative staff on the new HR software "
                "will be held next Monday.",
        author_id="staff1", target_audience=TargetAudience.ALL_STAFF,
        status=AnnouncementStatus.DRAFT, publish_date=_days_ago(-3),
    )

    for hours_ago, (log_id, username, action, entity, entity_id, ip, details) in zip(
        range(26, 0, -4), AUDIT_LOGS
    ):
        yield AuditLogEntry(
            id=log_id, timestamp=utcnow() - timedelta(hours=hours_ago), username=username,
            action_type=action, target_entity_type=entity, target_entity_id=entity_id,
            ip_address=ip, details=details,
        )


async def seed_portal(db: AsyncSession) -> bool:
    """
    Seed demo data into an empty database.

    Returns False (and changes nothing) when users already exist.
    """
    existing = (await db.execute(select(func.count(User.user_id)))).scalar_one()
    if existing:
        logger.info(f"[Seed] {existing} user(s) present, skipping demo data")
        return False

    # bcrypt runs off the event loop; each demo password is the username
    user_ids = [entry["user_id"] for entry in USERS]
    hashes = await asyncio.gather(*(hash_password_async(user_id) for user_id in user_ids))
    password_hashes = dict(zip(user_ids, hashes))

    steps = [
        ("catalog", _catalog),
        ("users", lambda: _users(password_hashes)),
        ("course offerings", _offerings),
        ("announcements and audit log", _communications),
    ]
    for index, (label, build) in enumerate(steps, start=1):
        logger.info(f"[{index}/{len(steps) + 1}] Seeding {label}...")
        db.add_all(list(build()))
        await db.flush()
        logger.info(f"✓ {label.capitalize()} seeded")

    await db.commit()

    logger.info(f"[{len(steps) + 1}/{len(steps) + 1}] Reconciling enrollment counters...")
    await reconcile_enrollment_counts(db)
    logger.info("✅ DEMO DATA SEEDING COMPLETE")
    return True


async def main():
    from portal.database import AsyncSessionLocal, init_db

    try:
        await init_db()
        async with AsyncSessionLocal() as session:
            await seed_portal(session)
    except Exception as e:
        logger.error(f"❌ Seeding failed: {str(e)}", exc_info=True)
        raise


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s"
    )
    asyncio.run(main())
