"""
portal/tests/test_announcements.py
Announcement CRUD and audience-targeted feeds
"""
import pytest

from portal.orm import Announcement, TargetAudience, UserRole
from portal.services.announcement_service import audience_matches


def _ids(rows):
    return [a["announcement_id"] for a in rows]


class TestAudienceMatching:

    @pytest.mark.parametrize("audience,role,dept,expected", [
        (TargetAudience.ALL_USERS, UserRole.STUDENT, None, True),
        (TargetAudience.ALL_STUDENTS, UserRole.TEACHER, None, False),
        (TargetAudience.ALL_TEACHERS, UserRole.TEACHER, None, True),
        (TargetAudience.ALL_STAFF, UserRole.ADMIN, None, True),
        (TargetAudience.ALL_STAFF, UserRole.STUDENT, None, False),
        (TargetAudience.DEPARTMENT_STUDENTS, UserRole.STUDENT, "dept-1", True),
        (TargetAudience.DEPARTMENT_STUDENTS, UserRole.STUDENT, "dept-2", False),
        (TargetAudience.DEPARTMENT_STUDENTS, UserRole.STUDENT, None, False),
        (TargetAudience.DEPARTMENT_FACULTY, UserRole.TEACHER, "dept-1", True),
        (TargetAudience.DEPARTMENT_FACULTY, UserRole.STUDENT, "dept-1", False),
    ])
    def test_rules(self, audience, role, dept, expected):
        announcement = Announcement(target_audience=audience, department_id="dept-1")
        assert audience_matches(announcement, role, dept) is expected


class TestFeed:

    async def test_cs_student_feed(self, client):
        rows = (await client.get("/api/announcements/feed", params={
            "role": "Student", "department_id": "dept-1",
        })).json()
        assert _ids(rows) == ["anno-4", "anno-2", "anno-1"]

    async def test_other_department_student(self, client):
        rows = (await client.get("/api/announcements/feed", params={
            "role": "Student", "department_id": "dept-3",
        })).json()
        assert _ids(rows) == ["anno-4", "anno-1"]

    async def test_teacher_feed(self, client):
        rows = (await client.get("/api/announcements/feed", params={"role": "Teacher"})).json()
        assert _ids(rows) == ["anno-4", "anno-3", "anno-1"]

    async def test_drafts_never_in_feed(self, client):
        rows = (await client.get("/api/announcements/feed", params={"role": "Staff Head"})).json()
        assert "anno-5" not in _ids(rows)

    async def test_future_publish_date_hidden(self, client):
        response = await client.post("/api/announcements", json={
            "title": "Later", "content": "Not yet.", "status": "Published",
            "publish_date": "2999-01-01T00:00:00",
        })
        assert response.status_code == 201
        rows = (await client.get("/api/announcements/feed", params={"role": "Student"})).json()
        assert "Later" not in [a["title"] for a in rows]


class TestCrud:

    async def test_create_defaults_to_draft(self, client):
        response = await client.post("/api/announcements", json={
            "title": "Library Hours", "content": "Extended hours during exams.",
        })
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["status"] == "Draft"
        assert data["target_audience"] == "All Portal Users"

    async def test_list_filters_status(self, client):
        drafts = (await client.get("/api/announcements", params={"status": "Draft"})).json()
        assert _ids(drafts) == ["anno-5"]

    async def test_publish_draft(self, client):
        response = await client.put("/api/announcements/anno-5", json={"status": "Published"})
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "Published"

    async def test_delete(self, client):
        response = await client.delete("/api/announcements/anno-1")
        assert response.json()["success"] is True
        assert (await client.get("/api/announcements/anno-1")).status_code == 404
