"""
portal/tests/test_dashboard.py
Role dashboards
"""
from portal.tests.conftest import bearer, login


class TestStaffDashboard:

    async def test_metrics(self, client):
        body = (await client.get("/api/dashboard/staff")).json()
        assert body["total_users"] == 7
        assert body["active_courses"] == 4
        assert body["student_enrollment"] == 3
        assert len(body["recent_activity"]) == 5

    async def test_enrollment_follows_drops(self, client):
        await client.post("/api/registrations/drop/reg-1")
        body = (await client.get("/api/dashboard/staff")).json()
        assert body["student_enrollment"] == 2


class TestStudentDashboard:

    async def test_registered_courses_and_credits(self, client):
        body = (await client.get("/api/dashboard/student/stud1")).json()
        assert {c["course_code"] for c in body["registered_courses"]} == {"CS101", "EE305"}
        assert body["registered_credits"] == 6
        assert "anno-2" in [a["announcement_id"] for a in body["announcements"]]

    async def test_upcoming_assessments_only_future(self, client):
        await client.post("/api/assessments", json={
            "name": "Final Project", "max_score": 50, "due_date": "2999-06-01T12:00:00",
            "type": "Project", "scheduled_course_id": "sc-fall24-cs101-a",
        })
        body = (await client.get("/api/dashboard/student/stud1")).json()
        assert [a["name"] for a in body["upcoming_assessments"]] == ["Final Project"]

    async def test_requires_student(self, client):
        response = await client.get("/api/dashboard/student/teacher-1")
        assert response.status_code == 400


class TestTeacherDashboard:

    async def test_assigned_courses(self, client):
        body = (await client.get("/api/dashboard/teacher/teacher-2")).json()
        assert {c["scheduled_course_id"] for c in body["assigned_courses"]} == {
            "sc-fall24-cs101-a", "sc-spring25-cs350-a",
        }
        assert body["total_students"] == 2
        assert "anno-3" in [a["announcement_id"] for a in body["announcements"]]

    async def test_unknown_teacher(self, client):
        response = await client.get("/api/dashboard/teacher/nobody")
        assert response.status_code == 404


class TestOwnDashboard:

    async def test_requires_login(self, client):
        assert (await client.get("/api/dashboard/me")).status_code == 401

    async def test_matches_role(self, client):
        token = await login(client, "teacher-1", "Teacher")
        body = (await client.get("/api/dashboard/me", headers=bearer(token))).json()
        assert body["role"] == "Teacher"
        assert body["teacher_id"] == "teacher-1"

        token = await login(client, "admin", "Admin")
        body = (await client.get("/api/dashboard/me", headers=bearer(token))).json()
        assert body["role"] == "Admin"
        assert "total_users" in body
