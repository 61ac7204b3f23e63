"""
portal/tests/test_catalog_crud.py
Users, catalog, facilities, semesters, scheduling and materials
"""
import pytest

CS101 = "sc-fall24-cs101-a"


class TestUsers:

    async def test_list_filters_by_role(self, client):
        response = await client.get("/api/users", params={"role": "Teacher"})
        assert response.status_code == 200
        assert {u["user_id"] for u in response.json()} == {"teacher-1", "teacher-2"}

    async def test_list_filters_by_active(self, client):
        inactive = (await client.get("/api/users", params={"is_active": "false"})).json()
        assert [u["user_id"] for u in inactive] == ["stud3"]

    async def test_create_defaults_password_to_username(self, client):
        response = await client.post("/api/users", json={
            "username": "stud4", "email": "s4@cotbe.edu", "first_name": "Meron",
            "last_name": "Alemu", "role": "Student", "department_id": "dept-2",
        })
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["user_id"] == "stud4"
        assert data["department_name"] == "Electrical Engineering"

        login = await client.post("/api/auth/login", json={
            "username": "stud4", "password": "stud4", "role": "Student",
        })
        assert login.status_code == 200

    async def test_duplicate_username_or_email(self, client):
        response = await client.post("/api/users", json={
            "username": "fresh", "email": "s1@cotbe.edu", "first_name": "A",
            "last_name": "B", "role": "Student",
        })
        assert response.status_code == 409

    async def test_unknown_department(self, client):
        response = await client.post("/api/users", json={
            "username": "fresh", "email": "fresh@cotbe.edu", "first_name": "A",
            "last_name": "B", "role": "Student", "department_id": "dept-99",
        })
        assert response.status_code == 404

    async def test_update_ignores_username_and_role(self, client):
        response = await client.put("/api/users/stud2", json={
            "phone_number": "0999999999", "role": "Admin", "username": "hacker",
        })
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["phone_number"] == "0999999999"
        assert data["role"] == "Student"
        assert data["username"] == "stud2"

    async def test_cannot_delete_last_admin(self, client):
        response = await client.delete("/api/users/admin")
        assert response.status_code == 403
        body = response.json()
        assert body["code"] == "LAST_ADMIN"
        assert body["message"] == "Cannot delete the only Admin user."

    async def test_delete_user(self, client):
        response = await client.delete("/api/users/stud3")
        assert response.status_code == 200
        assert (await client.get("/api/users/stud3")).status_code == 404


class TestDepartmentsAndCourses:

    async def test_departments_sorted_by_name(self, client):
        names = [d["name"] for d in (await client.get("/api/departments")).json()]
        assert names == sorted(names)
        assert len(names) == 5

    async def test_department_name_unique(self, client):
        response = await client.post("/api/departments", json={"name": "Computer Science"})
        assert response.status_code == 409

    async def test_department_lifecycle(self, client):
        created = await client.post("/api/departments", json={"name": "Chemical Engineering"})
        assert created.status_code == 201
        dept_id = created.json()["data"]["id"]
        assert dept_id.startswith("dept-")

        updated = await client.put(f"/api/departments/{dept_id}", json={"description": "Process engineering."})
        assert updated.json()["data"]["description"] == "Process engineering."

        deleted = await client.delete(f"/api/departments/{dept_id}")
        assert deleted.json() == {"success": True, "message": "Department deleted successfully."}
        assert (await client.get(f"/api/departments/{dept_id}")).status_code == 404

    async def test_course_code_unique(self, client):
        response = await client.post("/api/courses", json={
            "course_code": "CS101", "title": "Duplicate", "credits": 3, "department_id": "dept-1",
        })
        assert response.status_code == 409

    @pytest.mark.parametrize("credits", [0, -2])
    async def test_course_credits_positive(self, client, credits):
        response = await client.post("/api/courses", json={
            "course_code": "CS999", "title": "Bad", "credits": credits, "department_id": "dept-1",
        })
        assert response.status_code == 422

    async def test_course_needs_existing_department(self, client):
        response = await client.post("/api/courses", json={
            "course_code": "CS999", "title": "Orphan", "credits": 3, "department_id": "dept-99",
        })
        assert response.status_code == 404


class TestFacilities:

    async def test_rooms_carry_building_name(self, client):
        rooms = {r["id"]: r for r in (await client.get("/api/rooms")).json()}
        assert rooms["room-2"]["building_name"] == "Technology Hall"

    async def test_room_number_unique_per_building(self, client):
        response = await client.post("/api/rooms", json={
            "building_id": "bldg-1", "room_number": "101", "capacity": 20,
        })
        assert response.status_code == 409

        other_building = await client.post("/api/rooms", json={
            "building_id": "bldg-2", "room_number": "101", "capacity": 20,
        })
        assert other_building.status_code == 201

    async def test_room_needs_existing_building(self, client):
        response = await client.post("/api/rooms", json={
            "building_id": "bldg-99", "room_number": "1", "capacity": 20,
        })
        assert response.status_code == 404


class TestSemesters:

    async def test_end_before_start_rejected(self, client):
        response = await client.post("/api/semesters", json={
            "name": "Bad Term", "academic_year": 2026, "term": "Fall",
            "start_date": "2026-09-01", "end_date": "2026-08-01",
        })
        assert response.status_code == 422

    async def test_create_with_windows(self, client):
        response = await client.post("/api/semesters", json={
            "name": "Fall 2026", "academic_year": 2026, "term": "Semester One",
            "start_date": "2026-09-01", "end_date": "2026-12-20",
            "registration_start_date": "2026-07-15T09:00:00",
            "registration_end_date": "2026-08-30T17:00:00",
        })
        assert response.status_code == 201
        assert response.json()["data"]["term"] == "Semester One"

    async def test_update_checks_dates(self, client):
        response = await client.put("/api/semesters/sem-1", json={"end_date": "2024-01-01"})
        assert response.status_code == 422


class TestScheduledCourses:

    async def test_enriched_listing(self, client):
        rows = {r["scheduled_course_id"]: r for r in (await client.get("/api/scheduled-courses")).json()}
        cs101 = rows[CS101]
        assert cs101["course_code"] == "CS101"
        assert cs101["teacher_name"] == "Solomon Gizaw"
        assert cs101["room_name"] == "101 (Main Engineering Building)"
        assert cs101["semester_name"] == "Fall 2024"
        assert cs101["schedule"] == "MWF 09:00-09:50"

    async def test_filter_by_teacher(self, client):
        rows = (await client.get("/api/scheduled-courses", params={"teacher_id": "teacher-1"})).json()
        assert {r["course_code"] for r in rows} == {"EE305"}

    async def test_teacher_must_have_teacher_role(self, client):
        response = await client.post("/api/scheduled-courses", json={
            "course_id": "course-2", "semester_id": "sem-1", "teacher_id": "stud1",
            "section_number": "A", "max_capacity": 30,
        })
        assert response.status_code == 400

    async def test_duplicate_section_rejected(self, client):
        response = await client.post("/api/scheduled-courses", json={
            "course_id": "course-1", "semester_id": "sem-1", "teacher_id": "teacher-2",
            "section_number": "A", "max_capacity": 30,
        })
        assert response.status_code == 409

    async def test_new_offering_starts_empty(self, client):
        response = await client.post("/api/scheduled-courses", json={
            "course_id": "course-2", "semester_id": "sem-1", "teacher_id": "teacher-1",
            "section_number": "A", "max_capacity": 30, "room_id": "room-1",
        })
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["current_enrollment"] == 0
        assert data["scheduled_course_id"].startswith("sc-")

    async def test_update_can_unassign_room(self, client):
        response = await client.put(f"/api/scheduled-courses/{CS101}", json={"room_id": None})
        assert response.status_code == 200
        assert response.json()["data"]["room_id"] is None

        sc = (await client.get(f"/api/scheduled-courses/{CS101}")).json()
        assert sc["room_id"] is None
        assert sc["room_name"] == "N/A"

    async def test_update_ignores_null_for_required_fields(self, client):
        response = await client.put(f"/api/scheduled-courses/{CS101}", json={
            "teacher_id": None, "max_capacity": None, "days_of_week": "TTH",
        })
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["teacher_id"] == "teacher-2"
        assert data["max_capacity"] == 50
        assert data["days_of_week"] == "TTH"

    async def test_delete_cascades(self, client):
        response = await client.delete(f"/api/scheduled-courses/{CS101}")
        assert response.status_code == 200
        removed = response.json()["removed"]
        assert removed["registrations"] == 2
        assert removed["materials"] == 2
        assert removed["assessments"] == 2

        regs = (await client.get("/api/registrations", params={"student_id": "stud1"})).json()
        assert [r["scheduled_course_id"] for r in regs] == ["sc-fall24-ee305-a"]


class TestCourseMaterials:

    async def test_listing_requires_course(self, client):
        assert (await client.get("/api/course-materials")).status_code == 422
        rows = (await client.get("/api/course-materials", params={"scheduled_course_id": CS101})).json()
        assert {m["title"] for m in rows} == {"Lecture 1 Slides", "Syllabus CS101"}

    async def test_file_gets_default_path(self, client):
        response = await client.post("/api/course-materials", json={
            "title": "Week 2 Notes", "material_type": "File", "scheduled_course_id": CS101,
        })
        assert response.status_code == 201
        assert response.json()["data"]["file_path"] == "/uploads/Week_2_Notes.pdf"

    async def test_link_requires_url(self, client):
        response = await client.post("/api/course-materials", json={
            "title": "Reading", "material_type": "Link", "scheduled_course_id": CS101,
        })
        assert response.status_code == 422

    async def test_unknown_course(self, client):
        response = await client.post("/api/course-materials", json={
            "title": "Reading", "material_type": "Link", "url": "https://example.com",
            "scheduled_course_id": "sc-missing",
        })
        assert response.status_code == 404
