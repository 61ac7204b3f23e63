"""
portal/tests/test_registrations.py
Registration lifecycle and the enrollment counter

The counter on a scheduled course must always equal the number of
Registered rows for it.
"""
import asyncio
from datetime import datetime

from sqlalchemy import select

from portal.config.feature_flags import FeatureFlags
from portal.orm import Registration, RegistrationStatus, ScheduledCourse, Semester
from portal.services.enrollment_service import is_registration_open, reconcile_enrollment_counts

CS101 = "sc-fall24-cs101-a"
EE305 = "sc-fall24-ee305-a"
EE305_B = "sc-fall24-ee305-b"


async def _enrollment(client, sc_id):
    response = await client.get(f"/api/scheduled-courses/{sc_id}")
    assert response.status_code == 200
    return response.json()["current_enrollment"]


class TestCreateRegistration:

    async def test_seeded_counters_match_registrations(self, client):
        assert await _enrollment(client, CS101) == 2
        assert await _enrollment(client, EE305) == 1
        assert await _enrollment(client, EE305_B) == 0

    async def test_register_increments_counter(self, client):
        response = await client.post("/api/registrations", json={
            "student_id": "stud2", "scheduled_course_id": EE305,
        })
        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Student successfully registered for course."
        assert body["data"]["status"] == "Registered"
        assert body["data"]["registration_id"].startswith("reg-")
        assert await _enrollment(client, EE305) == 2

    async def test_duplicate_active_registration_rejected(self, client):
        response = await client.post("/api/registrations", json={
            "student_id": "stud1", "scheduled_course_id": CS101,
        })
        assert response.status_code == 409
        body = response.json()
        assert body["success"] is False
        assert body["code"] == "ALREADY_REGISTERED"
        assert await _enrollment(client, CS101) == 2

    async def test_unknown_scheduled_course(self, client):
        response = await client.post("/api/registrations", json={
            "student_id": "stud2", "scheduled_course_id": "sc-missing",
        })
        assert response.status_code == 404

    async def test_non_student_rejected(self, client):
        response = await client.post("/api/registrations", json={
            "student_id": "teacher-1", "scheduled_course_id": EE305,
        })
        assert response.status_code == 400

    async def test_full_course_rejected_without_override(self, client):
        await client.put(f"/api/scheduled-courses/{EE305}", json={"max_capacity": 1})
        response = await client.post("/api/registrations", json={
            "student_id": "stud2", "scheduled_course_id": EE305,
        })
        assert response.status_code == 409
        assert response.json()["code"] == "COURSE_FULL"
        assert response.json()["message"] == "Course is full."
        assert await _enrollment(client, EE305) == 1

    async def test_manual_override_exceeds_capacity(self, client):
        await client.put(f"/api/scheduled-courses/{EE305}", json={"max_capacity": 1})
        response = await client.post("/api/registrations", json={
            "student_id": "stud2", "scheduled_course_id": EE305, "manualOverride": True,
        })
        assert response.status_code == 201
        assert response.json()["message"].endswith("(Capacity may be exceeded by manual override).")
        assert await _enrollment(client, EE305) == 2

    async def test_closed_window_blocks_when_enforced(self, client, monkeypatch):
        monkeypatch.setattr(FeatureFlags, "ENFORCE_REGISTRATION_WINDOW", True)
        response = await client.post("/api/registrations", json={
            "student_id": "stud2", "scheduled_course_id": EE305,
        })
        assert response.status_code == 400
        assert response.json()["code"] == "REGISTRATION_CLOSED"

        override = await client.post("/api/registrations", json={
            "student_id": "stud2", "scheduled_course_id": EE305, "manual_override": True,
        })
        assert override.status_code == 201


class TestStatusChanges:

    async def test_drop_decrements_and_allows_reregistration(self, client):
        response = await client.post("/api/registrations/drop/reg-1")
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "Dropped"
        assert await _enrollment(client, CS101) == 1

        again = await client.post("/api/registrations", json={
            "student_id": "stud1", "scheduled_course_id": CS101,
        })
        assert again.status_code == 201
        assert await _enrollment(client, CS101) == 2

    async def test_update_status_moves_counter(self, client):
        await client.put("/api/registrations/reg-2", json={"status": "Waitlisted"})
        assert await _enrollment(client, CS101) == 1

        await client.put("/api/registrations/reg-2", json={"status": "Registered"})
        assert await _enrollment(client, CS101) == 2

    async def test_grade_only_update_keeps_counter(self, client):
        response = await client.put("/api/registrations/reg-2", json={"final_grade": "B", "grade_points": 3.0})
        assert response.status_code == 200
        assert response.json()["data"]["final_grade"] == "B"
        assert await _enrollment(client, CS101) == 2

    async def test_delete_registered_decrements(self, client):
        response = await client.delete("/api/registrations/reg-3")
        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Registration deleted successfully."}
        assert await _enrollment(client, EE305) == 0

        missing = await client.get("/api/registrations/reg-3")
        assert missing.status_code == 404

    async def test_delete_dropped_leaves_counter(self, client):
        await client.post("/api/registrations/drop/reg-3")
        await client.delete("/api/registrations/reg-3")
        assert await _enrollment(client, EE305) == 0


class TestListing:

    async def test_by_student_includes_course_info(self, client):
        response = await client.get("/api/registrations", params={"student_id": "stud1"})
        assert response.status_code == 200
        rows = response.json()
        assert {r["course_code"] for r in rows} == {"CS101", "EE305"}

    async def test_by_course_includes_student_info(self, client):
        response = await client.get("/api/registrations", params={"scheduled_course_id": CS101})
        rows = response.json()
        assert {r["last_name"] for r in rows} == {"Bekele", "Girma"}
        assert all("email" in r for r in rows)


class TestReconciliation:

    async def test_reconcile_repairs_drift(self, client, db):
        sc = (await db.execute(
            select(ScheduledCourse).where(ScheduledCourse.scheduled_course_id == CS101)
        )).scalar_one()
        sc.current_enrollment = 9
        await db.commit()

        check = await client.get(f"/api/scheduled-courses/{CS101}/enrollment-check")
        assert check.json()["consistent"] is False

        corrected = await reconcile_enrollment_counts(db)
        assert corrected == 1

        check = await client.get(f"/api/scheduled-courses/{CS101}/enrollment-check")
        body = check.json()
        assert body["consistent"] is True
        assert body["stored_enrollment"] == body["actual_enrollment"] == 2

    async def test_counter_matches_rows_after_mixed_operations(self, client, db):
        await client.post("/api/registrations", json={"student_id": "stud2", "scheduled_course_id": EE305})
        await client.post("/api/registrations/drop/reg-1")
        await client.put("/api/registrations/reg-2", json={"status": "Completed"})

        for sc_id in (CS101, EE305):
            rows = (await db.execute(
                select(Registration).where(
                    Registration.scheduled_course_id == sc_id,
                    Registration.status == RegistrationStatus.REGISTERED,
                )
            )).scalars().all()
            assert await _enrollment(client, sc_id) == len(rows)


class TestRegistrationWindow:

    def _semester(self, **windows):
        return Semester(name="Test", academic_year=2024, **windows)

    def test_no_windows_is_open(self):
        assert is_registration_open(self._semester(), datetime(2030, 1, 1)) is True

    def test_inside_registration_window(self):
        sem = self._semester(
            registration_start_date=datetime(2024, 7, 15, 9),
            registration_end_date=datetime(2024, 8, 30, 17),
        )
        assert is_registration_open(sem, datetime(2024, 8, 1)) is True
        assert is_registration_open(sem, datetime(2024, 9, 1)) is False

    def test_add_drop_window_also_counts(self):
        sem = self._semester(
            registration_start_date=datetime(2024, 7, 15, 9),
            registration_end_date=datetime(2024, 8, 30, 17),
            add_drop_start_date=datetime(2024, 9, 2, 9),
            add_drop_end_date=datetime(2024, 9, 9, 17),
        )
        assert is_registration_open(sem, datetime(2024, 9, 5)) is True
        assert is_registration_open(sem, datetime(2024, 9, 1)) is False


class TestConcurrentRegistrations:

    def _register(self, client, student_id, sc_id=EE305):
        return client.post("/api/registrations", json={"student_id": student_id, "scheduled_course_id": sc_id})

    async def test_parallel_registrations_keep_counter_consistent(self, client):
        first, second = await asyncio.gather(
            self._register(client, "stud2"),
            self._register(client, "stud3"),
        )
        assert first.status_code == second.status_code == 201

        check = (await client.get(f"/api/scheduled-courses/{EE305}/enrollment-check")).json()
        assert check["consistent"] is True
        assert check["stored_enrollment"] == check["actual_enrollment"] == 3

    async def test_parallel_registrations_respect_capacity(self, client):
        await client.put(f"/api/scheduled-courses/{EE305}", json={"max_capacity": 2})
        responses = await asyncio.gather(
            self._register(client, "stud2"),
            self._register(client, "stud3"),
        )
        assert sorted(r.status_code for r in responses) == [201, 409]
        assert [r.json()["code"] for r in responses if r.status_code == 409] == ["COURSE_FULL"]

        check = (await client.get(f"/api/scheduled-courses/{EE305}/enrollment-check")).json()
        assert check["consistent"] is True
        assert check["actual_enrollment"] == 2

    async def test_parallel_duplicate_registers_once(self, client):
        responses = await asyncio.gather(
            self._register(client, "stud2"),
            self._register(client, "stud2"),
        )
        assert sorted(r.status_code for r in responses) == [201, 409]

        rows = (await client.get("/api/registrations", params={"student_id": "stud2"})).json()
        assert [r["scheduled_course_id"] for r in rows].count(EE305) == 1
        assert await _enrollment(client, EE305) == 2


class TestCounterFloor:

    async def _zero_counter(self, db, sc_id):
        sc = (await db.execute(
            select(ScheduledCourse).where(ScheduledCourse.scheduled_course_id == sc_id)
        )).scalar_one()
        sc.current_enrollment = 0
        await db.commit()

    async def test_delete_never_goes_below_zero(self, client, db):
        await self._zero_counter(db, EE305)

        response = await client.delete("/api/registrations/reg-3")
        assert response.status_code == 200
        assert await _enrollment(client, EE305) == 0

    async def test_drop_never_goes_below_zero_and_reconcile_repairs(self, client, db):
        await self._zero_counter(db, CS101)

        response = await client.post("/api/registrations/drop/reg-1")
        assert response.status_code == 200
        assert await _enrollment(client, CS101) == 0

        assert await reconcile_enrollment_counts(db) == 1
        check = (await client.get(f"/api/scheduled-courses/{CS101}/enrollment-check")).json()
        assert check["consistent"] is True
        assert check["stored_enrollment"] == 1
