"""
portal/tests/test_grading.py
Scores, final grade calculation and academic history
"""
import pytest

from portal.orm import Assessment
from portal.services.grading_service import (
    FinalGradeStatus,
    calculate_final_grade,
    grade_for_score,
)

EE305 = "sc-fall24-ee305-a"
CS101 = "sc-fall24-cs101-a"


async def _assessments(client, sc_id):
    response = await client.get("/api/assessments", params={"scheduled_course_id": sc_id})
    assert response.status_code == 200
    return {a["name"].split(" (")[0]: a for a in response.json()}


async def _score(client, assessment_id, *entries):
    return await client.put(f"/api/assessments/{assessment_id}/scores", json={"scores": list(entries)})


class TestGradeScale:

    @pytest.mark.parametrize("score,letter,points", [
        (100, "A", 4.0),
        (90, "A", 4.0),
        (89.99, "A-", 3.7),
        (80, "B+", 3.3),
        (60, "C", 2.0),
        (50, "D", 1.0),
        (49.9, "F", 0.0),
        (0, "F", 0.0),
    ])
    def test_boundaries(self, score, letter, points):
        assert grade_for_score(score) == (letter, points)

    def test_no_assessments(self):
        assert calculate_final_grade([], {})["status"] == FinalGradeStatus.NO_ASSESSMENTS

    def test_pending_when_any_score_missing(self):
        items = [Assessment(id="a1", max_score=20), Assessment(id="a2", max_score=30)]
        result = calculate_final_grade(items, {"a1": 15, "a2": None})
        assert result["status"] == FinalGradeStatus.PENDING_GRADING

    def test_weighted_by_max_score(self):
        items = [Assessment(id="a1", max_score=20), Assessment(id="a2", max_score=30)]
        result = calculate_final_grade(items, {"a1": 10, "a2": 30})
        assert result["status"] == FinalGradeStatus.CALCULATED
        assert result["numeric_score"] == 80.0
        assert result["final_grade"] == "B+"
        assert result["grade_points"] == 3.3


class TestScores:

    async def test_record_and_list(self, client):
        quiz = (await _assessments(client, EE305))["Quiz 1"]
        response = await _score(client, quiz["id"], {"student_id": "stud1", "score": 18, "feedback": "Good work"})
        assert response.status_code == 200
        assert response.json()["data"][0]["score"] == 18

        rows = (await client.get("/api/student-assessments", params={"student_id": "stud1"})).json()
        assert len(rows) == 1
        assert rows[0]["feedback"] == "Good work"
        assert rows[0]["max_score"] == 20

    async def test_rescoring_updates_in_place(self, client):
        quiz = (await _assessments(client, EE305))["Quiz 1"]
        await _score(client, quiz["id"], {"student_id": "stud1", "score": 10})
        await _score(client, quiz["id"], {"student_id": "stud1", "score": 15})

        rows = (await client.get("/api/student-assessments", params={"scheduled_course_id": EE305})).json()
        assert [r["score"] for r in rows] == [15]

    async def test_score_above_max_rejected(self, client):
        quiz = (await _assessments(client, EE305))["Quiz 1"]
        response = await _score(client, quiz["id"], {"student_id": "stud1", "score": 21})
        assert response.status_code == 400
        assert response.json()["code"] == "SCORE_OUT_OF_RANGE"

    async def test_negative_score_rejected(self, client):
        quiz = (await _assessments(client, EE305))["Quiz 1"]
        response = await _score(client, quiz["id"], {"student_id": "stud1", "score": -1})
        assert response.status_code == 400

    async def test_unregistered_student_rejected(self, client):
        quiz = (await _assessments(client, EE305))["Quiz 1"]
        response = await _score(client, quiz["id"], {"student_id": "stud2", "score": 10})
        assert response.status_code == 400

    async def test_empty_batch_is_validation_error(self, client):
        quiz = (await _assessments(client, EE305))["Quiz 1"]
        response = await client.put(f"/api/assessments/{quiz['id']}/scores", json={"scores": []})
        assert response.status_code == 422


class TestFinalGrades:

    async def test_pending_until_all_scored(self, client):
        quiz = (await _assessments(client, EE305))["Quiz 1"]
        await _score(client, quiz["id"], {"student_id": "stud1", "score": 18})

        entries = (await client.get(f"/api/grading/{EE305}/final-grades")).json()
        assert len(entries) == 1
        assert entries[0]["status"] == "PendingGrading"
        assert entries[0]["has_changed"] is False

    async def test_calculate_and_save(self, client):
        items = await _assessments(client, EE305)
        await _score(client, items["Quiz 1"]["id"], {"student_id": "stud1", "score": 18})
        await _score(client, items["Midterm"]["id"], {"student_id": "stud1", "score": 27})

        preview = (await client.get(f"/api/grading/{EE305}/final-grades")).json()
        assert preview[0]["numeric_score"] == 90.0
        assert preview[0]["final_grade"] == "A"
        assert preview[0]["has_changed"] is True

        saved = await client.post(f"/api/grading/{EE305}/final-grades")
        assert saved.status_code == 200
        assert saved.json()["updated"] == 1

        registration = (await client.get("/api/registrations/reg-3")).json()
        assert registration["final_grade"] == "A"
        assert registration["grade_points"] == 4.0

        again = (await client.post(f"/api/grading/{EE305}/final-grades")).json()
        assert again["updated"] == 0
        assert again["unchanged"] == 1

    async def test_dropped_students_not_graded(self, client):
        await client.post("/api/registrations/drop/reg-2")
        entries = (await client.get(f"/api/grading/{CS101}/final-grades")).json()
        assert [e["student_id"] for e in entries] == ["stud1"]

    async def test_unknown_course(self, client):
        response = await client.get("/api/grading/sc-missing/final-grades")
        assert response.status_code == 404


class TestAcademicHistory:

    async def test_empty_history(self, client):
        body = (await client.get("/api/students/stud2/academic-history")).json()
        assert body["academic_years"] == []
        assert body["cumulative_gpa"] == 0.0

    async def test_credit_weighted_gpa(self, client):
        await client.put("/api/registrations/reg-1", json={"final_grade": "B", "grade_points": 3.0})
        await client.put("/api/registrations/reg-3", json={"final_grade": "A", "grade_points": 4.0})

        body = (await client.get("/api/students/stud1/academic-history")).json()
        assert body["total_credits"] == 6
        assert body["cumulative_gpa"] == 3.5

        year = body["academic_years"][0]
        assert year["year"] == "Academic Year 2024"
        assert year["annual_gpa"] == 3.5
        semester = year["semesters"][0]
        assert semester["name"] == "Fall 2024"
        assert {c["course_code"] for c in semester["courses"]} == {"CS101", "EE305"}
        assert semester["courses"][0]["quality_points"] in (9.0, 12.0)

    async def test_unknown_student(self, client):
        response = await client.get("/api/students/nobody/academic-history")
        assert response.status_code == 404
