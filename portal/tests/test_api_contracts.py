"""
portal/tests/test_api_contracts.py
API contract verification

These tests verify:
1. Error responses follow the standard envelope
2. Lists are bare arrays, mutations return {success, message, data}
3. Health endpoints describe the service
"""
from portal.errors import ErrorCode


class TestErrorResponseFormat:
    """Verify all error responses follow the standard format"""

    async def test_404_format(self, client):
        response = await client.get("/api/courses/course-404")
        assert response.status_code == 404
        data = response.json()
        assert data["success"] is False
        assert data["error"] == "Not Found"
        assert data["code"] == ErrorCode.NOT_FOUND
        assert "course-404" in data["message"]

    async def test_validation_error_format(self, client):
        response = await client.post("/api/departments", json={})
        assert response.status_code == 422
        data = response.json()
        assert data["success"] is False
        assert data["code"] == ErrorCode.VALIDATION_ERROR
        assert data["details"]["errors"][0]["loc"][-1] == "name"

    async def test_unknown_route_uses_envelope(self, client):
        response = await client.get("/api/does-not-exist")
        assert response.status_code == 404
        assert response.json()["success"] is False

    async def test_wrong_method(self, client):
        response = await client.patch("/api/departments")
        assert response.status_code == 405
        assert response.json()["success"] is False


class TestResponseShapes:

    async def test_lists_are_arrays(self, client):
        for path in ("/api/users", "/api/departments", "/api/courses", "/api/buildings",
                     "/api/rooms", "/api/semesters", "/api/scheduled-courses",
                     "/api/registrations", "/api/announcements", "/api/audit-logs"):
            response = await client.get(path)
            assert response.status_code == 200, path
            assert isinstance(response.json(), list), path

    async def test_mutation_envelope(self, client):
        response = await client.post("/api/buildings", json={"name": "Annex", "address": "3 Campus Road"})
        assert response.status_code == 201
        body = response.json()
        assert set(body) == {"success", "message", "data"}
        assert body["data"]["id"].startswith("bldg-")

    async def test_user_never_exposes_hash(self, client):
        for user in (await client.get("/api/users")).json():
            assert "password_hash" not in user


class TestAuditTrail:

    async def test_mutations_are_logged_as_system(self, client):
        await client.post("/api/buildings", json={"name": "Annex"})
        latest = (await client.get("/api/audit-logs", params={"limit": 1})).json()[0]
        assert latest["username"] == "system"
        assert latest["action_type"] == "CREATE"
        assert latest["target_entity_type"] == "Building"

    async def test_limit_bounds(self, client):
        assert (await client.get("/api/audit-logs", params={"limit": 0})).status_code == 422
        assert len((await client.get("/api/audit-logs", params={"limit": 2})).json()) == 2


class TestHealthEndpoints:

    async def test_main_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_errors_health(self, client):
        data = (await client.get("/api/errors/health")).json()
        assert "status_codes" in data
        assert "COURSE_FULL" in data["error_codes"]
