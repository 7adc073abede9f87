"""
Tests de l'API FastAPI (contrat wire snake_case) et du RemoteAccessor branché dessus.
"""
import asyncio
from datetime import date

import httpx
import pytest
from fastapi.testclient import TestClient

from app.core.container import build_container
from app.domain.entities import DayTraining
from app.domain.errors import NotFoundError
from app.domain.services.remote_accessor import RemoteAccessor
from app.main import create_app

NEW_TRAINING = {"user_id": "user1", "title": "Fartlek", "type": "running", "date": "2024-06-18", "duration": 30}


@pytest.fixture
def client(settings):
    app = create_app(app_settings=settings, services=build_container(settings))
    with TestClient(app) as test_client:
        yield test_client


class TestHealth:
    def test_health_reports_backend(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["services"]["backend"] == "mock"

    def test_services_not_started(self, settings):
        # Sans lifespan, le conteneur n'existe pas encore
        response = TestClient(create_app(app_settings=settings)).get("/api/trainings")
        assert response.status_code == 503


class TestTrainingRoutes:
    def test_list_uses_snake_case(self, client):
        response = client.get("/api/trainings")
        body = response.json()

        assert response.status_code == 200
        assert len(body) == 10
        assert body[0]["id"] == "1"
        assert body[0]["user_id"] == "user1"
        assert "userId" not in body[0]

    def test_limit(self, client):
        assert len(client.get("/api/trainings", params={"limit": 3}).json()) == 3

    def test_not_found(self, client):
        response = client.get("/api/trainings/missing")
        assert response.status_code == 404
        assert response.json()["detail"] == "Training not found"

    def test_create_then_read(self, client):
        response = client.post("/api/trainings", json=NEW_TRAINING)
        assert response.status_code == 201
        created = response.json()
        assert created["id"].startswith("mock-")

        fetched = client.get(f"/api/trainings/{created['id']}").json()
        assert fetched["title"] == "Fartlek"

    def test_create_missing_fields(self, client):
        response = client.post("/api/trainings", json={"title": "No type"})
        assert response.status_code == 400

    def test_update_is_visible_on_next_read(self, client):
        client.get("/api/trainings/1")
        response = client.put("/api/trainings/1", json={"rating": 9})
        assert response.status_code == 200
        assert client.get("/api/trainings/1").json()["rating"] == 9

    def test_delete_twice(self, client):
        assert client.delete("/api/trainings/2").status_code == 204
        assert client.delete("/api/trainings/2").status_code == 404


class TestPlannedRoutes:
    def test_detail_and_consistency(self, client):
        assert client.get("/api/planned-trainings/p1").json()["planned_duration"] == 60
        assert client.get("/api/planned-trainings/inconsistent").json() == []

    def test_reschedule_by_put(self, client):
        response = client.put("/api/planned-trainings/p2", json={"planned_date": "2025-01-20"})
        assert response.status_code == 200
        dates = {p["id"]: p["planned_date"] for p in client.get("/api/planned-trainings").json()}
        assert dates["p2"] == "2025-01-20"


class TestWeeklyPlanRoutes:
    def test_day_grid_lifecycle(self, client):
        response = client.post(
            "/api/weekly-plan/days",
            params={"week_offset": 0},
            json={"day": "Tuesday", "activity_type": "Intervals", "duration": 50, "rpe": 8},
        )
        assert response.status_code == 201
        slot = response.json()

        plan = client.get("/api/weekly-plan").json()
        assert plan["days"]["Tuesday"]["activity_type"] == "Intervals"
        assert plan["days"]["Monday"] is None
        assert plan["summary"]["rest_days"] == 6
        assert plan["summary"]["training_load"] == 400

        response = client.put(f"/api/weekly-plan/days/{slot['id']}", json={
            "week_start": plan["week_start"], "day": "Tuesday", "activity_type": "Rest",
        })
        assert response.status_code == 200
        assert client.get("/api/weekly-plan").json()["summary"]["rest_days"] == 7

        assert client.delete(f"/api/weekly-plan/days/{slot['id']}").status_code == 204
        assert client.delete(f"/api/weekly-plan/days/{slot['id']}").status_code == 404

    def test_missing_day_rejected(self, client):
        response = client.post("/api/weekly-plan/days", json={"activity_type": "Rest"})
        assert response.status_code == 400

    def test_invalid_week_start(self, client):
        assert client.get("/api/weekly-plan", params={"week_start": "soon"}).status_code == 400

    def test_week_start_must_be_a_monday(self, client):
        assert client.get("/api/weekly-plan", params={"week_start": "2024-06-19"}).status_code == 400
        assert client.get("/api/weekly-plan", params={"week_start": "2024-06-17"}).status_code == 200

        response = client.put("/api/weekly-plan/days/day-x", json={
            "week_start": "2024-06-19", "day": "Monday", "activity_type": "Rest",
        })
        assert response.status_code == 400
        assert "Monday" in response.json()["detail"]

    def test_week_data_and_micro_cycle(self, client):
        week = client.get("/api/weekly-plan/week-data", params={"week_offset": -1}).json()
        assert week["week_offset"] == -1
        assert "actual_stats" in week

        cycle = client.get("/api/micro-cycle").json()
        assert [w["week_offset"] for w in cycle["weeks"]] == [-3, -2, -1, 0, 1]
        assert isinstance(cycle["week_over_week_change"], str)


class TestRemoteAccessorAgainstApp:
    """Le RemoteAccessor d'un process parle au serveur d'un autre (ici via ASGI)."""

    def _accessor(self, settings):
        container = build_container(settings)
        app = create_app(app_settings=settings, services=container)
        app.state.services = container
        http_client = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver")
        return RemoteAccessor("http://testserver/api", client=http_client)

    def test_training_crud(self, settings):
        accessor = self._accessor(settings)

        async def scenario():
            created = await accessor.create_training(NEW_TRAINING)
            fetched = await accessor.get_training_by_id(created.id)
            updated = await accessor.update_training(created.id, {"trainee_notes": "easy"})
            await accessor.delete_training(created.id)
            with pytest.raises(NotFoundError):
                await accessor.get_training_by_id(created.id)
            return fetched, updated

        fetched, updated = asyncio.run(scenario())
        assert fetched.date == date(2024, 6, 18)
        assert updated.trainee_notes == "easy"
        assert updated.title == "Fartlek"

    def test_day_grid(self, settings):
        accessor = self._accessor(settings)
        monday = date(2024, 6, 17)

        async def scenario():
            await accessor.save_day_training(monday, DayTraining(id="day-x", day="Thursday", activity_type="Tempo Run"))
            return await accessor.get_day_trainings(monday)

        days = asyncio.run(scenario())
        assert days["Thursday"].id == "day-x"
        assert days["Friday"] is None
