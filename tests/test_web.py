"""Tests for the HTTP API."""

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from liftsync.models.base import utc_now
from liftsync.models.deletion import DeletionEntityType, DeletionRecord
from liftsync.web import create_app


@pytest.fixture
def client(settings, remote):
    app = create_app(settings, remote=remote)
    with TestClient(app) as client:
        yield client


async def _seed_training(
    remote, sample_module, sample_workout, fixed_program, make_session, make_exercise
):
    squat_id = sample_module.exercises[0].id
    await remote.save_module(sample_module)
    await remote.save_workout(sample_workout)
    await remote.save_program(fixed_program)
    await remote.save_session(
        make_session(
            utc_now() - timedelta(days=2),
            [make_exercise("Squat", [(225, 5), (225, 5)], instance_id=squat_id)],
            workout_id=sample_workout.id,
        )
    )


class TestHealth:
    """Tests for the health endpoint."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestSyncRoutes:
    """Tests for sync endpoints."""

    @pytest.mark.asyncio
    async def test_pull_reports_saved_entities(
        self, settings, remote, sample_module, sample_workout, fixed_program, make_session, make_exercise
    ):
        await _seed_training(
            remote, sample_module, sample_workout, fixed_program, make_session, make_exercise
        )
        with TestClient(create_app(settings, remote=remote)) as client:
            response = client.post("/sync", params={"direction": "pull"})
            body = response.json()
            assert response.status_code == 200
            assert body["succeeded"]
            assert body["collections"]["modules"]["saved"] == 1
            assert body["collections"]["sessions"]["saved"] == 1

            status = client.get("/sync/status").json()
            assert status["state"] == "idle"
            assert status["last_report"]["direction"] == "pull"

    def test_failed_cycle_reported(self, client, remote):
        remote.fail_on = {"fetch"}
        body = client.post("/sync", params={"direction": "all"}).json()
        assert not body["succeeded"]
        assert body["state"] == "failed"
        assert client.get("/sync/status").json()["last_error"]

    def test_invalid_direction(self, client):
        assert client.post("/sync", params={"direction": "sideways"}).status_code == 422


class TestDeletionRoutes:
    """Tests for the deletion journal endpoint."""

    @pytest.mark.asyncio
    async def test_imported_tombstones_listed(self, settings, remote):
        await remote.save_deletion_records(
            [
                DeletionRecord(DeletionEntityType.MODULE, "m1"),
                DeletionRecord(DeletionEntityType.SESSION, "s1"),
            ]
        )
        with TestClient(create_app(settings, remote=remote)) as client:
            client.post("/sync", params={"direction": "pull"})

            everything = client.get("/deletions").json()
            assert everything["count"] == 2

            sessions = client.get("/deletions", params={"entity_type": "session"}).json()
            assert [d["entity_id"] for d in sessions["deletions"]] == ["s1"]

            pending = client.get("/deletions", params={"unsynced": "true"}).json()
            assert pending["count"] == 0


class TestAnalyticsRoutes:
    """Tests for analytics endpoints."""

    @pytest.mark.asyncio
    async def test_summary_and_e1rm(
        self, settings, remote, sample_module, sample_workout, fixed_program, make_session, make_exercise
    ):
        await _seed_training(
            remote, sample_module, sample_workout, fixed_program, make_session, make_exercise
        )
        with TestClient(create_app(settings, remote=remote)) as client:
            client.post("/sync", params={"direction": "pull"})

            summary = client.get("/analytics/summary").json()
            assert summary["analyzed_sessions"] == 1
            assert summary["most_trained_lifts"][0]["exercise_name"] == "Squat"

            e1rm = client.get("/analytics/e1rm/Squat").json()
            assert e1rm["points"][0]["weight"] == 225
            assert e1rm["points"][0]["estimated_one_rep_max"] == pytest.approx(253.12, abs=0.01)

    def test_empty_summary(self, client):
        summary = client.get("/analytics/summary").json()
        assert summary["analyzed_sessions"] == 0
        assert summary["recent_prs"] == []


class TestProgramRoutes:
    """Tests for suggestion endpoints."""

    @pytest.mark.asyncio
    async def test_suggestions_for_workout(
        self, settings, remote, sample_module, sample_workout, fixed_program, make_session, make_exercise
    ):
        await _seed_training(
            remote, sample_module, sample_workout, fixed_program, make_session, make_exercise
        )
        with TestClient(create_app(settings, remote=remote)) as client:
            client.post("/sync", params={"direction": "pull"})

            response = client.get(
                f"/programs/{fixed_program.id}/suggestions",
                params={"workout_id": sample_workout.id},
            )
            body = response.json()
            assert response.status_code == 200
            # Only the squat has history in this workout
            assert [s["exercise_name"] for s in body["suggestions"]] == ["Squat"]
            squat = body["suggestions"][0]
            assert squat["base_value"] == 225
            assert squat["suggested_value"] == 230
            assert squat["exercise_instance_id"] == sample_module.exercises[0].id

    def test_unknown_program(self, client):
        response = client.get("/programs/missing/suggestions", params={"workout_id": "w"})
        assert response.status_code == 404
