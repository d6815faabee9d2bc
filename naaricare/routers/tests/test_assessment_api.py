"""HTTP tests for the screening routes with a memory store and local scoring."""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from naaricare.dependencies import AuthContext, get_current_user, get_screening_service
from naaricare.routers import assessments
from naaricare.screening.service import ScreeningService
from naaricare.screening.tests.conftest import TEST_USER_ID, InMemoryAssessmentStore
from naaricare.services.ml_predict import MLPredictionClient
from naaricare.services.tests.conftest import make_settings

PCOS_BODY = {
    "age": 24,
    "height": 160,
    "weight": 70,
    "cycle_regular": False,
    "cycle_length": 45,
    "hair_growth": True,
    "pimples": True,
    "regular_exercise": True,
}


@pytest.fixture
def store() -> InMemoryAssessmentStore:
    return InMemoryAssessmentStore()


@pytest.fixture
def client(store: InMemoryAssessmentStore) -> TestClient:
    app = FastAPI()
    app.include_router(assessments.router, prefix="/api/v1")
    service = ScreeningService(MLPredictionClient(make_settings(ml_api_url="")), store)
    app.dependency_overrides[get_current_user] = lambda: AuthContext(user_id=TEST_USER_ID)
    app.dependency_overrides[get_screening_service] = lambda: service
    return TestClient(app)


class TestPCOSRoute:
    def test_local_score_is_returned_and_saved(
        self, client: TestClient, store: InMemoryAssessmentStore
    ) -> None:
        response = client.post("/api/v1/assessments/pcos", json=PCOS_BODY)
        assert response.status_code == 200, response.text
        body = response.json()
        # BMI 27.3 from height/weight adds the metabolic point: 5 / 9
        assert body["breakdown"]["metabolic_score"] == 1
        assert body["risk_percentage"] == 56
        assert body["severity"] == "medium"
        assert body["has_pcos"] is True
        assert body["used_api"] is False
        assert body["recommendations"]["needs_doctor"] is True
        assert body["assessment_id"] == str(store.rows[TEST_USER_ID][0].assessment_id)

    def test_save_false_keeps_no_history(
        self, client: TestClient, store: InMemoryAssessmentStore
    ) -> None:
        response = client.post("/api/v1/assessments/pcos?save=false", json=PCOS_BODY)
        assert response.status_code == 200
        assert response.json()["assessment_id"] is None
        assert store.rows == {}

    def test_out_of_range_age_is_rejected(self, client: TestClient) -> None:
        response = client.post("/api/v1/assessments/pcos", json={**PCOS_BODY, "age": 4})
        assert response.status_code == 422


class TestMenopauseRoute:
    def test_post_menopause(self, client: TestClient) -> None:
        response = client.post(
            "/api/v1/assessments/menopause",
            json={"age": 57, "estrogen_level": 20, "fsh_level": 55, "years_since_last_period": 2},
        )
        assert response.status_code == 200, response.text
        body = response.json()
        assert body["stage"] == "Post-Menopause"
        assert body["has_menopause_symptoms"] is True
        assert body["breakdown"]["period_score"] == 4


class TestHistoryRoutes:
    def test_latest_missing_is_not_found(self, client: TestClient) -> None:
        assert client.get("/api/v1/assessments/pcos/latest").status_code == 404

    def test_unknown_kind_is_rejected(self, client: TestClient) -> None:
        assert client.get("/api/v1/assessments/thyroid/latest").status_code == 422

    def test_latest_and_list(self, client: TestClient) -> None:
        client.post("/api/v1/assessments/pcos", json=PCOS_BODY)
        client.post(
            "/api/v1/assessments/menopause",
            json={"age": 35, "estrogen_level": 70, "fsh_level": 9},
        )

        latest = client.get("/api/v1/assessments/pcos/latest")
        assert latest.status_code == 200
        assert latest.json()["assessment_type"] == "pcos_ml_local"
        assert latest.json()["kind"] == "pcos"
        assert latest.json()["risk_category"] == "medium"

        listed = client.get("/api/v1/assessments", params={"limit": 5}).json()
        assert [row["kind"] for row in listed] == ["menopause", "pcos"]
        assert listed[0]["risk_category"] == "low"
