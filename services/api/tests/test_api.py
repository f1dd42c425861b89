import random

import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_history_store, get_humanizer, get_result_cache
from app.main import app
from app.services.cache import ResultCache
from app.services.history import InMemoryHistoryStore
from app.services.humanizer import HumanizerService
from app.services.rewrite_client import RewriteClient, RewriteServiceConfig

ESSAY = (
    "It's important to note that remote work plays a crucial role in modern companies. "
    "Furthermore, teams utilize digital tools to collaborate across time zones. "
    "Moreover, the landscape of office life has shifted in a multifaceted way. "
    "In conclusion, the realm of work continues to evolve."
)


@pytest.fixture
def client():
    store = InMemoryHistoryStore()
    cache = ResultCache(None, ttl_seconds=60)
    humanizer = HumanizerService(RewriteClient(RewriteServiceConfig.disabled()), rng=random.Random(1))
    app.dependency_overrides[get_history_store] = lambda: store
    app.dependency_overrides[get_result_cache] = lambda: cache
    app.dependency_overrides[get_humanizer] = lambda: humanizer
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_healthz(client):
    response = client.get("/healthz")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert isinstance(response.json()["rewrite_service"], bool)
    assert response.headers["X-Content-Type-Options"] == "nosniff"


def test_readyz_lists_analyzers(client):
    body = client.get("/readyz").json()

    assert body["status"] == "ready"
    assert len(body["analyzers"]) == 10
    assert body["analyzers"][0] == "perplexity"


def test_analyze_json_then_cached(client):
    first = client.post("/v1/analyze", json={"text": ESSAY})
    second = client.post("/v1/analyze", json={"text": ESSAY})

    assert first.status_code == 200
    body = first.json()
    assert 0 <= body["overall_score"] <= 100
    assert body["risk_level"] in {"HUMAN", "LIKELY_HUMAN", "UNCERTAIN", "LIKELY_AI", "AI"}
    assert len(body["analyzers"]) == 10
    assert body["cached"] is False
    assert second.json()["cached"] is True
    assert second.json()["overall_score"] == body["overall_score"]
    assert second.json()["analysis_id"] != body["analysis_id"]


def test_analyze_too_short_is_rejected(client):
    response = client.post("/v1/analyze", json={"text": "Far too short."})

    assert response.status_code == 422
    assert response.json()["code"] == "too_short"
    assert response.json()["trace_id"]


def test_analyze_missing_text(client):
    response = client.post("/v1/analyze", json={"source": "paste"})

    assert response.status_code == 422
    assert response.json()["code"] == "invalid_input"


def test_analyze_invalid_json_body(client):
    response = client.post("/v1/analyze", content=b"{", headers={"content-type": "application/json"})

    assert response.status_code == 400


def test_analyze_file_upload(client):
    response = client.post("/v1/analyze", files={"file": ("essay.txt", ESSAY.encode("utf-8"), "text/plain")})

    assert response.status_code == 200
    body = response.json()
    assert body["extraction"]["file_name"] == "essay.txt"
    assert body["extraction"]["confidence"] == 1.0

    history = client.get("/v1/history").json()
    assert history["items"][0]["source"] == "upload"


def test_analyze_batch_isolates_failures(client):
    response = client.post("/v1/analyze/batch", json={"texts": [ESSAY, "short"]})

    assert response.status_code == 200
    body = response.json()
    assert body["succeeded"] == 1
    assert body["failed"] == 1
    assert body["items"][0]["report"]["overall_score"] >= 0
    assert body["items"][1]["error_code"] == "too_short"


def test_analyze_batch_requires_texts(client):
    response = client.post("/v1/analyze/batch", json={"texts": []})

    assert response.status_code == 422
    assert response.json()["code"] == "request_validation"


def test_humanize_runs_locally(client):
    response = client.post(
        "/v1/humanize",
        json={"text": ESSAY, "options": {"tone": "casual", "intensity": "medium"}, "max_iterations": 2},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["mode"] == "local"
    assert 1 <= body["iterations"] <= 2
    assert body["final_text"]
    assert body["humanize_id"]


def test_humanize_rejects_bad_options(client):
    response = client.post("/v1/humanize", json={"text": ESSAY, "options": {"intensity": "extreme"}})

    assert response.status_code == 422
    assert response.json()["code"] == "invalid_options"


def test_history_lifecycle(client):
    analysis_id = client.post("/v1/analyze", json={"text": ESSAY}).json()["analysis_id"]

    listing = client.get("/v1/history").json()
    assert listing["total"] == 1
    assert listing["items"][0]["id"] == analysis_id
    assert isinstance(listing["items"][0]["overall_score"], int)

    record = client.get(f"/v1/history/{analysis_id}")
    assert record.status_code == 200
    assert record.json()["kind"] == "analysis"

    pdf = client.get(f"/v1/history/{analysis_id}/report.pdf")
    assert pdf.status_code == 200
    assert pdf.headers["content-type"] == "application/pdf"
    assert pdf.content.startswith(b"%PDF")

    exported = client.get(f"/v1/history/{analysis_id}/report.json")
    assert exported.json()["id"] == analysis_id

    stats = client.get("/v1/history/stats").json()
    assert stats["by_kind"]["analysis"] == 1

    assert client.delete(f"/v1/history/{analysis_id}").json() == {"id": analysis_id, "deleted": True}
    assert client.get(f"/v1/history/{analysis_id}").status_code == 404
    assert client.delete(f"/v1/history/{analysis_id}").status_code == 404
