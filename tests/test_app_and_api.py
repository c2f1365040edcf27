"""Service wiring and HTTP surface."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from fitmatch_app.app import FitMatchApp
from fitmatch_app.config import AppConfig
from memory.credit_ledger import LedgerNotInitialized
from models.content import ContentUnresolved, Educational, Suggestions
from models.quota import ActionKind
from models.scanned_item import ScannedItem
from server import api
from tools.library_source import LibraryFetchError, LibrarySource, StaticLibraryFetcher
from tools.telemetry import (
    RESOLUTION_FAILED,
    RETRY_CLICKED,
    SUGGESTIONS_VIEWED,
    RecordingTelemetryBackend,
    TipSheetTelemetry,
)


class _OfflineFetcher(StaticLibraryFetcher):
    def fetch(self):
        raise LibraryFetchError("offline")


def _app(tmp_path: Path, fetcher=None, backend=None) -> FitMatchApp:
    config = AppConfig(quota_db_path=str(tmp_path / "quota.db"), scan_limit=2)
    return FitMatchApp(
        config,
        library=LibrarySource(fetcher or StaticLibraryFetcher()),
        telemetry=TipSheetTelemetry(backend or RecordingTelemetryBackend(), session_id="sess"),
    )


def test_app_resolves_suggestions_and_emits_view(tmp_path: Path) -> None:
    backend = RecordingTelemetryBackend()
    service = _app(tmp_path, backend=backend)

    content = service.resolve_tip_sheet(
        "TOPS__BOTTOMS_DARK_STRUCTURED",
        scanned_item=ScannedItem(category="tops", style_tags=["office"]),
        vibe="office",
    )

    assert isinstance(content, Suggestions)
    viewed = backend.of_type(SUGGESTIONS_VIEWED)[0]
    assert viewed.details["item_ids"] == [item.id for item in content.items]
    assert viewed.details["filters_fingerprint"].startswith("bottoms|office|")
    assert backend.of_type(RESOLUTION_FAILED) == []
    service.close()


def test_app_reports_unresolved_and_educational(tmp_path: Path) -> None:
    backend = RecordingTelemetryBackend()
    service = _app(tmp_path, backend=backend)

    unresolved = service.resolve_tip_sheet("NOPE", target_category="shoes")
    boards = service.resolve_tip_sheet("DEFAULT__NEUTRAL_COLORS")

    assert isinstance(unresolved, ContentUnresolved)
    failed = backend.of_type(RESOLUTION_FAILED)[0]
    assert failed.error_kind == "unknown_topic"
    assert failed.category == "shoes"
    assert isinstance(boards, Educational)
    service.close()


def test_app_reports_unrecognised_target_category(tmp_path: Path) -> None:
    backend = RecordingTelemetryBackend()
    service = _app(tmp_path, backend=backend)

    content = service.resolve_tip_sheet("TOPS__SHOES_NEUTRAL", target_category="hats")

    assert isinstance(content, ContentUnresolved)
    assert content.reason == "unknown_category"
    failed = backend.of_type(RESOLUTION_FAILED)[0]
    assert failed.error_kind == "unknown_category"
    assert failed.category is None
    assert backend.of_type(SUGGESTIONS_VIEWED) == []
    service.close()


def test_app_flags_library_failures_and_tracks_retries(tmp_path: Path) -> None:
    backend = RecordingTelemetryBackend()
    service = _app(tmp_path, fetcher=_OfflineFetcher(), backend=backend)
    service.library.refresh(timeout=5)

    content = service.resolve_tip_sheet("TOPS__SHOES_NEUTRAL")
    service.retry_library(topic="TOPS__SHOES_NEUTRAL").result(timeout=5)

    assert isinstance(content, Suggestions)
    assert backend.of_type(RESOLUTION_FAILED)[0].error_kind == "fetch_failed"
    retry = backend.of_type(RETRY_CLICKED)[0]
    assert retry.attempt_number == 2
    assert retry.error_kind == "fetch_failed"
    service.close()


def test_app_credit_lifecycle(tmp_path: Path) -> None:
    service = _app(tmp_path)

    with pytest.raises(LedgerNotInitialized):
        service.consume_credit("k1", ActionKind.SCAN)
    service.init("acct-1")
    first = service.consume_credit("k1", ActionKind.SCAN)
    assert service.consume_credit("k1", ActionKind.SCAN) == first
    assert service.usage().scans_used == 1
    service.teardown()
    with pytest.raises(LedgerNotInitialized):
        service.usage()
    service.close()


@pytest.fixture()
def client(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    service = _app(tmp_path)
    monkeypatch.setattr(api, "fitmatch_app", service)
    with TestClient(api.app) as test_client:
        yield test_client
    service.close()


def test_api_healthcheck(client: TestClient) -> None:
    response = client.get("/healthz")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["quota_backend"] == "sqlite"


def test_api_resolves_content(client: TestClient) -> None:
    response = client.post(
        "/content/resolve",
        json={
            "topic": "BOTTOMS__TOP_NEUTRAL_SIMPLE",
            "scanned_item": {"category": "bottoms", "style_tags": ["minimal"]},
            "user_vibes": ["feminine"],
        },
    )
    educational = client.post("/content/resolve", json={"topic": "COLOR_TENSION__NEUTRAL_OTHERS", "mode": "educational"})

    assert response.status_code == 200
    body = response.json()
    assert body["kind"] == "suggestions"
    assert body["category"] == "tops"
    assert all(item["category"] == "tops" for item in body["items"])
    assert educational.json()["kind"] == "educational"
    assert len(educational.json()["boards"]) == 3
    assert client.post("/content/resolve", json={"topic": "NOPE"}).json()["reason"] == "unknown_topic"
    assert client.post("/content/resolve", json={"topic": "NOPE", "vibe": "boho"}).status_code == 422


def test_api_credit_flow(client: TestClient) -> None:
    payload = {"idempotency_key": "scan-1", "action_kind": "scan"}

    assert client.post("/credits/consume", json=payload).status_code == 409
    assert client.post("/sessions", json={"account_id": "acct-9"}).status_code == 200
    first = client.post("/credits/consume", json=payload).json()
    replay = client.post("/credits/consume", json=payload).json()
    usage = client.get("/credits/usage").json()
    bad_kind = client.post("/credits/consume", json={"idempotency_key": "x", "action_kind": "print"})
    client.delete("/sessions")

    assert first == replay
    assert first["allowed"] is True
    assert usage["scans_used"] == 1
    assert bad_kind.status_code == 422
    assert client.get("/credits/usage").status_code == 409


def test_api_library_status_and_retry(client: TestClient) -> None:
    status = client.get("/library/status").json()
    retried = client.post("/library/retry", json={"topic": "TOPS__SHOES_NEUTRAL", "category": "shoes"})

    assert status["error_kind"] == "none"
    assert retried.status_code == 200
    assert retried.json()["retry_attempts"] == 1
