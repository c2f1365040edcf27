"""Telemetry events and configuration loading."""

from pathlib import Path

import pytest

from fitmatch_app.config import DEFAULT_SCAN_LIMIT, AppConfig
from tools.telemetry import (
    RESOLUTION_FAILED,
    RETRY_CLICKED,
    SCHEMA_VERSION,
    RecordingTelemetryBackend,
    TelemetryBackend,
    TipSheetTelemetry,
    filters_fingerprint,
)


def test_events_carry_session_and_schema_version() -> None:
    backend = RecordingTelemetryBackend()
    telemetry = TipSheetTelemetry(backend, session_id="sess-1")

    telemetry.resolution_failed("inst-1", "TOPS__SHOES_NEUTRAL", "shoes", None, "fetch_failed")
    telemetry.retry_clicked("inst-1", "TOPS__SHOES_NEUTRAL", "shoes", "office", "fetch_failed", attempt_number=2)

    failed = backend.of_type(RESOLUTION_FAILED)[0].to_dict()
    retry = backend.of_type(RETRY_CLICKED)[0]
    assert failed["session_id"] == "sess-1"
    assert failed["schema_version"] == SCHEMA_VERSION
    assert "vibe" not in failed
    assert retry.attempt_number == 2


def test_backend_failures_never_reach_callers() -> None:
    class BrokenBackend(TelemetryBackend):
        def track(self, event) -> None:
            raise RuntimeError("sink down")

    TipSheetTelemetry(BrokenBackend()).resolution_failed("inst", None, None, None, "empty")


def test_filters_fingerprint_is_order_independent() -> None:
    first = filters_fingerprint("bottoms", "office", {"tone": ["dark"], "shape": ["tapered", "straight"]})
    second = filters_fingerprint("bottoms", "office", {"shape": ("straight", "tapered"), "tone": "dark"})

    assert first == second == "bottoms|office|shape=straight,tapered|tone=dark"


def test_config_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("APP_ENV", raising=False)
    monkeypatch.delenv("APP_CONFIG_PATH", raising=False)
    monkeypatch.setenv("LIBRARY_URL", "https://db.example.com/rest/v1/library_items")
    monkeypatch.setenv("SCAN_LIMIT", "7")

    config = AppConfig.from_env()

    assert config.library_url == "https://db.example.com/rest/v1/library_items"
    assert config.scan_limit == 7
    assert config.quota_backend == "sqlite"


def test_config_merges_yaml_file(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    (tmp_path / "staging.yaml").write_text(
        "# staging\nboard_base_url: \"https://cdn.example.com/tips\"\nquota_backend: remote\ngrid_size: 9\n"
    )
    monkeypatch.setenv("APP_ENV", "staging")
    monkeypatch.setenv("FITMATCH_CONFIG_DIR", str(tmp_path))
    monkeypatch.delenv("APP_CONFIG_PATH", raising=False)
    monkeypatch.delenv("SCAN_LIMIT", raising=False)
    monkeypatch.delenv("QUOTA_BACKEND", raising=False)

    config = AppConfig.from_env()

    assert config.environment == "staging"
    assert config.board_base_url == "https://cdn.example.com/tips"
    assert config.quota_backend == "remote"
    assert config.grid_size == 9
    assert config.scan_limit == DEFAULT_SCAN_LIMIT


def test_config_rejects_bad_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("APP_ENV", raising=False)
    monkeypatch.delenv("APP_CONFIG_PATH", raising=False)
    monkeypatch.setenv("QUOTA_BACKEND", "redis")
    with pytest.raises(ValueError):
        AppConfig.from_env()

    monkeypatch.setenv("QUOTA_BACKEND", "sqlite")
    monkeypatch.setenv("GRID_SIZE", "lots")
    with pytest.raises(ValueError):
        AppConfig.from_env()
