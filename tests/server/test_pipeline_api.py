from __future__ import annotations

import base64
import importlib
from pathlib import Path

import pytest
from fastapi.testclient import TestClient


def _client_with_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path, *, detector: str = "stub") -> TestClient:
    monkeypatch.setenv("FRAMEFX_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("FRAMEFX_SOURCE", "stub")
    monkeypatch.setenv("FRAMEFX_DETECTOR", detector)
    monkeypatch.setenv("FRAMEFX_FRAME_WIDTH", "160")
    monkeypatch.setenv("FRAMEFX_FRAME_HEIGHT", "120")
    monkeypatch.setenv("FRAMEFX_DEFAULT_FILTER", "none")
    monkeypatch.setenv("FRAMEFX_DEFAULT_INTENSITY", "50")
    local_main = importlib.reload(importlib.import_module("apps.local.main"))
    return TestClient(local_main.create_app())


def test_health(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    client = _client_with_env(monkeypatch, tmp_path)
    assert client.get("/health").json() == {"status": "ok"}


def test_status_reports_stub_pipeline(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    client = _client_with_env(monkeypatch, tmp_path)
    payload = client.get("/pipeline/status").json()
    assert payload["source"] == "stub"
    assert payload["source_available"] is True
    assert payload["detector"] == "stub"
    assert payload["faceblur_available"] is True
    assert payload["filter"] == "none"
    assert payload["intensity"] == 50
    assert payload["ticks"] == 0
    assert payload["detect_interval"] == 4
    assert payload["message"] == "Pipeline ready."


def test_filters_listing_marks_faceblur_unavailable_without_detector(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    client = _client_with_env(monkeypatch, tmp_path, detector="none")
    filters = {item["name"]: item["available"] for item in client.get("/pipeline/filters").json()}
    assert set(filters) == {"none", "gray", "noisy", "colorize", "cartoon", "posterize", "faceblur"}
    assert filters["faceblur"] is False
    assert filters["gray"] is True


def test_controls_are_clamped_and_resolved(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    client = _client_with_env(monkeypatch, tmp_path)
    response = client.put("/pipeline/controls", json={"filter": "faceblur_dnn", "intensity": 150})
    assert response.status_code == 200
    assert response.json() == {"filter": "faceblur", "intensity": 100}

    response = client.put("/pipeline/controls", json={"filter": "vintage"})
    assert response.json() == {"filter": "none", "intensity": 100}


def test_tick_and_fetch_frame(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    client = _client_with_env(monkeypatch, tmp_path)
    assert client.get("/pipeline/frame").status_code == 404

    client.put("/pipeline/controls", json={"filter": "faceblur", "intensity": 50})
    response = client.post("/pipeline/tick", json={"count": 5})
    assert response.status_code == 200
    payload = response.json()
    assert payload["ticks"] == 5
    assert payload["ok"] == 5
    assert payload["failed"] == 0
    assert payload["halted"] is False
    assert payload["faces"] == 1

    status = client.get("/pipeline/status").json()
    assert status["cached_faces"] == [{"x": 65, "y": 45, "w": 30, "h": 30}]

    frame = client.get("/pipeline/frame").json()
    assert frame["width"] == 160
    assert frame["height"] == 120
    assert frame["format"] == "jpeg"
    assert base64.b64decode(frame["image_base64"])[:2] == b"\xff\xd8"


def test_tick_count_is_validated(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    client = _client_with_env(monkeypatch, tmp_path)
    assert client.post("/pipeline/tick", json={"count": 0}).status_code == 422
    assert client.post("/pipeline/tick").json()["ticks"] == 1


def test_snapshot_writes_png(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    client = _client_with_env(monkeypatch, tmp_path)
    assert client.post("/pipeline/snapshot").status_code == 404

    client.post("/pipeline/tick")
    response = client.post("/pipeline/snapshot")
    assert response.status_code == 200
    path = Path(response.json()["path"])
    assert path.parent == tmp_path / "snapshots"
    assert path.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"
