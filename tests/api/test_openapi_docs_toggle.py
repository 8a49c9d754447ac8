from __future__ import annotations

from types import SimpleNamespace

from fastapi.testclient import TestClient

from lesson_quiz import main as app_main
from lesson_quiz.assessment.registry import SessionRegistry
from tests.assessment.quiz_fakes import InMemoryAttemptLedger, InMemoryQuestionBank


def _settings(*, enable_openapi_docs: bool) -> SimpleNamespace:
    return SimpleNamespace(
        app_env="test",
        log_level="INFO",
        enable_openapi_docs=enable_openapi_docs,
    )


def _registry() -> SessionRegistry:
    return SessionRegistry(question_bank=InMemoryQuestionBank(), attempt_ledger=InMemoryAttemptLedger())


def test_openapi_docs_enabled(monkeypatch) -> None:
    monkeypatch.setattr(app_main, "get_settings", lambda: _settings(enable_openapi_docs=True))
    client = TestClient(app_main.create_app(registry=_registry()))

    assert client.get("/docs").status_code == 200
    assert client.get("/redoc").status_code == 200
    openapi_response = client.get("/openapi.json")
    assert openapi_response.status_code == 200
    assert "/quiz-sessions/{session_id}/submit" in openapi_response.json()["paths"]


def test_openapi_docs_disabled(monkeypatch) -> None:
    monkeypatch.setattr(app_main, "get_settings", lambda: _settings(enable_openapi_docs=False))
    client = TestClient(app_main.create_app(registry=_registry()))

    assert client.get("/docs").status_code == 404
    assert client.get("/redoc").status_code == 404
    assert client.get("/openapi.json").status_code == 404
