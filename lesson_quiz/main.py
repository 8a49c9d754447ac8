from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from lesson_quiz.api.routes.health import router as health_router
from lesson_quiz.api.routes.quiz_sessions import router as quiz_sessions_router
from lesson_quiz.assessment.adapters import SqlAttemptLedger, SqlQuestionBank
from lesson_quiz.assessment.registry import SessionRegistry
from lesson_quiz.assessment.service import QuizSessionConfig
from lesson_quiz.core.config import get_settings
from lesson_quiz.core.logging import configure_logging
from lesson_quiz.db.session import SessionLocal


def build_registry() -> SessionRegistry:
    settings = get_settings()
    return SessionRegistry(
        question_bank=SqlQuestionBank(
            SessionLocal,
            default_passing_score=settings.default_passing_score,
        ),
        attempt_ledger=SqlAttemptLedger(SessionLocal),
        config=QuizSessionConfig.from_settings(settings),
    )


def create_app(registry: SessionRegistry | None = None) -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level, json_output=settings.app_env != "dev")

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.quiz_sessions.close_all()

    docs_enabled = settings.enable_openapi_docs
    app = FastAPI(
        title="Lesson Quiz API",
        version="0.1.0",
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
        lifespan=lifespan,
    )
    app.state.quiz_sessions = registry if registry is not None else build_registry()
    app.include_router(health_router)
    app.include_router(quiz_sessions_router)
    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "lesson_quiz.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_env == "dev",
    )


if __name__ == "__main__":
    run()
