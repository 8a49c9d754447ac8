from __future__ import annotations

from dataclasses import asdict

import structlog
from fastapi import APIRouter, HTTPException, Request, Response, status

from lesson_quiz.assessment.errors import (
    InvalidAnswerOptionError,
    InvalidSessionStateError,
    QuizConfigurationError,
    QuizEngineError,
    QuizFetchError,
    RetakeNotAllowedError,
    SessionNotFoundError,
    SubmitNotAllowedError,
)
from lesson_quiz.assessment.registry import SessionRegistry
from lesson_quiz.assessment.service import QuizSession
from lesson_quiz.assessment.types import SessionState

from .quiz_sessions_models import (
    AnswerSelectRequest,
    NoticeResponse,
    PresentingViewResponse,
    QuizSessionCreateRequest,
    QuizSessionResponse,
    ReviewViewResponse,
    VerdictResponse,
)

router = APIRouter(prefix="/quiz-sessions", tags=["quiz-sessions"])
logger = structlog.get_logger(__name__)

ERROR_RESPONSES: tuple[tuple[type[QuizEngineError], int, str], ...] = (
    (SessionNotFoundError, status.HTTP_404_NOT_FOUND, "E_SESSION_NOT_FOUND"),
    (InvalidAnswerOptionError, status.HTTP_422_UNPROCESSABLE_ENTITY, "E_INVALID_OPTION"),
    (SubmitNotAllowedError, status.HTTP_409_CONFLICT, "E_SUBMIT_NOT_ALLOWED"),
    (RetakeNotAllowedError, status.HTTP_409_CONFLICT, "E_RETAKE_NOT_ALLOWED"),
    (InvalidSessionStateError, status.HTTP_409_CONFLICT, "E_INVALID_STATE"),
    (QuizFetchError, status.HTTP_503_SERVICE_UNAVAILABLE, "E_QUIZ_FETCH_FAILED"),
    (QuizConfigurationError, status.HTTP_422_UNPROCESSABLE_ENTITY, "E_QUIZ_MISCONFIGURED"),
)


def _http_error(exc: QuizEngineError) -> HTTPException:
    for error_type, status_code, code in ERROR_RESPONSES:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail={"code": code})
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail={"code": "E_QUIZ_ENGINE"})


def _registry(request: Request) -> SessionRegistry:
    return request.app.state.quiz_sessions


def _get_session(request: Request, session_id: str) -> QuizSession:
    try:
        return _registry(request).get(session_id)
    except SessionNotFoundError as exc:
        raise _http_error(exc) from exc


def _snapshot(session: QuizSession) -> QuizSessionResponse:
    verdict = session.verdict
    presenting = session.presenting_view()
    review = None
    if session.state in (SessionState.REVIEWING, SessionState.EXHAUSTED):
        review = session.review_view()
    return QuizSessionResponse(
        session_id=session.session_id,
        lesson_id=session.lesson_id,
        learner_id=session.learner_id,
        state=session.state,
        quiz_id=session.quiz.quiz_id if session.quiz is not None else None,
        attempt_number=session.attempt_number,
        current_question_index=session.current_question_index,
        remaining_seconds=session.remaining_seconds,
        can_submit=session.can_submit,
        can_retake=session.can_retake,
        persistence_status=session.persistence_status,
        verdict=VerdictResponse(**asdict(verdict)) if verdict is not None else None,
        notices=[NoticeResponse(**asdict(notice)) for notice in session.notices],
        presenting=PresentingViewResponse(**asdict(presenting)) if presenting is not None else None,
        review=ReviewViewResponse(**asdict(review)) if review is not None else None,
    )


@router.post("", status_code=status.HTTP_201_CREATED, response_model=QuizSessionResponse)
async def open_quiz_session(
    payload: QuizSessionCreateRequest,
    request: Request,
    response: Response,
) -> QuizSessionResponse:
    registry = _registry(request)
    try:
        session = await registry.open(
            lesson_id=payload.lesson_id,
            learner_id=payload.learner_id,
            enrollment_id=payload.enrollment_id,
        )
    except QuizConfigurationError as exc:
        raise _http_error(exc) from exc

    if session.state == SessionState.LOADING:
        # Load failed and the session never left LOADING; the host retries with a new request.
        await registry.close(session.session_id)
        logger.warning("quiz_session_open_failed", lesson_id=payload.lesson_id)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"code": "E_QUIZ_FETCH_FAILED"},
        )
    if session.state == SessionState.ABSENT:
        response.status_code = status.HTTP_200_OK
    return _snapshot(session)


@router.get("/{session_id}", response_model=QuizSessionResponse)
async def get_quiz_session(session_id: str, request: Request) -> QuizSessionResponse:
    return _snapshot(_get_session(request, session_id))


@router.post("/{session_id}/answers", response_model=QuizSessionResponse)
async def select_answer(
    session_id: str,
    payload: AnswerSelectRequest,
    request: Request,
) -> QuizSessionResponse:
    session = _get_session(request, session_id)
    try:
        session.select_answer(payload.option_id, payload.question_id)
    except QuizEngineError as exc:
        raise _http_error(exc) from exc
    return _snapshot(session)


@router.post("/{session_id}/next", response_model=QuizSessionResponse)
async def go_next(session_id: str, request: Request) -> QuizSessionResponse:
    session = _get_session(request, session_id)
    try:
        session.go_next()
    except QuizEngineError as exc:
        raise _http_error(exc) from exc
    return _snapshot(session)


@router.post("/{session_id}/previous", response_model=QuizSessionResponse)
async def go_previous(session_id: str, request: Request) -> QuizSessionResponse:
    session = _get_session(request, session_id)
    try:
        session.go_previous()
    except QuizEngineError as exc:
        raise _http_error(exc) from exc
    return _snapshot(session)


@router.post("/{session_id}/submit", response_model=QuizSessionResponse)
async def submit(session_id: str, request: Request) -> QuizSessionResponse:
    session = _get_session(request, session_id)
    try:
        verdict = session.submit()
    except QuizEngineError as exc:
        raise _http_error(exc) from exc
    if verdict is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail={"code": "E_INVALID_STATE"})
    return _snapshot(session)


@router.post("/{session_id}/retake", response_model=QuizSessionResponse)
async def retake(session_id: str, request: Request) -> QuizSessionResponse:
    session = _get_session(request, session_id)
    try:
        session.retake()
    except QuizEngineError as exc:
        raise _http_error(exc) from exc
    return _snapshot(session)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def close_quiz_session(session_id: str, request: Request) -> None:
    try:
        await _registry(request).close(session_id)
    except SessionNotFoundError as exc:
        raise _http_error(exc) from exc
