from __future__ import annotations

import pytest

from lesson_quiz.assessment.errors import SessionNotFoundError
from lesson_quiz.assessment.registry import SessionRegistry
from lesson_quiz.assessment.types import SessionState
from tests.assessment.quiz_fakes import (
    LEARNER_ID,
    LESSON_ID,
    InMemoryAttemptLedger,
    InMemoryQuestionBank,
    make_quiz,
    park_sleep,
)


def _registry(quiz=None) -> SessionRegistry:
    return SessionRegistry(
        question_bank=InMemoryQuestionBank(quiz),
        attempt_ledger=InMemoryAttemptLedger(),
        sleep=park_sleep,
    )


@pytest.mark.asyncio
async def test_open_loads_and_tracks_session() -> None:
    registry = _registry(make_quiz(time_limit_minutes=1))

    session = await registry.open(lesson_id=LESSON_ID, learner_id=LEARNER_ID, enrollment_id="enr-1")

    assert session.state == SessionState.PRESENTING
    assert session.enrollment_id == "enr-1"
    assert registry.get(session.session_id) is session
    assert len(registry) == 1

    await registry.close(session.session_id)

    assert len(registry) == 0
    assert session.timer.is_running is False


@pytest.mark.asyncio
async def test_unknown_session_raises() -> None:
    registry = _registry()

    with pytest.raises(SessionNotFoundError):
        registry.get("missing")
    with pytest.raises(SessionNotFoundError):
        await registry.close("missing")


@pytest.mark.asyncio
async def test_close_all_releases_every_session() -> None:
    registry = _registry(make_quiz(time_limit_minutes=1))
    first = await registry.open(lesson_id=LESSON_ID, learner_id="a")
    second = await registry.open(lesson_id=LESSON_ID, learner_id="b")

    await registry.close_all()

    assert len(registry) == 0
    assert first.timer.is_running is False
    assert second.timer.is_running is False


@pytest.mark.asyncio
async def test_absent_quiz_sessions_are_not_tracked() -> None:
    registry = _registry(quiz=None)

    sessions = [await registry.open(lesson_id=LESSON_ID, learner_id=f"learner-{n}") for n in range(5)]

    assert {session.state for session in sessions} == {SessionState.ABSENT}
    assert len(registry) == 0
    with pytest.raises(SessionNotFoundError):
        registry.get(sessions[0].session_id)
