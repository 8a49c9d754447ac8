from __future__ import annotations

import structlog

from lesson_quiz.assessment.errors import SessionNotFoundError
from lesson_quiz.assessment.ports import AttemptLedger, QuestionBank
from lesson_quiz.assessment.service import PassedHook, QuizSession, QuizSessionConfig
from lesson_quiz.assessment.timer import SleepFn
from lesson_quiz.assessment.types import SessionState

logger = structlog.get_logger("lesson_quiz.assessment.registry")


class SessionRegistry:
    """In-process table of open quiz sessions for the HTTP surface.

    Sessions never share state; the registry only owns their lifetime.
    """

    def __init__(
        self,
        *,
        question_bank: QuestionBank,
        attempt_ledger: AttemptLedger,
        config: QuizSessionConfig | None = None,
        on_passed: PassedHook | None = None,
        sleep: SleepFn | None = None,
    ) -> None:
        self._question_bank = question_bank
        self._attempt_ledger = attempt_ledger
        self._config = config or QuizSessionConfig()
        self._on_passed = on_passed
        self._sleep = sleep
        self._sessions: dict[str, QuizSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    async def open(
        self,
        *,
        lesson_id: str,
        learner_id: str,
        enrollment_id: str | None = None,
    ) -> QuizSession:
        extra = {"sleep": self._sleep} if self._sleep is not None else {}
        session = QuizSession(
            lesson_id=lesson_id,
            learner_id=learner_id,
            enrollment_id=enrollment_id,
            question_bank=self._question_bank,
            attempt_ledger=self._attempt_ledger,
            config=self._config,
            on_passed=self._on_passed,
            **extra,
        )
        await session.load()
        if session.state == SessionState.ABSENT:
            # Absent sessions accept no operations and are not tracked.
            logger.info("quiz_session_absent", session_id=session.session_id, lesson_id=lesson_id)
            return session
        self._sessions[session.session_id] = session
        logger.info(
            "quiz_session_opened",
            session_id=session.session_id,
            lesson_id=lesson_id,
            state=session.state.value,
        )
        return session

    def get(self, session_id: str) -> QuizSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(f"quiz session {session_id!r} not found")
        return session

    async def close(self, session_id: str) -> None:
        session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFoundError(f"quiz session {session_id!r} not found")
        await session.close()

    async def close_all(self) -> None:
        while self._sessions:
            _, session = self._sessions.popitem()
            await session.close()
