from __future__ import annotations

from typing import Protocol

from lesson_quiz.assessment.types import AttemptRecord, Question, Quiz


class QuestionBank(Protocol):
    async def fetch_quiz(self, lesson_id: str) -> Quiz | None: ...

    async def fetch_questions(self, quiz_id: str) -> list[Question]: ...


class AttemptLedger(Protocol):
    async def max_attempt_number(self, quiz_id: str, learner_id: str) -> int: ...

    async def append_attempt(self, record: AttemptRecord) -> None: ...
