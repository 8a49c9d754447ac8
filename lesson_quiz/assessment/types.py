from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from lesson_quiz.assessment.constants import SECONDS_PER_MINUTE


class SessionState(str, Enum):
    LOADING = "LOADING"
    ABSENT = "ABSENT"
    PRESENTING = "PRESENTING"
    SUBMITTING = "SUBMITTING"
    REVIEWING = "REVIEWING"
    RETAKING = "RETAKING"
    EXHAUSTED = "EXHAUSTED"


class SubmitPolicy(str, Enum):
    LAST_QUESTION = "last_question"
    ANY_QUESTION = "any_question"
    ALL_ANSWERED = "all_answered"


class SubmitTrigger(str, Enum):
    MANUAL = "MANUAL"
    TIMER = "TIMER"


class PersistenceStatus(str, Enum):
    PENDING = "PENDING"
    SAVED = "SAVED"
    FAILED = "FAILED"


class NoticeLevel(str, Enum):
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    ERROR = "ERROR"


@dataclass(frozen=True, slots=True)
class Quiz:
    quiz_id: str
    lesson_id: str
    title: str
    passing_score: int
    description: str | None = None
    max_attempts: int | None = None
    time_limit_minutes: int | None = None

    @property
    def time_limit_seconds(self) -> int | None:
        if not self.time_limit_minutes:
            return None
        return self.time_limit_minutes * SECONDS_PER_MINUTE


@dataclass(frozen=True, slots=True)
class AnswerOption:
    option_id: str
    position: int
    text: str
    is_correct: bool


@dataclass(frozen=True, slots=True)
class Question:
    question_id: str
    position: int
    prompt: str
    options: tuple[AnswerOption, ...]
    explanation: str | None = None

    def find_option(self, option_id: str) -> AnswerOption | None:
        return next((option for option in self.options if option.option_id == option_id), None)


@dataclass(frozen=True, slots=True)
class QuestionReview:
    question_id: str
    position: int
    prompt: str
    selected_option_id: str | None
    selected_text: str
    correct_option_id: str
    correct_text: str
    is_correct: bool
    explanation: str | None

    @property
    def answered(self) -> bool:
        return self.selected_option_id is not None


@dataclass(frozen=True, slots=True)
class Verdict:
    score_percentage: int
    passed: bool
    correct_count: int
    total_questions: int
    passing_score: int
    questions: tuple[QuestionReview, ...]


@dataclass(frozen=True, slots=True)
class AttemptRecord:
    quiz_id: str
    learner_id: str
    attempt_number: int
    started_at: datetime
    completed_at: datetime
    score_percentage: int
    passed: bool
    answers: tuple[QuestionReview, ...]
    time_taken_seconds: int | None
    attempt_token: str
    enrollment_id: str | None = None

    @property
    def idempotency_key(self) -> str:
        # The token pins the key to one session, so only a retry of this write replays.
        return f"{self.quiz_id}:{self.learner_id}:{self.attempt_number}:{self.attempt_token}"

    def answers_data(self) -> dict[str, dict[str, Any]]:
        return {
            review.question_id: {
                "question": review.prompt,
                "selected": review.selected_text if review.answered else None,
                "correct": review.correct_text,
                "is_correct": review.is_correct,
                "explanation": review.explanation,
            }
            for review in self.answers
        }


@dataclass(frozen=True, slots=True)
class Notice:
    level: NoticeLevel
    code: str
    message: str


@dataclass(frozen=True, slots=True)
class LoadedAssessment:
    quiz: Quiz
    questions: tuple[Question, ...]
    next_attempt_number: int


@dataclass(frozen=True, slots=True)
class RetakeDecision:
    allowed: bool
    next_attempt_number: int
    attempts_taken: int
    max_attempts: int | None
