from __future__ import annotations

from pydantic import BaseModel, Field

from lesson_quiz.assessment.types import NoticeLevel, PersistenceStatus, SessionState


class QuizSessionCreateRequest(BaseModel):
    lesson_id: str = Field(min_length=1, max_length=64)
    learner_id: str = Field(min_length=1, max_length=64)
    enrollment_id: str | None = Field(default=None, max_length=64)


class AnswerSelectRequest(BaseModel):
    option_id: str = Field(min_length=1, max_length=64)
    question_id: str | None = Field(default=None, max_length=64)


class NoticeResponse(BaseModel):
    level: NoticeLevel
    code: str
    message: str


class QuestionReviewResponse(BaseModel):
    question_id: str
    position: int = Field(ge=0)
    prompt: str
    selected_option_id: str | None = None
    selected_text: str
    correct_option_id: str
    correct_text: str
    is_correct: bool
    explanation: str | None = None


class VerdictResponse(BaseModel):
    score_percentage: int = Field(ge=0, le=100)
    passed: bool
    correct_count: int = Field(ge=0)
    total_questions: int = Field(gt=0)
    passing_score: int = Field(ge=0, le=100)
    questions: list[QuestionReviewResponse]


class OptionViewResponse(BaseModel):
    option_id: str
    text: str
    selected: bool


class PresentingViewResponse(BaseModel):
    title: str
    description: str | None = None
    question_id: str
    question_label: str
    progress_percent: int = Field(ge=0, le=100)
    prompt: str
    options: list[OptionViewResponse]
    can_go_previous: bool
    can_go_next: bool
    is_last_question: bool
    can_submit: bool
    remaining_seconds: int | None = None
    countdown_label: str | None = None
    low_time: bool
    attempt_banner: str | None = None


class ReviewLineResponse(BaseModel):
    question_id: str
    heading: str
    your_answer: str
    is_correct: bool
    correct_answer: str | None = None
    explanation: str | None = None


class ReviewViewResponse(BaseModel):
    title: str
    description: str
    passed: bool
    score_label: str
    passing_score_label: str
    lines: list[ReviewLineResponse]
    can_retake: bool
    retake_label: str | None = None
    result_message: str


class QuizSessionResponse(BaseModel):
    session_id: str
    lesson_id: str
    learner_id: str
    state: SessionState
    quiz_id: str | None = None
    attempt_number: int = Field(ge=1)
    current_question_index: int = Field(ge=0)
    remaining_seconds: int | None = None
    can_submit: bool
    can_retake: bool
    persistence_status: PersistenceStatus | None = None
    verdict: VerdictResponse | None = None
    notices: list[NoticeResponse]
    presenting: PresentingViewResponse | None = None
    review: ReviewViewResponse | None = None
