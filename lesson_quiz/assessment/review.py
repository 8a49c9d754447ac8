"""View shaping for the presenting and reviewing screens of a lesson quiz."""

from __future__ import annotations

from dataclasses import dataclass

from lesson_quiz.assessment.constants import (
    LOW_TIME_WARNING_SECONDS,
    RETAKE_LABEL,
    REVIEW_FAILED_DESCRIPTION,
    REVIEW_PASSED_DESCRIPTION,
    REVIEW_TITLE,
)
from lesson_quiz.assessment.scoring import round_half_up_percentage
from lesson_quiz.assessment.types import Question, Quiz, Verdict


@dataclass(frozen=True, slots=True)
class OptionView:
    option_id: str
    text: str
    selected: bool


@dataclass(frozen=True, slots=True)
class PresentingView:
    title: str
    description: str | None
    question_id: str
    question_label: str
    progress_percent: int
    prompt: str
    options: tuple[OptionView, ...]
    can_go_previous: bool
    can_go_next: bool
    is_last_question: bool
    can_submit: bool
    remaining_seconds: int | None
    countdown_label: str | None
    low_time: bool
    attempt_banner: str | None


@dataclass(frozen=True, slots=True)
class ReviewLine:
    question_id: str
    heading: str
    your_answer: str
    is_correct: bool
    correct_answer: str | None
    explanation: str | None


@dataclass(frozen=True, slots=True)
class ReviewView:
    title: str
    description: str
    passed: bool
    score_label: str
    passing_score_label: str
    lines: tuple[ReviewLine, ...]
    can_retake: bool
    retake_label: str | None
    result_message: str


def format_countdown(seconds: int) -> str:
    minutes, secs = divmod(max(0, seconds), 60)
    return f"{minutes}:{secs:02d}"


def progress_percent(index: int, total: int) -> int:
    if total <= 0:
        return 0
    return round_half_up_percentage(index + 1, total)


def question_label(index: int, total: int) -> str:
    return f"Question {index + 1} of {total}"


def attempt_banner(*, attempt_number: int, max_attempts: int | None, passing_score: int) -> str | None:
    if not max_attempts:
        return None
    return f"Attempt {attempt_number} of {max_attempts} | Passing score: {passing_score}%"


def retake_label(*, attempt_number: int, max_attempts: int | None) -> str:
    if not max_attempts:
        return RETAKE_LABEL
    return f"{RETAKE_LABEL} ({attempt_number}/{max_attempts})"


def result_message(verdict: Verdict) -> str:
    if verdict.passed:
        return f"Congratulations! You passed with {verdict.score_percentage}%"
    return f"You scored {verdict.score_percentage}%. Passing score is {verdict.passing_score}%"


def max_attempts_message(max_attempts: int) -> str:
    return f"Maximum attempts ({max_attempts}) reached"


def build_presenting_view(
    *,
    quiz: Quiz,
    question: Question,
    index: int,
    total: int,
    selected_option_id: str | None,
    can_submit: bool,
    remaining_seconds: int | None,
    attempt_number: int,
    low_time_threshold: int = LOW_TIME_WARNING_SECONDS,
) -> PresentingView:
    is_last = index == total - 1
    return PresentingView(
        title=quiz.title,
        description=quiz.description,
        question_id=question.question_id,
        question_label=question_label(index, total),
        progress_percent=progress_percent(index, total),
        prompt=question.prompt,
        options=tuple(
            OptionView(
                option_id=option.option_id,
                text=option.text,
                selected=option.option_id == selected_option_id,
            )
            for option in question.options
        ),
        can_go_previous=index > 0,
        can_go_next=not is_last,
        is_last_question=is_last,
        can_submit=can_submit,
        remaining_seconds=remaining_seconds,
        countdown_label=format_countdown(remaining_seconds) if remaining_seconds is not None else None,
        low_time=remaining_seconds is not None and remaining_seconds < low_time_threshold,
        attempt_banner=attempt_banner(
            attempt_number=attempt_number,
            max_attempts=quiz.max_attempts,
            passing_score=quiz.passing_score,
        ),
    )


def build_review_view(
    *,
    quiz: Quiz,
    verdict: Verdict,
    attempt_number: int,
    can_retake: bool,
) -> ReviewView:
    lines = tuple(
        ReviewLine(
            question_id=review.question_id,
            heading=f"Question {number}: {review.prompt}",
            your_answer=review.selected_text,
            is_correct=review.is_correct,
            # Correct answer is only revealed next to a wrong one.
            correct_answer=None if review.is_correct else review.correct_text,
            explanation=review.explanation,
        )
        for number, review in enumerate(verdict.questions, start=1)
    )
    return ReviewView(
        title=REVIEW_TITLE,
        description=REVIEW_PASSED_DESCRIPTION if verdict.passed else REVIEW_FAILED_DESCRIPTION,
        passed=verdict.passed,
        score_label=f"{verdict.score_percentage}%",
        passing_score_label=f"Passing score: {verdict.passing_score}%",
        lines=lines,
        can_retake=can_retake,
        retake_label=(
            retake_label(attempt_number=attempt_number, max_attempts=quiz.max_attempts)
            if can_retake
            else None
        ),
        result_message=result_message(verdict),
    )
