from __future__ import annotations

from collections.abc import Mapping, Sequence

from lesson_quiz.assessment.constants import UNANSWERED_TEXT
from lesson_quiz.assessment.errors import EmptyQuizError, QuizConfigurationError
from lesson_quiz.assessment.types import AnswerOption, Question, QuestionReview, Verdict


def round_half_up_percentage(numerator: int, denominator: int) -> int:
    # Integer form of floor(100 * n / d + 0.5); avoids banker's rounding of round().
    if denominator <= 0:
        raise ValueError("denominator must be positive")
    return (200 * numerator + denominator) // (2 * denominator)


def correct_option(question: Question) -> AnswerOption:
    correct = [option for option in question.options if option.is_correct]
    if len(correct) != 1:
        raise QuizConfigurationError(
            f"question {question.question_id!r} has {len(correct)} correct options, expected exactly 1"
        )
    return correct[0]


def review_question(question: Question, selected_option_id: str | None) -> QuestionReview:
    correct = correct_option(question)
    selected = question.find_option(selected_option_id) if selected_option_id is not None else None
    return QuestionReview(
        question_id=question.question_id,
        position=question.position,
        prompt=question.prompt,
        selected_option_id=selected.option_id if selected is not None else None,
        selected_text=selected.text if selected is not None else UNANSWERED_TEXT,
        correct_option_id=correct.option_id,
        correct_text=correct.text,
        is_correct=selected is not None and selected.option_id == correct.option_id,
        explanation=question.explanation,
    )


def score_attempt(
    questions: Sequence[Question],
    selections: Mapping[str, str],
    *,
    passing_score: int,
) -> Verdict:
    if not questions:
        raise EmptyQuizError("cannot score a quiz without questions")

    reviews = tuple(
        review_question(question, selections.get(question.question_id)) for question in questions
    )
    correct_count = sum(1 for review in reviews if review.is_correct)
    percentage = round_half_up_percentage(correct_count, len(reviews))
    return Verdict(
        score_percentage=percentage,
        passed=percentage >= passing_score,
        correct_count=correct_count,
        total_questions=len(reviews),
        passing_score=passing_score,
        questions=reviews,
    )
