from __future__ import annotations

from lesson_quiz.assessment.types import RetakeDecision


def first_attempt_number(max_recorded_attempt: int) -> int:
    return max(0, max_recorded_attempt) + 1


def next_attempt_number(previous_attempt_number: int) -> int:
    return previous_attempt_number + 1


def can_retake(*, passed: bool, attempts_taken: int, max_attempts: int | None) -> bool:
    if passed:
        return False
    if max_attempts is None:
        return True
    return attempts_taken < max_attempts


def decide_retake(*, passed: bool, attempt_number: int, max_attempts: int | None) -> RetakeDecision:
    return RetakeDecision(
        allowed=can_retake(passed=passed, attempts_taken=attempt_number, max_attempts=max_attempts),
        next_attempt_number=next_attempt_number(attempt_number),
        attempts_taken=attempt_number,
        max_attempts=max_attempts,
    )
