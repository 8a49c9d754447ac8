from __future__ import annotations

DEFAULT_PASSING_SCORE = 70
SECONDS_PER_MINUTE = 60
LOW_TIME_WARNING_SECONDS = 60

UNANSWERED_TEXT = "Not answered"
REVIEW_TITLE = "Quiz Results"
REVIEW_PASSED_DESCRIPTION = "You've successfully passed this quiz!"
REVIEW_FAILED_DESCRIPTION = "You didn't pass this time. Review the material and try again."
RETAKE_LABEL = "Retake Quiz"

NOTICE_LOAD_FAILED = "Failed to load quiz"
NOTICE_SAVE_FAILED = "Failed to save quiz results. Your result may not have been recorded."
