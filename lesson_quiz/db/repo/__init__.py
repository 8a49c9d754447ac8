from lesson_quiz.db.repo.quiz_attempts_repo import QuizAttemptsRepo
from lesson_quiz.db.repo.quiz_bank_repo import QuizBankRepo

__all__ = [
    "QuizAttemptsRepo",
    "QuizBankRepo",
]
