from lesson_quiz.db.models.lesson_quizzes import LessonQuiz
from lesson_quiz.db.models.quiz_answers import QuizAnswer
from lesson_quiz.db.models.quiz_attempts import QuizAttempt
from lesson_quiz.db.models.quiz_questions import QuizQuestion

__all__ = [
    "LessonQuiz",
    "QuizAnswer",
    "QuizAttempt",
    "QuizQuestion",
]
