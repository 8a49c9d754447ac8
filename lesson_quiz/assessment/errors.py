class QuizEngineError(Exception):
    pass


class QuizFetchError(QuizEngineError):
    pass


class QuizConfigurationError(QuizEngineError):
    pass


class EmptyQuizError(QuizConfigurationError):
    pass


class InvalidSessionStateError(QuizEngineError):
    pass


class InvalidAnswerOptionError(QuizEngineError):
    pass


class SubmitNotAllowedError(QuizEngineError):
    pass


class RetakeNotAllowedError(QuizEngineError):
    pass


class AttemptLedgerError(QuizEngineError):
    pass


class AttemptConflictError(AttemptLedgerError):
    pass


class SessionNotFoundError(QuizEngineError):
    pass
