"""
Error taxonomy shared by the services and the HTTP layer.
"""


class KruAIError(Exception):
    """Base class for application errors."""

    kind = "error"
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__doc__ or ""


class GenerationError(KruAIError):
    """The AI call failed or returned an unusable payload."""

    kind = "generation_error"
    status_code = 502


class PersistenceError(KruAIError):
    """Saving or loading a record failed."""

    kind = "persistence_error"
    status_code = 500


class MissingDataError(KruAIError):
    """The quiz record has no answer-key data."""

    kind = "missing_data"
    status_code = 422


class QuizNotFoundError(KruAIError):
    """Quiz not found or expired."""

    kind = "not_found"
    status_code = 404


class RecordNotFoundError(KruAIError):
    """Record not found."""

    kind = "not_found"
    status_code = 404
