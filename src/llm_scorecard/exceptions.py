"""Custom exceptions for the application."""


class ScorecardError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class LengthMismatchError(ScorecardError):
    """Raised when paired prediction and label sequences differ in length."""

    def __init__(self, predictions: int, labels: int):
        super().__init__(
            f"length mismatch: {predictions} predictions vs {labels} labels",
            details={"predictions": predictions, "labels": labels},
        )


class UnknownCaseKindError(ScorecardError):
    """Raised when an evaluation case names a scorer that does not exist."""

    pass


class CaseLoadError(ScorecardError):
    """Raised when evaluation cases cannot be read or parsed."""

    pass


class EvaluationError(ScorecardError):
    """Raised when evaluation fails."""

    pass
