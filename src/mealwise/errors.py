"""
Mealwise - Exception hierarchy.

Every core failure is one of these kinds. The web layer maps them to HTTP
status codes through MealwiseError.status_code.
"""


class MealwiseError(Exception):
    """
    Base exception for the estimation and export pipeline.

    Attributes:
        message: Public, client-safe error message.
        status_code: HTTP status the web layer answers with.
        detail: Internal detail for logs (never sent to clients).
    """

    status_code: int = 500

    def __init__(self, message: str = "An error occurred", detail: str | None = None):
        self.message = message
        self.detail = detail or message
        super().__init__(message)


class NotFoundError(MealwiseError):
    """Plan or shopping list does not exist for the given identifier."""

    status_code = 404

    def __init__(self, message: str = "Resource not found", detail: str | None = None):
        super().__init__(message, detail)


class UnauthorizedError(MealwiseError):
    """No authenticated session."""

    status_code = 401

    def __init__(self, message: str = "Not authenticated", detail: str | None = None):
        super().__init__(message, detail)


class ValidationFailedError(MealwiseError):
    """Malformed identifier or input, rejected before estimation."""

    status_code = 400

    def __init__(self, message: str = "Invalid input", detail: str | None = None):
        super().__init__(message, detail)


class RenderError(MealwiseError):
    """CSV or PDF serialization failed; no partial output is returned."""

    status_code = 500

    def __init__(self, message: str = "Unable to render export", detail: str | None = None):
        super().__init__(message, detail)
