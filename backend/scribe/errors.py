"""Domain exceptions mapped to JSON responses by the application."""

from __future__ import annotations


class ScribeError(Exception):
    """Domain-level base exception so we can map to JSON responses easily."""

    status_code: int = 500

    def __init__(self, detail: str, status_code: int | None = None) -> None:
        super().__init__(detail)
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code


class ConfigurationError(ScribeError):
    """Raised at start-up when a required setting is missing."""


class BadRequestError(ScribeError):
    status_code = 400


class UnauthorizedError(ScribeError):
    status_code = 401

    def __init__(self, detail: str = "Unauthorized") -> None:
        super().__init__(detail)


class NotFoundError(ScribeError):
    status_code = 404


class PayloadTooLargeError(ScribeError):
    status_code = 413
