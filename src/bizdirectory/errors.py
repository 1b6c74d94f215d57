from __future__ import annotations


class DirectoryError(Exception):
    """Base class for errors the HTTP layer maps onto a status code."""


class NotFoundError(DirectoryError):
    def __init__(self, entity: str) -> None:
        super().__init__(f"{entity} not found")
        self.entity = entity


class SubmissionInvalid(DirectoryError):
    """A creation payload failed validation; nothing was written."""

    def __init__(self, errors: list[dict[str, str]]) -> None:
        super().__init__("Validation failed")
        self.errors = errors


class SlugConflict(DirectoryError):
    def __init__(self, base: str, attempts: int) -> None:
        super().__init__(f"Could not allocate a unique slug for {base!r} after {attempts} attempts")
        self.base = base
        self.attempts = attempts
