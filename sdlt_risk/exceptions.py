from __future__ import annotations

from typing import Iterable, List


class SdltError(Exception):
    """Base exception with user-friendly message."""
    pass


class ConfigError(SdltError):
    pass


class ApiError(SdltError):
    pass


class AuthenticationError(ApiError):
    pass


class DatasetError(SdltError):
    pass


class ValidationError(SdltError):
    """Raised when one or more records fail write-time validation."""

    def __init__(self, messages: Iterable[str]) -> None:
        self.messages: List[str] = list(messages)
        super().__init__("; ".join(self.messages) or "Validation failed.")


class ScoringError(SdltError):
    pass


class AmbiguousWeightError(ScoringError):
    pass
