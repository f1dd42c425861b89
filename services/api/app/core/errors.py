from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    TOO_SHORT = "too_short"
    INVALID_OPTIONS = "invalid_options"
    EXTERNAL_SERVICE = "external_service"
    ANALYSIS_DEGRADED = "analysis_degraded"
    VALIDATION_FAILED = "validation_failed"


# HTTP status per kind; kinds that never reach a caller are absent.
STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.INVALID_INPUT: 422,
    ErrorKind.TOO_SHORT: 422,
    ErrorKind.INVALID_OPTIONS: 422,
    ErrorKind.EXTERNAL_SERVICE: 502,
}


class AppError(Exception):
    kind: ErrorKind = ErrorKind.INVALID_INPUT

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND.get(self.kind, 500)


class InvalidInput(AppError):
    kind = ErrorKind.INVALID_INPUT


class TooShort(InvalidInput):
    kind = ErrorKind.TOO_SHORT


class InvalidOptions(AppError):
    kind = ErrorKind.INVALID_OPTIONS


class ExternalServiceError(AppError):
    kind = ErrorKind.EXTERNAL_SERVICE

    def __init__(self, detail: str, *, reason: str = "error") -> None:
        super().__init__(detail)
        self.reason = reason
