"""
Validation error types

Structured errors raised by the validator so that callers can tell a missing
status file from a malformed one, and both from a failed feature probe.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ValidationErrorCode(Enum):
    """Error codes reported by the validator."""

    INVALID_COMPONENT = "INVALID_COMPONENT"
    STATUS_UNAVAILABLE = "STATUS_UNAVAILABLE"
    STATUS_FILE_INVALID = "STATUS_FILE_INVALID"
    FEATURE_VALIDATION_FAILED = "FEATURE_VALIDATION_FAILED"
    CANCELLED = "CANCELLED"
    UNKNOWN = "UNKNOWN"


class ValidationError(Exception):
    """
    Base class for validator errors.

    Attributes:
        message: Human readable description
        code: Error code
        details: Extra context (paths, feature names, ...)
    """

    def __init__(
        self,
        message: str,
        code: ValidationErrorCode = ValidationErrorCode.UNKNOWN,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.message,
            "code": self.code.value,
            "details": self.details,
        }


class InvalidComponentError(ValidationError):
    """Raised when a component name is not one of the recognized components."""

    def __init__(self, component: Optional[str]):
        super().__init__(
            f"invalid component specified for validation: '{component or ''}'",
            code=ValidationErrorCode.INVALID_COMPONENT,
            details={"component": component},
        )


class StatusUnavailableError(ValidationError):
    """Raised when a status file is missing or cannot be read."""

    def __init__(self, path: str, reason: str):
        super().__init__(
            f"status file {path} unavailable: {reason}",
            code=ValidationErrorCode.STATUS_UNAVAILABLE,
            details={"path": path},
        )
        self.path = path


class StatusFileInvalidError(ValidationError):
    """Raised when a status file exists but its content cannot be interpreted."""

    def __init__(self, path: str, reason: str):
        super().__init__(
            f"status file {path} is invalid: {reason}",
            code=ValidationErrorCode.STATUS_FILE_INVALID,
            details={"path": path},
        )
        self.path = path


class FeatureValidationError(ValidationError):
    """
    Raised when one or more enabled driver features failed validation.

    ``failures`` maps each failed feature to the exception its probe raised,
    in the order the features were validated.
    """

    def __init__(self, failures: Dict[str, Exception]):
        summary = "; ".join(f"{feature}: {cause}" for feature, cause in failures.items())
        super().__init__(
            f"failed to validate additional driver components: {summary}",
            code=ValidationErrorCode.FEATURE_VALIDATION_FAILED,
            details={"features": list(failures)},
        )
        self.failures = dict(failures)

    @property
    def feature(self) -> str:
        """First feature that failed."""
        return next(iter(self.failures))

    @property
    def cause(self) -> Exception:
        return self.failures[self.feature]


class ValidationCancelledError(ValidationError):
    """Raised when the validation context was cancelled or timed out."""

    def __init__(self, reason: str = "validation cancelled"):
        super().__init__(reason, code=ValidationErrorCode.CANCELLED)
