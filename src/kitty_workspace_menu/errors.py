# =============================================================================
# Error Handling Types (Result + ErrorReport)
# =============================================================================

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar

from loguru import logger

T = TypeVar('T')


class ErrorType(Enum):
    CONFIG_ERROR = "config_error"
    DIRECTORY_ERROR = "directory_error"
    LAUNCH_ERROR = "launch_error"
    STYLING_ERROR = "styling_error"
    REMOTE_ERROR = "remote_error"
    DEPENDENCY_ERROR = "dependency_error"


# Errors the menu renders and then retries from the level that produced them
RECOVERABLE_ERRORS = frozenset({
    ErrorType.DIRECTORY_ERROR,
    ErrorType.LAUNCH_ERROR,
    ErrorType.REMOTE_ERROR,
})


@dataclass
class Error:
    error_type: ErrorType
    message: str
    context: dict = field(default_factory=dict)
    original_exception: Exception = None

    @property
    def recoverable(self) -> bool:
        return self.error_type in RECOVERABLE_ERRORS


@dataclass
class Result(Generic[T]):
    success: bool
    value: T = None
    error: Error = None

    @staticmethod
    def ok(value: T) -> 'Result[T]':
        return Result(success=True, value=value)

    @staticmethod
    def err(error: Error) -> 'Result[T]':
        return Result(success=False, error=error)

    def is_ok(self) -> bool:
        return self.success

    def is_err(self) -> bool:
        return not self.success


@dataclass
class ErrorReport:
    errors: list[Error] = field(default_factory=list)
    warnings: list[Error] = field(default_factory=list)

    def add_error(self, error: Error):
        self.errors.append(error)
        logger.error(
            "{}",
            error.message,
            operation="error_report",
            status="error",
            error_type=error.error_type.value,
            **error.context
        )

    def add_warning(self, error: Error):
        self.warnings.append(error)
        logger.warning(
            "{}",
            error.message,
            operation="error_report",
            status="warning",
            error_type=error.error_type.value,
            **error.context
        )

    def collect_result(self, result: Result) -> bool:
        """Collect error from Result into report if failed."""
        if result.is_err():
            self.add_error(result.error)
            return False
        return True

    def log_summary(self, op_trace_id: str):
        """Log final session summary."""
        logger.info(
            "Session complete",
            operation="error_report",
            status="complete",
            trace_id=op_trace_id,
            metrics={
                "total_errors": len(self.errors),
                "total_warnings": len(self.warnings)
            }
        )
