"""
Error Handling

Centralized error handling utilities.
"""

from typing import Callable, Optional, Any
import logging
import traceback

from ..domain.exceptions import DomainException


class ErrorHandler:
    """
    Context manager that records an exception raised in its block.

    Usage:
        with ErrorHandler(logger, "aggregation", suppress=True) as handler:
            outcome = engine.run(vision_result)
        if handler.has_error:
            outcome = None
    """

    def __init__(
        self,
        logger: logging.Logger,
        context: str = "",
        suppress: bool = False,
        log_level: int = logging.ERROR
    ):
        """
        Initialize error handler.

        Args:
            logger: Logger for error messages
            context: Context string for error messages
            suppress: Whether to suppress exceptions
            log_level: Level used for the error line
        """
        self.logger = logger
        self.context = context
        self.suppress = suppress
        self.log_level = log_level
        self.error: Optional[BaseException] = None

    def __enter__(self) -> "ErrorHandler":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_val is None:
            return False

        self.error = exc_val
        prefix = f"[{self.context}] " if self.context else ""
        self.logger.log(self.log_level, f"{prefix}{exc_val}")

        if isinstance(exc_val, DomainException):
            self.logger.debug(f"Details: {exc_val.details}")
        else:
            self.logger.debug(traceback.format_exc())

        return self.suppress

    @property
    def has_error(self) -> bool:
        return self.error is not None

    @property
    def error_message(self) -> Optional[str]:
        return str(self.error) if self.error is not None else None

    @property
    def is_recoverable(self) -> bool:
        """Check if the recorded error is recoverable."""
        if self.error is None:
            return True
        if isinstance(self.error, DomainException):
            return self.error.is_recoverable
        return False


def safe_call(
    func: Callable,
    *args,
    default: Any = None,
    logger: Optional[logging.Logger] = None,
    **kwargs
) -> Any:
    """
    Call a function, returning ``default`` if it raises.

    Args:
        func: Function to call
        *args: Positional arguments
        default: Default value on error
        logger: Optional logger for the failure
        **kwargs: Keyword arguments

    Returns:
        Function result or default value
    """
    try:
        return func(*args, **kwargs)
    except Exception as e:
        if logger:
            logger.warning(f"safe_call({getattr(func, '__name__', func)}) failed: {e}")
        return default
