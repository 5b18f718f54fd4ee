"""
Logging Configuration

Structured logging for the medicine identification pipeline.
"""

import logging
import sys
from typing import Optional, Union
from datetime import datetime


ROOT_LOGGER_NAME = "medscan"

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
    format_string: Optional[str] = None
) -> None:
    """
    Configure logging for the application.

    Args:
        level: Logging level, as a number or a name such as "DEBUG"
        log_file: Optional file path for log output
        format_string: Custom format string
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    formatter = logging.Formatter(format_string or DEFAULT_FORMAT)

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level)

    # Clear existing handlers
    root_logger.handlers = []

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


class PipelineLogger:
    """
    Logger for one analysis run.

    Records phase timings and run metrics under the request id.
    """

    def __init__(self, request_id: str):
        self.request_id = request_id
        self.logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.pipeline.{request_id[:8]}")
        self._phase_start_times = {}

    def phase_start(self, phase_name: str) -> None:
        self._phase_start_times[phase_name] = datetime.now()
        self.logger.info(f"Phase '{phase_name}' started")

    def phase_end(self, phase_name: str, success: bool = True) -> float:
        """Log phase completion and return its duration in milliseconds."""
        duration = 0.0
        if phase_name in self._phase_start_times:
            delta = datetime.now() - self._phase_start_times.pop(phase_name)
            duration = delta.total_seconds() * 1000

        status = "completed" if success else "failed"
        self.logger.info(f"Phase '{phase_name}' {status} in {duration:.2f}ms")
        return duration

    def metric(self, name: str, value: float, unit: str = "") -> None:
        self.logger.info(f"Metric [{name}]: {value}{unit}")
