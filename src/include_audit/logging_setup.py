# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Structured logging setup for include usage analysis.

The library itself never configures logging; applications call
setup_logging() once at startup.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

DEFAULT_LOG_DIRNAME = ".include_audit_logs"
DIAGNOSTICS_LOGGER_NAME = "include_audit.diagnostics"


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Add any extra fields
        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        return json.dumps(log_data)


class WarningTypeFilter(logging.Filter):
    """Passes only diagnostics records whose warning type is in an allowed set.

    Records without an AnalysisWarning payload (no extra_fields type) pass.
    """

    def __init__(self, warning_types: Iterable[str]):
        super().__init__()
        self.warning_types = frozenset(warning_types)

    def filter(self, record: logging.LogRecord) -> bool:
        fields = getattr(record, "extra_fields", None)
        if not isinstance(fields, dict) or "type" not in fields:
            return True
        return fields["type"] in self.warning_types


def setup_logging(
    log_dir: Optional[Path] = None,
    log_level: int = logging.INFO,
    console_output: bool = True,
) -> Path:
    """Set up structured logging for the application.

    Args:
        log_dir: Directory for log files. If None, uses .include_audit_logs/
        log_level: Logging level (default: INFO)
        console_output: Whether to also output to console (default: True)

    Returns:
        Path of the JSON log file.
    """
    if log_dir is None:
        log_dir = Path.cwd() / DEFAULT_LOG_DIRNAME

    log_dir.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove any existing handlers
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    # File handler with structured JSON logging
    log_file = log_dir / f"include_audit_{datetime.now(timezone.utc).strftime('%Y%m%d')}.log"
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(log_level)
    file_handler.setFormatter(StructuredFormatter())
    root_logger.addHandler(file_handler)

    # Console handler with human-readable format (if enabled)
    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(log_level)
        console_formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        console_handler.setFormatter(console_formatter)
        root_logger.addHandler(console_handler)

    logging.info(f"Logging initialized. Log directory: {log_dir}")
    return log_file


def get_diagnostics_logger(
    log_dir: Optional[Path] = None,
    warning_types: Optional[Iterable[str]] = None,
) -> logging.Logger:
    """Get logger that records analysis warnings as JSON lines.

    Args:
        log_dir: Directory for log files. If None, uses .include_audit_logs/
        warning_types: WarningType values to record. If None, every warning
            is recorded; otherwise the others are dropped, e.g.
            [WarningType.CYCLIC_LOCAL_INCLUDE] to audit include cycles only.

    Returns:
        Logger writing to diagnostics.jsonl; each AnalysisWarning logged
        through IncludeUsageService becomes one line.
    """
    if log_dir is None:
        log_dir = Path.cwd() / DEFAULT_LOG_DIRNAME

    log_dir.mkdir(parents=True, exist_ok=True)

    diagnostics_logger = logging.getLogger(DIAGNOSTICS_LOGGER_NAME)
    diagnostics_logger.setLevel(logging.INFO)
    diagnostics_logger.propagate = False  # Don't propagate to root logger

    for handler in list(diagnostics_logger.handlers):
        diagnostics_logger.removeHandler(handler)
        handler.close()

    # Diagnostics file handler (JSONL format)
    diagnostics_file = log_dir / "diagnostics.jsonl"
    diagnostics_handler = logging.FileHandler(diagnostics_file, encoding="utf-8")
    diagnostics_handler.setLevel(logging.INFO)
    diagnostics_handler.setFormatter(StructuredFormatter())
    if warning_types is not None:
        diagnostics_handler.addFilter(WarningTypeFilter(warning_types))
    diagnostics_logger.addHandler(diagnostics_handler)

    return diagnostics_logger
