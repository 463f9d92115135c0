"""Logging configuration and utilities for xml-ai."""

import logging
import sys
from pathlib import Path
from typing import Dict, Optional

from colorama import Fore, Style, init as colorama_init

from .exceptions import XmlAiException


class StructuredFormatter(logging.Formatter):
    """Formatter that adds structured context to log records."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with structured context."""
        if record.exc_info and isinstance(record.exc_info[1], XmlAiException):
            exc = record.exc_info[1]
            for key, value in exc.context.items():
                setattr(record, f"ctx_{key}", value)

        return super().format(record)


class ColorFormatter(StructuredFormatter):
    """Structured formatter that colors whole lines by level."""

    COLORS: Dict[int, str] = {
        logging.DEBUG: Style.DIM + Fore.BLUE,
        logging.INFO: Fore.CYAN,
        logging.WARNING: Fore.YELLOW,
        logging.ERROR: Fore.RED,
        logging.CRITICAL: Style.BRIGHT + Fore.RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelno, "")
        message = super().format(record)
        if color:
            return f"{color}{message}{Style.RESET_ALL}"
        return message


def configure_logging(
    level: str = "WARNING",
    log_file: Optional[Path] = None,
    format_string: Optional[str] = None,
    include_timestamp: bool = True,
    use_color: bool = False,
) -> None:
    """Configure logging for xml-ai.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path for log output
        format_string: Custom format string (uses default if None)
        include_timestamp: Whether to include timestamps in logs
        use_color: Color console output by level (file output is never colored)
    """
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    numeric_level = getattr(logging, level.upper(), logging.WARNING)
    root.setLevel(numeric_level)

    if format_string is None:
        if include_timestamp:
            format_string = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
        else:
            format_string = "[%(levelname)s] %(name)s: %(message)s"

    if use_color:
        colorama_init()
        console_formatter: logging.Formatter = ColorFormatter(format_string)
    else:
        console_formatter = StructuredFormatter(format_string)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(console_formatter)
    console_handler.setLevel(numeric_level)
    root.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(StructuredFormatter(format_string))
        file_handler.setLevel(numeric_level)
        root.addHandler(file_handler)


__all__ = [
    "StructuredFormatter",
    "ColorFormatter",
    "configure_logging",
]
