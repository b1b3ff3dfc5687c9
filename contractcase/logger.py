"""
contractcase Logging System
===========================

A unified, thread-safe logging utility for contractcase. This module integrates
with the standard Python `logging` library and the `rich` library to provide
readable step-by-step case output.

Usage:
    >>> from contractcase.logger import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Case started")
"""

import logging
import logging.handlers
import re
import sys
import threading
import time
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.highlighter import RegexHighlighter
from rich.logging import RichHandler
from rich.theme import Theme

from .constants import (
    LOG_LEVEL,
    LOG_FORMAT,
    LOG_DATE_FORMAT,
    LOG_FILE,
    LOG_MAX_FILE_SIZE,
    LOG_BACKUP_COUNT,
    LOG_CONSOLE_HIGHLIGHTING,
)


class LogManager:
    """
    Manages logging configuration via the Singleton pattern.

    The logging subsystem is initialized exactly once. It attaches a 'Rich'
    console handler and, when a log file is configured, a rotating file handler.

    Attributes:
        _instance (LogManager): The singleton instance.
        _lock (threading.Lock): Thread lock for atomic initialization.
    """

    _instance: Optional["LogManager"] = None
    _lock: threading.Lock = threading.Lock()


    def __new__(cls) -> "LogManager":
        """Creates or returns the existing singleton instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance


    def __init__(self) -> None:
        if self._initialized:
            return
        self._configured = False
        self._initialized = True


    @staticmethod
    def validate_log_format(log_format: str) -> str:
        """
        Validates the syntax of a logging format string.

        Args:
            log_format (str): The logging format string (e.g., "%(asctime)s - %(message)s").

        Returns:
            str: The validated format string, or the default `LOG_FORMAT` if validation fails.
        """
        try:
            if not log_format:
                return str(LOG_FORMAT.default())

            log_format = str(log_format)
            formatter = logging.Formatter(fmt=log_format)
            record = logging.LogRecord(
                name="test", level=logging.INFO, pathname="", lineno=0,
                msg="test", args=(), exc_info=None,
            )
            formatter.format(record)
            return log_format
        except (ValueError, KeyError, TypeError) as e:
            print(
                f"{time.strftime('%Y-%m-%d %H:%M:%S')} - contractcase.logger - "
                f"Validation Error: {e}. Using default.",
                file=sys.stderr,
            )
            return str(LOG_FORMAT.default())


    def configure(
        self,
        log_level: Optional[str] = None,
        log_file: Optional[Path] = None,
        console_output: bool = True,
        force: bool = False,
    ) -> None:
        """
        Configures the root logger with console and file handlers.

        Args:
            log_level (Optional[str]): Logging level (DEBUG, INFO, etc.). Defaults to env var.
            log_file (Optional[Path]): Path to a rotating log file. Defaults to `LOG_FILE`;
                no file is written when both are empty.
            console_output (bool): Enable console logging. Defaults to True.
            force (bool): Replace an existing configuration.
        """
        with self._lock:
            if self._configured and not force:
                return

            level_str = log_level or LOG_LEVEL or LOG_LEVEL.default()
            numeric_level = getattr(logging, str(level_str).upper(), logging.INFO)

            root_logger = logging.getLogger()
            root_logger.setLevel(numeric_level)

            # py-evm logs every opcode at DEBUG2
            for lib in ["eth", "eth.vm", "trie"]:
                logging.getLogger(lib).setLevel(logging.WARNING)

            for handler in list(root_logger.handlers):
                if getattr(handler, "_contractcase", False):
                    root_logger.removeHandler(handler)

            log_format = self.validate_log_format(LOG_FORMAT)
            formatter = TerminalSafeFormatter(fmt=log_format, datefmt=str(LOG_DATE_FORMAT))

            if console_output:
                if LOG_CONSOLE_HIGHLIGHTING:
                    case_theme = Theme(
                        {
                            "case.pass":          "bold green",
                            "case.fail":          "bold red",
                            "case.error":         "bold red reverse",
                            "case.address":       "cyan",
                            "case.hash":          "magenta",
                            "case.level_debug":   "bold dim",
                            "case.level_info":    "bold green",
                            "case.level_warning": "bold yellow",
                            "case.level_error":   "bold red",
                            "case.tag":           "bold magenta",
                        }
                    )

                    console = Console(theme=case_theme, highlight=False, stderr=True)

                    handler = RichHandler(
                        console=console,
                        highlighter=CaseLogHighlighter(),
                        rich_tracebacks=True,
                        show_path=False,
                        show_time=False,
                        show_level=False,
                        markup=False,
                    )
                else:
                    handler = logging.StreamHandler(sys.stderr)
                handler.setLevel(numeric_level)
                handler.setFormatter(formatter)
                handler._contractcase = True
                root_logger.addHandler(handler)

            file_path = log_file or (Path(str(LOG_FILE)) if str(LOG_FILE) else None)
            if file_path:
                file_path.parent.mkdir(parents=True, exist_ok=True)
                file_handler = logging.handlers.RotatingFileHandler(
                    filename=str(file_path),
                    maxBytes=LOG_MAX_FILE_SIZE,
                    backupCount=LOG_BACKUP_COUNT,
                    encoding="utf-8",
                )
                file_handler.setLevel(numeric_level)
                file_handler.setFormatter(formatter)
                file_handler._contractcase = True
                root_logger.addHandler(file_handler)

            self._configured = True


    def get_logger(self, name: str) -> logging.Logger:
        """
        Retrieves a logger instance for a specific module.

        Args:
            name (str): The name of the logger (typically `__name__`).

        Returns:
            logging.Logger: A configured standard Python logger.
        """
        if not self._configured:
            self.configure()
        return logging.getLogger(name)


    @property
    def is_configured(self) -> bool:
        return self._configured


class TerminalSafeFormatter(logging.Formatter):
    """
    Formatter that strips ANSI escape sequences and control characters.

    Parameters from data files end up in log lines verbatim, so they must not
    be able to move the cursor or recolour the terminal.
    """

    _ansi_escape_re = re.compile(
        r"\x1b\[[0-?]*[ -/]*[@-~]"
        r"|\x1b[@-Z\\-_]"
    )
    # Control chars (0x00-0x1F) excluding Tab and Newline
    _control_chars_re = re.compile(r"[\x00-\x08\x0B\x0C\x0D\x0E-\x1F\x7F]")


    @classmethod
    def sanitize(cls, text: str) -> str:
        if not text:
            return text
        text = cls._ansi_escape_re.sub("", text)
        return cls._control_chars_re.sub("", text)


    def format(self, record: logging.LogRecord) -> str:
        return self.sanitize(super().format(record))


class CaseLogHighlighter(RegexHighlighter):
    """Highlights step markers, addresses and hashes in case logs."""

    base_style = "case."
    highlights = [
        r"(?P<pass>\bPASS(ED)?\b)",
        r"(?P<fail>\bFAIL(ED)?\b)",
        r"(?P<error>\bERROR\b)",
        r"(?P<hash>\b0x[0-9a-fA-F]{64}\b)",
        r"(?P<address>\b0x[0-9a-fA-F]{40}\b)",
        r"(?P<level_debug>\bDEBUG\b)",
        r"(?P<level_info>\bINFO\b)",
        r"(?P<level_warning>\bWARNING\b)",
        r"(?P<tag>\[.*?\])",
    ]


_manager = LogManager()

def get_logger(name: str) -> logging.Logger:
    """
    Public accessor of the logging system.

    Args:
        name (str): The name of the module requesting the logger.

    Returns:
        logging.Logger: The configured logger instance.
    """
    return _manager.get_logger(name)


def configure_logging(log_level: Optional[str] = None, log_file: Optional[Path] = None) -> None:
    """Re-applies logging configuration, e.g. with a level taken from config.toml."""
    _manager.configure(log_level=log_level, log_file=log_file, force=True)


# Auto-configure on import to ensure immediate availability
_manager.configure()
