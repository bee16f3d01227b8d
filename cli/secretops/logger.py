#!/usr/bin/env python3

VERSION = "v0.1.0/2026-10-19"

"""
Logger functions for the secrets manager cli.

Usage Example:

from secretops.logger import ScriptLogger, ConsoleAndLog, Log

# Setup logger at the start of your script
ScriptLogger.setup('secrets-manager', log_dir='cli/logs')

# Same message to BOTH the console and the log file
ConsoleAndLog.info("Creating secret...")

# Log file only (e.g. arguments, provider diagnostics)
Log.info(f"{sys.argv}")

Messages from the secretops library modules (stores, coordinator) are
written to the same log file but never to the console.
"""

import logging
import sys
from pathlib import Path
from typing import Callable, Optional

from secretops.records import Severity

LIBRARY_LOGGER = "secretops"
FILE_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


class ScriptLogger:
    _instance = None
    _file_only = None
    _ERROR_MSG = "Logger not initialized. Call ScriptLogger.setup() first"

    def __init__(self):
        raise RuntimeError("Use ScriptLogger.setup() or ScriptLogger.get_logger()")

    @classmethod
    def setup(cls, script_name: str, log_dir: str = "cli/logs", level: int = logging.INFO) -> logging.Logger:
        """Initialize the logger for a specific script

        Args:
            script_name: Name of the script (e.g., 'secrets-manager')
            log_dir: Directory where log files should be stored
            level: Minimum level written to the log file

        Returns:
            logging.Logger: Configured logger instance
        """
        if cls._instance is None:
            log_path = Path(log_dir)
            log_path.mkdir(parents=True, exist_ok=True)
            log_file = log_path / f"script-{script_name}.log"

            logger = logging.getLogger(script_name)
            logger.setLevel(level)
            logger.propagate = False

            if not logger.handlers:
                logger.addHandler(cls._file_handler(log_file, level))
                console_handler = logging.StreamHandler(sys.stdout)
                console_handler.setLevel(logging.INFO)
                console_handler.setFormatter(logging.Formatter("%(message)s"))
                logger.addHandler(console_handler)

            file_only = logging.getLogger(f"{script_name}_file_only")
            file_only.setLevel(level)
            file_only.propagate = False
            if not file_only.handlers:
                file_only.addHandler(cls._file_handler(log_file, level))

            library = logging.getLogger(LIBRARY_LOGGER)
            library.setLevel(level)
            library.propagate = False
            if not library.handlers:
                library.addHandler(cls._file_handler(log_file, level))

            cls._instance = logger
            cls._file_only = file_only

        return cls._instance

    @staticmethod
    def _file_handler(log_file: Path, level: int) -> logging.FileHandler:
        handler = logging.FileHandler(log_file)
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(FILE_FORMAT))
        return handler

    @classmethod
    def get_logger(cls) -> Optional[logging.Logger]:
        """Get the configured logger instance"""
        return cls._instance

    @classmethod
    def get_file_only_logger(cls) -> logging.Logger:
        if cls._file_only is None:
            raise RuntimeError(cls._ERROR_MSG)
        return cls._file_only

    @classmethod
    def reset(cls) -> None:
        """Close handlers and forget the configured loggers"""
        names = [LIBRARY_LOGGER]
        if cls._instance is not None:
            names += [cls._instance.name, cls._file_only.name]
        for name in names:
            logger = logging.getLogger(name)
            for handler in list(logger.handlers):
                handler.close()
                logger.removeHandler(handler)
        cls._instance = None
        cls._file_only = None


def _with_error(message: str, e: Optional[Exception]) -> str:
    return f"{message} ERR: {str(e)}" if e else message


class Log:
    """Write to the log file only"""

    @classmethod
    def info(cls, message: str) -> None:
        ScriptLogger.get_file_only_logger().info(message)

    @classmethod
    def warning(cls, message: str, e: Optional[Exception] = None) -> None:
        ScriptLogger.get_file_only_logger().warning(_with_error(message, e))

    @classmethod
    def error(cls, message: str, e: Optional[Exception] = None) -> None:
        ScriptLogger.get_file_only_logger().error(_with_error(message, e))


class ConsoleAndLog:
    """Write the same plain message to the console and the log file"""

    @staticmethod
    def _logger() -> logging.Logger:
        logger = ScriptLogger.get_logger()
        if not logger:
            raise RuntimeError(ScriptLogger._ERROR_MSG)
        return logger

    @classmethod
    def info(cls, message: str) -> None:
        cls._logger().info(message)

    @classmethod
    def warning(cls, message: str, e: Optional[Exception] = None) -> None:
        cls._logger().warning(_with_error(message, e))

    @classmethod
    def error(cls, message: str, e: Optional[Exception] = None) -> None:
        cls._logger().error(_with_error(message, e))


def log_for_severity(severity: Severity) -> Callable[[str], None]:
    """File-only log function matching an outcome severity"""
    return {
        Severity.INFO: Log.info,
        Severity.WARNING: Log.warning,
        Severity.ERROR: Log.error,
    }[severity]
