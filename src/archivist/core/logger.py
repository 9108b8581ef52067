"""
Logging and Error Handling System

This module provides centralized logging configuration and error tracking
for the archiver. Modules log through logging.getLogger(__name__); the
handlers installed here on the 'archivist' logger receive everything.
"""

import logging
import logging.handlers
import os
import sys
import threading
from datetime import datetime
from typing import Optional, Dict, Any
import traceback
from pathlib import Path


APP_NAME = "archivist"


class ArchiveLogger:
    """
    Centralized logging system for the archiver.

    Provides a rotating log file, console output, and a separate error log.
    """

    def __init__(self, log_dir: str = "logs", app_name: str = APP_NAME):
        """
        Initialize the logging system.

        Args:
            log_dir: Directory to store log files
            app_name: Name of the application for log formatting
        """
        self.log_dir = Path(log_dir)
        self.app_name = app_name
        self.loggers: Dict[str, logging.Logger] = {}

        self.log_dir.mkdir(parents=True, exist_ok=True)

    def setup_logger(self, level: int = logging.INFO) -> logging.Logger:
        """
        Set up the main application logger with file and console handlers.

        Args:
            level: Console logging level (default: INFO); files always get DEBUG/ERROR

        Returns:
            Configured logger instance
        """
        logger = logging.getLogger(self.app_name)
        logger.setLevel(logging.DEBUG)
        self.loggers['main'] = logger

        # Prevent duplicate handlers, but honour a new console level
        if logger.handlers:
            for handler in logger.handlers:
                if getattr(handler, '_archivist_console', False):
                    handler.setLevel(level)
            return logger

        detailed_formatter = logging.Formatter(
            '%(asctime)s | %(name)s | %(levelname)s | %(funcName)s:%(lineno)d | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        console_formatter = logging.Formatter(
            '%(asctime)s | %(levelname)s | %(message)s',
            datefmt='%H:%M:%S'
        )

        log_file = self.log_dir / f"{self.app_name}.log"
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10*1024*1024,  # 10MB
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(detailed_formatter)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(console_formatter)
        console_handler._archivist_console = True

        error_file = self.log_dir / f"{self.app_name}_errors.log"
        error_handler = logging.handlers.RotatingFileHandler(
            error_file,
            maxBytes=5*1024*1024,  # 5MB
            backupCount=3,
            encoding='utf-8'
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(detailed_formatter)

        logger.addHandler(file_handler)
        logger.addHandler(console_handler)
        logger.addHandler(error_handler)

        return logger

    def get_logger(self, name: str) -> logging.Logger:
        """
        Get a logger for a specific component.

        Args:
            name: Name of the module/component

        Returns:
            Logger instance for the component
        """
        full_name = f"{self.app_name}.{name}"

        if full_name not in self.loggers:
            self.loggers[full_name] = logging.getLogger(full_name)

        return self.loggers[full_name]

    def log_system_info(self):
        """Log system information for debugging."""
        logger = self.get_logger('system')

        logger.info("=== Archivist Started ===")
        logger.debug(f"Python version: {sys.version}")
        logger.debug(f"Platform: {sys.platform}")
        logger.debug(f"Working directory: {os.getcwd()}")
        logger.debug(f"Log directory: {self.log_dir.absolute()}")


class ErrorTracker:
    """
    Tracks and categorizes errors that occur during a run.

    Safe to share between crawl workers.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.errors: list = []
        self.warnings: list = []
        self._lock = threading.Lock()

    def log_error(self,
                  error: Exception,
                  context: str = None,
                  url: str = None,
                  additional_info: Dict[str, Any] = None) -> str:
        """
        Log an error with context information.

        Args:
            error: The exception that occurred
            context: Context where the error occurred
            url: URL being processed when error occurred
            additional_info: Additional information about the error

        Returns:
            Error ID for tracking
        """
        with self._lock:
            error_id = f"ERR_{datetime.now().strftime('%Y%m%d_%H%M%S')}_{len(self.errors):03d}"
            error_data = {
                'id': error_id,
                'timestamp': datetime.now(),
                'type': type(error).__name__,
                'message': str(error),
                'context': context,
                'url': url,
                'traceback': ''.join(traceback.format_exception(type(error), error, error.__traceback__)),
                'additional_info': additional_info or {}
            }
            self.errors.append(error_data)

        log_message = f"[{error_id}] {error_data['type']}: {error_data['message']}"
        if context:
            log_message += f" (Context: {context})"
        if url:
            log_message += f" (URL: {url})"

        self.logger.error(log_message)
        self.logger.debug(f"[{error_id}] Full traceback:\n{error_data['traceback']}")

        return error_id

    def log_warning(self,
                    message: str,
                    context: str = None,
                    url: str = None) -> str:
        """
        Log a warning with context information.

        Returns:
            Warning ID for tracking
        """
        with self._lock:
            warning_id = f"WARN_{datetime.now().strftime('%Y%m%d_%H%M%S')}_{len(self.warnings):03d}"
            warning_data = {
                'id': warning_id,
                'timestamp': datetime.now(),
                'message': message,
                'context': context,
                'url': url
            }
            self.warnings.append(warning_data)

        log_message = f"[{warning_id}] {message}"
        if context:
            log_message += f" (Context: {context})"
        if url:
            log_message += f" (URL: {url})"

        self.logger.warning(log_message)

        return warning_id

    def get_error_summary(self) -> Dict[str, Any]:
        """
        Count errors and warnings, with errors broken down by exception type.
        """
        with self._lock:
            return {
                'total_errors': len(self.errors),
                'total_warnings': len(self.warnings),
                'error_types': self._count_error_types(),
            }

    def _count_error_types(self) -> Dict[str, int]:
        type_counts = {}
        for error in self.errors:
            error_type = error['type']
            type_counts[error_type] = type_counts.get(error_type, 0) + 1
        return type_counts

    def save_error_report(self, output_path: str) -> None:
        """
        Save a detailed error report to a file.

        Raises:
            OSError: if the report cannot be written
        """
        with self._lock:
            errors = list(self.errors)
            warnings = list(self.warnings)

        with open(output_path, 'w', encoding='utf-8') as f:
            f.write("ARCHIVIST ERROR REPORT\n")
            f.write("=" * 50 + "\n\n")
            f.write(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n")
            f.write(f"Total Errors: {len(errors)}\n")
            f.write(f"Total Warnings: {len(warnings)}\n\n")

            if errors:
                f.write("ERRORS:\n")
                f.write("-" * 30 + "\n")
                for error in errors:
                    f.write(f"\n[{error['id']}] {error['timestamp']}\n")
                    f.write(f"Type: {error['type']}\n")
                    f.write(f"Message: {error['message']}\n")
                    if error['context']:
                        f.write(f"Context: {error['context']}\n")
                    if error['url']:
                        f.write(f"URL: {error['url']}\n")
                    f.write(f"Traceback:\n{error['traceback']}\n")
                    f.write("-" * 50 + "\n")

            if warnings:
                f.write("\nWARNINGS:\n")
                f.write("-" * 30 + "\n")
                for warning in warnings:
                    f.write(f"\n[{warning['id']}] {warning['timestamp']}\n")
                    f.write(f"Message: {warning['message']}\n")
                    if warning['context']:
                        f.write(f"Context: {warning['context']}\n")
                    if warning['url']:
                        f.write(f"URL: {warning['url']}\n")
                    f.write("-" * 30 + "\n")

        self.logger.info(f"Error report saved to: {output_path}")


_logger_instance: Optional[ArchiveLogger] = None


def get_logger(name: str = None) -> logging.Logger:
    """
    Get a logger for a component of the application.

    Works before initialize_logging(); records are then handled by whatever
    the process has configured.
    """
    if _logger_instance is not None:
        return _logger_instance.get_logger(name or 'main')
    return logging.getLogger(f"{APP_NAME}.{name}" if name else APP_NAME)


def initialize_logging(log_dir: str = "logs", level: int = logging.INFO) -> ArchiveLogger:
    """
    Initialize the global logging system.

    Args:
        log_dir: Directory for log files
        level: Console logging level
    """
    global _logger_instance
    _logger_instance = ArchiveLogger(log_dir)
    _logger_instance.setup_logger(level)
    _logger_instance.log_system_info()
    return _logger_instance


def create_error_tracker(logger_name: str = None) -> ErrorTracker:
    """
    Create an error tracker instance.

    Args:
        logger_name: Name of the logger to use
    """
    return ErrorTracker(get_logger(logger_name))
