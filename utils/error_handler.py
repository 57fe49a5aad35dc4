"""
Error Handling Module for AESC Client

This module provides custom exceptions, a disk-space check and reporting
for the errors that can occur while logging in, fetching pages, extracting
statements and submitting solutions.
"""

import logging
import traceback
import functools
import shutil
from typing import Dict, Any, Optional, Callable, List
from enum import Enum
from dataclasses import dataclass, field
from datetime import datetime

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Error severity levels"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories for classification"""
    NETWORK = "network"
    URL_VALIDATION = "url_validation"
    CONTENT_MISSING = "content_missing"
    PARSING = "parsing"
    AUTHENTICATION = "authentication"
    FILE_SYSTEM = "file_system"
    SUBMISSION = "submission"
    UNKNOWN = "unknown"


@dataclass
class ErrorInfo:
    """Structured error information"""
    message: str
    category: ErrorCategory
    severity: ErrorSeverity
    original_exception: Optional[Exception] = None
    context: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)
    traceback_str: Optional[str] = None
    recovery_suggestions: List[str] = field(default_factory=list)
    user_message: Optional[str] = None


# =============================================================================
# Custom Exception Classes
# =============================================================================

class AescClientError(Exception):
    """Base exception for all AESC client specific errors"""

    def __init__(self, message: str, error_info: Optional[ErrorInfo] = None):
        super().__init__(message)
        self.error_info = error_info or ErrorInfo(
            message=message,
            category=ErrorCategory.UNKNOWN,
            severity=ErrorSeverity.MEDIUM
        )


class NetworkError(AescClientError):
    """Network-related errors (timeouts, connection failures, HTTP errors)"""

    def __init__(self, message: str, original_exception: Optional[Exception] = None,
                 url: Optional[str] = None, status_code: Optional[int] = None):
        context: Dict[str, Any] = {"url": url} if url else {}
        if status_code is not None:
            context["status_code"] = status_code
        error_info = ErrorInfo(
            message=message,
            category=ErrorCategory.NETWORK,
            severity=ErrorSeverity.HIGH,
            original_exception=original_exception,
            context=context,
            recovery_suggestions=[
                "Check internet connection",
                "Verify the judge server is reachable",
                "Check that the session cookies are still valid"
            ],
            user_message="Could not reach the judge server."
        )
        super().__init__(message, error_info)
        self.status_code = status_code


class URLValidationError(AescClientError):
    """Malformed or unsupported URL"""

    def __init__(self, message: str, url: Optional[str] = None):
        error_info = ErrorInfo(
            message=message,
            category=ErrorCategory.URL_VALIDATION,
            severity=ErrorSeverity.MEDIUM,
            context={"url": url} if url else {},
            recovery_suggestions=[
                "Check URL format",
                "Use an absolute http(s) URL"
            ],
            user_message="Please check the URL format."
        )
        super().__init__(message, error_info)


class ContentMissingError(AescClientError):
    """Page not found (404) or no usable content"""

    def __init__(self, message: str, url: Optional[str] = None, status_code: Optional[int] = None):
        error_info = ErrorInfo(
            message=message,
            category=ErrorCategory.CONTENT_MISSING,
            severity=ErrorSeverity.MEDIUM,
            context={"url": url, "status_code": status_code},
            recovery_suggestions=[
                "Verify the problem exists",
                "Check if the contest is still open",
                "Try the URL in a web browser"
            ],
            user_message="The requested page could not be found. Please verify the URL."
        )
        super().__init__(message, error_info)


class ParseError(AescClientError):
    """HTML document could not be parsed"""

    def __init__(self, message: str, original_exception: Optional[Exception] = None,
                 url: Optional[str] = None):
        error_info = ErrorInfo(
            message=message,
            category=ErrorCategory.PARSING,
            severity=ErrorSeverity.HIGH,
            original_exception=original_exception,
            context={"url": url} if url else {},
            traceback_str=traceback.format_exc() if original_exception else None
        )
        super().__init__(message, error_info)


class AuthenticationError(AescClientError):
    """Login failures and malformed credential files"""

    def __init__(self, message: str, status: Optional[str] = None,
                 url: Optional[str] = None):
        error_info = ErrorInfo(
            message=message,
            category=ErrorCategory.AUTHENTICATION,
            severity=ErrorSeverity.HIGH,
            context={"url": url, "status": status},
            recovery_suggestions=[
                "Check the login and password in the credentials file",
                "The credentials file must contain the login and the password on two lines"
            ],
            user_message="Authentication failed. Please check your credentials."
        )
        super().__init__(message, error_info)
        self.status = status


class FileSystemError(AescClientError):
    """File system related errors (permissions, disk space, etc.)"""

    def __init__(self, message: str, path: Optional[str] = None,
                 original_exception: Optional[Exception] = None):
        error_info = ErrorInfo(
            message=message,
            category=ErrorCategory.FILE_SYSTEM,
            severity=ErrorSeverity.HIGH,
            original_exception=original_exception,
            context={"path": path} if path else {},
            recovery_suggestions=[
                "Check file/directory permissions",
                "Ensure sufficient disk space",
                "Try a different output location"
            ],
            user_message="File system error occurred. Please check permissions and disk space."
        )
        super().__init__(message, error_info)


class SubmissionError(AescClientError):
    """Solution upload rejected by the server"""

    def __init__(self, message: str, status: Optional[str] = None,
                 url: Optional[str] = None):
        error_info = ErrorInfo(
            message=message,
            category=ErrorCategory.SUBMISSION,
            severity=ErrorSeverity.HIGH,
            context={"url": url, "status": status},
            recovery_suggestions=[
                "Check that you are logged in",
                "Verify the submission URL of the problem"
            ],
            user_message="The solution was not accepted by the server."
        )
        super().__init__(message, error_info)
        self.status = status


# =============================================================================
# Error Detection Utilities
# =============================================================================

class ErrorDetector:
    """Utilities for detecting specific types of errors"""

    @staticmethod
    def check_disk_space(path: str, required_mb: int = 50) -> bool:
        """Check if there's sufficient disk space"""
        try:
            free_bytes = shutil.disk_usage(path).free
        except OSError:
            return True  # Assume sufficient space if can't check
        return free_bytes / (1024 * 1024) >= required_mb


# =============================================================================
# Error Reporting
# =============================================================================

class ErrorReporter:
    """Centralized error reporting and logging"""

    def __init__(self):
        self.error_history: List[ErrorInfo] = []

    def report_error(self, error_info: Optional[ErrorInfo], context: Optional[Dict[str, Any]] = None):
        """Report an error with full context"""
        if error_info is None:
            return

        self.error_history.append(error_info)

        if error_info.severity == ErrorSeverity.CRITICAL:
            logger.critical(f"CRITICAL ERROR: {error_info.message}")
        elif error_info.severity == ErrorSeverity.HIGH:
            logger.error(f"ERROR: {error_info.message}")
        elif error_info.severity == ErrorSeverity.MEDIUM:
            logger.warning(f"WARNING: {error_info.message}")
        else:
            logger.info(f"INFO: {error_info.message}")

        if error_info.context:
            logger.debug(f"Context: {error_info.context}")

        if context:
            logger.debug(f"Additional context: {context}")

        if error_info.traceback_str:
            logger.debug(f"Traceback: {error_info.traceback_str}")

    def get_error_summary(self) -> Dict[str, Any]:
        """Get summary of all reported errors"""
        if not self.error_history:
            return {"total_errors": 0, "categories": {}, "severity_counts": {}}

        categories: Dict[str, int] = {}
        severity_counts: Dict[str, int] = {}

        for error in self.error_history:
            cat = error.category.value
            categories[cat] = categories.get(cat, 0) + 1

            sev = error.severity.value
            severity_counts[sev] = severity_counts.get(sev, 0) + 1

        return {
            "total_errors": len(self.error_history),
            "categories": categories,
            "severity_counts": severity_counts,
            "recent_errors": [
                {
                    "message": e.message,
                    "category": e.category.value,
                    "severity": e.severity.value,
                    "timestamp": e.timestamp.isoformat()
                }
                for e in self.error_history[-10:]
            ]
        }

    def clear(self):
        self.error_history.clear()


# =============================================================================
# Global Error Handler Instance
# =============================================================================

error_reporter = ErrorReporter()


def handle_exception(func: Callable) -> Callable:
    """Decorator to report exceptions and wrap unexpected ones"""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except AescClientError as e:
            error_reporter.report_error(e.error_info)
            raise
        except Exception as e:
            error_info = ErrorInfo(
                message=f"Unexpected error in {func.__name__}: {str(e)}",
                category=ErrorCategory.UNKNOWN,
                severity=ErrorSeverity.MEDIUM,
                original_exception=e,
                traceback_str=traceback.format_exc()
            )
            error_reporter.report_error(error_info)
            raise AescClientError(f"Unexpected error: {str(e)}", error_info) from e

    return wrapper
