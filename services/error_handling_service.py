"""
Error Handling Service
Centralized error processing, error types and user-friendly error messages.
"""

from datetime import datetime
from typing import Any, Optional
import traceback


class ErrorCategory:
    """Error categories for classification."""
    SYSTEM = "SYSTEM"
    DATA = "DATA"
    DATA_PROCESSING = "DATA_PROCESSING"
    API = "API"
    VALIDATION = "VALIDATION"


class DataChatError(Exception):
    """Base class for errors raised by the services package."""
    category = ErrorCategory.SYSTEM


class UnsupportedFileTypeError(DataChatError):
    """Uploaded file is neither CSV nor Excel."""
    category = ErrorCategory.DATA

    def __init__(self, filename: str = ""):
        self.filename = filename
        super().__init__("Unsupported file type. Please upload CSV or Excel files.")


class EmptyDatasetError(DataChatError):
    """Parsed file produced no rows."""
    category = ErrorCategory.DATA

    def __init__(self, message: str = "No data found in file"):
        super().__init__(message)


class AIBackendUnavailableError(DataChatError):
    """AI backend is not configured, unreachable, or returned unusable text."""
    category = ErrorCategory.API


class QueryExecutionError(DataChatError):
    """SQL execution failed; wraps the store's original message."""
    category = ErrorCategory.DATA_PROCESSING

    def __init__(self, original_message: str, sql: str = ""):
        self.original_message = original_message
        self.sql = sql
        super().__init__(f"SQL Error: {original_message}")


class NoColumnResolvedError(DataChatError):
    """No schema column matched; the enclosing intent pattern is skipped."""
    category = ErrorCategory.VALIDATION


class ErrorHandlingService:
    """Service for centralized error handling and processing."""

    @staticmethod
    def process_error(
        error: Exception,
        context: str = "",
        category: Optional[str] = None,
        user_message: Optional[str] = None,
        details: Optional[dict[str, Any]] = None
    ) -> dict[str, Any]:
        """
        Process and structure an error for logging and user display.

        Args:
            error: The exception that occurred
            context: Context where error occurred (e.g., "upload_file")
            category: Error category; defaults to the error's own category
            user_message: Optional user-friendly message override
            details: Additional error details

        Returns:
            Dictionary with error information
        """
        error_type = type(error).__name__
        error_message = str(error)

        if category is None:
            category = getattr(error, 'category', ErrorCategory.SYSTEM)

        # Generate user-friendly message if not provided
        if not user_message:
            user_message = ErrorHandlingService._generate_user_message(
                error, error_type, context
            )

        # Get stack trace for debugging
        stack_trace = traceback.format_exc()
        if stack_trace.strip() == "NoneType: None":
            stack_trace = ""

        error_info = {
            "message": error_message,
            "user_message": user_message,
            "type": error_type,
            "context": context,
            "category": category,
            "timestamp": datetime.now().isoformat(),
            "details": details or {},
            "stack_trace": stack_trace,
        }

        return error_info

    @staticmethod
    def _generate_user_message(
        error: Exception,
        error_type: str,
        context: str
    ) -> str:
        """
        Generate user-friendly error message based on error type.

        Our own errors already carry a readable message; library errors
        are mapped by keyword.
        """
        if isinstance(error, DataChatError):
            return str(error)

        error_msg = str(error).lower()

        # File/Data related errors
        if any(keyword in error_msg for keyword in [
            'excel', 'xlsx', 'xls', 'csv', 'parse', 'decode', 'tokenizing'
        ]):
            if 'corrupt' in error_msg or 'invalid' in error_msg:
                return "The file appears to be corrupted or invalid. Please try a different file."
            return "There was an error reading your file. Please ensure it's a valid CSV or Excel file."

        # API/Network errors
        if any(keyword in error_msg for keyword in [
            'api', 'request', 'timeout', 'connection', 'network'
        ]):
            return "AI service connection error. Please check your internet connection and try again."

        # Memory/Performance errors
        if any(keyword in error_msg for keyword in [
            'memory', 'out of memory', 'too large'
        ]):
            return "File is too large to process. Please try a smaller file or reduce the number of rows."

        type_messages = {
            'KeyError': "A required data field is missing.",
            'ValueError': "Invalid data value detected. Please check your input.",
            'TypeError': "Data type mismatch. Please verify your data format.",
            'UnicodeDecodeError': "The file encoding is not supported. Please save it as UTF-8.",
        }

        return type_messages.get(
            error_type,
            f"An error occurred while {context or 'processing your request'}. Please try again or check your data."
        )

    @staticmethod
    def log_error(
        error_info: dict[str, Any] | str | Exception,
        category: str = ErrorCategory.SYSTEM,
        log_level: str = "ERROR",
        context: str = "unknown"
    ) -> None:
        """
        Log error information.

        Args:
            error_info: Error dictionary from process_error, or message string, or Exception
            category: Error category (if error_info is string/Exception)
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
            context: Context label (if error_info is string/Exception)
        """
        if isinstance(error_info, Exception):
            error_info = ErrorHandlingService.process_error(
                error_info,
                context=context,
                category=category
            )
        elif isinstance(error_info, str):
            error_info = {
                "message": error_info,
                "type": "Error",
                "context": context,
                "category": category,
                "timestamp": datetime.now().isoformat(),
                "details": {},
                "stack_trace": ""
            }

        print(f"[{log_level}] {error_info['timestamp']} - {error_info['context']}: {error_info['message']}")
        if error_info.get('details'):
            print(f"Details: {error_info['details']}")
        if error_info.get('stack_trace') and log_level == "ERROR":
            print(f"Stack trace:\n{error_info['stack_trace']}")

    @staticmethod
    def display_error(
        error_info: dict[str, Any],
        show_details: bool = False
    ) -> str:
        """
        Generate error message for user display.

        Args:
            error_info: Error dictionary from process_error
            show_details: Whether to include technical details (for debugging)

        Returns:
            Formatted error message for display
        """
        message = error_info.get('user_message') or error_info['message']

        if show_details and error_info.get('details'):
            details_str = ", ".join([
                f"{k}: {v}" for k, v in error_info['details'].items()
            ])
            return f"{message} ({details_str})"

        return message


# Singleton instance (optional, for consistent state if needed)
_error_handling_service = ErrorHandlingService()

def get_error_handler() -> ErrorHandlingService:
    """Get the error handling service instance."""
    return _error_handling_service
