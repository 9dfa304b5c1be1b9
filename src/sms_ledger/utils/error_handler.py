"""Structured error reporting and diagnostic logging for batch runs."""

import json
import logging
import sys
import traceback
from dataclasses import dataclass, asdict
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Any

from ..models.core import ParseOutcome, ParseStatus


class ErrorSeverity(Enum):
    WARNING = "warning"
    ERROR = "error"


class ErrorCategory(Enum):
    """Where in a run the problem was found"""
    MESSAGE_INPUT = "message_input"
    MESSAGE_PARSING = "message_parsing"
    DATA_VALIDATION = "data_validation"
    STORAGE = "storage"
    FILE_ACCESS = "file_access"
    SYSTEM = "system"


ERROR_CODES = {
    # Message input errors
    "MALFORMED_MESSAGE": "M001",

    # Message parsing outcomes
    "SPAM_REJECTED": "P001",
    "NO_PATTERN_MATCH": "P002",
    "INVALID_AMOUNT": "P003",

    # Data validation errors
    "INVALID_OUTPUT_FILE": "V001",

    # Storage errors
    "STORE_WRITE_FAILED": "S101",

    # File access errors
    "FILE_NOT_FOUND": "F001",
    "FILE_PERMISSION_DENIED": "F002",

    # System errors
    "UNEXPECTED_ERROR": "S999",
}

# Error types of the pipeline outcomes that drop a message
DROPPED_MESSAGE_TYPES = {
    ParseStatus.SPAM: "SPAM_REJECTED",
    ParseStatus.NO_MATCH: "NO_PATTERN_MATCH",
    ParseStatus.INVALID_AMOUNT: "INVALID_AMOUNT",
}


@dataclass
class ErrorDetail:
    """One recorded error or warning of a run"""
    timestamp: str
    severity: str
    category: str
    error_code: str
    message: str
    source: Optional[str] = None
    message_index: Optional[int] = None
    field_name: Optional[str] = None
    raw_value: Optional[str] = None
    stack_trace: Optional[str] = None
    context: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class JSONFormatter(logging.Formatter):
    """One JSON object per log record"""

    def format(self, record):
        log_entry = {
            'timestamp': datetime.fromtimestamp(record.created).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        for extra in ('error_code', 'category', 'source', 'context'):
            if hasattr(record, extra):
                log_entry[extra] = getattr(record, extra)

        return json.dumps(log_entry, default=str)


class ErrorHandler:
    """Collects errors and warnings of a batch run and writes them as JSON lines"""

    def __init__(self, log_directory: str = "logs", enable_console: bool = True):
        self.log_directory = Path(log_directory)
        self.log_directory.mkdir(parents=True, exist_ok=True)

        self.errors: List[ErrorDetail] = []
        self.warnings: List[ErrorDetail] = []
        self.error_codes = dict(ERROR_CODES)

        self._setup_logging(enable_console)

    def _setup_logging(self, enable_console: bool):
        self.logger = logging.getLogger('sms_ledger.diagnostics')
        self.logger.setLevel(logging.DEBUG)
        self.logger.propagate = False

        for handler in list(self.logger.handlers):
            handler.close()
        self.logger.handlers.clear()

        today = datetime.now().strftime('%Y%m%d')

        file_handler = logging.FileHandler(self.log_directory / f"parser_{today}.jsonl")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JSONFormatter())
        self.logger.addHandler(file_handler)

        if enable_console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(logging.INFO)
            console_handler.setFormatter(logging.Formatter('%(asctime)s - %(levelname)s - %(message)s'))
            self.logger.addHandler(console_handler)

        error_handler = logging.FileHandler(self.log_directory / f"errors_{today}.jsonl")
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(JSONFormatter())
        self.logger.addHandler(error_handler)

    def close(self):
        """Release the log file handles"""
        for handler in list(self.logger.handlers):
            handler.close()
            self.logger.removeHandler(handler)

    def _record(self, severity: ErrorSeverity, message: str, error_type: str,
                category: ErrorCategory, source: Optional[str] = None,
                message_index: Optional[int] = None, field_name: Optional[str] = None,
                raw_value: Optional[str] = None, exception: Optional[Exception] = None,
                context: Optional[Dict[str, Any]] = None) -> ErrorDetail:
        fallback = "S999" if severity is ErrorSeverity.ERROR else "W999"
        error_code = self.error_codes.get(error_type, fallback)

        stack_trace = None
        if exception is not None:
            stack_trace = ''.join(traceback.format_exception(
                type(exception), exception, exception.__traceback__
            ))

        detail = ErrorDetail(
            timestamp=datetime.now().isoformat(),
            severity=severity.value,
            category=category.value,
            error_code=error_code,
            message=message,
            source=source,
            message_index=message_index,
            field_name=field_name,
            raw_value=raw_value,
            stack_trace=stack_trace,
            context=context or {}
        )

        extra = {
            'error_code': error_code,
            'category': category.value,
            'source': source,
            'context': context or {}
        }
        if severity is ErrorSeverity.ERROR:
            self.errors.append(detail)
            self.logger.error(message, extra=extra)
        else:
            self.warnings.append(detail)
            self.logger.warning(message, extra=extra)

        return detail

    def log_error(self, message: str, error_type: str,
                  category: ErrorCategory = ErrorCategory.SYSTEM, **details) -> ErrorDetail:
        """Record an error; details are passed through to ErrorDetail"""
        return self._record(ErrorSeverity.ERROR, message, error_type, category, **details)

    def log_warning(self, message: str, warning_type: str,
                    category: ErrorCategory = ErrorCategory.SYSTEM, **details) -> ErrorDetail:
        """Record a warning; details are passed through to ErrorDetail"""
        return self._record(ErrorSeverity.WARNING, message, warning_type, category, **details)

    def log_info(self, message: str, context: Optional[Dict[str, Any]] = None):
        self.logger.info(message, extra={'context': context or {}})

    def log_dropped_message(self, outcome: ParseOutcome, source: str, message_index: int):
        """Write why a message produced no transaction to the diagnostics file.

        Logged at debug level only: not counted as a warning and not shown on
        the console.
        """
        error_type = DROPPED_MESSAGE_TYPES.get(outcome.status, "UNEXPECTED_ERROR")
        self.logger.debug(
            f"Dropped message #{message_index}: {outcome.reason}",
            extra={
                'error_code': self.error_codes[error_type],
                'category': ErrorCategory.MESSAGE_PARSING.value,
                'source': source,
                'context': {
                    'status': outcome.status.value,
                    'institution': outcome.institution.value,
                },
            }
        )

    def get_error_summary(self) -> Dict[str, Any]:
        """Counts of recorded errors and warnings per category"""
        errors_by_category: Dict[str, int] = {}
        warnings_by_category: Dict[str, int] = {}

        for error in self.errors:
            errors_by_category[error.category] = errors_by_category.get(error.category, 0) + 1
        for warning in self.warnings:
            warnings_by_category[warning.category] = warnings_by_category.get(warning.category, 0) + 1

        return {
            'total_errors': len(self.errors),
            'total_warnings': len(self.warnings),
            'errors_by_category': errors_by_category,
            'warnings_by_category': warnings_by_category,
            'most_common_errors': self._get_most_common_errors(),
        }

    def _get_most_common_errors(self, limit: int = 5) -> List[Dict[str, Any]]:
        counts: Dict[str, Dict[str, Any]] = {}
        for error in self.errors:
            key = f"{error.error_code}: {error.message}"
            if key not in counts:
                counts[key] = {
                    'error_code': error.error_code,
                    'message': error.message,
                    'category': error.category,
                    'count': 0
                }
            counts[key]['count'] += 1

        return sorted(counts.values(), key=lambda x: x['count'], reverse=True)[:limit]

    def generate_error_report(self, output_file: Optional[str] = None) -> str:
        """Write all collected errors and warnings to a JSON report"""
        if output_file is None:
            stamp = datetime.now().strftime('%Y%m%d_%H%M%S')
            output_file = str(self.log_directory / f"error_report_{stamp}.json")

        report = {
            'report_timestamp': datetime.now().isoformat(),
            'summary': self.get_error_summary(),
            'all_errors': [error.to_dict() for error in self.errors],
            'all_warnings': [warning.to_dict() for warning in self.warnings]
        }

        with open(output_file, 'w', encoding='utf-8') as f:
            json.dump(report, f, indent=2, default=str)

        self.log_info(f"Error report generated: {output_file}")
        return output_file

    def clear_errors(self):
        self.errors.clear()
        self.warnings.clear()

    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def has_warnings(self) -> bool:
        return len(self.warnings) > 0


# Shortcuts used by the importer and the CLI
def handle_file_access_error(error_handler: ErrorHandler,
                             file_path: str,
                             exception: Exception) -> ErrorDetail:
    """Record a backlog file that could not be opened"""
    if isinstance(exception, FileNotFoundError):
        error_type, message = "FILE_NOT_FOUND", f"File not found: {file_path}"
    elif isinstance(exception, PermissionError):
        error_type, message = "FILE_PERMISSION_DENIED", f"Permission denied accessing file: {file_path}"
    else:
        error_type, message = "UNEXPECTED_ERROR", f"File access error: {exception}"

    return error_handler.log_error(
        message, error_type, ErrorCategory.FILE_ACCESS,
        source=file_path, exception=exception
    )


def handle_message_error(error_handler: ErrorHandler,
                         source: str,
                         message_index: int,
                         exception: Exception,
                         raw_value: Optional[str] = None) -> ErrorDetail:
    """Handle a message that breaks the caller contract"""
    return error_handler.log_error(
        f"Malformed message #{message_index}: {exception}",
        "MALFORMED_MESSAGE",
        ErrorCategory.MESSAGE_INPUT,
        source=source,
        message_index=message_index,
        raw_value=raw_value,
        exception=exception
    )


def handle_storage_error(error_handler: ErrorHandler,
                         owner_id: str,
                         exception: Exception,
                         raw_source: Optional[str] = None) -> ErrorDetail:
    """Handle a failed handoff to the transaction store"""
    return error_handler.log_error(
        f"Could not store transaction for {owner_id}: {exception}",
        "STORE_WRITE_FAILED",
        ErrorCategory.STORAGE,
        source=owner_id,
        raw_value=raw_source,
        exception=exception
    )
