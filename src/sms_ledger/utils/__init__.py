"""Utility functions and helpers"""

from .validation import ValidationEngine
from .csv_writer import CSVWriter, STANDARD_HEADERS
from .config_manager import ConfigManager
from .error_handler import ErrorHandler, ErrorCategory, ErrorSeverity, handle_file_access_error, handle_message_error, handle_storage_error
from .duplicate_detector import DuplicateDetector
from .transaction_store import TransactionStore, InMemoryTransactionStore, CSVTransactionStore
from .processing_tracker import ProcessingTracker, BatchProcessingSummary
from .importer import TransactionImporter, ImportResult

__all__ = [
    'ValidationEngine',
    'CSVWriter',
    'STANDARD_HEADERS',
    'ConfigManager',
    'ErrorHandler',
    'ErrorCategory',
    'ErrorSeverity',
    'handle_file_access_error',
    'handle_message_error',
    'handle_storage_error',
    'DuplicateDetector',
    'TransactionStore',
    'InMemoryTransactionStore',
    'CSVTransactionStore',
    'ProcessingTracker',
    'BatchProcessingSummary',
    'TransactionImporter',
    'ImportResult',
]
