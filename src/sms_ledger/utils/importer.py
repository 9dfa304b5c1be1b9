"""Batch import of message backlogs into a transaction store.

Runs every message through the parsing pipeline, removes repeats inside
the batch and hands the remaining transactions to the store of one owner.
Only counts are reported back, never per-message reasons.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from ..exceptions import MalformedMessageError, StoreError
from ..models.core import InboundMessage, ParsedTransaction
from ..parsers.message_loader import MessageLoader
from ..parsers.sms_parser import SMSParser
from .duplicate_detector import DuplicateDetector
from .error_handler import ErrorHandler, handle_message_error, handle_storage_error
from .processing_tracker import BatchProcessingSummary, ProcessingTracker
from .transaction_store import TransactionStore


logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    """Counts of one import run"""
    parsed: int = 0
    failed: int = 0
    imported: int = 0
    duplicates: int = 0
    transactions: List[ParsedTransaction] = field(default_factory=list)
    summary: Optional[BatchProcessingSummary] = None

    def counts(self) -> dict:
        return {
            'parsed': self.parsed,
            'failed': self.failed,
            'imported': self.imported,
            'duplicates': self.duplicates,
        }


class TransactionImporter:
    """Parses a batch of messages and stores the results for one owner.

    With ``use_fuzzy_matching`` a bank alert and the UPI app alert for the
    same payment are stored once; otherwise only identical ``raw_source``
    keys count as repeats.
    """

    def __init__(self, parser: SMSParser, store: TransactionStore,
                 error_handler: Optional[ErrorHandler] = None,
                 tracker: Optional[ProcessingTracker] = None,
                 use_fuzzy_matching: bool = False):
        self.parser = parser
        self.use_fuzzy_matching = use_fuzzy_matching
        self.store = store
        self.error_handler = error_handler
        self.tracker = tracker or ProcessingTracker(error_handler=error_handler)
        self.duplicate_detector = DuplicateDetector()
        self.loader = MessageLoader()

    def import_messages(self, owner_id: str, messages: Iterable[InboundMessage],
                        source: str = '') -> ImportResult:
        """Parse and store a batch of messages for an owner"""
        result = ImportResult()
        self.tracker.start_batch(source)

        parsed = []
        for index, message in enumerate(messages):
            try:
                outcome = self.parser.parse_message(message)
            except MalformedMessageError as e:
                result.failed += 1
                self.tracker.record_failure()
                if self.error_handler:
                    handle_message_error(self.error_handler, source, index, e)
                else:
                    logger.warning(f"Skipping malformed message #{index}: {e}")
                continue

            self.tracker.record_outcome(outcome)
            if outcome.parsed:
                result.parsed += 1
                parsed.append(outcome.transaction)
            else:
                result.failed += 1
                if self.error_handler:
                    self.error_handler.log_dropped_message(outcome, source, index)

        unique, stats = self.duplicate_detector.deduplicate_transactions(
            parsed, use_fuzzy_matching=self.use_fuzzy_matching
        )
        result.duplicates += stats['total_duplicates_removed']

        for transaction in unique:
            try:
                saved = self.store.save(owner_id, transaction)
            except StoreError as e:
                if self.error_handler is None:
                    raise
                handle_storage_error(self.error_handler, owner_id, e, transaction.raw_source)
                continue

            if saved:
                result.imported += 1
                result.transactions.append(transaction)
            else:
                result.duplicates += 1

        result.summary = self.tracker.finish_batch(result.imported, result.duplicates)
        logger.info(
            f"Imported {result.imported} of {result.parsed} parsed messages for {owner_id} "
            f"({result.failed} failed, {result.duplicates} duplicates)"
        )
        return result

    def import_file(self, owner_id: str, file_path: str) -> ImportResult:
        """Load a CSV or JSON message export and import it"""
        messages = self.loader.load(file_path)
        return self.import_messages(owner_id, messages, source=file_path)
