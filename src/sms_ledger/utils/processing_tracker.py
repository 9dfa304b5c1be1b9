"""Batch outcome tracking and summary reporting."""

import json
import logging
from dataclasses import dataclass, asdict, field
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Dict, Optional, Any

from ..models.core import ParseOutcome
from .error_handler import ErrorHandler


logger = logging.getLogger(__name__)


@dataclass
class BatchProcessingSummary:
    """Summary of one batch parse"""
    source: str
    start_time: str
    end_time: str
    total_duration: float
    total_messages: int
    parsed: int
    failed: int
    imported: int
    duplicates: int
    success_rate: float
    outcomes: Dict[str, int] = field(default_factory=dict)
    institution_summary: Dict[str, int] = field(default_factory=dict)
    category_summary: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    errors_by_category: Dict[str, int] = field(default_factory=dict)
    warnings_by_category: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return asdict(self)


class ProcessingTracker:
    """Accumulates per-message outcomes of a batch and reports on them"""

    def __init__(self, report_directory: str = "logs",
                 error_handler: Optional[ErrorHandler] = None):
        self.report_directory = Path(report_directory)
        self.error_handler = error_handler
        self.reset()

    def reset(self):
        self.source = ''
        self.batch_start_time: Optional[datetime] = None
        self.outcomes: Dict[str, int] = {}
        self.institution_stats: Dict[str, int] = {}
        self.category_stats: Dict[str, Dict[str, Any]] = {}
        self.total_messages = 0
        self.parsed = 0

    def start_batch(self, source: str = ''):
        self.reset()
        self.source = source
        self.batch_start_time = datetime.now()

    def record_outcome(self, outcome: ParseOutcome):
        """Fold one pipeline outcome into the running statistics"""
        if self.batch_start_time is None:
            self.start_batch()

        self.total_messages += 1
        status = outcome.status.value
        self.outcomes[status] = self.outcomes.get(status, 0) + 1

        institution = outcome.institution.value
        self.institution_stats[institution] = self.institution_stats.get(institution, 0) + 1

        if outcome.parsed:
            self.parsed += 1
            transaction = outcome.transaction
            stats = self.category_stats.setdefault(
                transaction.category, {'count': 0, 'total_amount': Decimal('0')}
            )
            stats['count'] += 1
            stats['total_amount'] += transaction.amount

    def record_failure(self, reason: str = 'malformed'):
        """Count a message that never reached the pipeline"""
        if self.batch_start_time is None:
            self.start_batch()
        self.total_messages += 1
        self.outcomes[reason] = self.outcomes.get(reason, 0) + 1

    def finish_batch(self, imported: int = 0, duplicates: int = 0) -> BatchProcessingSummary:
        """Build the summary of the batch recorded so far"""
        start = self.batch_start_time or datetime.now()
        end = datetime.now()

        error_summary = self.error_handler.get_error_summary() if self.error_handler else {}
        failed = self.total_messages - self.parsed

        return BatchProcessingSummary(
            source=self.source,
            start_time=start.isoformat(),
            end_time=end.isoformat(),
            total_duration=(end - start).total_seconds(),
            total_messages=self.total_messages,
            parsed=self.parsed,
            failed=failed,
            imported=imported,
            duplicates=duplicates,
            success_rate=(self.parsed / self.total_messages * 100) if self.total_messages else 0.0,
            outcomes=dict(self.outcomes),
            institution_summary=dict(self.institution_stats),
            category_summary={
                name: {'count': stats['count'], 'total_amount': str(stats['total_amount'])}
                for name, stats in self.category_stats.items()
            },
            errors_by_category=error_summary.get('errors_by_category', {}),
            warnings_by_category=error_summary.get('warnings_by_category', {}),
        )

    def save_batch_report(self, summary: BatchProcessingSummary,
                          output_file: Optional[str] = None) -> str:
        """Write a batch summary as JSON and return its path"""
        if output_file is None:
            self.report_directory.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now().strftime('%Y%m%d_%H%M%S')
            output_file = str(self.report_directory / f"batch_report_{stamp}.json")
        else:
            Path(output_file).parent.mkdir(parents=True, exist_ok=True)

        with open(output_file, 'w', encoding='utf-8') as f:
            json.dump(summary.to_dict(), f, indent=2, default=str)

        logger.info(f"Batch report saved to {output_file}")
        return output_file
