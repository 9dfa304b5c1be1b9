"""CSV persistence of parsed transactions."""

import os
import csv
import logging
from typing import List, Dict

from ..models.core import ParsedTransaction


logger = logging.getLogger(__name__)


# Column order of every transactions file
STANDARD_HEADERS = [
    'occurred_at',
    'amount',
    'direction',
    'counterparty',
    'institution',
    'category',
    'raw_source',
    'upi_id',
    'balance',
    'account',
    'reference',
    'currency',
]


class CSVWriter:
    """Reads and writes transactions in the standard CSV layout"""

    STANDARD_HEADERS = STANDARD_HEADERS

    def write_transactions(self, transactions: List[ParsedTransaction], output_path: str,
                           append: bool = False) -> bool:
        """
        Write transactions to a CSV file

        Args:
            transactions: Transactions to write
            output_path: Path of the CSV file
            append: Add rows to an existing file instead of replacing it

        Returns:
            True if successful, False otherwise
        """
        output_dir = os.path.dirname(output_path)
        write_header = not (append and os.path.exists(output_path) and os.path.getsize(output_path) > 0)

        try:
            if output_dir:
                os.makedirs(output_dir, exist_ok=True)

            with open(output_path, 'a' if append else 'w', newline='', encoding='utf-8') as csvfile:
                writer = csv.DictWriter(csvfile, fieldnames=self.STANDARD_HEADERS)
                if write_header:
                    writer.writeheader()
                for transaction in transactions:
                    writer.writerow(self._transaction_to_dict(transaction))

            return True

        except (OSError, csv.Error) as e:
            logger.error(f"Error writing transactions to {output_path}: {e}")
            return False

    def read_transactions(self, csv_path: str) -> List[ParsedTransaction]:
        """Load transactions previously written by write_transactions"""
        if not os.path.exists(csv_path):
            return []

        with open(csv_path, 'r', newline='', encoding='utf-8') as csvfile:
            return [ParsedTransaction.from_dict(row) for row in csv.DictReader(csvfile)]

    def _transaction_to_dict(self, transaction: ParsedTransaction) -> Dict[str, str]:
        return transaction.to_dict()
