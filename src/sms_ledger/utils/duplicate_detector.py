"""Duplicate detection for parsed transactions."""

import hashlib
import logging
from typing import List, Dict, Tuple

from ..models.core import ParsedTransaction


logger = logging.getLogger(__name__)


class DuplicateDetector:
    """Detects repeated transactions within a batch.

    The exact strategy compares ``raw_source`` keys, which is what the
    store uses to refuse double imports. The fuzzy strategy also catches
    one payment reported twice, e.g. by the bank and by the UPI app, by
    comparing the reference number or, without one, amount, direction and
    minute.
    """

    def detect_duplicates(self, transactions: List[ParsedTransaction],
                          use_fuzzy_matching: bool = False) -> Dict[str, List[ParsedTransaction]]:
        """
        Group duplicate transactions by signature

        Args:
            transactions: Transactions to check
            use_fuzzy_matching: Match on payment details instead of raw_source

        Returns:
            Dictionary mapping signature to the transactions sharing it, only
            for signatures seen more than once
        """
        signature_groups: Dict[str, List[ParsedTransaction]] = {}

        for transaction in transactions:
            signature = self.generate_signature(transaction, fuzzy=use_fuzzy_matching)
            signature_groups.setdefault(signature, []).append(transaction)

        return {sig: txns for sig, txns in signature_groups.items() if len(txns) > 1}

    def deduplicate_transactions(self, transactions: List[ParsedTransaction],
                                 use_fuzzy_matching: bool = False
                                 ) -> Tuple[List[ParsedTransaction], Dict[str, int]]:
        """
        Drop repeats, keeping the first occurrence of each signature

        Returns:
            Tuple of (deduplicated_transactions, duplicate_stats)
        """
        seen = set()
        unique = []
        for transaction in transactions:
            signature = self.generate_signature(transaction, fuzzy=use_fuzzy_matching)
            if signature in seen:
                logger.debug(f"Dropping duplicate {transaction.raw_source}")
                continue
            seen.add(signature)
            unique.append(transaction)

        stats = {
            'total_input_transactions': len(transactions),
            'total_duplicates_removed': len(transactions) - len(unique),
            'final_transaction_count': len(unique)
        }
        return unique, stats

    def generate_signature(self, transaction: ParsedTransaction, fuzzy: bool = False) -> str:
        if not fuzzy:
            return f"src:{transaction.raw_source}"

        if transaction.reference:
            return f"ref:{transaction.reference}"

        signature_data = "|".join([
            f"{transaction.amount:.2f}",
            transaction.direction.value,
            transaction.occurred_at.strftime('%Y%m%d%H%M'),
        ])
        return f"sig:{hashlib.md5(signature_data.encode('utf-8')).hexdigest()[:12]}"
