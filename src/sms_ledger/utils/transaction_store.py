"""Persistence collaborators that receive parsed transactions per owner."""

import csv
import logging
import os
import re
from abc import ABC, abstractmethod
from decimal import InvalidOperation
from typing import Dict, List, Tuple

from ..exceptions import StoreError
from ..models.core import ParsedTransaction
from ..parsers.categorizer import Categorizer
from .csv_writer import CSVWriter


logger = logging.getLogger(__name__)


class TransactionStore(ABC):
    """Owner-keyed storage that refuses a second record with the same raw_source"""

    @abstractmethod
    def save(self, owner_id: str, transaction: ParsedTransaction) -> bool:
        """Store a transaction; return False if its raw_source is already stored"""
        pass

    @abstractmethod
    def exists(self, owner_id: str, raw_source: str) -> bool:
        pass

    @abstractmethod
    def list_transactions(self, owner_id: str) -> List[ParsedTransaction]:
        """All stored transactions of an owner, oldest first"""
        pass

    @abstractmethod
    def update_category(self, owner_id: str, raw_source: str, category: str) -> ParsedTransaction:
        """Reassign the category of a stored transaction and return the updated copy"""
        pass

    def save_many(self, owner_id: str, transactions: List[ParsedTransaction]) -> Tuple[int, int]:
        """Store several transactions; return (saved, duplicates)"""
        saved = duplicates = 0
        for transaction in transactions:
            if self.save(owner_id, transaction):
                saved += 1
            else:
                duplicates += 1
        return saved, duplicates

    @staticmethod
    def _check_category(category: str) -> None:
        if category not in Categorizer.CATEGORIES:
            raise ValueError(f"Unknown category: {category}")


class InMemoryTransactionStore(TransactionStore):
    """Dictionary backed store, mostly for tests and library callers"""

    def __init__(self):
        self._records: Dict[str, Dict[str, ParsedTransaction]] = {}

    def save(self, owner_id: str, transaction: ParsedTransaction) -> bool:
        records = self._records.setdefault(owner_id, {})
        if transaction.raw_source in records:
            return False
        records[transaction.raw_source] = transaction
        return True

    def exists(self, owner_id: str, raw_source: str) -> bool:
        return raw_source in self._records.get(owner_id, {})

    def list_transactions(self, owner_id: str) -> List[ParsedTransaction]:
        return sorted(self._records.get(owner_id, {}).values(), key=lambda t: t.occurred_at)

    def update_category(self, owner_id: str, raw_source: str, category: str) -> ParsedTransaction:
        self._check_category(category)
        records = self._records.get(owner_id, {})
        if raw_source not in records:
            raise StoreError("Transaction not found", owner_id=owner_id, raw_source=raw_source)
        updated = records[raw_source].with_category(category)
        records[raw_source] = updated
        return updated


class CSVTransactionStore(TransactionStore):
    """Stores each owner's transactions in <data_directory>/<owner_id>/transactions.csv"""

    FILENAME = 'transactions.csv'

    def __init__(self, data_directory: str = 'data'):
        self.data_directory = data_directory
        self.writer = CSVWriter()
        self._known_sources: Dict[str, set] = {}

    def path_for(self, owner_id: str) -> str:
        owner = str(owner_id).strip()
        if not owner or not re.fullmatch(r'[\w.\-@]+', owner) or owner in ('.', '..'):
            raise StoreError("Invalid owner id", owner_id=str(owner_id))
        return os.path.join(self.data_directory, owner, self.FILENAME)

    def _load(self, owner_id: str) -> List[ParsedTransaction]:
        path = self.path_for(owner_id)
        try:
            return self.writer.read_transactions(path)
        except (OSError, csv.Error, KeyError, ValueError, InvalidOperation) as e:
            raise StoreError(f"Cannot read {path}: {e}", owner_id=owner_id) from e

    def _sources(self, owner_id: str) -> set:
        if owner_id not in self._known_sources:
            self._known_sources[owner_id] = {t.raw_source for t in self._load(owner_id)}
        return self._known_sources[owner_id]

    def save(self, owner_id: str, transaction: ParsedTransaction) -> bool:
        sources = self._sources(owner_id)
        if transaction.raw_source in sources:
            logger.debug(f"Skipping already stored {transaction.raw_source}")
            return False

        if not self.writer.write_transactions([transaction], self.path_for(owner_id), append=True):
            raise StoreError("Write failed", owner_id=owner_id, raw_source=transaction.raw_source)
        sources.add(transaction.raw_source)
        return True

    def exists(self, owner_id: str, raw_source: str) -> bool:
        return raw_source in self._sources(owner_id)

    def list_transactions(self, owner_id: str) -> List[ParsedTransaction]:
        return sorted(self._load(owner_id), key=lambda t: t.occurred_at)

    def update_category(self, owner_id: str, raw_source: str, category: str) -> ParsedTransaction:
        self._check_category(category)
        transactions = self._load(owner_id)

        updated = None
        for index, transaction in enumerate(transactions):
            if transaction.raw_source == raw_source:
                updated = transaction.with_category(category)
                transactions[index] = updated
                break

        if updated is None:
            raise StoreError("Transaction not found", owner_id=owner_id, raw_source=raw_source)

        if not self.writer.write_transactions(transactions, self.path_for(owner_id)):
            raise StoreError("Write failed", owner_id=owner_id, raw_source=raw_source)
        return updated
