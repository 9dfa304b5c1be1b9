"""Validation engine for parsed transactions and stored CSV output."""

import csv
import os
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import List, Dict

from ..models.core import Direction, Institution, ParsedTransaction
from ..parsers.categorizer import Categorizer
from .csv_writer import STANDARD_HEADERS


class ValidationEngine:
    """Checks parsed transactions against the record invariants"""

    def __init__(self):
        self.csv_headers = list(STANDARD_HEADERS)
        self.categories = Categorizer.CATEGORIES

    def validate_transaction(self, transaction: ParsedTransaction) -> List[str]:
        """Validate individual transaction and return list of errors"""
        errors = []

        if not isinstance(transaction.amount, Decimal):
            errors.append("Invalid amount: must be Decimal object")
        elif transaction.amount <= 0:
            errors.append("Amount must be greater than zero")
        elif transaction.amount.as_tuple().exponent < -2:
            errors.append("Amount has more than 2 decimal places")

        if not isinstance(transaction.direction, Direction):
            errors.append("Direction must be debit or credit")

        if not isinstance(transaction.institution, Institution):
            errors.append("Institution must be an Institution tag")

        if not transaction.category or transaction.category not in self.categories:
            errors.append(f"Unknown category: {transaction.category!r}")

        if not transaction.counterparty or not str(transaction.counterparty).strip():
            errors.append("Counterparty cannot be empty (use 'Unknown')")

        if not isinstance(transaction.occurred_at, datetime):
            errors.append("Invalid occurred_at: must be datetime object")

        if not transaction.raw_source or not str(transaction.raw_source).startswith('sms_'):
            errors.append(f"Invalid raw_source: {transaction.raw_source!r}")

        if transaction.balance is not None and not isinstance(transaction.balance, Decimal):
            errors.append("Invalid balance: must be Decimal object or None")

        return errors

    def validate_csv_output(self, csv_path: str) -> List[str]:
        """Validate a stored transactions CSV file"""
        errors = []

        if not os.path.exists(csv_path):
            errors.append(f"CSV file does not exist: {csv_path}")
            return errors

        if os.path.getsize(csv_path) == 0:
            errors.append(f"CSV file is empty: {csv_path}")
            return errors

        try:
            with open(csv_path, 'r', encoding='utf-8', newline='') as file:
                reader = csv.DictReader(file)

                if not reader.fieldnames:
                    errors.append("CSV file has no headers")
                    return errors

                if list(reader.fieldnames) != self.csv_headers:
                    errors.append(
                        f"Invalid CSV headers. Expected: {self.csv_headers}, "
                        f"Got: {list(reader.fieldnames)}"
                    )

                seen_sources = set()
                for row_num, row in enumerate(reader, start=2):
                    errors.extend(self._validate_csv_row(row, row_num))

                    raw_source = row.get('raw_source', '')
                    if raw_source in seen_sources:
                        errors.append(f"Row {row_num}: Duplicate raw_source '{raw_source}'")
                    seen_sources.add(raw_source)

                    if len(errors) > 100:
                        errors.append("Too many errors, stopping validation")
                        break

        except UnicodeDecodeError:
            errors.append(f"CSV file encoding error: {csv_path}")
        except csv.Error as e:
            errors.append(f"CSV format error: {e}")

        return errors

    def _validate_csv_row(self, row: Dict[str, str], row_num: int) -> List[str]:
        errors = []

        occurred_at = (row.get('occurred_at') or '').strip()
        try:
            datetime.fromisoformat(occurred_at)
        except ValueError:
            errors.append(f"Row {row_num}: Invalid occurred_at '{occurred_at}'")

        amount_str = (row.get('amount') or '').strip()
        try:
            if Decimal(amount_str) <= 0:
                errors.append(f"Row {row_num}: Amount must be positive: {amount_str}")
        except InvalidOperation:
            errors.append(f"Row {row_num}: Invalid amount format '{amount_str}'")

        if row.get('direction') not in [d.value for d in Direction]:
            errors.append(f"Row {row_num}: Invalid direction '{row.get('direction')}'")

        if row.get('institution') not in [i.value for i in Institution]:
            errors.append(f"Row {row_num}: Invalid institution '{row.get('institution')}'")

        if row.get('category') not in self.categories:
            errors.append(f"Row {row_num}: Invalid category '{row.get('category')}'")

        balance_str = (row.get('balance') or '').strip()
        if balance_str:
            try:
                Decimal(balance_str)
            except InvalidOperation:
                errors.append(f"Row {row_num}: Invalid balance format '{balance_str}'")

        return errors
