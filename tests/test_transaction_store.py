"""Tests for transaction stores and the batch importer."""

from datetime import datetime
from decimal import Decimal

import pytest

from sms_ledger.exceptions import StoreError
from sms_ledger.models.core import InboundMessage
from sms_ledger.parsers.sms_parser import SMSParser
from sms_ledger.utils.importer import TransactionImporter
from sms_ledger.utils.transaction_store import CSVTransactionStore, InMemoryTransactionStore
from sms_ledger.utils.validation import ValidationEngine

from conftest import GPAY_PAID, HDFC_DEBIT, HDFC_PHONEPE_DEBIT, PAYTM_RECEIVED, PHONEPE_PAID


RECEIVED_AT = datetime(2025, 7, 21, 10, 30)


def _transactions():
    parser = SMSParser()
    return [
        parser.parse(HDFC_DEBIT, "HDFC", RECEIVED_AT),
        parser.parse(GPAY_PAID, "GPAY", datetime(2025, 7, 20, 9, 0)),
    ]


class TestInMemoryTransactionStore:

    def setup_method(self):
        self.store = InMemoryTransactionStore()
        self.transactions = _transactions()

    def test_save_refuses_duplicate(self):
        assert self.store.save('alice', self.transactions[0])
        assert not self.store.save('alice', self.transactions[0])
        assert self.store.exists('alice', self.transactions[0].raw_source)

    def test_owners_are_separate(self):
        self.store.save('alice', self.transactions[0])

        assert self.store.save('bob', self.transactions[0])
        assert not self.store.exists('carol', self.transactions[0].raw_source)

    def test_list_oldest_first(self):
        self.store.save_many('alice', self.transactions)

        listed = self.store.list_transactions('alice')
        assert [t.raw_source for t in listed] == [
            self.transactions[1].raw_source, self.transactions[0].raw_source
        ]

    def test_save_many_counts(self):
        assert self.store.save_many('alice', self.transactions + self.transactions) == (2, 2)

    def test_update_category(self):
        self.store.save('alice', self.transactions[0])

        updated = self.store.update_category('alice', self.transactions[0].raw_source, 'Shopping')

        assert updated.category == 'Shopping'
        assert self.transactions[0].category == 'Food & Dining'
        assert self.store.list_transactions('alice')[0].category == 'Shopping'

    def test_update_category_errors(self):
        self.store.save('alice', self.transactions[0])

        with pytest.raises(ValueError):
            self.store.update_category('alice', self.transactions[0].raw_source, 'Groceries')
        with pytest.raises(StoreError):
            self.store.update_category('alice', 'sms_hdfc_missing', 'Shopping')


class TestCSVTransactionStore:
    """Test cases for the CSV backed store"""

    def test_round_trip(self, tmp_path):
        store = CSVTransactionStore(str(tmp_path))
        transactions = _transactions()
        store.save_many('alice', transactions)

        reloaded = CSVTransactionStore(str(tmp_path)).list_transactions('alice')

        assert reloaded == sorted(transactions, key=lambda t: t.occurred_at)
        assert reloaded[1].balance == Decimal('5320.00')

    def test_duplicates_survive_restart(self, tmp_path):
        transaction = _transactions()[0]
        assert CSVTransactionStore(str(tmp_path)).save('alice', transaction)

        store = CSVTransactionStore(str(tmp_path))
        assert store.exists('alice', transaction.raw_source)
        assert not store.save('alice', transaction)

    def test_output_file_is_valid(self, tmp_path):
        store = CSVTransactionStore(str(tmp_path))
        store.save_many('alice', _transactions())

        assert ValidationEngine().validate_csv_output(store.path_for('alice')) == []

    def test_update_category_rewrites_file(self, tmp_path):
        store = CSVTransactionStore(str(tmp_path))
        transaction = _transactions()[0]
        store.save('alice', transaction)

        store.update_category('alice', transaction.raw_source, 'EMI/Rent')

        reloaded = CSVTransactionStore(str(tmp_path)).list_transactions('alice')
        assert [t.category for t in reloaded] == ['EMI/Rent']

    @pytest.mark.parametrize("owner", ["", "..", "../evil", "a/b"])
    def test_invalid_owner(self, tmp_path, owner):
        with pytest.raises(StoreError):
            CSVTransactionStore(str(tmp_path)).path_for(owner)


class TestTransactionImporter:

    def setup_method(self):
        self.store = InMemoryTransactionStore()
        self.importer = TransactionImporter(SMSParser(), self.store)

    def test_import_counts(self, sample_messages):
        result = self.importer.import_messages('alice', sample_messages)

        assert result.counts() == {'parsed': 2, 'failed': 2, 'imported': 2, 'duplicates': 0}
        assert len(self.store.list_transactions('alice')) == 2
        assert result.summary.total_messages == 4

    def test_reimport_only_reports_duplicates(self, sample_messages):
        self.importer.import_messages('alice', sample_messages)
        result = self.importer.import_messages('alice', sample_messages)

        assert result.imported == 0
        assert result.duplicates == 2

    def test_repeats_within_batch(self):
        message = InboundMessage(body=PAYTM_RECEIVED, sender="PAYTM")
        result = self.importer.import_messages('alice', [message, message])

        assert result.parsed == 2
        assert result.imported == 1
        assert result.duplicates == 1

    def test_bank_and_app_alert_kept_without_fuzzy(self, received_at):
        messages = [
            InboundMessage(body=HDFC_PHONEPE_DEBIT, sender="HDFCBK", received_at=received_at),
            InboundMessage(body=PHONEPE_PAID, sender="PhonePe", received_at=received_at),
        ]
        result = self.importer.import_messages('alice', messages)

        assert result.imported == 2
        assert result.duplicates == 0

    def test_fuzzy_collapses_bank_and_app_alert(self, received_at):
        importer = TransactionImporter(SMSParser(), self.store, use_fuzzy_matching=True)
        messages = [
            InboundMessage(body=HDFC_PHONEPE_DEBIT, sender="HDFCBK", received_at=received_at),
            InboundMessage(body=PHONEPE_PAID, sender="PhonePe", received_at=received_at),
        ]
        result = importer.import_messages('alice', messages)

        assert result.counts() == {'parsed': 2, 'failed': 0, 'imported': 1, 'duplicates': 1}
        stored = self.store.list_transactions('alice')
        assert [t.raw_source for t in stored] == ['sms_hdfc_150.00_202507211030']

    def test_malformed_message_counted_as_failed(self):
        messages = [
            InboundMessage(body=None, sender="HDFC"),
            InboundMessage(body=PAYTM_RECEIVED, sender="PAYTM"),
        ]
        result = self.importer.import_messages('alice', messages)

        assert result.failed == 1
        assert result.imported == 1

    def test_store_error_propagates_without_handler(self, tmp_path):
        importer = TransactionImporter(SMSParser(), CSVTransactionStore(str(tmp_path)))

        with pytest.raises(StoreError):
            importer.import_messages('../evil', [InboundMessage(body=PAYTM_RECEIVED, sender="PAYTM")])
