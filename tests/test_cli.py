"""Tests for the command-line interface."""

import json
import os

from click.testing import CliRunner

from sms_ledger.cli import cli

from conftest import (
    CHIT_CHAT,
    GPAY_PAID,
    HDFC_DEBIT,
    HDFC_PHONEPE_DEBIT,
    LOTTERY_SPAM,
    PHONEPE_PAID,
)


class TestCLI:
    """Test cases for the sms-ledger commands"""

    def setup_method(self):
        """Set up test fixtures"""
        self.runner = CliRunner()

    def test_parse_prints_transaction(self):
        with self.runner.isolated_filesystem():
            result = self.runner.invoke(cli, ['parse', GPAY_PAID, '--sender', 'GPAY'])

        assert result.exit_code == 0
        assert '"counterparty": "Zomato"' in result.output
        assert '"raw_source": "sms_gpay_2525XXXX"' in result.output

    def test_parse_reports_dropped_message(self):
        with self.runner.isolated_filesystem():
            result = self.runner.invoke(cli, ['parse', LOTTERY_SPAM, '-s', 'PROMO'])

        assert result.exit_code == 0
        assert "No transaction (spam)" in result.output

    def test_batch_import(self):
        with self.runner.isolated_filesystem():
            with open('sms.json', 'w', encoding='utf-8') as f:
                json.dump([
                    {"body": HDFC_DEBIT, "sender": "VM-HDFCBK", "date": "2025-07-21 10:30:00"},
                    {"body": GPAY_PAID, "sender": "GPAY"},
                    {"body": LOTTERY_SPAM, "sender": "PROMO"},
                    {"body": CHIT_CHAT, "sender": "FRIEND"},
                ], f)

            result = self.runner.invoke(
                cli, ['batch', 'sms.json', '--owner', 'alice', '-d', 'store', '-r', 'report.json']
            )

            assert result.exit_code == 0
            assert "✓ Batch parse completed" in result.output
            assert "Parsed: 2" in result.output
            assert "Failed: 2" in result.output
            assert "Imported: 2" in result.output
            assert os.path.exists(os.path.join('store', 'alice', 'transactions.csv'))
            assert os.path.exists('report.json')

            result = self.runner.invoke(cli, ['batch', 'sms.json', '--owner', 'alice', '-d', 'store'])
            assert "Imported: 0" in result.output
            assert "Duplicates: 2" in result.output

    def test_batch_fuzzy_flag(self):
        with self.runner.isolated_filesystem():
            with open('sms.json', 'w', encoding='utf-8') as f:
                json.dump([
                    {"body": HDFC_PHONEPE_DEBIT, "sender": "HDFCBK", "date": "2025-07-21 10:30:00"},
                    {"body": PHONEPE_PAID, "sender": "PhonePe", "date": "2025-07-21 10:30:20"},
                ], f)

            exact = self.runner.invoke(cli, ['batch', 'sms.json', '--owner', 'bob', '-d', 'exact'])
            fuzzy = self.runner.invoke(
                cli, ['batch', 'sms.json', '--owner', 'bob', '-d', 'fuzzy', '--fuzzy']
            )

        assert "Imported: 2" in exact.output
        assert fuzzy.exit_code == 0
        assert "Imported: 1" in fuzzy.output
        assert "Duplicates: 1" in fuzzy.output

    def test_batch_missing_file(self):
        with self.runner.isolated_filesystem():
            result = self.runner.invoke(cli, ['batch', 'missing.csv', '--owner', 'alice'])

        assert result.exit_code == 1
        assert "Input file not found" in result.output

    def test_init_and_show_config(self):
        with self.runner.isolated_filesystem():
            result = self.runner.invoke(cli, ['init-config'])
            assert result.exit_code == 0
            assert os.path.exists('sms_ledger.json')

            result = self.runner.invoke(cli, ['init-config', 'custom', '--format', 'yaml'])
            assert os.path.exists('custom.yml')

            result = self.runner.invoke(cli, ['-c', 'custom.yml', 'show-config'])

        assert result.exit_code == 0
        assert "Institution order: SBI, HDFC" in result.output
        assert "Pattern sets: hdfc, sbi, icici" in result.output
        assert "1. Food & Dining" in result.output
