"""Package level smoke tests."""

import sms_ledger
from sms_ledger import ParsedTransaction, parse


def test_version():
    """Test that version is defined"""
    assert sms_ledger.__version__ == "0.1.0"


def test_module_level_parse():
    """Test that the shared default parser is reachable from the package"""
    transaction = parse("Rs. 15000 debited UPI/unknownvendor@bank", "SBI")
    assert isinstance(transaction, ParsedTransaction)
    assert parse("hello how are you", "FRIEND") is None
