"""Shared message fixtures for the test suite."""

from datetime import datetime

import pytest

from sms_ledger.models.core import InboundMessage
from sms_ledger.parsers.sms_parser import SMSParser


HDFC_DEBIT = (
    "INR 250.00 has been debited from your A/c XXXX1234 on 21-Jul-25 "
    "towards UPI/swiggy@okaxis. Bal: INR 5,320.00"
)
HDFC_CREDIT = (
    "INR 1,250.50 credited to your A/c XXXX1234 on 21-Jul-25 "
    "by UPI/rahul@okhdfcbank. Bal: INR 6,570.50"
)
GPAY_PAID = "You paid ₹200 to Zomato using UPI. UPI Ref no 2525XXXX. - Google Pay"
PHONEPE_PAID = "₹150 paid to Zomato via PhonePe UPI"
# Bank side of the PhonePe payment above
HDFC_PHONEPE_DEBIT = "INR 150.00 debited from A/c XX1234 towards UPI/zomato@ybl"
PAYTM_RECEIVED = "₹300 received from John Doe via Paytm UPI. Ref: PTM123456789"
SBI_DEBIT = (
    "Dear Customer, Rs.100.00 debited from A/c X1234 on 21Jul25 via UPI to "
    "zomato@paytm. Ref No 519112345678. Avl Bal Rs.4,567.89 -SBI"
)
ICICI_DEBIT = (
    "ICICI Bank Acct XX123 debited for Rs 250.00 on 21-Jul-25; "
    "swiggy@icici credited. Avl Bal Rs 2,345.67"
)
SBI_HIGH_VALUE = "Rs. 15000 debited UPI/unknownvendor@bank"
LOTTERY_SPAM = "CONGRATULATIONS! You have WON a lottery prize, claim now!"
CHIT_CHAT = "hello how are you"


@pytest.fixture
def parser():
    return SMSParser()


@pytest.fixture
def received_at():
    return datetime(2025, 7, 21, 10, 30)


@pytest.fixture
def sample_messages(received_at):
    """A small backlog: two parseable alerts, one spam, one chit-chat"""
    return [
        InboundMessage(body=HDFC_DEBIT, sender="VM-HDFCBK", received_at=received_at),
        InboundMessage(body=GPAY_PAID, sender="GPAY", received_at=received_at),
        InboundMessage(body=LOTTERY_SPAM, sender="PROMO"),
        InboundMessage(body=CHIT_CHAT, sender="FRIEND"),
    ]
