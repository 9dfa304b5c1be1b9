"""Tests for the spam deny-list filter."""

from sms_ledger.parsers.spam_filter import SpamFilter


class TestSpamFilter:

    def setup_method(self):
        self.spam_filter = SpamFilter()

    def test_first_keyword_reported(self):
        assert self.spam_filter.check("Get FREE cashback on your next order") == 'free'

    def test_case_insensitive(self):
        assert self.spam_filter.is_spam("CLICK HERE to Verify your KYC")

    def test_transaction_alert_passes(self):
        assert not self.spam_filter.is_spam("INR 250.00 debited from A/c XX1234 UPI/swiggy@okaxis")

    def test_substring_match(self):
        # Keywords are substrings, not words
        assert self.spam_filter.check("Your account is unblocked") == 'blocked'

    def test_custom_keywords_replace_defaults(self):
        spam_filter = SpamFilter(['Casino'])

        assert spam_filter.is_spam("casino night tonight")
        assert not spam_filter.is_spam("You won a prize")

    def test_empty_list_disables_filter(self):
        spam_filter = SpamFilter([])
        assert spam_filter.check("CONGRATULATIONS winner") is None

    def test_none_body(self):
        assert self.spam_filter.check(None) is None
