"""Tests for the template table and pattern extractor."""

import pytest

from sms_ledger.exceptions import ConfigurationError
from sms_ledger.models.core import Institution, Layout
from sms_ledger.parsers.patterns import (
    DEFAULT_PATTERNS,
    GENERIC,
    PatternExtractor,
    normalize_body,
)


class TestPatternTable:

    def test_every_template_has_three_groups(self):
        for name, descriptors in DEFAULT_PATTERNS.items():
            for descriptor in descriptors:
                assert descriptor.pattern.groups == 3, name
                assert isinstance(descriptor.layout, Layout)

    def test_generic_present(self):
        assert DEFAULT_PATTERNS[GENERIC]

    def test_normalize_body(self):
        assert normalize_body("  Rs 100\n debited\tUPI/a@b  ") == "Rs 100 debited UPI/a@b"
        assert normalize_body(None) == ""


class TestPatternExtractor:
    """Test cases for PatternExtractor"""

    def setup_method(self):
        """Set up test fixtures"""
        self.extractor = PatternExtractor()

    def test_search_order_without_hint(self):
        order = self.extractor.search_order()
        assert order[0] == 'hdfc'
        assert order[-1] == GENERIC

    def test_search_order_hint_first(self):
        order = self.extractor.search_order(Institution.GPAY)
        assert order[0] == 'gpay'
        assert order[-1] == GENERIC
        assert order.count('gpay') == 1

    def test_search_order_hint_without_templates(self):
        assert self.extractor.search_order(Institution.KOTAK) == self.extractor.search_order()

    def test_bank_layout(self):
        capture = self.extractor.extract(
            "INR 250.00 has been debited from A/c XX1234 towards UPI/swiggy@okaxis",
            Institution.HDFC
        )

        assert capture.layout == Layout.BANK
        assert capture.pattern_set == 'hdfc'
        assert capture.amount_text == '250.00'
        assert capture.direction_text.lower() == 'debited'
        assert capture.counterparty_text == 'swiggy@okaxis'

    def test_wallet_layout(self):
        capture = self.extractor.extract(
            "You paid ₹200 to Zomato using UPI", Institution.GPAY
        )

        assert capture.layout == Layout.WALLET
        assert capture.amount_text == '200'
        assert capture.direction_text == 'paid'
        assert capture.counterparty_text == 'Zomato'

    def test_generic_fallback(self):
        capture = self.extractor.extract("UPI txn: Rs 75 paid to Chai Wala")

        assert capture.pattern_set == GENERIC
        assert capture.amount_text == '75'
        assert capture.counterparty_text == 'Chai Wala'

    def test_generic_without_counterparty(self):
        capture = self.extractor.extract("UPI: Rs 75 debited")

        assert capture.pattern_set == GENERIC
        assert capture.counterparty_text == ''

    def test_no_match(self):
        assert self.extractor.extract("hello how are you") is None
        assert list(self.extractor.candidates("hello how are you")) == []

    def test_candidates_in_search_order(self):
        body = "INR 0.00 debited towards UPI/x@ok. Later INR 500.00 debited towards UPI/real@ok"

        captures = list(self.extractor.candidates(body, Institution.HDFC))

        assert captures[0].pattern_set == 'hdfc'
        assert captures[0].amount_text == '0.00'
        assert captures[-1].pattern_set == GENERIC
        assert '500.00' in [capture.amount_text for capture in captures]
        assert self.extractor.extract(body, Institution.HDFC) == captures[0]

    def test_supported_institutions(self):
        supported = self.extractor.supported_institutions()
        assert supported[0] == Institution.HDFC
        assert Institution.BHIM in supported
        assert Institution.KOTAK not in supported


class TestExtraPatterns:

    def test_extra_patterns_tried_first(self):
        extractor = PatternExtractor({
            'HDFC': [{'pattern': r'(sent|received)\s+(\d+)\s+to\s+(\w+)', 'layout': 'wallet'}]
        })

        capture = extractor.extract("sent 40 to Ravi", Institution.HDFC)

        assert capture.pattern_set == 'hdfc'
        assert capture.layout == Layout.WALLET
        assert (capture.amount_text, capture.direction_text, capture.counterparty_text) == \
            ('40', 'sent', 'Ravi')

    def test_new_set_for_institution_without_templates(self):
        extractor = PatternExtractor({
            'kotak': [{'pattern': r'Rs\s*(\d+)\s+(debited).*?to\s+(\w+)'}]
        })

        assert Institution.KOTAK in extractor.supported_institutions()
        assert extractor.search_order(Institution.KOTAK)[0] == 'kotak'

    def test_layout_defaults_to_bank(self):
        extractor = PatternExtractor({
            'generic': [{'pattern': r'Spent\s+(\d+)\s+(debit)\s+at\s+(\w+)'}]
        })
        capture = extractor.extract("Spent 40 debit at Chaayos")

        assert capture.layout == Layout.BANK
        assert capture.counterparty_text == 'Chaayos'

    @pytest.mark.parametrize("extra", [
        {'nowhere': [{'pattern': r'(a)(b)(c)'}]},
        {'unknown': [{'pattern': r'(a)(b)(c)'}]},
        {'generic': [{'pattern': r'(a)(b)'}]},
        {'generic': [{'pattern': r'(a'}]},
        {'generic': [{'pattern': r'(a)(b)(c)', 'layout': 'sideways'}]},
        {'generic': [{'regex': r'(a)(b)(c)'}]},
    ])
    def test_invalid_entries(self, extra):
        with pytest.raises(ConfigurationError):
            PatternExtractor(extra)
