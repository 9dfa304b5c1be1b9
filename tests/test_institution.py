"""Tests for institution identification."""

import pytest

from sms_ledger.exceptions import ConfigurationError
from sms_ledger.models.core import Institution
from sms_ledger.parsers.institution import InstitutionIdentifier


class TestInstitutionIdentifier:
    """Test cases for InstitutionIdentifier"""

    def setup_method(self):
        """Set up test fixtures"""
        self.identifier = InstitutionIdentifier()

    def test_identify_from_sender(self):
        assert self.identifier.identify("Rs 100 debited", "VM-HDFCBK") == Institution.HDFC

    def test_identify_from_body(self):
        body = "You paid ₹200 to Zomato using UPI - Google Pay"
        assert self.identifier.identify(body, "") == Institution.GPAY

    def test_case_insensitive(self):
        assert self.identifier.identify("sent via phonepe", "") == Institution.PHONEPE

    def test_unknown(self):
        assert self.identifier.identify("hello how are you", "FRIEND") == Institution.UNKNOWN

    def test_declaration_order_breaks_ties(self):
        # Bank alert that mentions an okaxis handle is still the bank's
        body = "Rs 100 debited via UPI to merchant@okaxis"
        assert self.identifier.identify(body, "HDFCBK") == Institution.HDFC

    def test_bank_listed_before_app(self):
        body = "Rs 100 debited from SBI A/c via Paytm"
        assert self.identifier.identify(body, "") == Institution.SBI

    def test_custom_identifiers(self):
        identifier = InstitutionIdentifier({'kotak': ['KMBL'], 'GPAY': ['GPay']})

        assert identifier.identify("Rs 10 debited", "AD-KMBL") == Institution.KOTAK
        assert identifier.identify("Rs 10 debited", "VM-HDFCBK") == Institution.UNKNOWN
        assert [i for i, _ in identifier.identifiers] == [Institution.KOTAK, Institution.GPAY]

    def test_unknown_institution_rejected(self):
        with pytest.raises(ConfigurationError):
            InstitutionIdentifier({'NOWHERE': ['NWB']})

    def test_unknown_tag_cannot_have_identifiers(self):
        with pytest.raises(ConfigurationError):
            InstitutionIdentifier({'UNKNOWN': ['X']})

    def test_identifiers_must_be_list(self):
        with pytest.raises(ConfigurationError):
            InstitutionIdentifier({'SBI': 'SBI'})
