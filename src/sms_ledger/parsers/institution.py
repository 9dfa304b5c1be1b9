"""Attribution of a message to the bank or payment app that sent it."""

import logging
from typing import Dict, List, Optional

from ..exceptions import ConfigurationError
from ..models.core import Institution


logger = logging.getLogger(__name__)


class InstitutionIdentifier:
    """Matches sender and body text against ordered identifier lists.

    The first institution, in table order, with an identifier contained in
    the uppercased ``body + sender`` wins. Banks are listed before UPI apps,
    so a UPI handle such as ``okaxis`` inside an HDFC alert still resolves
    to HDFC.
    """

    DEFAULT_IDENTIFIERS: Dict[Institution, List[str]] = {
        Institution.SBI: ['SBI', 'SBIUPI', 'State Bank'],
        Institution.HDFC: ['HDFC', 'HDFCBK', 'HDFCBANK'],
        Institution.ICICI: ['ICICI', 'ICICIBK', 'ICICIBANK'],
        Institution.AXIS: ['AXIS', 'AXISBK', 'AXISBANK'],
        Institution.PNB: ['PNB', 'PNBBK', 'Punjab National'],
        Institution.BOB: ['BOB', 'BOBBANK', 'Bank of Baroda'],
        Institution.CANARA: ['CANARA', 'CANARABK', 'Canara Bank'],
        Institution.UNION: ['UNION', 'UNIONBK', 'Union Bank'],
        Institution.KOTAK: ['KOTAK', 'KOTAKBK', 'Kotak Mahindra'],
        Institution.GPAY: ['Google Pay', 'GPAY', 'G Pay'],
        Institution.PHONEPE: ['PhonePe', 'PHONEPE'],
        Institution.PAYTM: ['Paytm', 'PAYTM'],
        Institution.BHIM: ['BHIM', 'BHIMUPI'],
        Institution.AMAZON: ['Amazon Pay', 'AMAZONPAY'],
        Institution.MOBIKWIK: ['MobiKwik', 'MOBIKWIK'],
    }

    def __init__(self, identifiers: Optional[Dict[str, List[str]]] = None):
        table = self.DEFAULT_IDENTIFIERS if identifiers is None else self._coerce(identifiers)
        self.identifiers = [
            (institution, tuple(ident.upper() for ident in idents))
            for institution, idents in table.items()
        ]

    @staticmethod
    def _coerce(identifiers: Dict[str, List[str]]) -> Dict[Institution, List[str]]:
        table = {}
        for name, idents in identifiers.items():
            try:
                institution = name if isinstance(name, Institution) else Institution.from_name(name)
            except ValueError as e:
                raise ConfigurationError(str(e)) from e
            if institution is Institution.UNKNOWN:
                raise ConfigurationError("UNKNOWN cannot carry identifiers")
            if isinstance(idents, str) or not isinstance(idents, list):
                raise ConfigurationError(f"Identifiers for {name} must be a list")
            table[institution] = [str(i) for i in idents if str(i).strip()]
        return table

    def identify(self, body: str, sender: str = '') -> Institution:
        """Return the institution tag for a message, or UNKNOWN"""
        haystack = f"{body or ''} {sender or ''}".upper()
        for institution, idents in self.identifiers:
            for ident in idents:
                if ident in haystack:
                    logger.debug(f"Identified {institution.value} via '{ident}'")
                    return institution
        return Institution.UNKNOWN
