"""Ordered, layout-tagged message templates and the extractor that runs them.

Every template is a ``PatternDescriptor``: a compiled regular expression
with exactly three leading capture groups plus a ``Layout`` saying which
group holds which field. Templates are grouped per institution; the generic
group is the UPI fallback and is always tried last.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional, Pattern, Tuple

from ..exceptions import ConfigurationError
from ..models.core import Institution, Layout, RawCapture


logger = logging.getLogger(__name__)


GENERIC = 'generic'

_CUR = r'(?:INR|Rs\.?|₹)\s*'
_AMT = r'(\d[\d,]*(?:\.\d+)?)'
_HANDLE = r'([\w.\-]+@[\w.\-]+)'
_BANK_VERB = r'\s*(?:has\s+been\s+|is\s+|was\s+)?(debited|credited)\b'
_APP_VERB = r'\s+(?:was\s+|has\s+been\s+)?(paid|received|sent)\s+(?:to|from)\s+'
# Free-text name ends before punctuation or a trailing qualifier word
_NAME = r"([A-Za-z0-9][\w@.&'\- ]*?)"
_NAME_END = r'(?=\s*(?:[.,;(](?:\s|$)|$)|\s+(?:on|Ref|Avl|Bal|UPI|via|using)\b)'


@dataclass(frozen=True)
class PatternDescriptor:
    """One message template and the order of its capture groups"""
    pattern: Pattern
    layout: Layout

    @classmethod
    def compile(cls, regex: str, layout: Layout) -> 'PatternDescriptor':
        return cls(re.compile(regex, re.IGNORECASE), layout)


def _bank_fields(match) -> Tuple[str, str, str]:
    amount, direction, counterparty = match.group(1, 2, 3)
    return amount, direction, counterparty or ''


def _wallet_fields(match) -> Tuple[str, str, str]:
    direction, amount, counterparty = match.group(1, 2, 3)
    return amount, direction, counterparty or ''


LAYOUT_READERS: Dict[Layout, Callable] = {
    Layout.BANK: _bank_fields,
    Layout.WALLET: _wallet_fields,
}


def _bank(regex: str) -> PatternDescriptor:
    return PatternDescriptor.compile(regex, Layout.BANK)


def _wallet(regex: str) -> PatternDescriptor:
    return PatternDescriptor.compile(regex, Layout.WALLET)


# "INR 250.00 has been debited ... towards UPI/swiggy@okaxis"
_UPI_HANDLE = _bank(_CUR + _AMT + _BANK_VERB + r'.*?\bUPI\b[/:\s-]*' + _HANDLE)
# "Rs.500.00 debited from A/c **1234 ... to VPA merchant@paytm"
_VPA_HANDLE = _bank(
    _CUR + _AMT + _BANK_VERB + r'.*?\b(?:to|from|by)\s+(?:VPA\s+)?' + _HANDLE
)

DEFAULT_PATTERNS: Dict[str, List[PatternDescriptor]] = {
    'hdfc': [
        _UPI_HANDLE,
        _VPA_HANDLE,
    ],
    'sbi': [
        _UPI_HANDLE,
        # "Rs 120.00 debited from A/c X1234 via UPI on 21Jul25 to SHARMA STORES"
        _bank(_CUR + _AMT + _BANK_VERB + r'.*?\bUPI\b.*?\b(?:to|from)\s+' + _NAME + _NAME_END),
        _VPA_HANDLE,
    ],
    'icici': [
        _UPI_HANDLE,
        # "Acct XX123 debited for Rs 250.00 on 21-Jul-25; SWIGGY credited."
        _wallet(
            r'\b(debited|credited)\s+(?:with|for|by)\s+' + _CUR + _AMT
            + r'\b.*?;\s*(.+?)\s+(?:credited|debited)\b'
        ),
        _VPA_HANDLE,
    ],
    'axis': [
        _UPI_HANDLE,
        # "INR 500.00 debited A/c no. XX1234 ... UPI/P2M/123456/SWIGGY Not you?"
        _bank(
            _CUR + _AMT + _BANK_VERB
            + r'.*?\bUPI/P2[AM]/\d+/([^/]+?)(?=\s+Not\s+you\b|\.?\s*$)'
        ),
    ],
    'gpay': [
        # "You paid ₹200 to Zomato using UPI"
        _wallet(
            r'\bYou\s+(paid|received|sent)\s+' + _CUR + _AMT
            + r'\s+(?:to|from)\s+(.+?)\s+(?:using|via|on|through)\b'
        ),
        _bank(
            _CUR + _AMT + _APP_VERB
            + r'(.+?)\s+(?:using|via|on|through)\s+(?:Google\s*Pay|G\s?Pay|UPI)\b'
        ),
        _wallet(
            r'\bYou\s+(paid|received|sent)\s+' + _CUR + _AMT
            + r'\s+(?:to|from)\s+(.+?)(?=\.\s|\.?$)'
        ),
    ],
    'phonepe': [
        # "₹150 paid to Zomato via PhonePe UPI"
        _bank(_CUR + _AMT + _APP_VERB + r'(.+?)\s+(?:via|using|on)\s+PhonePe\b'),
        _wallet(
            r'\b(paid|received|sent)\s+' + _CUR + _AMT
            + r'\s+(?:to|from)\s+(.+?)\s+(?:via|using|on)\s+PhonePe\b'
        ),
    ],
    'paytm': [
        # "₹300 received from John Doe via Paytm UPI"
        _bank(_CUR + _AMT + _APP_VERB + r'(.+?)\s+(?:via|using|on)\s+Paytm\b'),
        # "Paid Rs.100 to Chai Point from Paytm Balance"
        _wallet(
            r'\b(paid|received|sent)\s+' + _CUR + _AMT
            + r'\s+(?:to|from)\s+(.+?)\s+(?:from|to|via|using|on)\s+(?:your\s+)?Paytm\b'
        ),
    ],
    'bhim': [
        _bank(_CUR + _AMT + _APP_VERB + r'(.+?)\s+(?:via|using|on|through)\s+BHIM\b'),
    ],
    GENERIC: [
        _bank(
            _CUR + _AMT + r'\b.*?\b(debit(?:ed)?|credit(?:ed)?|paid|received|sent)\b'
            + r'.*?\bUPI\b[/:\s-]*' + _HANDLE
        ),
        _bank(
            r'\bUPI\b.*?' + _CUR + _AMT
            + r'\s*(?:has\s+been\s+|is\s+|was\s+)?(debited|credited|paid|received|sent)\b'
            + r'(?:.*?\b(?:to|from|by)\s+(?:VPA\s+)?(' + _HANDLE[1:-1] + r'|' + _NAME[1:-1] + r')'
            + _NAME_END + r')?'
        ),
        _wallet(
            r'\b(paid|sent|received)\s+' + _CUR + _AMT
            + r'\s+(?:to|from)\s+(.+?)(?=\s+(?:via|using|on|through)\b|\.\s|\.?$)'
        ),
    ],
}


def normalize_body(body: str) -> str:
    """Collapse runs of whitespace and trim the message text"""
    return ' '.join((body or '').split())


class PatternExtractor:
    """Runs the template table against a message.

    The hinted institution's own templates are tried first, then the other
    institutions' templates in table order, then the generic fallback.
    ``candidates`` yields every match lazily so the caller can move on when
    a capture carries an unusable amount.
    """

    def __init__(self, extra_patterns: Optional[Dict[str, List[Dict[str, str]]]] = None):
        self.tables: Dict[str, List[PatternDescriptor]] = {
            name: list(descriptors) for name, descriptors in DEFAULT_PATTERNS.items()
        }
        for name, entries in (extra_patterns or {}).items():
            key = self._table_key(name)
            extra = [self._compile_entry(key, entry) for entry in entries]
            self.tables[key] = extra + self.tables.get(key, [])
            logger.debug(f"Added {len(extra)} custom patterns to '{key}'")

    @staticmethod
    def _table_key(name: str) -> str:
        key = str(name).strip().lower()
        if key == GENERIC:
            return key
        try:
            institution = Institution.from_name(key)
        except ValueError as e:
            raise ConfigurationError(f"Unknown pattern set: {name}") from e
        if institution is Institution.UNKNOWN:
            raise ConfigurationError("Use 'generic' for patterns without an institution")
        return institution.value.lower()

    @staticmethod
    def _compile_entry(key: str, entry: Dict[str, str]) -> PatternDescriptor:
        if not isinstance(entry, dict) or 'pattern' not in entry:
            raise ConfigurationError(f"Pattern entry for '{key}' must have a 'pattern' key")

        try:
            layout = Layout(str(entry.get('layout', Layout.BANK.value)).lower())
        except ValueError:
            raise ConfigurationError(
                f"Invalid layout '{entry.get('layout')}' for '{key}', "
                f"expected one of {[l.value for l in Layout]}"
            ) from None

        try:
            descriptor = PatternDescriptor.compile(entry['pattern'], layout)
        except re.error as e:
            raise ConfigurationError(f"Invalid pattern for '{key}': {e}") from e

        if descriptor.pattern.groups < 3:
            raise ConfigurationError(
                f"Pattern for '{key}' needs three capture groups, has {descriptor.pattern.groups}"
            )
        return descriptor

    def supported_institutions(self) -> List[Institution]:
        """Institutions that own at least one template"""
        return [
            Institution.from_name(name) for name, descriptors in self.tables.items()
            if name != GENERIC and descriptors
        ]

    def search_order(self, hint: Institution = Institution.UNKNOWN) -> List[str]:
        """Names of the template groups in the order they are tried"""
        ordered = [name for name in self.tables if name != GENERIC]
        hinted = hint.value.lower() if hint else None
        if hinted in ordered:
            ordered.remove(hinted)
            ordered.insert(0, hinted)
        ordered.append(GENERIC)
        return ordered

    def candidates(self, body: str,
                   hint: Institution = Institution.UNKNOWN) -> Iterator[RawCapture]:
        """Yield the captures of every matching template in search order"""
        text = normalize_body(body)
        for name in self.search_order(hint):
            for index, descriptor in enumerate(self.tables.get(name, [])):
                match = descriptor.pattern.search(text)
                if not match:
                    continue
                amount, direction, counterparty = LAYOUT_READERS[descriptor.layout](match)
                logger.debug(f"Matched pattern {name}[{index}] ({descriptor.layout.value})")
                yield RawCapture(
                    amount_text=amount,
                    direction_text=direction,
                    counterparty_text=counterparty,
                    layout=descriptor.layout,
                    pattern_set=name,
                )

    def extract(self, body: str,
                hint: Institution = Institution.UNKNOWN) -> Optional[RawCapture]:
        """Return the captures of the first template that matches, or None"""
        return next(self.candidates(body, hint), None)
