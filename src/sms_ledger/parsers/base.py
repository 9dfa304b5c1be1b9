"""Abstract base classes and field normalization for message parsers."""

import logging
import re
from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import List, Optional

from ..exceptions import MalformedMessageError
from ..models.core import (
    Direction,
    InboundMessage,
    Institution,
    NormalizedFields,
    ParseOutcome,
    ParsedTransaction,
    ParserConfig,
    RawCapture,
)


logger = logging.getLogger(__name__)


class MessageParser(ABC):
    """Abstract base class for all message parsers"""

    def __init__(self, config: ParserConfig):
        self.config = config

    @abstractmethod
    def parse(self, body: str, sender: str,
              received_at: Optional[datetime] = None) -> Optional[ParsedTransaction]:
        """Parse one message and return a transaction or None"""
        pass

    @abstractmethod
    def parse_message(self, message: InboundMessage) -> ParseOutcome:
        """Parse one message and report how the pipeline ended"""
        pass

    @abstractmethod
    def get_supported_institutions(self) -> List[Institution]:
        """Return institutions that have dedicated message templates"""
        pass

    def validate_message(self, message: InboundMessage) -> None:
        """Check the caller contract for an inbound message.

        Raises:
            MalformedMessageError: If body or sender is missing or not text,
                or received_at is not a datetime
        """
        if not isinstance(message, InboundMessage):
            raise MalformedMessageError(
                f"Expected InboundMessage, got {type(message).__name__}"
            )
        if not isinstance(message.body, str):
            raise MalformedMessageError(
                f"Message body must be text, got {type(message.body).__name__}"
            )
        if not isinstance(message.sender, str):
            raise MalformedMessageError(
                f"Message sender must be text, got {type(message.sender).__name__}"
            )
        if message.received_at is not None and not isinstance(message.received_at, datetime):
            raise MalformedMessageError(
                f"received_at must be a datetime, got {type(message.received_at).__name__}"
            )


class FieldNormalizer:
    """Turns raw captured substrings into typed transaction fields"""

    # Tokens that mark a debit when found inside the direction verb
    DEBIT_MARKERS = ('debit', 'paid', 'sent')

    UNKNOWN_COUNTERPARTY = 'Unknown'

    _LEADING_PREFIX_RE = re.compile(r'^(?:to|from)\s+', re.IGNORECASE)
    # First qualifier token ends the counterparty: "using", "via", "UPI"
    # or a dash used as a separator (hyphens inside handles survive)
    _QUALIFIER_RE = re.compile(
        r'(?:\s*\b(?:using|via|UPI)\b|\s+-|-(?=\s|$)).*$',
        re.IGNORECASE
    )
    _UPI_ID_RE = re.compile(r'[\w.\-]+@[\w.\-]+')

    _BALANCE_RE = re.compile(
        r'(?:Avl\.?\s*Bal(?:ance)?|Available\s+Bal(?:ance)?|\bBal(?:ance)?)\s*'
        r'(?:is\s*)?[:\-]?\s*(?:INR|Rs\.?|₹)\s*(\d[\d,]*(?:\.\d+)?)',
        re.IGNORECASE
    )
    _ACCOUNT_RE = re.compile(
        r'\b(?:A/c|Acct|Account)\s*(?:No\.?)?\s*[:\-]?\s*[X*]*(\d{3,6})\b',
        re.IGNORECASE
    )
    _REFERENCE_RE = re.compile(
        r'\b(?:UPI\s*Ref(?:erence)?|Ref(?:erence)?|Txn\s*(?:ID|No)|RRN)\b\.?\s*'
        r'(?:No\.?|Number|ID)?\s*[:\-#]?\s*([A-Z0-9]{6,})\b',
        re.IGNORECASE
    )
    _DATE_RES = [
        re.compile(r'\b(\d{4}-\d{2}-\d{2})\b'),
        re.compile(r'\b(\d{1,2}-[A-Za-z]{3}-\d{2,4})\b'),
        re.compile(r'\b(\d{1,2}[-/]\d{1,2}[-/]\d{2,4})\b'),
        re.compile(r'\b(\d{1,2}\s+[A-Za-z]{3}\s+\d{2,4})\b'),
        re.compile(r'\b(\d{1,2}[A-Za-z]{3}\d{2})\b'),
    ]

    def __init__(self, config: ParserConfig):
        self.config = config

    def normalize(self, capture: RawCapture) -> Optional[NormalizedFields]:
        """Convert a raw capture into typed fields.

        Returns None when the amount is unparseable or not strictly positive.
        """
        try:
            amount = self.normalize_amount(capture.amount_text)
        except ValueError as e:
            logger.debug(f"Rejected capture from {capture.pattern_set}: {e}")
            return None

        counterparty = self.clean_counterparty(capture.counterparty_text)
        return NormalizedFields(
            amount=amount,
            direction=self.resolve_direction(capture.direction_text),
            counterparty=counterparty,
            upi_id=self.extract_upi_id(capture.counterparty_text, counterparty)
        )

    def normalize_amount(self, amount_str: str) -> Decimal:
        """Parse a locale-formatted amount into a positive Decimal.

        Thousands separators are dropped whatever their grouping, so both
        "1,234.56" and the lakh form "1,00,000" are accepted.

        Raises:
            ValueError: If the amount cannot be parsed or is not above zero
        """
        if amount_str is None or not str(amount_str).strip():
            raise ValueError("Amount string cannot be empty")

        cleaned = re.sub(r'(?i)^(?:INR|Rs\.?)', '', str(amount_str).strip())
        cleaned = re.sub(r'[₹$\s,]', '', cleaned)

        if not re.fullmatch(r'\d+(?:\.\d*)?', cleaned):
            raise ValueError(f"Unable to parse amount: {amount_str}")

        try:
            amount = Decimal(cleaned).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
        except InvalidOperation as e:
            raise ValueError(f"Unable to parse amount: {amount_str}") from e

        if amount <= 0:
            raise ValueError(f"Amount must be positive: {amount_str}")

        return amount

    def resolve_direction(self, direction_text: str) -> Direction:
        """Classify a free-text direction verb as debit or credit"""
        token = (direction_text or '').lower()
        if any(marker in token for marker in self.DEBIT_MARKERS):
            return Direction.DEBIT
        return Direction.CREDIT

    def clean_counterparty(self, raw: Optional[str]) -> str:
        """Strip prefixes and trailing qualifiers from a counterparty string"""
        if not raw:
            return self.UNKNOWN_COUNTERPARTY

        cleaned = ' '.join(str(raw).split())
        cleaned = self._LEADING_PREFIX_RE.sub('', cleaned)
        cleaned = self._QUALIFIER_RE.sub('', cleaned, count=1)
        cleaned = cleaned.strip().rstrip('.,;:').strip()

        return cleaned or self.UNKNOWN_COUNTERPARTY

    def extract_upi_id(self, raw: Optional[str], cleaned: Optional[str] = None) -> Optional[str]:
        """Return the UPI handle found in the cleaned or raw counterparty"""
        for candidate in (cleaned, raw):
            if candidate and '@' in candidate:
                match = self._UPI_ID_RE.search(candidate)
                if match:
                    return match.group().rstrip('.-')
        return None

    def extract_balance(self, body: str) -> Optional[Decimal]:
        """Available balance quoted in the message, if any"""
        match = self._BALANCE_RE.search(body or '')
        if not match:
            return None
        try:
            return Decimal(match.group(1).replace(',', '')).quantize(
                Decimal('0.01'), rounding=ROUND_HALF_UP
            )
        except InvalidOperation:
            return None

    def extract_account(self, body: str) -> Optional[str]:
        """Masked account suffix quoted in the message, if any"""
        match = self._ACCOUNT_RE.search(body or '')
        if not match:
            return None
        return match.group(1)[-4:]

    def extract_reference(self, body: str) -> Optional[str]:
        """UPI / bank reference number quoted in the message, if any"""
        match = self._REFERENCE_RE.search(body or '')
        if not match:
            return None
        return match.group(1).upper()

    def extract_message_date(self, body: str) -> Optional[datetime]:
        """First parseable date printed in the message body"""
        for date_re in self._DATE_RES:
            for match in date_re.finditer(body or ''):
                try:
                    return self.normalize_date(match.group(1))
                except ValueError:
                    continue
        return None

    def normalize_date(self, date_str: str, formats: Optional[List[str]] = None) -> datetime:
        """Convert a date string to datetime trying each configured format"""
        if not date_str or not str(date_str).strip():
            raise ValueError("Date string cannot be empty")

        date_str = ' '.join(str(date_str).split())

        if formats is None:
            formats = self.config.date_formats

        for fmt in formats:
            try:
                return datetime.strptime(date_str, fmt)
            except ValueError:
                continue

        raise ValueError(f"Unable to parse date: {date_str} with any supported format")
