"""Core data models for the SMS transaction parser."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Dict, Any, Optional


class Direction(Enum):
    """Money movement relative to the account holder"""
    DEBIT = "debit"
    CREDIT = "credit"


class Institution(Enum):
    """Bank or payment app a message is attributed to.

    Declaration order matters: it is the order the identifier lists are
    tested in, banks first and UPI apps after them.
    """
    SBI = "SBI"
    HDFC = "HDFC"
    ICICI = "ICICI"
    AXIS = "AXIS"
    PNB = "PNB"
    BOB = "BOB"
    CANARA = "CANARA"
    UNION = "UNION"
    KOTAK = "KOTAK"
    GPAY = "GPAY"
    PHONEPE = "PHONEPE"
    PAYTM = "PAYTM"
    BHIM = "BHIM"
    AMAZON = "AMAZON"
    MOBIKWIK = "MOBIKWIK"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_name(cls, name: str) -> 'Institution':
        """Look up a tag by its (case-insensitive) name"""
        try:
            return cls[str(name).strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown institution: {name}") from None


class Layout(Enum):
    """Relative order of the captured substrings within a message template.

    BANK:   amount, direction verb, counterparty
    WALLET: direction verb, amount, counterparty
    """
    BANK = "bank"
    WALLET = "wallet"


class ParseStatus(Enum):
    """Terminal state of a single pipeline run"""
    PARSED = "parsed"
    SPAM = "spam"
    NO_MATCH = "no_match"
    INVALID_AMOUNT = "invalid_amount"


@dataclass(frozen=True)
class InboundMessage:
    """A raw notification message as delivered by the device or an export.

    Attributes:
        body: Message text
        sender: Sender address or short code (e.g. "VM-HDFCBK")
        received_at: Time the message was received, if known
        message_id: Platform identifier of the message, if known
    """
    body: str
    sender: str
    received_at: Optional[datetime] = None
    message_id: Optional[str] = None


@dataclass(frozen=True)
class RawCapture:
    """Substrings pulled out of a message by the first pattern that matched"""
    amount_text: str
    direction_text: str
    counterparty_text: str
    layout: Layout
    pattern_set: str


@dataclass(frozen=True)
class NormalizedFields:
    """Captured fields after cleaning and type conversion"""
    amount: Decimal
    direction: Direction
    counterparty: str
    upi_id: Optional[str] = None


@dataclass(frozen=True)
class ParsedTransaction:
    """Structured transaction extracted from a single message.

    Instances are immutable. Reassigning a category produces a new instance
    through with_category() rather than a new parse.

    Attributes:
        amount: Positive amount in rupees, two decimal places
        direction: Debit or credit
        counterparty: Merchant, person or UPI handle; "Unknown" if not found
        institution: Bank or app the message is attributed to
        category: Spending category, never empty
        occurred_at: Best available time of the transaction
        raw_source: Deduplication key, "sms_<institution>_<key>"
        upi_id: UPI handle of the counterparty, if one was present
        balance: Available balance quoted by the message
        account: Masked account suffix quoted by the message
        reference: UPI or bank reference number
        currency: ISO currency code
    """
    amount: Decimal
    direction: Direction
    counterparty: str
    institution: Institution
    category: str
    occurred_at: datetime
    raw_source: str
    upi_id: Optional[str] = None
    balance: Optional[Decimal] = None
    account: Optional[str] = None
    reference: Optional[str] = None
    currency: str = "INR"

    def with_category(self, category: str) -> 'ParsedTransaction':
        """Return a copy carrying a reassigned category"""
        return replace(self, category=category)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a flat dictionary of strings for serialization"""
        return {
            'occurred_at': self.occurred_at.isoformat(),
            'amount': str(self.amount),
            'direction': self.direction.value,
            'counterparty': self.counterparty,
            'institution': self.institution.value,
            'category': self.category,
            'raw_source': self.raw_source,
            'upi_id': self.upi_id or '',
            'balance': str(self.balance) if self.balance is not None else '',
            'account': self.account or '',
            'reference': self.reference or '',
            'currency': self.currency,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ParsedTransaction':
        """Rebuild a transaction from the output of to_dict()"""
        balance = data.get('balance')
        return cls(
            amount=Decimal(str(data['amount'])),
            direction=Direction(data['direction']),
            counterparty=data['counterparty'],
            institution=Institution(data['institution']),
            category=data['category'],
            occurred_at=datetime.fromisoformat(data['occurred_at']),
            raw_source=data['raw_source'],
            upi_id=data.get('upi_id') or None,
            balance=Decimal(str(balance)) if balance not in (None, '') else None,
            account=data.get('account') or None,
            reference=data.get('reference') or None,
            currency=data.get('currency') or 'INR',
        )


@dataclass
class ParseOutcome:
    """Diagnostic result of running one message through the pipeline"""
    status: ParseStatus
    institution: Institution = Institution.UNKNOWN
    transaction: Optional[ParsedTransaction] = None
    reason: Optional[str] = None

    @property
    def parsed(self) -> bool:
        return self.status is ParseStatus.PARSED


@dataclass
class BatchParseResult:
    """Counts and records from parsing a backlog of messages"""
    parsed: int = 0
    failed: int = 0
    transactions: List[ParsedTransaction] = field(default_factory=list)
    outcomes: Dict[str, int] = field(default_factory=dict)

    def record(self, outcome: ParseOutcome) -> None:
        """Fold a single outcome into the totals"""
        key = outcome.status.value
        self.outcomes[key] = self.outcomes.get(key, 0) + 1
        if outcome.parsed:
            self.parsed += 1
            self.transactions.append(outcome.transaction)
        else:
            self.failed += 1


@dataclass
class ParserConfig:
    """Configuration for parser behavior.

    Table fields left as None mean "use the built-in table" of the component
    that owns it. Tables are read once when a parser is built.
    """
    data_directory: str = "data"
    log_directory: str = "logs"
    high_value_threshold: Decimal = Decimal("10000")
    default_category: str = "Others"
    currency: str = "INR"
    spam_keywords: Optional[List[str]] = None
    institution_identifiers: Optional[Dict[str, List[str]]] = None
    category_keywords: Optional[Dict[str, List[str]]] = None
    extra_patterns: Optional[Dict[str, List[Dict[str, str]]]] = None
    date_formats: Optional[List[str]] = None

    def __post_init__(self):
        if not isinstance(self.high_value_threshold, Decimal):
            self.high_value_threshold = Decimal(str(self.high_value_threshold))
        if self.date_formats is None:
            self.date_formats = [
                "%d-%b-%y", "%d-%b-%Y", "%d-%m-%y", "%d-%m-%Y",
                "%d/%m/%y", "%d/%m/%Y", "%d %b %Y", "%d %b %y",
                "%d%b%y", "%Y-%m-%d"
            ]
        if self.extra_patterns is None:
            self.extra_patterns = {}
