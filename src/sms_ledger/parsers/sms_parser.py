"""Message classification and extraction pipeline."""

import logging
import re
from datetime import datetime
from decimal import Decimal
from functools import lru_cache
from typing import Iterable, List, Optional

from .base import MessageParser, FieldNormalizer
from .categorizer import Categorizer
from .institution import InstitutionIdentifier
from .patterns import PatternExtractor, normalize_body
from .spam_filter import SpamFilter
from ..models.core import (
    BatchParseResult,
    InboundMessage,
    Institution,
    NormalizedFields,
    ParseOutcome,
    ParsedTransaction,
    ParserConfig,
    ParseStatus,
)


logger = logging.getLogger(__name__)


class SMSParser(MessageParser):
    """Turns bank, UPI and wallet alert messages into transactions.

    Each message runs spam filter, institution identifier, pattern
    extractor, field normalizer and categorizer in that order. The lookup
    tables are built once here and only read afterwards, so one instance
    can be shared between threads.
    """

    def __init__(self, config: Optional[ParserConfig] = None):
        super().__init__(config or ParserConfig())
        self.spam_filter = SpamFilter(self.config.spam_keywords)
        self.identifier = InstitutionIdentifier(self.config.institution_identifiers)
        self.extractor = PatternExtractor(self.config.extra_patterns)
        self.normalizer = FieldNormalizer(self.config)
        self.categorizer = Categorizer(
            self.config.category_keywords,
            high_value_threshold=self.config.high_value_threshold,
            default_category=self.config.default_category,
        )

    def get_supported_institutions(self) -> List[Institution]:
        return self.extractor.supported_institutions()

    def parse(self, body: str, sender: str,
              received_at: Optional[datetime] = None) -> Optional[ParsedTransaction]:
        """Parse one message.

        Returns:
            The transaction, or None when the message is spam, matches no
            template or carries an unusable amount

        Raises:
            MalformedMessageError: If body or sender is not text
        """
        message = InboundMessage(body=body, sender=sender, received_at=received_at)
        return self.parse_message(message).transaction

    def parse_message(self, message: InboundMessage) -> ParseOutcome:
        self.validate_message(message)
        body = normalize_body(message.body)

        keyword = self.spam_filter.check(body)
        if keyword is not None:
            logger.debug(f"Dropped spam message from {message.sender!r}")
            return ParseOutcome(ParseStatus.SPAM, reason=f"spam keyword '{keyword}'")

        institution = self.identifier.identify(body, message.sender)

        fields = None
        rejected = []
        for capture in self.extractor.candidates(body, institution):
            fields = self.normalizer.normalize(capture)
            if fields is not None:
                break
            rejected.append(capture.amount_text)

        if fields is None and not rejected:
            return ParseOutcome(
                ParseStatus.NO_MATCH, institution=institution, reason="no pattern matched"
            )
        if fields is None:
            return ParseOutcome(
                ParseStatus.INVALID_AMOUNT,
                institution=institution,
                reason=f"unusable amount '{rejected[0]}'"
            )

        category = self.categorizer.categorize(fields.counterparty, fields.amount)
        transaction = self.assemble(message, body, institution, fields, category)
        return ParseOutcome(ParseStatus.PARSED, institution=institution, transaction=transaction)

    def parse_batch(self, messages: Iterable[InboundMessage]) -> BatchParseResult:
        """Parse a backlog of messages independently of each other"""
        result = BatchParseResult()
        for message in messages:
            result.record(self.parse_message(message))

        logger.info(f"Batch parse finished: {result.parsed} parsed, {result.failed} failed")
        return result

    def assemble(self, message: InboundMessage, body: str, institution: Institution,
                 fields: NormalizedFields, category: str) -> ParsedTransaction:
        """Build the final record from the pipeline's intermediate results"""
        occurred_at = (
            message.received_at
            or self.normalizer.extract_message_date(body)
            or datetime.now()
        )
        reference = self.normalizer.extract_reference(body)

        return ParsedTransaction(
            amount=fields.amount,
            direction=fields.direction,
            counterparty=fields.counterparty,
            institution=institution,
            category=category,
            occurred_at=occurred_at,
            raw_source=build_raw_source(
                institution, fields.amount, occurred_at,
                reference=reference, message_id=message.message_id
            ),
            upi_id=fields.upi_id,
            balance=self.normalizer.extract_balance(body),
            account=self.normalizer.extract_account(body),
            reference=reference,
            currency=self.config.currency,
        )


def build_raw_source(institution: Institution, amount: Decimal, occurred_at: datetime,
                     reference: Optional[str] = None,
                     message_id: Optional[str] = None) -> str:
    """Deduplication key for a parsed message.

    Prefers the reference number printed in the message, then the platform
    message id, then amount plus the minute the transaction happened.
    """
    if reference:
        key = reference
    elif message_id is not None and str(message_id).strip():
        key = re.sub(r'\s+', '-', str(message_id).strip())
    else:
        key = f"{amount}_{occurred_at.strftime('%Y%m%d%H%M')}"
    return f"sms_{institution.value.lower()}_{key}"


@lru_cache(maxsize=1)
def get_default_parser() -> SMSParser:
    """Shared parser built from the default tables"""
    return SMSParser()


def parse(body: str, sender: str,
          received_at: Optional[datetime] = None) -> Optional[ParsedTransaction]:
    """Parse one message with the default tables"""
    return get_default_parser().parse(body, sender, received_at)
