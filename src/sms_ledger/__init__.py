"""SMS Ledger - transaction extraction from bank and UPI alert messages"""

__version__ = "0.1.0"

from .exceptions import SMSLedgerError, MalformedMessageError, ConfigurationError, StoreError
from .models import (
    BatchParseResult,
    Direction,
    InboundMessage,
    Institution,
    ParseOutcome,
    ParsedTransaction,
    ParserConfig,
    ParseStatus,
)
from .parsers import SMSParser, parse

__all__ = [
    '__version__',
    'SMSLedgerError',
    'MalformedMessageError',
    'ConfigurationError',
    'StoreError',
    'BatchParseResult',
    'Direction',
    'InboundMessage',
    'Institution',
    'ParseOutcome',
    'ParsedTransaction',
    'ParserConfig',
    'ParseStatus',
    'SMSParser',
    'parse',
]
