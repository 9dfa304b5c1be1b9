"""Message parsing pipeline components"""

from .base import MessageParser, FieldNormalizer
from .spam_filter import SpamFilter
from .institution import InstitutionIdentifier
from .patterns import PatternDescriptor, PatternExtractor, DEFAULT_PATTERNS
from .categorizer import Categorizer
from .sms_parser import SMSParser, build_raw_source, get_default_parser, parse
from .message_loader import MessageLoader

__all__ = [
    'MessageParser',
    'FieldNormalizer',
    'SpamFilter',
    'InstitutionIdentifier',
    'PatternDescriptor',
    'PatternExtractor',
    'DEFAULT_PATTERNS',
    'Categorizer',
    'SMSParser',
    'build_raw_source',
    'get_default_parser',
    'parse',
    'MessageLoader',
]
