"""Data models and structures"""

from .core import (
    BatchParseResult,
    Direction,
    InboundMessage,
    Institution,
    Layout,
    NormalizedFields,
    ParseOutcome,
    ParsedTransaction,
    ParserConfig,
    ParseStatus,
    RawCapture,
)

__all__ = [
    'BatchParseResult',
    'Direction',
    'InboundMessage',
    'Institution',
    'Layout',
    'NormalizedFields',
    'ParseOutcome',
    'ParsedTransaction',
    'ParserConfig',
    'ParseStatus',
    'RawCapture',
]
