"""Loading of stored message backlogs (SMS exports) from CSV and JSON files."""

import json
import logging
import os
from datetime import datetime
from typing import Any, Dict, List, Optional

import pandas as pd

from ..models.core import InboundMessage


logger = logging.getLogger(__name__)

# Digit counts of epoch seconds and epoch milliseconds
EPOCH_DIGITS = (10, 13)

# Digit-only export dates, keyed by length
COMPACT_DATE_FORMATS = {
    8: ['%Y%m%d', '%d%m%Y'],
    12: ['%Y%m%d%H%M'],
    14: ['%Y%m%d%H%M%S'],
}


class MessageLoader:
    """Reads exported messages with automatic column detection"""

    def __init__(self):
        self.supported_extensions = ['.csv', '.json']

        # Header names used by common SMS backup and export tools
        self.column_mappings = {
            'body': [
                'body', 'message', 'text', 'sms', 'content', 'msg', 'message_body',
                'message body', 'sms_body', 'sms body'
            ],
            'sender': [
                'sender', 'address', 'from', 'originator', 'sender_id', 'sender id',
                'source', 'contact', 'number'
            ],
            'received_at': [
                'received_at', 'timestamp', 'date', 'time', 'datetime', 'received',
                'date_received', 'received date', 'sent_at', 'date_sent'
            ],
            'message_id': [
                'message_id', 'id', '_id', 'sms_id', 'message id', 'msg_id', 'uid'
            ],
        }

    def validate_file(self, file_path: str) -> bool:
        """Check that a backlog file exists and has a supported extension"""
        if not os.path.exists(file_path):
            logger.error(f"File does not exist: {file_path}")
            return False

        _, ext = os.path.splitext(file_path.lower())
        if ext not in self.supported_extensions:
            logger.error(f"Unsupported file extension: {ext}")
            return False

        return True

    def load(self, file_path: str) -> List[InboundMessage]:
        """Load messages from a CSV or JSON export"""
        if not self.validate_file(file_path):
            return []

        _, ext = os.path.splitext(file_path.lower())
        if ext == '.json':
            records = self._read_json(file_path)
        else:
            records = self._read_csv(file_path)

        if not records:
            logger.warning(f"No messages found in {file_path}")
            return []

        mapping = self.detect_column_mapping(list(records[0].keys()))
        if 'body' not in mapping:
            logger.error(f"No message body column found in {file_path}")
            return []

        messages = []
        for index, record in enumerate(records):
            message = self._convert_record(record, mapping, index)
            if message is not None:
                messages.append(message)

        logger.info(f"Loaded {len(messages)} messages from {file_path}")
        return messages

    def _read_csv(self, file_path: str) -> List[Dict[str, Any]]:
        try:
            df = pd.read_csv(file_path, dtype=str, keep_default_na=False)
        except (pd.errors.EmptyDataError, pd.errors.ParserError, UnicodeDecodeError) as e:
            logger.error(f"Error reading CSV file {file_path}: {e}")
            return []

        if df.empty:
            return []
        return df.to_dict(orient='records')

    def _read_json(self, file_path: str) -> List[Dict[str, Any]]:
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error(f"Error reading JSON file {file_path}: {e}")
            return []

        if isinstance(data, dict):
            data = data.get('messages', [])
        if not isinstance(data, list):
            logger.error(f"Expected a list of messages in {file_path}")
            return []
        return [item for item in data if isinstance(item, dict)]

    def detect_column_mapping(self, headers: List[str]) -> Dict[str, str]:
        """Map message fields to the headers of an export"""
        mapping = {}
        for field, possible_names in self.column_mappings.items():
            for header in headers:
                if str(header).strip().lower() in possible_names:
                    mapping[field] = header
                    break

        logger.debug(f"Detected column mappings: {mapping}")
        return mapping

    def _convert_record(self, record: Dict[str, Any], mapping: Dict[str, str],
                        index: int) -> Optional[InboundMessage]:
        body = record.get(mapping['body'])
        if body is None or (isinstance(body, float) and pd.isna(body)) or not str(body).strip():
            logger.warning(f"Skipping row {index + 1}: empty message body")
            return None

        sender = record.get(mapping['sender']) if 'sender' in mapping else None
        message_id = record.get(mapping['message_id']) if 'message_id' in mapping else None

        received_at = None
        if 'received_at' in mapping:
            raw_time = record.get(mapping['received_at'])
            try:
                received_at = self.parse_timestamp(raw_time)
            except ValueError as e:
                logger.warning(f"Ignoring timestamp in row {index + 1}: {e}")

        return InboundMessage(
            body=str(body),
            sender='' if sender is None else str(sender).strip(),
            received_at=received_at,
            message_id=str(message_id).strip() if message_id not in (None, '') else None,
        )

    @staticmethod
    def parse_timestamp(value: Any) -> Optional[datetime]:
        """Parse an export timestamp.

        Accepts epoch seconds or milliseconds (10 or 13 digits, as numbers or
        digit strings), compact dates such as ``20250721`` or
        ``202507211030`` and any date string pandas can read, day first.
        """
        if value is None or (isinstance(value, float) and pd.isna(value)):
            return None

        if isinstance(value, float) and value.is_integer():
            value = int(value)
        text = str(value).strip()
        if not text:
            return None

        if text.isdigit():
            if len(text) in EPOCH_DIGITS:
                epoch = int(text) / 1000.0 if len(text) == 13 else int(text)
                return datetime.fromtimestamp(epoch)
            for date_format in COMPACT_DATE_FORMATS.get(len(text), []):
                try:
                    return datetime.strptime(text, date_format)
                except ValueError:
                    continue
            raise ValueError(f"Unable to parse timestamp: {text}")

        if isinstance(value, float):
            return datetime.fromtimestamp(value / 1000.0 if value > 1e11 else value)

        try:
            return datetime.fromisoformat(text)
        except ValueError:
            pass

        timestamp = pd.to_datetime(text, dayfirst=True)
        if pd.isna(timestamp):
            raise ValueError(f"Unable to parse timestamp: {text}")
        return timestamp.to_pydatetime()
