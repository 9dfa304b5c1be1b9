"""Deny-list filter for promotional and phishing messages."""

import logging
from typing import List, Optional


logger = logging.getLogger(__name__)


class SpamFilter:
    """Rejects marketing and phishing text before any extraction runs.

    Any single deny-term found anywhere in the body (case-insensitive
    substring) marks the message as spam. There is no scoring: a message
    that also looks like a real transaction is still dropped.
    """

    DEFAULT_KEYWORDS = [
        'won', 'winner', 'lottery', 'prize', 'congratulations', 'lucky',
        'claim', 'reward', 'gift', 'free', 'bonus', 'cashback',
        'offer expires', 'limited time', 'act now', 'urgent', 'verify',
        'suspended', 'blocked', 'update', 'click here', 'download app',
        'install now', 'register', 'subscribe',
    ]

    def __init__(self, keywords: Optional[List[str]] = None):
        source = self.DEFAULT_KEYWORDS if keywords is None else keywords
        self.keywords = tuple(k.lower() for k in source if k and k.strip())

    def check(self, body: str) -> Optional[str]:
        """Return the first deny-term found in the body, or None"""
        text = (body or '').lower()
        for keyword in self.keywords:
            if keyword in text:
                logger.debug(f"Spam keyword '{keyword}' matched")
                return keyword
        return None

    def is_spam(self, body: str) -> bool:
        return self.check(body) is not None
