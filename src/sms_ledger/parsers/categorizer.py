"""Keyword based spending categories."""

import logging
from decimal import Decimal
from typing import Dict, List, Optional, Tuple, Union

from ..exceptions import ConfigurationError


logger = logging.getLogger(__name__)


EMI_RENT = 'EMI/Rent'
OTHERS = 'Others'


class Categorizer:
    """Maps a counterparty to a spending category.

    Groups are a priority list: the first group with a keyword contained in
    the lowercased counterparty wins, so "uber eats" is Food & Dining and
    "amazon prime" is Shopping. Without a keyword hit, amounts above the
    high-value threshold are treated as EMI/Rent.
    """

    DEFAULT_GROUPS: List[Tuple[str, List[str]]] = [
        ('Food & Dining', ['swiggy', 'zomato', 'uber eats', 'food', 'restaurant',
                           'cafe', 'dominos', 'kfc', 'mcdonald']),
        ('Transportation', ['uber', 'ola', 'metro', 'bus', 'taxi', 'petrol',
                            'fuel', 'irctc']),
        ('Shopping', ['amazon', 'flipkart', 'myntra', 'ajio', 'shopping', 'mall',
                      'store']),
        ('Entertainment', ['netflix', 'amazon prime', 'hotstar', 'spotify', 'movie',
                           'cinema', 'bookmyshow']),
        ('Utilities', ['electricity', 'gas', 'water', 'internet', 'mobile',
                       'recharge', 'bill']),
        ('Healthcare', ['pharma', 'medicine', 'hospital', 'clinic', 'doctor',
                        'health']),
    ]

    CATEGORIES = frozenset([name for name, _ in DEFAULT_GROUPS] + [EMI_RENT, OTHERS])

    def __init__(self, groups: Optional[Dict[str, List[str]]] = None,
                 high_value_threshold: Union[Decimal, int, str] = Decimal('10000'),
                 default_category: str = OTHERS):
        source = self.DEFAULT_GROUPS if groups is None else self._validate_groups(groups)
        self.groups = [
            (name, tuple(k.lower() for k in keywords)) for name, keywords in source
        ]
        self.high_value_threshold = Decimal(str(high_value_threshold))
        if default_category not in self.CATEGORIES:
            raise ConfigurationError(f"Unknown default category: {default_category}")
        self.default_category = default_category

    def _validate_groups(self, groups: Dict[str, List[str]]) -> List[Tuple[str, List[str]]]:
        validated = []
        for name, keywords in groups.items():
            if name not in self.CATEGORIES:
                raise ConfigurationError(
                    f"Unknown category '{name}', expected one of {sorted(self.CATEGORIES)}"
                )
            if isinstance(keywords, str) or not isinstance(keywords, list):
                raise ConfigurationError(f"Keywords for '{name}' must be a list")
            validated.append((name, [str(k) for k in keywords if str(k).strip()]))
        return validated

    def categorize(self, counterparty: str, amount: Decimal) -> str:
        """Return the category for a counterparty and amount, never None"""
        text = (counterparty or '').lower()
        for name, keywords in self.groups:
            for keyword in keywords:
                if keyword in text:
                    logger.debug(f"Category '{name}' via keyword '{keyword}'")
                    return name

        if amount > self.high_value_threshold:
            return EMI_RENT
        return self.default_category
