"""
Fixed vocabularies for categories, payment modes and spenders.
"""
from enum import Enum
from typing import List, Optional, Sequence
import logging

logger = logging.getLogger(__name__)

UNKNOWN_LABEL = "Unknown"


class _Vocabulary(str, Enum):
    """Closed set of string labels with an ``UNKNOWN`` fallback member."""

    @classmethod
    def members(cls) -> List["_Vocabulary"]:
        """Known members in declaration order, without ``UNKNOWN``."""
        return [m for m in cls if m.value != UNKNOWN_LABEL]

    @classmethod
    def labels(cls) -> List[str]:
        return [m.value for m in cls.members()]

    @classmethod
    def from_label(cls, label: Optional[str]) -> "_Vocabulary":
        """Map a stored label to a member, falling back to ``UNKNOWN``.

        Matching ignores case, surrounding whitespace and a leading icon
        (labels were once stored as e.g. "🛒 Groceries").
        """
        if not label or not str(label).strip():
            return cls.UNKNOWN
        text = str(label).strip()
        candidates = [text]
        prefix, _, rest = text.partition(" ")
        if rest and not any(ch.isalnum() for ch in prefix):
            candidates.append(rest.strip())
        for candidate in candidates:
            for member in cls.members():
                if member.value.lower() == candidate.lower():
                    return member
        logger.debug("Unrecognized %s label: %r", cls.__name__, label)
        return cls.UNKNOWN

    @property
    def icon(self) -> str:
        return _ICONS.get(self.value, "")

    @property
    def display_name(self) -> str:
        return f"{self.icon} {self.value}" if self.icon else self.value


class Category(_Vocabulary):
    GROCERIES = "Groceries"
    E_COMMERCE = "E-Commerce"
    SHOPPING = "Shopping"
    TRAVEL = "Travel"
    RESTAURANT = "Restaurant"
    APPARELS = "Apparels"
    PETROL = "Petrol"
    HOSPITAL = "Hospital"
    TOLL = "Toll"
    SALOON = "Saloon"
    E_LEARNING = "E-Learning"
    SERVICES = "Services"
    OTHER = "Other"
    UNKNOWN = UNKNOWN_LABEL


class PaymentMode(_Vocabulary):
    CASH = "Cash"
    UPI = "UPI"
    DEBIT_CARD = "Debit Card"
    CREDIT_CARD = "Credit Card"
    UNKNOWN = UNKNOWN_LABEL


class SpentBy(_Vocabulary):
    SELF = "Self"
    PARTNER = "Partner"
    UNKNOWN = UNKNOWN_LABEL


_ICONS = {
    "Groceries": "🛒",
    "E-Commerce": "📦",
    "Shopping": "🛍️",
    "Travel": "✈️",
    "Restaurant": "🍔",
    "Apparels": "👕",
    "Petrol": "⛽",
    "Hospital": "🏥",
    "Toll": "🛣️",
    "Saloon": "💇",
    "E-Learning": "💻",
    "Services": "🚗",
    "Other": "💰",
    "Cash": "💵",
    "UPI": "📲",
    "Debit Card": "💳",
    "Credit Card": "💳",
    "Self": "🧑",
    "Partner": "👧",
}


def category_vocabulary() -> List[str]:
    """Return the ordered list of known category labels."""
    return Category.labels()


def normalize_category(label: Optional[str], vocabulary: Optional[Sequence[str]] = None) -> str:
    """Return the vocabulary label for ``label`` or ``"Unknown"``."""
    if vocabulary is None:
        return Category.from_label(label).value
    if not label or not str(label).strip():
        return UNKNOWN_LABEL
    text = str(label).strip()
    if text in vocabulary:
        return text
    # Fall back to the enum matcher for case and icon variants
    matched = Category.from_label(text).value
    return matched if matched in vocabulary else UNKNOWN_LABEL
