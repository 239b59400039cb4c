"""
Auction house profiles and vendor detection.

Adding a new auction house means adding one VendorProfile below and, only if
its invoice layout fits none of the existing strategies, a new parser class
in auction_parsers.
"""

import re
from enum import Enum
from typing import NamedTuple, Optional

from invoice_models import UNKNOWN_VENDOR
from invoice_text import normalize_text

PROFILE_TABLE_VERSION = 3


class ExtractionStrategy(str, Enum):
    SEQUENTIAL = "sequential"
    TABLE_BLOCK = "table_block"
    GENERIC = "generic"


class VendorProfile(NamedTuple):
    name: str
    identifier: Optional[str]
    strategy: ExtractionStrategy
    phone_pattern: Optional[str] = None
    email_pattern: Optional[str] = None

    def matches(self, normalized_text: str) -> bool:
        if not self.identifier:
            return False
        return re.search(self.identifier, normalized_text, re.IGNORECASE) is not None


# Priority order matters: auctioneers that run their sales on a bidding
# platform print the platform's name in their footer ("Powered by HiBid"),
# so every hosted auctioneer must be checked before the platform itself.
VENDOR_PROFILES = [
    VendorProfile(
        name="Purple Wave",
        identifier=r"purple\s*wave",
        strategy=ExtractionStrategy.SEQUENTIAL,
        phone_pattern=r"(?:phone|call)\s*:?\s*(\(?\d{3}\)?[\s.-]*\d{3}[\s.-]*\d{4})",
        email_pattern=r"[\w.+-]+@purplewave\.com",
    ),
    VendorProfile(
        name="Wavebid",
        identifier=r"\bwavebid\b",
        strategy=ExtractionStrategy.TABLE_BLOCK,
    ),
    VendorProfile(
        name="Schrader Auction",
        identifier=r"schrader\s+(?:real\s+estate\s+and\s+)?auction",
        strategy=ExtractionStrategy.TABLE_BLOCK,
        email_pattern=r"[\w.+-]+@schraderauction\.com",
    ),
    VendorProfile(
        name="Proxibid",
        identifier=r"\bproxibid\b",
        strategy=ExtractionStrategy.SEQUENTIAL,
    ),
    VendorProfile(
        name="GovDeals",
        identifier=r"\bgov\s*deals\b",
        strategy=ExtractionStrategy.SEQUENTIAL,
        email_pattern=r"[\w.+-]+@govdeals\.com",
    ),
    VendorProfile(
        name="HiBid",
        identifier=r"\bhi\s*bid\b",
        strategy=ExtractionStrategy.TABLE_BLOCK,
    ),
]

UNKNOWN_PROFILE = VendorProfile(
    name=UNKNOWN_VENDOR,
    identifier=None,
    strategy=ExtractionStrategy.GENERIC,
)


def detect_vendor(text: str) -> VendorProfile:
    """
    Detect the auction house that issued the invoice.

    Args:
        text: Raw or normalized invoice text

    Returns:
        The first matching VendorProfile, or UNKNOWN_PROFILE
    """
    normalized = normalize_text(text)
    if not normalized:
        return UNKNOWN_PROFILE

    for profile in VENDOR_PROFILES:
        if profile.matches(normalized):
            return profile

    return UNKNOWN_PROFILE


def get_profile(name: str) -> VendorProfile:
    """Look up a profile by display name (case-insensitive)."""
    for profile in VENDOR_PROFILES:
        if profile.name.lower() == name.lower():
            return profile
    return UNKNOWN_PROFILE
