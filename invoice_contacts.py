"""
Phone, email, pickup address and pickup date extraction.

None of this depends on the vendor's item layout; everything scans the
whitespace-normalized invoice text. Candidates that fail a plausibility
check are skipped, never reported.
"""

import logging
import re
from typing import Iterable, List, Optional

from pydantic import ValidationError

from auction_vendors import VendorProfile
from invoice_models import Address, ContactInfo
from invoice_text import normalize_text

logger = logging.getLogger(__name__)

PHONE_RE = re.compile(
    r"(?<!\d)(?:\+?1[\s.-]?)?\(?(\d{3})\)?[\s.-]*(\d{3})[\s.-]*(\d{4})(?!\d)"
)
EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")

# Street: house number plus up to seven words, with an optional
# "(Plant 208/209)" style qualifier.
_STREET = (
    r"(?P<street>\d{1,6}(?:\s+[A-Za-z0-9.#'/&-]+){1,7}?"
    r"(?:\s*\([^)]{1,60}\))?)"
)
_ZIP = r"(?P<zip>\d{5}(?:-\d{4})?)"

# Localities the freight desk picks up from regularly. New areas need a new
# entry here; the Location: scanner below covers labeled addresses anywhere.
KNOWN_LOCALITIES = [
    ("Howe", "IN"),
    ("LaGrange", "IN"),
    ("Shipshewana", "IN"),
    ("Elkhart", "IN"),
    ("Goshen", "IN"),
    ("Fort Wayne", "IN"),
    ("Sturgis", "MI"),
    ("Coldwater", "MI"),
    ("Bryan", "OH"),
    ("Manhattan", "KS"),
]

KNOWN_ADDRESS_PATTERNS = [
    re.compile(
        _STREET
        + r"\s*,?\s+(?P<city>"
        + re.escape(city).replace(r"\ ", r"\s+")
        + r")\s*,?\s+(?P<state>"
        + state
        + r")\b\.?\s*"
        + _ZIP,
        re.IGNORECASE,
    )
    for city, state in KNOWN_LOCALITIES
]

LOCATION_RE = re.compile(
    r"(?i:location)\s*:\s*"
    r"(?P<street>\d[^,:()]{0,60}(?:\([^)]*\))?)\s*,?\s+"
    r"(?P<city>[A-Za-z][A-Za-z.'-]*(?:\s+[A-Za-z][A-Za-z.'-]*)?)\s*,?\s+"
    r"(?P<state>[A-Z]{2})\s+" + _ZIP
)

_MONTH = (
    r"\b(?:jan|feb|mar|apr|may|jun|jul|aug|sep|sept|oct|nov|dec)[a-z]*\.?"
)
_WEEKDAY = r"(?:\b(?:mon|tue|tues|wed|thu|thur|thurs|fri|sat|sun)[a-z]*\.?,?\s+)?"
_DATE = (
    r"(?:" + _WEEKDAY + r"\d{1,2}/\d{1,2}(?:/\d{2,4})?"
    r"|" + _WEEKDAY + _MONTH + r"\s+\d{1,2}(?:st|nd|rd|th)?(?:,?\s+\d{4})?)"
)
DATE_RANGE_RE = re.compile(
    _DATE + r"(?:\s*(?:-|–|to|thru|through|&|and)\s*" + _DATE + r")?",
    re.IGNORECASE,
)
PICKUP_LABEL_RE = re.compile(
    r"pick\s*-?\s*up(?:\s+dates?)?|removal(?:\s+dates?)?|load\s*-?\s*out",
    re.IGNORECASE,
)
PICKUP_WINDOW = 120

# Words that never belong to a street line. The locality patterns run over
# the whole collapsed document, so a match can start at an earlier number
# ("Invoice # 55012 Pickup at 123 Main St"); the street starts after the
# last of these.
STREET_STOP_WORDS = {
    "address",
    "at",
    "by",
    "date",
    "fax",
    "from",
    "invoice",
    "is",
    "location",
    "lot",
    "paid",
    "phone",
    "pickup",
    "removal",
    "tel",
    "to",
}
_PARENTHETICAL_RE = re.compile(r"\s*\(.*$")


def _dedupe(values: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for value in values:
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result


def _format_phone(area: str, exchange: str, line: str) -> Optional[str]:
    # 000-000-0000, 555-123-4567 area/exchange placeholders etc.
    if int(area) < 200 or int(exchange) < 200:
        return None
    return f"({area}) {exchange}-{line}"


def extract_phones(text: str, profile: Optional[VendorProfile] = None) -> List[str]:
    """
    Extract plausible phone numbers as "(NNN) NNN-NNNN".

    Numbers matched by the vendor's own phone pattern come first.
    """
    normalized = normalize_text(text)
    candidates = []

    if profile is not None and profile.phone_pattern:
        for match in re.finditer(profile.phone_pattern, normalized, re.IGNORECASE):
            candidates.extend(PHONE_RE.findall(match.group(0)))

    candidates.extend(PHONE_RE.findall(normalized))

    phones = []
    for area, exchange, line in candidates:
        phone = _format_phone(area, exchange, line)
        if phone is None:
            logger.debug("Discarding implausible phone %s-%s-%s", area, exchange, line)
            continue
        phones.append(phone)
    return _dedupe(phones)


def extract_emails(text: str, profile: Optional[VendorProfile] = None) -> List[str]:
    normalized = normalize_text(text)
    found = []
    if profile is not None and profile.email_pattern:
        found.extend(
            m.group(0) for m in re.finditer(profile.email_pattern, normalized, re.IGNORECASE)
        )
    found.extend(EMAIL_RE.findall(normalized))
    return _dedupe(email.lower().rstrip(".") for email in found)


def extract_contact_info(
    text: str, profile: Optional[VendorProfile] = None
) -> ContactInfo:
    return ContactInfo(
        phones=extract_phones(text, profile), emails=extract_emails(text, profile)
    )


def _trim_street(street: str) -> str:
    qualifier = _PARENTHETICAL_RE.search(street)
    suffix = qualifier.group(0) if qualifier else ""
    tokens = street[: len(street) - len(suffix)].split()

    for idx in range(len(tokens) - 1, -1, -1):
        word = tokens[idx].lower().strip(".,#")
        if word in STREET_STOP_WORDS or tokens[idx].endswith(":"):
            tokens = tokens[idx + 1 :]
            break

    while tokens and not tokens[0][0].isdigit():
        tokens.pop(0)
    # "1212 123 Main St": a phone or lot number run into the house number
    while len(tokens) > 2 and tokens[0].isdigit() and tokens[1].isdigit():
        tokens.pop(0)

    if not tokens:
        return ""
    return " ".join(tokens) + suffix


def build_address(
    street: str, city: str, state: str, zip_code: str
) -> Optional[Address]:
    """Build an Address, or None when the pieces don't make one."""
    street = _trim_street(street)
    if not street:
        logger.debug("Discarding address candidate without a house number")
        return None
    try:
        address = Address(street=street, city=city, state=state, zip=zip_code)
    except ValidationError as e:
        logger.debug("Discarding address candidate %r: %s", street, e)
        return None
    if not address.street or not address.city:
        return None
    return address


def extract_addresses(text: str) -> List[Address]:
    """
    Extract pickup addresses.

    Two passes: the known-locality patterns, then "Location:" labels.
    Results are deduplicated on (street, address2).
    """
    normalized = normalize_text(text)
    addresses: List[Address] = []
    seen = set()

    def add(match: re.Match) -> None:
        address = build_address(
            match.group("street"),
            match.group("city"),
            match.group("state"),
            match.group("zip"),
        )
        if address is None or address.key in seen:
            return
        seen.add(address.key)
        addresses.append(address)

    for pattern in KNOWN_ADDRESS_PATTERNS:
        for match in pattern.finditer(normalized):
            add(match)

    for match in LOCATION_RE.finditer(normalized):
        add(match)

    return addresses


def extract_pickup_dates(text: str) -> List[str]:
    """Dates or date ranges printed right after a pickup/removal label."""
    normalized = normalize_text(text)
    dates = []
    for label in PICKUP_LABEL_RE.finditer(normalized):
        window = normalized[label.end() : label.end() + PICKUP_WINDOW]
        for match in DATE_RANGE_RE.finditer(window):
            dates.append(" ".join(match.group(0).split()).strip(" ,"))
    return _dedupe(dates)
