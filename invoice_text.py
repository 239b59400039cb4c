"""
Text helpers shared by the auction invoice parsers.

pdfplumber hands us a single blob per invoice. Label scanning works on a
whitespace-collapsed copy of it, while the lot parsers need the line view.
"""

import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import List, NamedTuple, Optional

# Characters scanned at the end of a string when the strict price pattern fails
TAIL_WINDOW = 40

AMOUNT_PATTERN = r"(?:\d{1,3}(?:,\d{3})+|\d+)\.\d{2}"

# "$ 1,234.56", "1,234.56$", "1,234.56"
PRICE_RE = re.compile(
    r"(?:\$\s*)?(?<![\d,.])(" + AMOUNT_PATTERN + r")(?![\d])(?:\s*\$)?"
)

# OCR/extraction noise can put spaces inside the number: "$ 1, 234 .56"
LOOSE_PRICE_RE = re.compile(
    r"\$\s*(\d{1,3}(?:\s*,\s*\d{3})*\s*\.\s*\d{2})(?!\d)"
    r"|(?<![\d,.])(\d{1,3}(?:\s*,\s*\d{3})*\s*\.\s*\d{2})\s*\$"
)

_WHITESPACE_RE = re.compile(r"\s+")
_INLINE_SPACE_RE = re.compile(r"[ \t\u00a0\u2009]+")


class PriceMatch(NamedTuple):
    amount: str
    start: int
    end: int


def normalize_text(text: str) -> str:
    """Collapse every run of whitespace (newlines included) into one space."""
    if not text:
        return ""
    return _WHITESPACE_RE.sub(" ", text).strip()


def split_lines(text: str) -> List[str]:
    """
    Return the invoice text as stripped lines.

    Blank lines are kept as "" so callers can still see paragraph breaks.
    """
    if not text:
        return []
    return [_INLINE_SPACE_RE.sub(" ", line).strip() for line in text.splitlines()]


def format_amount(raw: str) -> str:
    """Convert "$1,234.5" or "1 234.56$" to "1234.56"."""
    value = to_decimal(raw)
    if value is None:
        raise ValueError(f"Not an amount: {raw!r}")
    return str(value)


def to_decimal(raw) -> Optional[Decimal]:
    if raw is None:
        return None
    if isinstance(raw, Decimal):
        value = raw
    else:
        cleaned = re.sub(r"[\s$,]", "", str(raw))
        if not cleaned:
            return None
        try:
            value = Decimal(cleaned)
        except InvalidOperation:
            return None
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def find_price(text: str) -> Optional[PriceMatch]:
    """
    Find the price in a candidate description string.

    The first strict match wins, unless it sits in the last TAIL_WINDOW
    characters and is only the tail of an amount broken up by stray
    whitespace ("$ 2, 500.00"); then the looser, currency-anchored match
    that covers it is used. With no strict match at all, the loose pattern
    still gets a go at the tail.
    """
    if not text:
        return None

    offset = max(0, len(text) - TAIL_WINDOW)
    match = PRICE_RE.search(text)

    if match and match.end() <= offset:
        return PriceMatch(format_amount(match.group(1)), match.start(), match.end())

    for loose in LOOSE_PRICE_RE.finditer(text[offset:]):
        start, end = offset + loose.start(), offset + loose.end()
        if match is None or (start < match.start() and end >= match.end()):
            raw = loose.group(1) or loose.group(2)
            return PriceMatch(format_amount(raw), start, end)

    if match:
        return PriceMatch(format_amount(match.group(1)), match.start(), match.end())

    return None


def find_amounts(text: str) -> List[str]:
    """All strict amounts in a string, formatted, in order of appearance."""
    return [format_amount(m.group(1)) for m in PRICE_RE.finditer(text or "")]


def is_amounts_only(line: str) -> bool:
    """True for lines such as "$100.00 $250.00 $25.00"."""
    if not PRICE_RE.search(line):
        return False
    return not PRICE_RE.sub("", line).replace("$", "").strip()


def strip_price(text: str, match: Optional[PriceMatch]) -> str:
    """Remove the matched price from a description and tidy what is left."""
    if match is not None:
        text = text[: match.start] + " " + text[match.end :]
    return clean_description(text)


def strip_amounts(text: str) -> str:
    return clean_description(PRICE_RE.sub(" ", text))


def clean_description(text: str) -> str:
    text = normalize_text(text)
    # Separators left dangling once a price column is removed
    return text.strip(" -,;:|").strip()
