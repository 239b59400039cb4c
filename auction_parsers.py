"""
Line-item parsers for auction invoice layouts.

Auction houses don't agree on anything: some print "LOT# description price"
as one wrapped block, some print a Lot/Paddle/Description/.../Sale Price
table that pdfplumber flattens into loose lines, and some give nothing more
than a lot number and an item code. Each layout gets one parser class; the
vendor profile decides which one runs first.
"""

import logging
import re
from typing import List, Optional

from auction_vendors import ExtractionStrategy, VendorProfile
from invoice_models import LineItem
from invoice_text import (
    find_amounts,
    find_price,
    is_amounts_only,
    split_lines,
    strip_amounts,
    strip_price,
)

logger = logging.getLogger(__name__)

# Page furniture that pdfplumber interleaves with the lot rows
NOISE_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in [
        r"^page\s+\d+(\s+of\s+\d+)?\b",
        r"\bpage\s+\d+\s+of\s+\d+$",
        r"^lot\b.*\bdescription\b",
        r"^(?:continued|cont\.)\b",
        r"^printed\s+(?:on|by)\b",
        r"^powered\s+by\b",
        r"^thank\s+you\b",
        r"all\s+items\s+(?:are\s+)?sold\s+as[\s-]+is",
        r"as[\s-]+is,?\s+where[\s-]+is",
        r"terms\s+and\s+conditions",
        r"no\s+warrant(?:y|ies)",
        r"^https?://|^www\.",
        r"^invoice\s*(?:#|no\.?|number)?\s*:?\s*[\w-]*\d[\w-]*$",
        r"^(?:invoice|sale|auction)\s+date\b",
        r"^\d{1,2}/\d{1,2}/\d{2,4}\s+\d{1,2}:\d{2}",
    ]
]

# Markers that end the lot list wherever they sit on the line:
# "***", "Invoice Subtotal: $4,109.56", "Special Notes: ..."
SEQUENTIAL_TERMINATORS = re.compile(
    r"\*\*\*|\bsub\s*-?\s*total\b|\bnotes?:", re.IGNORECASE
)

TABLE_FOOTERS = re.compile(
    r"^totals?:|^total\s+lots?\b|buyer\s+information|^sub\s*-?\s*total\b"
    r"|^invoice\s+total\b",
    re.IGNORECASE,
)

LOADING_FEE_RE = re.compile(r"loading\s+fee", re.IGNORECASE)

# A lot column header: "Lot Paddle Description Bid Sale Price Premium Tax Total"
LOT_HEADER_RE = re.compile(r"^lot\b.*\bdescription\b", re.IGNORECASE)

# "257A Widget assembly" -> lot 257A. The lot must be followed by whitespace
# or end the line so "1,234.56" and "10/14/2024" never start a lot.
SEQUENTIAL_LOT_RE = re.compile(r"^(\d{1,6}[A-Za-z]?)(?:\s+(.*))?$")
LEADING_AMOUNT_RE = re.compile(r"^\$?\s*\d{1,3}(?:,\d{3})*\.\d{2}|^\d+\.\d{2}")

TABLE_LOT_PADDLE_RE = re.compile(r"^(\d{1,6}[A-Za-z]?)\s+(\d{1,6})(?:\s+(.*))?$")
TABLE_LOT_RE = re.compile(r"^(\d{1,6}[A-Za-z]?)(?:\s+(.*))?$")

GENERIC_LOT_RE = re.compile(r"^(\d{2,5}) (\d{4}) (.+)$")
GENERIC_CONTINUATION_RANGE = (10, 200)


def is_noise(line: str) -> bool:
    return any(p.search(line) for p in NOISE_PATTERNS)


class LotCollector:
    """
    Items found during one parse call.

    A (lot, price) pair is only recorded once; pdfplumber repeats rows when
    an invoice prints a carry-over block at the top of the next page.
    """

    def __init__(self):
        self.items: List[LineItem] = []
        self._seen = set()

    def add(self, lot_number: str, description: str, price: Optional[str]) -> bool:
        key = (lot_number, price)
        if key in self._seen:
            logger.debug("Skipping duplicate lot %s at %s", lot_number, price)
            return False
        self._seen.add(key)
        self.items.append(
            LineItem(lot_number=lot_number, description=description, hammer_price=price)
        )
        return True


class SequentialLotParser:
    """Parser for invoices that print each lot as LOT# description price."""

    @staticmethod
    def parse(text: str) -> List[LineItem]:
        """
        Walk the lines with a small state machine.

        Format:
        - Line 1: lot number (optional letter suffix) + start of description
        - Optional wrapped description lines
        - The hammer price, either glued to one of those lines or alone,
          with the $ before or after the number

        Example:
            257A Widget assembly, chrome
            $ 1,234.56
            258 Gear box 2,500.00$

        A lot whose price never shows up before the next lot starts (or the
        document ends) is dropped.
        """
        collector = LotCollector()
        lines = split_lines(text)
        start = _index_after_header(lines)

        current_lot = None
        current_description = ""

        def commit() -> None:
            price = find_price(current_description)
            if price is None:
                logger.debug("Dropping lot %s: no price found", current_lot)
                return
            collector.add(
                current_lot, strip_price(current_description, price), price.amount
            )

        for line in lines[start:]:
            if not line:
                continue

            if SEQUENTIAL_TERMINATORS.search(line):
                break

            if is_noise(line):
                continue

            match = None
            if not LEADING_AMOUNT_RE.match(line):
                match = SEQUENTIAL_LOT_RE.match(line)

            if match:
                if current_lot is not None:
                    commit()
                current_lot = match.group(1)
                current_description = match.group(2) or ""
                if find_price(current_description):
                    commit()
                    current_lot = None
                    current_description = ""
                continue

            if current_lot is None:
                continue

            current_description = f"{current_description} {line}".strip()
            if find_price(current_description):
                commit()
                current_lot = None
                current_description = ""

        if current_lot is not None:
            commit()

        return collector.items


class TableBlockParser:
    """Parser for Lot / Paddle / Description / ... / Sale Price tables."""

    @staticmethod
    def parse(text: str) -> List[LineItem]:
        """
        Group the flattened table into one block per lot.

        Format (after pdfplumber flattening):
            Lot Paddle Description Bid Sale Price Premium Tax Total
            101 42 Hydraulic press
            $100.00 $250.00 $25.00 $0.00 $275.00
            Loading Fee $25.00
            Totals: ...

        Amounts are collected per block and the second one (the Sale Price
        column, right after Bid) becomes the hammer price. A block with a
        single amount uses it. Loading Fee rows are a separate charge and
        never count as a block amount.
        """
        collector = LotCollector()
        lines = split_lines(text)

        header_index = None
        for idx, line in enumerate(lines):
            if LOT_HEADER_RE.search(line):
                header_index = idx
                break

        if header_index is None:
            return []

        has_paddle = "paddle" in lines[header_index].lower()

        block_lot = None
        block_description: List[str] = []
        block_amounts: List[str] = []

        def commit() -> None:
            if block_lot is None:
                return
            price = None
            if len(block_amounts) >= 2:
                price = block_amounts[1]
            elif block_amounts:
                price = block_amounts[0]
            description = " ".join(d for d in block_description if d)
            collector.add(block_lot, description, price)

        for line in lines[header_index + 1 :]:
            if not line:
                continue

            if TABLE_FOOTERS.search(line):
                break

            if LOADING_FEE_RE.search(line):
                continue

            if is_amounts_only(line):
                if block_lot is not None:
                    block_amounts.extend(find_amounts(line))
                continue

            if is_noise(line):
                continue

            match = None
            if has_paddle:
                match = TABLE_LOT_PADDLE_RE.match(line)
            if match is None:
                match = TABLE_LOT_RE.match(line)

            if match:
                commit()
                rest_group = 3 if match.re is TABLE_LOT_PADDLE_RE else 2
                rest = match.group(rest_group) or ""
                block_lot = match.group(1)
                block_amounts = find_amounts(rest)
                inline = strip_amounts(rest)
                block_description = [inline] if inline else []
                continue

            if block_lot is not None:
                block_description.append(strip_amounts(line))
                block_amounts.extend(find_amounts(line))

        commit()
        return collector.items


class GenericLotParser:
    """Last-resort parser: "<lot> <4-digit code> <description>" lines."""

    @staticmethod
    def parse(text: str) -> List[LineItem]:
        """
        Example:
            1042 5531 Pallet of assorted hand tools
            including sockets and ratchets

        No price is attached; continuation lines of plausible length extend
        the previous description.
        """
        entries = []
        lines = split_lines(text)
        low, high = GENERIC_CONTINUATION_RANGE
        continuing = False

        for line in lines:
            match = GENERIC_LOT_RE.match(line)
            if match:
                lot_number, _code, description = match.groups()
                entries.append([lot_number, description.strip()])
                continuing = True
                continue

            if (
                continuing
                and low <= len(line) <= high
                and not is_noise(line)
                and not SEQUENTIAL_TERMINATORS.search(line)
            ):
                entries[-1][1] = f"{entries[-1][1]} {line}"
                continue

            continuing = False

        collector = LotCollector()
        for lot_number, description in entries:
            collector.add(lot_number, description, None)
        return collector.items


STRATEGY_PARSERS = {
    ExtractionStrategy.SEQUENTIAL: SequentialLotParser,
    ExtractionStrategy.TABLE_BLOCK: TableBlockParser,
    ExtractionStrategy.GENERIC: GenericLotParser,
}

FALLBACK_STRATEGIES = [ExtractionStrategy.TABLE_BLOCK, ExtractionStrategy.GENERIC]


def extract_line_items(text: str, profile: VendorProfile) -> List[LineItem]:
    """
    Run the profile's parser, falling back to the table-block and generic
    parsers when it finds nothing.
    """
    strategies = [profile.strategy] + [
        s for s in FALLBACK_STRATEGIES if s != profile.strategy
    ]

    for strategy in strategies:
        items = STRATEGY_PARSERS[strategy].parse(text)
        if items:
            if strategy != profile.strategy:
                logger.info(
                    "%s parser found no lots for %s; %s parser found %d",
                    profile.strategy.value,
                    profile.name,
                    strategy.value,
                    len(items),
                )
            return items

    logger.warning("No line items found for vendor %s", profile.name)
    return []


def _index_after_header(lines: List[str]) -> int:
    for idx, line in enumerate(lines):
        if LOT_HEADER_RE.search(line):
            return idx + 1
    return 0
