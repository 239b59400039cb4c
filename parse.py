"""
Main parser element for auction invoice PDF documents
"""

import argparse
import json
import logging
from pathlib import Path
import re
import sys
from typing import Callable, List, Optional, Union
import warnings

import pdfplumber

from auction_parsers import LOADING_FEE_RE, extract_line_items
from auction_vendors import VENDOR_PROFILES, VendorProfile, detect_vendor, get_profile
from invoice_contacts import extract_addresses, extract_contact_info, extract_pickup_dates
from invoice_models import InvoiceRecord, LineItem, PaymentMethod, Totals
from invoice_text import normalize_text, split_lines
from invoice_totals import PaymentMethodRequired, TotalsInconsistent, resolve_totals

# Suppress Pillow warnings about invalid ICC profiles
warnings.filterwarnings("ignore", message=".*Invalid profile.*")
warnings.filterwarnings("ignore", category=UserWarning, module="PIL")

# Suppress logging noise from pdfminer
logging.getLogger("pdfminer").setLevel(logging.ERROR)

logger = logging.getLogger(__name__)

_DATE_VALUE = (
    r"(\d{1,2}/\d{1,2}/\d{2,4}"
    r"|\d{4}-\d{2}-\d{2}"
    r"|(?:jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*\.?\s+\d{1,2},?\s+\d{4})"
)

INVOICE_NUMBER_PATTERNS = [
    r"invoice\s*(?:#|no\.?|number)\s*:?\s*([A-Z0-9][A-Z0-9-]*\d[A-Z0-9-]*)",
    r"invoice\s*:\s*([A-Z0-9][A-Z0-9-]*\d[A-Z0-9-]*)",
    r"receipt\s*(?:#|no\.?|number)\s*:?\s*([A-Z0-9][A-Z0-9-]*\d[A-Z0-9-]*)",
]

INVOICE_DATE_PATTERNS = [
    r"(?:invoice|sale|auction|closing)\s+date\s*:?\s*" + _DATE_VALUE,
    r"\bdate\s*:\s*" + _DATE_VALUE,
]

NOTE_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in [
        r"^(?:special\s+)?notes?\s*:\s*(.+)$",
        r"^special\s+instructions?\s*:\s*(.+)$",
        r"^(.*\bforklift\b.*)$",
        r"^(.*\bloading\s+dock\b.*)$",
        r"^(.*\bno\s+loading\s+assistance\b.*)$",
    ]
]


def _first_group(text: str, patterns: List[str]) -> Optional[str]:
    for pattern in patterns:
        match = re.search(pattern, text, re.IGNORECASE)
        if match:
            return match.group(1).strip()
    return None


def extract_invoice_number(text: str) -> Optional[str]:
    return _first_group(normalize_text(text), INVOICE_NUMBER_PATTERNS)


def extract_invoice_date(text: str) -> Optional[str]:
    return _first_group(normalize_text(text), INVOICE_DATE_PATTERNS)


def extract_special_notes(text: str) -> List[str]:
    """
    Collect lines the freight desk needs to see: labeled notes, loading
    fees and loading/equipment instructions.
    """
    notes = []
    for line in split_lines(text):
        if not line:
            continue

        note = None
        if LOADING_FEE_RE.search(line):
            note = line
        else:
            for pattern in NOTE_PATTERNS:
                match = pattern.match(line)
                if match:
                    note = match.group(1).strip()
                    break

        if note and note not in notes:
            notes.append(note)

    return notes


def parse_invoice_text(
    text: str,
    *,
    prompt_on_ambiguous_totals: bool,
    payment_method: Union[PaymentMethod, str] = PaymentMethod.CASH,
    strict_totals: bool = False,
    choose_payment_method: Optional[Callable[[Totals], Union[PaymentMethod, str]]] = None,
    profile: Optional[VendorProfile] = None,
) -> InvoiceRecord:
    """
    Parse the text of one auction invoice into an InvoiceRecord.

    Args:
        text: Text extracted from the invoice PDF
        prompt_on_ambiguous_totals: Ask choose_payment_method when the
            invoice shows both cash and credit totals
        payment_method: Cash or Credit
        strict_totals: Raise TotalsInconsistent instead of correcting totals
        choose_payment_method: Callback used when prompting
        profile: Force a vendor profile instead of detecting one

    Returns:
        The assembled InvoiceRecord. Empty text gives InvoiceRecord.empty().
    """
    if not text or not text.strip():
        return InvoiceRecord.empty()

    if profile is None:
        profile = detect_vendor(text)
    logger.info("Parsing invoice as %s (%s)", profile.name, profile.strategy.value)

    totals = resolve_totals(
        text,
        payment_method,
        prompt_on_ambiguous_totals,
        strict=strict_totals,
        choose_payment_method=choose_payment_method,
    )

    return InvoiceRecord(
        vendor=profile.name,
        invoice_number=extract_invoice_number(text),
        invoice_date=extract_invoice_date(text),
        contact_info=extract_contact_info(text, profile),
        pickup_addresses=extract_addresses(text),
        pickup_dates=extract_pickup_dates(text),
        items=extract_line_items(text, profile),
        totals=totals,
        special_notes=extract_special_notes(text),
    )


class InvoiceParser:
    """Parse auction invoice PDFs using local text extraction."""

    def __init__(self, pdf_path: str):
        self.pdf_path = Path(pdf_path)
        if not self.pdf_path.exists():
            raise FileNotFoundError(f"PDF not found: {pdf_path}")

    def extract_text(self, layout: bool = False) -> str:
        """
        Extract the text of every page.

        layout=True asks pdfplumber to keep the horizontal positions of
        words, which helps some table invoices and hurts most others.
        """
        pages = []
        with pdfplumber.open(self.pdf_path) as pdf:
            for page in pdf.pages:
                text = page.extract_text(layout=layout)
                if text:
                    pages.append(text)
        return "\n".join(pages)

    def parse(self, layout: bool = False, **options) -> InvoiceRecord:
        options.setdefault("prompt_on_ambiguous_totals", False)
        return parse_invoice_text(self.extract_text(layout=layout), **options)


# ============================================================================
# Command Line Interface
# ============================================================================


def convert_to_table_format(line_items: List[LineItem]) -> List[List[str]]:
    """
    Convert line items to table format.

    Returns a table with headers + data rows:
    [
        ["Lot", "Description", "Hammer Price"],
        ["257A", "Widget assembly, chrome", "1234.56"],
        ...
    ]
    """
    if not line_items:
        return []

    rows = [["Lot", "Description", "Hammer Price"]]
    for item in line_items:
        rows.append([item.lot_number, item.description, item.hammer_price or ""])

    return rows


def _ask_payment_method(totals: Totals) -> PaymentMethod:
    print(
        f"Invoice shows cash total {totals.cash_total} and credit total "
        f"{totals.credit_total}.",
        file=sys.stderr,
    )
    while True:
        answer = input("Pay by [c]ash or c[r]edit? ").strip().lower()
        if answer in ("c", "cash"):
            return PaymentMethod.CASH
        if answer in ("r", "credit"):
            return PaymentMethod.CREDIT


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Parse an auction invoice PDF into JSON."
    )
    parser.add_argument("pdf_path", help="Invoice PDF (or text file with --text)")
    parser.add_argument("output_json", help="Where to write the JSON result")
    parser.add_argument(
        "--payment-method",
        choices=[m.value for m in PaymentMethod],
        default=PaymentMethod.CASH.value,
    )
    parser.add_argument("--strict-totals", action="store_true")
    parser.add_argument(
        "--prompt",
        action="store_true",
        help="Ask for the payment method when both cash and credit totals appear",
    )
    parser.add_argument(
        "--vendor",
        choices=[p.name for p in VENDOR_PROFILES],
        help="Skip vendor detection",
    )
    parser.add_argument("--layout", action="store_true", help="Layout-preserving text")
    parser.add_argument(
        "--text", action="store_true", help="Input is already-extracted text"
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv: Optional[List[str]] = None):
    """
    Main entry point.

    Usage: parse.py <pdf_path> <output_json> [options]

    Output JSON format:
    {
        "success": true,
        "vendor": "HiBid",
        "table": [
            ["Lot", "Description", "Hammer Price"],
            ["101", "Hydraulic press", "250.00"],
            ...
        ],
        "invoice": {...InvoiceRecord...},
        "item_count": 1
    }
    """
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    output_path = Path(args.output_json)

    try:
        if args.text:
            text = Path(args.pdf_path).read_text(encoding="utf-8")
        else:
            text = InvoiceParser(args.pdf_path).extract_text(layout=args.layout)

        record = parse_invoice_text(
            text,
            prompt_on_ambiguous_totals=args.prompt,
            payment_method=args.payment_method,
            strict_totals=args.strict_totals,
            choose_payment_method=_ask_payment_method if args.prompt else None,
            profile=get_profile(args.vendor) if args.vendor else None,
        )

        if not record.items:
            debug_path = output_path.with_suffix(".raw.txt")
            debug_path.write_text(text, encoding="utf-8")
            print(
                f"Warning: no line items found ({record.vendor}); "
                f"raw text written to {debug_path}",
                file=sys.stderr,
            )

        result = {
            "success": True,
            "vendor": record.vendor,
            "table": convert_to_table_format(record.items),
            "invoice": record.to_json_dict(),
            "item_count": len(record.items),
        }

        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(result, f, indent=2)

    except (FileNotFoundError, OSError, ValueError) as e:
        error_result = {
            "success": False,
            "error": str(e),
            "error_type": type(e).__name__,
        }
        if isinstance(e, TotalsInconsistent):
            error_result["field"] = e.field
            error_result["captured"] = str(e.captured)
            error_result["derived"] = str(e.derived)
        elif isinstance(e, PaymentMethodRequired):
            error_result["cash_total"] = str(e.cash_total)
            error_result["credit_total"] = str(e.credit_total)

        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(error_result, f, indent=2)

        print(f"Error parsing invoice: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
