"""
Totals extraction and reconciliation.

Auction invoices print the summary block as label/amount pairs, but once
pdfplumber flattens a multi-column summary the amount for a label is not
always the next one on the page. Every label is therefore only allowed to
bind to a $ amount within TOTALS_WINDOW characters after it.
"""

import logging
import re
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Union

from invoice_models import PaymentMethod, Totals
from invoice_text import AMOUNT_PATTERN, normalize_text, to_decimal

logger = logging.getLogger(__name__)

TOTALS_WINDOW = 100
EPSILON = Decimal("0.01")

TOTAL_LABELS: Dict[str, List[str]] = {
    "subtotal": [r"sub\s*-?\s*total\s*:?"],
    "cash_total": [r"cash\s+total\s+due\s*:?"],
    "convenience_fee": [
        r"convenience\s+fee\s*:?",
        # Schrader, HiBid
        r"buyer'?s'?\s+premium\s*:?",
    ],
    "credit_total": [r"credit\s+total\s+due\s*:?"],
    "grand_total": [
        r"grand\s+total\s*:?",
        # Proxibid
        r"total\s+in\s+us\s+dollars\s*:?",
    ],
}

DOLLAR_AMOUNT_RE = re.compile(r"\$\s*(" + AMOUNT_PATTERN + r")(?!\d)")


class TotalsInconsistent(ValueError):
    """A captured total contradicts the value derived from the other totals."""

    def __init__(self, field: str, captured: Decimal, derived: Decimal, reason: str = ""):
        self.field = field
        self.captured = captured
        self.derived = derived
        self.reason = reason
        message = f"{field}: captured {captured} but derived {derived}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class PaymentMethodRequired(ValueError):
    """Both cash and credit totals are present and no chooser was supplied."""

    def __init__(self, cash_total: Optional[Decimal], credit_total: Optional[Decimal]):
        self.cash_total = cash_total
        self.credit_total = credit_total
        super().__init__(
            f"Invoice shows both a cash total ({cash_total}) and a credit total "
            f"({credit_total}); a payment method must be chosen"
        )


def find_labeled_amount(
    normalized: str, label_patterns: List[str], window: int = TOTALS_WINDOW
) -> Optional[Decimal]:
    """
    Return the first $ amount within `window` characters after a label.

    Label occurrences are tried in document order; an occurrence with no
    amount in its window is skipped rather than widened.
    """
    for pattern in label_patterns:
        for label in re.finditer(pattern, normalized, re.IGNORECASE):
            segment = normalized[label.end() : label.end() + window]
            amount = DOLLAR_AMOUNT_RE.search(segment)
            if amount:
                return to_decimal(amount.group(1))
    return None


def capture_totals(text: str, window: int = TOTALS_WINDOW) -> Dict[str, Optional[Decimal]]:
    normalized = normalize_text(text)
    return {
        field: find_labeled_amount(normalized, patterns, window)
        for field, patterns in TOTAL_LABELS.items()
    }


def _differs(a: Decimal, b: Decimal) -> bool:
    return abs(a - b) > EPSILON


def reconcile_totals(
    captured: Dict[str, Optional[Decimal]],
    payment_method: Union[PaymentMethod, str] = PaymentMethod.CASH,
    strict: bool = False,
) -> Totals:
    """
    Apply the reconciliation rules to captured totals.

    - cash total equal to the fee is a misread column: use the subtotal
    - cash total is never below the subtotal
    - with a fee, credit total is subtotal + fee whatever was printed
    - the resolved total follows the payment method and never drops below
      the subtotal

    In strict mode each correction raises TotalsInconsistent instead.
    """
    payment_method = PaymentMethod(payment_method)
    subtotal = captured.get("subtotal")
    fee = captured.get("convenience_fee")
    cash_total = captured.get("cash_total")
    captured_credit = captured.get("credit_total")
    grand_total = captured.get("grand_total")

    if subtotal is not None:
        if cash_total is not None and fee is not None and cash_total == fee:
            if strict:
                raise TotalsInconsistent(
                    "cash_total", cash_total, subtotal, "cash total equals convenience fee"
                )
            logger.warning(
                "Cash total %s equals convenience fee; using subtotal %s",
                cash_total,
                subtotal,
            )
            cash_total = subtotal

        if cash_total is None:
            cash_total = subtotal
        elif cash_total < subtotal:
            if strict and _differs(cash_total, subtotal):
                raise TotalsInconsistent(
                    "cash_total", cash_total, subtotal, "cash total below subtotal"
                )
            logger.warning(
                "Cash total %s below subtotal %s; raising to subtotal",
                cash_total,
                subtotal,
            )
            cash_total = subtotal

    credit_total = captured_credit
    if fee is not None and subtotal is not None:
        derived_credit = subtotal + fee
        if (
            strict
            and captured_credit is not None
            and _differs(captured_credit, derived_credit)
        ):
            raise TotalsInconsistent("credit_total", captured_credit, derived_credit)
        credit_total = derived_credit

    if payment_method is PaymentMethod.CREDIT:
        total = credit_total if credit_total is not None else cash_total
    else:
        total = grand_total if grand_total is not None else cash_total

    if total is not None and subtotal is not None and total < subtotal:
        if strict and _differs(total, subtotal):
            raise TotalsInconsistent("total", total, subtotal, "total below subtotal")
        logger.warning("Resolved total %s below subtotal %s; clamping", total, subtotal)
        total = subtotal

    return Totals(
        subtotal=subtotal,
        convenience_fee=fee,
        cash_total=cash_total,
        credit_total=credit_total,
        grand_total=grand_total,
        total=total,
    )


def resolve_totals(
    text: str,
    payment_method: Union[PaymentMethod, str],
    prompt_if_ambiguous: bool,
    strict: bool = False,
    window: int = TOTALS_WINDOW,
    choose_payment_method: Optional[Callable[[Totals], Union[PaymentMethod, str]]] = None,
) -> Totals:
    """
    Extract and reconcile the invoice totals.

    Args:
        text: Invoice text
        payment_method: Cash or Credit, picks which figure becomes `total`
        prompt_if_ambiguous: When both cash and credit figures are present,
            ask choose_payment_method instead of using payment_method
        strict: Raise TotalsInconsistent instead of correcting
        window: Characters searched after each label
        choose_payment_method: Called with the reconciled totals, returns
            the payment method to use

    Raises:
        TotalsInconsistent: strict mode only
        PaymentMethodRequired: prompting requested without a chooser
    """
    captured = capture_totals(text, window)
    totals = reconcile_totals(captured, payment_method, strict)

    has_cash = captured["cash_total"] is not None
    has_credit = (
        captured["credit_total"] is not None or captured["convenience_fee"] is not None
    )
    if prompt_if_ambiguous and has_cash and has_credit:
        if choose_payment_method is None:
            raise PaymentMethodRequired(totals.cash_total, totals.credit_total)
        chosen = PaymentMethod(choose_payment_method(totals))
        if chosen != PaymentMethod(payment_method):
            totals = reconcile_totals(captured, chosen, strict)

    return totals
