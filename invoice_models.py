"""
Result records for a parsed auction invoice.

Everything is frozen once built; the JSON shape uses camelCase keys
(``record.model_dump(by_alias=True, mode="json")``).
"""

import re
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from pydantic.alias_generators import to_camel

UNKNOWN_VENDOR = "Unknown"

_PARENTHETICAL_RE = re.compile(r"\(([^)]*)\)")


class PaymentMethod(str, Enum):
    CASH = "Cash"
    CREDIT = "Credit"


class _Record(BaseModel):
    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )


class LineItem(_Record):
    lot_number: str
    description: str = ""
    hammer_price: Optional[str] = None

    @field_validator("hammer_price")
    @classmethod
    def _check_price(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not re.fullmatch(r"\d+(\.\d{2})?", value):
            raise ValueError(f"hammer price must be a plain decimal, got {value!r}")
        return value


class Address(_Record):
    """
    Pickup address.

    A parenthetical in the street ("123 Main St (Plant 208/209)") is moved to
    ``address2`` so the street line stays usable for mapping. ``one_line`` is
    always derived from the other fields.
    """

    street: str
    address2: Optional[str] = None
    city: str
    state: str
    zip: str
    one_line: str = ""

    @model_validator(mode="before")
    @classmethod
    def _split_street(cls, data):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        street = str(data.get("street") or "")
        qualifiers = [q.strip() for q in _PARENTHETICAL_RE.findall(street) if q.strip()]
        if qualifiers:
            extra = data.get("address2")
            data["address2"] = "; ".join(([extra] if extra else []) + qualifiers)
        street = _PARENTHETICAL_RE.sub(" ", street).replace("(", " ").replace(")", " ")
        data["street"] = " ".join(street.split()).strip(" ,")
        data["city"] = " ".join(str(data.get("city") or "").split()).strip(" ,")
        data["state"] = str(data.get("state") or "").strip().upper()
        data["zip"] = str(data.get("zip") or "").strip()
        data["one_line"] = (
            f"{data['street']}, {data['city']} {data['state']} {data['zip']}"
        )
        data.pop("oneLine", None)
        return data

    @property
    def key(self):
        return (self.street.casefold(), (self.address2 or "").casefold())


class ContactInfo(_Record):
    phones: List[str] = []
    emails: List[str] = []


class Totals(_Record):
    subtotal: Optional[Decimal] = None
    convenience_fee: Optional[Decimal] = None
    cash_total: Optional[Decimal] = None
    credit_total: Optional[Decimal] = None
    grand_total: Optional[Decimal] = None
    total: Optional[Decimal] = None


class InvoiceRecord(_Record):
    vendor: str = UNKNOWN_VENDOR
    invoice_number: Optional[str] = None
    invoice_date: Optional[str] = None
    contact_info: ContactInfo = ContactInfo()
    pickup_addresses: List[Address] = []
    pickup_dates: List[str] = []
    items: List[LineItem] = []
    totals: Totals = Totals()
    special_notes: List[str] = []

    @classmethod
    def empty(cls) -> "InvoiceRecord":
        return cls()

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")
