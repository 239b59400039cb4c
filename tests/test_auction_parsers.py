import re

from auction_parsers import (
    GenericLotParser,
    LotCollector,
    SequentialLotParser,
    TableBlockParser,
    extract_line_items,
)
from auction_vendors import UNKNOWN_PROFILE, get_profile

PRICE_FORMAT = re.compile(r"^\d+(\.\d{2})?$")


def _pairs(items):
    return [(item.lot_number, item.hammer_price) for item in items]


# ---------------------------------------------------------------------------
# Sequential lot parser
# ---------------------------------------------------------------------------


def test_sequential_detached_prices():
    text = "257A Widget assembly, chrome\n$ 1,234.56\n258 Gear box 2,500.00$\n"
    items = SequentialLotParser.parse(text)

    assert _pairs(items) == [("257A", "1234.56"), ("258", "2500.00")]
    assert items[0].description == "Widget assembly, chrome"
    assert items[1].description == "Gear box"
    for item in items:
        assert "1,234.56" not in item.description
        assert "2,500.00" not in item.description
        assert "$" not in item.description


def test_sequential_full_invoice(sequential_text):
    items = SequentialLotParser.parse(sequential_text)

    assert _pairs(items) == [
        ("257A", "1234.56"),
        ("258", "2500.00"),
        ("259", "375.00"),
    ]
    # Disclaimer between the wrapped lines is not part of the description
    assert items[2].description == "Hydraulic cylinder with hoses"


def test_sequential_drops_trailing_lot_without_price(sequential_text):
    lots = [item.lot_number for item in SequentialLotParser.parse(sequential_text)]
    assert "260" not in lots


def test_sequential_drops_lot_replaced_before_price():
    text = "10 Bench grinder\n11 Air compressor $300.00\n"
    assert _pairs(SequentialLotParser.parse(text)) == [("11", "300.00")]


def test_sequential_stops_at_terminator():
    text = "1 Chain hoist $80.00\nSubtotal $80.00\n2 Should not appear $5.00\n"
    assert _pairs(SequentialLotParser.parse(text)) == [("1", "80.00")]


def test_sequential_terminator_mid_line_does_not_price_pending_lot():
    text = "259 Cylinder $375.00\n260 Parts washer\nInvoice Subtotal: $4,109.56\n"
    assert _pairs(SequentialLotParser.parse(text)) == [("259", "375.00")]


def test_sequential_notes_terminator_mid_line():
    text = "1 Chain hoist\nSpecial Notes: bring straps $10.00\n"
    assert SequentialLotParser.parse(text) == []


def test_sequential_notes_terminator():
    text = "1 Chain hoist\nNotes: bring straps $10.00\n"
    assert SequentialLotParser.parse(text) == []


def test_sequential_suppresses_duplicate_lot_price_pairs():
    text = "258 Gear box 2,500.00$\n258 Gear box 2,500.00$\n258 Gear box 2,600.00$\n"
    assert _pairs(SequentialLotParser.parse(text)) == [
        ("258", "2500.00"),
        ("258", "2600.00"),
    ]


def test_sequential_ignores_lines_before_first_lot():
    text = "Auction results\nBalance: see below\n5 Welder $450.00\n"
    assert _pairs(SequentialLotParser.parse(text)) == [("5", "450.00")]


# ---------------------------------------------------------------------------
# Table-block parser
# ---------------------------------------------------------------------------


def test_table_block_uses_sale_price_and_skips_loading_fee():
    text = (
        "Lot Paddle Description Bid Sale Price Premium Tax Total\n"
        "101 42 Hydraulic press\n"
        "$100.00\n"
        "$250.00\n"
        "Loading Fee $25.00\n"
        "Totals:\n"
    )
    items = TableBlockParser.parse(text)

    assert _pairs(items) == [("101", "250.00")]
    assert items[0].description == "Hydraulic press"
    assert all(item.hammer_price != "25.00" for item in items)


def test_table_block_full_invoice(table_text):
    items = TableBlockParser.parse(table_text)

    assert _pairs(items) == [
        ("101", "250.00"),
        ("102", "75.00"),
        ("103", "40.00"),
    ]
    assert items[1].description == "Drill press, bench model"


def test_table_block_ignores_everything_before_header():
    text = "101 42 Not an item $5.00 $6.00\nLot Description Sale Price\n7 Lathe $900.00\n"
    assert _pairs(TableBlockParser.parse(text)) == [("7", "900.00")]


def test_table_block_without_header_finds_nothing():
    assert TableBlockParser.parse("101 42 Hydraulic press $1.00 $2.00") == []


def test_table_block_wrapped_description():
    text = (
        "Lot Paddle Description Bid Sale Price\n"
        "12 9 John Deere mower\n"
        "with bagger attachment\n"
        "$10.00 $20.00\n"
        "Total Lots: 1\n"
    )
    items = TableBlockParser.parse(text)
    assert items[0].description == "John Deere mower with bagger attachment"
    assert items[0].hammer_price == "20.00"


def test_table_block_lot_without_amount_has_no_price():
    text = "Lot Description Sale Price\n7 Lathe\nBuyer Information\n"
    items = TableBlockParser.parse(text)
    assert _pairs(items) == [("7", None)]


# ---------------------------------------------------------------------------
# Generic parser
# ---------------------------------------------------------------------------


def test_generic_lot_and_continuation(generic_text):
    items = GenericLotParser.parse(generic_text)

    assert _pairs(items) == [("1042", None), ("1043", None)]
    assert items[0].description == (
        "Pallet of assorted hand tools including sockets and ratchets"
    )
    assert items[1].description == "Craftsman rolling tool chest"


def test_generic_skips_short_continuation_lines():
    text = "1042 5531 Pallet of tools\nshort\nthis line is long enough but comes too late\n"
    items = GenericLotParser.parse(text)
    assert items[0].description == "Pallet of tools"


def test_generic_requires_four_digit_code():
    assert GenericLotParser.parse("1042 553 Pallet of tools") == []


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


def test_extract_line_items_falls_back_to_generic():
    text = "Purple Wave\n1042 5531 Pallet of tools\n"
    items = extract_line_items(text, get_profile("Purple Wave"))
    assert _pairs(items) == [("1042", None)]


def test_extract_line_items_falls_back_to_table_block():
    text = "Lot Description Sale Price\n7 Lathe $900.00\n"
    items = extract_line_items(text, UNKNOWN_PROFILE)
    assert _pairs(items) == [("7", "900.00")]


def test_extract_line_items_nothing_found():
    assert extract_line_items("nothing to see", UNKNOWN_PROFILE) == []


def test_parsers_are_independent_between_calls(sequential_text):
    first = SequentialLotParser.parse(sequential_text)
    second = SequentialLotParser.parse(sequential_text)
    assert first == second


def test_price_format_and_dedupe_invariants(sequential_text, table_text, generic_text):
    for text, parser in [
        (sequential_text, SequentialLotParser),
        (table_text, TableBlockParser),
        (generic_text, GenericLotParser),
    ]:
        items = parser.parse(text)
        pairs = _pairs(items)
        assert len(pairs) == len(set(pairs))
        for item in items:
            if item.hammer_price is not None:
                assert PRICE_FORMAT.match(item.hammer_price)


def test_lot_collector_rejects_repeats():
    collector = LotCollector()
    assert collector.add("1", "Saw", "10.00")
    assert not collector.add("1", "Saw again", "10.00")
    assert collector.add("1", "Saw", None)
    assert len(collector.items) == 2
