"""
Shared invoice text fixtures.

The samples mimic what pdfplumber returns for each invoice layout: wrapped
descriptions, detached prices and page furniture mixed into the lot rows.
"""

import pytest


SEQUENTIAL_INVOICE = """\
Purple Wave Auction
825 Levee Dr, Manhattan KS 66502
Phone: (785) 537-5057 support@purplewave.com
Invoice #: PW-20241015
Invoice Date: 10/15/2024
Lot # Description Price
257A Widget assembly, chrome
$ 1,234.56
258 Gear box 2,500.00$
Page 1 of 2
259 Hydraulic cylinder
All items sold as is, where is
with hoses 375.00
260 Parts washer
***
SubTotal: $4,109.56
Buyer's Premium: $410.96
Notes: Pickup with forklift only
"""

TABLE_INVOICE = """\
Powered by HiBid
Invoice # 55012
Lot Paddle Description Bid Sale Price Premium Tax Total
101 42 Hydraulic press
$100.00 $250.00 $25.00 $0.00 $275.00
Loading Fee $25.00
102 42 Drill press, bench model $50.00 $75.00 $7.50 $0.00 $82.50
103 42 Pallet of shelving
$40.00
Page 2 of 2
Totals: $365.00 $32.50 $0.00 $397.50
Buyer Information
Location: 4560 N 1000 W (Plant 208/209), Howe IN 46746
Removal: Oct 14 - Oct 16
SubTotal: $365.00
Buyer's Premium: $36.50
Cash Total Due: $401.50
"""

GENERIC_INVOICE = """\
Smith Family Estate Sale
Item list
1042 5531 Pallet of assorted hand tools
including sockets and ratchets
1043 5532 Craftsman rolling tool chest
Thank you for your business
"""


@pytest.fixture
def sequential_text():
    return SEQUENTIAL_INVOICE


@pytest.fixture
def table_text():
    return TABLE_INVOICE


@pytest.fixture
def generic_text():
    return GENERIC_INVOICE
