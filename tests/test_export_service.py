import csv
import io
from datetime import datetime, timezone

import schemas
from services.export_service import (CSV_HEADERS, export_filename, export_to_bytes,
                                     export_to_text)

HEADER_LINE = ("ID,Name,Category,Description,Price (BDT),Stock,New Arrival,"
               "In Stock,Sizes,Colors,Created At")


def _product(**fields):
    values = dict(
        id=7,
        name="Silk Saree",
        category="Sarees",
        description="",
        price=1500,
        stock=3,
        isNew=True,
        inStock=False,
        sizes=["S", "M"],
        colors=["Red"],
        created_at=datetime(2026, 3, 1, 10, 30, tzinfo=timezone.utc),
    )
    values.update(fields)
    return schemas.Product(**values)


def test_empty_list_is_header_only():
    assert export_to_text([]) == HEADER_LINE
    assert len(CSV_HEADERS) == 11


def test_row_layout():
    lines = export_to_text([_product()]).split("\n")

    assert lines[1] == (
        '"7","Silk Saree","Sarees","","1500","3","true","false","S, M","Red",'
        '"2026-03-01T10:30:00+00:00"'
    )


def test_embedded_quotes_and_commas_round_trip():
    name = 'He said "hi", then left'
    text = export_to_text([_product(name=name, description="line one\nline two")])

    rows = list(csv.reader(io.StringIO(text)))

    assert rows[0] == CSV_HEADERS
    assert rows[1][1] == name
    assert rows[1][3] == "line one\nline two"


def test_fractional_price_keeps_decimals():
    row = export_to_text([_product(price=99.5)]).split("\n")[1]

    assert '"99.5"' in row


def test_rows_follow_input_order_without_trailing_newline():
    text = export_to_text([_product(id=1, name="B"), _product(id=2, name="A")])

    assert not text.endswith("\n")
    assert [r[1] for r in csv.reader(io.StringIO(text))][1:] == ["B", "A"]


def test_bytes_are_utf8_without_bom():
    data = export_to_bytes([_product(name="শাড়ি")])

    assert not data.startswith(b"\xef\xbb\xbf")
    assert "শাড়ি" in data.decode("utf-8")


def test_filename_uses_prefix_and_date():
    assert export_filename("putimach", datetime(2026, 10, 17, tzinfo=timezone.utc)) == \
        "putimach_inventory_2026-10-17.csv"
