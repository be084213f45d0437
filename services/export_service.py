# services/export_service.py

from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional

import schemas
from utils import format_number

CSV_HEADERS = [
    "ID",
    "Name",
    "Category",
    "Description",
    f"Price ({schemas.CURRENCY})",
    "Stock",
    "New Arrival",
    "In Stock",
    "Sizes",
    "Colors",
    "Created At",
]

CSV_MEDIA_TYPE = "text/csv; charset=utf-8"


def _escape(value: Any) -> str:
    """Quote a field, doubling embedded quotes. None becomes an empty quoted field."""
    if value is None:
        text = ""
    elif isinstance(value, bool):
        text = "true" if value else "false"
    elif isinstance(value, (int, float)):
        text = format_number(value)
    elif isinstance(value, datetime):
        text = value.isoformat()
    else:
        text = str(value)
    return '"' + text.replace('"', '""') + '"'


def _row(p: schemas.Product) -> str:
    return ",".join([
        _escape(p.id),
        _escape(p.name),
        _escape(p.category),
        _escape(p.description),
        _escape(p.price),
        _escape(p.stock),
        _escape(p.is_new),
        _escape(p.in_stock),
        _escape(", ".join(p.sizes or [])),
        _escape(", ".join(p.colors or [])),
        _escape(p.created_at),
    ])


def export_to_text(products: Iterable[schemas.Product]) -> str:
    """
    CSV text for `products` in the order given. Header first, rows joined by
    newlines, no trailing newline.
    """
    lines: List[str] = [",".join(CSV_HEADERS)]
    lines.extend(_row(p) for p in products)
    return "\n".join(lines)


def export_to_bytes(products: Iterable[schemas.Product]) -> bytes:
    return export_to_text(products).encode("utf-8")


def export_filename(prefix: str, today: Optional[datetime] = None) -> str:
    today = today or datetime.now(timezone.utc)
    return f"{prefix}_inventory_{today.date().isoformat()}.csv"
