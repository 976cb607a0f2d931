"""Spreadsheet loading and row parsing.

Turns the category, product and URL exports into typed rows. Absent or
unparseable optional columns fall back to per-field defaults (empty string,
zero, False) and are counted, never fatal.
"""

import io
import math
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import pandas as pd

from catalog_sync.errors import DropReason
from catalog_sync.html_utils import strip_html
from catalog_sync.logging_config import get_logger
from catalog_sync.models import CategoryRow, ProductRow, SyncCounters

__all__ = [
    "load_records",
    "parse_bool",
    "parse_int",
    "parse_float",
    "parse_category_rows",
    "build_url_map",
    "parse_product_rows",
]

logger = get_logger("sheets")

Record = Dict[str, Any]

TRUE_VALUES = {"true", "1", "yes", "si", "sí"}


def load_records(
    source: Union[str, Path, bytes],
    filename: Optional[str] = None,
) -> List[Record]:
    """Read the first sheet of an xlsx (or a csv) into a list of dicts.

    Args:
        source: Local path or raw file content
        filename: Name used to pick the reader when ``source`` is bytes

    Returns:
        One dict per row, keyed by column header; empty cells are None
    """
    name = str(filename or (source if not isinstance(source, bytes) else ""))
    handle = io.BytesIO(source) if isinstance(source, bytes) else source

    if name.lower().endswith(".csv"):
        df = pd.read_csv(handle, dtype=object, keep_default_na=False, na_values=[""])
    else:
        # object dtype keeps integral cells as ints in columns that have blanks
        df = pd.read_excel(handle, sheet_name=0, dtype=object)

    df = df.astype(object).where(pd.notna(df), None)
    return df.to_dict(orient="records")


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def parse_bool(value: Any) -> bool:
    if _is_missing(value):
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().lower() in TRUE_VALUES


def parse_int(value: Any, default: Optional[int] = 0) -> Optional[int]:
    """Parse an integer the lenient way spreadsheets need.

    Accepts ints, numeric strings and floats; fractional values are truncated.
    """
    if _is_missing(value) or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    try:
        number = float(str(value).strip())
    except ValueError:
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return int(number)


def parse_float(value: Any, default: float = 0.0) -> float:
    if _is_missing(value) or isinstance(value, bool):
        return default
    try:
        number = float(str(value).strip())
    except ValueError:
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return number


def _text(record: Mapping[str, Any], column: str, counters: Optional[SyncCounters] = None) -> str:
    value = record.get(column)
    if _is_missing(value):
        if counters is not None and column not in record:
            counters.record(DropReason.MISSING_FIELD)
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def parse_category_rows(
    records: Iterable[Mapping[str, Any]],
    counters: Optional[SyncCounters] = None,
) -> List[CategoryRow]:
    """Parse category export rows (Id, Name, SeName, Description,
    ParentCategoryId, DisplayOrder, Published).

    Rows whose Id is not an integer are dropped.
    """
    counters = counters if counters is not None else SyncCounters()
    rows: List[CategoryRow] = []

    for record in records:
        category_id = parse_int(record.get("Id"), default=None)
        if category_id is None:
            counters.record(DropReason.INVALID_CATEGORY_ROW)
            logger.debug(f"Dropping category row with invalid Id: {record.get('Id')!r}")
            continue

        rows.append(
            CategoryRow(
                id=category_id,
                name=_text(record, "Name", counters),
                slug=_text(record, "SeName", counters),
                description=_text(record, "Description"),
                parent_id=parse_int(record.get("ParentCategoryId"), default=0),
                display_order=parse_int(record.get("DisplayOrder"), default=0),
                published=parse_bool(record.get("Published")),
            )
        )

    return rows


def build_url_map(records: Iterable[Mapping[str, Any]]) -> Dict[str, Record]:
    """Index the URL export (Sku, Id, url, imageUrl) by trimmed SKU."""
    url_map: Dict[str, Record] = {}
    for record in records:
        sku = _text(record, "Sku") or _text(record, "SKU")
        sku = sku.strip()
        if not sku:
            continue
        external_id = record.get("Id")
        url_map[sku] = {
            "id": "" if _is_missing(external_id) else external_id,
            "url": _text(record, "url"),
            "imageUrl": _text(record, "imageUrl"),
        }
    return url_map


def parse_product_rows(
    records: Iterable[Mapping[str, Any]],
    url_map: Optional[Mapping[str, Record]] = None,
    counters: Optional[SyncCounters] = None,
) -> List[ProductRow]:
    """Parse product export rows, keeping only published, individually
    visible products, and join the URL data by SKU.
    """
    counters = counters if counters is not None else SyncCounters()
    url_map = url_map or {}
    rows: List[ProductRow] = []

    for record in records:
        if not (parse_bool(record.get("Published")) and parse_bool(record.get("VisibleIndividually"))):
            continue

        sku = _text(record, "SKU", counters).strip()
        url_data = url_map.get(sku, {})

        rows.append(
            ProductRow(
                sku=sku,
                name=_text(record, "Name", counters),
                short_description=strip_html(_text(record, "ShortDescription")),
                price=parse_float(record.get("Price")),
                stock_quantity=parse_int(record.get("StockQuantity"), default=0),
                brand=_text(record, "Manufacturers"),
                weight_kg=parse_float(record.get("Weight")),
                category_membership=_text(record, "Categories"),
                published=True,
                visible_individually=True,
                url=url_data.get("url", ""),
                image_url=url_data.get("imageUrl", ""),
                external_id=url_data.get("id", ""),
            )
        )

    logger.debug(f"Parsed {len(rows)} published products")
    return rows
