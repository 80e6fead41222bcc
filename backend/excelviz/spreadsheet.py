import logging
import os
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from .errors import ParseError

logger = logging.getLogger(__name__)

EXCEL_MIME_TYPES = {
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}
EXCEL_EXTENSIONS = {".xls", ".xlsx"}


def is_excel_upload(filename: Optional[str], content_type: Optional[str]) -> bool:
    if not filename or content_type not in EXCEL_MIME_TYPES:
        return False
    return os.path.splitext(filename)[1].lower() in EXCEL_EXTENSIONS


def _to_json_value(value: Any) -> Any:
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, (pd.Timestamp, datetime, date, time)):
        return value.isoformat()
    return value


def _is_blank(value: Any) -> bool:
    return value is None or (not isinstance(value, str) and pd.isna(value))


def _clean_row(row: Dict[Any, Any]) -> Dict[str, Any]:
    out = {}
    for key, value in row.items():
        if _is_blank(value):
            continue
        out[str(key)] = _to_json_value(value)
    return out


def _header_names(cells: List[Any]) -> List[str]:
    """Turn header cells into unique keys.

    Blank headers become ``__EMPTY`` and repeats get a ``_<n>`` suffix, so
    ``["A", "A", None, None]`` gives ``["A", "A_1", "__EMPTY", "__EMPTY_1"]``.
    """
    names = []
    seen: Dict[str, int] = {}
    for cell in cells:
        if _is_blank(cell) or not str(cell).strip():
            base = "__EMPTY"
        else:
            base = str(_to_json_value(cell))
        n = seen.get(base, 0)
        seen[base] = n + 1
        names.append(base if n == 0 else f"{base}_{n}")
    return names


def read_first_sheet(path: str) -> List[Dict[str, Any]]:
    """Read the first sheet of an xls/xlsx workbook into row records.

    The first non-blank row is the header; every following non-blank row
    becomes a mapping of header text to cell value. Blank cells are left out
    of the mapping, numbers stay numeric and dates come back as ISO strings.
    """
    try:
        workbook = pd.ExcelFile(path)
    except Exception as e:
        logger.debug("Unrecognised workbook %s: %s", path, e)
        raise ParseError("Failed to process Excel file") from e

    with workbook:
        if not workbook.sheet_names:
            raise ParseError("Workbook contains no sheets")
        try:
            # dtype=object keeps ints as ints when a column also has blanks;
            # header=None stops pandas renaming repeated or blank headers
            df = workbook.parse(sheet_name=0, header=None, dtype=object)
        except Exception as e:
            logger.debug("Failed to read first sheet of %s: %s", path, e)
            raise ParseError("Failed to process Excel file") from e

    df = df.dropna(how="all").dropna(axis=1, how="all")
    if df.empty:
        return []
    body = df.iloc[1:].copy()
    body.columns = _header_names(list(df.iloc[0]))
    return [_clean_row(row) for row in body.to_dict(orient="records")]


def discard_file(path: str) -> None:
    if os.path.exists(path):
        try:
            os.unlink(path)
        except OSError:
            logger.error("Error deleting uploaded file %s", path, exc_info=True)


def parse_upload(path: str) -> List[Dict[str, Any]]:
    """Parse an uploaded temp file and remove it whatever the outcome."""
    try:
        return read_first_sheet(path)
    finally:
        discard_file(path)
