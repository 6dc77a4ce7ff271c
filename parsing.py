"""CSV export loading and cell coercion helpers."""

from __future__ import annotations

import csv
import io
import logging
import math
import re
from types import MappingProxyType
from typing import Any, Callable, Iterator

import pandas as pd

from config import PARSE_BATCH_SIZE
from models import CellValue, Record

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".csv",)

_LINE_SPLIT = re.compile(r"\r\n|\r|\n")


class ParseError(ValueError):
    """Export could not be read or has no usable header."""


class UploadError(ParseError):
    """Upload rejected before parsing (wrong file type, unreadable bytes)."""


def coerce_cell(raw: Any) -> CellValue:
    """Return an int/float for finite numeric text, else the trimmed string."""
    text = str(raw).strip()
    if not text:
        return text
    number = pd.to_numeric(text, errors="coerce")
    if pd.isna(number):
        return text
    number = number.item() if hasattr(number, "item") else number
    if isinstance(number, float) and not math.isfinite(number):
        return text
    return number


def _read_frame(text: str, **kwargs: Any) -> Any:
    # No quoting: every comma separates, quotes stay literal, cells stay text.
    return pd.read_csv(
        io.StringIO(text),
        sep=",",
        header=None,
        dtype=str,
        keep_default_na=False,
        quoting=csv.QUOTE_NONE,
        skip_blank_lines=True,
        index_col=False,
        engine="python",
        **kwargs,
    )


def _header_index(lines: list[str]) -> int:
    for index, line in enumerate(lines):
        if line.strip():
            return index
    raise ParseError("File contains no header row.")


def read_header(text: str) -> list[str]:
    """Return the stripped column names of the first non-blank line."""
    lines = _LINE_SPLIT.split(str(text or ""))
    frame = _read_frame(str(text), skiprows=_header_index(lines), nrows=1)
    headers = [str(cell).strip() for cell in frame.fillna("").iloc[0]]
    if not any(headers):
        raise ParseError("Header row is empty.")
    return headers


def _frame_records(headers: list[str], frame: Any) -> list[Record]:
    return [
        MappingProxyType({header: coerce_cell(cell) for header, cell in zip(headers, row)})
        for row in frame.fillna("").itertuples(index=False, name=None)
    ]


def iter_parse_batches(
    text: str, batch_size: int = PARSE_BATCH_SIZE
) -> Iterator[tuple[list[Record], int]]:
    """
    Yield parsed records in fixed-size line batches.

    Each item is ``(records, percent)`` with percent in [0, 100]; the last
    item always reports 100. Callers hand control back to their host loop
    between batches. Short rows are padded with empty strings and cells
    beyond the header width are dropped.
    """
    if text is None or not str(text).strip():
        raise ParseError("File is empty.")
    text = str(text)
    lines = _LINE_SPLIT.split(text)
    if lines and lines[-1] == "":
        lines.pop()
    headers = read_header(text)
    start = _header_index(lines) + 1
    body = lines[start:]
    total = len(body)
    size = max(int(batch_size), 1)

    if not any(line.strip() for line in body):
        yield [], 100
        return

    width = len(headers)
    reader = _read_frame(
        text,
        skiprows=start,
        names=list(range(width)),
        chunksize=size,
        on_bad_lines=lambda fields: fields[:width],
    )
    consumed = 0
    percent = 0
    with reader:
        for chunk in reader:
            consumed = min(consumed + size, total)
            percent = int(consumed * 100 / total)
            yield _frame_records(headers, chunk), percent
    if percent < 100:
        yield [], 100


def parse_csv_text(text: str) -> list[Record]:
    """Parse comma-delimited export text into read-only records."""
    return parse_csv_chunked(text)


def parse_csv_chunked(
    text: str,
    on_progress: Callable[[int], None] | None = None,
    batch_size: int = PARSE_BATCH_SIZE,
) -> list[Record]:
    """Parse in batches, reporting non-decreasing percent progress."""
    records: list[Record] = []
    last = 0
    for batch, percent in iter_parse_batches(text, batch_size=batch_size):
        records.extend(batch)
        if on_progress is not None and percent >= last:
            on_progress(percent)
            last = percent
    return records


def decode_payload(payload: bytes) -> str:
    """Decode export bytes: UTF-8 (BOM tolerated), then GB18030 for Excel exports."""
    for encoding in ("utf-8-sig", "gb18030"):
        try:
            return payload.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise UploadError("File is not valid UTF-8 or GB18030 text.")


def read_upload(uploaded_file: Any) -> str:
    """Validate an uploaded export and return its text."""
    name = str(getattr(uploaded_file, "name", "")).lower()
    if not name.endswith(SUPPORTED_EXTENSIONS):
        raise UploadError(f"Unsupported file type: {name or '<unknown>'}. Supported: csv.")
    try:
        getvalue = getattr(uploaded_file, "getvalue", None)
        payload = getvalue() if callable(getvalue) else uploaded_file.read()
    except OSError as exc:
        logger.warning(f"[Parser] could not read upload {name}: {exc}")
        raise UploadError(f"Could not read file: {name}") from exc
    if isinstance(payload, str):
        return payload
    return decode_payload(bytes(payload))


def load_records(uploaded_file: Any, on_progress: Callable[[int], None] | None = None) -> list[Record]:
    """Read and parse one uploaded export."""
    text = read_upload(uploaded_file)
    records = parse_csv_chunked(text, on_progress=on_progress)
    logger.info(f"[Parser] {getattr(uploaded_file, 'name', 'upload')}: {len(records)} rows")
    return records
