"""Local folder source: scan a directory for jade exports and validate them up front."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from config import ColumnMap, resolve_columns
from parsing import SUPPORTED_EXTENSIONS, ParseError, UploadError, decode_payload, read_header

logger = logging.getLogger(__name__)

# Fields every aggregate needs; channel, item, role count and DAU may be absent.
REQUIRED_FIELDS = ("date", "tier", "amount")


@dataclass(frozen=True)
class LocalExport:
    """A decoded export whose header carries the required columns."""

    path: Path
    text: str
    headers: list[str]
    columns: ColumnMap
    modified: float

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class RejectedExport:
    path: Path
    reason: str


def collect_export_paths(
    folder_path: str,
    recursive: bool = False,
    supported_extensions: Iterable[str] = SUPPORTED_EXTENSIONS,
) -> list[Path]:
    """Collect consumption export paths from a folder, newest first."""
    root = Path(folder_path).expanduser()
    if not root.exists():
        raise FileNotFoundError(f"Folder does not exist: {root}")
    if not root.is_dir():
        raise NotADirectoryError(f"Not a folder: {root}")

    exts = {str(ext).lower() for ext in supported_extensions} or set(SUPPORTED_EXTENSIONS)
    iterator = root.rglob("*") if recursive else root.glob("*")
    paths = [path for path in iterator if path.is_file() and path.suffix.lower() in exts]
    return sorted(paths, key=lambda p: p.stat().st_mtime, reverse=True)


def missing_columns(headers: list[str], columns: ColumnMap) -> list[str]:
    present = set(headers)
    return [getattr(columns, field) for field in REQUIRED_FIELDS if getattr(columns, field) not in present]


def inspect_export(path: Path, columns: ColumnMap | None = None) -> LocalExport:
    """
    Decode one export and check its header.

    Raises UploadError when the bytes cannot be read or decoded and
    ParseError when the header is empty or lacks a required column.
    """
    try:
        payload = path.read_bytes()
        modified = path.stat().st_mtime
    except OSError as exc:
        raise UploadError(f"Could not read file: {path.name}") from exc
    text = decode_payload(payload)
    headers = read_header(text)
    resolved = columns or resolve_columns(headers)
    missing = missing_columns(headers, resolved)
    if missing:
        raise ParseError(f"Missing column(s): {', '.join(missing)}")
    return LocalExport(path=path, text=text, headers=headers, columns=resolved, modified=modified)


def scan_local_exports(
    folder_path: str,
    recursive: bool = False,
    max_files: int = 50,
    columns: ColumnMap | None = None,
) -> tuple[list[LocalExport], list[RejectedExport]]:
    """Return (usable exports newest first, rejected files with their reason)."""
    exports: list[LocalExport] = []
    rejected: list[RejectedExport] = []
    for path in collect_export_paths(folder_path=folder_path, recursive=recursive)[: int(max_files)]:
        try:
            exports.append(inspect_export(path, columns=columns))
        except ParseError as exc:
            logger.warning(f"[LocalSources] skipping {path}: {exc}")
            rejected.append(RejectedExport(path=path, reason=str(exc)))
    logger.info(f"[LocalSources] {folder_path}: {len(exports)} usable, {len(rejected)} rejected")
    return exports, rejected
