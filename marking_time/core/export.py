"""CSV export of timestamp records for video-editor timeline sync."""

from __future__ import annotations

import asyncio
import csv
import io
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Sequence

import aiofiles

from .constants import EXPORT_FILENAME_PREFIX
from .errors import NoData
from .logging_utils import get_module_logger

if TYPE_CHECKING:
    from .timestamps import TimestampRecord

logger = get_module_logger("Export")

CSV_HEADER = ("Type", "AbsoluteTime", "ElapsedTime", "Description", "Details")


def export_csv(records: Sequence["TimestampRecord"], *, include_header: bool = False) -> str:
    """Serialize records, one fully quoted row each, in ledger order."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    if include_header:
        writer.writerow(CSV_HEADER)
    for record in records:
        writer.writerow(record.as_row())
    return buffer.getvalue()


def export_filename(at: Optional[datetime] = None) -> str:
    """UTC calendar date of ``at``; naive values are taken as local time."""
    stamp = (at or datetime.now()).astimezone(timezone.utc).date().isoformat()
    return f"{EXPORT_FILENAME_PREFIX}-{stamp}.csv"


async def write_export(
    records: Sequence["TimestampRecord"],
    directory: Path,
    *,
    at: Optional[datetime] = None,
    include_header: bool = False,
) -> Path:
    """Write the export document into ``directory`` and return its path."""
    if not records:
        raise NoData()

    content = export_csv(records, include_header=include_header)
    directory = Path(directory)
    await asyncio.to_thread(directory.mkdir, parents=True, exist_ok=True)

    target = directory / export_filename(at)
    async with aiofiles.open(target, "w", encoding="utf-8", newline="") as fh:
        await fh.write(content)

    logger.info("Exported %d timestamp(s) to %s", len(records), target)
    return target


__all__ = ["CSV_HEADER", "export_csv", "export_filename", "write_export"]
