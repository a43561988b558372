"""CSV export of an extraction result."""

from __future__ import annotations

import csv
import io
import logging
import time
from dataclasses import dataclass
from pathlib import Path

from .models.extraction import ExtractionResult

logger = logging.getLogger(__name__)

CSV_BOM = "\ufeff"


@dataclass(frozen=True)
class CsvArtifact:
    """A ready-to-save CSV file: UTF-8 with BOM, header line plus one row."""

    filename: str
    text: str

    @property
    def content(self) -> bytes:
        return (CSV_BOM + self.text).encode("utf-8")


def csv_row(result: ExtractionResult) -> str:
    """Name, phone number and summary, each quoted with inner quotes doubled."""
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="")
    writer.writerow([result.name or "", result.phone_number or "", result.summary or ""])
    return buf.getvalue()


def export_filename(now: float | None = None) -> str:
    """``extraction_result_<epoch ms>.csv``."""
    millis = int((time.time() if now is None else now) * 1000)
    return f"extraction_result_{millis}.csv"


def build_csv(result: ExtractionResult, header_template: str, *, now: float | None = None) -> CsvArtifact:
    """Header template verbatim on line one, the quoted data row on line two."""
    return CsvArtifact(
        filename=export_filename(now),
        text=f"{header_template}\n{csv_row(result)}",
    )


def write_csv(artifact: CsvArtifact, directory: str | Path) -> Path:
    """Write *artifact* into *directory*, creating it if needed. Returns the path."""
    out_dir = Path(directory).expanduser()
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / artifact.filename
    path.write_bytes(artifact.content)
    logger.info("Wrote CSV export %s (%d bytes)", path, len(artifact.content))
    return path
