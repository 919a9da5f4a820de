"""Bulk loader for the line-oriented ``data.AM`` verse file.

Each line holds one ayah::

    <arabic text> ترجمہ: <urdu translation><br/>س 002 آ 255

The Arabic text and translation are trimmed; surah and ayah numbers are
three-digit, zero-padded. Every imported ayah gets its translation as an
approved default version authored by the importer.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

from db.database import ensure_surahs, write_transaction
from models.content import ContentKind, SystemImport
from utils.errors import NotFoundError
from utils.moderation import submit_content

logger = logging.getLogger(__name__)

LINE_RE = re.compile(r"^(.*?) ترجمہ: (.*?)<br/>س (\d{3}) آ (\d{3})$")


@dataclass(frozen=True)
class ParsedAyah:
    surah_id: int
    ayah_number: int
    arabic_text: str
    translation: str


@dataclass
class ImportResult:
    imported: int = 0
    skipped: int = 0
    failed: int = 0
    failed_lines: List[int] = field(default_factory=list)

    @property
    def message(self) -> str:
        text = f"Imported {self.imported} ayahs"
        if self.skipped:
            text += f", skipped {self.skipped} already present"
        if self.failed:
            text += f", {self.failed} lines could not be parsed"
        return text + "."


def parse_data_line(line: str) -> Optional[ParsedAyah]:
    match = LINE_RE.match(line.rstrip("\r\n"))
    if not match:
        return None
    arabic_text = match.group(1).strip()
    translation = match.group(2).strip()
    surah_id = int(match.group(3))
    ayah_number = int(match.group(4))
    if not arabic_text or not translation:
        return None
    if not 1 <= surah_id <= 114 or ayah_number < 1:
        return None
    return ParsedAyah(surah_id, ayah_number, arabic_text, translation)


def import_lines(
    conn,
    lines: Iterable[str],
    *,
    version_name: str = "Imported Urdu",
    language: str = "ur",
) -> ImportResult:
    """Load parsed lines in one transaction; ayahs already present are skipped."""
    result = ImportResult()
    with write_transaction(conn):
        ensure_surahs(conn)
        cursor = conn.cursor()
        for line_number, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            parsed = parse_data_line(line)
            if parsed is None:
                logger.warning("Failed to parse line %d: %.80s", line_number, line)
                result.failed += 1
                result.failed_lines.append(line_number)
                continue
            cursor.execute(
                "INSERT OR IGNORE INTO ayahs (surah_id, ayah_number, arabic_text) VALUES (?, ?, ?)",
                (parsed.surah_id, parsed.ayah_number, parsed.arabic_text),
            )
            if cursor.rowcount == 0:
                result.skipped += 1
                continue
            submit_content(
                conn,
                ContentKind.TRANSLATION,
                parsed.translation,
                version_name,
                SystemImport(),
                ayah_id=cursor.lastrowid,
                language=language,
                make_default=True,
            )
            result.imported += 1
    logger.info(result.message)
    return result


def import_quran_data(
    conn,
    path: Path,
    *,
    version_name: str = "Imported Urdu",
    language: str = "ur",
) -> ImportResult:
    path = Path(path)
    if not path.exists():
        raise NotFoundError(f"Data file not found at {path}")
    with path.open("r", encoding="utf-8") as handle:
        return import_lines(conn, handle, version_name=version_name, language=language)
