from __future__ import annotations

from typing import Any, Dict, List, Optional

from models.quran import Ayah, Surah

_AYAH_COLUMNS = """
    a.id, a.surah_id, a.ayah_number, a.arabic_text,
    s.arabic_name AS surah_arabic_name, s.english_name AS surah_english_name
"""


def list_surahs(conn) -> List[Surah]:
    cursor = conn.cursor()
    cursor.execute("SELECT * FROM surahs ORDER BY id ASC")
    return [Surah.model_validate(dict(row)) for row in cursor.fetchall()]


def get_surah(conn, surah_id: int) -> Optional[Surah]:
    cursor = conn.cursor()
    cursor.execute("SELECT * FROM surahs WHERE id = ?", (surah_id,))
    row = cursor.fetchone()
    if not row:
        return None
    return Surah.model_validate(dict(row))


def list_ayahs(conn, surah_id: int) -> List[Ayah]:
    cursor = conn.cursor()
    cursor.execute(
        "SELECT id, surah_id, ayah_number, arabic_text FROM ayahs WHERE surah_id = ? ORDER BY ayah_number ASC",
        (surah_id,),
    )
    return [Ayah.model_validate(dict(row)) for row in cursor.fetchall()]


def get_ayah(conn, ayah_id: int) -> Optional[Dict[str, Any]]:
    """Ayah row with its surah names, looked up by internal id."""
    cursor = conn.cursor()
    cursor.execute(
        f"SELECT {_AYAH_COLUMNS} FROM ayahs a JOIN surahs s ON s.id = a.surah_id WHERE a.id = ?",
        (ayah_id,),
    )
    row = cursor.fetchone()
    return dict(row) if row else None


def get_ayah_by_ref(conn, surah_id: int, ayah_number: int) -> Optional[Dict[str, Any]]:
    """Ayah row with its surah names, looked up by (surah, ayah number)."""
    cursor = conn.cursor()
    cursor.execute(
        f"""
        SELECT {_AYAH_COLUMNS}
        FROM ayahs a JOIN surahs s ON s.id = a.surah_id
        WHERE a.surah_id = ? AND a.ayah_number = ?
        """,
        (surah_id, ayah_number),
    )
    row = cursor.fetchone()
    return dict(row) if row else None


def split_words(arabic_text: str) -> List[str]:
    """Whitespace tokens of the ayah text; word meanings index into this list."""
    return arabic_text.split()
