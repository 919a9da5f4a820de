from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

_WHITESPACE_RE = re.compile(r"\s+")
MAX_RESULTS = 200


def normalize_query(raw: Optional[str]) -> Optional[str]:
    """Collapse whitespace in user input.

    Returns:
        None if raw is empty/None, otherwise the trimmed query.
    """
    if raw is None:
        return None
    cleaned = _WHITESPACE_RE.sub(" ", raw).strip()
    if not cleaned:
        return None
    return cleaned


def like_pattern(query: str) -> str:
    """Substring LIKE pattern with %, _ and the escape character escaped."""
    escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def search_ayahs(
    conn,
    raw_query: Optional[str],
    surah_id: Optional[int] = None,
    user_id: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """Ayahs whose text, default translation, tafsir or word meanings contain the query.

    A logged-in user's private notes are searched too. The surah filter
    applies to every match source.
    """
    query = normalize_query(raw_query)
    if query is None:
        return []
    pattern = like_pattern(query)
    sources = [
        "a.arabic_text LIKE ? ESCAPE '\\'",
        """a.id IN (SELECT ayah_id FROM translations
                    WHERE text LIKE ? ESCAPE '\\' AND is_default = 1 AND status = 'approved')""",
        """a.id IN (SELECT ayah_id FROM tafasir
                    WHERE ayah_id IS NOT NULL AND text LIKE ? ESCAPE '\\'
                    AND is_default = 1 AND status = 'approved')""",
        """a.id IN (SELECT ayah_id FROM word_meanings
                    WHERE meaning LIKE ? ESCAPE '\\' AND is_default = 1 AND status = 'approved')""",
    ]
    params: list[object] = [pattern, pattern, pattern, pattern]
    if user_id is not None:
        sources.append(
            "a.id IN (SELECT ayah_id FROM private_notes WHERE user_id = ? AND note LIKE ? ESCAPE '\\')"
        )
        params.extend([user_id, pattern])
    where_clause = "(" + " OR ".join(sources) + ")"
    if surah_id is not None:
        where_clause += " AND a.surah_id = ?"
        params.append(surah_id)
    params.append(MAX_RESULTS)
    cursor = conn.cursor()
    cursor.execute(
        f"""
        SELECT a.id, a.surah_id, a.ayah_number, a.arabic_text,
               s.arabic_name AS surah_arabic_name, s.english_name AS surah_english_name
        FROM ayahs a
        JOIN surahs s ON s.id = a.surah_id
        WHERE {where_clause}
        ORDER BY a.surah_id ASC, a.ayah_number ASC
        LIMIT ?
        """,
        params,
    )
    return [dict(row) for row in cursor.fetchall()]
