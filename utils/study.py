from __future__ import annotations

from typing import Any, Dict, List, Optional


def get_bookmark(conn, user_id: int, ayah_id: int) -> Optional[Dict[str, Any]]:
    cursor = conn.cursor()
    cursor.execute(
        "SELECT * FROM bookmarks WHERE user_id = ? AND ayah_id = ?",
        (user_id, ayah_id),
    )
    row = cursor.fetchone()
    return dict(row) if row else None


def add_bookmark(conn, user_id: int, ayah_id: int) -> bool:
    """Bookmark an ayah; False when it was already bookmarked."""
    cursor = conn.cursor()
    cursor.execute(
        "INSERT OR IGNORE INTO bookmarks (user_id, ayah_id) VALUES (?, ?)",
        (user_id, ayah_id),
    )
    conn.commit()
    return cursor.rowcount > 0


def remove_bookmark(conn, user_id: int, ayah_id: int) -> None:
    conn.execute("DELETE FROM bookmarks WHERE user_id = ? AND ayah_id = ?", (user_id, ayah_id))
    conn.commit()


def list_bookmarks(conn, user_id: int) -> List[Dict[str, Any]]:
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT b.id, b.ayah_id, b.created_at, a.surah_id, a.ayah_number, a.arabic_text,
               s.english_name AS surah_english_name
        FROM bookmarks b
        JOIN ayahs a ON a.id = b.ayah_id
        JOIN surahs s ON s.id = a.surah_id
        WHERE b.user_id = ?
        ORDER BY a.surah_id ASC, a.ayah_number ASC
        """,
        (user_id,),
    )
    return [dict(row) for row in cursor.fetchall()]


def get_note(conn, user_id: int, ayah_id: int) -> Optional[Dict[str, Any]]:
    cursor = conn.cursor()
    cursor.execute(
        "SELECT * FROM private_notes WHERE user_id = ? AND ayah_id = ?",
        (user_id, ayah_id),
    )
    row = cursor.fetchone()
    return dict(row) if row else None


def save_note(conn, user_id: int, ayah_id: int, note: str) -> None:
    """Insert or replace the user's note on an ayah; a blank note deletes it."""
    note = (note or "").strip()
    if not note:
        delete_note(conn, user_id, ayah_id)
        return
    conn.execute(
        """
        INSERT INTO private_notes (user_id, ayah_id, note)
        VALUES (?, ?, ?)
        ON CONFLICT(user_id, ayah_id) DO UPDATE SET
            note = excluded.note,
            updated_at = datetime('now')
        """,
        (user_id, ayah_id, note),
    )
    conn.commit()


def delete_note(conn, user_id: int, ayah_id: int) -> None:
    conn.execute("DELETE FROM private_notes WHERE user_id = ? AND ayah_id = ?", (user_id, ayah_id))
    conn.commit()


def list_notes(conn, user_id: int) -> List[Dict[str, Any]]:
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT n.id, n.ayah_id, n.note, n.updated_at, a.surah_id, a.ayah_number, a.arabic_text,
               s.english_name AS surah_english_name
        FROM private_notes n
        JOIN ayahs a ON a.id = n.ayah_id
        JOIN surahs s ON s.id = a.surah_id
        WHERE n.user_id = ?
        ORDER BY a.surah_id ASC, a.ayah_number ASC
        """,
        (user_id,),
    )
    return [dict(row) for row in cursor.fetchall()]
