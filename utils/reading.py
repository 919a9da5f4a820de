from __future__ import annotations

from typing import Any, Dict, List, Optional

# period -> (lookback window, SQL grouping expression)
REPORT_PERIODS = {
    "daily": ("-7 day", "DATE(read_at)"),
    "monthly": ("-1 year", "STRFTIME('%Y-%m', read_at)"),
    "yearly": ("-5 year", "STRFTIME('%Y', read_at)"),
}

DEDUPE_WINDOW = "-1 minute"


def log_reading(conn, user_id: int, ayah_id: int) -> bool:
    """Record that the user read an ayah, ignoring repeats within a minute."""
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT COUNT(*) FROM user_reading_log
        WHERE user_id = ? AND ayah_id = ? AND read_at > datetime('now', ?)
        """,
        (user_id, ayah_id, DEDUPE_WINDOW),
    )
    if cursor.fetchone()[0]:
        return False
    cursor.execute(
        "INSERT INTO user_reading_log (user_id, ayah_id) VALUES (?, ?)",
        (user_id, ayah_id),
    )
    conn.commit()
    return True


def reading_report(conn, user_id: int, period: str = "daily") -> List[Dict[str, Any]]:
    """Distinct ayahs read per day/month/year over the period's window."""
    window, group_by = REPORT_PERIODS.get(period, REPORT_PERIODS["daily"])
    cursor = conn.cursor()
    cursor.execute(
        f"""
        SELECT {group_by} AS label, COUNT(DISTINCT ayah_id) AS ayah_count
        FROM user_reading_log
        WHERE user_id = ? AND read_at >= DATE('now', ?)
        GROUP BY label
        ORDER BY label ASC
        """,
        (user_id, window),
    )
    return [{"label": row["label"], "ayah_count": row["ayah_count"]} for row in cursor.fetchall()]


def last_read(conn, user_id: int) -> Optional[Dict[str, Any]]:
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT l.ayah_id, l.read_at, a.surah_id, a.ayah_number, s.english_name AS surah_english_name
        FROM user_reading_log l
        JOIN ayahs a ON a.id = l.ayah_id
        JOIN surahs s ON s.id = a.surah_id
        WHERE l.user_id = ?
        ORDER BY l.read_at DESC, l.id DESC
        LIMIT 1
        """,
        (user_id,),
    )
    row = cursor.fetchone()
    return dict(row) if row else None
