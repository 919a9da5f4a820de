from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from db.database import write_transaction
from models.hifz import HifzStatus, MemorizationRecord
from utils.errors import InvalidArgumentError, NotFoundError
from utils.quran import get_ayah_by_ref
from utils.srs import next_review_for, to_db_timestamp, utc_now, validate_level


def parse_status(status: str) -> HifzStatus:
    try:
        return HifzStatus(status)
    except ValueError:
        raise InvalidArgumentError(f"Unknown hifz status {status!r}") from None


def _record_from_row(row) -> MemorizationRecord:
    return MemorizationRecord(
        user_id=int(row["user_id"]),
        surah_id=int(row["surah_id"]),
        ayah_number=int(row["ayah_number"]),
        status=HifzStatus(row["status"]),
        srs_level=int(row["srs_level"]),
        last_reviewed=row["last_reviewed"],
        next_review=row["next_review"],
    )


def get_memorization_record(
    conn, user_id: int, surah_id: int, ayah_number: int
) -> Optional[MemorizationRecord]:
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT user_id, surah_id, ayah_number, status, srs_level, last_reviewed, next_review
        FROM hifz_progress
        WHERE user_id = ? AND surah_id = ? AND ayah_number = ?
        """,
        (user_id, surah_id, ayah_number),
    )
    row = cursor.fetchone()
    if not row:
        return None
    return _record_from_row(row)


def record_review(
    conn,
    user_id: int,
    surah_id: int,
    ayah_number: int,
    status: str,
    srs_level: Optional[int] = None,
    *,
    now: Optional[datetime] = None,
) -> MemorizationRecord:
    """Set a verse's hifz status and, when a level is given, reschedule it.

    status and last_reviewed are always written. srs_level and next_review
    change only when srs_level is supplied; otherwise the stored values (or
    0/NULL for a new record) are kept. The read and the write share one
    BEGIN IMMEDIATE transaction, so concurrent reviews of the same verse by
    the same user cannot lose an update.
    """
    new_status = parse_status(status)
    if srs_level is not None:
        validate_level(srs_level)
    reviewed_at = now or utc_now()
    reviewed_text = to_db_timestamp(reviewed_at)
    with write_transaction(conn):
        if not conn.execute("SELECT 1 FROM users WHERE id = ?", (user_id,)).fetchone():
            raise NotFoundError(f"User {user_id} not found")
        if not get_ayah_by_ref(conn, surah_id, ayah_number):
            raise NotFoundError(f"Ayah {surah_id}:{ayah_number} not found")
        existing = get_memorization_record(conn, user_id, surah_id, ayah_number)
        level = existing.srs_level if existing else 0
        next_review = existing.next_review if existing else None
        if srs_level is not None:
            level = srs_level
            next_review = to_db_timestamp(next_review_for(level, reviewed_at))
        cursor = conn.cursor()
        cursor.execute(
            """
            INSERT INTO hifz_progress (
                user_id, surah_id, ayah_number, status, srs_level, last_reviewed, next_review
            )
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(user_id, surah_id, ayah_number) DO UPDATE SET
                status = excluded.status,
                srs_level = excluded.srs_level,
                last_reviewed = excluded.last_reviewed,
                next_review = excluded.next_review
            """,
            (
                user_id,
                surah_id,
                ayah_number,
                new_status.value,
                level,
                reviewed_text,
                next_review,
            ),
        )
    return MemorizationRecord(
        user_id=user_id,
        surah_id=surah_id,
        ayah_number=ayah_number,
        status=new_status,
        srs_level=level,
        last_reviewed=reviewed_text,
        next_review=next_review,
    )


def list_hifz_progress(conn, user_id: int, surah_id: Optional[int] = None) -> List[Dict[str, Any]]:
    sql = """
        SELECT hp.*, s.arabic_name AS surah_arabic_name, s.english_name AS surah_english_name
        FROM hifz_progress hp
        JOIN ayahs a ON a.surah_id = hp.surah_id AND a.ayah_number = hp.ayah_number
        JOIN surahs s ON s.id = hp.surah_id
        WHERE hp.user_id = ?
    """
    params: list[object] = [user_id]
    if surah_id is not None:
        sql += " AND hp.surah_id = ?"
        params.append(surah_id)
    sql += " ORDER BY hp.surah_id ASC, hp.ayah_number ASC"
    cursor = conn.cursor()
    cursor.execute(sql, params)
    return [dict(row) for row in cursor.fetchall()]


def due_for_review(conn, user_id: int, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """Records whose next_review has passed, oldest first."""
    cutoff = to_db_timestamp(now or utc_now())
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT hp.*, s.english_name AS surah_english_name
        FROM hifz_progress hp
        JOIN surahs s ON s.id = hp.surah_id
        WHERE hp.user_id = ? AND hp.next_review IS NOT NULL AND hp.next_review <= ?
        ORDER BY hp.next_review ASC, hp.surah_id ASC, hp.ayah_number ASC
        """,
        (user_id, cutoff),
    )
    return [dict(row) for row in cursor.fetchall()]


def hifz_summary(conn, user_id: int) -> Dict[str, int]:
    cursor = conn.cursor()
    cursor.execute(
        "SELECT status, COUNT(*) FROM hifz_progress WHERE user_id = ? GROUP BY status",
        (user_id,),
    )
    counts = {status.value: 0 for status in HifzStatus}
    counts.update({row[0]: row[1] for row in cursor.fetchall()})
    return counts
