import sqlite3
from datetime import datetime, timedelta, timezone

import pytest

from db import database
from models.hifz import HifzStatus
from utils.errors import ConflictError, InvalidArgumentError, NotFoundError
from utils.hifz import due_for_review, get_memorization_record, hifz_summary, list_hifz_progress, record_review
from utils.srs import (
    INTERVAL_DAYS,
    MAX_LEVEL,
    adjust_level,
    from_db_timestamp,
    interval_for_level,
    next_review_for,
    to_db_timestamp,
)

NOW = datetime(2024, 3, 1, 12, 30, 0, tzinfo=timezone.utc)


def test_interval_table():
    assert INTERVAL_DAYS == (0, 1, 3, 7, 15, 30, 90, 180, 365)
    assert interval_for_level(0) == 0
    assert interval_for_level(3) == 7
    assert interval_for_level(8) == 365
    assert interval_for_level(50) == 365
    with pytest.raises(InvalidArgumentError):
        interval_for_level(-1)


def test_adjust_level_ratings():
    assert adjust_level(3, "hard") == 2
    assert adjust_level(0, "hard") == 0
    assert adjust_level(3, "good") == 3
    assert adjust_level(3, "easy") == 4
    assert adjust_level(MAX_LEVEL, "easy") == MAX_LEVEL
    with pytest.raises(InvalidArgumentError):
        adjust_level(3, "perfect")


def test_first_review_creates_record(seeded, reader):
    record = record_review(seeded, reader.id, 2, 255, "review", 3, now=NOW)

    assert record.status == HifzStatus.REVIEW
    assert record.srs_level == 3
    assert record.last_reviewed == "2024-03-01 12:30:00"
    assert record.next_review == "2024-03-08 12:30:00"
    assert get_memorization_record(seeded, reader.id, 2, 255) == record


def test_level_past_table_uses_last_interval(seeded, reader):
    record_review(seeded, reader.id, 2, 255, "review", 3, now=NOW)
    later = NOW + timedelta(days=8)
    record = record_review(seeded, reader.id, 2, 255, "review", 9, now=later)

    assert record.srs_level == 9
    assert from_db_timestamp(record.next_review) - later == timedelta(days=365)
    count = seeded.execute(
        "SELECT COUNT(*) FROM hifz_progress WHERE user_id = ? AND surah_id = 2 AND ayah_number = 255",
        (reader.id,),
    ).fetchone()[0]
    assert count == 1


@pytest.mark.parametrize("level", range(0, 11))
def test_next_review_matches_interval(seeded, reader, level):
    record = record_review(seeded, reader.id, 1, 1, "learning", level, now=NOW)
    reviewed = from_db_timestamp(record.last_reviewed)
    expected = INTERVAL_DAYS[min(level, len(INTERVAL_DAYS) - 1)]
    assert from_db_timestamp(record.next_review) - reviewed == timedelta(days=expected)
    assert record.next_review == to_db_timestamp(next_review_for(level, NOW))


def test_status_only_update_keeps_schedule(seeded, reader):
    record_review(seeded, reader.id, 1, 2, "learning", 2, now=NOW)
    later = NOW + timedelta(days=1)
    record = record_review(seeded, reader.id, 1, 2, "memorized", now=later)

    assert record.status == HifzStatus.MEMORIZED
    assert record.srs_level == 2
    assert record.last_reviewed == to_db_timestamp(later)
    assert record.next_review == "2024-03-04 12:30:00"


def test_status_only_on_new_record_has_no_schedule(seeded, reader):
    record = record_review(seeded, reader.id, 1, 1, "learning", now=NOW)
    assert record.srs_level == 0
    assert record.next_review is None


def test_invalid_review_inputs(seeded, reader):
    with pytest.raises(InvalidArgumentError):
        record_review(seeded, reader.id, 1, 1, "mastered", 1)
    with pytest.raises(InvalidArgumentError):
        record_review(seeded, reader.id, 1, 1, "review", -1)
    with pytest.raises(InvalidArgumentError):
        record_review(seeded, reader.id, 2, 255, "review", 10**19)
    with pytest.raises(InvalidArgumentError):
        record_review(seeded, reader.id, 2, 255, "review", MAX_LEVEL + 1)
    with pytest.raises(NotFoundError):
        record_review(seeded, reader.id, 1, 99, "review", 1)
    with pytest.raises(NotFoundError):
        record_review(seeded, 999_999, 1, 1, "review", 1)
    assert get_memorization_record(seeded, reader.id, 1, 1) is None


def test_due_list_and_summary(seeded, reader):
    record_review(seeded, reader.id, 1, 1, "review", 0, now=NOW)
    record_review(seeded, reader.id, 1, 2, "review", 4, now=NOW)
    record_review(seeded, reader.id, 2, 255, "learning", now=NOW)

    due = due_for_review(seeded, reader.id, now=NOW + timedelta(days=1))
    assert [(row["surah_id"], row["ayah_number"]) for row in due] == [(1, 1)]
    due = due_for_review(seeded, reader.id, now=NOW + timedelta(days=15))
    assert [(row["surah_id"], row["ayah_number"]) for row in due] == [(1, 1), (1, 2)]

    summary = hifz_summary(seeded, reader.id)
    assert summary == {"not_started": 0, "learning": 1, "memorized": 0, "review": 2}

    progress = list_hifz_progress(seeded, reader.id, surah_id=1)
    assert [row["ayah_number"] for row in progress] == [1, 2]
    assert progress[0]["surah_english_name"] == "Al-Fatiha"


def test_largest_storable_level_is_accepted(seeded, reader):
    record = record_review(seeded, reader.id, 2, 255, "memorized", MAX_LEVEL, now=NOW)
    assert record.srs_level == MAX_LEVEL
    assert record.next_review == "2025-03-01 12:30:00"
    assert get_memorization_record(seeded, reader.id, 2, 255).srs_level == MAX_LEVEL


def test_review_while_store_is_locked_raises_conflict(seeded, reader):
    blocker = sqlite3.connect(database.DB_PATH)
    try:
        blocker.execute("BEGIN IMMEDIATE")
        with pytest.raises(ConflictError) as excinfo:
            record_review(seeded, reader.id, 2, 255, "review", 3, now=NOW)
        assert excinfo.value.retryable
    finally:
        blocker.rollback()
        blocker.close()

    assert not seeded.in_transaction
    assert get_memorization_record(seeded, reader.id, 2, 255) is None
    assert record_review(seeded, reader.id, 2, 255, "review", 3, now=NOW).srs_level == 3
