import sqlite3
import threading

import pytest

from db import database
from models.content import (
    Administrator,
    ContentKind,
    ContentStatus,
    Contributor,
    Decision,
    GroupKey,
    SystemImport,
    Tafsir,
    Translation,
    WordMeaning,
)
from utils.auth import create_user
from utils.content import approved_versions, group_key_of, presented_word_meanings, select_presented
from utils.errors import (
    ConflictError,
    InvalidArgumentError,
    InvalidTransitionError,
    NotFoundError,
    PreconditionFailedError,
)
from utils.moderation import (
    count_pending,
    decide_content,
    list_suggestions,
    set_default_content,
    submit_content,
)


def _defaults_in_group(conn, table: str, ayah_id: int) -> int:
    return conn.execute(
        f"SELECT COUNT(*) FROM {table} WHERE ayah_id = ? AND is_default = 1",
        (ayah_id,),
    ).fetchone()[0]


@pytest.fixture
def admin(seeded):
    return create_user(seeded, "moderator", "moderator@example.com", "secret123")


def test_contributor_translation_lifecycle_and_default_handover(seeded, reader, admin, ayah_id):
    verse = ayah_id(1, 1)
    imported = select_presented(seeded, ContentKind.TRANSLATION, ayah_id=verse)
    assert imported.is_default
    assert imported.author_kind == "import"

    suggestion = submit_content(
        seeded, ContentKind.TRANSLATION, "اللہ کے نام سے", "Reader Version", Contributor(reader.id), ayah_id=verse
    )
    assert suggestion.status == ContentStatus.PENDING
    assert suggestion.contributor_id == reader.id
    assert not suggestion.is_default

    approved = decide_content(seeded, ContentKind.TRANSLATION, suggestion.id, Decision.APPROVE, decided_by=admin.id)
    assert approved.status == ContentStatus.APPROVED
    assert approved.decided_by == admin.id
    assert approved.decided_at is not None
    assert not approved.is_default

    promoted = set_default_content(seeded, ContentKind.TRANSLATION, suggestion.id, True)
    assert promoted.is_default
    assert _defaults_in_group(seeded, "translations", verse) == 1

    second = submit_content(
        seeded,
        ContentKind.TRANSLATION,
        "نیا ترجمہ",
        "Admin Revision",
        Administrator(admin.id),
        ayah_id=verse,
        make_default=True,
    )
    assert second.status == ContentStatus.APPROVED
    assert second.is_default
    assert _defaults_in_group(seeded, "translations", verse) == 1
    assert select_presented(seeded, ContentKind.TRANSLATION, ayah_id=verse).id == second.id


def test_decide_unknown_item_is_not_found(seeded):
    with pytest.raises(NotFoundError):
        decide_content(seeded, ContentKind.TRANSLATION, 999_999, Decision.APPROVE)


def test_decision_is_one_shot(seeded, reader, ayah_id):
    item = submit_content(
        seeded, ContentKind.TAFSIR, "تفسیر", "Notes", Contributor(reader.id), ayah_id=ayah_id(1, 2)
    )
    decide_content(seeded, ContentKind.TAFSIR, item.id, Decision.REJECT)
    with pytest.raises(InvalidTransitionError):
        decide_content(seeded, ContentKind.TAFSIR, item.id, Decision.APPROVE)
    with pytest.raises(InvalidTransitionError):
        decide_content(seeded, ContentKind.TAFSIR, item.id, Decision.REJECT)


def test_decision_leaves_default_flag_alone(seeded, ayah_id):
    verse = ayah_id(1, 2)
    imported = select_presented(seeded, ContentKind.TRANSLATION, ayah_id=verse)
    seeded.execute("UPDATE translations SET status = 'pending' WHERE id = ?", (imported.id,))
    seeded.commit()
    rejected = decide_content(seeded, ContentKind.TRANSLATION, imported.id, "reject")
    assert rejected.status == ContentStatus.REJECTED
    assert rejected.is_default
    assert select_presented(seeded, ContentKind.TRANSLATION, ayah_id=verse) is None


def test_only_approved_items_can_become_default(seeded, reader, ayah_id):
    verse = ayah_id(2, 255)
    pending = submit_content(
        seeded, ContentKind.TRANSLATION, "ترجمہ", "Pending", Contributor(reader.id), ayah_id=verse
    )
    with pytest.raises(PreconditionFailedError):
        set_default_content(seeded, ContentKind.TRANSLATION, pending.id, True)

    decide_content(seeded, ContentKind.TRANSLATION, pending.id, Decision.REJECT)
    with pytest.raises(PreconditionFailedError):
        set_default_content(seeded, ContentKind.TRANSLATION, pending.id, True)
    assert _defaults_in_group(seeded, "translations", verse) == 1


def test_set_default_twice_matches_once(seeded, ayah_id):
    verse = ayah_id(1, 1)
    item = submit_content(seeded, ContentKind.TRANSLATION, "متبادل", "B Version", Administrator(None), ayah_id=verse)

    set_default_content(seeded, ContentKind.TRANSLATION, item.id, True)
    once = [dict(row) for row in seeded.execute("SELECT id, is_default, status FROM translations ORDER BY id")]
    set_default_content(seeded, ContentKind.TRANSLATION, item.id, True)
    twice = [dict(row) for row in seeded.execute("SELECT id, is_default, status FROM translations ORDER BY id")]
    assert once == twice


def test_demotion_falls_back_to_smallest_version_name(seeded, ayah_id):
    verse = ayah_id(1, 1)
    imported = select_presented(seeded, ContentKind.TRANSLATION, ayah_id=verse)
    alpha = submit_content(seeded, ContentKind.TRANSLATION, "الف", "A Version", SystemImport(), ayah_id=verse)
    submit_content(seeded, ContentKind.TRANSLATION, "ب", "Z Version", SystemImport(), ayah_id=verse)

    demoted = set_default_content(seeded, ContentKind.TRANSLATION, imported.id, False)
    assert not demoted.is_default
    assert _defaults_in_group(seeded, "translations", verse) == 0
    assert select_presented(seeded, ContentKind.TRANSLATION, ayah_id=verse).id == alpha.id
    assert [item.version_name for item in approved_versions(seeded, ContentKind.TRANSLATION, ayah_id=verse)] == [
        "A Version",
        "Imported Urdu",
        "Z Version",
    ]


def test_pending_items_are_never_presented(seeded, reader, ayah_id):
    verse = ayah_id(1, 2)
    submit_content(seeded, ContentKind.TAFSIR, "زیر غور", "Draft", Contributor(reader.id), ayah_id=verse)
    assert select_presented(seeded, ContentKind.TAFSIR, ayah_id=verse) is None


def test_submit_validation(seeded, reader, ayah_id):
    with pytest.raises(InvalidArgumentError):
        submit_content(
            seeded,
            ContentKind.TRANSLATION,
            "ترجمہ",
            "Mine",
            Contributor(reader.id),
            ayah_id=ayah_id(1, 1),
            make_default=True,
        )
    with pytest.raises(NotFoundError):
        submit_content(seeded, ContentKind.TRANSLATION, "ترجمہ", "Mine", Contributor(reader.id), ayah_id=999_999)
    with pytest.raises(InvalidArgumentError):
        submit_content(seeded, ContentKind.TRANSLATION, "   ", "Mine", Contributor(reader.id), ayah_id=ayah_id(1, 1))
    with pytest.raises(InvalidArgumentError):
        submit_content(seeded, ContentKind.TRANSLATION, "ترجمہ", "Mine", Contributor(reader.id), surah_id=1)
    with pytest.raises(InvalidArgumentError):
        submit_content(
            seeded,
            ContentKind.WORD_MEANING,
            "نام",
            "Mine",
            Contributor(reader.id),
            ayah_id=ayah_id(1, 1),
            word_index=-1,
            arabic_word="بِسْمِ",
        )
    with pytest.raises(InvalidArgumentError):
        submit_content(seeded, "commentary", "text", "Mine", Contributor(reader.id), ayah_id=ayah_id(1, 1))
    with pytest.raises(NotFoundError):
        submit_content(seeded, ContentKind.TAFSIR, "تفسیر", "Mine", Administrator(None), surah_id=115)


def test_group_key_of_is_pure_and_scoped():
    ayah_tafsir = Tafsir(id=1, text="t", version_name="v", status="approved", ayah_id=10, surah_id=2)
    surah_tafsir = Tafsir(id=2, text="t", version_name="v", status="approved", surah_id=2)
    translation = Translation(id=3, text="t", version_name="v", status="pending", ayah_id=10, language="ur")
    meaning = WordMeaning(id=4, text="t", version_name="v", status="approved", ayah_id=10, word_index=0, arabic_word="x")

    assert group_key_of(ayah_tafsir) == GroupKey(ContentKind.TAFSIR, "ayah", 10)
    assert group_key_of(surah_tafsir) == GroupKey(ContentKind.TAFSIR, "surah", 2)
    assert group_key_of(translation) == GroupKey(ContentKind.TRANSLATION, "ayah", 10)
    assert group_key_of(meaning) == GroupKey(ContentKind.WORD_MEANING, "ayah", 10)
    assert group_key_of(translation) != group_key_of(meaning)


def test_surah_tafsir_default_is_separate_from_ayah_tafsir(seeded, ayah_id):
    verse = ayah_id(1, 1)
    ayah_level = submit_content(
        seeded, ContentKind.TAFSIR, "آیت کی تفسیر", "Ibn Kathir", SystemImport(), ayah_id=verse, make_default=True
    )
    surah_level = submit_content(
        seeded, ContentKind.TAFSIR, "سورت کا تعارف", "Ibn Kathir", SystemImport(), surah_id=1, make_default=True
    )
    assert ayah_level.surah_id == 1
    assert surah_level.ayah_id is None

    assert select_presented(seeded, ContentKind.TAFSIR, ayah_id=verse).id == ayah_level.id
    assert select_presented(seeded, ContentKind.TAFSIR, surah_id=1).id == surah_level.id
    assert select_presented(seeded, ContentKind.TAFSIR, surah_id=2) is None


def test_word_meanings_presented_per_word(seeded, ayah_id):
    verse = ayah_id(1, 1)
    first = submit_content(
        seeded, ContentKind.WORD_MEANING, "نام سے", "B Gloss", SystemImport(), ayah_id=verse, word_index=0, arabic_word="بِسْمِ"
    )
    submit_content(
        seeded, ContentKind.WORD_MEANING, "اللہ", "C Gloss", SystemImport(), ayah_id=verse, word_index=1, arabic_word="اللَّهِ"
    )
    alternative = submit_content(
        seeded, ContentKind.WORD_MEANING, "نام کے ساتھ", "A Gloss", SystemImport(), ayah_id=verse, word_index=0, arabic_word="بِسْمِ"
    )

    glosses = presented_word_meanings(seeded, verse)
    assert sorted(glosses) == [0, 1]
    assert glosses[0].id == alternative.id

    set_default_content(seeded, ContentKind.WORD_MEANING, first.id, True)
    glosses = presented_word_meanings(seeded, verse)
    assert glosses[0].id == first.id
    assert glosses[1].text == "اللہ"


def test_moderation_queue_lists_contributor_items_only(seeded, reader, ayah_id):
    submit_content(seeded, ContentKind.TRANSLATION, "تجویز", "Mine", Contributor(reader.id), ayah_id=ayah_id(1, 1))
    submit_content(
        seeded,
        ContentKind.WORD_MEANING,
        "رب",
        "Mine",
        Contributor(reader.id),
        ayah_id=ayah_id(1, 2),
        word_index=3,
        arabic_word="رَبِّ",
    )
    submit_content(seeded, ContentKind.TAFSIR, "انتظامی", "Admin", Administrator(None), surah_id=2)

    queue = list_suggestions(seeded)
    assert [entry["kind"] for entry in queue] == ["translation", "word_meaning"]
    assert all(entry["contributor_name"] == "reader" for entry in queue)
    assert queue[1]["ayah_surah_id"] == 1
    assert queue[1]["ayah_number"] == 2
    assert count_pending(seeded) == 2
    assert list_suggestions(seeded, "approved") == []
    with pytest.raises(InvalidArgumentError):
        list_suggestions(seeded, "archived")


def test_concurrent_promotions_leave_one_default(seeded, ayah_id):
    verse = ayah_id(1, 1)
    items = [
        submit_content(seeded, ContentKind.TRANSLATION, f"ترجمہ {n}", f"Version {n}", SystemImport(), ayah_id=verse)
        for n in range(6)
    ]
    errors = []

    def promote(item_id: int) -> None:
        with database.get_conn() as conn:
            for _ in range(10):
                while True:
                    try:
                        set_default_content(conn, ContentKind.TRANSLATION, item_id, True)
                        break
                    except ConflictError:
                        continue
                    except Exception as exc:
                        errors.append(exc)
                        return

    threads = [threading.Thread(target=promote, args=(item.id,)) for item in items]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert _defaults_in_group(seeded, "translations", verse) == 1
    presented = select_presented(seeded, ContentKind.TRANSLATION, ayah_id=verse)
    assert presented.id in {item.id for item in items}


def test_set_default_while_store_is_locked_raises_conflict(seeded, ayah_id):
    verse = ayah_id(1, 2)
    imported = select_presented(seeded, ContentKind.TRANSLATION, ayah_id=verse)
    other = submit_content(seeded, ContentKind.TRANSLATION, "دوسرا", "Other", SystemImport(), ayah_id=verse)

    blocker = sqlite3.connect(database.DB_PATH)
    try:
        blocker.execute("BEGIN IMMEDIATE")
        with pytest.raises(ConflictError) as excinfo:
            set_default_content(seeded, ContentKind.TRANSLATION, other.id, True)
        assert excinfo.value.retryable
    finally:
        blocker.rollback()
        blocker.close()

    assert select_presented(seeded, ContentKind.TRANSLATION, ayah_id=verse).id == imported.id
    assert _defaults_in_group(seeded, "translations", verse) == 1
