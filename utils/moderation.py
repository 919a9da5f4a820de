"""Lifecycle and default-version rules for contributed translations, tafsir and word meanings.

Every item starts ``pending`` (contributor suggestion) or ``approved``
(administrator or bulk import). An admin decision moves a pending item to
``approved`` or ``rejected`` exactly once. Only approved items may hold the
default flag, and within a group (see ``group_key_of``) at most one item
holds it. The functions here are the only code that writes ``status`` or
``is_default``; authorization is the caller's job.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from db.database import write_transaction
from models.content import (
    Administrator,
    AuthorKind,
    ContentItem,
    ContentKind,
    ContentStatus,
    Contributor,
    Decision,
    SystemImport,
)
from utils.content import (
    group_key_for_target,
    get_content_item,
    group_filter,
    group_key_of,
    parse_kind,
    table_for,
)
from utils.errors import (
    InvalidArgumentError,
    InvalidTransitionError,
    NotFoundError,
    PreconditionFailedError,
)
from utils.quran import get_ayah, get_surah

DEFAULT_SUGGESTION_VERSION = "User Suggestion"


def _clean_text(value: Optional[str], field: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise InvalidArgumentError(f"{field} is required")
    return cleaned


def _initial_status(author: AuthorKind) -> ContentStatus:
    if isinstance(author, Contributor):
        return ContentStatus.PENDING
    if isinstance(author, (Administrator, SystemImport)):
        return ContentStatus.APPROVED
    raise InvalidArgumentError(f"Unknown author {author!r}")


def _clear_group_defaults(conn, item: ContentItem) -> None:
    table = table_for(item.kind)
    condition, params = group_filter(group_key_of(item))
    conn.execute(
        f"UPDATE {table.name} SET is_default = 0 WHERE {condition} AND id != ? AND is_default = 1",
        (*params, item.id),
    )


def submit_content(
    conn,
    kind: ContentKind,
    body: str,
    version_name: str,
    author: AuthorKind,
    *,
    ayah_id: Optional[int] = None,
    surah_id: Optional[int] = None,
    make_default: bool = False,
    language: str = "ur",
    word_index: Optional[int] = None,
    arabic_word: Optional[str] = None,
    grammar_notes: Optional[str] = None,
) -> ContentItem:
    """Create a new content item; never touches existing items except to clear a displaced default."""
    kind = parse_kind(kind)
    status = _initial_status(author)
    if make_default and status != ContentStatus.APPROVED:
        raise InvalidArgumentError("Suggestions cannot be submitted as the default version")
    text = _clean_text(body, "Text")
    version = _clean_text(version_name, "Version name")
    key = group_key_for_target(kind, ayah_id, surah_id)

    with write_transaction(conn):
        if key.scope == "ayah":
            ayah = get_ayah(conn, ayah_id)
            if not ayah:
                raise NotFoundError(f"Ayah {ayah_id} not found")
            if surah_id is not None and int(surah_id) != ayah["surah_id"]:
                raise InvalidArgumentError(f"Ayah {ayah_id} is not in surah {surah_id}")
            surah_id = ayah["surah_id"]
        elif not get_surah(conn, surah_id):
            raise NotFoundError(f"Surah {surah_id} not found")

        common = (version, status.value, author.label, author.user_id)
        cursor = conn.cursor()
        if kind == ContentKind.TRANSLATION:
            cursor.execute(
                """
                INSERT INTO translations (ayah_id, language, text, version_name, status, author_kind, contributor_id)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (ayah_id, _clean_text(language, "Language"), text, *common),
            )
        elif kind == ContentKind.TAFSIR:
            cursor.execute(
                """
                INSERT INTO tafasir (surah_id, ayah_id, text, version_name, status, author_kind, contributor_id)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (surah_id, ayah_id, text, *common),
            )
        elif kind == ContentKind.WORD_MEANING:
            if word_index is None or int(word_index) < 0:
                raise InvalidArgumentError("Word index must be zero or greater")
            cursor.execute(
                """
                INSERT INTO word_meanings (
                    ayah_id, word_index, arabic_word, meaning, grammar_notes,
                    version_name, status, author_kind, contributor_id
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    ayah_id,
                    int(word_index),
                    _clean_text(arabic_word, "Arabic word"),
                    text,
                    (grammar_notes or "").strip() or None,
                    *common,
                ),
            )
        item = get_content_item(conn, kind, cursor.lastrowid)
        if make_default:
            _clear_group_defaults(conn, item)
            conn.execute(f"UPDATE {table_for(kind).name} SET is_default = 1 WHERE id = ?", (item.id,))
            item = get_content_item(conn, kind, item.id)
    return item


def decide_content(
    conn,
    kind: ContentKind,
    item_id: int,
    decision: Decision,
    *,
    decided_by: Optional[int] = None,
) -> ContentItem:
    """Approve or reject a pending item. The default flag is left as it was."""
    kind = parse_kind(kind)
    try:
        decision = Decision(decision)
    except ValueError:
        raise InvalidArgumentError(f"Unknown decision {decision!r}") from None
    new_status = ContentStatus.APPROVED if decision == Decision.APPROVE else ContentStatus.REJECTED
    table = table_for(kind)
    with write_transaction(conn):
        item = get_content_item(conn, kind, item_id)
        if item is None:
            raise NotFoundError(f"{kind.value} {item_id} not found")
        if item.status != ContentStatus.PENDING:
            raise InvalidTransitionError(
                f"{kind.value} {item_id} is already {item.status.value}"
            )
        conn.execute(
            f"""
            UPDATE {table.name}
            SET status = ?, decided_by = ?, decided_at = datetime('now')
            WHERE id = ? AND status = ?
            """,
            (new_status.value, decided_by, item_id, ContentStatus.PENDING.value),
        )
        item = get_content_item(conn, kind, item_id)
    return item


def set_default_content(conn, kind: ContentKind, item_id: int, make_default: bool) -> ContentItem:
    """Promote an approved item to its group's default, or clear its flag.

    Promotion clears every other default of the group and sets this one in
    a single BEGIN IMMEDIATE transaction; concurrent promotions in the same
    group serialize and the last one wins.
    """
    kind = parse_kind(kind)
    table = table_for(kind)
    with write_transaction(conn):
        item = get_content_item(conn, kind, item_id)
        if item is None:
            raise NotFoundError(f"{kind.value} {item_id} not found")
        if make_default:
            if item.status != ContentStatus.APPROVED:
                raise PreconditionFailedError(
                    f"Only approved items can be the default ({kind.value} {item_id} is {item.status.value})"
                )
            _clear_group_defaults(conn, item)
        conn.execute(
            f"UPDATE {table.name} SET is_default = ? WHERE id = ?",
            (1 if make_default else 0, item_id),
        )
        item = get_content_item(conn, kind, item_id)
    return item


def list_suggestions(conn, status: str = ContentStatus.PENDING.value) -> List[Dict[str, Any]]:
    """Contributor submissions of every kind with the given status, oldest first."""
    try:
        status = ContentStatus(status).value
    except ValueError:
        raise InvalidArgumentError(f"Unknown content status {status!r}") from None
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT 'translation' AS kind, t.id AS id, t.ayah_id, NULL AS surah_id, t.text, NULL AS arabic_word,
               NULL AS word_index, t.version_name, t.status, t.created_at AS created_at, u.username AS contributor_name,
               a.surah_id AS ayah_surah_id, a.ayah_number AS ayah_number, a.arabic_text AS ayah_arabic_text
        FROM translations t
        LEFT JOIN users u ON u.id = t.contributor_id
        JOIN ayahs a ON a.id = t.ayah_id
        WHERE t.status = ? AND t.author_kind = 'contributor'

        UNION ALL

        SELECT 'tafsir' AS kind, tf.id, tf.ayah_id, tf.surah_id, tf.text, NULL AS arabic_word,
               NULL AS word_index, tf.version_name, tf.status, tf.created_at, u.username AS contributor_name,
               a.surah_id AS ayah_surah_id, a.ayah_number AS ayah_number, a.arabic_text AS ayah_arabic_text
        FROM tafasir tf
        LEFT JOIN users u ON u.id = tf.contributor_id
        LEFT JOIN ayahs a ON a.id = tf.ayah_id
        WHERE tf.status = ? AND tf.author_kind = 'contributor'

        UNION ALL

        SELECT 'word_meaning' AS kind, wm.id, wm.ayah_id, NULL AS surah_id, wm.meaning AS text, wm.arabic_word,
               wm.word_index, wm.version_name, wm.status, wm.created_at, u.username AS contributor_name,
               a.surah_id AS ayah_surah_id, a.ayah_number AS ayah_number, a.arabic_text AS ayah_arabic_text
        FROM word_meanings wm
        LEFT JOIN users u ON u.id = wm.contributor_id
        JOIN ayahs a ON a.id = wm.ayah_id
        WHERE wm.status = ? AND wm.author_kind = 'contributor'

        ORDER BY created_at ASC, kind ASC, id ASC
        """,
        (status, status, status),
    )
    return [dict(row) for row in cursor.fetchall()]


def count_pending(conn) -> int:
    total = 0
    cursor = conn.cursor()
    for kind in ContentKind:
        cursor.execute(
            f"SELECT COUNT(*) FROM {table_for(kind).name} WHERE status = ?",
            (ContentStatus.PENDING.value,),
        )
        total += cursor.fetchone()[0] or 0
    return total
