from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Type

from models.content import (
    ContentBase,
    ContentItem,
    ContentKind,
    ContentStatus,
    GroupKey,
    Tafsir,
    Translation,
    WordMeaning,
)
from utils.errors import InvalidArgumentError


@dataclass(frozen=True)
class ContentTable:
    name: str
    text_column: str
    model: Type[ContentBase]


CONTENT_TABLES: Dict[ContentKind, ContentTable] = {
    ContentKind.TRANSLATION: ContentTable("translations", "text", Translation),
    ContentKind.TAFSIR: ContentTable("tafasir", "text", Tafsir),
    ContentKind.WORD_MEANING: ContentTable("word_meanings", "meaning", WordMeaning),
}


def parse_kind(kind) -> ContentKind:
    try:
        return ContentKind(kind)
    except ValueError:
        raise InvalidArgumentError(f"Unknown content kind {kind!r}") from None


def table_for(kind: ContentKind) -> ContentTable:
    return CONTENT_TABLES[parse_kind(kind)]


def item_from_row(kind: ContentKind, row) -> ContentItem:
    table = table_for(kind)
    data = dict(row)
    if table.text_column != "text":
        data["text"] = data.pop(table.text_column)
    data["kind"] = table.model.model_fields["kind"].default
    return table.model.model_validate(data)


def get_content_item(conn, kind: ContentKind, item_id: int) -> Optional[ContentItem]:
    table = table_for(kind)
    cursor = conn.cursor()
    cursor.execute(f"SELECT * FROM {table.name} WHERE id = ?", (item_id,))
    row = cursor.fetchone()
    if not row:
        return None
    return item_from_row(kind, row)


def group_key_of(item: ContentItem) -> GroupKey:
    """Default-slot group of an item: its ayah, or its surah for surah-level tafsir."""
    if item.ayah_id is not None:
        return GroupKey(kind=item.kind, scope="ayah", target_id=item.ayah_id)
    if isinstance(item, Tafsir) and item.surah_id is not None:
        return GroupKey(kind=item.kind, scope="surah", target_id=item.surah_id)
    raise InvalidArgumentError(f"{item.kind.value} {item.id} has no ayah or surah target")


def group_filter(key: GroupKey) -> tuple[str, tuple]:
    """SQL condition selecting every row of a group."""
    if key.scope == "ayah":
        return "ayah_id = ?", (key.target_id,)
    return "surah_id = ? AND ayah_id IS NULL", (key.target_id,)


def group_key_for_target(
    kind: ContentKind, ayah_id: Optional[int], surah_id: Optional[int]
) -> GroupKey:
    if ayah_id is not None:
        return GroupKey(kind=kind, scope="ayah", target_id=ayah_id)
    if kind == ContentKind.TAFSIR and surah_id is not None:
        return GroupKey(kind=kind, scope="surah", target_id=surah_id)
    raise InvalidArgumentError(f"{kind.value} needs an ayah target")


def approved_versions(
    conn,
    kind: ContentKind,
    ayah_id: Optional[int] = None,
    surah_id: Optional[int] = None,
) -> List[ContentItem]:
    """Approved items of one group, presented item first."""
    kind = parse_kind(kind)
    table = table_for(kind)
    condition, params = group_filter(group_key_for_target(kind, ayah_id, surah_id))
    order = "is_default DESC, version_name ASC, id ASC"
    if kind == ContentKind.WORD_MEANING:
        order = "word_index ASC, " + order
    cursor = conn.cursor()
    cursor.execute(
        f"SELECT * FROM {table.name} WHERE {condition} AND status = ? ORDER BY {order}",
        (*params, ContentStatus.APPROVED.value),
    )
    return [item_from_row(kind, row) for row in cursor.fetchall()]


def choose_presented(items: List[ContentItem]) -> Optional[ContentItem]:
    """Approved default if present, else the smallest version label, else None."""
    approved = [item for item in items if item.status == ContentStatus.APPROVED]
    if not approved:
        return None
    defaults = [item for item in approved if item.is_default]
    if defaults:
        return defaults[0]
    return min(approved, key=lambda item: (item.version_name, item.id))


def select_presented(
    conn,
    kind: ContentKind,
    ayah_id: Optional[int] = None,
    surah_id: Optional[int] = None,
) -> Optional[ContentItem]:
    return choose_presented(approved_versions(conn, kind, ayah_id=ayah_id, surah_id=surah_id))


def presented_word_meanings(conn, ayah_id: int) -> Dict[int, WordMeaning]:
    """Word index -> gloss shown for it, using the same default/fallback rule per word."""
    by_index: Dict[int, List[ContentItem]] = {}
    for item in approved_versions(conn, ContentKind.WORD_MEANING, ayah_id=ayah_id):
        by_index.setdefault(item.word_index, []).append(item)
    return {index: choose_presented(items) for index, items in sorted(by_index.items())}


def list_approved(conn, kind: ContentKind) -> List[dict]:
    """Approved items of one kind with their ayah/surah reference, for default management."""
    kind = parse_kind(kind)
    table = table_for(kind)
    if kind == ContentKind.TAFSIR:
        order = "COALESCE(a.surah_id, c.surah_id), a.ayah_number, c.version_name"
    elif kind == ContentKind.WORD_MEANING:
        order = "a.surah_id, a.ayah_number, c.word_index, c.version_name"
    else:
        order = "a.surah_id, a.ayah_number, c.version_name"
    cursor = conn.cursor()
    cursor.execute(
        f"""
        SELECT c.*, a.surah_id AS ayah_surah_id, a.ayah_number AS ayah_number
        FROM {table.name} c
        LEFT JOIN ayahs a ON a.id = c.ayah_id
        WHERE c.status = ?
        ORDER BY {order}
        """,
        (ContentStatus.APPROVED.value,),
    )
    results = []
    for row in cursor.fetchall():
        entry = dict(row)
        entry["kind"] = kind.value
        entry["text"] = entry.get(table.text_column)
        results.append(entry)
    return results
