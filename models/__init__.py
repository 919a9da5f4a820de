from .quran import Surah, Ayah
from .content import (
    ContentKind,
    ContentStatus,
    Decision,
    Contributor,
    Administrator,
    SystemImport,
    AuthorKind,
    GroupKey,
    Translation,
    Tafsir,
    WordMeaning,
    ContentItem,
)
from .hifz import HifzStatus, RecallRating, MemorizationRecord
from .user import User, Role

__all__ = [
    'Surah', 'Ayah',
    'ContentKind', 'ContentStatus', 'Decision', 'Contributor', 'Administrator', 'SystemImport',
    'AuthorKind', 'GroupKey', 'Translation', 'Tafsir', 'WordMeaning', 'ContentItem',
    'HifzStatus', 'RecallRating', 'MemorizationRecord',
    'User', 'Role',
]
