from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal, Optional, Union

from pydantic import BaseModel


class ContentKind(str, Enum):
    TRANSLATION = "translation"
    TAFSIR = "tafsir"
    WORD_MEANING = "word_meaning"


class ContentStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Decision(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


@dataclass(frozen=True)
class Contributor:
    """A registered user suggesting content; lands in the moderation queue."""

    user_id: int
    label = "contributor"


@dataclass(frozen=True)
class Administrator:
    """An admin authoring content directly; approved on creation."""

    user_id: int
    label = "admin"


@dataclass(frozen=True)
class SystemImport:
    """The bulk importer; approved on creation, no user attached."""

    label = "import"

    @property
    def user_id(self) -> None:
        return None


AuthorKind = Union[Contributor, Administrator, SystemImport]


@dataclass(frozen=True)
class GroupKey:
    """Items sharing a group key compete for the single default slot."""

    kind: ContentKind
    scope: Literal["ayah", "surah"]
    target_id: int


class ContentBase(BaseModel):
    id: int
    text: str
    version_name: str
    status: ContentStatus
    is_default: bool = False
    author_kind: str = "contributor"
    contributor_id: Optional[int] = None
    decided_by: Optional[int] = None
    decided_at: Optional[str] = None
    created_at: Optional[str] = None

    class Config:
        from_attributes = True


class Translation(ContentBase):
    kind: Literal[ContentKind.TRANSLATION] = ContentKind.TRANSLATION
    ayah_id: int
    language: str


class Tafsir(ContentBase):
    kind: Literal[ContentKind.TAFSIR] = ContentKind.TAFSIR
    ayah_id: Optional[int] = None
    surah_id: Optional[int] = None


class WordMeaning(ContentBase):
    kind: Literal[ContentKind.WORD_MEANING] = ContentKind.WORD_MEANING
    ayah_id: int
    word_index: int
    arabic_word: str
    grammar_notes: Optional[str] = None


ContentItem = Union[Translation, Tafsir, WordMeaning]
