from fastapi import APIRouter, Depends, Form, status
from fastapi.responses import RedirectResponse
from typing import Optional

from db.database import get_db
from models.content import Contributor
from models.user import User
from utils.auth import require_login
from utils.content import parse_kind
from utils.errors import NotFoundError
from utils.moderation import DEFAULT_SUGGESTION_VERSION, submit_content
from utils.quran import get_ayah
from utils.redirects import safe_next_path

router = APIRouter()


@router.post("/{kind}")
async def suggest(
    kind: str,
    ayah_id: int = Form(...),
    text: str = Form(...),
    version_name: str = Form(DEFAULT_SUGGESTION_VERSION),
    language: str = Form("ur"),
    word_index: Optional[int] = Form(None),
    arabic_word: Optional[str] = Form(None),
    grammar_notes: Optional[str] = Form(None),
    next_path: str = Form(""),
    user: User = Depends(require_login),
    conn = Depends(get_db),
):
    """Queue a reader's translation, tafsir or word meaning for admin review."""
    ayah = get_ayah(conn, ayah_id)
    if not ayah:
        raise NotFoundError(f"Ayah {ayah_id} not found")
    submit_content(
        conn,
        parse_kind(kind),
        text,
        version_name.strip() or DEFAULT_SUGGESTION_VERSION,
        Contributor(user.id),
        ayah_id=ayah_id,
        language=language,
        word_index=word_index,
        arabic_word=arabic_word,
        grammar_notes=grammar_notes,
    )
    default = f"/quran/{ayah['surah_id']}/{ayah['ayah_number']}?suggested=1"
    return RedirectResponse(url=safe_next_path(next_path, default), status_code=status.HTTP_303_SEE_OTHER)
