from fastapi import APIRouter, Depends, Request, HTTPException
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from pathlib import Path
from typing import Optional

from db.database import get_db
from models.content import ContentKind
from models.user import User
from utils.auth import get_current_user
from utils.content import approved_versions, presented_word_meanings, select_presented
from utils.hifz import get_memorization_record
from utils.quran import get_ayah_by_ref, get_surah, list_ayahs, list_surahs, split_words
from utils.reading import log_reading
from utils.study import get_bookmark, get_note

router = APIRouter()
base_dir = Path(__file__).resolve().parent.parent
templates = Jinja2Templates(directory=str(base_dir / "templates"))

@router.get("/", response_class=HTMLResponse)
async def surah_index(request: Request, user: Optional[User] = Depends(get_current_user), conn = Depends(get_db)):
    """List all surahs."""
    return templates.TemplateResponse(
        "quran/index.html",
        {"request": request, "user": user, "surahs": list_surahs(conn)},
    )

@router.get("/{surah_id}", response_class=HTMLResponse)
async def surah_page(
    surah_id: int,
    request: Request,
    user: Optional[User] = Depends(get_current_user),
    conn = Depends(get_db),
):
    """Ayahs of a surah with their presented translation and the surah-level tafsir."""
    surah = get_surah(conn, surah_id)
    if not surah:
        raise HTTPException(status_code=404, detail="Surah not found")
    ayahs = []
    for ayah in list_ayahs(conn, surah_id):
        ayahs.append({
            "ayah": ayah,
            "translation": select_presented(conn, ContentKind.TRANSLATION, ayah_id=ayah.id),
        })
    surah_tafsir = select_presented(conn, ContentKind.TAFSIR, surah_id=surah_id)
    return templates.TemplateResponse(
        "quran/surah.html",
        {
            "request": request,
            "user": user,
            "surah": surah,
            "ayahs": ayahs,
            "surah_tafsir": surah_tafsir,
        },
    )

@router.get("/{surah_id}/{ayah_number}", response_class=HTMLResponse)
async def ayah_page(
    surah_id: int,
    ayah_number: int,
    request: Request,
    user: Optional[User] = Depends(get_current_user),
    conn = Depends(get_db),
):
    """Single ayah: presented content, other approved versions, and the reader's study tools."""
    ayah = get_ayah_by_ref(conn, surah_id, ayah_number)
    if not ayah:
        raise HTTPException(status_code=404, detail="Ayah not found")
    ayah_id = ayah["id"]
    glosses = presented_word_meanings(conn, ayah_id)
    words = [
        {"index": index, "token": token, "meaning": glosses.get(index)}
        for index, token in enumerate(split_words(ayah["arabic_text"]))
    ]
    context = {
        "request": request,
        "user": user,
        "ayah": ayah,
        "words": words,
        "translation": select_presented(conn, ContentKind.TRANSLATION, ayah_id=ayah_id),
        "translations": approved_versions(conn, ContentKind.TRANSLATION, ayah_id=ayah_id),
        "tafsir": select_presented(conn, ContentKind.TAFSIR, ayah_id=ayah_id),
        "tafasir": approved_versions(conn, ContentKind.TAFSIR, ayah_id=ayah_id),
        "surah_tafsir": select_presented(conn, ContentKind.TAFSIR, surah_id=surah_id),
        "bookmark": None,
        "note": None,
        "hifz": None,
    }
    if user:
        log_reading(conn, user.id, ayah_id)
        context["bookmark"] = get_bookmark(conn, user.id, ayah_id)
        context["note"] = get_note(conn, user.id, ayah_id)
        context["hifz"] = get_memorization_record(conn, user.id, surah_id, ayah_number)
    return templates.TemplateResponse("quran/ayah.html", context)
