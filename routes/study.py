from fastapi import APIRouter, Depends, Form, Request, HTTPException, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pathlib import Path

from db.database import get_db
from models.user import User
from utils.auth import require_login
from utils.hifz import due_for_review, hifz_summary
from utils.quran import get_ayah
from utils.reading import last_read
from utils.redirects import safe_next_path
from utils.study import add_bookmark, delete_note, list_bookmarks, list_notes, remove_bookmark, save_note

router = APIRouter()
base_dir = Path(__file__).resolve().parent.parent
templates = Jinja2Templates(directory=str(base_dir / "templates"))

def _require_ayah(conn, ayah_id: int) -> dict:
    ayah = get_ayah(conn, ayah_id)
    if not ayah:
        raise HTTPException(status_code=404, detail="Ayah not found")
    return ayah

def _back(next_path: str, ayah: dict) -> RedirectResponse:
    default = f"/quran/{ayah['surah_id']}/{ayah['ayah_number']}"
    return RedirectResponse(url=safe_next_path(next_path, default), status_code=status.HTTP_303_SEE_OTHER)

@router.get("/dashboard", response_class=HTMLResponse)
async def dashboard(request: Request, user: User = Depends(require_login), conn = Depends(get_db)):
    """Continue-reading link, hifz counts and reviews due."""
    return templates.TemplateResponse(
        "study/dashboard.html",
        {
            "request": request,
            "user": user,
            "last_read": last_read(conn, user.id),
            "hifz_counts": hifz_summary(conn, user.id),
            "due": due_for_review(conn, user.id),
        },
    )

@router.get("/bookmarks", response_class=HTMLResponse)
async def bookmarks_page(request: Request, user: User = Depends(require_login), conn = Depends(get_db)):
    return templates.TemplateResponse(
        "study/bookmarks.html",
        {"request": request, "user": user, "bookmarks": list_bookmarks(conn, user.id)},
    )

@router.post("/bookmarks/add")
async def bookmark_add(
    ayah_id: int = Form(...),
    next_path: str = Form(""),
    user: User = Depends(require_login),
    conn = Depends(get_db),
):
    ayah = _require_ayah(conn, ayah_id)
    add_bookmark(conn, user.id, ayah_id)
    return _back(next_path, ayah)

@router.post("/bookmarks/remove")
async def bookmark_remove(
    ayah_id: int = Form(...),
    next_path: str = Form(""),
    user: User = Depends(require_login),
    conn = Depends(get_db),
):
    ayah = _require_ayah(conn, ayah_id)
    remove_bookmark(conn, user.id, ayah_id)
    return _back(next_path, ayah)

@router.get("/notes", response_class=HTMLResponse)
async def notes_page(request: Request, user: User = Depends(require_login), conn = Depends(get_db)):
    return templates.TemplateResponse(
        "study/notes.html",
        {"request": request, "user": user, "notes": list_notes(conn, user.id)},
    )

@router.post("/notes/save")
async def note_save(
    ayah_id: int = Form(...),
    note: str = Form(""),
    next_path: str = Form(""),
    user: User = Depends(require_login),
    conn = Depends(get_db),
):
    ayah = _require_ayah(conn, ayah_id)
    save_note(conn, user.id, ayah_id, note)
    return _back(next_path, ayah)

@router.post("/notes/delete")
async def note_delete(
    ayah_id: int = Form(...),
    next_path: str = Form(""),
    user: User = Depends(require_login),
    conn = Depends(get_db),
):
    ayah = _require_ayah(conn, ayah_id)
    delete_note(conn, user.id, ayah_id)
    return _back(next_path, ayah)
