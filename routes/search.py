from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from pathlib import Path
from db.database import get_db
from models.user import User
from typing import Optional
from utils.auth import get_current_user
from utils.quran import list_surahs
from utils.search import MAX_RESULTS, normalize_query, search_ayahs

router = APIRouter()
base_dir = Path(__file__).resolve().parent.parent
templates = Jinja2Templates(directory=str(base_dir / "templates"))


@router.get("/", response_class=HTMLResponse)
async def search_page(
    request: Request,
    q: Optional[str] = None,
    surah_id: Optional[int] = None,
    user: Optional[User] = Depends(get_current_user),
    conn = Depends(get_db),
):
    results = search_ayahs(conn, q, surah_id=surah_id, user_id=user.id if user else None)
    return templates.TemplateResponse(
        "search.html",
        {
            "request": request,
            "user": user,
            "query": normalize_query(q) or "",
            "surah_id": surah_id,
            "surahs": list_surahs(conn),
            "results": results,
            "truncated": len(results) >= MAX_RESULTS,
        },
    )
