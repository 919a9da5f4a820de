from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pathlib import Path
from typing import Optional

from db.database import get_db
from models.hifz import HifzStatus, RecallRating
from models.user import User
from utils.auth import require_login
from utils.errors import InvalidArgumentError
from utils.hifz import get_memorization_record, list_hifz_progress, record_review
from utils.quran import list_surahs
from utils.redirects import safe_next_path
from utils.srs import INTERVAL_DAYS, adjust_level

router = APIRouter()
base_dir = Path(__file__).resolve().parent.parent
templates = Jinja2Templates(directory=str(base_dir / "templates"))

def _optional_int(raw: Optional[str]) -> Optional[int]:
    if raw is None or not raw.strip():
        return None
    return int(raw)

@router.get("/", response_class=HTMLResponse)
async def hifz_page(
    request: Request,
    surah_id: Optional[int] = None,
    user: User = Depends(require_login),
    conn = Depends(get_db),
):
    """Memorization table with status controls and recall rating buttons."""
    return templates.TemplateResponse(
        "hifz/index.html",
        {
            "request": request,
            "user": user,
            "progress": list_hifz_progress(conn, user.id, surah_id),
            "surahs": list_surahs(conn),
            "statuses": [s.value for s in HifzStatus],
            "ratings": [r.value for r in RecallRating],
            "intervals": INTERVAL_DAYS,
        },
    )

@router.post("/update")
async def update_progress(
    surah_id: int = Form(...),
    ayah_number: int = Form(...),
    status_value: str = Form(..., alias="status"),
    srs_level: Optional[str] = Form(None),
    next_path: str = Form("/hifz/"),
    user: User = Depends(require_login),
    conn = Depends(get_db),
):
    """Set the status (and optionally the SRS level) for one ayah."""
    try:
        level = _optional_int(srs_level)
    except ValueError as exc:
        raise InvalidArgumentError(f"SRS level must be a whole number, got {srs_level!r}") from exc
    record_review(conn, user.id, surah_id, ayah_number, status_value, level)
    return RedirectResponse(url=safe_next_path(next_path, "/hifz/"), status_code=status.HTTP_303_SEE_OTHER)

@router.post("/rate")
async def rate_recall(
    surah_id: int = Form(...),
    ayah_number: int = Form(...),
    rating: RecallRating = Form(...),
    next_path: str = Form("/hifz/"),
    user: User = Depends(require_login),
    conn = Depends(get_db),
):
    """Hard/good/easy buttons: move the level down/keep/up and reschedule, keeping status."""
    record = get_memorization_record(conn, user.id, surah_id, ayah_number)
    current_level = record.srs_level if record else 0
    current_status = record.status.value if record else HifzStatus.REVIEW.value
    record_review(
        conn,
        user.id,
        surah_id,
        ayah_number,
        current_status,
        adjust_level(current_level, rating.value),
    )
    return RedirectResponse(url=safe_next_path(next_path, "/hifz/"), status_code=status.HTTP_303_SEE_OTHER)
