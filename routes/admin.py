import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from config import load_config
from db.database import get_db
from models.content import Administrator, ContentKind, ContentStatus, Decision
from models.user import Role, User
from utils.auth import list_users, require_admin, set_user_role
from utils.content import list_approved, parse_kind
from utils.data_import import import_lines, import_quran_data
from utils.errors import InvalidArgumentError, NotFoundError
from utils.moderation import count_pending, decide_content, list_suggestions, set_default_content, submit_content
from utils.quran import get_ayah_by_ref, list_surahs

logger = logging.getLogger(__name__)
router = APIRouter()
base_dir = Path(__file__).resolve().parent.parent
templates = Jinja2Templates(directory=str(base_dir / "templates"))


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=status.HTTP_303_SEE_OTHER)


def _optional_int(raw: Optional[str]) -> Optional[int]:
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError:
        raise InvalidArgumentError(f"Expected a whole number, got {raw!r}") from None


@router.get("/", response_class=HTMLResponse)
async def admin_dashboard(request: Request, user: User = Depends(require_admin), conn = Depends(get_db)):
    cursor = conn.cursor()
    counts = {}
    for label, table in (("users", "users"), ("surahs", "surahs"), ("ayahs", "ayahs")):
        cursor.execute(f"SELECT COUNT(*) FROM {table}")
        counts[label] = cursor.fetchone()[0] or 0
    counts["pending"] = count_pending(conn)
    return templates.TemplateResponse(
        "admin/dashboard.html",
        {"request": request, "user": user, "counts": counts},
    )


@router.get("/users", response_class=HTMLResponse)
async def users_page(request: Request, user: User = Depends(require_admin), conn = Depends(get_db)):
    return templates.TemplateResponse(
        "admin/users.html",
        {"request": request, "user": user, "users": list_users(conn), "roles": [r.value for r in Role]},
    )


@router.post("/users/{user_id}/role")
async def change_role(
    user_id: int,
    role: str = Form(...),
    user: User = Depends(require_admin),
    conn = Depends(get_db),
):
    updated = set_user_role(conn, user_id, role)
    logger.info("User %s set role of %s to %s", user.id, updated.username, updated.role.value)
    return _redirect("/admin/users")


@router.get("/moderation", response_class=HTMLResponse)
async def moderation_queue(
    request: Request,
    status_filter: str = "pending",
    user: User = Depends(require_admin),
    conn = Depends(get_db),
):
    """Contributor suggestions awaiting (or past) a decision."""
    return templates.TemplateResponse(
        "admin/moderation.html",
        {
            "request": request,
            "user": user,
            "suggestions": list_suggestions(conn, status_filter),
            "status_filter": status_filter,
            "statuses": [s.value for s in ContentStatus],
        },
    )


@router.post("/moderation/{kind}/{item_id}")
async def moderate(
    kind: str,
    item_id: int,
    decision: Decision = Form(...),
    user: User = Depends(require_admin),
    conn = Depends(get_db),
):
    decide_content(conn, kind, item_id, decision, decided_by=user.id)
    return _redirect("/admin/moderation")


@router.get("/content", response_class=HTMLResponse)
async def content_page(
    request: Request,
    kind: str = ContentKind.TRANSLATION.value,
    user: User = Depends(require_admin),
    conn = Depends(get_db),
):
    """Approved items of one kind, with default toggles and the new-content form."""
    kind = parse_kind(kind)
    return templates.TemplateResponse(
        "admin/content.html",
        {
            "request": request,
            "user": user,
            "kind": kind.value,
            "kinds": [k.value for k in ContentKind],
            "items": list_approved(conn, kind),
            "surahs": list_surahs(conn),
        },
    )


@router.post("/content/{kind}/{item_id}/default")
async def toggle_default(
    kind: str,
    item_id: int,
    make_default: bool = Form(...),
    user: User = Depends(require_admin),
    conn = Depends(get_db),
):
    item = set_default_content(conn, kind, item_id, make_default)
    return _redirect(f"/admin/content?kind={item.kind.value}")


@router.post("/content/new")
async def create_content(
    kind: str = Form(...),
    surah_id: int = Form(...),
    ayah_number: Optional[str] = Form(None),
    text: str = Form(...),
    version_name: str = Form(...),
    language: str = Form("ur"),
    word_index: Optional[str] = Form(None),
    arabic_word: Optional[str] = Form(None),
    grammar_notes: Optional[str] = Form(None),
    make_default: bool = Form(False),
    user: User = Depends(require_admin),
    conn = Depends(get_db),
):
    kind = parse_kind(kind)
    number = _optional_int(ayah_number)
    ayah_id = None
    if number is not None:
        ayah = get_ayah_by_ref(conn, surah_id, number)
        if not ayah:
            raise NotFoundError(f"Ayah {surah_id}:{number} not found")
        ayah_id = ayah["id"]
    submit_content(
        conn,
        kind,
        text,
        version_name,
        Administrator(user.id),
        ayah_id=ayah_id,
        surah_id=surah_id,
        make_default=make_default,
        language=language,
        word_index=_optional_int(word_index),
        arabic_word=arabic_word,
        grammar_notes=grammar_notes,
    )
    return _redirect(f"/admin/content?kind={kind.value}")


@router.get("/data", response_class=HTMLResponse)
async def data_page(request: Request, user: User = Depends(require_admin)):
    return templates.TemplateResponse(
        "admin/data.html",
        {"request": request, "user": user, "import_cfg": load_config()["import"], "result": None},
    )


@router.post("/data/import", response_class=HTMLResponse)
async def run_import(
    request: Request,
    file: Optional[UploadFile] = File(None),
    user: User = Depends(require_admin),
    conn = Depends(get_db),
):
    """Import an uploaded data file, or the configured data path when none is sent."""
    import_cfg = load_config()["import"]
    options = {"version_name": import_cfg["version_name"], "language": import_cfg["language"]}
    if file is not None and file.filename:
        payload = (await file.read()).decode("utf-8")
        logger.info("Importing uploaded file %s", file.filename)
        result = import_lines(conn, payload.splitlines(), **options)
    else:
        logger.info("Importing %s", import_cfg["data_path"])
        result = import_quran_data(conn, Path(import_cfg["data_path"]), **options)
    return templates.TemplateResponse(
        "admin/data.html",
        {"request": request, "user": user, "import_cfg": import_cfg, "result": result},
    )
