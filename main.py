import argparse
import logging
import uvicorn
from fastapi import FastAPI, Request, Depends
from starlette.exceptions import HTTPException
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from fastapi.responses import HTMLResponse, RedirectResponse
from contextlib import asynccontextmanager
from typing import Optional
from urllib.parse import quote

import sys
from pathlib import Path

# Add project root to path for package imports
base_dir = Path(__file__).parent
sys.path.insert(0, str(base_dir))

from db.database import init_db, get_conn, get_db, run_daily_backup
from config import load_config, CONFIG_DIR
from models.user import User
from routes import quran, auth, study, hifz, suggestions, reports, search, admin, backups  # Import routers
from utils.auth import ensure_default_admin, get_current_user
from utils.data_import import import_quran_data
from utils.errors import (
    ConflictError,
    InvalidArgumentError,
    InvalidTransitionError,
    NotFoundError,
    PreconditionFailedError,
    QuranHubError,
)
from utils.reading import last_read

logger = logging.getLogger("quranhub")

ERROR_STATUS = {
    NotFoundError: 404,
    InvalidTransitionError: 409,
    PreconditionFailedError: 412,
    InvalidArgumentError: 400,
    ConflictError: 503,
}


def bootstrap() -> None:
    """Create config, schema and the default admin account."""
    load_config()  # Ensures config exists
    init_db()
    with get_conn() as conn:
        ensure_default_admin(conn)


# First-run init
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: init DB, config and today's backup
    bootstrap()
    run_daily_backup()
    yield


templates = Jinja2Templates(directory=str(base_dir / "templates"))
app = FastAPI(title="Quran Study Hub", description="Read, study and memorize the Quran", lifespan=lifespan)

app.mount("/static", StaticFiles(directory=str(base_dir / "static")), name="static")

# Include routers
app.include_router(quran.router, prefix="/quran", tags=["quran"])
app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(study.router, prefix="/study", tags=["study"])
app.include_router(hifz.router, prefix="/hifz", tags=["hifz"])
app.include_router(suggestions.router, prefix="/suggest", tags=["suggestions"])
app.include_router(reports.router, prefix="/reports", tags=["reports"])
app.include_router(search.router, prefix="/search", tags=["search"])
app.include_router(admin.router, prefix="/admin", tags=["admin"])
app.include_router(backups.router, prefix="/admin", tags=["admin"])


@app.exception_handler(QuranHubError)
async def quranhub_error_handler(request: Request, exc: QuranHubError):
    status_code = next(
        (code for error_type, code in ERROR_STATUS.items() if isinstance(exc, error_type)),
        400,
    )
    headers = {"Retry-After": "1"} if exc.retryable else None
    return templates.TemplateResponse(
        "error.html",
        {"request": request, "user": None, "status_code": status_code, "message": str(exc)},
        status_code=status_code,
        headers=headers,
    )


@app.exception_handler(HTTPException)
async def http_error_handler(request: Request, exc: HTTPException):
    if exc.status_code == 401 and request.method == "GET":
        return RedirectResponse(url=f"/auth/login?next={quote(request.url.path)}", status_code=303)
    return templates.TemplateResponse(
        "error.html",
        {"request": request, "user": None, "status_code": exc.status_code, "message": exc.detail},
        status_code=exc.status_code,
    )


# Home page - continue reading for logged-in users, surah list link for everyone
@app.get("/", response_class=HTMLResponse)
async def home(request: Request, user: Optional[User] = Depends(get_current_user), conn = Depends(get_db)):
    return templates.TemplateResponse(
        "index.html",
        {
            "request": request,
            "user": user,
            "site_name": load_config()["app"]["site_name"],
            "last_read": last_read(conn, user.id) if user else None,
        },
    )


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Quran Study Hub")
    parser.add_argument("--init", action="store_true", help="Initialize DB, config and admin account")
    parser.add_argument("--import-data", metavar="PATH", help="Import ayahs and translations from a data file")
    parser.add_argument("--dev", action="store_true", help="Run in dev mode with reload")
    parser.add_argument("--port", type=int, default=8000)
    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.dev else logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    if args.init or args.import_data:
        bootstrap()
        logger.info("DB initialized and config copied to %s", CONFIG_DIR)
    if args.import_data:
        import_cfg = load_config()["import"]
        with get_conn() as conn:
            result = import_quran_data(
                conn,
                Path(args.import_data),
                version_name=import_cfg["version_name"],
                language=import_cfg["language"],
            )
        print(result.message)
    if args.init or args.import_data:
        sys.exit(0)
    # Run server
    uvicorn.run("main:app", host="127.0.0.1", port=args.port, reload=args.dev, log_level="info")
