import io
import logging
import json
import shutil
import sqlite3
import tempfile
import zipfile
from datetime import datetime, timezone
from pathlib import Path

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile, status
from fastapi.responses import HTMLResponse, RedirectResponse, StreamingResponse
from fastapi.templating import Jinja2Templates

import config as app_config
from db import database
from db.schema import SCHEMA_VERSION
from models.user import User
from utils.auth import ensure_default_admin, require_admin

logger = logging.getLogger(__name__)
router = APIRouter()
base_dir = Path(__file__).resolve().parent.parent
templates = Jinja2Templates(directory=str(base_dir / "templates"))

@router.get("/backup/manage", response_class=HTMLResponse)
async def backup_admin(request: Request, user: User = Depends(require_admin)):
    backups = [
        {
            "name": path.name,
            "size_kb": round(path.stat().st_size / 1024, 1),
            "created": datetime.fromtimestamp(path.stat().st_mtime).strftime("%Y-%m-%d %H:%M"),
        }
        for path in database.list_backups()
    ]
    return templates.TemplateResponse(
        "admin/backup.html",
        {"request": request, "user": user, "backups": backups, "schema_version": SCHEMA_VERSION},
    )

@router.get("/backup")
async def download_backup(user: User = Depends(require_admin)):
    schema_version = database.get_schema_version_from_db()
    try:
        data = database.create_backup_archive_bytes(schema_version)
    except FileNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    filename = f"quranhub-backup-{timestamp}.zip"
    headers = {"Content-Disposition": f"attachment; filename={filename}"}
    return StreamingResponse(io.BytesIO(data), media_type="application/zip", headers=headers)

@router.post("/restore")
async def restore_backup(
    file: UploadFile = File(...),
    user: User = Depends(require_admin),
):
    """Replace the database and config with a backup archive.

    Archives from older schema versions are migrated in a scratch directory
    before anything on disk is touched; the live files are swapped only once
    the restored database opens cleanly at the current schema. The configured
    admin account is recreated if the archive has none.
    """
    if not file.filename:
        raise HTTPException(status_code=400, detail="Backup file is required")
    data = await file.read()
    if not data:
        raise HTTPException(status_code=400, detail="Backup file is empty")
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as zipf:
            names = set(zipf.namelist())
            if "manifest.json" not in names:
                raise HTTPException(status_code=400, detail="Backup manifest is missing")
            manifest = json.loads(zipf.read("manifest.json"))
            manifest_version = manifest.get("schema_version")
            if not isinstance(manifest_version, int) or not 0 <= manifest_version <= SCHEMA_VERSION:
                raise HTTPException(
                    status_code=400,
                    detail=f"Unsupported schema version {manifest_version!r} (this install runs {SCHEMA_VERSION})",
                )
            if "quranhub.db" not in names or "config.toml" not in names:
                raise HTTPException(status_code=400, detail="Backup missing required files")
            with tempfile.TemporaryDirectory() as tmpdir:
                zipf.extract("quranhub.db", tmpdir)
                zipf.extract("config.toml", tmpdir)
                temp_db = Path(tmpdir) / "quranhub.db"
                temp_config = Path(tmpdir) / "config.toml"
                try:
                    restored_from = database.migrate_database_file(temp_db)
                except sqlite3.DatabaseError as exc:
                    raise HTTPException(status_code=400, detail="Backup database is unreadable") from exc
                if database.DB_PATH.exists() and app_config.CONFIG_PATH.exists():
                    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
                    safety_path = database.backup_dir() / f"safety-{timestamp}.zip"
                    database.create_backup_archive_file(safety_path, database.get_schema_version_from_db())
                app_config.CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
                shutil.move(str(temp_db), database.DB_PATH)
                shutil.move(str(temp_config), app_config.CONFIG_PATH)
    except zipfile.BadZipFile as exc:
        raise HTTPException(status_code=400, detail="Invalid zip archive") from exc
    except json.JSONDecodeError as exc:
        raise HTTPException(status_code=400, detail="Backup manifest is not valid JSON") from exc
    with database.get_conn() as conn:
        try:
            ensure_default_admin(conn)
        except ValueError as exc:
            logger.warning("Restored backup has no admin and the configured one cannot be created: %s", exc)
    logger.info(
        "Restored backup %s (schema %s -> %s) by %s",
        file.filename,
        restored_from,
        SCHEMA_VERSION,
        user.username,
    )
    return RedirectResponse(url="/admin/backup/manage", status_code=status.HTTP_303_SEE_OTHER)
