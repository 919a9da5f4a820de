import io
import json
import logging
import sqlite3
import zipfile
from contextlib import contextmanager
from datetime import date, datetime, timezone
from pathlib import Path

import config as app_config
from utils.errors import ConflictError, InvalidArgumentError
from .schema import SCHEMA_SQL, INDEXES_SQL, SCHEMA_VERSION

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".quranhub"
DB_PATH = CONFIG_DIR / "quranhub.db"
SURAHS_JSON = Path(__file__).resolve().parents[1] / "data" / "surahs.json"
BACKUP_KEEP = 7

_LOCK_MESSAGES = ("database is locked", "database is busy", "database table is locked")

def backup_dir() -> Path:
    return CONFIG_DIR / "backups"

def init_db():
    """Initialize the database by creating tables and indexes if they don't exist."""
    CONFIG_DIR.mkdir(exist_ok=True)
    with get_conn() as conn:
        apply_schema(conn)
        conn.commit()

def apply_schema(conn: sqlite3.Connection) -> None:
    conn.executescript(SCHEMA_SQL)
    conn.executescript(INDEXES_SQL)
    ensure_content_audit_columns(conn)
    ensure_surahs(conn)
    ensure_schema_version(conn)

def migrate_database_file(path: Path) -> int:
    """Bring a standalone database file (e.g. from a backup) up to the current schema.

    Returns the schema version the file had before migrating. Files written by a
    newer release are refused, as are files SQLite cannot read.
    """
    conn = sqlite3.connect(path)
    try:
        if conn.execute("PRAGMA quick_check").fetchone()[0] != "ok":
            raise sqlite3.DatabaseError(f"{path.name} failed the integrity check")
        found = get_schema_version(conn)
        if found > SCHEMA_VERSION:
            raise InvalidArgumentError(f"Database schema {found} is newer than supported schema {SCHEMA_VERSION}")
        apply_schema(conn)
        conn.commit()
    finally:
        conn.close()
    if found != SCHEMA_VERSION:
        logger.info("Migrated %s from schema %s to %s", path.name, found, SCHEMA_VERSION)
    return found

def ensure_content_audit_columns(conn: sqlite3.Connection) -> None:
    """Ensure content tables carry author/decision columns for existing installs."""
    cursor = conn.cursor()
    for table in ("translations", "tafasir", "word_meanings"):
        cursor.execute(f"PRAGMA table_info({table})")
        columns = {row[1] for row in cursor.fetchall()}
        if "author_kind" not in columns:
            cursor.execute(
                f"ALTER TABLE {table} ADD COLUMN author_kind TEXT NOT NULL DEFAULT 'contributor'"
            )
            cursor.execute(
                f"UPDATE {table} SET author_kind = 'import' WHERE contributor_id IS NULL"
            )
        if "decided_by" not in columns:
            cursor.execute(f"ALTER TABLE {table} ADD COLUMN decided_by INTEGER")
        if "decided_at" not in columns:
            cursor.execute(f"ALTER TABLE {table} ADD COLUMN decided_at TEXT")

def ensure_surahs(conn: sqlite3.Connection) -> int:
    """Seed the 114 surah metadata rows; existing rows are left alone."""
    with SURAHS_JSON.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    cursor = conn.cursor()
    cursor.executemany(
        """
        INSERT OR IGNORE INTO surahs (id, arabic_name, english_name, ayah_count, revelation_type)
        VALUES (?, ?, ?, ?, ?)
        """,
        [
            (
                entry["id"],
                entry["arabic_name"],
                entry["english_name"],
                entry["ayah_count"],
                entry["revelation_type"],
            )
            for entry in payload.get("surahs", [])
        ],
    )
    return cursor.rowcount

def get_schema_version(conn: sqlite3.Connection) -> int:
    """Read the SQLite schema version from PRAGMA user_version."""
    cursor = conn.cursor()
    cursor.execute("PRAGMA user_version")
    row = cursor.fetchone()
    return int(row[0]) if row else 0

def set_schema_version(conn: sqlite3.Connection, version: int) -> None:
    """Set the SQLite schema version via PRAGMA user_version."""
    conn.execute(f"PRAGMA user_version = {int(version)}")

def ensure_schema_version(conn: sqlite3.Connection) -> None:
    """Ensure the current schema version is written to the database."""
    current = get_schema_version(conn)
    if current != SCHEMA_VERSION:
        set_schema_version(conn, SCHEMA_VERSION)

def get_schema_version_from_db() -> int:
    """Get the schema version from the on-disk database."""
    if not DB_PATH.exists():
        return SCHEMA_VERSION
    with get_conn() as conn:
        return get_schema_version(conn)

def build_backup_manifest(schema_version: int) -> dict:
    """Build a manifest for backups with timestamp and schema version."""
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "schema_version": schema_version,
    }

def _write_backup(zipf: zipfile.ZipFile, schema_version: int) -> None:
    if not DB_PATH.exists():
        raise FileNotFoundError("quranhub.db not found")
    if not app_config.CONFIG_PATH.exists():
        raise FileNotFoundError("config.toml not found")
    manifest = build_backup_manifest(schema_version)
    zipf.writestr("manifest.json", json.dumps(manifest, indent=2))
    zipf.write(DB_PATH, arcname="quranhub.db")
    zipf.write(app_config.CONFIG_PATH, arcname="config.toml")

def create_backup_archive_bytes(schema_version: int) -> bytes:
    """Create a backup zip archive in memory."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zipf:
        _write_backup(zipf, schema_version)
    buffer.seek(0)
    return buffer.read()

def create_backup_archive_file(destination: Path, schema_version: int) -> None:
    """Create a backup zip archive at the given destination."""
    destination.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(destination, "w", compression=zipfile.ZIP_DEFLATED) as zipf:
        _write_backup(zipf, schema_version)
    logger.info("Wrote backup %s", destination.name)

def list_backups() -> list[Path]:
    """Backup archives, newest first."""
    directory = backup_dir()
    if not directory.exists():
        return []
    return sorted(directory.glob("*.zip"), key=lambda path: path.stat().st_mtime, reverse=True)

def run_daily_backup() -> None:
    """Create a daily rolling backup of the DB/config and prune old archives."""
    if not DB_PATH.exists() or not app_config.CONFIG_PATH.exists():
        return
    backup_dir().mkdir(parents=True, exist_ok=True)
    today = date.today()
    existing = list_backups()
    if existing:
        latest_date = date.fromtimestamp(existing[0].stat().st_mtime)
        if latest_date == today:
            return
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    backup_path = backup_dir() / f"backup-{timestamp}.zip"
    create_backup_archive_file(backup_path, get_schema_version_from_db())
    for old_backup in list_backups()[BACKUP_KEEP:]:
        old_backup.unlink(missing_ok=True)
        logger.info("Pruned backup %s", old_backup.name)

def is_lock_error(exc: sqlite3.OperationalError) -> bool:
    message = str(exc).lower()
    return any(fragment in message for fragment in _LOCK_MESSAGES)

@contextmanager
def write_transaction(conn: sqlite3.Connection):
    """Run a read-modify-write unit under BEGIN IMMEDIATE.

    The write lock is taken before the first read, so two writers on the same
    database are serialized. Lock timeouts surface as ConflictError. When the
    connection is already inside a transaction the block joins it and the
    outer owner commits.
    """
    if conn.in_transaction:
        yield conn
        return
    try:
        conn.execute("BEGIN IMMEDIATE")
    except sqlite3.OperationalError as exc:
        if is_lock_error(exc):
            raise ConflictError("Database is busy, try again") from exc
        raise
    try:
        yield conn
        conn.commit()
    except sqlite3.OperationalError as exc:
        conn.rollback()
        if is_lock_error(exc):
            raise ConflictError("Database is busy, try again") from exc
        raise
    except BaseException:
        conn.rollback()
        raise

@contextmanager
def get_conn():
    """Context manager for SQLite connection, using row_factory for dict-like rows."""
    timeout = float(app_config.get_config_value("database", "busy_timeout", 5))
    conn = sqlite3.connect(DB_PATH, timeout=timeout, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
    finally:
        conn.close()

def get_db():
    """FastAPI dependency that yields a DB connection and closes it afterwards."""
    with get_conn() as conn:
        yield conn
