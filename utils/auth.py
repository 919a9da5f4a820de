from __future__ import annotations

import base64
import hashlib
import hmac
import secrets
import sqlite3
import time
from typing import List, Optional

from fastapi import Depends, HTTPException, Request, status

from config import load_config, set_session_secret
from db.database import get_db, write_transaction
from models.user import Role, User
from utils.errors import InvalidArgumentError, NotFoundError, PreconditionFailedError

SESSION_COOKIE_NAME = "quranhub_session"
PASSWORD_HASH_ALGO = "pbkdf2_sha256"
PASSWORD_HASH_ITERATIONS = 200_000
DEFAULT_SESSION_MINUTES = 1440
MIN_PASSWORD_LENGTH = 6


def get_session_minutes() -> int:
    minutes = load_config().get("session", {}).get("minutes", DEFAULT_SESSION_MINUTES)
    try:
        return int(minutes)
    except (TypeError, ValueError):
        return DEFAULT_SESSION_MINUTES


def get_session_secret() -> str:
    """Signing secret for session cookies, generated and persisted on first use."""
    secret = load_config().get("session", {}).get("secret")
    if secret:
        return secret
    secret = secrets.token_hex(32)
    set_session_secret(secret)
    return secret


def hash_password(password: str) -> str:
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    salt = secrets.token_hex(16)
    dk = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        salt.encode("utf-8"),
        PASSWORD_HASH_ITERATIONS,
    )
    digest = base64.urlsafe_b64encode(dk).decode("utf-8")
    return f"{PASSWORD_HASH_ALGO}${PASSWORD_HASH_ITERATIONS}${salt}${digest}"


def verify_password(password: str, stored_hash: str) -> bool:
    if not stored_hash:
        return False
    try:
        algo, iterations_str, salt, digest = stored_hash.split("$", 3)
    except ValueError:
        return False
    if algo != PASSWORD_HASH_ALGO:
        return False
    try:
        iterations = int(iterations_str)
    except ValueError:
        return False
    dk = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        salt.encode("utf-8"),
        iterations,
    )
    computed = base64.urlsafe_b64encode(dk).decode("utf-8")
    return hmac.compare_digest(computed, digest)


def _sign(payload: str, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), payload.encode("utf-8"), hashlib.sha256).hexdigest()


def create_session_cookie(user_id: int, duration_minutes: int, secret: str) -> str:
    expires_at = int(time.time()) + int(duration_minutes) * 60
    payload = f"{int(user_id)}:{expires_at}"
    return f"{payload}:{_sign(payload, secret)}"


def read_session_cookie(cookie_value: Optional[str], secret: str) -> Optional[int]:
    """User id carried by a valid, unexpired cookie; None otherwise."""
    if not cookie_value or not secret:
        return None
    try:
        user_id_str, expires_str, signature = cookie_value.split(":", 2)
    except ValueError:
        return None
    expected = _sign(f"{user_id_str}:{expires_str}", secret)
    if not hmac.compare_digest(signature, expected):
        return None
    try:
        user_id = int(user_id_str)
        expires_at = int(expires_str)
    except ValueError:
        return None
    if expires_at < int(time.time()):
        return None
    return user_id


def get_user(conn, user_id: int) -> Optional[User]:
    cursor = conn.cursor()
    cursor.execute(
        "SELECT id, username, email, role, created_at FROM users WHERE id = ?",
        (user_id,),
    )
    row = cursor.fetchone()
    if not row:
        return None
    return User.model_validate(dict(row))


def authenticate(conn, email: str, password: str) -> Optional[User]:
    cursor = conn.cursor()
    cursor.execute(
        "SELECT id, password_hash FROM users WHERE email = ?",
        ((email or "").strip().lower(),),
    )
    row = cursor.fetchone()
    if not row or not verify_password(password, row["password_hash"]):
        return None
    return get_user(conn, row["id"])


def create_user(conn, username: str, email: str, password: str, role: Role = Role.USER) -> User:
    """Insert a user; raises ValueError on bad input or a taken username/email."""
    username = (username or "").strip()
    email = (email or "").strip().lower()
    if not username or not email:
        raise ValueError("Username and email are required")
    password_hash = hash_password(password)
    cursor = conn.cursor()
    try:
        cursor.execute(
            "INSERT INTO users (username, email, password_hash, role) VALUES (?, ?, ?, ?)",
            (username, email, password_hash, Role(role).value),
        )
    except sqlite3.IntegrityError:
        raise ValueError("Username or email is already taken")
    conn.commit()
    return get_user(conn, cursor.lastrowid)


def ensure_default_admin(conn) -> None:
    """Create the configured administrator when no admin account exists."""
    cursor = conn.cursor()
    cursor.execute("SELECT COUNT(*) FROM users WHERE role = ?", (Role.ADMIN.value,))
    if cursor.fetchone()[0]:
        return
    admin_cfg = load_config()["admin"]
    create_user(conn, admin_cfg["username"], admin_cfg["email"], admin_cfg["password"], Role.ADMIN)


def list_users(conn) -> List[User]:
    cursor = conn.cursor()
    cursor.execute("SELECT id, username, email, role, created_at FROM users ORDER BY created_at, id")
    return [User.model_validate(dict(row)) for row in cursor.fetchall()]


def set_user_role(conn, user_id: int, role: Role) -> User:
    """Change a user's role; the last remaining admin cannot be demoted."""
    try:
        role = Role(role)
    except ValueError:
        raise InvalidArgumentError(f"Unknown role {role!r}") from None
    with write_transaction(conn):
        user = get_user(conn, user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        if user.role == Role.ADMIN and role != Role.ADMIN:
            cursor = conn.cursor()
            cursor.execute("SELECT COUNT(*) FROM users WHERE role = ?", (Role.ADMIN.value,))
            if cursor.fetchone()[0] <= 1:
                raise PreconditionFailedError("At least one administrator is required")
        conn.execute("UPDATE users SET role = ? WHERE id = ?", (role.value, user_id))
    return get_user(conn, user_id)


def get_current_user(request: Request, conn = Depends(get_db)) -> Optional[User]:
    user_id = read_session_cookie(request.cookies.get(SESSION_COOKIE_NAME), get_session_secret())
    if user_id is None:
        return None
    return get_user(conn, user_id)


def require_login(user: Optional[User] = Depends(get_current_user)) -> User:
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Login required")
    return user


def require_admin(user: User = Depends(require_login)) -> User:
    if user.role != Role.ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admins only")
    return user
