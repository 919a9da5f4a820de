from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pathlib import Path

from db.database import get_db
from utils.auth import (
    SESSION_COOKIE_NAME,
    authenticate,
    create_session_cookie,
    create_user,
    get_session_minutes,
    get_session_secret,
)
from utils.redirects import safe_next_path

router = APIRouter()
base_dir = Path(__file__).resolve().parent.parent
templates = Jinja2Templates(directory=str(base_dir / "templates"))


def _login_response(user_id: int, next_path: str) -> RedirectResponse:
    duration = get_session_minutes()
    cookie_value = create_session_cookie(user_id, duration, get_session_secret())
    response = RedirectResponse(url=safe_next_path(next_path, "/study/dashboard"), status_code=status.HTTP_303_SEE_OTHER)
    response.set_cookie(
        SESSION_COOKIE_NAME,
        cookie_value,
        max_age=duration * 60,
        httponly=True,
        samesite="lax",
    )
    return response


@router.get("/login", response_class=HTMLResponse)
async def login_form(request: Request, next: str = "/study/dashboard"):
    return templates.TemplateResponse(
        "auth/login.html",
        {"request": request, "user": None, "error": None, "next_path": safe_next_path(next, "/study/dashboard")},
    )


@router.post("/login")
async def login(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
    next_path: str = Form("/study/dashboard"),
    conn = Depends(get_db),
):
    user = authenticate(conn, email, password)
    if user is None:
        return templates.TemplateResponse(
            "auth/login.html",
            {"request": request, "user": None, "error": "Invalid email or password.", "next_path": next_path},
            status_code=status.HTTP_400_BAD_REQUEST,
        )
    return _login_response(user.id, next_path)


@router.post("/logout")
async def logout():
    response = RedirectResponse(url="/", status_code=status.HTTP_303_SEE_OTHER)
    response.delete_cookie(SESSION_COOKIE_NAME)
    return response


@router.get("/register", response_class=HTMLResponse)
async def register_form(request: Request):
    return templates.TemplateResponse("auth/register.html", {"request": request, "user": None, "error": None})


@router.post("/register")
async def register(
    request: Request,
    username: str = Form(...),
    email: str = Form(...),
    password: str = Form(...),
    confirm_password: str = Form(...),
    conn = Depends(get_db),
):
    error = None
    if password != confirm_password:
        error = "Passwords do not match."
    else:
        try:
            user = create_user(conn, username, email, password)
        except ValueError as exc:
            error = str(exc)
    if error:
        return templates.TemplateResponse(
            "auth/register.html",
            {"request": request, "user": None, "error": error},
            status_code=status.HTTP_400_BAD_REQUEST,
        )
    return _login_response(user.id, "/study/dashboard")
