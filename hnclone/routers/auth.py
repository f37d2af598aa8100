from fastapi import APIRouter, Depends, Form, HTTPException, Request, Response
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hnclone.config import settings
from hnclone.database import get_db
from hnclone.routers.pages import safe_goto, templates
from hnclone.schemas import LoginRequest, TokenResponse, UserCreate
from hnclone.security import build_session_token
from hnclone.services import user_service

router = APIRouter(tags=["auth"], default_response_class=HTMLResponse)
api_router = APIRouter(prefix="/api/v1/auth", tags=["auth"])

USERNAME_TAKEN = "That username is taken. Please choose another."


def _set_session_cookie(response: Response, user_id: str) -> None:
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        build_session_token(user_id),
        max_age=settings.SESSION_TTL_DAYS * 24 * 60 * 60,
        httponly=True,
        samesite="lax",
        secure=settings.APP_ENV == "production",
    )


def _render_login(request: Request, goto: str, error: str | None = None, status_code: int = 200):
    return templates.TemplateResponse(
        request,
        "login.html",
        {"title": "Login", "me": None, "goto": goto, "error": error, "current_url": "/login"},
        status_code=status_code,
    )


# ---------------------------------------------------------------------------
# Browser login (form posts + session cookie)
# ---------------------------------------------------------------------------

@router.get("/login")
async def login_page(request: Request, goto: str = "news"):
    return _render_login(request, goto)


@router.post("/login")
async def login(
    request: Request,
    acct: str = Form(""),
    pw: str = Form(""),
    goto: str = Form("news"),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.authenticate(db, acct, pw)
    if user is None:
        return _render_login(request, goto, "Bad login.", status_code=401)
    response = RedirectResponse(safe_goto(goto), status_code=303)
    _set_session_cookie(response, user["id"])
    return response


@router.post("/register")
async def register(
    request: Request,
    acct: str = Form(""),
    pw: str = Form(""),
    goto: str = Form("news"),
    db: AsyncSession = Depends(get_db),
):
    try:
        data = UserCreate(id=acct, password=pw)
    except ValidationError:
        return _render_login(
            request,
            goto,
            "Usernames are 2-15 letters, digits, dashes or underscores; "
            "passwords need at least 8 characters.",
            status_code=400,
        )
    try:
        user = await user_service.create_user(db, data)
    except IntegrityError:
        await db.rollback()
        return _render_login(request, goto, USERNAME_TAKEN, status_code=409)

    response = RedirectResponse(safe_goto(goto), status_code=303)
    _set_session_cookie(response, user["id"])
    return response


@router.get("/logout")
async def logout(goto: str = "news"):
    response = RedirectResponse(safe_goto(goto), status_code=303)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return response


# ---------------------------------------------------------------------------
# JSON API for GraphQL clients (bearer tokens)
# ---------------------------------------------------------------------------

@api_router.post("/register", status_code=201, response_model=TokenResponse)
async def api_register(data: UserCreate, response: Response, db: AsyncSession = Depends(get_db)):
    try:
        user = await user_service.create_user(db, data)
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail=USERNAME_TAKEN)
    _set_session_cookie(response, user["id"])
    return TokenResponse(access_token=build_session_token(user["id"]))


@api_router.post("/login", response_model=TokenResponse)
async def api_login(data: LoginRequest, response: Response, db: AsyncSession = Depends(get_db)):
    user = await user_service.authenticate(db, data.id, data.password)
    if user is None:
        raise HTTPException(status_code=401, detail="Bad login.")
    _set_session_cookie(response, user["id"])
    return TokenResponse(access_token=build_session_token(user["id"]))
