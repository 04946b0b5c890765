import logging
from datetime import datetime, timezone
from uuid import UUID, uuid4

from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response, status
from sqlalchemy.orm import Session as DBSession

from app.core.config import settings
from app.core.deps import cookie_scheme, get_current_session, get_current_user
from app.core.security import (
    CSRF_HEADER_NAME,
    TOKEN_COOKIE_NAME,
    create_access_token,
    decode_access_token,
    generate_csrf_token,
    verify_csrf_token,
    verify_password,
)
from app.db.session import get_db
from app.models.models import User, Session as SessionModel
from app.schemas.auth import CsrfTokenResponse, LoginRequest, LoginResponse, UserRead
from app.services.audit import log_audit
from app.services.plugin_registry import PluginRegistry

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def _cookie_opts(request: Request) -> tuple[bool, str]:
    """(secure, samesite) for cookie. Lax + not Secure when not on HTTPS."""
    x_proto = (request.headers.get("x-forwarded-proto") or "").strip().lower()
    on_https = x_proto == "https"
    return (on_https, "none" if on_https else "lax")


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    db: DBSession = Depends(get_db),
):
    user = db.query(User).filter(User.username == body.username).first()
    if not user or not verify_password(body.password, user.password_hash):
        logger.info("login failed for username=%r", body.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
        )
    if user.disabled_at:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account disabled",
        )
    # Every login gets a fresh session row (and so a fresh id and CSRF token).
    sess = SessionModel(
        id=uuid4(),
        user_id=user.id,
        csrf_token=generate_csrf_token(),
        ip_address=_get_client_ip(request),
    )
    db.add(sess)
    user.last_login = datetime.now(timezone.utc)
    log_audit(
        db,
        user_id=user.id,
        action_type="login",
        record_type="session",
        record_id=sess.id,
        ip_address=sess.ip_address,
        user_agent=request.headers.get("user-agent"),
    )
    db.commit()
    db.refresh(user)

    token = create_access_token(user.id, sess.id, user.username)
    cookie_secure, cookie_samesite = _cookie_opts(request)
    response.set_cookie(
        key=TOKEN_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=cookie_secure,
        samesite=cookie_samesite,
        max_age=settings.session_expire_hours * 3600,
        path="/",
    )
    return LoginResponse(user=UserRead.model_validate(user), csrf_token=sess.csrf_token)


@router.post("/logout")
def logout(
    request: Request,
    response: Response,
    db: DBSession = Depends(get_db),
    token: str | None = Depends(cookie_scheme),
    csrf_token: str | None = Header(default=None, alias=CSRF_HEADER_NAME),
):
    """
    End the session: its row and its imported-plugin registry go away.

    A live session must send its X-CSRF-Token. A cookie whose session has
    already ended is simply cleared.
    """
    payload = decode_access_token(token) if token else None
    sess = None
    if payload:
        try:
            sess = db.get(SessionModel, UUID(payload.get("sid") or ""))
        except (ValueError, TypeError):
            sess = None
    if sess is not None:
        if not verify_csrf_token(sess.csrf_token, csrf_token):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid CSRF token",
            )
        PluginRegistry(db, sess.id).clear()
        db.query(SessionModel).filter(SessionModel.id == sess.id).delete(synchronize_session=False)
        db.commit()
    secure, samesite = _cookie_opts(request)
    response.delete_cookie(
        key=TOKEN_COOKIE_NAME, path="/", secure=secure, samesite=samesite
    )
    return {"ok": True}


@router.get("/me", response_model=UserRead)
def me(current_user: User = Depends(get_current_user)):
    return UserRead.model_validate(current_user)


@router.get("/csrf", response_model=CsrfTokenResponse)
def csrf_token(sess: SessionModel = Depends(get_current_session)):
    return CsrfTokenResponse(csrf_token=sess.csrf_token)
