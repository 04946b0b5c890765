import logging
from datetime import datetime, timezone
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import APIKeyCookie
from sqlalchemy.orm import Session as DBSession

from app.core.security import CSRF_HEADER_NAME, TOKEN_COOKIE_NAME, decode_access_token, verify_csrf_token
from app.db.session import get_db
from app.models.models import Session, User

logger = logging.getLogger(__name__)
cookie_scheme = APIKeyCookie(name=TOKEN_COOKIE_NAME, auto_error=False)


def _uuid_claim(payload: dict, key: str) -> UUID:
    try:
        return UUID(payload.get(key) or "")
    except (ValueError, TypeError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )


def get_current_session(
    db: DBSession = Depends(get_db),
    token: str | None = Depends(cookie_scheme),
) -> Session:
    """Resolve the login session carried by the cookie token."""
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    payload = decode_access_token(token)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired session",
        )
    user_id = _uuid_claim(payload, "sub")
    session_id = _uuid_claim(payload, "sid")
    sess = db.query(Session).filter(Session.id == session_id, Session.user_id == user_id).first()
    if not sess:
        logger.info("auth check: session %s not found (logged out?)", session_id)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session ended",
        )
    if sess.user.disabled_at:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account disabled",
        )
    sess.last_activity = datetime.now(timezone.utc)
    db.commit()
    return sess


def get_current_user(sess: Session = Depends(get_current_session)) -> User:
    return sess.user


def require_csrf(
    sess: Session = Depends(get_current_session),
    csrf_token: str | None = Header(default=None, alias=CSRF_HEADER_NAME),
) -> Session:
    """Reject state-changing requests whose X-CSRF-Token does not match the session."""
    if not verify_csrf_token(sess.csrf_token, csrf_token):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid CSRF token",
        )
    return sess
