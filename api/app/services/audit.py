"""Audit logging for admin actions."""
from uuid import UUID
from sqlalchemy.orm import Session

from app.models.models import AuditEvent


def log_audit(
    db: Session,
    *,
    user_id: UUID | None = None,
    action_type: str,
    record_type: str | None = None,
    record_id: UUID | str | None = None,
    after_json: dict | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> None:
    """Record an audit event. The caller commits."""
    ev = AuditEvent(
        user_id=user_id,
        action_type=action_type,
        record_type=record_type,
        record_id=str(record_id) if record_id is not None else None,
        after_json=after_json,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    db.add(ev)
