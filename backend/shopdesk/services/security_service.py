# Overview: Service-layer operations for security events; append-only audit logging.

"""
Security Event Logging with Multi-Tenant Context

Immutable audit trail for denied access and authentication failures.
Denials are logged; grants are not.

event_type examples:
- CROSS_TENANT_ACCESS_DENIED
- ROLE_DENIED
- LOGIN_FAILED
- SHOP_CONTEXT_MISSING
"""

from flask import has_request_context, request

from ..extensions import db
from ..models import SecurityEvent
from shopdesk.time_utils import days_ago, utcnow


def log_security_event(
    user_id: int | None,
    event_type: str,
    success: bool,
    resource: str | None = None,
    action: str | None = None,
    reason: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
    shop_id: int | None = None,
    identifier: str | None = None,
) -> SecurityEvent:
    """
    Log security event to audit trail with tenant context.

    When called inside a request, resource/action/ip/user agent default to
    the current request's values.

    Commits immediately so the event survives a later rollback of the
    caller's transaction.
    """
    if has_request_context():
        resource = resource or request.path
        action = action or request.method
        ip_address = ip_address or request.remote_addr
        user_agent = user_agent or request.headers.get("User-Agent")

    event = SecurityEvent(
        user_id=user_id,
        shop_id=shop_id,
        event_type=event_type,
        resource=resource,
        action=action,
        identifier=identifier,
        success=success,
        reason=reason,
        ip_address=ip_address,
        user_agent=(user_agent or "")[:512] or None,
        occurred_at=utcnow(),
    )

    db.session.add(event)
    db.session.commit()

    return event


def list_security_events(shop_id: int | None = None, event_type: str | None = None, limit: int = 100) -> list[SecurityEvent]:
    query = db.session.query(SecurityEvent)
    if shop_id is not None:
        query = query.filter(SecurityEvent.shop_id == shop_id)
    if event_type:
        query = query.filter(SecurityEvent.event_type == event_type)
    return query.order_by(SecurityEvent.occurred_at.desc(), SecurityEvent.id.desc()).limit(limit).all()


def cleanup_security_events(*, retention_days: int = 90) -> int:
    """Delete security events older than retention_days. Returns rows deleted."""
    cutoff = days_ago(retention_days)
    deleted = db.session.query(SecurityEvent).filter(
        SecurityEvent.occurred_at < cutoff
    ).delete()
    db.session.commit()
    return deleted
