"""
Login Throttling Service

Limits brute-force attempts against /auth/login and /auth/register using
the security_events table as the counter store.

LOGIN:
- Failed attempts are counted per normalized email (SecurityEvent.identifier)
- LOGIN_MAX_FAILED_ATTEMPTS failures within LOGIN_LOCKOUT_MINUTES lock the
  account until LOGIN_LOCKOUT_MINUTES after the latest failure
- A successful login restarts the count

REGISTER:
- At most REGISTER_MAX_ATTEMPTS registrations per client IP within
  REGISTER_WINDOW_MINUTES
"""

from __future__ import annotations

from datetime import timedelta

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import SecurityEvent, User
from .security_service import log_security_event
from shopdesk.time_utils import utcnow


LOGIN_FAILED = "LOGIN_FAILED"
LOGIN_SUCCESS = "LOGIN_SUCCESS"
REGISTER_ATTEMPT = "REGISTER_ATTEMPT"


def _lockout_window() -> timedelta:
    return timedelta(minutes=current_app.config["LOGIN_LOCKOUT_MINUTES"])


def _failure_cutoff(identifier: str):
    """Start of the counting window: window start, or the last successful login if later."""
    cutoff = utcnow() - _lockout_window()
    last_success = (
        db.session.query(func.max(SecurityEvent.occurred_at))
        .filter(
            SecurityEvent.event_type == LOGIN_SUCCESS,
            SecurityEvent.identifier == identifier,
        )
        .scalar()
    )
    if last_success is not None and last_success > cutoff:
        return last_success
    return cutoff


def get_recent_failed_attempts(identifier: str) -> int:
    return (
        db.session.query(SecurityEvent)
        .filter(
            SecurityEvent.event_type == LOGIN_FAILED,
            SecurityEvent.identifier == identifier,
            SecurityEvent.occurred_at > _failure_cutoff(identifier),
        )
        .count()
    )


def is_account_locked(identifier: str) -> tuple[bool, int | None]:
    """
    Returns:
    - (True, seconds_remaining) if locked
    - (False, None) if not locked
    """
    if get_recent_failed_attempts(identifier) < current_app.config["LOGIN_MAX_FAILED_ATTEMPTS"]:
        return False, None

    most_recent = (
        db.session.query(func.max(SecurityEvent.occurred_at))
        .filter(
            SecurityEvent.event_type == LOGIN_FAILED,
            SecurityEvent.identifier == identifier,
        )
        .scalar()
    )
    if most_recent is None:
        return False, None

    lockout_end = most_recent + _lockout_window()
    now = utcnow()
    if now < lockout_end:
        return True, max(1, int((lockout_end - now).total_seconds()))
    return False, None


def record_failed_attempt(identifier: str | None, reason: str = "Invalid credentials") -> int:
    """Record a failed login and return the number of failures now counted."""
    user = db.session.query(User).filter(User.email == identifier).first() if identifier else None
    log_security_event(
        user_id=user.id if user else None,
        event_type=LOGIN_FAILED,
        success=False,
        reason=reason,
        shop_id=user.shop_id if user else None,
        identifier=identifier,
    )
    if not identifier:
        return 0
    return get_recent_failed_attempts(identifier)


def record_successful_login(user: User, identifier: str) -> None:
    log_security_event(
        user_id=user.id,
        event_type=LOGIN_SUCCESS,
        success=True,
        shop_id=user.shop_id,
        identifier=identifier,
    )


def registration_retry_after(ip_address: str | None) -> int | None:
    """Seconds until this IP may register again, or None when under the limit."""
    if not ip_address:
        return None

    window = timedelta(minutes=current_app.config["REGISTER_WINDOW_MINUTES"])
    recent = (
        db.session.query(SecurityEvent.occurred_at)
        .filter(
            SecurityEvent.event_type == REGISTER_ATTEMPT,
            SecurityEvent.ip_address == ip_address,
            SecurityEvent.occurred_at > utcnow() - window,
        )
        .order_by(SecurityEvent.occurred_at.asc())
        .all()
    )
    if len(recent) < current_app.config["REGISTER_MAX_ATTEMPTS"]:
        return None

    oldest = recent[0][0]
    return max(1, int((oldest + window - utcnow()).total_seconds()))


def record_registration_attempt(email) -> None:
    log_security_event(
        user_id=None,
        event_type=REGISTER_ATTEMPT,
        success=True,
        identifier=email.strip().lower()[:255] if isinstance(email, str) else None,
    )
