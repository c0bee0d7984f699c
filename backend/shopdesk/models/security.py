from __future__ import annotations

from ..extensions import db
from shopdesk.time_utils import to_utc_z


class SecurityEvent(db.Model):
    """
    Security event audit log with tenant context.

    Records denied cross-tenant access, role checks and login failures.
    user_id is a plain column so deleting a user keeps its history.

    IMMUTABLE: Never update or delete. Append-only for audit integrity.
    """
    __tablename__ = "security_events"
    __table_args__ = (
        db.Index("ix_security_events_user_type", "user_id", "event_type"),
        db.Index("ix_security_events_shop_occurred", "shop_id", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Tenant context of the caller (nullable for pre-auth and SUPER_ADMIN events)
    shop_id = db.Column(db.Integer, nullable=True, index=True)
    user_id = db.Column(db.Integer, nullable=True, index=True)

    event_type = db.Column(db.String(64), nullable=False, index=True)  # CROSS_TENANT_ACCESS_DENIED, ROLE_DENIED, LOGIN_FAILED
    resource = db.Column(db.String(255), nullable=True)  # e.g., "/api/v1/invoices/12"
    action = db.Column(db.String(64), nullable=True)     # e.g., "GET"
    # Normalized login email for LOGIN_* events (throttling key)
    identifier = db.Column(db.String(255), nullable=True, index=True)

    success = db.Column(db.Boolean, nullable=False, index=True)
    reason = db.Column(db.Text, nullable=True)

    ip_address = db.Column(db.String(45), nullable=True)
    user_agent = db.Column(db.String(512), nullable=True)

    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "user_id": self.user_id,
            "event_type": self.event_type,
            "resource": self.resource,
            "action": self.action,
            "success": self.success,
            "reason": self.reason,
            "ip_address": self.ip_address,
            "occurred_at": to_utc_z(self.occurred_at),
        }
