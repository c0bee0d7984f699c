# Overview: Service-layer operations for user administration (platform and shop level).

"""
User administration.

Two callers:
- SUPER_ADMIN (platform): any user, any shop, any role; the only caller
  allowed to change a user's shop binding.
- Shop ADMIN: users of their own shop only, may assign MANAGER/STAFF,
  may not touch ADMIN/SUPER_ADMIN accounts' role or status, nor their own.

Role decisions go through permissions.is_allowed(ASSIGN_ROLE).
"""

from __future__ import annotations

from flask import current_app, g

from ..errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Shop, User
from ..models.auth import ROLE_ADMIN, ROLE_STAFF, ROLE_SUPER_ADMIN
from ..permissions import Action, is_allowed
from ..validation import USER_POLICY, enforce_rules_user, validate_payload
from . import auth_service
from .security_service import log_security_event


def parse_shop_id(value) -> int | None:
    if value in (None, ""):
        return None
    if isinstance(value, bool):
        raise ValidationError("shop_id must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError("shop_id must be an integer")


def _require_role_assignment(actor: User, target_role: str) -> None:
    if not is_allowed(actor.role, Action.ASSIGN_ROLE, actor.shop_id, actor.shop_id, target_role=target_role):
        log_security_event(
            user_id=actor.id,
            event_type="ROLE_DENIED",
            success=False,
            reason=f"Role {actor.role} may not assign {target_role}",
            shop_id=actor.shop_id,
        )
        raise AuthorizationError(f"Cannot assign role {target_role}")


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def list_users(shop_id: int | None = None, role: str | None = None) -> list[User]:
    query = db.session.query(User)
    if shop_id is not None:
        query = query.filter(User.shop_id == shop_id)
    if role:
        query = query.filter(User.role == role.upper())
    return query.order_by(User.created_at.desc(), User.id.desc()).all()


def _apply_user_patch(user: User, patch: dict) -> None:
    if "email" in patch and patch["email"] != user.email:
        if auth_service.get_user_by_email(patch["email"]):
            raise ConflictError("Email already in use")
    for key, value in patch.items():
        setattr(user, key, value)


# =============================================================================
# PLATFORM (SUPER_ADMIN)
# =============================================================================

def admin_create_user(payload: dict, actor: User) -> User:
    payload = dict(payload or {})
    password = payload.pop("password", None)
    shop_id = parse_shop_id(payload.pop("shop_id", None))

    patch = validate_payload(model=User, payload=payload, policy=USER_POLICY, partial=False)
    enforce_rules_user(patch)
    role = patch.get("role") or ROLE_STAFF
    _require_role_assignment(actor, role)

    if shop_id is not None and not db.session.get(Shop, shop_id):
        raise NotFoundError("Shop not found")

    user = auth_service.build_user(patch["email"], patch["name"], password, role=role, shop_id=shop_id)
    if patch.get("is_active") is False:
        user.is_active = False
    db.session.commit()
    current_app.logger.info("User %s created by platform admin %s", user.id, actor.id)
    return user


def admin_update_user(user_id: int, payload: dict, actor: User) -> User:
    payload = dict(payload or {})
    shop_change = "shop_id" in payload
    shop_id = parse_shop_id(payload.pop("shop_id", None))

    patch = validate_payload(model=User, payload=payload, policy=USER_POLICY, partial=True)
    enforce_rules_user(patch)

    user = get_user(user_id)
    if "role" in patch:
        _require_role_assignment(actor, patch["role"])

    target_shop_id = shop_id if shop_change else user.shop_id
    if patch.get("role", user.role) == ROLE_SUPER_ADMIN:
        target_shop_id = None
    elif target_shop_id is None:
        raise ValidationError("shop_id is required for non-SUPER_ADMIN users")
    elif shop_change and not db.session.get(Shop, target_shop_id):
        raise NotFoundError("Shop not found")

    if user.id == actor.id and patch.get("is_active") is False:
        raise ValidationError("Cannot deactivate your own account")

    _apply_user_patch(user, patch)
    user.shop_id = target_shop_id
    db.session.commit()
    return user


def admin_reset_password(user_id: int, new_password: str) -> User:
    user = get_user(user_id)
    auth_service.change_password(user, new_password)
    return user


def admin_delete_user(user_id: int, actor: User) -> None:
    if user_id == actor.id:
        raise ValidationError("Cannot delete your own account")
    user = get_user(user_id)
    db.session.delete(user)
    db.session.commit()
    current_app.logger.info("User %s deleted by platform admin %s", user_id, actor.id)


# =============================================================================
# SHOP ADMIN
# =============================================================================

def get_shop_user(user_id: int, shop_id: int) -> User:
    """404 when absent, 403 when the user belongs to another shop."""
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    if user.shop_id != shop_id:
        log_security_event(
            user_id=g.current_user.id if getattr(g, "current_user", None) else None,
            event_type="CROSS_TENANT_ACCESS_DENIED",
            success=False,
            reason=f"User {user_id} belongs to shop {user.shop_id}, not {shop_id}",
            shop_id=shop_id,
        )
        raise AuthorizationError("User does not belong to your shop")
    return user


def shop_create_user(payload: dict, actor: User) -> User:
    payload = dict(payload or {})
    password = payload.pop("password", None)

    patch = validate_payload(model=User, payload=payload, policy=USER_POLICY, partial=False)
    enforce_rules_user(patch)
    role = patch.get("role") or ROLE_STAFF
    _require_role_assignment(actor, role)

    user = auth_service.build_user(patch["email"], patch["name"], password, role=role, shop_id=actor.shop_id)
    if patch.get("is_active") is False:
        user.is_active = False
    db.session.commit()
    current_app.logger.info("User %s created in shop %s by %s", user.id, actor.shop_id, actor.id)
    return user


def _guard_protected_target(user: User, actor: User, patch: dict) -> None:
    if user.role == ROLE_SUPER_ADMIN:
        raise AuthorizationError("Cannot modify SUPER_ADMIN users")
    changes_status = ("role" in patch and patch["role"] != user.role) or "is_active" in patch
    if not changes_status:
        return
    if user.id == actor.id:
        raise AuthorizationError("Cannot change your own role or status")
    if user.role == ROLE_ADMIN:
        raise AuthorizationError("Cannot change role or status of an ADMIN user")


def shop_update_user(user_id: int, payload: dict, actor: User) -> User:
    patch = validate_payload(model=User, payload=payload, policy=USER_POLICY, partial=True)
    enforce_rules_user(patch)

    user = get_shop_user(user_id, actor.shop_id)
    _guard_protected_target(user, actor, patch)
    if "role" in patch and patch["role"] != user.role:
        _require_role_assignment(actor, patch["role"])

    _apply_user_patch(user, patch)
    db.session.commit()
    return user


def shop_reset_password(user_id: int, new_password: str, actor: User) -> User:
    user = get_shop_user(user_id, actor.shop_id)
    if user.id != actor.id and user.role in (ROLE_ADMIN, ROLE_SUPER_ADMIN):
        raise AuthorizationError("Cannot reset the password of an ADMIN user")
    auth_service.change_password(user, new_password)
    return user


def shop_delete_user(user_id: int, actor: User) -> None:
    if user_id == actor.id:
        raise ValidationError("Cannot delete your own account")
    user = get_shop_user(user_id, actor.shop_id)
    if user.role in (ROLE_ADMIN, ROLE_SUPER_ADMIN):
        raise AuthorizationError("Cannot delete an ADMIN user")
    db.session.delete(user)
    db.session.commit()
    current_app.logger.info("User %s deleted from shop %s by %s", user_id, actor.shop_id, actor.id)
