"""
Access Policy: Role and Tenant Capability Rules

All role/tenant decisions go through ``is_allowed`` so routes and services
never compare roles or shop ids ad hoc.

ACTIONS:
- READ / WRITE: resource shop must equal the caller's shop
- VIEW_AS_SHOP: SUPER_ADMIN only (the ``shopId`` read override)
- PLATFORM_ADMIN: SUPER_ADMIN only (/admin routes)
- SHOP_ADMIN: ADMIN bound to a shop, acting on that shop
- MANAGE_SHOP: ADMIN of that shop, or any shop for SUPER_ADMIN
- ASSIGN_ROLE: SUPER_ADMIN assigns any role; ADMIN assigns MANAGER/STAFF

USAGE:
    from shopdesk.permissions import Action, is_allowed

    if not is_allowed(g.role, Action.WRITE, invoice.shop_id, g.shop_id):
        ...
"""

from __future__ import annotations

from .models.auth import ROLE_SUPER_ADMIN, ROLE_ADMIN, ROLE_MANAGER, ROLE_STAFF, VALID_ROLES


class Action:
    READ = "READ"
    WRITE = "WRITE"
    VIEW_AS_SHOP = "VIEW_AS_SHOP"
    PLATFORM_ADMIN = "PLATFORM_ADMIN"
    SHOP_ADMIN = "SHOP_ADMIN"
    MANAGE_SHOP = "MANAGE_SHOP"
    ASSIGN_ROLE = "ASSIGN_ROLE"


# Roles a shop ADMIN may hand out inside their own shop
SHOP_ASSIGNABLE_ROLES = (ROLE_MANAGER, ROLE_STAFF)


def is_allowed(
    role: str | None,
    action: str,
    resource_shop_id: int | None = None,
    caller_shop_id: int | None = None,
    *,
    target_role: str | None = None,
) -> bool:
    """
    Return True if a caller with ``role`` bound to ``caller_shop_id`` may
    perform ``action`` on a resource owned by ``resource_shop_id``.

    Fails closed: unknown roles and unknown actions are denied.
    """
    if role not in VALID_ROLES:
        return False

    if action in (Action.READ, Action.WRITE):
        if caller_shop_id is None or resource_shop_id is None:
            return False
        return resource_shop_id == caller_shop_id

    if action in (Action.VIEW_AS_SHOP, Action.PLATFORM_ADMIN):
        return role == ROLE_SUPER_ADMIN

    if action == Action.SHOP_ADMIN:
        if role != ROLE_ADMIN or caller_shop_id is None:
            return False
        return resource_shop_id is None or resource_shop_id == caller_shop_id

    if action == Action.MANAGE_SHOP:
        if role == ROLE_SUPER_ADMIN:
            return True
        return role == ROLE_ADMIN and caller_shop_id is not None and resource_shop_id == caller_shop_id

    if action == Action.ASSIGN_ROLE:
        if target_role not in VALID_ROLES:
            return False
        if role == ROLE_SUPER_ADMIN:
            return True
        if role == ROLE_ADMIN and caller_shop_id is not None:
            return target_role in SHOP_ASSIGNABLE_ROLES
        return False

    return False
