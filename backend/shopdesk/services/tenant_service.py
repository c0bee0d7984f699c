"""
Multi-Tenant Service: Tenant Resolution and Ownership Guard

Centralize tenant scoping for reuse across services and routes.
Every tenant route is scoped to one shop, and cross-tenant access is
explicitly denied.

SECURITY INVARIANTS:
1. Every authenticated request has g.shop_id set from the credential
   (None only for SUPER_ADMIN)
2. Read routes may use the SUPER_ADMIN "view as" override (?shopId=)
3. Write routes use ONLY the credential shop; body/query shop ids are ignored
4. Cross-tenant access attempts are logged as security events

USAGE:
    from shopdesk.services.tenant_service import get_effective_shop_id, assert_owned

    shop_id = get_effective_shop_id()          # read routes
    shop_id = require_credential_shop_id()     # write routes
    assert_owned(invoice, shop_id, "Invoice")
"""

from __future__ import annotations

from flask import current_app, g, request

from ..errors import AuthorizationError, NotFoundError, ValidationError
from ..permissions import Action, is_allowed
from .security_service import log_security_event


SHOP_QUERY_PARAM = "shopId"


def resolve_effective_shop_id(
    role: str | None,
    credential_shop_id: int | None,
    query_shop_id: str | int | None,
) -> int | None:
    """
    Compute the shop scope applied to a read request.

    - SUPER_ADMIN with a shopId query value: that value, whether or not the
      shop exists (lookups downstream simply find nothing).
    - Everyone else: the credential's shop id. A shopId sent by a non
      SUPER_ADMIN caller is ignored.
    """
    if query_shop_id not in (None, "") and is_allowed(role, Action.VIEW_AS_SHOP):
        try:
            return int(query_shop_id)
        except (TypeError, ValueError):
            raise ValidationError(f"{SHOP_QUERY_PARAM} must be an integer")
    return credential_shop_id


def get_effective_shop_id() -> int:
    """
    Effective shop for the current read request.

    Raises AuthorizationError when no shop context can be established
    (e.g., SUPER_ADMIN without ?shopId=).
    """
    shop_id = resolve_effective_shop_id(
        getattr(g, "role", None),
        getattr(g, "shop_id", None),
        request.args.get(SHOP_QUERY_PARAM),
    )
    if shop_id is None:
        raise AuthorizationError("Shop context required")
    return shop_id


def require_credential_shop_id() -> int:
    """
    Shop for the current write request: the credential's shop, never a
    client-supplied value.
    """
    shop_id = getattr(g, "shop_id", None)
    if shop_id is None:
        raise AuthorizationError("Shop context required")
    return shop_id


def assert_owned(resource, shop_id: int, label: str, action: str = Action.READ):
    """
    Ownership guard for a single resource.

    Returns the resource when it belongs to shop_id.

    Raises:
        NotFoundError: resource is None
        AuthorizationError: resource belongs to another shop. The response
            carries no resource fields and a security event is recorded.
    """
    if resource is None:
        raise NotFoundError(f"{label} not found")

    if not is_allowed(getattr(g, "role", None), action, resource.shop_id, shop_id):
        user = getattr(g, "current_user", None)
        current_app.logger.warning(
            "Cross-tenant %s denied: user=%s shop=%s target=%s:%s",
            action,
            user.id if user else None,
            shop_id,
            label,
            resource.id,
        )
        log_security_event(
            user_id=user.id if user else None,
            event_type="CROSS_TENANT_ACCESS_DENIED",
            success=False,
            reason=f"{label} {resource.id} belongs to shop {resource.shop_id}, not {shop_id}",
            shop_id=getattr(g, "shop_id", None),
        )
        raise AuthorizationError(f"{label} does not belong to your shop")

    return resource
