"""HULLWORKS MES — FastAPI dependencies (auth, DB, role gates)."""
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status

from hullworks.db.session import get_db

# ── Permission keys ─────────────────────────────────────────────────────────
# Route files use these constants, never raw strings.
PERM_ADMIN_MANAGE = "admin:manage"
PERM_WORK_ORDERS_WRITE = "work_orders:write"
PERM_WORK_ORDERS_READ = "work_orders:read"
PERM_ROUTING_WRITE = "routing:write"
PERM_STAGES_LOG = "stages:log"
PERM_DASHBOARD_READ = "dashboard:read"
PERM_PRODUCT_CONFIG_READ = "product_config:read"

# ── Role → permissions matrix ────────────────────────────────────────────────
_ADMIN_PERMS = {
    PERM_ADMIN_MANAGE,
    PERM_WORK_ORDERS_WRITE, PERM_WORK_ORDERS_READ,
    PERM_ROUTING_WRITE,
    PERM_STAGES_LOG,
    PERM_DASHBOARD_READ,
    PERM_PRODUCT_CONFIG_READ,
}

_SUPERVISOR_PERMS = {
    PERM_WORK_ORDERS_WRITE, PERM_WORK_ORDERS_READ,
    PERM_ROUTING_WRITE,
    PERM_STAGES_LOG,
    PERM_DASHBOARD_READ,
    PERM_PRODUCT_CONFIG_READ,
}

_OPERATOR_PERMS = {
    PERM_WORK_ORDERS_READ,
    PERM_STAGES_LOG,
}

PERMISSION_MATRIX: dict[str, set[str]] = {
    "ADMIN": _ADMIN_PERMS,
    "SUPERVISOR": _SUPERVISOR_PERMS,
    "OPERATOR": _OPERATOR_PERMS,
}


class CurrentUser:
    """User identity from the JWT — set on request.state by middleware."""

    def __init__(
        self,
        id: UUID,
        email: str,
        role: str,
        department_id: UUID | None = None,
    ):
        self.id = id
        self.email = email
        self.role = role
        self.department_id = department_id

    @property
    def is_admin(self) -> bool:
        return self.role == "ADMIN"

    def has_permission(self, permission: str) -> bool:
        return permission in PERMISSION_MATRIX.get(self.role, set())


async def require_auth(request: Request) -> CurrentUser:
    """Require authenticated user. Raise 401 if not logged in."""
    user = getattr(request.state, "user", None)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return user


def require_permission(permission: str):
    """Dependency factory: require specific role permission."""

    async def _check(user: CurrentUser = Depends(require_auth)) -> CurrentUser:
        if not user.has_permission(permission):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Permission denied: '{permission}' required. Your role: {user.role}",
            )
        return user

    return _check


require_admin = require_permission(PERM_ADMIN_MANAGE)
require_supervisor = require_permission(PERM_WORK_ORDERS_WRITE)
require_routing = require_permission(PERM_ROUTING_WRITE)
require_dashboard = require_permission(PERM_DASHBOARD_READ)
require_product_config_reader = require_permission(PERM_PRODUCT_CONFIG_READ)
