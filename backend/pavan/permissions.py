"""
Role and navigation definitions.

Roles are a closed enumeration. Every page of the client is listed in
NAV_ROUTES together with the roles allowed to open it, and every role has
exactly one landing page in DEFAULT_ROUTES.

Backend endpoints enforce the same roles with @require_roles (see
decorators.py); the navigation table only decides what the client shows.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional


class Role(str, enum.Enum):
    ADMIN = "Admin"
    SALES = "Sales"
    INVENTORY = "Inventory"
    CASHIER = "Cashier"

    @classmethod
    def parse(cls, value) -> "Role":
        """Accept a Role or its exact display value; raise ValueError otherwise."""
        if isinstance(value, cls):
            return value
        for role in cls:
            if role.value == value:
                return role
        raise ValueError(f"Unknown role: {value!r}")


LOGIN_ROUTE = "/auth/login"


@dataclass(frozen=True)
class NavRoute:
    path: str
    label: str
    roles: frozenset


# =============================================================================
# ROUTE TABLE
# =============================================================================

NAV_ROUTES = (
    NavRoute("/dashboard", "Dashboard", frozenset(Role)),
    NavRoute("/crm", "CRM", frozenset({Role.ADMIN, Role.SALES})),
    NavRoute("/inventory", "Inventory", frozenset({Role.ADMIN, Role.INVENTORY})),
    NavRoute("/pos", "POS", frozenset({Role.ADMIN, Role.CASHIER})),
    NavRoute("/reports", "Reports", frozenset({Role.ADMIN})),
    NavRoute("/settings", "Settings", frozenset({Role.ADMIN})),
)

DEFAULT_ROUTES = {
    Role.ADMIN: "/dashboard",
    Role.SALES: "/crm",
    Role.INVENTORY: "/inventory",
    Role.CASHIER: "/pos",
}

_ROUTES_BY_PATH = {route.path: route for route in NAV_ROUTES}


def _normalize(path: str) -> str:
    path = (path or "").split("?", 1)[0].strip()
    if len(path) > 1:
        path = path.rstrip("/")
    return path


def is_permitted(role: Role, route: str) -> bool:
    """True iff the route's allowed-role set contains role. Unknown routes are never permitted."""
    entry = _ROUTES_BY_PATH.get(_normalize(route))
    if entry is None:
        return False
    return Role.parse(role) in entry.roles


def default_route(role: Role) -> str:
    return DEFAULT_ROUTES[Role.parse(role)]


def permitted_routes(role: Role) -> list[NavRoute]:
    role = Role.parse(role)
    return [route for route in NAV_ROUTES if role in route.roles]


@dataclass(frozen=True)
class GuardDecision:
    allowed: bool
    redirect_to: Optional[str] = None
    reason: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "allowed": self.allowed,
            "redirect_to": self.redirect_to,
            "reason": self.reason,
        }


def resolve_route(role: Optional[Role], route: str) -> GuardDecision:
    """
    Decide what happens when a session enters a protected route.

    - no authenticated identity -> redirect to the login page
    - authenticated, role lacks the route -> redirect to the role's landing page
    - otherwise allow
    """
    if role is None:
        return GuardDecision(False, LOGIN_ROUTE, "unauthenticated")
    if not is_permitted(role, route):
        return GuardDecision(False, default_route(role), "forbidden")
    return GuardDecision(True)
