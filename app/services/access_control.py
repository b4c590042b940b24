# app/services/access_control.py
"""
Role → capability table and page routing for the gate service.

Every permission question is answered here, once. Routers declare the action
they need (see app/security.require_action); clients ask resolve_page() where
a given user is allowed to go and where they get redirected otherwise.
"""

import enum


class Role(str, enum.Enum):
    ADMIN = "admin"
    USER = "user"
    GATE_AGENT = "gate_agent"
    EXIT_AGENT = "exit_agent"


class Action(str, enum.Enum):
    CREATE_ENTRY = "create_entry"
    REQUEST_RELEASE = "request_release"
    APPROVE_ENTRY = "approve_entry"
    EXIT_ENTRY = "exit_entry"
    VIEW_WAITING = "view_waiting"
    VIEW_INSIDE = "view_inside"
    VIEW_HISTORY = "view_history"
    PURGE_HISTORY = "purge_history"
    PRINT_DOCUMENT = "print_document"
    VIEW_REFERENCE = "view_reference"
    MANAGE_REFERENCE = "manage_reference"
    MANAGE_USERS = "manage_users"
    CHANGE_PASSWORD = "change_password"
    VIEW_DASHBOARD = "view_dashboard"


_OPERATOR_ACTIONS = frozenset({
    Action.CREATE_ENTRY,
    Action.REQUEST_RELEASE,
    Action.APPROVE_ENTRY,
    Action.EXIT_ENTRY,
    Action.VIEW_WAITING,
    Action.VIEW_INSIDE,
    Action.VIEW_HISTORY,
    Action.PRINT_DOCUMENT,
    Action.VIEW_REFERENCE,
    Action.MANAGE_REFERENCE,
    Action.CHANGE_PASSWORD,
})

ROLE_ACTIONS = {
    Role.ADMIN: _OPERATOR_ACTIONS | {Action.MANAGE_USERS, Action.PURGE_HISTORY, Action.VIEW_DASHBOARD},
    Role.USER: _OPERATOR_ACTIONS,
    Role.GATE_AGENT: frozenset({
        Action.CREATE_ENTRY,
        Action.REQUEST_RELEASE,
        Action.VIEW_WAITING,
        Action.VIEW_REFERENCE,
        Action.CHANGE_PASSWORD,
    }),
    Role.EXIT_AGENT: frozenset({Action.EXIT_ENTRY, Action.CHANGE_PASSWORD}),
}

# Roles that may opt in to the dashboard through the user's flag
_DASHBOARD_OPT_IN = {Role.USER}

# Client pages and the capability each one needs
PAGE_ACTIONS = {
    "dashboard": Action.VIEW_DASHBOARD,
    "entry-registration": Action.CREATE_ENTRY,
    "exit-registration": Action.EXIT_ENTRY,
    "awaiting-release": Action.VIEW_WAITING,
    "factory-vehicles": Action.VIEW_INSIDE,
    "access-history": Action.VIEW_HISTORY,
    "reference-data": Action.MANAGE_REFERENCE,
    "user-management": Action.MANAGE_USERS,
    "change-password": Action.CHANGE_PASSWORD,
}

# Pages a role is kept out of even when it holds the page action.
# Gate agents register arrivals from the awaiting-release page only.
_PAGE_DENY = {
    Role.GATE_AGENT: frozenset({"entry-registration"}),
}

_LANDING_PAGES = {
    Role.GATE_AGENT: "awaiting-release",
    Role.EXIT_AGENT: "exit-registration",
}


def parse_role(value) -> Role:
    """Unknown role strings raise ValueError; callers treat that as no access."""
    return value if isinstance(value, Role) else Role(value)


def allowed_actions(user) -> frozenset:
    role = parse_role(user.role)
    actions = ROLE_ACTIONS[role]
    if role in _DASHBOARD_OPT_IN and getattr(user, "can_view_dashboard", False):
        actions = actions | {Action.VIEW_DASHBOARD}
    return actions


def can(user, action: Action) -> bool:
    try:
        return action in allowed_actions(user)
    except ValueError:
        return False


def can_open(user, page: str) -> bool:
    action = PAGE_ACTIONS.get(page)
    if action is None or not can(user, action):
        return False
    return page not in _PAGE_DENY.get(parse_role(user.role), ())


def allowed_pages(user) -> list:
    return [page for page in PAGE_ACTIONS if can_open(user, page)]


def landing_page(user) -> str:
    role = parse_role(user.role)
    if role in _LANDING_PAGES:
        return _LANDING_PAGES[role]
    if can(user, Action.VIEW_DASHBOARD):
        return "dashboard"
    return "entry-registration"


def resolve_page(user, page: str) -> str:
    """Return `page` when the user may open it, otherwise their landing page."""
    if can_open(user, page):
        return page
    return landing_page(user)
