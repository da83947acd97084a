# Authorization policy

from app.modules.authorization.policy import (
    Action,
    Decision,
    Rule,
    RULES,
    MUTABLE_FIELDS,
    authorize,
    ensure_authorized,
    ensure_fields_allowed,
    permitted_fields,
    register_denial_hook,
    roles_for,
)

__all__ = [
    "Action",
    "Decision",
    "Rule",
    "RULES",
    "MUTABLE_FIELDS",
    "authorize",
    "ensure_authorized",
    "ensure_fields_allowed",
    "permitted_fields",
    "register_denial_hook",
    "roles_for",
]
