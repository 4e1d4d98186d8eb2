"""Role-permission resolution and the default permission catalogue."""

from sqlalchemy.orm import Session

from app.repositories import RoleRepository

# Codes checked by the API gates.
MANAGE_ROLES = "MANAGE_ROLES"
LIST_USERS = "LIST_USERS"
CREATE_USER = "CREATE_USER"
UPDATE_USER = "UPDATE_USER"
DELETE_USER = "DELETE_USER"
LIST_PROFILES = "LIST_PROFILES"

# Seeded catalogue: permission code -> (feature code, action code).
DEFAULT_PERMISSIONS: dict[str, tuple[str, str]] = {
    MANAGE_ROLES: ("ROLES", "MANAGE"),
    LIST_USERS: ("USERS", "LIST"),
    CREATE_USER: ("USERS", "CREATE"),
    UPDATE_USER: ("USERS", "UPDATE"),
    DELETE_USER: ("USERS", "DELETE"),
    LIST_PROFILES: ("PROFILES", "LIST"),
}


def resolve_permissions(db: Session, role_id: int | None) -> list[str]:
    """
    Return the permission codes attached to role_id, deduplicated and sorted.

    Always reads the join table; there is no cache, so role edits apply to the
    very next request. A missing role resolves to no permissions.
    """
    if role_id is None:
        return []
    return RoleRepository(db).permission_codes(role_id)
