"""
Role policy: which roles may perform which operation.

This table is the single place where roles are compared. Views name the
operation they perform and ``RolePolicyPermission`` asks ``is_allowed``.
"""

from .models import Role


CATALOG_READ = "catalog.read"
CATALOG_WRITE = "catalog.write"
USERS_READ = "users.read"


POLICY = {
    CATALOG_READ: frozenset({Role.ADMIN, Role.CUSTOMER}),
    CATALOG_WRITE: frozenset({Role.ADMIN}),
    USERS_READ: frozenset({Role.ADMIN}),
}


def is_allowed(role, operation):
    """
    Return True if ``role`` may perform ``operation``.

    ``role`` may be a ``Role`` member or its stored string value.
    Unknown roles and unknown operations are denied.
    """

    allowed_roles = POLICY.get(operation)

    if allowed_roles is None:
        return False

    try:
        role = Role(role)
    except ValueError:
        return False

    return role in allowed_roles
