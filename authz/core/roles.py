"""
System role names and their management priority.

Role names follow the ``ROLE_`` prefix convention. The priority order is
fixed and used only by the role-management policy; request authorization
goes through the configurable role hierarchy instead.
"""

from typing import Dict, List

ROLE_SUPER_ADMIN = "ROLE_SUPER_ADMIN"
ROLE_ADMIN = "ROLE_ADMIN"
ROLE_MODERATOR = "ROLE_MODERATOR"
ROLE_USER = "ROLE_USER"

# Highest first
ROLE_PRIORITY: List[str] = [
    ROLE_SUPER_ADMIN,
    ROLE_ADMIN,
    ROLE_MODERATOR,
    ROLE_USER,
]

DEFAULT_ROLE_HIERARCHY: Dict[str, List[str]] = {
    ROLE_SUPER_ADMIN: [ROLE_ADMIN],
    ROLE_ADMIN: [ROLE_MODERATOR],
    ROLE_MODERATOR: [ROLE_USER],
}

ANONYMOUS_USERNAME = "anonymousUser"
