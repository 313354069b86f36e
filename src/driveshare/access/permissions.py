"""Permission levels for grants, links, and resolved access."""

from __future__ import annotations

from enum import Enum

from .exceptions import InvalidInputError, NotOwnerError


class Permission(str, Enum):
    """Permission level held on a resource.

    ``VIEW`` and ``EDIT`` are grantable; ``OWNER`` is only ever resolved.
    """

    VIEW = "view"
    EDIT = "edit"
    OWNER = "owner"

    @property
    def rank(self) -> int:
        return _RANK[self]

    def satisfies(self, required: Permission | str) -> bool:
        """Return True if this level implies *required* (owner ⊃ edit ⊃ view)."""
        return self.rank >= _RANK[Permission(required)]


_RANK = {Permission.VIEW: 1, Permission.EDIT: 2, Permission.OWNER: 3}

GRANTABLE = (Permission.VIEW.value, Permission.EDIT.value)


def parse_grantable(permission: str) -> Permission:
    """Validate a grant/link permission string and return the enum member."""
    if permission not in GRANTABLE:
        raise InvalidInputError(
            f"Invalid permission: {permission!r}. Must be 'view' or 'edit'."
        )
    return Permission(permission)


def require_owner(actor_id: int, owner_id: int, action: str) -> None:
    """Raise ``NotOwnerError`` unless *actor_id* owns the resource."""
    if actor_id != owner_id:
        raise NotOwnerError(f"Only the owner can {action}")
