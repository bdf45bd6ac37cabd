"""Staff roles and capability checks.

Roles are a closed enum; callers hand raw role names from the commerce
backend to ``RoleSet.from_names`` and compare sets, never strings.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from enum import Enum

import structlog

from .errors import ValidationError, errmsg

logger = structlog.get_logger()


class Role(str, Enum):
    # System-level roles
    USER = "user"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"
    MANAGER = "manager"
    FINANCE_ADMIN = "finance-admin"
    FINANCE_MANAGER = "finance-manager"
    STORE_MANAGER = "store-manager"
    WAREHOUSE_STAFF = "warehouse-staff"
    # Branch-level roles
    BRANCH_MANAGER = "branch_manager"
    INVENTORY_STAFF = "inventory_staff"
    CASHIER = "cashier"
    STOCK_RECEIVER = "stock_receiver"
    STOCK_REQUESTER = "stock_requester"

    @classmethod
    def parse(cls, name: str) -> Role:
        """Look up a role by its wire name, tolerating case and surrounding space."""
        key = str(name).strip().lower()
        for role in cls:
            if role.value == key:
                return role
        raise ValidationError(f"{errmsg.UNKNOWN_ROLE}: {name!r}")


class RoleSet:
    """Immutable set of roles with capability checks."""

    __slots__ = ("_roles",)

    def __init__(self, roles: Iterable[Role] = ()) -> None:
        self._roles = frozenset(roles)

    @classmethod
    def of(cls, *roles: Role) -> RoleSet:
        return cls(roles)

    @classmethod
    def from_names(cls, names: Iterable[str], strict: bool = False) -> RoleSet:
        """Build a set from role names.

        Unknown names are skipped with a warning unless ``strict`` is set, in
        which case they raise ``ValidationError``.
        """
        roles = []
        for name in names:
            try:
                roles.append(Role.parse(name))
            except ValidationError:
                if strict:
                    raise
                logger.warning("unknown_role_ignored", role=name)
        return cls(roles)

    def contains(self, role: Role) -> bool:
        return role in self._roles

    def intersects(self, other: RoleSet) -> bool:
        return not self._roles.isdisjoint(other._roles)

    def names(self) -> list[str]:
        return sorted(r.value for r in self._roles)

    def __contains__(self, role: object) -> bool:
        return role in self._roles

    def __iter__(self) -> Iterator[Role]:
        return iter(sorted(self._roles, key=lambda r: r.value))

    def __len__(self) -> int:
        return len(self._roles)

    def __bool__(self) -> bool:
        return bool(self._roles)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RoleSet):
            return NotImplemented
        return self._roles == other._roles

    def __hash__(self) -> int:
        return hash(self._roles)

    def __repr__(self) -> str:
        return f"RoleSet({self.names()!r})"


DISCOUNT_ALLOWED_ROLES = RoleSet.of(
    Role.ADMIN,
    Role.SUPERADMIN,
    Role.MANAGER,
    Role.STORE_MANAGER,
    Role.BRANCH_MANAGER,
)
