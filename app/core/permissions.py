"""
Capability checks.

Commands ask a PermissionChecker once per operation, before touching the
ledger. The role/identity mapping lives entirely in configuration.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import Mapping, Protocol

from app.config import Settings

logger = logging.getLogger(__name__)


class Capability(StrEnum):
    RECORD_SET = "record_set"
    RECORD_CLOSE_OR_INSTALL = "record_close_or_install"
    VIEW_STATS = "view_stats"
    EXPORT_LEDGER = "export_ledger"
    DELETE_EVENTS = "delete_events"


class Role(StrEnum):
    ADMIN = "admin"
    MANAGER = "manager"
    CLOSER = "closer"
    SETTER = "setter"


ROLE_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.ADMIN: frozenset(Capability),
    Role.MANAGER: frozenset(Capability),
    Role.CLOSER: frozenset(
        {
            Capability.RECORD_SET,
            Capability.RECORD_CLOSE_OR_INSTALL,
            Capability.VIEW_STATS,
        }
    ),
    Role.SETTER: frozenset({Capability.RECORD_SET, Capability.VIEW_STATS}),
}


class PermissionChecker(Protocol):
    def allows(self, actor_id: str, capability: Capability) -> bool: ...


class RolePermissionChecker:
    """Grants capabilities from configured user-id lists per role."""

    def __init__(
        self,
        role_user_ids: Mapping[str, frozenset[str]],
        export_allow_list: frozenset[str] = frozenset(),
        enabled: bool = True,
    ) -> None:
        self._roles_by_user: dict[str, set[Role]] = {}
        for role_name, user_ids in role_user_ids.items():
            role = Role(role_name)
            for user_id in user_ids:
                self._roles_by_user.setdefault(user_id, set()).add(role)
        self._export_allow_list = export_allow_list
        self._enabled = enabled

    @classmethod
    def from_settings(cls, settings: Settings) -> "RolePermissionChecker":
        return cls(
            settings.role_user_ids,
            export_allow_list=settings.export_allow_list,
            enabled=settings.permissions_enabled,
        )

    def roles_for(self, actor_id: str) -> frozenset[Role]:
        return frozenset(self._roles_by_user.get(actor_id, ()))

    def allows(self, actor_id: str, capability: Capability) -> bool:
        if not self._enabled:
            return True
        if capability == Capability.EXPORT_LEDGER and actor_id in self._export_allow_list:
            return True
        allowed = any(
            capability in ROLE_CAPABILITIES[role] for role in self.roles_for(actor_id)
        )
        if not allowed:
            logger.info("Denied %s for user %s", capability, actor_id)
        return allowed
