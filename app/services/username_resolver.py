"""
Username resolution: opaque user ids -> display names.

Resolvers guarantee an entry for every requested id. A failed lookup is a
degraded result, not an error: it is logged and replaced by UNKNOWN_USER.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Iterable, Optional

from app.constants.events import UNKNOWN_USER

if TYPE_CHECKING:
    from app.adapters.base import BasePlatformAdapter

logger = logging.getLogger(__name__)


class UsernameResolver(ABC):
    """Contract for display-name lookups."""

    placeholder = UNKNOWN_USER

    @abstractmethod
    async def lookup(self, user_id: str) -> Optional[str]:
        """Return a display name, or None when the user cannot be found. May raise."""
        ...

    async def resolve(self, user_ids: Iterable[str]) -> dict[str, str]:
        """Resolve each distinct, non-empty id once; failures map to the placeholder."""
        unique_ids = list(dict.fromkeys(uid for uid in user_ids if uid))
        names: dict[str, str] = {}
        degraded = 0
        for user_id in unique_ids:
            try:
                name = await self.lookup(user_id)
            except Exception as e:
                logger.warning("Username lookup failed for %s: %s", user_id, e)
                name = None
            if not name:
                degraded += 1
                name = self.placeholder
            names[user_id] = name
        if degraded:
            logger.info(
                "Resolved %d usernames, %d fell back to '%s'",
                len(unique_ids),
                degraded,
                self.placeholder,
            )
        return names


class ChatMemberUsernameResolver(UsernameResolver):
    """Looks users up as members of one chat through the platform adapter."""

    def __init__(self, adapter: "BasePlatformAdapter", chat_id: str) -> None:
        self._adapter = adapter
        self._chat_id = chat_id

    async def lookup(self, user_id: str) -> Optional[str]:
        return await self._adapter.get_display_name(self._chat_id, user_id)
