"""
Interaction collector: time-bounded, single-actor listeners for button presses.

A BoundedListener is a single-result future raced against a timer. The first
accepted interaction resolves it and cancels the timer; if the timer fires
first the future resolves to None. Either way the listener unregisters itself
and later interactions find nothing to resolve.
"""

from __future__ import annotations

import asyncio
import logging
from enum import StrEnum
from typing import Callable, Optional

from app.schemas.chat import ComponentInteraction, PromptRef

logger = logging.getLogger(__name__)

InteractionFilter = Callable[[ComponentInteraction], bool]


class DispatchResult(StrEnum):
    ACCEPTED = "accepted"
    IGNORED = "ignored"  # live listener, but wrong actor or unexpected action
    EXPIRED = "expired"  # no live listener for that prompt


class BoundedListener:
    """Waits for one matching interaction from one actor, or for the deadline."""

    def __init__(
        self,
        prompt: PromptRef,
        actor_id: str,
        accepts: InteractionFilter,
        timeout: float,
        on_done: Optional[Callable[["BoundedListener"], None]] = None,
    ) -> None:
        loop = asyncio.get_running_loop()
        self.prompt = prompt
        self.actor_id = actor_id
        self._accepts = accepts
        self._future: asyncio.Future[Optional[ComponentInteraction]] = (
            loop.create_future()
        )
        self._deadline = loop.time() + timeout
        self._timer = loop.call_later(timeout, self._expire)
        if on_done is not None:
            self._future.add_done_callback(lambda _f: on_done(self))

    @property
    def done(self) -> bool:
        return self._future.done()

    @property
    def deadline(self) -> float:
        """Loop time at which the listener expires."""
        return self._deadline

    def offer(self, interaction: ComponentInteraction) -> DispatchResult:
        if self._future.done():
            return DispatchResult.EXPIRED
        if interaction.actor_id != self.actor_id:
            logger.info(
                "Ignoring interaction from %s on prompt owned by %s",
                interaction.actor_id,
                self.actor_id,
            )
            return DispatchResult.IGNORED
        if not self._accepts(interaction):
            return DispatchResult.IGNORED
        self._timer.cancel()
        self._future.set_result(interaction)
        return DispatchResult.ACCEPTED

    def close(self) -> None:
        """Stop listening without an action; resolves waiters with None."""
        self._timer.cancel()
        if not self._future.done():
            self._future.set_result(None)

    async def wait(self) -> Optional[ComponentInteraction]:
        """The accepted interaction, or None on timeout/close."""
        return await asyncio.shield(self._future)

    def _expire(self) -> None:
        if not self._future.done():
            logger.info(
                "Listener on message %s timed out", self.prompt.message_id
            )
            self._future.set_result(None)


class InteractionCollector:
    """Routes incoming interactions to the live listener of their prompt message."""

    def __init__(self) -> None:
        self._listeners: dict[PromptRef, BoundedListener] = {}

    def listen(
        self,
        prompt: PromptRef,
        actor_id: str,
        accepts: InteractionFilter,
        timeout: float,
    ) -> BoundedListener:
        """Register a listener for a prompt, replacing any finished one."""
        current = self._listeners.get(prompt)
        if current is not None and not current.done:
            raise RuntimeError(f"Prompt {prompt} already has a live listener")
        listener = BoundedListener(
            prompt, actor_id, accepts, timeout, on_done=self._unregister
        )
        self._listeners[prompt] = listener
        return listener

    async def dispatch(self, interaction: ComponentInteraction) -> DispatchResult:
        prompt = PromptRef(chat_id=interaction.chat_id, message_id=interaction.message_id)
        listener = self._listeners.get(prompt)
        if listener is None:
            return DispatchResult.EXPIRED
        return listener.offer(interaction)

    def active_count(self) -> int:
        return sum(1 for listener in self._listeners.values() if not listener.done)

    def close_all(self) -> None:
        for listener in list(self._listeners.values()):
            listener.close()

    def _unregister(self, listener: BoundedListener) -> None:
        if self._listeners.get(listener.prompt) is listener:
            del self._listeners[listener.prompt]
