"""
Interactive, auditable deletion of ledger events.

One DeletionWorkflow instance is one run of the state machine for one
invoking actor:

    IDLE -> LISTING -> AWAITING_SELECTION -> AWAITING_CONFIRMATION
         -> DELETED | CANCELLED | TIMED_OUT

Direct-by-id runs skip straight from IDLE to AWAITING_CONFIRMATION. Runs that
end before a decision (unknown id, empty ledger, store or chat failure) finish in
ABORTED. Terminal states are final; run() may be awaited once.

Only the invoking actor's button presses are accepted. Each prompt waits a
bounded time (60s for the list, 30s for the confirmation) and the first
accepted press wins, so a double click cannot delete twice.
"""

from __future__ import annotations

import asyncio
import logging
from enum import StrEnum
from typing import List, Optional, Protocol

from pydantic import BaseModel

from app.core.collector import InteractionCollector
from app.exceptions import EventStoreError
from app.schemas.chat import ComponentInteraction, PromptRef
from app.schemas.event import EventRead
from app.schemas.export import ExportResult
from app.services.event_store import EventStore
from app.services.export_service import ExportGenerator
from app.services.username_resolver import UsernameResolver

logger = logging.getLogger(__name__)

CUSTOM_ID_PREFIX = "del"


class WorkflowState(StrEnum):
    IDLE = "idle"
    LISTING = "listing"
    AWAITING_SELECTION = "awaiting_selection"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    DELETED = "deleted"
    CANCELLED = "cancelled"
    TIMED_OUT = "timed_out"
    ABORTED = "aborted"


TERMINAL_STATES = frozenset(
    {
        WorkflowState.DELETED,
        WorkflowState.CANCELLED,
        WorkflowState.TIMED_OUT,
        WorkflowState.ABORTED,
    }
)


class DeleteAction(StrEnum):
    PICK = "pick"
    CONFIRM = "confirm"
    CANCEL = "cancel"
    EXPORT = "export"


class OutcomeKind(StrEnum):
    DELETED = "deleted"
    CANCELLED = "cancelled"
    TIMED_OUT = "timed_out"
    NOT_FOUND = "not_found"
    EMPTY = "empty"
    FAILED = "failed"


class DeletionOutcome(BaseModel):
    kind: OutcomeKind
    event_id: Optional[int] = None
    event: Optional[EventRead] = None


def build_custom_id(action: DeleteAction, event_id: Optional[int] = None) -> str:
    """Encode an action (and target) into a button id, e.g. 'del:confirm:42'."""
    if event_id is None:
        return f"{CUSTOM_ID_PREFIX}:{action.value}"
    return f"{CUSTOM_ID_PREFIX}:{action.value}:{event_id}"


def parse_custom_id(custom_id: str) -> Optional[tuple[DeleteAction, Optional[int]]]:
    """Inverse of build_custom_id. None for ids this workflow did not issue."""
    parts = custom_id.split(":")
    if len(parts) not in (2, 3) or parts[0] != CUSTOM_ID_PREFIX:
        return None
    try:
        action = DeleteAction(parts[1])
        event_id = int(parts[2]) if len(parts) == 3 else None
    except ValueError:
        return None
    return action, event_id


class DeletionRenderer(Protocol):
    """Presentation side of the workflow; implemented per chat platform."""

    async def show_listing(
        self,
        events: List[EventRead],
        usernames: dict[str, str],
        prompt: Optional[PromptRef] = None,
        export_enabled: bool = True,
    ) -> PromptRef: ...

    async def show_confirmation(
        self, event: EventRead, prompt: Optional[PromptRef]
    ) -> PromptRef: ...

    async def show_outcome(
        self, outcome: DeletionOutcome, prompt: Optional[PromptRef]
    ) -> None: ...

    async def acknowledge(
        self, interaction: ComponentInteraction, text: Optional[str] = None
    ) -> None: ...

    async def deliver_export(self, result: Optional[ExportResult]) -> None: ...


class DeletionWorkflow:
    """A single run of the deletion state machine."""

    def __init__(
        self,
        store: EventStore,
        exporter: ExportGenerator,
        resolver: UsernameResolver,
        collector: InteractionCollector,
        renderer: DeletionRenderer,
        *,
        actor_id: str,
        list_limit: int = 10,
        list_timeout: float = 60.0,
        confirm_timeout: float = 30.0,
    ) -> None:
        self._store = store
        self._exporter = exporter
        self._resolver = resolver
        self._collector = collector
        self._renderer = renderer
        self.actor_id = actor_id
        self._list_limit = list_limit
        self._list_timeout = list_timeout
        self._confirm_timeout = confirm_timeout
        self._state = WorkflowState.IDLE
        self.history: List[WorkflowState] = [WorkflowState.IDLE]
        self._started = False
        self._last_prompt: Optional[PromptRef] = None
        self._target_id: Optional[int] = None

    @property
    def state(self) -> WorkflowState:
        return self._state

    async def run(self, event_id: Optional[int] = None) -> DeletionOutcome:
        """
        Run to a terminal state.

        With an event_id the listing is skipped; without one the most recent
        events are listed for the actor to pick from. Any failure along the
        way ends the run in ABORTED with a FAILED outcome.
        """
        if self._started:
            raise RuntimeError("DeletionWorkflow instances run only once")
        self._started = True
        self._target_id = event_id
        try:
            if event_id is not None:
                return await self._confirm(event_id, None)
            return await self._list_and_select()
        except EventStoreError as e:
            logger.error(
                "Deletion workflow for actor %s failed during %s (event_id=%s): %s",
                self.actor_id,
                e.operation,
                e.event_id,
                e,
            )
            outcome = DeletionOutcome(kind=OutcomeKind.FAILED, event_id=e.event_id)
            return await self._finish(WorkflowState.ABORTED, outcome, self._last_prompt)
        except Exception:
            logger.exception(
                "Deletion workflow for actor %s failed in %s (event_id=%s)",
                self.actor_id,
                self._state,
                self._target_id,
            )
            outcome = DeletionOutcome(kind=OutcomeKind.FAILED, event_id=self._target_id)
            return await self._finish(WorkflowState.ABORTED, outcome, self._last_prompt)

    async def _list_and_select(self) -> DeletionOutcome:
        self._transition(WorkflowState.LISTING)
        events = self._store.list_recent(self._list_limit)
        if not events:
            outcome = DeletionOutcome(kind=OutcomeKind.EMPTY)
            return await self._finish(WorkflowState.ABORTED, outcome, None)

        usernames = await self._resolver.resolve(event.actor_id for event in events)
        prompt = await self._renderer.show_listing(events, usernames)
        self._last_prompt = prompt
        self._transition(WorkflowState.AWAITING_SELECTION)

        listed_ids = {event.id for event in events}
        export_used = False
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._list_timeout

        def accepts(interaction: ComponentInteraction) -> bool:
            parsed = parse_custom_id(interaction.custom_id)
            if parsed is None:
                return False
            action, target = parsed
            if action == DeleteAction.PICK:
                return target in listed_ids
            return action == DeleteAction.EXPORT and not export_used

        listener = self._collector.listen(
            prompt, self.actor_id, accepts, self._list_timeout
        )
        try:
            while True:
                interaction = await listener.wait()
                if interaction is None:
                    return await self._time_out(prompt, None)
                action, target = parse_custom_id(interaction.custom_id)
                if action != DeleteAction.EXPORT:
                    break

                export_used = True
                # Listen again before exporting so presses during the export land.
                listener = self._collector.listen(
                    prompt, self.actor_id, accepts, max(deadline - loop.time(), 0.0)
                )
                await self._acknowledge(interaction, "Generating export...")
                await self._export()
                await self._renderer.show_listing(
                    events, usernames, prompt=prompt, export_enabled=False
                )
        finally:
            listener.close()

        logger.info("Actor %s picked event id=%s", self.actor_id, target)
        await self._acknowledge(interaction)
        return await self._confirm(target, prompt)

    async def _export(self) -> None:
        """Out-of-band export; never changes workflow state."""
        try:
            result = await self._exporter.generate()
        except EventStoreError as e:
            logger.error("Export from deletion list failed: %s", e)
            result = None
        await self._renderer.deliver_export(result)

    async def _confirm(
        self, event_id: int, prompt: Optional[PromptRef]
    ) -> DeletionOutcome:
        self._target_id = event_id
        event = self._store.get_by_id(event_id)
        if event is None:
            logger.warning("Event id=%s not found for deletion", event_id)
            outcome = DeletionOutcome(kind=OutcomeKind.NOT_FOUND, event_id=event_id)
            return await self._finish(WorkflowState.ABORTED, outcome, prompt)

        prompt = await self._renderer.show_confirmation(event, prompt)
        self._last_prompt = prompt
        self._transition(WorkflowState.AWAITING_CONFIRMATION)

        def accepts(interaction: ComponentInteraction) -> bool:
            parsed = parse_custom_id(interaction.custom_id)
            return parsed is not None and parsed[1] == event_id and parsed[0] in (
                DeleteAction.CONFIRM,
                DeleteAction.CANCEL,
            )

        listener = self._collector.listen(
            prompt, self.actor_id, accepts, self._confirm_timeout
        )
        try:
            interaction = await listener.wait()
        finally:
            listener.close()
        if interaction is None:
            return await self._time_out(prompt, event)

        action, _ = parse_custom_id(interaction.custom_id)
        if action == DeleteAction.CANCEL:
            logger.info("Deletion of event id=%s cancelled by %s", event_id, self.actor_id)
            await self._acknowledge(interaction)
            outcome = DeletionOutcome(
                kind=OutcomeKind.CANCELLED, event_id=event_id, event=event
            )
            return await self._finish(WorkflowState.CANCELLED, outcome, prompt)

        logger.info("Deletion of event id=%s confirmed by %s", event_id, self.actor_id)
        deleted = self._store.delete(event_id)
        await self._acknowledge(interaction)
        if not deleted:
            # Another workflow confirmed first.
            outcome = DeletionOutcome(kind=OutcomeKind.NOT_FOUND, event_id=event_id)
            return await self._finish(WorkflowState.ABORTED, outcome, prompt)
        outcome = DeletionOutcome(kind=OutcomeKind.DELETED, event_id=event_id, event=event)
        return await self._finish(WorkflowState.DELETED, outcome, prompt)

    async def _time_out(
        self, prompt: PromptRef, event: Optional[EventRead]
    ) -> DeletionOutcome:
        logger.info(
            "Deletion workflow for actor %s timed out in %s", self.actor_id, self._state
        )
        outcome = DeletionOutcome(
            kind=OutcomeKind.TIMED_OUT,
            event_id=event.id if event else None,
            event=event,
        )
        return await self._finish(WorkflowState.TIMED_OUT, outcome, prompt)

    async def _finish(
        self,
        final_state: WorkflowState,
        outcome: DeletionOutcome,
        prompt: Optional[PromptRef],
    ) -> DeletionOutcome:
        """Enter a terminal state, then show the outcome if the platform allows."""
        self._transition(final_state)
        try:
            await self._renderer.show_outcome(outcome, prompt)
        except Exception:
            logger.exception(
                "Could not show %s outcome for event id=%s", outcome.kind, outcome.event_id
            )
        return outcome

    async def _acknowledge(
        self, interaction: ComponentInteraction, text: Optional[str] = None
    ) -> None:
        try:
            await self._renderer.acknowledge(interaction, text)
        except Exception:
            logger.warning(
                "Could not acknowledge interaction %s",
                interaction.interaction_id,
                exc_info=True,
            )

    def _transition(self, new_state: WorkflowState) -> None:
        if self._state in TERMINAL_STATES:
            raise RuntimeError(
                f"Workflow already finished in {self._state}, cannot enter {new_state}"
            )
        logger.debug("Deletion workflow %s -> %s", self._state, new_state)
        self._state = new_state
        self.history.append(new_state)
