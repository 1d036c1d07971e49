"""Tests for InteractionCollector and BoundedListener."""

import asyncio

import pytest

from app.core.collector import DispatchResult, InteractionCollector
from app.schemas.chat import PromptRef
from tests.fixtures.chat_fixtures import CHAT_ID, make_interaction

PROMPT = PromptRef(chat_id=CHAT_ID, message_id="900")


def accept_all(_interaction):
    return True


@pytest.mark.asyncio
async def test_first_accepted_interaction_wins(collector: InteractionCollector):
    listener = collector.listen(PROMPT, "111", accept_all, timeout=5)

    first = await collector.dispatch(make_interaction("del:confirm:1", "900", interaction_id="a"))
    second = await collector.dispatch(make_interaction("del:confirm:1", "900", interaction_id="b"))

    assert first == DispatchResult.ACCEPTED
    assert second == DispatchResult.EXPIRED
    result = await listener.wait()
    assert result.interaction_id == "a"
    assert collector.active_count() == 0


@pytest.mark.asyncio
async def test_foreign_actor_is_ignored_and_listener_stays_open(collector):
    listener = collector.listen(PROMPT, "111", accept_all, timeout=5)

    result = await collector.dispatch(make_interaction("del:confirm:1", "900", actor_id="222"))

    assert result == DispatchResult.IGNORED
    assert not listener.done
    assert collector.active_count() == 1
    listener.close()


@pytest.mark.asyncio
async def test_rejected_action_is_ignored(collector):
    listener = collector.listen(
        PROMPT, "111", lambda i: i.custom_id.startswith("del:cancel"), timeout=5
    )
    assert await collector.dispatch(make_interaction("del:confirm:1", "900")) == DispatchResult.IGNORED
    assert await collector.dispatch(make_interaction("del:cancel:1", "900")) == DispatchResult.ACCEPTED
    assert (await listener.wait()).custom_id == "del:cancel:1"


@pytest.mark.asyncio
async def test_timeout_resolves_none_and_late_press_expires(collector):
    listener = collector.listen(PROMPT, "111", accept_all, timeout=0.05)

    assert await listener.wait() is None
    assert listener.done
    assert await collector.dispatch(make_interaction("del:confirm:1", "900")) == DispatchResult.EXPIRED


@pytest.mark.asyncio
async def test_ignored_press_does_not_extend_deadline(collector):
    listener = collector.listen(PROMPT, "111", accept_all, timeout=0.2)
    deadline = listener.deadline
    await asyncio.sleep(0.1)
    await collector.dispatch(make_interaction("del:confirm:1", "900", actor_id="222"))
    assert listener.deadline == deadline
    assert await listener.wait() is None


@pytest.mark.asyncio
async def test_unknown_prompt_expires(collector):
    assert await collector.dispatch(make_interaction("del:pick:1", "12345")) == DispatchResult.EXPIRED


@pytest.mark.asyncio
async def test_second_live_listener_on_same_prompt_is_rejected(collector):
    listener = collector.listen(PROMPT, "111", accept_all, timeout=5)
    with pytest.raises(RuntimeError):
        collector.listen(PROMPT, "111", accept_all, timeout=5)
    listener.close()
    # A finished listener can be replaced.
    replacement = collector.listen(PROMPT, "111", accept_all, timeout=5)
    assert collector.active_count() == 1
    replacement.close()


@pytest.mark.asyncio
async def test_close_all_resolves_waiters(collector):
    listener = collector.listen(PROMPT, "111", accept_all, timeout=5)
    collector.close_all()
    assert await listener.wait() is None
    assert collector.active_count() == 0
