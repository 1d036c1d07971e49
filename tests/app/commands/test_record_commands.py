"""Tests for the recording commands."""

from datetime import datetime
from unittest.mock import patch

import pytest

from app.commands.record_event_command import (
    RecordClosedCommand,
    RecordInstallCommand,
    RecordSetCommand,
    RecordStatus,
)
from app.constants.events import EventStatus, EventType
from app.exceptions import EventStoreError
from app.schemas.chat import Attachment
from app.utils.formatting import GENERIC_FAILURE, PERMISSION_DENIED
from tests.fixtures.chat_fixtures import make_invocation

PHOTO = Attachment(kind="photo", file_id="photo-1")


@pytest.mark.asyncio
async def test_set_is_recorded_and_finalized(app_state, recording_adapter):
    invocation = make_invocation("set", "Jane Doe | 07/05/24 2:30 pm", attachments=[PHOTO])

    outcome = await RecordSetCommand(app_state).execute(invocation)

    assert outcome.status == RecordStatus.RECORDED
    assert outcome.finalized is True
    event = app_state.event_store.get_by_id(outcome.event_id)
    assert event.type == EventType.SET
    assert event.customer_name == "Jane Doe"
    assert event.set_date == datetime(2024, 7, 5, 14, 30)
    assert event.has_bill is True
    assert event.status == EventStatus.FINALIZED
    assert event.message_id == "5000"
    reply = recording_adapter.sent[-1]
    assert "New Set Recorded" in reply.text
    assert "Yes (Image Attached)" in reply.text
    assert reply.reply_to_message_id == "10"


@pytest.mark.asyncio
async def test_set_with_non_image_attachment_warns(app_state, recording_adapter):
    pdf = Attachment(kind="document", file_id="doc-1", mime_type="application/pdf")
    invocation = make_invocation("set", "Jane Doe", attachments=[pdf])

    outcome = await RecordSetCommand(app_state).execute(invocation)

    assert outcome.event.has_bill is False
    assert len(outcome.warnings) == 1
    assert "not an image" in recording_adapter.sent[-1].text


@pytest.mark.asyncio
async def test_set_with_invalid_date_records_today_with_warning(app_state, recording_adapter):
    outcome = await RecordSetCommand(app_state).execute(make_invocation("set", "Jane Doe | 31/31"))

    assert outcome.status == RecordStatus.RECORDED
    assert "Invalid date format" in recording_adapter.sent[-1].text


@pytest.mark.asyncio
async def test_set_without_customer_replies_usage(app_state, recording_adapter):
    outcome = await RecordSetCommand(app_state).execute(make_invocation("set", ""))

    assert outcome.status == RecordStatus.INVALID
    assert app_state.event_store.list_all() == []
    assert "Usage: /set" in recording_adapter.sent[-1].text


@pytest.mark.asyncio
async def test_set_denied_for_unknown_user(app_state, recording_adapter):
    outcome = await RecordSetCommand(app_state).execute(
        make_invocation("set", "Jane Doe", actor_id="555")
    )

    assert outcome is None
    assert app_state.event_store.list_all() == []
    assert recording_adapter.sent[-1].text == PERMISSION_DENIED


@pytest.mark.asyncio
async def test_closed_resolves_setter_name(app_state, recording_adapter):
    invocation = make_invocation(
        "closed", "Jane Doe | 8.5 | Sam", actor_id="222", actor_name="Cleo Closer",
        mentioned_user_ids=["111"],
    )

    outcome = await RecordClosedCommand(app_state).execute(invocation)

    assert outcome.status == RecordStatus.RECORDED
    assert outcome.event.setter_id == "111"
    assert outcome.event.system_size == 8.5
    text = recording_adapter.sent[-1].text
    assert "Cleo Closer just closed a deal set by Sam Setter" in text
    assert "8.5 kW" in text


@pytest.mark.asyncio
async def test_closed_denied_for_setter(app_state, recording_adapter):
    outcome = await RecordClosedCommand(app_state).execute(
        make_invocation("closed", "Jane Doe | 8.5 | 111", actor_id="111")
    )
    assert outcome is None
    assert recording_adapter.sent[-1].text == PERMISSION_DENIED


@pytest.mark.asyncio
async def test_install_with_unknown_setter_uses_placeholder(app_state, recording_adapter):
    outcome = await RecordInstallCommand(app_state).execute(
        make_invocation("install", "Jane Doe | 404", actor_id="222")
    )

    assert outcome.event.type == EventType.INSTALL_SCHEDULED
    assert "Original Setter: unknown" in recording_adapter.sent[-1].text


@pytest.mark.asyncio
async def test_failed_confirmation_keeps_orphaned_row(app_state, recording_adapter):
    recording_adapter.fail_send = True

    outcome = await RecordSetCommand(app_state).execute(make_invocation("set", "Jane Doe"))

    assert outcome.status == RecordStatus.RECORDED
    assert outcome.finalized is False
    event = app_state.event_store.get_by_id(outcome.event_id)
    assert event.status == EventStatus.ORPHANED
    assert event.message_id is None


@pytest.mark.asyncio
async def test_store_failure_replies_generic_notice(app_state, recording_adapter):
    with patch.object(
        app_state.event_store, "append", side_effect=EventStoreError("append", detail="locked")
    ):
        outcome = await RecordSetCommand(app_state).execute(make_invocation("set", "Jane Doe"))

    assert outcome.status == RecordStatus.FAILED
    assert recording_adapter.sent[-1].text == GENERIC_FAILURE
