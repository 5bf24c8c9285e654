"""
Tests for compose sessions.

Tests cover:
- Successful generation loading chips into the editor
- Busy rejection while a generation is pending
- Late results dropped after reset/close
- Failure status without touching the editor
- Recipient lookup
- Send-time serialization
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from crm_composer.editor import enter_html_mode
from crm_composer.formatter import DraftFormatter
from crm_composer.services.generation_client import GenerationError
from crm_composer.services.session import (
    STATUS_BUSY,
    STATUS_DONE,
    ComposeSession,
)


@pytest.fixture
def mock_client(mock_draft_output) -> MagicMock:
    client = MagicMock()
    client.generate = AsyncMock(return_value=mock_draft_output)
    return client


@pytest.fixture
def mock_resolver() -> MagicMock:
    resolver = MagicMock()
    resolver.resolve_by_exact_email.return_value = None
    return resolver


@pytest.fixture
def session(mock_client, mock_resolver, sender) -> ComposeSession:
    return ComposeSession(
        client=mock_client,
        formatter=DraftFormatter(),
        resolver=mock_resolver,
        sender=sender,
    )


def blocking_client(output: str):
    """Client whose request waits until the returned event is set."""
    release = asyncio.Event()

    async def generate(payload):
        await release.wait()
        return output

    client = MagicMock()
    client.generate = generate
    return client, release


class TestGenerate:
    """Tests for ComposeSession.generate."""

    def test_loads_formatted_draft_with_chips(self, session, mock_client, dana):
        """Should format the output and render tokens as chips."""
        session.select_recipient(dana)

        assert asyncio.run(session.generate("Write an energy health check email", subject_seed=1)) is True

        assert session.status == STATUS_DONE
        assert session.generating is False
        assert session.subject
        assert "Hi Dana," in session.surface.text
        assert [chip.data_var for chip in session.surface.chips()] == ["sender.first_name"]

        payload = mock_client.generate.call_args[0][0]
        assert payload["recipient"]["firstName"] == "Dana"
        assert payload["to"] == "dana@acme.com"
        assert payload["subjectSeed"] == "1"

    def test_html_mode_loads_source(self, session):
        """Should load the draft as visible source in HTML mode."""
        enter_html_mode(session.surface)

        asyncio.run(session.generate("Say hello"))

        assert "{{sender.first_name}}" in session.surface.plain_text
        assert session.surface.chips() == []

    def test_failure_leaves_editor_untouched(self, session, mock_client):
        """Should report the reason and keep existing content."""
        mock_client.generate.side_effect = GenerationError("quota exceeded")
        session.surface.set_html("<p>Existing draft</p>")

        assert asyncio.run(session.generate("Say hello")) is False

        assert session.status == "Generation failed: quota exceeded"
        assert session.surface.html == "<p>Existing draft</p>"
        assert session.generating is False

    def test_unknown_mode_fails_before_request(self, session, mock_client):
        """Should report an unknown mode without calling the endpoint."""
        assert asyncio.run(session.generate("Say hello", mode="markdown")) is False

        assert session.status == "Generation failed: Unknown mode: markdown"
        assert session.generating is False
        mock_client.generate.assert_not_called()

    def test_second_request_rejected_while_pending(self, mock_draft_output, mock_resolver, sender):
        """Should reject a generate call while another is in flight."""
        async def scenario():
            client, release = blocking_client(mock_draft_output)
            session = ComposeSession(client=client, formatter=DraftFormatter(), resolver=mock_resolver, sender=sender)

            first = asyncio.create_task(session.generate("First"))
            await asyncio.sleep(0)
            second = await session.generate("Second")
            busy_status = session.status
            release.set()
            return session, await first, second, busy_status

        session, first, second, busy_status = asyncio.run(scenario())

        assert second is False
        assert busy_status == STATUS_BUSY
        assert first is True
        assert session.status == STATUS_DONE

    @pytest.mark.parametrize("action", ["reset", "close"])
    def test_late_result_discarded(self, action, mock_draft_output, mock_resolver, sender):
        """Should drop a result that arrives after the window was reset or closed."""

        async def scenario():
            client, release = blocking_client(mock_draft_output)
            session = ComposeSession(client=client, formatter=DraftFormatter(), resolver=mock_resolver, sender=sender)

            pending = asyncio.create_task(session.generate("First"))
            await asyncio.sleep(0)
            getattr(session, action)()
            release.set()
            return session, await pending

        session, inserted = asyncio.run(scenario())

        assert inserted is False
        assert session.surface.html == ""
        assert session.subject == ""
        assert session.status == ""
        assert session.generating is False

    def test_closed_session_ignores_generate(self, session, mock_client):
        session.close()
        assert asyncio.run(session.generate("Hi")) is False
        mock_client.generate.assert_not_called()


class TestRecipient:
    """Tests for recipient selection."""

    def test_lookup_match(self, session, mock_resolver, dana):
        mock_resolver.resolve_by_exact_email.return_value = dana
        assert session.lookup_recipient("dana@acme.com") is dana
        assert session.recipient is dana

    def test_lookup_miss_keeps_email(self, session):
        """Should fall back to an empty context carrying the typed email."""
        context = session.lookup_recipient(" someone@example.com ")
        assert context.email == "someone@example.com"
        assert context.first_name == ""


class TestEditing:
    """Tests for variable insertion and reset."""

    def test_insert_variable_as_chip(self, session):
        session.surface.set_html("<p>Hi </p>")
        session.surface.place_caret(3)

        assert session.insert_variable("contact", "first_name") is True
        assert [chip.data_var for chip in session.surface.chips()] == ["contact.first_name"]

    def test_insert_variable_in_html_mode(self, session):
        """Should type the token text while showing source."""
        session.surface.set_html("<p>Hi </p>")
        enter_html_mode(session.surface)
        session.surface.focus()

        session.insert_variable("account", "name")

        assert session.surface.plain_text.endswith("{{account.name}}")

    def test_reset_clears_formatting(self, session):
        session.formatting.bold = True
        session.subject = "Draft"
        session.reset()
        assert session.formatting.bold is False
        assert session.subject == ""

    def test_reopen(self, session):
        session.close()
        session.reopen()
        assert session.closed is False


class TestPrepareForSend:
    """Tests for ComposeSession.prepare_for_send."""

    def test_chips_become_tokens(self, session, dana):
        session.select_recipient(dana)
        asyncio.run(session.generate("Say hello"))

        email = session.prepare_for_send()

        assert "{{sender.first_name}}</p>" in email.html
        assert "var-chip" not in email.html
        assert email.subject == session.subject

    def test_resolve_values(self, session, dana):
        """Should substitute literal values for tokens."""
        session.select_recipient(dana)
        asyncio.run(session.generate("Say hello"))

        email = session.prepare_for_send(resolve_values=True)

        assert "Lewis</p>" in email.html
        assert "{{" not in email.html

    def test_drops_caret_markers(self, session):
        session.surface.set_html('<p>Hi <span data-caret-marker="1">\u200bthere</span></p>')
        assert session.prepare_for_send().html == "<p>Hi there</p>"

    def test_html_mode_uses_source(self, session):
        session.surface.set_html("<p>Hi {{contact.first_name}}</p>")
        enter_html_mode(session.surface)
        assert session.prepare_for_send().html == "<p>Hi {{contact.first_name}}</p>"
