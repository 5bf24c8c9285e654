"""
Tests for the end-to-end draft formatter.

Tests cover:
- Standard mode fragment structure
- Account fact injection from the recipient record
- Paragraph and sentence caps with a single CTA
- HTML mode brand documents
- Token resolution for the send path
"""

import pytest

from crm_composer.formatter import DraftFormatter, GeneratedEmail
from crm_composer.formatter.formatter import paragraph_to_html
from crm_composer.recipients.models import AccountInfo, EnergyInfo, RecipientContext


@pytest.fixture
def formatter() -> DraftFormatter:
    return DraftFormatter()


class TestStandardMode:
    """Tests for mode='standard'."""

    def test_formats_typical_draft(self, formatter, mock_draft_output, dana, sender) -> None:
        """Should rebuild greeting, facts, content, CTA and closing."""
        result = formatter.format(mock_draft_output, dana, sender=sender, subject_seed=1)

        assert isinstance(result, GeneratedEmail)
        assert result.html.startswith("<p>Hi Dana,</p>")
        assert "<p>Per your account: Supplier ACME Power | Current rate $0.065/kWh | " in result.html
        assert "Contract end September 2025.</p>" in result.html
        assert result.html.count("Does Tuesday at 10am or Thursday at 2pm") == 1
        assert result.html.endswith("<p>Best regards,<br>{{sender.first_name}}</p>")
        assert "[Your Name]" not in result.html
        assert "2025-09-01" not in result.html

    def test_greeting_on_first_body_line_not_repeated(self, formatter, dana, sender) -> None:
        """Should greet once when the model writes the greeting and first sentence on one line."""
        raw = (
            "Subject: Your renewal\n\n"
            "Hi Dana, rates moved a lot since your renewal.\n\n"
            "Open to a call Tuesday?"
        )

        result = formatter.format(raw, dana, sender=sender)

        assert result.html.startswith("<p>Hi Dana,</p>")
        assert result.html.count("Hi Dana") == 1
        assert "Rates moved a lot since your renewal." in result.html

    def test_generic_subject_is_replaced(self, formatter, mock_draft_output, dana, sender) -> None:
        """Should replace 'Hi Dana' with a personalized subject."""
        result = formatter.format(mock_draft_output, dana, sender=sender, subject_seed=1)
        assert result.subject
        assert not result.subject.lower().startswith("hi")

    def test_subject_dates_are_redacted(self, formatter, sender) -> None:
        """Should show month/year in the subject instead of an exact date."""
        raw = "Subject: Let's meet on 2025-03-14\n\nRates are moving.\n\nOpen to a call Tuesday?"
        result = formatter.format(raw, RecipientContext(first_name="Dana"), sender=sender)
        assert result.subject == "Let's meet on March 2025"

    def test_fact_injection_uses_recipient_record(self, formatter, sender) -> None:
        """Should state facts from the record, formatted, regardless of the model text."""
        recipient = RecipientContext(
            first_name="Dana",
            energy=EnergyInfo(supplier="ACME Power", current_rate=".072", contract_end="2026-01-01"),
        )
        raw = (
            "Subject: Energy contract review\n\n"
            "Per your account: Supplier Someone Else | Current rate $0.999/kWh.\n\n"
            "Rates have shifted this year.\n\nOpen to a call Tuesday?"
        )

        result = formatter.format(raw, recipient, sender=sender)

        assert "Supplier ACME Power" in result.html
        assert "$0.072/kWh" in result.html
        assert "January 2026" in result.html
        assert "Someone Else" not in result.html
        assert "$0.999" not in result.html

    def test_account_energy_used_when_contact_has_none(self, formatter, sender) -> None:
        recipient = RecipientContext(
            first_name="Dana",
            account=AccountInfo(name="Acme", energy=EnergyInfo(supplier="TXU")),
        )
        result = formatter.format("Subject: Rates\n\nRates moved.\n\nFree for a call?", recipient, sender=sender)
        assert "<p>Per your account: Supplier TXU.</p>" in result.html

    def test_caps_long_drafts(self, formatter, sender) -> None:
        """Should keep at most two content paragraphs and one CTA."""
        paragraphs = [
            f"Point {i} one. Point {i} two. Point {i} three. Point {i} four." for i in range(1, 6)
        ]
        paragraphs[3] = "Point 4 one. Point 4 two. Point 4 three. Does Tuesday at 10am work?"
        raw = "Subject: Energy pricing update\n\n" + "\n\n".join(paragraphs)

        result = formatter.format(raw, RecipientContext(first_name="Dana"), sender=sender)

        assert result.html.count("<p>") == 5
        assert result.html.count("Does Tuesday at 10am work?") == 1
        assert "Point 3" not in result.html
        assert "Point 1 three" not in result.html

    def test_html_input_is_flattened(self, formatter, sender) -> None:
        """Should strip model HTML, greeting and closing."""
        raw = "<p>Hi Dana,</p><p>Rates at <b>Acme</b> moved.</p><p>Open to a call Tuesday?</p><p>Best,</p><p>Sam</p>"
        result = formatter.format(raw, RecipientContext(first_name="Dana"), sender=sender)

        assert result.html.count("Hi Dana,") == 1
        assert "<p>Rates at Acme moved.</p>" in result.html
        assert "Sam" not in result.html

    def test_missing_cta_gets_default(self, formatter, sender) -> None:
        result = formatter.format(
            "Rates moved this year.",
            RecipientContext(first_name="Dana"),
            prompt="write a follow up",
            sender=sender,
        )
        assert "<p>Would you be open to a quick call next week?</p>" in result.html

    def test_resolve_tokens_for_send(self, formatter, mock_draft_output, dana, sender) -> None:
        """Should substitute sender tokens when resolving."""
        result = formatter.format(mock_draft_output, dana, sender=sender, resolve_tokens=True)
        assert result.html.endswith("<p>Best regards,<br>Lewis</p>")

    def test_unknown_mode_rejected(self, formatter, sender) -> None:
        with pytest.raises(ValueError):
            formatter.format("text", mode="markdown", sender=sender)


class TestHtmlMode:
    """Tests for mode='html'."""

    def test_renders_brand_document(self, formatter, mock_draft_output, dana, sender) -> None:
        """Should produce a complete styled document."""
        result = formatter.format(mock_draft_output, dana, mode="html", sender=sender)

        assert result.html.startswith("<!DOCTYPE html>")
        assert "Hi Dana," in result.html
        assert "$0.065/kWh" in result.html
        assert "Does Tuesday at 10am or Thursday at 2pm work for a 15-minute call?" in result.html
        assert "Power Choosers" in result.html

    def test_escapes_greeting(self, formatter, sender) -> None:
        result = formatter.format(
            "Rates moved.", RecipientContext(first_name="<Dana>"), mode="html", sender=sender
        )
        assert "Hi &lt;Dana&gt;," in result.html


class TestParagraphToHtml:
    """Tests for paragraph_to_html."""

    def test_plain_paragraph_is_escaped(self) -> None:
        assert paragraph_to_html("Rates < 5 & falling") == "<p>Rates &lt; 5 &amp; falling</p>"

    def test_bullets_become_list(self) -> None:
        html = paragraph_to_html("We review:\n- Supplier\n- Rate")
        assert html == "<p>We review:</p><ul><li>Supplier</li><li>Rate</li></ul>"
