"""
AI draft formatter.

Turns a raw model completion plus a recipient context into a cleaned
subject and HTML body. Account facts come only from the recipient record,
never from the model's text.
"""

import logging
import re
from dataclasses import dataclass

from crm_composer.editor.chips import replace_tokens
from crm_composer.formatter import stages
from crm_composer.formatter.html_template import brand_email_renderer
from crm_composer.formatter.subject import improve_subject
from crm_composer.recipients.models import RecipientContext
from crm_composer.user_config import SenderProfile, get_sender_profile

logger = logging.getLogger(__name__)

MODES = ("standard", "html")
SENDER_NAME_TOKEN = "{{sender.first_name}}"


@dataclass
class GeneratedEmail:
    """Formatted draft: a fragment sequence (standard) or full document (html)."""

    subject: str
    html: str

    def to_dict(self) -> dict[str, str]:
        return {"subject": self.subject, "html": self.html}


def escape_html(text: str) -> str:
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def paragraph_to_html(paragraph: str) -> str:
    """Render one paragraph as ``<p>`` or, for bullet lists, ``<ul>``."""
    if stages.is_bullet_paragraph(paragraph):
        items = []
        lead = []
        for line in paragraph.split("\n"):
            if stages.BULLET_LINE.match(line):
                items.append(f"<li>{escape_html(stages.BULLET_LINE.sub('', line, count=1))}</li>")
            elif not items:
                lead.append(escape_html(line))
        html = f"<p>{' '.join(lead)}</p>" if lead else ""
        return html + f"<ul>{''.join(items)}</ul>"
    return f"<p>{escape_html(paragraph)}</p>"


def token_values(recipient: RecipientContext, sender: SenderProfile) -> dict[str, dict[str, str]]:
    return {
        "contact": recipient.token_values("contact"),
        "account": recipient.token_values("account"),
        "sender": sender.token_values(),
    }


class DraftFormatter:
    """Runs the cleanup stages over a model completion."""

    def format(
        self,
        raw_output: str,
        recipient: RecipientContext | None = None,
        mode: str = "standard",
        *,
        prompt: str = "",
        subject_seed=None,
        sender: SenderProfile | None = None,
        resolve_tokens: bool = False,
    ) -> GeneratedEmail:
        """
        Format a raw completion into ``GeneratedEmail``.

        Args:
            raw_output: Model text; may contain HTML or a ``Subject:`` line.
            recipient: Recipient context (empty context when unknown).
            mode: ``"standard"`` for editor fragments, ``"html"`` for a
                complete brand document.
            prompt: The user's prompt, used to pick a default CTA.
            subject_seed: Seed for the subject template choice.
            sender: Sender profile, defaults to the configured one.
            resolve_tokens: Replace ``{{scope.key}}`` tokens with values
                (send path) instead of leaving them for chips.

        Returns:
            The formatted email.
        """
        if mode not in MODES:
            raise ValueError(f"Unknown mode: {mode}")
        recipient = recipient or RecipientContext()
        sender = sender or get_sender_profile()

        subject, body = stages.extract_subject(raw_output)
        text = stages.normalize_to_plain_text(body)
        text = stages.strip_greetings_and_closings(text)
        paragraphs = stages.normalize_paragraphs(text)

        fact_sentence = stages.build_fact_sentence(stages.recipient_energy(recipient))
        if fact_sentence:
            # Model restatements of the facts paragraph are dropped
            paragraphs = [p for p in paragraphs if not p.lower().startswith("per your account")]

        content, cta = stages.enforce_brevity(paragraphs, fact_sentence, prompt=prompt)
        greeting = stages.synthesize_greeting(recipient)
        subject = improve_subject(subject, recipient, seed=subject_seed)

        if mode == "html":
            html = brand_email_renderer.render(
                subject=subject,
                greeting=greeting,
                blocks=[paragraph_to_html(p) for p in content],
                cta=cta,
            )
        else:
            blocks = [f"<p>{escape_html(greeting)}</p>"]
            blocks.extend(paragraph_to_html(p) for p in content)
            blocks.append(f"<p>{escape_html(cta)}</p>")
            blocks.append(f"<p>Best regards,<br>{SENDER_NAME_TOKEN}</p>")
            html = "".join(blocks)

        if resolve_tokens:
            values = token_values(recipient, sender)
            html = replace_tokens(html, values)
            subject = replace_tokens(subject, values)

        logger.info(
            f"Formatted draft: mode={mode}, paragraphs={len(content)}, "
            f"facts={'yes' if fact_sentence else 'no'}"
        )
        return GeneratedEmail(subject=re.sub(r"\s+", " ", subject).strip(), html=html)


draft_formatter = DraftFormatter()
