"""
Compose session: one open compose window.

Holds the session's editor surface, formatting state, recipient and
subject. Everything here is per session; nothing is shared between
compose windows.
"""

import logging

from bs4 import BeautifulSoup

from crm_composer.editor import (
    FormattingState,
    FormattingTracker,
    SoupSurface,
    VariableChip,
    render_chips,
    replace_tokens,
    serialize_chips,
)
from crm_composer.editor.surface import CARET_MARKER_ATTR, ZERO_WIDTH_SPACE
from crm_composer.formatter import DraftFormatter, GeneratedEmail, draft_formatter
from crm_composer.formatter.formatter import MODES, token_values
from crm_composer.recipients import RecipientContext, RecipientResolver, recipient_resolver
from crm_composer.security import redact_sensitive_for_logging
from crm_composer.services.generation_client import (
    GenerationClient,
    GenerationError,
    build_payload,
)
from crm_composer.user_config import SenderProfile, get_sender_profile

logger = logging.getLogger(__name__)

STATUS_GENERATING = "Generating..."
STATUS_DONE = "Draft generated"
STATUS_BUSY = "Generation already in progress"


class ComposeSession:
    """State and actions of a single compose window."""

    def __init__(
        self,
        client: GenerationClient | None = None,
        formatter: DraftFormatter | None = None,
        resolver: RecipientResolver | None = None,
        sender: SenderProfile | None = None,
    ) -> None:
        self.client = client or GenerationClient()
        self.formatter = formatter or draft_formatter
        self.resolver = resolver or recipient_resolver
        self.sender = sender or get_sender_profile()

        self.surface = SoupSurface()
        self.formatting = FormattingState()
        self.tracker = FormattingTracker(self.surface, self.formatting)

        self.recipient = RecipientContext()
        self.subject = ""
        self.status = ""
        self.generating = False
        self.closed = False
        # Bumped on close/reset so late generation results are dropped
        self._epoch = 0

    # ------------------------------------------------------------------
    # Recipient
    # ------------------------------------------------------------------

    def select_recipient(self, recipient: RecipientContext | None) -> RecipientContext:
        self.recipient = recipient or RecipientContext()
        return self.recipient

    def lookup_recipient(self, email: str) -> RecipientContext:
        """Resolve a typed address; unknown addresses keep an empty context."""
        context = self.resolver.resolve_by_exact_email(email)
        if context is None:
            logger.info(f"No CRM match for {redact_sensitive_for_logging(email)}")
            context = RecipientContext(email=(email or "").strip())
        return self.select_recipient(context)

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    async def generate(self, prompt: str, mode: str = "standard", subject_seed=None) -> bool:
        """
        Generate a draft and load it into the editor.

        Only one generation runs per session; a second request while one
        is pending is rejected. On failure the editor is left untouched
        and ``status`` carries the reason.

        Returns:
            True when a draft was inserted.
        """
        if self.closed:
            return False
        if self.generating:
            self.status = STATUS_BUSY
            return False
        if mode not in MODES:
            self.status = f"Generation failed: Unknown mode: {mode}"
            return False

        epoch = self._epoch
        self.generating = True
        self.status = STATUS_GENERATING

        try:
            payload = build_payload(
                prompt=prompt,
                mode=mode,
                recipient=self.recipient,
                to=self.recipient.email,
                subject_seed="" if subject_seed is None else str(subject_seed),
            )
            output = await self.client.generate(payload)

            if epoch != self._epoch:
                logger.info("Discarding generation result for a closed or reset session")
                return False

            email = self.formatter.format(
                output,
                self.recipient,
                mode,
                prompt=prompt,
                subject_seed=subject_seed,
                sender=self.sender,
            )
            self._load_draft(email)
            self.status = STATUS_DONE
            return True
        except GenerationError as e:
            logger.error(f"Generation failed: {e.reason}")
            if epoch == self._epoch:
                self.status = f"Generation failed: {e.reason}"
            return False
        finally:
            if epoch == self._epoch:
                self.generating = False

    def _load_draft(self, email: GeneratedEmail) -> None:
        self.subject = email.subject
        if self.surface.html_mode:
            self.surface.set_plain_text(email.html)
        else:
            self.surface.set_html(render_chips(email.html))

    # ------------------------------------------------------------------
    # Editing helpers
    # ------------------------------------------------------------------

    def insert_variable(self, scope: str, key: str) -> bool:
        """Insert a variable at the caret: a chip, or token text in HTML mode."""
        chip = VariableChip(scope=scope, key=key)
        if self.surface.html_mode:
            return self.surface.type_text(chip.token)
        return self.surface.insert_atomic_token(chip)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Clear the window for a new message."""
        self._epoch += 1
        self.surface.set_html("")
        self.surface.html_mode = False
        self.formatting.reset()
        self.recipient = RecipientContext()
        self.subject = ""
        self.status = ""
        self.generating = False

    def close(self) -> None:
        self.reset()
        self.surface.blur()
        self.closed = True

    def reopen(self) -> None:
        self.reset()
        self.closed = False

    # ------------------------------------------------------------------
    # Send
    # ------------------------------------------------------------------

    def prepare_for_send(self, resolve_values: bool = False) -> GeneratedEmail:
        """
        Serialize the editor content for transport.

        Chips become their ``{{scope.key}}`` tokens, or literal values when
        ``resolve_values`` is set. Caret markers are dropped.
        """
        if self.surface.html_mode:
            html = self.surface.plain_text
        else:
            html = serialize_chips(self.surface.html)

        document = BeautifulSoup(html, "html.parser")
        for marker in document.find_all("span", attrs={CARET_MARKER_ATTR: True}):
            marker.unwrap()
        html = document.decode().replace(ZERO_WIDTH_SPACE, "")

        subject = self.subject
        if resolve_values:
            values = token_values(self.recipient, self.sender)
            html = replace_tokens(html, values)
            subject = replace_tokens(subject, values)

        return GeneratedEmail(subject=subject, html=html)
