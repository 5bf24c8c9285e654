"""Draft generation service using LLM."""

import logging

from langchain_core.messages import HumanMessage
from langchain_openai import ChatOpenAI

from crm_composer.config import settings
from crm_composer.prompts.templates import build_system_prompt
from crm_composer.recipients.models import RecipientContext
from crm_composer.security import redact_sensitive_for_logging

logger = logging.getLogger(__name__)


class DraftGenerator:
    """Generates raw email drafts for the compose window using an LLM."""

    def __init__(self) -> None:
        self._llm: ChatOpenAI | None = None

    @property
    def llm(self) -> ChatOpenAI:
        if self._llm is None:
            self._llm = ChatOpenAI(
                model=settings.openai_model,
                api_key=settings.openai_api_key,
                temperature=settings.temperature,
                max_tokens=settings.max_tokens,
            )
        return self._llm

    def generate(
        self,
        prompt: str,
        recipient: RecipientContext | None = None,
        mode: str = "standard",
    ) -> str:
        """
        Generate a raw draft for a compose request.

        Args:
            prompt: The user's request ("Schedule an Energy Health Check").
            recipient: Resolved recipient context, if any.
            mode: "standard" or "html".

        Returns:
            The model's raw completion (subject line + body text).
        """
        recipient = recipient or RecipientContext()
        system_prompt = build_system_prompt(
            prompt=prompt,
            recipient=recipient,
            mode=mode,
            brand_name=settings.brand_name,
        )

        logger.info(
            f"Generating {mode} draft for "
            f"{redact_sensitive_for_logging(recipient.email) or 'unknown recipient'}"
        )

        response = self.llm.invoke([HumanMessage(content=system_prompt)])
        output = response.content.strip() if isinstance(response.content, str) else ""

        logger.debug(f"Draft generated ({len(output)} chars)")
        return output


draft_generator = DraftGenerator()
