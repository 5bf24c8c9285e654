"""
Client for the AI generation endpoint used by compose sessions.

The request goes to the primary base URL first; on a network error or a
non-2xx response it is retried once against the fixed fallback URL.
"""

import logging
from typing import Any

import httpx

from crm_composer.config import settings
from crm_composer.recipients.models import RecipientContext

logger = logging.getLogger(__name__)

GENERATION_ENDPOINT = "/api/gemini-email"


class GenerationError(Exception):
    """Generation failed; ``reason`` is shown to the user."""

    def __init__(self, reason: str, retryable: bool = True) -> None:
        super().__init__(reason)
        self.reason = reason
        self.retryable = retryable


def build_payload(
    prompt: str,
    mode: str = "standard",
    recipient: RecipientContext | None = None,
    to: str = "",
    style: str = "auto",
    subject_style: str = "auto",
    subject_seed: str = "",
) -> dict[str, Any]:
    """Request body in the endpoint's wire shape."""
    return {
        "prompt": prompt,
        "mode": mode,
        "recipient": recipient.to_dict() if recipient else None,
        "to": to,
        "style": style,
        "subjectStyle": subject_style,
        "subjectSeed": subject_seed,
    }


def _error_reason(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        reason = data.get("message") or data.get("error")
        if reason:
            return str(reason)
    return f"HTTP {response.status_code}"


class GenerationClient:
    """Async client for ``POST /api/gemini-email`` with one fallback retry."""

    def __init__(
        self,
        base_url: str | None = None,
        fallback_base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url if base_url is not None else settings.generation_base_url
        self.fallback_base_url = (
            fallback_base_url if fallback_base_url is not None else settings.generation_fallback_base_url
        )
        self.timeout = timeout if timeout is not None else settings.generation_timeout
        self.transport = transport

    def _base_urls(self) -> list[str]:
        urls = [url.rstrip("/") for url in (self.base_url, self.fallback_base_url) if url]
        return list(dict.fromkeys(urls))

    async def generate(self, payload: dict[str, Any]) -> str:
        """
        Request a draft.

        Returns:
            The raw model output.

        Raises:
            GenerationError: If both the primary and fallback requests fail.
        """
        last_error: GenerationError | None = None

        for base_url in self._base_urls():
            try:
                return await self._post(base_url, payload)
            except GenerationError as e:
                logger.warning(f"Generation request to {base_url} failed: {e.reason}")
                last_error = e
                if not e.retryable:
                    break

        raise last_error or GenerationError("No generation endpoint configured", retryable=False)

    async def _post(self, base_url: str, payload: dict[str, Any]) -> str:
        async with httpx.AsyncClient(
            base_url=base_url,
            timeout=self.timeout,
            transport=self.transport,
        ) as client:
            try:
                response = await client.post(GENERATION_ENDPOINT, json=payload)
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise GenerationError(_error_reason(e.response)) from e
            except httpx.RequestError as e:
                raise GenerationError(f"Network error: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise GenerationError("Generation response was not valid JSON", retryable=False) from e

        output = data.get("output") if isinstance(data, dict) else None
        if not isinstance(output, str):
            raise GenerationError("Generation response had no output", retryable=False)
        return output
