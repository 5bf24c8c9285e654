"""
Input sanitization utilities for preventing prompt injection and log leaks.

Recipient notes and call transcripts are free text typed by users (or
transcribed from calls) and end up inside the generation prompt, so they
are filtered before use.
"""

import logging
import re

logger = logging.getLogger(__name__)

# Patterns that indicate potential prompt injection attempts
PROMPT_INJECTION_PATTERNS = [
    # Direct instruction override attempts
    r"ignore\s+(all\s+)?(previous\s+|prior\s+)?instructions?",
    r"disregard\s+(the\s+)?(above|previous|prior)",
    r"forget\s+(all\s+)?(previous\s+|prior\s+)?instructions?",
    r"override\s+(all\s+)?(previous\s+|prior\s+)?instructions?",
    # New instruction injection
    r"new\s+instructions?:",
    r"system\s+prompt:",
    r"developer\s+mode:",
    # Role manipulation
    r"you\s+are\s+now\s+a",
    r"pretend\s+(you\s+are|to\s+be)",
    # Output manipulation
    r"respond\s+with\s+only",
    r"output\s+only",
    r"reply\s+with\s+exactly",
    # Data exfiltration attempts
    r"show\s+(me\s+)?(your\s+)?system\s+prompt",
    r"reveal\s+(your\s+)?configuration",
    # Jailbreak patterns
    r"jailbreak",
    r"bypass\s+(safety|filter|restriction)",
]

# Compiled patterns for efficiency
COMPILED_INJECTION_PATTERNS = [
    re.compile(pattern, re.IGNORECASE) for pattern in PROMPT_INJECTION_PATTERNS
]

# Maximum lengths for recipient free-text fields
MAX_TRANSCRIPT_LENGTH = 1000
MAX_NOTES_LENGTH = 500
MAX_PROMPT_LENGTH = 2000


def sanitize_for_prompt(text: str, max_length: int | None = None) -> str:
    """
    Sanitize text for safe inclusion in LLM prompts.

    This function:
    1. Detects and neutralizes prompt injection patterns
    2. Collapses excessive whitespace
    3. Truncates to max_length if specified

    Args:
        text: The text to sanitize.
        max_length: Optional maximum length to truncate to.

    Returns:
        Sanitized text safe for prompt inclusion.
    """
    if not text:
        return ""

    sanitized = text

    injection_detected = False
    for pattern in COMPILED_INJECTION_PATTERNS:
        if pattern.search(sanitized):
            injection_detected = True
            sanitized = pattern.sub("[FILTERED]", sanitized)

    if injection_detected:
        logger.warning(
            f"Potential prompt injection detected and filtered. "
            f"Original length: {len(text)}"
        )

    sanitized = re.sub(r"\n{3,}", "\n\n", sanitized)
    sanitized = re.sub(r" {3,}", "  ", sanitized)

    if max_length and len(sanitized) > max_length:
        sanitized = sanitized[:max_length] + "... [TRUNCATED]"
        logger.debug(f"Text truncated from {len(text)} to {max_length} characters")

    return sanitized


def redact_sensitive_for_logging(text: str) -> str:
    """
    Redact potentially sensitive information for safe logging.

    Masks email local parts (keeping the domain for debugging) and
    phone numbers.

    Args:
        text: Text to redact.

    Returns:
        Redacted text safe for logging.
    """
    if not text:
        return ""

    redacted = re.sub(
        r"[a-zA-Z0-9._%+-]+@([a-zA-Z0-9.-]+\.[a-zA-Z]{2,})",
        r"[EMAIL]@\1",
        text,
    )

    redacted = re.sub(
        r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b",
        "[PHONE]",
        redacted,
    )

    return redacted
