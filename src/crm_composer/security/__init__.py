"""
Security utilities for the composer.

Provides:
- LLM prompt sanitization
- Log redaction helpers
"""

from crm_composer.security.sanitization import (
    redact_sensitive_for_logging,
    sanitize_for_prompt,
)

__all__ = [
    "redact_sensitive_for_logging",
    "sanitize_for_prompt",
]
