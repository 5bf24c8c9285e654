"""Formatting of model-drafted emails into subject + HTML."""

from crm_composer.formatter.formatter import (
    DraftFormatter,
    GeneratedEmail,
    draft_formatter,
)

__all__ = [
    "DraftFormatter",
    "GeneratedEmail",
    "draft_formatter",
]
