"""
Rich text editing core for the composer.

Provides:
- Variable chips ({{scope.key}} tokens as atomic inline elements)
- A rich text surface interface with a BeautifulSoup-backed adapter
- Sticky toolbar formatting
- HTML source mode toggle
"""

from crm_composer.editor.chips import (
    TOKEN_PATTERN,
    VariableChip,
    chips_to_tokens,
    render_chips,
    replace_tokens,
    serialize_chips,
    tokens_to_chips,
)
from crm_composer.editor.formatting import FormattingState, FormattingTracker
from crm_composer.editor.html_mode import enter_html_mode, exit_html_mode, toggle_html_mode
from crm_composer.editor.styles import NEUTRAL_STYLE, InlineStyle
from crm_composer.editor.surface import RichTextSurface, Selection, SoupSurface


def insert_chip(surface: RichTextSurface, scope: str, key: str, label: str | None = None) -> bool:
    """Insert a variable chip at the caret, replacing any selection."""
    return surface.insert_atomic_token(VariableChip(scope=scope, key=key, display_label=label or ""))


__all__ = [
    "FormattingState",
    "FormattingTracker",
    "InlineStyle",
    "NEUTRAL_STYLE",
    "RichTextSurface",
    "Selection",
    "SoupSurface",
    "TOKEN_PATTERN",
    "VariableChip",
    "chips_to_tokens",
    "enter_html_mode",
    "exit_html_mode",
    "insert_chip",
    "render_chips",
    "replace_tokens",
    "serialize_chips",
    "tokens_to_chips",
    "toggle_html_mode",
]
