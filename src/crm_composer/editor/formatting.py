"""
Toolbar formatting for the compose editor.

With a selection, a toolbar action styles the selected text only. With a
collapsed caret it records the style for the next typed characters
("sticky" formatting) and never touches text already in the document.
"""

import logging
from dataclasses import dataclass, fields

from crm_composer.editor.styles import InlineStyle, is_valid_color
from crm_composer.editor.surface import RichTextSurface

logger = logging.getLogger(__name__)


@dataclass
class FormattingState:
    """Style intended for the next typed character. One per compose session."""

    color: str | None = None
    background_color: str | None = None
    font_size: str | None = None
    font_family: str | None = None
    bold: bool = False
    italic: bool = False
    underline: bool = False

    def reset(self) -> None:
        for field in fields(self):
            setattr(self, field.name, field.default)

    def as_style(self) -> InlineStyle:
        return InlineStyle(**{field.name: getattr(self, field.name) for field in fields(self)})

    def update_from(self, style: InlineStyle) -> None:
        for field in fields(self):
            setattr(self, field.name, getattr(style, field.name))


STATE_PROPERTIES = tuple(field.name for field in fields(FormattingState))


class FormattingTracker:
    """Applies toolbar actions to a surface and keeps the session's FormattingState."""

    def __init__(self, surface: RichTextSurface, state: FormattingState | None = None):
        self.surface = surface
        self.state = state or FormattingState()

    def set_state(self, prop: str, value) -> None:
        if prop not in STATE_PROPERTIES:
            raise KeyError(f"Unknown formatting property: {prop}")
        setattr(self.state, prop, value)

    def get_state(self, prop: str):
        if prop not in STATE_PROPERTIES:
            raise KeyError(f"Unknown formatting property: {prop}")
        return getattr(self.state, prop)

    def place_caret(self, offset: int) -> None:
        """Move the caret and pick up the style of the text around it."""
        self.surface.place_caret(offset)
        style = self.surface.caret_style()
        if style is not None:
            self.state.update_from(style)

    def type_text(self, text: str) -> bool:
        return self.surface.type_text(text, self.state.as_style())

    def apply_color(self, color: str | None) -> bool:
        """Set the text color; ``None`` removes it for future typing only."""
        return self._apply_paint("color", color)

    def apply_highlight(self, color: str | None) -> bool:
        """Same contract as ``apply_color`` for the background color."""
        return self._apply_paint("background_color", color)

    def toggle_bold(self) -> bool:
        return self._toggle("bold")

    def toggle_italic(self) -> bool:
        return self._toggle("italic")

    def toggle_underline(self) -> bool:
        return self._toggle("underline")

    def set_font_size(self, size: str | None) -> bool:
        return self._apply_value("font_size", size)

    def set_font_family(self, family: str | None) -> bool:
        return self._apply_value("font_family", family)

    def _apply_paint(self, prop: str, color: str | None) -> bool:
        selection = self.surface.get_selection()
        if selection is None:
            logger.debug(f"Ignoring {prop} change: editor not focused")
            return False

        if color is not None and not is_valid_color(color):
            raise ValueError(f"Invalid color: {color!r}")

        if not selection.collapsed:
            setattr(self.state, prop, color)
            if color is None:
                # Removing a color never strips it from existing text
                return self.surface.collapse_selection(to_end=True)
            return self.surface.apply_to_selection({prop: color})

        setattr(self.state, prop, color)
        if color is None:
            current = self.surface.caret_style()
            if current is not None and getattr(current, prop):
                self.surface.exit_styled_span(prop)
        return True

    def _apply_value(self, prop: str, value) -> bool:
        selection = self.surface.get_selection()
        if selection is None:
            return False
        setattr(self.state, prop, value)
        if not selection.collapsed and value:
            return self.surface.apply_to_selection({prop: value})
        return True

    def _toggle(self, prop: str) -> bool:
        selection = self.surface.get_selection()
        if selection is None:
            logger.debug(f"Ignoring {prop} toggle: editor not focused")
            return False

        if selection.collapsed:
            setattr(self.state, prop, not getattr(self.state, prop))
            return True

        # Selected text that is already entirely styled gets unstyled
        styled = self.surface.selection_has(prop)
        setattr(self.state, prop, not styled)
        return self.surface.apply_to_selection({prop: not styled})

