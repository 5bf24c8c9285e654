"""
Rich text surface: the editing operations the composer needs from a UI.

``RichTextSurface`` is the toolkit-facing interface. ``SoupSurface`` is the
reference adapter: it keeps the document as a BeautifulSoup tree and models
the caret and selection the way a browser ``contenteditable`` does.

Positions are exposed as flat offsets over the visible document, where every
character of text counts as one unit and every chip counts as exactly one
unit, so the caret can never land inside a chip.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from bs4 import BeautifulSoup, NavigableString, Tag

from crm_composer.editor.chips import (
    SPACER,
    VariableChip,
    has_spacer,
    is_chip,
    next_text_node,
)
from crm_composer.editor.styles import (
    INLINE_STYLE_TAGS,
    NEUTRAL_STYLE,
    InlineStyle,
    declarations_to_css,
    declared_by,
    effective_style,
)

logger = logging.getLogger(__name__)

ZERO_WIDTH_SPACE = "\u200b"
CARET_MARKER_ATTR = "data-caret-marker"


@dataclass
class Position:
    """A caret position inside a text node."""

    node: NavigableString
    offset: int


@dataclass(frozen=True)
class Selection:
    """Current selection in flat offsets."""

    start: int
    end: int
    text: str = ""

    @property
    def collapsed(self) -> bool:
        return self.start == self.end


class RichTextSurface(ABC):
    """Editing operations the compose core needs from a UI toolkit."""

    html_mode: bool = False
    # Custom chip labels by ``scope.key``, kept while the source is shown as HTML
    chip_labels: dict[str, str]

    @property
    @abstractmethod
    def html(self) -> str:
        """Current document as HTML."""
        pass

    @abstractmethod
    def set_html(self, html: str) -> None:
        """Replace the document with rendered HTML."""
        pass

    @abstractmethod
    def place_caret(self, offset: int) -> None:
        """Collapse the selection at a flat offset."""
        pass

    @abstractmethod
    def get_selection(self) -> Selection | None:
        """Current selection, or None when the surface has no caret."""
        pass

    @abstractmethod
    def replace_selection(self, html: str) -> bool:
        """Replace the selection (or insert at the caret) with an HTML fragment."""
        pass

    @abstractmethod
    def insert_atomic_token(self, chip: VariableChip) -> bool:
        """Insert a chip at the caret, consuming any selection."""
        pass

    @abstractmethod
    def set_caret_style(self, style: InlineStyle) -> bool:
        """Make characters typed at the caret use ``style``."""
        pass

    @abstractmethod
    def caret_style(self) -> InlineStyle | None:
        """Effective style at the caret."""
        pass

    @abstractmethod
    def apply_to_selection(self, declarations: dict) -> bool:
        """Style the selected text only."""
        pass

    @abstractmethod
    def collapse_selection(self, to_end: bool = True) -> bool:
        pass

    @abstractmethod
    def exit_styled_span(self, prop: str) -> bool:
        """Move the caret out of the span declaring ``prop`` and drop a neutral marker."""
        pass

    @abstractmethod
    def type_text(self, text: str, style: InlineStyle | None = None) -> bool:
        """Insert typed characters at the caret."""
        pass

    def selection_has(self, prop: str) -> bool:
        """Whether all selected text carries a truthy ``prop``."""
        return False


class SoupSurface(RichTextSurface):
    """
    In-memory rich text surface backed by a BeautifulSoup tree.

    The caret lives in a text node. Chips are atomic: flat offsets count
    them as a single unit and caret placement skips over a chip's
    synthetic spacer, so typed text never merges into a chip.
    """

    def __init__(self, html: str = "") -> None:
        self.document = BeautifulSoup("", "html.parser")
        self.focused = False
        self.html_mode = False
        self.chip_labels = {}
        self._anchor: Position | None = None
        self._focus: Position | None = None
        self.set_html(html)

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    @property
    def html(self) -> str:
        return self.document.decode()

    def set_html(self, html: str) -> None:
        self.document = BeautifulSoup(html or "", "html.parser")
        self._reset_caret()

    def set_plain_text(self, text: str) -> None:
        """Replace the document with a single uninterpreted text node."""
        self.document = BeautifulSoup("", "html.parser")
        self.document.append(NavigableString(text or ""))
        self._reset_caret()

    @property
    def plain_text(self) -> str:
        """Raw text of every text node, markers included."""
        return "".join(str(node) for node in self._leaves() if not is_chip(node))

    @property
    def text(self) -> str:
        """Visible text; chips contribute their labels."""
        return "".join(text for text, _ in self.styled_runs())

    @property
    def length(self) -> int:
        return sum(self._leaf_length(leaf) for leaf in self._leaves())

    def chips(self) -> list[VariableChip]:
        return [VariableChip.from_tag(leaf) for leaf in self._leaves() if is_chip(leaf)]

    def styled_runs(self) -> list[tuple[str, InlineStyle]]:
        """Visible text grouped into runs of identical effective style."""
        runs: list[tuple[str, InlineStyle]] = []
        for leaf in self._leaves():
            text = leaf.get_text() if is_chip(leaf) else str(leaf)
            text = text.replace(ZERO_WIDTH_SPACE, "")
            if not text:
                continue
            style = effective_style(leaf)
            if runs and runs[-1][1] == style:
                runs[-1] = (runs[-1][0] + text, style)
            else:
                runs.append((text, style))
        return runs

    # ------------------------------------------------------------------
    # Focus, caret and selection
    # ------------------------------------------------------------------

    @property
    def has_focus(self) -> bool:
        return self.focused

    def focus(self) -> None:
        """Focus the surface, restoring the previous caret or placing it at the end."""
        self.focused = True
        if self._focus is None or not self._attached(self._focus.node):
            self._collapse_at(self.length)

    def blur(self) -> None:
        self.focused = False

    def place_caret(self, offset: int) -> None:
        """Collapse the selection at a flat offset (focuses the surface)."""
        self.focused = True
        self._collapse_at(offset)

    def select(self, start: int, end: int) -> None:
        """Select a flat range (focuses the surface)."""
        self.focused = True
        start, end = sorted((start, end))
        self._anchor = self._position_at(start)
        self._focus = self._position_at(end)

    def get_selection(self) -> Selection | None:
        if not self._ready():
            return None
        start, end = self._selection_flats()
        return Selection(start=start, end=end, text=self._text_between(start, end))

    def collapse_selection(self, to_end: bool = True) -> bool:
        if not self._ready():
            return False
        start, end = self._selection_flats()
        self._collapse_at(end if to_end else start)
        return True

    def caret_style(self) -> InlineStyle | None:
        if not self._ready():
            return None
        return effective_style(self._focus.node)

    def selection_has(self, prop: str) -> bool:
        if not self._ready():
            return False
        start, end = self._selection_flats()
        values = [
            getattr(effective_style(leaf), prop)
            for leaf, leaf_start, leaf_end in self._spans()
            if not is_chip(leaf) and max(leaf_start, start) < min(leaf_end, end)
        ]
        return bool(values) and all(values)

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def type_text(self, text: str, style: InlineStyle | None = None) -> bool:
        if not self._ready():
            return False
        if not text:
            return True
        if not self._collapsed():
            self._delete_selection()

        self._claim_chip_spacer(text)

        if style is not None and self.caret_style() != style:
            self.set_caret_style(style)

        pos = self._focus
        current = str(pos.node)
        updated = self._replace_text(pos.node, current[: pos.offset] + text + current[pos.offset:])
        self._set_caret(Position(updated, pos.offset + len(text)))
        return True

    def replace_selection(self, html: str) -> bool:
        if not self._ready():
            return False
        if not self._collapsed():
            self._delete_selection()

        fragment = BeautifulSoup(html or "", "html.parser")
        nodes = [child.extract() for child in list(fragment.contents)]
        if not nodes:
            return True

        after = self._insert_at(self._focus, nodes)
        self._set_caret(self._normalize(Position(after, 0)))
        return True

    def insert_atomic_token(self, chip: VariableChip) -> bool:
        if not self._ready():
            return False
        if not self._collapsed():
            self._delete_selection()

        pos = self._focus
        following = str(pos.node)[pos.offset:] or str(next_text_node(pos.node) or "")
        needs_spacer = not following[:1].isspace()

        tag = chip.to_tag(self.document, spacer=needs_spacer)
        nodes: list = [tag]
        if needs_spacer:
            nodes.append(NavigableString(SPACER))
        after = self._insert_at(pos, nodes)

        if needs_spacer:
            self._set_caret(self._after_chip(tag))
        else:
            # The existing whitespace serves as the chip's trailing space
            self._set_caret(Position(after, 1))

        logger.debug(f"Inserted chip {chip.data_var}")
        return True

    def set_caret_style(self, style: InlineStyle) -> bool:
        if not self._ready():
            return False
        if not self._collapsed():
            self._collapse_at(self._selection_flats()[1])
        if self.caret_style() == style:
            return True

        pos = self._break_out(self._focus)
        if style.is_neutral:
            self._set_caret(pos)
            return True

        carrier = self.document.new_tag("span", attrs={"style": style.to_css()})
        inner = NavigableString("")
        carrier.append(inner)
        self._insert_at(pos, [carrier])
        self._set_caret(Position(inner, 0))
        return True

    def apply_to_selection(self, declarations: dict) -> bool:
        if not self._ready() or self._collapsed():
            return False

        start, end = self._selection_flats()
        css = declarations_to_css(declarations)

        for leaf, leaf_start, leaf_end in self._spans():
            a, b = max(leaf_start, start), min(leaf_end, end)
            if a >= b or is_chip(leaf):
                continue
            text = str(leaf)
            wrapper = self.document.new_tag("span", attrs={"style": css})
            wrapper.append(NavigableString(text[a - leaf_start : b - leaf_start]))

            pieces: list = []
            if a > leaf_start:
                pieces.append(NavigableString(text[: a - leaf_start]))
            pieces.append(wrapper)
            if b < leaf_end:
                pieces.append(NavigableString(text[b - leaf_start :]))
            leaf.replace_with(*pieces)

        self._collapse_at(end)
        return True

    def exit_styled_span(self, prop: str) -> bool:
        if not self._ready():
            return False
        if not self._collapsed():
            self._collapse_at(self._selection_flats()[1])

        target = None
        parent = self._focus.node.parent
        while isinstance(parent, Tag) and parent.name in INLINE_STYLE_TAGS:
            if declared_by(parent).get(prop) not in (None, False, ""):
                target = parent
            parent = parent.parent

        if target is None:
            return False

        pos = self._split_out(target, self._focus)
        marker = self.document.new_tag("span", attrs={CARET_MARKER_ATTR: "1"})
        zero_width = NavigableString(ZERO_WIDTH_SPACE)
        marker.append(zero_width)
        self._insert_at(pos, [marker])
        self._set_caret(Position(zero_width, len(ZERO_WIDTH_SPACE)))
        return True

    # ------------------------------------------------------------------
    # Tree helpers
    # ------------------------------------------------------------------

    def _leaves(self, node: Tag | None = None):
        parent = self.document if node is None else node
        for child in list(parent.children):
            if is_chip(child):
                yield child
            elif isinstance(child, Tag):
                yield from self._leaves(child)
            elif type(child) is NavigableString:
                yield child

    @staticmethod
    def _leaf_length(leaf) -> int:
        return 1 if is_chip(leaf) else len(str(leaf))

    def _spans(self) -> list[tuple]:
        spans = []
        cursor = 0
        for leaf in self._leaves():
            length = self._leaf_length(leaf)
            spans.append((leaf, cursor, cursor + length))
            cursor += length
        return spans

    def _flat_of(self, pos: Position) -> int:
        for leaf, start, _ in self._spans():
            if leaf is pos.node:
                return start + pos.offset
        return self.length

    def _selection_flats(self) -> tuple[int, int]:
        a = self._flat_of(self._anchor)
        b = self._flat_of(self._focus)
        return (a, b) if a <= b else (b, a)

    def _text_between(self, start: int, end: int) -> str:
        parts = []
        for leaf, leaf_start, leaf_end in self._spans():
            a, b = max(leaf_start, start), min(leaf_end, end)
            if a >= b:
                continue
            if is_chip(leaf):
                parts.append(leaf.get_text())
            else:
                parts.append(str(leaf)[a - leaf_start : b - leaf_start])
        return "".join(parts).replace(ZERO_WIDTH_SPACE, "")

    def _position_at(self, flat: int) -> Position:
        spans = self._spans()
        if not spans:
            node = NavigableString("")
            self.document.append(node)
            return Position(node, 0)

        flat = max(0, min(flat, spans[-1][2]))
        for leaf, start, end in spans:
            if is_chip(leaf):
                if flat == start:
                    return self._before_chip(leaf)
                if flat == end:
                    return self._after_chip(leaf)
            elif start <= flat <= end:
                return self._normalize(Position(leaf, flat - start))
        return self._normalize(Position(spans[-1][0], self._leaf_length(spans[-1][0])))

    def _before_chip(self, chip: Tag) -> Position:
        sibling = chip.previous_sibling
        if type(sibling) is not NavigableString:
            sibling = NavigableString("")
            chip.insert_before(sibling)
        return Position(sibling, len(str(sibling)))

    def _after_chip(self, chip: Tag) -> Position:
        sibling = chip.next_sibling
        if type(sibling) is not NavigableString:
            sibling = NavigableString("")
            chip.insert_after(sibling)
        return self._normalize(Position(sibling, 0))

    def _chip_before(self, pos: Position) -> Tag | None:
        """The chip directly preceding ``pos`` (across its spacer), if any."""
        prev = pos.node.previous_sibling
        while type(prev) is NavigableString and not str(prev):
            prev = prev.previous_sibling
        if not is_chip(prev):
            return None
        if pos.offset == 0:
            return prev
        if pos.offset == len(SPACER) and has_spacer(prev) and str(pos.node).startswith(SPACER):
            return prev
        return None

    def _normalize(self, pos: Position) -> Position:
        """Never leave the caret between a chip and its synthetic spacer."""
        if pos.offset == 0 and str(pos.node).startswith(SPACER):
            chip = self._chip_before(pos)
            if chip is not None and has_spacer(chip):
                return Position(pos.node, len(SPACER))
        return pos

    def _claim_chip_spacer(self, text: str) -> None:
        """Typing right after a chip keeps a real space between chip and text."""
        pos = self._focus
        chip = self._chip_before(pos)
        if chip is None:
            return
        if pos.offset == len(SPACER) and has_spacer(chip):
            # The synthetic spacer now separates the chip from typed text
            del chip["data-spacer"]
        elif not text[:1].isspace():
            current = str(pos.node)
            updated = self._replace_text(pos.node, current[: pos.offset] + SPACER + current[pos.offset:])
            self._set_caret(Position(updated, pos.offset + len(SPACER)))

    def _replace_text(self, node: NavigableString, text: str) -> NavigableString:
        updated = NavigableString(text)
        node.replace_with(updated)
        if self._anchor is not None and self._anchor.node is node:
            self._anchor = Position(updated, min(self._anchor.offset, len(text)))
        return updated

    def _insert_at(self, pos: Position, nodes: list) -> NavigableString:
        """Insert nodes at a position; returns the text node that follows them."""
        text = str(pos.node)
        left = NavigableString(text[: pos.offset])
        right = NavigableString(text[pos.offset:])
        pos.node.replace_with(left, *nodes, right)
        return right

    def _break_out(self, pos: Position) -> Position:
        """Move a position outside every style-carrying inline ancestor."""
        outermost = None
        parent = pos.node.parent
        while isinstance(parent, Tag) and parent.name in INLINE_STYLE_TAGS:
            outermost = parent
            parent = parent.parent
        if outermost is None:
            return pos
        return self._split_out(outermost, pos)

    def _split_out(self, ancestor: Tag, pos: Position) -> Position:
        """
        Split ``ancestor`` at ``pos`` and return a position between the halves.

        Every element from the caret's text node up to ``ancestor`` is
        cloned; content after the caret moves into the clones, so the left
        half keeps what precedes the caret and the right half the rest.
        """
        current = self._insert_at(pos, [])
        while True:
            parent = current.parent
            clone = self.document.new_tag(parent.name, attrs=dict(parent.attrs))
            for item in [current] + list(current.next_siblings):
                clone.append(item.extract())
            parent.insert_after(clone)
            current = clone
            if parent is ancestor:
                break

        gap = NavigableString("")
        ancestor.insert_after(gap)
        for half in (ancestor, current):
            if not half.get_text() and not half.find(is_chip):
                half.extract()
        return Position(gap, 0)

    def _delete_selection(self) -> None:
        start, end = self._selection_flats()
        for leaf, leaf_start, leaf_end in self._spans():
            a, b = max(leaf_start, start), min(leaf_end, end)
            if a >= b:
                continue
            if is_chip(leaf):
                leaf.extract()
                continue
            text = str(leaf)
            self._replace_text(leaf, text[: a - leaf_start] + text[b - leaf_start :])
        self._collapse_at(start)

    # ------------------------------------------------------------------
    # State helpers
    # ------------------------------------------------------------------

    def _reset_caret(self) -> None:
        self._anchor = self._focus = None
        if self.focused:
            self._collapse_at(self.length)

    def _collapse_at(self, flat: int) -> None:
        self._set_caret(self._position_at(flat))

    def _set_caret(self, pos: Position) -> None:
        self._anchor = pos
        self._focus = Position(pos.node, pos.offset)

    def _collapsed(self) -> bool:
        start, end = self._selection_flats()
        return start == end

    def _attached(self, node) -> bool:
        current = node
        while current is not None:
            if current is self.document:
                return True
            current = current.parent
        return False

    def _ready(self) -> bool:
        return (
            self.focused
            and self._focus is not None
            and self._anchor is not None
            and self._attached(self._focus.node)
            and self._attached(self._anchor.node)
        )


__all__ = [
    "NEUTRAL_STYLE",
    "Position",
    "RichTextSurface",
    "Selection",
    "SoupSurface",
    "ZERO_WIDTH_SPACE",
]
