"""
Variable chips: ``{{scope.key}}`` tokens as atomic inline elements.

The same variable has two representations:

- token text, ``{{contact.first_name}}``, used on the wire, at rest and
  in raw-HTML mode;
- a chip, ``<span class="var-chip" contenteditable="false"
  data-var="contact.first_name" data-token="{{contact.first_name}}">first
  name</span>``, used in the interactive editor.

A chip is followed by a literal space so that typing after it never merges
into the chip. When that space was added by the conversion (rather than
already present in the text) the chip carries ``data-spacer="1"`` and
``chips_to_tokens`` removes the space again, so converting back yields the
original token text byte for byte.
"""

import logging
import re
from dataclasses import dataclass

from bs4 import BeautifulSoup, NavigableString, Tag

logger = logging.getLogger(__name__)

TOKEN_PATTERN = re.compile(r"\{\{(contact|account|sender)\.(\w+)\}\}")
VALID_SCOPES = ("contact", "account", "sender")

CHIP_CLASS = "var-chip"
SPACER = " "

FRIENDLY_LABELS = {
    "contact": {
        "first_name": "first name",
        "last_name": "last name",
        "full_name": "full name",
        "title": "title",
        "email": "email",
        "phone": "phone",
    },
    "account": {
        "name": "company name",
        "website": "website",
        "industry": "industry",
        "size": "company size",
        "city": "company city",
        "state": "company state",
        "country": "company country",
        "supplier": "supplier",
        "contract_end": "contract end",
    },
    "sender": {
        "first_name": "your first name",
        "last_name": "your last name",
        "full_name": "your name",
        "title": "your title",
        "company": "your company",
        "phone": "your phone",
    },
}


@dataclass(frozen=True)
class VariableChip:
    """One substitutable variable."""

    scope: str
    key: str
    display_label: str = ""

    def __post_init__(self) -> None:
        if self.scope not in VALID_SCOPES:
            raise ValueError(f"Unknown variable scope: {self.scope}")
        if not re.fullmatch(r"\w+", self.key or ""):
            raise ValueError(f"Invalid variable key: {self.key!r}")

    @property
    def token(self) -> str:
        return f"{{{{{self.scope}.{self.key}}}}}"

    @property
    def data_var(self) -> str:
        return f"{self.scope}.{self.key}"

    @property
    def label(self) -> str:
        return self.display_label or friendly_label(self.scope, self.key)

    def to_tag(self, factory: BeautifulSoup, spacer: bool = False) -> Tag:
        """Build the chip element."""
        attrs = {
            "class": CHIP_CLASS,
            "contenteditable": "false",
            "data-var": self.data_var,
            "data-token": self.token,
        }
        if spacer:
            attrs["data-spacer"] = "1"
        tag = factory.new_tag("span", attrs=attrs)
        tag.string = self.label
        return tag

    @classmethod
    def from_tag(cls, tag: Tag) -> "VariableChip":
        scope, _, key = tag.get("data-var", "").partition(".")
        return cls(scope=scope, key=key, display_label=tag.get_text())

    @classmethod
    def from_token(cls, token: str) -> "VariableChip":
        match = TOKEN_PATTERN.fullmatch(token.strip())
        if not match:
            raise ValueError(f"Not a variable token: {token!r}")
        return cls(scope=match.group(1), key=match.group(2))


def friendly_label(scope: str, key: str) -> str:
    """Human-readable label for a variable (``first_name`` -> ``first name``)."""
    label = FRIENDLY_LABELS.get(scope, {}).get(key)
    if label:
        return label
    return key.replace("_", " ").strip() or f"{scope}.{key}"


def is_chip(node) -> bool:
    return isinstance(node, Tag) and node.name == "span" and node.has_attr("data-token")


def has_spacer(chip: Tag) -> bool:
    return chip.get("data-spacer") == "1"


def inside_chip(node) -> bool:
    parent = node.parent
    while parent is not None:
        if is_chip(parent):
            return True
        parent = parent.parent
    return False


def soup_factory(node) -> BeautifulSoup:
    """The BeautifulSoup document owning ``node`` (or a detached one)."""
    current = node
    while current is not None:
        if isinstance(current, BeautifulSoup):
            return current
        current = current.parent
    return BeautifulSoup("", "html.parser")


def next_text_node(element) -> NavigableString | None:
    """The next non-empty text node in document order, outside ``element``."""
    for candidate in element.next_elements:
        if type(candidate) is not NavigableString or not str(candidate):
            continue
        parent = candidate.parent
        while parent is not None and parent is not element:
            parent = parent.parent
        if parent is None:
            return candidate
    return None


def _text_follows(node: NavigableString, rest: str) -> str:
    """Text directly following a match: the rest of the node, else the next text."""
    if rest:
        return rest
    following = next_text_node(node)
    return str(following) if following is not None else ""


def tokens_to_chips(container: Tag, labels: dict[str, str] | None = None) -> int:
    """
    Replace every ``{{scope.key}}`` token in text nodes with a chip.

    Text inside existing chips is never scanned, so running the
    conversion twice does not nest or duplicate chips.

    Args:
        container: Element (or whole document) to scan.
        labels: Display labels by ``scope.key`` for chips that do not use
            the default label.

    Returns:
        Number of chips created.
    """
    factory = soup_factory(container)
    created = 0

    for text_node in list(container.find_all(string=True)):
        if type(text_node) is not NavigableString or inside_chip(text_node):
            continue
        text = str(text_node)
        if not TOKEN_PATTERN.search(text):
            continue

        pieces: list = []
        cursor = 0
        for match in TOKEN_PATTERN.finditer(text):
            if match.start() > cursor:
                pieces.append(NavigableString(text[cursor:match.start()]))

            following = _text_follows(text_node, text[match.end():])
            needs_spacer = not following[:1].isspace()

            chip = VariableChip(
                scope=match.group(1),
                key=match.group(2),
                display_label=(labels or {}).get(f"{match.group(1)}.{match.group(2)}", ""),
            )
            pieces.append(chip.to_tag(factory, spacer=needs_spacer))
            if needs_spacer:
                pieces.append(NavigableString(SPACER))
            cursor = match.end()
            created += 1

        if cursor < len(text):
            pieces.append(NavigableString(text[cursor:]))

        text_node.replace_with(*pieces)

    if created:
        logger.debug(f"Converted {created} token(s) to chips")
    return created


def chips_to_tokens(container: Tag) -> int:
    """
    Replace every chip with its literal token text.

    Spacers added by ``tokens_to_chips``/``insert_chip`` are removed, so
    the result reproduces the original token text exactly.

    Args:
        container: Element (or whole document) to convert.

    Returns:
        Number of chips converted.
    """
    chips = [tag for tag in container.find_all("span") if is_chip(tag)]

    for chip in chips:
        if has_spacer(chip):
            following = next_text_node(chip)
            if following is not None and str(following).startswith(SPACER):
                remainder = str(following)[len(SPACER):]
                if remainder:
                    following.replace_with(NavigableString(remainder))
                else:
                    following.extract()
        chip.replace_with(NavigableString(chip["data-token"]))

    if chips:
        container.smooth()
    return len(chips)


def render_chips(html: str) -> str:
    """Token text/HTML -> HTML with chips."""
    soup = BeautifulSoup(html or "", "html.parser")
    tokens_to_chips(soup)
    return soup.decode()


def serialize_chips(html: str) -> str:
    """HTML with chips -> HTML with literal tokens."""
    soup = BeautifulSoup(html or "", "html.parser")
    chips_to_tokens(soup)
    return soup.decode()


def replace_tokens(html: str, values: dict[str, dict[str, str]], keep_unknown: bool = False) -> str:
    """
    Substitute literal values for ``{{scope.key}}`` tokens.

    Args:
        html: Text or HTML containing tokens (chips must already be serialized).
        values: ``{"contact": {...}, "account": {...}, "sender": {...}}``.
        keep_unknown: Leave tokens without a value in place instead of blanking them.

    Returns:
        Text with tokens replaced.
    """

    def substitute(match: re.Match) -> str:
        value = values.get(match.group(1), {}).get(match.group(2))
        if value:
            return str(value)
        logger.debug(f"No value for token {match.group(0)}")
        return match.group(0) if keep_unknown else ""

    return TOKEN_PATTERN.sub(substitute, html or "")
