"""Switching the editor between rendered rich text and raw HTML source."""

import logging

from bs4 import BeautifulSoup

from crm_composer.editor.chips import chips_to_tokens, friendly_label, is_chip, tokens_to_chips
from crm_composer.editor.surface import SoupSurface

logger = logging.getLogger(__name__)


def enter_html_mode(surface: SoupSurface) -> str:
    """
    Show the document as editable HTML source.

    Chips are serialized to their tokens first, then the markup is loaded
    into the surface as plain text so tags are visible rather than rendered.
    Chips shown under a custom label remember it on the surface so the
    label comes back when the source is rendered again.

    Returns:
        The HTML source now shown in the surface.
    """
    if surface.html_mode:
        return surface.plain_text

    document = BeautifulSoup(surface.html, "html.parser")
    surface.chip_labels = _custom_labels(document)
    chips_to_tokens(document)
    source = document.decode()

    surface.set_plain_text(source)
    surface.html_mode = True
    logger.debug(f"Entered HTML mode ({len(source)} chars)")
    return source


def exit_html_mode(surface: SoupSurface) -> str:
    """
    Render the edited HTML source and restore chips.

    Returns:
        The rendered HTML now in the surface.
    """
    if not surface.html_mode:
        return surface.html

    document = BeautifulSoup(surface.plain_text, "html.parser")
    tokens_to_chips(document, labels=surface.chip_labels)

    surface.set_html(document.decode())
    surface.html_mode = False
    logger.debug("Left HTML mode")
    return surface.html


def toggle_html_mode(surface: SoupSurface) -> bool:
    """Flip the mode; returns True when the surface is now in HTML mode."""
    if surface.html_mode:
        exit_html_mode(surface)
    else:
        enter_html_mode(surface)
    return surface.html_mode


def _custom_labels(document: BeautifulSoup) -> dict[str, str]:
    labels = {}
    for tag in document.find_all("span"):
        if not is_chip(tag):
            continue
        scope, _, key = tag.get("data-var", "").partition(".")
        label = tag.get_text()
        if label and label != friendly_label(scope, key):
            labels[tag["data-var"]] = label
    return labels
