"""Tests for the HTML source mode toggle."""

from crm_composer.editor import (
    SoupSurface,
    enter_html_mode,
    exit_html_mode,
    insert_chip,
    render_chips,
    toggle_html_mode,
)

SOURCE = "<p>Hi {{contact.first_name}}, quick note about {{account.name}}.</p>"


class TestHtmlMode:
    """Tests for entering and leaving HTML mode."""

    def test_round_trip_without_edits_is_identical(self):
        """Should restore the exact rendered HTML after two toggles."""
        surface = SoupSurface(render_chips(SOURCE))
        before = surface.html

        toggle_html_mode(surface)
        toggle_html_mode(surface)

        assert surface.html == before
        assert [chip.data_var for chip in surface.chips()] == ["contact.first_name", "account.name"]

    def test_round_trip_keeps_custom_chip_label(self):
        """Should bring back a chip's custom label after two toggles."""
        surface = SoupSurface("<p>Hello </p>")
        surface.place_caret(6)
        insert_chip(surface, "contact", "first_name", "Name")
        before = surface.html

        source = enter_html_mode(surface)
        assert "{{contact.first_name}}" in source
        assert "Name" not in source

        exit_html_mode(surface)

        assert surface.html == before
        assert surface.text.startswith("Hello Name")
        assert [chip.label for chip in surface.chips()] == ["Name"]

    def test_default_labels_are_not_remembered(self):
        surface = SoupSurface(render_chips(SOURCE))
        enter_html_mode(surface)
        assert surface.chip_labels == {}

    def test_source_shows_tokens_not_chips(self):
        """Should show token text and visible tags in HTML mode."""
        surface = SoupSurface(render_chips(SOURCE))

        source = enter_html_mode(surface)

        assert source == SOURCE
        assert surface.html_mode is True
        assert surface.plain_text == SOURCE
        assert surface.chips() == []

    def test_edits_in_source_are_rendered(self):
        """Should render markup typed in HTML mode."""
        surface = SoupSurface(render_chips(SOURCE))
        enter_html_mode(surface)
        surface.focus()
        surface.type_text("<p><b>Thanks</b> {{sender.first_name}}</p>")

        html = exit_html_mode(surface)

        assert "<b>Thanks</b>" in html
        assert surface.html_mode is False
        assert [chip.data_var for chip in surface.chips()][-1] == "sender.first_name"

    def test_enter_twice_is_noop(self):
        """Should not re-serialize when already in HTML mode."""
        surface = SoupSurface(render_chips(SOURCE))
        first = enter_html_mode(surface)
        assert enter_html_mode(surface) == first

    def test_exit_when_not_in_html_mode(self):
        """Should return the current HTML unchanged."""
        surface = SoupSurface("<p>Plain</p>")
        assert exit_html_mode(surface) == "<p>Plain</p>"
        assert toggle_html_mode(surface) is True
