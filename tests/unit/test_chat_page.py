"""Unit tests for the NiceGUI surface the chat page relies on."""

import inspect

from nicegui import ui


class TestHtmlElement:
    """Transcript bubbles are rendered with ui.html."""

    def test_html_element_accepts_sanitize_flag(self) -> None:
        """Pre-sanitized transcript HTML is passed with sanitize=False."""
        parameters = inspect.signature(ui.html).parameters

        assert "sanitize" in parameters
