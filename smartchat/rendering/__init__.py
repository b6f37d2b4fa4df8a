"""HTML rendering for chat transcripts.

Assistant markdown goes through a two-pass renderer that escapes before
it transforms; user text is escaped and shown literally.
"""

from smartchat.rendering.markdown import markdown_to_html, plain_text_to_html, render_inline

__all__ = ["markdown_to_html", "plain_text_to_html", "render_inline"]
