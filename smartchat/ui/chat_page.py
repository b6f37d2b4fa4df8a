"""NiceGUI chat interface with multi-session sidebar and streaming replies."""

import os

from nicegui import app, ui

from smartchat.client.completion import CompletionClient
from smartchat.client.config import get_client_config
from smartchat.conversation.controller import ChatState, ConversationController, RenderedMessage
from smartchat.models.schemas import Role
from smartchat.sessions.storage import JsonFileKeyValueStore, KeyValueStore, MappingKeyValueStore
from smartchat.sessions.store import SessionStore

STORAGE_SECRET = os.getenv("NICEGUI_STORAGE_SECRET", "smartchat-secret")

CUSTOM_CSS = """
<link href="https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600&display=swap"
      rel="stylesheet">
<style>
    * { font-family: 'Inter', sans-serif; }

    body { background: #f5f5f5; min-height: 100vh; }

    .app-container {
        background: white;
        border-radius: 12px;
        box-shadow: 0 2px 8px rgba(0, 0, 0, 0.1);
        overflow: hidden;
    }

    .header { background: linear-gradient(135deg, #1f3b73 0%, #223455 100%); }

    .session-item { border-radius: 8px; cursor: pointer; }
    .session-item:hover { background: #eef2ff; }
    .session-current { background: #e0e7ff; }

    .message-user {
        background: #223455;
        color: white;
        border-radius: 18px 18px 4px 18px;
    }

    .message-assistant {
        background: #f3f4f6;
        color: #1f2937;
        border-radius: 18px 18px 18px 4px;
    }

    .typing-dot {
        width: 8px; height: 8px;
        background: #1f3b73;
        border-radius: 50%;
        animation: bounce 1.4s infinite ease-in-out;
    }
    .typing-dot:nth-child(2) { animation-delay: 0.2s; }
    .typing-dot:nth-child(3) { animation-delay: 0.4s; }

    @keyframes bounce {
        0%, 60%, 100% { transform: translateY(0); }
        30% { transform: translateY(-6px); }
    }

    /* Markdown styling */
    .message-assistant strong { font-weight: 600; }
    .message-assistant em { font-style: italic; }
    .message-assistant pre.chat-code {
        background: #1f2937; color: #f3f4f6;
        border-radius: 8px; padding: 0.75rem; margin: 0.5rem 0; overflow-x: auto;
    }
    .message-assistant code { font-family: 'Menlo', 'Monaco', monospace; }
    .message-assistant ul { list-style: disc inside; margin: 0.5rem 0; }
    .message-assistant ol { list-style: decimal inside; margin: 0.5rem 0; }
    .message-assistant a { color: #4f46e5; text-decoration: underline; }
</style>
"""


def _session_storage() -> KeyValueStore:
    """Use the configured JSON file, else NiceGUI's per-browser storage."""
    config = get_client_config()
    if config.storage_path is not None:
        return JsonFileKeyValueStore(config.storage_path)
    return MappingKeyValueStore(app.storage.user)


def build_controller() -> ConversationController:
    """Wire a controller for one browser tab."""
    config = get_client_config()
    store = SessionStore(_session_storage())
    store.load_all()
    return ConversationController(store, CompletionClient(config), streaming=config.streaming)


@ui.page("/")
def chat_page() -> None:
    """Main chat page."""
    ui.add_head_html(CUSTOM_CSS)
    controller = build_controller()

    sessions_container: ui.column
    messages_container: ui.column
    scroll_area: ui.scroll_area
    send_btn: ui.button
    stop_btn: ui.button

    def render_message(msg: RenderedMessage) -> None:
        is_user = msg.role is Role.USER
        align = "justify-end" if is_user else "justify-start"
        bubble = "message-user" if is_user else "message-assistant"
        with (
            ui.row().classes(f"w-full {align}"),
            ui.element("div").classes(f"max-w-[75%] px-4 py-3 {bubble}"),
        ):
            # Already escaped or sanitized by the renderer
            ui.html(msg.html, sanitize=False).classes("text-sm leading-relaxed")

    def render_typing_indicator() -> None:
        with (
            ui.row().classes("w-full justify-start"),
            ui.element("div").classes("message-assistant px-4 py-3"),
            ui.row().classes("gap-1"),
        ):
            for _ in range(3):
                ui.element("div").classes("typing-dot")

    def refresh_messages() -> None:
        messages_container.clear()
        with messages_container:
            for msg in controller.transcript():
                render_message(msg)
            if controller.is_typing:
                render_typing_indicator()
        sending = controller.state is ChatState.SENDING
        send_btn.set_enabled(not sending)
        stop_btn.set_visibility(sending)
        controller.schedule(0.05, lambda: scroll_area.scroll_to(percent=1.0))

    async def rename(session_id: str, current_title: str) -> None:
        with ui.dialog() as dialog, ui.card():
            title_input = ui.input("Title", value=current_title).props("maxlength=60")
            with ui.row():
                ui.button("Cancel", on_click=lambda: dialog.submit(None)).props("flat")
                ui.button("Save", on_click=lambda: dialog.submit(title_input.value))
        controller.rename_session(session_id, await dialog)

    def refresh_sessions() -> None:
        sessions_container.clear()
        current_id = controller.session.id
        with sessions_container:
            for session in controller.sessions:
                css = "session-current" if session.id == current_id else ""
                with ui.row().classes(f"w-full items-center session-item px-2 py-1 {css}"):
                    ui.label(session.title).classes("flex-grow text-sm truncate").on(
                        "click", lambda s=session: controller.select_session(s.id)
                    )
                    ui.button(
                        icon="edit", on_click=lambda s=session: rename(s.id, s.title)
                    ).props("flat round dense size=sm")
                    ui.button(
                        icon="delete", on_click=lambda s=session: controller.delete_session(s.id)
                    ).props("flat round dense size=sm")

    def refresh() -> None:
        refresh_sessions()
        refresh_messages()

    async def send_message() -> None:
        await controller.send()

    # === UI Layout ===
    with (
        ui.element("div").classes("w-full min-h-screen p-4 md:p-8"),
        ui.row().classes("w-full max-w-5xl mx-auto app-container no-wrap").style(
            "height: calc(100vh - 4rem)"
        ),
    ):
        # Sidebar
        with ui.column().classes("w-64 h-full p-3 border-r gap-2"):
            ui.button("New Chat", icon="add", on_click=controller.new_session).classes("w-full")
            sessions_container = ui.column().classes("w-full gap-1")

        with ui.column().classes("flex-grow h-full gap-0"):
            # Header
            with ui.row().classes("w-full header px-5 py-4 items-center justify-between"):
                ui.label("Smart Chat").classes("text-lg font-semibold text-white")
                ui.button(icon="restart_alt", on_click=controller.reset).props(
                    "flat round color=white"
                ).tooltip("Start over")

            # Messages
            with ui.scroll_area().classes("flex-grow w-full bg-gray-50") as scroll_area:
                messages_container = ui.column().classes("w-full gap-4 p-5")

            # Input
            with ui.row().classes("w-full p-4 gap-3 items-end bg-white border-t"):
                (
                    ui.textarea(placeholder="Ask anything… (Shift+Enter for newline)")
                    .props("autogrow outlined dense rows=1")
                    .classes("flex-grow")
                    .bind_value(controller, "input_buffer")
                    .on("keydown.enter.exact.prevent", send_message)
                )
                stop_btn = ui.button(icon="stop", on_click=controller.cancel).props("round flat")
                send_btn = ui.button(icon="send", on_click=send_message).props("round unelevated")

    controller.add_listener(refresh)
    refresh()


def main() -> None:
    """Serve the chat page on its own, talking to API_BASE_URL."""
    ui.run(
        title="Smart Chat",
        port=8080,
        reload=False,
        storage_secret=STORAGE_SECRET,
    )


if __name__ == "__main__":
    main()
