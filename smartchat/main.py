"""Smart Chat launcher.

Two run modes, picked with RUN_MODE:

    - integrated (default): one uvicorn server on PORT (8000) serving the
      completion API and the NiceGUI chat page
    - separate: the API on 8000 and the chat page on 8080, each in its
      own process, stopped together

Environment variables are loaded from .env before anything else reads them.
"""

import logging
import os
import subprocess
import sys
import time

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

API_PORT = 8000


def configure_logging() -> None:
    """Send all application logs to stdout at LOG_LEVEL."""
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def run_integrated() -> None:
    """Serve the API and mount the chat page on the same app."""
    import uvicorn
    from nicegui import ui

    from smartchat.api.app import create_app
    from smartchat.ui.chat_page import STORAGE_SECRET, chat_page  # noqa: F401 - registers "/"

    application = create_app()
    ui.run_with(application, title="Smart Chat", storage_secret=STORAGE_SECRET)

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", str(API_PORT)))
    logger.info(f"Chat UI on http://localhost:{port}/ (API docs at /docs)")

    uvicorn.run(application, host=host, port=port, log_level=os.getenv("LOG_LEVEL", "info").lower())


def run_separate() -> None:
    """Run the API and the chat page as two child processes.

    The UI reaches the API through API_BASE_URL, which defaults to
    http://localhost:8000. When either process exits the other is stopped.
    """
    commands = {
        "api": [
            sys.executable, "-m", "uvicorn", "smartchat.api.app:app",
            "--host", os.getenv("HOST", "0.0.0.0"), "--port", str(API_PORT),
        ],
        "ui": [sys.executable, "-c", "from smartchat.ui.chat_page import main; main()"],
    }
    processes = {name: subprocess.Popen(cmd) for name, cmd in commands.items()}
    logger.info(f"API on http://localhost:{API_PORT}, chat UI on http://localhost:8080")

    try:
        while all(proc.poll() is None for proc in processes.values()):
            time.sleep(1)
        exited = [name for name, proc in processes.items() if proc.poll() is not None]
        logger.warning(f"Process exited: {', '.join(exited)}; stopping the rest")
    except KeyboardInterrupt:
        logger.info("Shutting down servers...")
    finally:
        for proc in processes.values():
            proc.terminate()
        for proc in processes.values():
            proc.wait()


def main() -> None:
    """Console entry point."""
    configure_logging()
    mode = os.getenv("RUN_MODE", "integrated").lower()
    logger.info(f"Starting Smart Chat in {mode} mode")

    if mode == "separate":
        run_separate()
    else:
        run_integrated()


if __name__ == "__main__":
    main()
