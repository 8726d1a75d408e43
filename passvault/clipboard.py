"""
Clipboard integration for copying secrets out of the vault.

Qt owns the clipboard content, so its event queue must be serviced while the
terminal waits for input: pass :meth:`ClipboardManager.inputhook` to
prompt_toolkit prompts. Copied secrets are cleared after a timeout.
"""

import logging
import os
import platform
import time
from typing import Optional

from PyQt5.QtCore import QEventLoop, QTimer
from PyQt5.QtWidgets import QApplication

from . import config
from .exceptions import ClipboardUnavailableError

logger = logging.getLogger(__name__)


def display_available() -> bool:
    """Whether a clipboard can exist for this process."""
    if platform.system() in ("Windows", "Darwin"):
        return True
    return bool(os.environ.get("DISPLAY") or os.environ.get("WAYLAND_DISPLAY"))


class ClipboardManager:
    """Copies single secrets to the system clipboard and clears them later."""

    def __init__(self, clear_timeout: int = config.CLIPBOARD_CLEAR_TIMEOUT_SECONDS):
        self.clear_timeout = clear_timeout
        self._app: Optional[QApplication] = None
        self._timer: Optional[QTimer] = None
        self._copied: Optional[str] = None

    def _ensure_app(self) -> QApplication:
        if self._app is None:
            if not display_available():
                raise ClipboardUnavailableError("No display available for clipboard access")
            self._app = QApplication.instance() or QApplication([config.APP_NAME])
            self._timer = QTimer()
            self._timer.setSingleShot(True)
            self._timer.timeout.connect(self.clear)
        return self._app

    def copy(self, text: str) -> None:
        """Copy text to the clipboard with auto-clear."""
        app = self._ensure_app()
        app.clipboard().setText(text)
        self._copied = text
        self._timer.stop()
        self._timer.start(self.clear_timeout * 1000)
        logger.debug(f"Secret copied to clipboard (auto-clear in {self.clear_timeout}s)")

    def clear(self) -> None:
        """Clear the clipboard if it still holds the copied secret."""
        if self._app is None or self._copied is None:
            return
        self._timer.stop()
        clipboard = self._app.clipboard()
        if clipboard.text() == self._copied:
            clipboard.clear()
            logger.debug("Clipboard cleared")
        self._copied = None

    def inputhook(self, context) -> None:
        """prompt_toolkit input hook that services Qt events until input arrives."""
        if self._app is None:
            return
        while not context.input_is_ready():
            self._app.processEvents(QEventLoop.AllEvents, 50)
            time.sleep(0.02)
