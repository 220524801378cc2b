"""System notifications through the tray icon."""

from __future__ import annotations

import logging

try:
    from PySide6.QtWidgets import QSystemTrayIcon
except Exception:  # pragma: no cover
    QSystemTrayIcon = None  # type: ignore

logger = logging.getLogger(__name__)


class TrayNotifier:
    def __init__(self, tray: "QSystemTrayIcon", timeout_ms: int = 8000) -> None:
        self._tray = tray
        self._timeout_ms = timeout_ms

    def notify(self, title: str, body: str) -> None:
        if QSystemTrayIcon is None or not QSystemTrayIcon.supportsMessages():
            logger.info(f"[notification] {title}: {body}")
            return
        self._tray.showMessage(title, body, QSystemTrayIcon.Information, self._timeout_ms)
