"""Screen capture adapter based on Qt screen grabs."""

from __future__ import annotations

import logging
from typing import Optional

from models import Frame

try:
    from PySide6.QtCore import QBuffer, QByteArray, QIODevice, Qt
    from PySide6.QtGui import QCursor, QGuiApplication
except Exception:  # pragma: no cover
    QBuffer = None  # type: ignore
    QByteArray = None  # type: ignore
    QIODevice = None  # type: ignore
    Qt = None  # type: ignore
    QCursor = None  # type: ignore
    QGuiApplication = None  # type: ignore

logger = logging.getLogger(__name__)


class QtScreenCapture:
    def __init__(self, max_width: int = 1280, jpeg_quality: int = 80) -> None:
        self._max_width = max_width
        self._jpeg_quality = jpeg_quality

    def capture_frame(self) -> Optional[Frame]:
        if QGuiApplication is None:
            raise RuntimeError("PySide6 is not installed")
        screen = QGuiApplication.screenAt(QCursor.pos()) or QGuiApplication.primaryScreen()
        if screen is None:
            logger.debug("No screen available for capture")
            return None

        pixmap = screen.grabWindow(0)
        if pixmap.isNull():
            # Usually a missing Screen Recording permission on macOS.
            logger.debug("Screen grab returned an empty image")
            return None
        if pixmap.width() > self._max_width:
            pixmap = pixmap.scaledToWidth(self._max_width, Qt.SmoothTransformation)

        data = QByteArray()
        buffer = QBuffer(data)
        buffer.open(QIODevice.WriteOnly)
        saved = pixmap.save(buffer, "JPEG", self._jpeg_quality)
        buffer.close()
        if not saved:
            logger.debug("JPEG encoding failed")
            return None
        return Frame(jpeg_bytes=bytes(data.data()), width=pixmap.width(), height=pixmap.height())
