"""Click-through avatar window."""

from __future__ import annotations

import logging

from models import Region, RegionFraction

try:
    from PySide6.QtCore import Qt
    from PySide6.QtGui import QCursor, QGuiApplication, QPixmap
    from PySide6.QtWidgets import QLabel, QVBoxLayout, QWidget
except Exception:  # pragma: no cover
    Qt = None  # type: ignore
    QCursor = None  # type: ignore
    QGuiApplication = None  # type: ignore
    QPixmap = None  # type: ignore
    QLabel = object  # type: ignore
    QVBoxLayout = object  # type: ignore
    QWidget = object  # type: ignore

logger = logging.getLogger(__name__)


class OverlayWindow(QWidget):
    def __init__(self) -> None:
        if Qt is None:
            raise RuntimeError("PySide6 is not installed")
        super().__init__()
        self.setWindowFlags(
            Qt.WindowStaysOnTopHint
            | Qt.FramelessWindowHint
            | Qt.Tool
            | Qt.WindowTransparentForInput
            | Qt.WindowDoesNotAcceptFocus
        )
        self.setAttribute(Qt.WA_TranslucentBackground, True)
        self.setAttribute(Qt.WA_ShowWithoutActivating, True)

        self._label = QLabel("")
        self._label.setScaledContents(True)

        layout = QVBoxLayout()
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(self._label)
        self.setLayout(layout)

        self._current_path = ""

    def region_for(self, fraction: RegionFraction) -> Region:
        """Resolve ``fraction`` against the screen under the pointer."""
        screen = QGuiApplication.screenAt(QCursor.pos()) or QGuiApplication.primaryScreen()
        geom = screen.geometry()
        return fraction.resolve(Region(geom.x(), geom.y(), geom.width(), geom.height()))

    def show_asset(self, path: str, region: Region) -> bool:
        if path != self._current_path:
            pixmap = QPixmap(path)
            if pixmap.isNull():
                logger.warning(f"Overlay image could not be loaded: {path}")
                return False
            self._label.setPixmap(pixmap)
            self._current_path = path
        self.setGeometry(region.x, region.y, region.width, region.height)
        self.show()
        self.raise_()
        return True
