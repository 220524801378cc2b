"""Avatar overlay state machine: Hidden, Resting, Talking."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from config import AppSettings
from interfaces import OverlayRenderer
from models import OverlayMode, RegionFraction

logger = logging.getLogger(__name__)

ModeCallback = Callable[[OverlayMode, OverlayMode], None]


class OverlayState:
    def __init__(
        self,
        renderer: OverlayRenderer,
        settings: AppSettings,
        region: Optional[RegionFraction] = None,
        on_mode_change: Optional[ModeCallback] = None,
    ) -> None:
        self._renderer = renderer
        self._settings = settings
        self._region = region or RegionFraction()
        self._on_mode_change = on_mode_change
        self._mode = OverlayMode.HIDDEN

    @property
    def mode(self) -> OverlayMode:
        return self._mode

    @property
    def available(self) -> bool:
        return self._settings.overlay_ready

    def set_region(self, region: RegionFraction) -> None:
        self._region = region
        if self._mode != OverlayMode.HIDDEN:
            self._show(self._mode)

    def asset_for(self, mode: OverlayMode) -> Optional[str]:
        if mode == OverlayMode.RESTING:
            return self._settings.resting_image_path or None
        if mode == OverlayMode.TALKING:
            return self._settings.talking_image_path or None
        return None

    def show_resting(self) -> None:
        self._show(OverlayMode.RESTING)

    def show_talking(self) -> None:
        self._show(OverlayMode.TALKING)

    def hide(self) -> None:
        if self._mode == OverlayMode.HIDDEN:
            return
        self._renderer.hide()
        self._transition(OverlayMode.HIDDEN)

    def toggle(self) -> None:
        if self._mode == OverlayMode.HIDDEN:
            self.show_resting()
        else:
            self.hide()

    def _show(self, mode: OverlayMode) -> None:
        if not self.available:
            logger.debug(f"Overlay assets not configured, skipping {mode.value}")
            return
        path = self.asset_for(mode)
        if path is None:
            return
        if not self._renderer.show_asset(path, self._renderer.region_for(self._region)):
            logger.warning(f"Overlay stays {self._mode.value}: could not show {path}")
            return
        self._transition(mode)

    def _transition(self, to_mode: OverlayMode) -> None:
        from_mode = self._mode
        if from_mode == to_mode:
            return
        self._mode = to_mode
        if self._on_mode_change:
            self._on_mode_change(from_mode, to_mode)
