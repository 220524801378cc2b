"""Application entrypoint."""

from __future__ import annotations

import logging
import sys
from typing import FrozenSet

import config
from capture import QtScreenCapture
from classification import ClassificationPipeline
from classifier import DashscopeClassifier
from config import APP_NAME, VOICE_OPTIONS, JsonConfigStore
from errors import LockInError
from event_loop import QtEventLoop
from feedback import FeedbackDispatcher
from hotkey import GlobalKeyListener
from interfaces import KeySink
from models import Modifier, OverlayMode, SessionState, SessionSummary, ShortcutBinding
from notifier import TrayNotifier
from overlay import OverlayWindow
from overlay_state import OverlayState
from player import SoundDeviceAudioPlayer
from session_controller import SessionController, format_time
from shortcut import ConsumingKeySink, ObservingKeySink, ShortcutMatcher, conflict_for, display_string
from speech import DashscopeSpeechSynthesizer

try:
    from PySide6.QtCore import QEvent, QObject, QSize, Qt
    from PySide6.QtGui import QAction, QActionGroup, QBrush, QColor, QGuiApplication, QIcon, QPainter, QPixmap
    from PySide6.QtWidgets import (
        QApplication,
        QFileDialog,
        QInputDialog,
        QMenu,
        QMessageBox,
        QSystemTrayIcon,
    )
except Exception as exc:  # pragma: no cover
    raise SystemExit(f"PySide6 is required to run the desktop app: {exc}")

logger = logging.getLogger(__name__)


def _create_icon(color: str = "#888888", size: int = 22) -> QIcon:
    """Generate a simple circular tray icon with the given color."""
    pixmap = QPixmap(QSize(size, size))
    pixmap.fill(QColor(0, 0, 0, 0))
    painter = QPainter(pixmap)
    painter.setRenderHint(QPainter.Antialiasing, True)
    painter.setBrush(QBrush(QColor(color)))
    painter.setPen(QColor(color))
    painter.drawEllipse(2, 2, size - 4, size - 4)
    painter.end()
    return QIcon(pixmap)


ICON_IDLE = "#888888"       # grey
ICON_RUNNING = "#33BB55"    # green
ICON_RECORDING = "#FF8800"  # orange

IMAGE_FILTER = "Images (*.png *.jpg *.jpeg *.gif *.svg)"


def _qt_modifiers(mods: "Qt.KeyboardModifier") -> FrozenSet[Modifier]:
    # Qt reports Command as Control and Control as Meta on macOS.
    cmd_flag, ctrl_flag = Qt.MetaModifier, Qt.ControlModifier
    if sys.platform == "darwin":
        cmd_flag, ctrl_flag = Qt.ControlModifier, Qt.MetaModifier
    result = set()
    if mods & cmd_flag:
        result.add(Modifier.CMD)
    if mods & Qt.AltModifier:
        result.add(Modifier.OPT)
    if mods & Qt.ShiftModifier:
        result.add(Modifier.SHIFT)
    if mods & ctrl_flag:
        result.add(Modifier.CTRL)
    return frozenset(result)


def _own_window_focused() -> bool:
    # Key presses then reach KeyEventFilter instead.
    return QGuiApplication.focusWindow() is not None


class KeyEventFilter(QObject):
    """Feeds key presses aimed at our own windows into the consuming sink."""

    def __init__(self, sink: KeySink) -> None:
        super().__init__()
        self._sink = sink

    def eventFilter(self, obj: QObject, event: QEvent) -> bool:  # noqa: N802
        if event.type() != QEvent.KeyPress or not obj.isWindowType():
            return False
        return self._sink.observe(_qt_modifiers(event.modifiers()), event.nativeVirtualKey())


class App:
    def __init__(self) -> None:
        self.app = QApplication(sys.argv)
        self.app.setQuitOnLastWindowClosed(False)
        self.config_store = JsonConfigStore()
        self.settings = self.config_store.load()
        self.loop = QtEventLoop()

        self.tray = QSystemTrayIcon()
        self.tray.setIcon(_create_icon(ICON_IDLE))
        self.tray.setToolTip(f"{APP_NAME} — Ready")
        self.notifier = TrayNotifier(self.tray)

        self.overlay_window = OverlayWindow()
        self.overlay = OverlayState(self.overlay_window, self.settings, on_mode_change=self._on_overlay_mode)

        api_key = self.settings.resolve_api_key()
        self.classifier = DashscopeClassifier(api_key=api_key)
        self.speech = DashscopeSpeechSynthesizer(api_key=api_key)
        self.feedback = FeedbackDispatcher(
            notifier=self.notifier,
            speech=self.speech,
            player=SoundDeviceAudioPlayer(),
            overlay=self.overlay,
            settings=self.settings,
            loop=self.loop,
        )
        self.controller = SessionController(
            loop=self.loop,
            capture=QtScreenCapture(),
            pipeline=ClassificationPipeline(self.classifier, self.loop),
            feedback=self.feedback,
            overlay=self.overlay,
            notifier=self.notifier,
            settings=self.settings,
            on_state_change=self._on_state_change,
            on_tick=self._on_tick,
            on_counts=self._on_counts,
            on_summary=self._on_summary,
        )

        self.matcher = ShortcutMatcher(
            loop=self.loop,
            on_toggle=self.overlay.toggle,
            binding=self.settings.binding(),
            on_binding_changed=self._on_binding_changed,
            on_recording_change=self._on_recording_change,
        )
        self.key_filter = KeyEventFilter(ConsumingKeySink(self.matcher))
        self.app.installEventFilter(self.key_filter)
        self.global_sink = ObservingKeySink(self.matcher, suppressed=_own_window_focused)
        self.global_keys = GlobalKeyListener()

        self._setup_menu()
        self.tray.show()

    # ------------------------------------------------------------------
    # Menu
    # ------------------------------------------------------------------

    def _setup_menu(self) -> None:
        menu = QMenu()

        self.start_action = QAction("Start Session", menu)
        self.start_action.triggered.connect(self._start_session)
        menu.addAction(self.start_action)

        self.stop_action = QAction("Stop Session", menu)
        self.stop_action.triggered.connect(self.controller.stop)
        self.stop_action.setEnabled(False)
        menu.addAction(self.stop_action)

        menu.addSeparator()
        toggle_action = QAction("Toggle Avatar", menu)
        toggle_action.triggered.connect(self.overlay.toggle)
        menu.addAction(toggle_action)

        self.shortcut_action = QAction("", menu)
        self.shortcut_action.triggered.connect(self._record_shortcut)
        menu.addAction(self.shortcut_action)
        self._refresh_shortcut_label()

        menu.addSeparator()
        settings_menu = menu.addMenu("Settings")
        self._add_action(settings_menu, "Work Instruction...", self._set_work_instruction)
        self._add_action(settings_menu, "AI Personality...", self._set_personality)
        self._add_action(settings_menu, "Timer (minutes)...", self._set_duration)
        self._add_action(settings_menu, "Check Interval (seconds)...", self._set_interval)
        settings_menu.addSeparator()

        speech_action = QAction("Voice Reminders", settings_menu)
        speech_action.setCheckable(True)
        speech_action.setChecked(self.settings.speech_enabled)
        speech_action.toggled.connect(self._set_speech_enabled)
        settings_menu.addAction(speech_action)

        voice_menu = settings_menu.addMenu("Voice")
        voice_group = QActionGroup(voice_menu)
        for name, voice_id in VOICE_OPTIONS:
            action = QAction(name, voice_menu)
            action.setCheckable(True)
            action.setChecked(voice_id == self.settings.voice_id)
            action.triggered.connect(lambda _=False, v=voice_id: self._set_voice(v))
            voice_group.addAction(action)
            voice_menu.addAction(action)

        overlay_action = QAction("Visual Assistant", settings_menu)
        overlay_action.setCheckable(True)
        overlay_action.setChecked(self.settings.overlay_enabled)
        overlay_action.toggled.connect(self._set_overlay_enabled)
        settings_menu.addAction(overlay_action)
        self._add_action(settings_menu, "Resting Image...", lambda: self._pick_image("resting_image_path"))
        self._add_action(settings_menu, "Talking Image...", lambda: self._pick_image("talking_image_path"))
        self._add_action(settings_menu, "Restore Default Images", self._restore_default_images)
        settings_menu.addSeparator()
        self._add_action(settings_menu, "Set API Key...", self._set_api_key)

        menu.addSeparator()
        self._add_action(menu, "Quit", self.quit)

        self._menu = menu
        self.tray.setContextMenu(menu)

    def _add_action(self, menu: QMenu, title: str, slot) -> QAction:  # noqa: ANN001
        action = QAction(title, menu)
        action.triggered.connect(slot)
        menu.addAction(action)
        return action

    def _refresh_shortcut_label(self) -> None:
        if self.matcher.recording:
            self.shortcut_action.setText("Press a shortcut...")
            return
        label = f"Avatar Shortcut: {display_string(self.matcher.binding)}"
        conflict = conflict_for(self.matcher.binding)
        if conflict:
            label += f" (may conflict with {conflict})"
        self.shortcut_action.setText(label)

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def _start_session(self) -> None:
        try:
            self.controller.start_from_settings()
        except LockInError as exc:
            QMessageBox.warning(None, APP_NAME, str(exc))

    def _on_state_change(self, from_state: SessionState, to_state: SessionState) -> None:
        running = to_state == SessionState.RUNNING
        self.start_action.setEnabled(not running)
        self.stop_action.setEnabled(running)
        if running:
            self.tray.setIcon(_create_icon(ICON_RUNNING))
        else:
            self.tray.setIcon(_create_icon(ICON_IDLE))
            self.tray.setToolTip(f"{APP_NAME} — Ready")

    def _on_tick(self, remaining_s: float) -> None:
        session = self.controller.session
        if session is None:
            return
        self.tray.setToolTip(
            f"{APP_NAME} — {format_time(remaining_s)} "
            f"(focused {session.focused_count}, distracted {session.distracted_count})"
        )

    def _on_counts(self, focused: int, distracted: int) -> None:
        logger.debug(f"Counts: focused={focused} distracted={distracted}")

    def _on_summary(self, summary: SessionSummary) -> None:
        logger.debug(f"Summary: {summary}")

    def _on_overlay_mode(self, from_mode: OverlayMode, to_mode: OverlayMode) -> None:
        logger.debug(f"Overlay {from_mode.value} -> {to_mode.value}")

    # ------------------------------------------------------------------
    # Shortcut
    # ------------------------------------------------------------------

    def _record_shortcut(self) -> None:
        try:
            self.matcher.begin_recording()
        except LockInError as exc:
            logger.info(str(exc))

    def _on_recording_change(self, active: bool) -> None:
        self.tray.setIcon(_create_icon(ICON_RECORDING if active else self._state_color()))
        self._refresh_shortcut_label()

    def _on_binding_changed(self, binding: ShortcutBinding) -> None:
        self.settings.set_binding(binding)
        self._save()
        self._refresh_shortcut_label()

    def _on_global_chord(self, modifiers: FrozenSet[Modifier], key_code: int) -> None:
        # pynput thread
        self.loop.call_soon_threadsafe(lambda: self._observe_global(modifiers, key_code))

    def _observe_global(self, modifiers: FrozenSet[Modifier], key_code: int) -> None:
        self.global_sink.observe(modifiers, key_code)

    def _state_color(self) -> str:
        return ICON_RUNNING if self.controller.state == SessionState.RUNNING else ICON_IDLE

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def _save(self) -> None:
        try:
            self.config_store.save(self.settings)
        except OSError as exc:
            logger.error(f"Failed to save settings: {exc}")

    def _set_work_instruction(self) -> None:
        value, ok = QInputDialog.getText(
            None, "Work Instruction", "What should you be working on?", text=self.settings.work_instruction
        )
        if ok:
            self.settings.work_instruction = value.strip()
            self._save()

    def _set_personality(self) -> None:
        value, ok = QInputDialog.getMultiLineText(
            None, "AI Personality", "How should reminders sound?", self.settings.personality_prompt
        )
        if ok:
            self.settings.personality_prompt = value.strip()
            self._save()

    def _set_duration(self) -> None:
        value, ok = QInputDialog.getInt(
            None, "Timer", "Session length (minutes)", self.settings.duration_minutes, 1, 600
        )
        if ok:
            self.settings.duration_minutes = value
            self._save()

    def _set_interval(self) -> None:
        value, ok = QInputDialog.getInt(
            None, "Check Interval", "Seconds between screen checks", self.settings.poll_interval_s, 5, 3600
        )
        if ok:
            self.settings.poll_interval_s = value
            self._save()

    def _set_speech_enabled(self, enabled: bool) -> None:
        self.settings.speech_enabled = enabled
        self._save()

    def _set_voice(self, voice_id: str) -> None:
        self.settings.voice_id = voice_id
        self._save()

    def _set_overlay_enabled(self, enabled: bool) -> None:
        self.settings.overlay_enabled = enabled
        if not enabled:
            self.overlay.hide()
        self._save()

    def _pick_image(self, field_name: str) -> None:
        path, _ = QFileDialog.getOpenFileName(None, "Choose Image", "", IMAGE_FILTER)
        if not path:
            return
        setattr(self.settings, field_name, path)
        self._save()
        if self.overlay.mode != OverlayMode.HIDDEN:
            self.overlay.show_resting()

    def _restore_default_images(self) -> None:
        self.settings.restore_default_images()
        self._save()
        if self.overlay.mode != OverlayMode.HIDDEN:
            self.overlay.show_resting()

    def _set_api_key(self) -> None:
        value, ok = QInputDialog.getText(None, "API Key", "DashScope API Key")
        if not ok:
            return
        self.settings.api_key = value.strip()
        self._save()
        api_key = self.settings.resolve_api_key()
        self.classifier.set_api_key(api_key)
        self.speech.set_api_key(api_key)
        QMessageBox.information(None, "Saved", "API Key saved and applied.")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(self) -> int:
        try:
            self.global_keys.start(self._on_global_chord)
        except Exception as exc:
            logger.warning(f"Global shortcut disabled: {exc}")
            self.notifier.notify(APP_NAME, f"Global shortcut disabled: {exc}")
        return self.app.exec()

    def quit(self) -> None:
        self.global_keys.stop()
        self.matcher.cancel_recording()
        self.controller.stop()
        self.overlay.hide()
        self.app.quit()


def main() -> int:
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format=config.LOG_FORMAT,
    )
    logging.getLogger("dashscope").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    app = App()
    return app.run()


if __name__ == "__main__":
    raise SystemExit(main())
