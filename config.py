"""JSON-backed settings store and app-wide constants."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from models import DEFAULT_BINDING, Modifier, ShortcutBinding

logger = logging.getLogger(__name__)

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

APP_NAME = "Lock In"
DISTRACTION_TITLE = "Lock In Pls!"
SUMMARY_TITLE = "Session Complete!"

# (display name, DashScope CosyVoice voice id)
VOICE_OPTIONS = [
    ("Man 1", "longcheng"),
    ("Woman 1", "longxiaochun"),
    ("Man 2", "longshu"),
    ("Woman 2", "longwan"),
]

ASSETS_DIR = Path(__file__).resolve().parent / "assets"
DEFAULT_RESTING_IMAGE = str(ASSETS_DIR / "avatar-resting.svg")
DEFAULT_TALKING_IMAGE = str(ASSETS_DIR / "avatar-talking.svg")


@dataclass
class AppSettings:
    duration_minutes: int = 25
    poll_interval_s: int = 30
    work_instruction: str = ""
    personality_prompt: str = "Be encouraging but firm."
    speech_enabled: bool = True
    overlay_enabled: bool = True
    resting_image_path: str = DEFAULT_RESTING_IMAGE
    talking_image_path: str = DEFAULT_TALKING_IMAGE
    voice_id: str = "longxiaochun"
    shortcut_modifiers: List[str] = field(default_factory=lambda: ["cmd", "opt"])
    shortcut_key_code: int = 9
    api_key: str = ""

    @property
    def overlay_ready(self) -> bool:
        return self.overlay_enabled and bool(self.resting_image_path) and bool(self.talking_image_path)

    def restore_default_images(self) -> None:
        self.resting_image_path = DEFAULT_RESTING_IMAGE
        self.talking_image_path = DEFAULT_TALKING_IMAGE

    def binding(self) -> ShortcutBinding:
        """Saved shortcut, or the default chord when the stored one is unusable."""
        known = {m.value for m in Modifier}
        mods = frozenset(
            Modifier(m) for m in self.shortcut_modifiers if isinstance(m, str) and m in known
        )
        key_code = self.shortcut_key_code
        if not mods or isinstance(key_code, bool) or not isinstance(key_code, int) or key_code <= 0:
            logger.warning(
                f"Ignoring saved shortcut {self.shortcut_modifiers!r}+{key_code!r}, using the default"
            )
            return DEFAULT_BINDING
        return ShortcutBinding(mods, key_code, bound_at=0.0)

    def set_binding(self, binding: ShortcutBinding) -> None:
        order = [m.value for m in Modifier]
        self.shortcut_modifiers = sorted((m.value for m in binding.modifiers), key=order.index)
        self.shortcut_key_code = binding.key_code

    def resolve_api_key(self) -> str:
        return self.api_key or os.getenv("DASHSCOPE_API_KEY", "")


class JsonConfigStore:
    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = path or Path.home() / ".config" / "lockin" / "config.json"
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def load(self) -> AppSettings:
        data = self._read_all()
        settings = AppSettings()
        for f in fields(AppSettings):
            if f.name not in data:
                continue
            value = data[f.name]
            default = getattr(settings, f.name)
            if isinstance(default, bool) != isinstance(value, bool):
                logger.warning(f"Ignoring setting {f.name}: unexpected value {value!r}")
                continue
            if not isinstance(value, type(default)):
                logger.warning(f"Ignoring setting {f.name}: unexpected value {value!r}")
                continue
            setattr(settings, f.name, value)
        if not settings.resting_image_path:
            settings.resting_image_path = DEFAULT_RESTING_IMAGE
        if not settings.talking_image_path:
            settings.talking_image_path = DEFAULT_TALKING_IMAGE
        return settings

    def save(self, settings: AppSettings) -> None:
        self._write_all(asdict(settings))

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning(f"Could not read settings from {self._path}: {exc}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        self._path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
