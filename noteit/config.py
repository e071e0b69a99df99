from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from PySide6.QtCore import QSettings
from PySide6.QtGui import QFont

from noteit.settings import DEFAULT_NOTES_DIR

THEMES = ("system", "light", "dark")
FONTS = ("system", "mono", "serif", "sans-serif", "custom")

FONT_SIZE_DEFAULT = 15
FONT_SIZE_MIN = 8
FONT_SIZE_MAX = 48


@dataclass(frozen=True)
class SettingsKeys:
    UI_GEOMETRY: str = "ui/geometry"
    APPEARANCE_THEME: str = "appearance/theme"
    APPEARANCE_FONT: str = "appearance/font"
    APPEARANCE_FONT_SIZE: str = "appearance/font_size"
    APPEARANCE_CUSTOM_FONT: str = "appearance/custom_font"
    NOTES_DIR: str = "store/notes_dir"


def get_str(settings: QSettings, key: str, default: str) -> str:
    try:
        val = settings.value(key, default)
        return str(val) if val is not None else default
    except Exception:
        return default


def get_int(settings: QSettings, key: str, default: int) -> int:
    try:
        return int(settings.value(key, default))
    except Exception:
        return default


def normalize_theme(name: str) -> str:
    name = (name or "").strip().lower()
    return name if name in THEMES else "system"


def normalize_font(name: str) -> str:
    name = (name or "").strip().lower()
    return name if name in FONTS else "system"


def normalize_font_size(size: int | str) -> int:
    try:
        size_i = int(size)
    except Exception:
        return FONT_SIZE_DEFAULT
    return max(FONT_SIZE_MIN, min(FONT_SIZE_MAX, size_i))


@dataclass(frozen=True)
class AppearanceSettings:
    theme: str = "system"
    font: str = "system"
    font_size: int = FONT_SIZE_DEFAULT
    custom_font: str = ""

    @classmethod
    def load(cls, settings: QSettings) -> "AppearanceSettings":
        return cls(
            theme=normalize_theme(get_str(settings, SettingsKeys.APPEARANCE_THEME, "system")),
            font=normalize_font(get_str(settings, SettingsKeys.APPEARANCE_FONT, "system")),
            font_size=normalize_font_size(
                get_int(settings, SettingsKeys.APPEARANCE_FONT_SIZE, FONT_SIZE_DEFAULT)
            ),
            custom_font=get_str(settings, SettingsKeys.APPEARANCE_CUSTOM_FONT, "").strip(),
        )


def editor_font(appearance: AppearanceSettings) -> QFont:
    """Map appearance settings to the editor QFont. Unknown custom names fall back to the system font."""
    font = QFont()
    font.setPointSize(appearance.font_size)
    if appearance.font == "mono":
        font.setStyleHint(QFont.StyleHint.Monospace)
        font.setFamily("monospace")
    elif appearance.font == "serif":
        font.setStyleHint(QFont.StyleHint.Serif)
        font.setFamily("serif")
    elif appearance.font == "sans-serif":
        font.setStyleHint(QFont.StyleHint.SansSerif)
        font.setFamily("sans-serif")
    elif appearance.font == "custom" and appearance.custom_font:
        font.setFamily(appearance.custom_font)
    return font


def notes_dir(settings: QSettings) -> Path:
    raw = get_str(settings, SettingsKeys.NOTES_DIR, "").strip()
    return Path(raw).expanduser() if raw else DEFAULT_NOTES_DIR
