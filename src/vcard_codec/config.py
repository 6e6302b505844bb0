from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

REV_TIME_STYLES = ("colon", "dash")
MAX_NESTING_LIMIT = 100  # keeps recursive descent well inside the interpreter stack


@dataclass(frozen=True)
class CodecSettings:
    max_nesting_depth: int = 8      # embedded AGENT vCards below the top level
    rev_time_style: str = "colon"   # REV times as HH:MM:SS ("colon") or HH-MM-SS ("dash")
    fold_width: int | None = 75     # None keeps binary bodies on one line

    def __post_init__(self) -> None:
        if self.rev_time_style not in REV_TIME_STYLES:
            raise ValueError(
                f"rev_time_style must be one of {REV_TIME_STYLES}, got {self.rev_time_style!r}"
            )
        if not 0 <= self.max_nesting_depth <= MAX_NESTING_LIMIT:
            raise ValueError(f"max_nesting_depth must be between 0 and {MAX_NESTING_LIMIT}")
        if self.fold_width is not None and self.fold_width < 2:
            raise ValueError("fold_width must be at least 2")

    @property
    def rev_time_separator(self) -> str:
        return ":" if self.rev_time_style == "colon" else "-"


DEFAULT_SETTINGS = CodecSettings()


def load_settings(conf_file: Path | None) -> CodecSettings:
    """Read settings from a TOML file, falling back to defaults.

    ``fold_width = 0`` disables folding. A missing file gives the defaults;
    a malformed one is reported and also gives the defaults.
    """
    if conf_file is None or not conf_file.exists():
        return DEFAULT_SETTINGS
    try:
        data = tomllib.loads(conf_file.read_text(encoding="utf-8"))
        fold_width = data.get("fold_width", DEFAULT_SETTINGS.fold_width)
        return CodecSettings(
            max_nesting_depth=int(data.get("max_nesting_depth", DEFAULT_SETTINGS.max_nesting_depth)),
            rev_time_style=str(data.get("rev_time_style", DEFAULT_SETTINGS.rev_time_style)),
            fold_width=int(fold_width) or None,
        )
    except (tomllib.TOMLDecodeError, TypeError, ValueError) as exc:
        logger.warning("%s: ignoring malformed settings (%s)", conf_file, exc)
        return DEFAULT_SETTINGS
