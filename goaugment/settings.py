"""Runtime settings for source augmentation, read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


def _env_bool(name: str, default: str = "0") -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: str) -> int:
    try:
        return int(os.environ.get(name, default).strip())
    except ValueError:
        return int(default)


def _env_str(name: str, default: str = "") -> str:
    return os.environ.get(name, default)


@dataclass(frozen=True)
class AugmentSettings:
    source_suffix: str = ".go"
    # Width of int, uint and uintptr on the target that crashed.
    word_bits: int = 64
    max_file_bytes: int = 8 * 1024 * 1024
    prefer_frame_signature: bool = True
    allow_syntax_errors: bool = False
    grammar_dir: Optional[Path] = None
    max_workers: int = 4

    @staticmethod
    def load() -> "AugmentSettings":
        word_bits = _env_int("GOAUGMENT_WORD_BITS", "64")
        if word_bits not in (32, 64):
            word_bits = 64
        grammar_dir = _env_str("GOAUGMENT_GRAMMAR_DIR", "").strip()

        return AugmentSettings(
            source_suffix=_env_str("GOAUGMENT_SOURCE_SUFFIX", ".go").strip() or ".go",
            word_bits=word_bits,
            max_file_bytes=max(1, _env_int("GOAUGMENT_MAX_FILE_BYTES", str(8 * 1024 * 1024))),
            prefer_frame_signature=_env_bool("GOAUGMENT_PREFER_FRAME_SIGNATURE", "1"),
            allow_syntax_errors=_env_bool("GOAUGMENT_ALLOW_SYNTAX_ERRORS", "0"),
            grammar_dir=Path(grammar_dir) if grammar_dir else None,
            max_workers=max(1, _env_int("GOAUGMENT_MAX_WORKERS", "4")),
        )


DEFAULT_SETTINGS = AugmentSettings()
