"""Diagnostics emitted while augmenting calls.

Diagnostics are informational: they tell an operator why a call was left
un-augmented or only partially decoded. Library callers pick where they go by
passing a sink to the Augmenter; the default sink forwards them to logging.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


READ_FAILED = "read_failed"
PARSE_FAILED = "parse_failed"
NOT_LOCATABLE = "not_locatable"
DECODE_FAILED = "decode_failed"
UNCLASSIFIABLE = "unclassifiable"
NOTE = "note"


class Diagnostic(BaseModel):
    """A single augmentation diagnostic."""

    model_config = ConfigDict(frozen=True)

    kind: str = Field(..., description="read_failed, parse_failed, not_locatable, decode_failed, unclassifiable or note")
    message: str = Field(..., description="Human readable explanation")
    path: str = Field(default="", description="Source file the diagnostic refers to")
    line: int = Field(default=0, description="Line number (1-indexed), 0 when not tied to a line")
    func: str = Field(default="", description="Fully qualified function of the frame, if any")
    severity: str = Field(default="info", description="Severity: debug, info or warning")

    def __str__(self) -> str:
        where = f"{self.path}:{self.line}" if self.line else self.path
        prefix = f"{where}: " if where else ""
        return f"{prefix}{self.kind}: {self.message}"


class DiagnosticSink:
    """Receives diagnostics. Subclasses override emit()."""

    def emit(self, diagnostic: Diagnostic) -> None:
        raise NotImplementedError


class NullSink(DiagnosticSink):
    def emit(self, diagnostic: Diagnostic) -> None:
        return None


class LoggingSink(DiagnosticSink):
    _LEVELS = {
        "debug": logging.DEBUG,
        "info": logging.INFO,
        "warning": logging.WARNING,
    }

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or logging.getLogger("goaugment")

    def emit(self, diagnostic: Diagnostic) -> None:
        self._logger.log(self._LEVELS.get(diagnostic.severity, logging.INFO), "%s", diagnostic)


class CollectingSink(DiagnosticSink):
    """Keeps every diagnostic in memory; safe to share between workers."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.diagnostics: List[Diagnostic] = []

    def emit(self, diagnostic: Diagnostic) -> None:
        with self._lock:
            self.diagnostics.append(diagnostic)

    def of_kind(self, kind: str) -> List[Diagnostic]:
        with self._lock:
            return [d for d in self.diagnostics if d.kind == kind]


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(
    name: str = "goaugment",
    *,
    verbose: bool = False,
    log_file: str = "",
    fmt: str = LOG_FORMAT,
) -> logging.Logger:
    """Attach a stream handler, and a file handler when ``log_file`` is set, to logger ``name``.

    Existing handlers of that logger are replaced, so calling this twice does
    not duplicate output. The file handler always records debug output.
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)

    formatter = logging.Formatter(fmt)
    ch = logging.StreamHandler()
    ch.setLevel(logging.DEBUG if verbose else logging.INFO)
    ch.setFormatter(formatter)
    logger.addHandler(ch)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(formatter)
        logger.addHandler(fh)
    return logger
