"""Augmentation errors.

These never escape the public operations: the decoder turns them into a
failed DecodeResult and the source cache into an unusable entry.
"""

from __future__ import annotations


class AugmentError(Exception):
    """Base class for augmentation failures.

    Attributes:
        reason: Why the operation failed
        path: Source file involved, if known
        line: Line number involved, 0 if unknown
    """

    def __init__(self, reason: str, *, path: str = "", line: int = 0) -> None:
        self.reason = reason
        self.path = path
        self.line = line
        super().__init__(reason)


class SourceUnavailableError(AugmentError):
    """Source file could not be read or parsed."""


class UnsupportedShapeError(AugmentError):
    """A syntax node or type expression outside the decoding rules."""


class WordCountError(AugmentError):
    """Fewer raw words remain than the type rule needs."""

    def __init__(self, type_name: str, needed: int, available: int) -> None:
        self.type_name = type_name
        self.needed = needed
        self.available = available
        super().__init__(f"{type_name} needs {needed} word(s), {available} left")


class UnclassifiableArgumentError(AugmentError):
    """An argument whose declaration is neither a parameter nor a typed value spec."""
