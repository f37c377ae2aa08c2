"""Crash report data structures augmented in place."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List


@dataclass
class Arg:
    """One raw machine word as printed in the crash report."""

    value: int
    name: str = ""


@dataclass
class Args:
    values: List[Arg] = field(default_factory=list)
    # Decoded values; may be shorter than values since a string takes two words.
    processed: List[str] = field(default_factory=list)


@dataclass
class Call:
    source_path: str
    line: int
    func: str
    args: Args = field(default_factory=Args)

    @property
    def func_name(self) -> str:
        """Trailing name of the function: ``bar`` for ``main.bar``, ``M`` for ``pkg.(*T).M``."""
        return split_func(self.func)[2]

    @property
    def receiver(self) -> str:
        """Receiver type name of a method frame (``T`` for ``pkg.(*T).M``), else empty."""
        return split_func(self.func)[1]


@dataclass
class Goroutine:
    stack: List[Call] = field(default_factory=list)
    id: int = 0
    state: str = ""


def split_func(qualified: str):
    """Split ``path/to/pkg.(*T).M`` into ``("path/to/pkg", "T", "M")``.

    Closures keep their compiler-assigned suffix as the name, so
    ``main.main.func1`` splits into ``("main", "main", "func1")``; the middle
    part is then the enclosing function rather than a receiver. Generic
    instantiation markers (``[...]``) are dropped.
    """
    qualified = qualified.replace("[...]", "")
    slash = qualified.rfind("/")
    head, tail = qualified[: slash + 1], qualified[slash + 1 :]
    parts = tail.split(".")
    if len(parts) == 1:
        return "", "", parts[0]
    pkg = head + parts[0]
    name = parts[-1]
    middle = ".".join(parts[1:-1])
    if middle.startswith("(") and middle.endswith(")"):
        middle = middle[1:-1]
    middle = middle.lstrip("*")
    return pkg, middle, name
