"""goaugment: render Go crash report arguments as typed values using the program source."""

from .core.models import Arg, Args, Call, Goroutine
from .diagnostics import CollectingSink, Diagnostic, LoggingSink, NullSink, configure_logging
from .settings import AugmentSettings


def __getattr__(name):
    # The engine needs tree-sitter; the data model and diagnostics do not.
    if name == "Augmenter":
        from .core.augment import Augmenter
        return Augmenter

    if name == "SourceCache":
        from .core.source_cache import SourceCache
        return SourceCache

    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


__all__ = [
    "Arg",
    "Args",
    "Augmenter",
    "AugmentSettings",
    "Call",
    "CollectingSink",
    "Diagnostic",
    "Goroutine",
    "LoggingSink",
    "NullSink",
    "SourceCache",
    "configure_logging",
]
