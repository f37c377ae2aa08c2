"""Source augmentation engine: decode stack trace arguments from Go sources."""


def __getattr__(name):
    """Lazy import so the data model is usable without loading tree-sitter."""

    if name in ("Arg", "Args", "Call", "Goroutine", "split_func"):
        from .models import Arg, Args, Call, Goroutine, split_func
        return locals()[name]

    if name == "Augmenter":
        from .augment import Augmenter
        return Augmenter

    if name in ("SourceCache", "SourceFileEntry"):
        from .source_cache import SourceCache, SourceFileEntry
        return locals()[name]

    if name in ("ArgumentDecoder", "DecodeResult", "format_value", "format_float"):
        from .decoder import ArgumentDecoder, DecodeResult, format_float, format_value
        return locals()[name]

    if name in ("locate", "enclosing_function"):
        from .locator import enclosing_function, locate
        return locals()[name]

    if name in ("build_line_offsets", "offset_for_line"):
        from .line_index import build_line_offsets, offset_for_line
        return locals()[name]

    if name == "base_name":
        from .type_names import base_name
        return base_name

    if name == "create_parser":
        from .languages import create_parser
        return create_parser

    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


__all__ = [
    "Arg",
    "Args",
    "Call",
    "Goroutine",
    "split_func",
    "Augmenter",
    "SourceCache",
    "SourceFileEntry",
    "ArgumentDecoder",
    "DecodeResult",
    "format_value",
    "format_float",
    "locate",
    "enclosing_function",
    "build_line_offsets",
    "offset_for_line",
    "base_name",
    "create_parser",
]
