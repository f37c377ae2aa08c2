"""Go grammar loader for tree-sitter.

Resolution order for the grammar:
1) the ``tree_sitter_go`` provider module (recommended for tree_sitter>=0.22)
2) a local ``tree-sitter-go.so`` loaded via ctypes from a grammar directory
   (``GOAUGMENT_GRAMMAR_DIR`` or the ``grammar_dir`` setting)
"""

from __future__ import annotations

import ctypes
import functools
import os
from pathlib import Path
from typing import Optional

from tree_sitter import Language, Parser  # type: ignore

PROVIDER_MODULE = "tree_sitter_go"
LANGUAGE_FUNC = "tree_sitter_go"
LOCAL_SO_NAME = "tree-sitter-go.so"


@functools.lru_cache(maxsize=None)
def go_language(grammar_dir: Optional[str] = None) -> Language:
    """Return the Go Language. Languages are immutable and shared by parsers."""
    errors = []

    try:
        mod = __import__(PROVIDER_MODULE)
        if hasattr(mod, "language"):
            return Language(mod.language())
        errors.append(f"provider_module({PROVIDER_MODULE}) has no language()")
    except Exception as e:
        errors.append(f"provider_module({PROVIDER_MODULE}) failed: {e!r}")

    lib_dir = grammar_dir or os.environ.get("GOAUGMENT_GRAMMAR_DIR", "")
    if lib_dir:
        so_path = Path(lib_dir) / LOCAL_SO_NAME
        if so_path.exists():
            try:
                return _load_language_from_so(so_path)
            except Exception as e:
                errors.append(f"local_so({so_path}) failed: {e!r}")
        else:
            errors.append(f"local_so({so_path}) not found")

    detail = "; ".join(errors) if errors else "no detailed error captured"
    raise RuntimeError(f"No Go grammar available. Details: {detail}")


def create_parser(grammar_dir: Optional[Path] = None) -> Parser:
    """Create a fresh Go parser. Parsers are not thread-safe; do not share them unlocked."""
    language = go_language(str(grammar_dir) if grammar_dir else None)
    parser = Parser()
    if hasattr(parser, "set_language"):
        parser.set_language(language)  # tree_sitter<=0.21
    else:
        parser.language = language  # tree_sitter>=0.22
    return parser


def _load_language_from_so(so_path: Path) -> Language:
    lib = ctypes.CDLL(str(so_path))
    if not hasattr(lib, LANGUAGE_FUNC):
        raise RuntimeError(f"Grammar library missing symbol: {LANGUAGE_FUNC}")
    func = getattr(lib, LANGUAGE_FUNC)
    func.restype = ctypes.c_void_p
    ptr = func()
    if not ptr:
        raise RuntimeError(f"Failed to obtain TSLanguage* from {LANGUAGE_FUNC}")
    return Language(ptr)
