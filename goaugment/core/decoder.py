"""Type-driven decoding of the raw argument words printed in a stack trace.

The Go runtime prints each frame's arguments as a flat list of machine words.
Knowing the declared types lets us regroup them: a string is a pointer word
followed by a length word, a float is a bit pattern, an integer may be signed.
"""

from __future__ import annotations

import math
import re
import struct
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple

from tree_sitter import Node as TSNode  # type: ignore

from ..diagnostics import DECODE_FAILED, NOTE, UNCLASSIFIABLE, Diagnostic, DiagnosticSink, LoggingSink
from ..settings import DEFAULT_SETTINGS, AugmentSettings
from .ast_utils import first_named, named_non_comment, node_text
from .errors import AugmentError, UnclassifiableArgumentError, UnsupportedShapeError, WordCountError
from .models import Arg, Call
from .scope import declared_names, parameter_declarations, resolve_declaration
from .type_names import base_name, receiver_type_name

OK = "ok"
SKIPPED = "skipped"
FAILED = "failed"

UNCLASSIFIABLE_MARKER = "<unclassifiable>"

LITERAL_KINDS = {
    "int_literal",
    "float_literal",
    "imaginary_literal",
    "rune_literal",
    "interpreted_string_literal",
    "raw_string_literal",
    "true",
    "false",
    "nil",
    "iota",
}
# Embedded in the call text or computed at the call site; the runtime prints no word for them.
NOT_IN_DUMP_KINDS = LITERAL_KINDS | {"binary_expression", "call_expression"}

CALL_WRAPPER_KINDS = {"expression_statement", "go_statement", "defer_statement"}
STATEMENT_LIST_KINDS = {"statement_list", "block"}
FUNCTION_DECL_KINDS = {"function_declaration", "method_declaration"}

# name -> (bits, signed); 0 bits means the target word size.
INTEGER_KINDS = {
    "int": (0, True),
    "int8": (8, True),
    "int16": (16, True),
    "int32": (32, True),
    "int64": (64, True),
    "rune": (32, True),
    "uint": (0, False),
    "uint8": (8, False),
    "uint16": (16, False),
    "uint32": (32, False),
    "uint64": (64, False),
    "uintptr": (0, False),
    "byte": (8, False),
}

_CLOSURE_NAME = re.compile(r"(func)?\d+")


@dataclass(frozen=True)
class DecodeResult:
    status: str
    processed: Tuple[str, ...] = ()
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.status == OK


def skipped(reason: str) -> DecodeResult:
    return DecodeResult(SKIPPED, reason=reason)


def word_count(type_name: str) -> int:
    return 2 if type_name == "string" else 1


def format_value(type_name: str, words: Sequence[int], word_bits: int = 64) -> Tuple[str, int]:
    """Format the leading words of ``words`` as ``type_name``; return (text, words consumed)."""
    need = word_count(type_name)
    if len(words) < need:
        raise WordCountError(type_name, need, len(words))
    word = words[0]
    if type_name == "error":
        return "error", 1
    if type_name == "float32":
        return format_float(_float32_from_bits(word), 32), 1
    if type_name == "float64":
        return format_float(_float64_from_bits(word), 64), 1
    if type_name in INTEGER_KINDS:
        bits, signed = INTEGER_KINDS[type_name]
        return format_int(word, bits or word_bits, signed), 1
    if type_name == "string":
        return f"string(0x{word:x}, {words[1]})", 2
    return f"{type_name}(0x{word:x})", 1


def format_int(word: int, bits: int, signed: bool) -> str:
    word &= (1 << bits) - 1
    if signed and word >= 1 << (bits - 1):
        word -= 1 << bits
    return str(word)


def format_float(value: float, bits: int = 64) -> str:
    """Shortest round-trip form, laid out like Go's ``%g``."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    digits, exp = _shortest_digits(value, bits)
    if -4 <= exp < 6:
        return "%.*f" % (max(0, digits - 1 - exp), value)
    mantissa = "%.*e" % (digits - 1, value)
    return f"{mantissa.split('e')[0]}e{exp:+03d}"


def frame_matches(fn: TSNode, call: Call) -> bool:
    """Whether ``fn`` is the function the frame ``call`` was executing."""
    name = call.func_name
    if fn.type == "func_literal":
        return bool(_CLOSURE_NAME.fullmatch(name))
    name_node = fn.child_by_field_name("name")
    if name_node is None or node_text(name_node) != name:
        return False
    if fn.type == "method_declaration":
        return receiver_type_name(fn) == call.receiver
    return True


class ArgumentDecoder:
    def __init__(self, settings: AugmentSettings = DEFAULT_SETTINGS, *, sink: Optional[DiagnosticSink] = None) -> None:
        self.settings = settings
        self._sink = sink or LoggingSink()

    def decode(self, node: TSNode, values: Sequence[Arg], *, call: Optional[Call] = None) -> DecodeResult:
        """Decode the call site located at ``node``. Never raises."""
        processed: List[str] = []
        try:
            status, reason = self._dispatch(node, values, processed, call)
        except AugmentError as e:
            return self._failed(e, processed, call)
        return DecodeResult(status, tuple(processed), reason)

    def decode_signature(self, fn: TSNode, values: Sequence[Arg], *, call: Optional[Call] = None) -> DecodeResult:
        """Decode ``values`` against the formal parameters of ``fn``, receiver first."""
        processed: List[str] = []
        try:
            cursor = 0
            for name, param, type_node in _signature(fn):
                if param.type == "variadic_parameter_declaration":
                    raise UnclassifiableArgumentError(f"{name or 'parameter'} is a variadic parameter")
                cursor += self._append(base_name(type_node), values, cursor, processed)
        except AugmentError as e:
            return self._failed(e, processed, call)
        return DecodeResult(OK, tuple(processed))

    # Private stuff.

    def _dispatch(self, node: TSNode, values: Sequence[Arg], processed: List[str], call: Optional[Call]):
        kind = node.type
        if kind in STATEMENT_LIST_KINDS:
            inner = first_named(node)
            if inner is None:
                raise UnsupportedShapeError(f"empty {kind}")
            return self._dispatch(inner, values, processed, call)
        if kind in CALL_WRAPPER_KINDS:
            inner = first_named(node)
            if inner is None or inner.type != "call_expression":
                raise UnsupportedShapeError(f"{kind} wrapping {inner.type if inner is not None else 'nothing'}")
            node, kind = inner, inner.type
        if kind == "call_expression":
            self._decode_call(node, values, processed, call)
            return OK, ""
        if kind in FUNCTION_DECL_KINDS:
            self._describe_params(node, call)
            return SKIPPED, "function declaration"
        raise UnsupportedShapeError(f"unexpected statement {kind}")

    def _decode_call(self, node: TSNode, values: Sequence[Arg], processed: List[str], call: Optional[Call]) -> None:
        fn = node.child_by_field_name("function")
        self._note(f"call {node_text(fn) if fn is not None else '?'} with {len(values)} word(s)", call)
        arguments = node.child_by_field_name("arguments")
        if arguments is None:
            return
        cursor = 0
        for arg in named_non_comment(arguments):
            if arg.type == "identifier":
                decl = resolve_declaration(arg)
                cursor += self._append(base_name(decl.type_node), values, cursor, processed)
            elif arg.type in NOT_IN_DUMP_KINDS:
                self._note(f"{arg.type} argument {node_text(arg)} is not in the dump", call)
            else:
                raise UnsupportedShapeError(f"unexpected argument {arg.type}: {node_text(arg)}")

    def _describe_params(self, fn: TSNode, call: Optional[Call]) -> None:
        name_node = fn.child_by_field_name("name")
        self._note(f"function declaration {node_text(name_node) if name_node is not None else '?'}", call)
        for name, _, type_node in _signature(fn):
            shape = type_node.type if type_node is not None else "?"
            text = node_text(type_node) if type_node is not None else ""
            self._note(f"parameter {name or '_'}: {text} ({shape})", call)

    def _append(self, type_name: str, values: Sequence[Arg], cursor: int, processed: List[str]) -> int:
        words = [v.value for v in values[cursor : cursor + word_count(type_name)]]
        text, used = format_value(type_name, words, self.settings.word_bits)
        processed.append(text)
        return used

    def _failed(self, error: AugmentError, processed: List[str], call: Optional[Call]) -> DecodeResult:
        if isinstance(error, UnclassifiableArgumentError):
            processed.append(UNCLASSIFIABLE_MARKER)
            self._emit(UNCLASSIFIABLE, error.reason, call, "warning")
        else:
            self._emit(DECODE_FAILED, error.reason, call, "warning")
        return DecodeResult(FAILED, tuple(processed), error.reason)

    def _note(self, message: str, call: Optional[Call]) -> None:
        self._emit(NOTE, message, call, "debug")

    def _emit(self, kind: str, message: str, call: Optional[Call], severity: str) -> None:
        if call is None:
            self._sink.emit(Diagnostic(kind=kind, message=message, severity=severity))
            return
        self._sink.emit(
            Diagnostic(
                kind=kind,
                message=message,
                path=call.source_path,
                line=call.line,
                func=call.func,
                severity=severity,
            )
        )


def _signature(fn: TSNode) -> Iterator[Tuple[str, TSNode, Optional[TSNode]]]:
    """Yield (name, declaration, type) per logical parameter; unnamed parameters yield ''."""
    for param in parameter_declarations(fn):
        type_node = param.child_by_field_name("type")
        names = declared_names(param)
        for name in names or [""]:
            yield name, param, type_node


def _float32_from_bits(word: int) -> float:
    return struct.unpack("<f", struct.pack("<I", word & 0xFFFFFFFF))[0]


def _float64_from_bits(word: int) -> float:
    return struct.unpack("<d", struct.pack("<Q", word & 0xFFFFFFFFFFFFFFFF))[0]


def _shortest_digits(value: float, bits: int) -> Tuple[int, int]:
    """Fewest significant digits that read back to ``value``, and the decimal exponent."""
    for digits in range(1, 18):
        text = "%.*e" % (digits - 1, value)
        if _round_trips(float(text), value, bits):
            return digits, int(text.split("e")[1])
    text = "%.16e" % value
    return 17, int(text.split("e")[1])


def _round_trips(parsed: float, value: float, bits: int) -> bool:
    if bits == 64:
        return parsed == value
    try:
        return struct.unpack("<f", struct.pack("<f", parsed))[0] == value
    except OverflowError:
        return False
