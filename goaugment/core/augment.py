"""Augment parsed goroutine stacks with decoded argument values."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional

from ..diagnostics import NOT_LOCATABLE, Diagnostic, DiagnosticSink, LoggingSink
from ..settings import DEFAULT_SETTINGS, AugmentSettings
from .decoder import FAILED, SKIPPED, ArgumentDecoder, DecodeResult, frame_matches, skipped
from .locator import enclosing_function, locate
from .models import Call, Goroutine
from .source_cache import SourceCache

logger = logging.getLogger(__name__)


class Augmenter:
    """Decodes call arguments using the Go sources referenced by the frames.

    One Augmenter (and its SourceCache) serves one crash report. Calls are
    modified in place: ``call.args.processed`` is replaced for every call that
    could be matched to its source, and left alone otherwise.
    """

    def __init__(
        self,
        cache: Optional[SourceCache] = None,
        *,
        settings: Optional[AugmentSettings] = None,
        sink: Optional[DiagnosticSink] = None,
    ) -> None:
        self.settings = settings or (cache.settings if cache is not None else DEFAULT_SETTINGS)
        self.sink = sink or LoggingSink()
        self.cache = cache if cache is not None else SourceCache(self.settings, sink=self.sink)
        self.decoder = ArgumentDecoder(self.settings, sink=self.sink)

    def augment(self, goroutines: Iterable[Goroutine]) -> None:
        for goroutine in goroutines:
            self._augment_goroutine(goroutine)

    def augment_concurrently(self, goroutines: Iterable[Goroutine], max_workers: Optional[int] = None) -> None:
        """Same as augment() with one task per goroutine; the cache is shared."""
        with ThreadPoolExecutor(max_workers=max_workers or self.settings.max_workers) as pool:
            for future in [pool.submit(self._augment_goroutine, g) for g in goroutines]:
                future.result()

    def augment_call(self, call: Call) -> DecodeResult:
        try:
            result = self._decode(call)
        except Exception:
            logger.exception("Unexpected failure augmenting %s:%d", call.source_path, call.line)
            return DecodeResult(FAILED, reason="internal error")
        if result.status != SKIPPED:
            call.args.processed = list(result.processed)
        return result

    # Private stuff.

    def _augment_goroutine(self, goroutine: Goroutine) -> List[DecodeResult]:
        return [self.augment_call(call) for call in goroutine.stack]

    def _decode(self, call: Call) -> DecodeResult:
        if not self.cache.handles(call.source_path):
            # C and assembly frames.
            return skipped("not a Go source")
        entry = self.cache.parsed(call.source_path)
        if entry is None:
            return skipped("source unavailable")
        offset = entry.offset_for_line(call.line)
        node = locate(entry.root, offset) if offset is not None else None
        if node is None:
            self.sink.emit(
                Diagnostic(
                    kind=NOT_LOCATABLE,
                    message=f"no syntax node at or after line {call.line}",
                    path=call.source_path,
                    line=call.line,
                    func=call.func,
                )
            )
            return skipped("call site not found")
        if self.settings.prefer_frame_signature:
            fn = enclosing_function(entry.root, offset)
            if fn is not None and frame_matches(fn, call):
                return self.decoder.decode_signature(fn, call.args.values, call=call)
        return self.decoder.decode(node, call.args.values, call=call)
