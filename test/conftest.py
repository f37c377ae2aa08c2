from __future__ import annotations

import pytest

from goaugment.core.languages import create_parser
from goaugment.core.models import Arg, Args, Call, Goroutine
from goaugment.diagnostics import CollectingSink

MAIN_SOURCE = b"""package main

func bar(s string, i int) {
	panic(s)
}

func foo(s string) {
	bar(s, 1)
}

func main() {
	foo("ooh")
}
"""


class CountingParser:
    """Wraps a real parser and counts parse() calls."""

    def __init__(self, parser) -> None:
        self._parser = parser
        self.calls = 0

    def parse(self, data):
        self.calls += 1
        return self._parser.parse(data)


@pytest.fixture(scope="session")
def go_parser():
    return create_parser()


@pytest.fixture
def parse(go_parser):
    def _parse(src):
        if isinstance(src, str):
            src = src.encode()
        return go_parser.parse(src)

    return _parse


@pytest.fixture
def sink() -> CollectingSink:
    return CollectingSink()


@pytest.fixture
def main_crash():
    def _build(path: str = "/root/main.go"):
        return [
            Goroutine(
                id=1,
                state="running",
                stack=[
                    Call(path, 4, "main.bar", Args(values=[Arg(0x43080), Arg(0x3), Arg(0x1)])),
                    Call(path, 8, "main.foo", Args(values=[Arg(0x43080), Arg(0x3)])),
                    Call(path, 12, "main.main"),
                ],
            )
        ]

    return _build


@pytest.fixture
def main_source() -> bytes:
    return MAIN_SOURCE


@pytest.fixture
def counting_parser(go_parser) -> CountingParser:
    return CountingParser(go_parser)
