from __future__ import annotations

import pytest

from goaugment.core.ast_utils import node_text
from goaugment.core.errors import UnclassifiableArgumentError
from goaugment.core.scope import PARAMETER, VALUE, resolve_declaration

SOURCE = b"""package main

var limit int64 = 5
var name string
var loose = 3

func helper() {}

func params(s string, p *T) {
	use(s, p)
}

func locals(items []int) {
	var count uint8
	x := 1
	use(count, x)
	for _, item := range items {
		use(item)
	}
	if v := get(); v > 0 {
		use(v)
	}
}

func globals() {
	use(limit, name, loose, helper)
}

func captured(s string) {
	f := func() {
		use(s)
	}
	f()
}

func shadowed(s string) {
	var s2 string
	{
		var s int
		use(s, s2)
	}
}
"""


def _identifiers(root, call_line):
    """Identifier arguments of the first call starting on ``call_line`` (1-based)."""
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "call_expression" and node.start_point[0] + 1 == call_line:
            args = node.child_by_field_name("arguments")
            return {node_text(a): a for a in args.named_children if a.type == "identifier"}
        stack.extend(reversed(node.children))
    raise AssertionError(f"no call on line {call_line}")


@pytest.fixture
def root(parse):
    return parse(SOURCE).root_node


def test_parameters(root):
    idents = _identifiers(root, 10)
    decl = resolve_declaration(idents["s"])
    assert decl.kind == PARAMETER
    assert node_text(decl.type_node) == "string"
    assert node_text(resolve_declaration(idents["p"]).type_node) == "*T"


def test_local_var_declaration_is_a_value(root):
    decl = resolve_declaration(_identifiers(root, 16)["count"])
    assert decl.kind == VALUE
    assert node_text(decl.type_node) == "uint8"


def test_short_variable_declaration_is_unclassifiable(root):
    with pytest.raises(UnclassifiableArgumentError, match="short variable"):
        resolve_declaration(_identifiers(root, 16)["x"])


def test_range_and_if_bindings_are_unclassifiable(root):
    with pytest.raises(UnclassifiableArgumentError):
        resolve_declaration(_identifiers(root, 18)["item"])
    with pytest.raises(UnclassifiableArgumentError):
        resolve_declaration(_identifiers(root, 21)["v"])


def test_package_level_values(root):
    idents = _identifiers(root, 26)
    assert node_text(resolve_declaration(idents["limit"]).type_node) == "int64"
    assert node_text(resolve_declaration(idents["name"]).type_node) == "string"
    with pytest.raises(UnclassifiableArgumentError, match="without an explicit type"):
        resolve_declaration(idents["loose"])
    with pytest.raises(UnclassifiableArgumentError, match="no parameter or value"):
        resolve_declaration(idents["helper"])


def test_closure_capture_is_unclassifiable(root):
    with pytest.raises(UnclassifiableArgumentError, match="closure"):
        resolve_declaration(_identifiers(root, 31)["s"])


def test_inner_block_shadows_parameter(root):
    idents = _identifiers(root, 40)
    assert node_text(resolve_declaration(idents["s"]).type_node) == "int"
    assert node_text(resolve_declaration(idents["s2"]).type_node) == "string"


BRANCHES_SOURCE = b"""package main

func sw(x int, k int) {
	switch k {
	case 1:
		x := 2
		_ = x
	case 2:
		use(x)
	}
}

func branch(x int, c bool) {
	if c {
		x := 3
		_ = x
	} else {
		use(x)
	}
}

func headers(x int, ch chan int) {
	switch x := x + 1; x {
	case 1:
		use(x)
	}
	select {
	case x := <-ch:
		use(x)
	}
	for x := 0; x < 3; x++ {
		use(x)
	}
}
"""


@pytest.fixture
def branches(parse):
    return parse(BRANCHES_SOURCE).root_node


@pytest.mark.parametrize("line", [9, 18], ids=["later_switch_case", "else_branch"])
def test_binding_in_sibling_branch_does_not_hide_parameter(branches, line):
    decl = resolve_declaration(_identifiers(branches, line)["x"])
    assert decl.kind == PARAMETER
    assert node_text(decl.type_node) == "int"


@pytest.mark.parametrize("line", [25, 29, 32], ids=["switch_initializer", "select_receive", "for_initializer"])
def test_header_bindings_are_unclassifiable(branches, line):
    with pytest.raises(UnclassifiableArgumentError, match="clause"):
        resolve_declaration(_identifiers(branches, line)["x"])
