from __future__ import annotations

from goaugment.core.ast_utils import node_text
from goaugment.core.line_index import build_line_offsets
from goaugment.core.locator import enclosing_function, locate

CLOSURE_SOURCE = b"""package main

func main() {
	f := func(n int) {
		panic(n)
	}
	f(7)
}
"""


def test_locates_call_statement(parse, main_source):
    root = parse(main_source).root_node
    offsets = build_line_offsets(main_source)
    for line, text in ((4, "panic(s)"), (8, "bar(s, 1)"), (12, 'foo("ooh")')):
        node = locate(root, offsets[line])
        assert node is not None
        assert node.start_byte >= offsets[line]
        assert node_text(node).startswith(text)


def test_locates_function_declaration_on_its_line(parse, main_source):
    root = parse(main_source).root_node
    offsets = build_line_offsets(main_source)
    node = locate(root, offsets[11])
    assert node.type == "function_declaration"
    assert node_text(node.child_by_field_name("name")) == "main"


def test_first_match_in_preorder(parse):
    src = b"package main\n\nfunc f() {\n\ta(b(1))\n}\n"
    root = parse(src).root_node
    node = locate(root, build_line_offsets(src)[4])
    # The statement (or its list) comes before the nested calls in pre-order.
    assert node.type in ("statement_list", "expression_statement")
    assert node_text(node).startswith("a(b(1))")


def test_skips_comments(parse):
    src = b"package main\n\nfunc f() {\n\t// note\n\tg()\n}\n"
    root = parse(src).root_node
    node = locate(root, build_line_offsets(src)[4])
    assert node.type != "comment"
    assert "g()" in node_text(node)


def test_no_match_past_end(parse, main_source):
    root = parse(main_source).root_node
    assert locate(root, len(main_source) + 10) is None


def test_enclosing_function(parse, main_source):
    root = parse(main_source).root_node
    offsets = build_line_offsets(main_source)
    fn = enclosing_function(root, offsets[8])
    assert fn.type == "function_declaration"
    assert node_text(fn.child_by_field_name("name")) == "foo"
    assert enclosing_function(root, offsets[2]) is None


def test_enclosing_function_prefers_innermost_literal(parse):
    root = parse(CLOSURE_SOURCE).root_node
    offsets = build_line_offsets(CLOSURE_SOURCE)
    assert enclosing_function(root, offsets[5]).type == "func_literal"
    outer = enclosing_function(root, offsets[7])
    assert outer.type == "function_declaration"
