# tests/test_codegen.py
"""
Tests for code generation: syntax tree → JavaScript source.
Verifies the output layout and that it parses back to the same shape.
"""

import pytest

from loopguard.ast_nodes import Node, Program, ExpressionStatement, Identifier
from loopguard.codegen import CodeEmitter, generate
from loopguard.errors import GenerationError
from loopguard.parser import parse
from tests.conftest import (
    LOOP_SNIPPETS, NESTED_LOOPS, SIBLING_LOOPS, NO_LOOPS, MIXED_PROGRAM,
    LABELLED_LOOPS, SINGLE_LINE_WHILE,
)


def _gen(src: str) -> str:
    """Parse + generate."""
    return generate(parse(src))


class TestCodeGenRoundTrip:
    """Generated code must parse, and re-generating it must be stable."""

    @pytest.mark.parametrize("src", [
        NESTED_LOOPS, SIBLING_LOOPS, NO_LOOPS, MIXED_PROGRAM, LABELLED_LOOPS,
        SINGLE_LINE_WHILE, *LOOP_SNIPPETS.values(),
    ])
    def test_output_reparses_stably(self, src):
        once = _gen(src)
        twice = _gen(once)
        assert once == twice


class TestCodeGenStatements:

    def test_empty_program(self):
        assert _gen("") == ""

    def test_for_header(self):
        assert _gen("for(let i=0;i<3;i++){}") == "for (let i = 0; i < 3; i++) {}"

    def test_for_header_empty_parts(self):
        assert _gen("for (;;) {}") == "for (;;) {}"
        assert _gen("for (; i < n;) {}") == "for (; i < n;) {}"

    def test_for_of_and_await(self):
        assert _gen("for (const x of xs) {}") == "for (const x of xs) {}"
        code = _gen("async function f() { for await (const x of xs) {} }")
        assert "for await (const x of xs) {}" in code

    def test_block_body(self):
        assert _gen("while (x) { a(); b(); }") == "while (x) {\n  a();\n  b();\n}"

    def test_single_statement_body(self):
        assert _gen("while (x) a();") == "while (x)\n  a();"

    def test_do_while_joins_brace(self):
        assert _gen("do { a() } while (x)") == "do {\n  a();\n} while (x);"

    def test_if_else_chain(self):
        code = _gen("if (a) { b(); } else if (c) { d(); } else { e(); }")
        assert code == (
            "if (a) {\n  b();\n} else if (c) {\n  d();\n} else {\n  e();\n}"
        )

    def test_try_catch_finally(self):
        code = _gen("try { a(); } catch (e) { b(); } finally { c(); }")
        assert code == "try {\n  a();\n} catch (e) {\n  b();\n} finally {\n  c();\n}"

    def test_switch(self):
        code = _gen("switch (x) { case 1: a(); break; default: b(); }")
        assert code == (
            "switch (x) {\n  case 1:\n    a();\n    break;\n  default:\n    b();\n}"
        )

    def test_label(self):
        assert _gen("outer: for (;;) { break outer; }") == "outer: for (;;) {\n  break outer;\n}"

    def test_semicolons_inserted(self):
        assert _gen("let a = 1\nlet b = 2") == "let a = 1;\nlet b = 2;"

    def test_class(self):
        code = _gen("class A extends B { static x = 1; get y() { return 2 } }")
        assert code == (
            "class A extends B {\n  static x = 1;\n  get y() {\n    return 2;\n  }\n}"
        )

    def test_indent_width(self):
        tree = parse("while (x) { a(); }")
        assert generate(tree, indent=4) == "while (x) {\n    a();\n}"


class TestCodeGenExpressions:

    @pytest.mark.parametrize("src", [
        "a + b * c;",
        "(a + b) * c;",
        "a ** b ** c;",
        "x = a ? b : c;",
        "a - -b;",
        "+ +a;",
        "typeof x === \"string\";",
        "void 0;",
        "delete o[k];",
        "a?.b?.[c]?.(d);",
        "new Foo();",
        "new Foo;",
        "tag`a${b}c`;",
        "/ab+c/gi.test(s);",
        "[a, , b];",
        "x = [...xs, 1];",
        "(1).toString();",
        "f(...args);",
        "x ??= y;",
        "a in b;",
        "a instanceof B;",
        "i++, j--;",
    ])
    def test_expression_preserved(self, src):
        assert _gen(src) == src

    def test_object_inline(self):
        assert _gen("x = {a: 1, b, [c]: d};") == "x = { a: 1, b, [c]: d };"

    def test_object_statement_position_keeps_parens(self):
        assert _gen("({ a } = b);") == "({ a } = b);"

    def test_function_expression_body(self):
        code = _gen("f(function (x) { return x; });")
        assert code == "f(function (x) {\n  return x;\n});"

    def test_arrow_function(self):
        assert _gen("const f = x => x * 2;") == "const f = (x) => x * 2;"
        assert _gen("const g = () => ({});") == "const g = () => ({});"

    def test_arrow_block_nested_indent(self):
        code = _gen("if (a) { run(() => { go(); }); }")
        assert code == "if (a) {\n  run(() => {\n    go();\n  });\n}"

    def test_multiline_template_not_reindented(self):
        src = "if (a) {\n  s = `line1\nline2`;\n}"
        assert _gen(src) == src

    def test_string_literal_raw_kept(self):
        assert _gen("s = 'single';") == "s = 'single';"


class TestCodeGenErrors:

    def test_unknown_node_raises(self):
        class Bogus(Node):
            pass

        with pytest.raises(GenerationError):
            generate(Program(body=[Bogus()]))

    def test_expression_in_statement_list_raises(self):
        with pytest.raises(GenerationError):
            generate(Program(body=[Identifier("x")]))

    def test_statement_in_expression_slot_raises(self):
        stmt = ExpressionStatement(ExpressionStatement(Identifier("x")))
        with pytest.raises(GenerationError):
            generate(Program(body=[stmt]))


class TestCodeEmitter:

    def test_indentation(self):
        emitter = CodeEmitter("  ")
        emitter.emit("a {")
        with emitter.indented():
            emitter.emit("b;")
        emitter.emit("}")
        assert emitter.getvalue() == "a {\n  b;\n}"

    def test_label_prefix_consumed_once(self):
        emitter = CodeEmitter("  ")
        emitter.label("l: ")
        emitter.emit("x;")
        emitter.emit("y;")
        assert emitter.getvalue() == "l: x;\ny;"

    def test_extend_last(self):
        emitter = CodeEmitter()
        emitter.emit("}")
        emitter.extend_last(" else {}")
        assert emitter.getvalue() == "} else {}"
