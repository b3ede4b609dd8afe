# tests/test_grammar.py
"""
Tests that the JavaScript PEG grammar is well-formed and matches
fundamental constructs at the grammar level (before tree building).
"""

import pytest
from parsimonious.exceptions import ParseError, IncompleteParseError

from loopguard.grammar import JS_GRAMMAR_TEXT, RESERVED_WORDS


class TestGrammarWellFormed:

    def test_grammar_compiles(self, grammar):
        assert grammar is not None
        assert "program" in grammar

    def test_key_rules_present(self, grammar):
        for rule in ("program", "statement", "for_statement", "for_in_statement",
                     "for_of_statement", "for_await_of_statement", "while_statement",
                     "do_while_statement", "expression", "eos", "identifier"):
            assert rule in grammar, f"Rule {rule!r} missing"

    def test_reserved_placeholder_substituted(self):
        assert "RESERVED" not in JS_GRAMMAR_TEXT
        assert "instanceof" in JS_GRAMMAR_TEXT


class TestGrammarAtoms:

    def test_empty_input(self, grammar):
        assert grammar.parse("") is not None

    def test_comments_only(self, grammar):
        grammar.parse("// line\n/* block */\n")

    @pytest.mark.parametrize("lit", [
        "0", "42", "3.14", ".5", "1e10", "2.5E-3", "0xFF", "0o17", "0b1010",
        "1_000_000", "10n",
    ])
    def test_numeric_literals(self, grammar, lit):
        assert grammar["numeric_literal"].parse(lit).text == lit

    @pytest.mark.parametrize("lit", ['"hello"', "'world'", r'"escaped\"quote"', "''"])
    def test_string_literals(self, grammar, lit):
        grammar["string_literal"].parse(lit)

    @pytest.mark.parametrize("lit", ["`plain`", "`a ${b} c`", "`${x}${y}`", "`\\``"])
    def test_template_literals(self, grammar, lit):
        grammar["template_literal"].parse(lit)

    @pytest.mark.parametrize("lit", ["/ab+c/", "/[/]/g", r"/\d+/gi"])
    def test_regex_literals(self, grammar, lit):
        grammar["regex_literal"].parse(lit)

    @pytest.mark.parametrize("name", ["x", "foo_bar", "$el", "_priv", "forEach", "iffy", "of"])
    def test_identifier(self, grammar, name):
        assert grammar["identifier"].parse(name).text == name

    @pytest.mark.parametrize("word", sorted(RESERVED_WORDS))
    def test_identifier_rejects_reserved_words(self, grammar, word):
        with pytest.raises((ParseError, IncompleteParseError)):
            grammar["identifier"].parse(word)


class TestGrammarStatements:

    @pytest.mark.parametrize("src", [
        "for (let i = 0; i < 10; i++) {}",
        "for (;;) {}",
        "for (const k in obj) {}",
        "for (const v of list) {}",
        "for await (const v of stream) {}",
        "while (x) {}",
        "do {} while (x);",
        "while (x);",
    ])
    def test_loops(self, grammar, src):
        grammar["statement"].parse(src)

    def test_semicolon_insertion_at_newline(self, grammar):
        grammar.parse("let a = 1\nlet b = 2\n")

    def test_semicolon_insertion_before_brace(self, grammar):
        grammar.parse("function f() { return 1 }")

    def test_return_argument_must_share_line(self, grammar):
        # "return\nx" is a bare return followed by an expression statement
        tree = grammar.parse("function f() { return\nx }")
        assert tree is not None

    def test_missing_semicolon_in_for_header_fails(self, grammar):
        with pytest.raises((ParseError, IncompleteParseError)):
            grammar.parse("for (let i = 0 i < 10; i++) {}")

    def test_import_is_unsupported(self, grammar):
        with pytest.raises((ParseError, IncompleteParseError)):
            grammar.parse("import x from 'y';")

    def test_keyword_prefix_is_not_keyword(self, grammar):
        grammar.parse("forEach(x);\ndoThing();\nwhileLoop = 1;")
