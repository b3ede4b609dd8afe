# loopguard/grammar.py
"""
Parsimonious PEG grammar for the supported JavaScript subset.

Conventions
-----------
* Rules never consume leading or trailing whitespace; separators are
  explicit: ``_`` is any whitespace/comments (newlines included) and
  ``sp`` is same-line whitespace only (used where a line break is
  significant, e.g. ``return`` arguments and ``async function``).
* ``eos`` implements automatic semicolon insertion: an explicit ``;``,
  a line break, a following ``}`` or end of input ends a statement.
* Operator precedence is *not* encoded in the grammar.  Binary operands
  are matched as a flat chain (``binary_expression``) and the parse-tree
  builder folds the chain by precedence.  This keeps parse trees shallow.
* Keywords are regex tokens guarded by ``(?![\\w$])`` so ``forEach`` is
  never read as ``for`` followed by ``Each``.
"""

from __future__ import annotations

from parsimonious.grammar import Grammar

RESERVED_WORDS: frozenset[str] = frozenset({
    "await", "break", "case", "catch", "class", "const", "continue",
    "debugger", "default", "delete", "do", "else", "enum", "export",
    "extends", "false", "finally", "for", "function", "if", "import", "in",
    "instanceof", "let", "new", "null", "return", "super", "switch", "this",
    "throw", "true", "try", "typeof", "var", "void", "while", "with",
    "yield",
})

_RESERVED_ALTERNATION = "|".join(sorted(RESERVED_WORDS, key=lambda w: (-len(w), w)))

JS_GRAMMAR_TEXT = r'''
    # ─────────────────────────────────────────────────────────────
    # Program
    # ─────────────────────────────────────────────────────────────

    program             = statement_list _
    statement_list      = (_ statement)*

    # ─────────────────────────────────────────────────────────────
    # Statements
    # ─────────────────────────────────────────────────────────────

    statement           = block
                        / variable_statement
                        / empty_statement
                        / function_declaration
                        / class_declaration
                        / if_statement
                        / for_await_of_statement
                        / for_in_statement
                        / for_of_statement
                        / for_statement
                        / while_statement
                        / do_while_statement
                        / continue_statement
                        / break_statement
                        / return_statement
                        / throw_statement
                        / try_statement
                        / switch_statement
                        / debugger_statement
                        / labeled_statement
                        / expression_statement

    block               = "{" statement_list _ "}"
    empty_statement     = ";"

    variable_statement  = variable_declaration eos
    variable_declaration = declaration_kind _ variable_declarator (_ "," _ variable_declarator)*
    declaration_kind    = VAR / LET / CONST
    variable_declarator = binding_target (_ "=" !"=" _ assignment_expression)?

    function_declaration = function_head _ identifier _ function_rest
    function_head       = async_prefix? FUNCTION generator_star?
    async_prefix        = ASYNC sp
    generator_star      = _ "*"
    function_rest       = "(" _ formal_parameters? _ ")" _ function_body
    function_body       = "{" statement_list _ "}"
    formal_parameters   = formal_parameter (_ "," _ formal_parameter)* (_ ",")?
    formal_parameter    = rest_element / binding_element

    class_declaration   = CLASS _ identifier class_tail
    class_tail          = class_heritage? _ "{" class_members _ "}"
    class_heritage      = _ EXTENDS _ left_hand_side_expression
    class_members       = (_ class_member)*
    class_member        = method_definition / class_field / empty_statement
    method_definition   = static_prefix? method_def
    class_field         = static_prefix? property_name (_ "=" !"=" _ assignment_expression)? eos
    static_prefix       = STATIC _

    if_statement        = IF _ "(" _ expression _ ")" _ statement else_clause?
    else_clause         = _ ELSE _ statement

    for_statement       = FOR _ "(" _ for_init? _ ";" _ expression? _ ";" _ expression? _ ")" _ statement
    for_init            = variable_declaration / expression
    for_in_statement    = FOR _ "(" _ for_binding _ IN _ expression _ ")" _ statement
    for_of_statement    = FOR _ "(" _ for_binding _ OF _ assignment_expression _ ")" _ statement
    for_await_of_statement = FOR _ AWAIT _ "(" _ for_binding _ OF _ assignment_expression _ ")" _ statement
    for_binding         = for_declaration / left_hand_side_expression
    for_declaration     = declaration_kind _ binding_target

    while_statement     = WHILE _ "(" _ expression _ ")" _ statement
    do_while_statement  = DO _ statement _ WHILE _ "(" _ expression _ ")" (_ ";")?

    continue_statement  = CONTINUE statement_label? eos
    break_statement     = BREAK statement_label? eos
    statement_label     = sp identifier
    return_statement    = RETURN same_line_expression? eos
    throw_statement     = THROW same_line_expression eos
    same_line_expression = sp expression

    try_statement       = TRY _ block catch_clause? finally_clause?
    catch_clause        = _ CATCH catch_parameter? _ block
    catch_parameter     = _ "(" _ binding_target _ ")"
    finally_clause      = _ FINALLY _ block

    switch_statement    = SWITCH _ "(" _ expression _ ")" _ "{" switch_cases _ "}"
    switch_cases        = (_ switch_case)*
    switch_case         = case_label statement_list
    case_label          = case_test / default_test
    case_test           = CASE _ expression _ ":"
    default_test        = DEFAULT _ ":"

    debugger_statement  = DEBUGGER eos
    labeled_statement   = identifier _ ":" _ statement
    expression_statement = !statement_start_guard expression eos
    statement_start_guard = "{" / FUNCTION / CLASS / (ASYNC sp FUNCTION) / (LET _ "[")

    # ─────────────────────────────────────────────────────────────
    # Automatic semicolon insertion
    # ─────────────────────────────────────────────────────────────

    eos                 = explicit_semicolon / line_break_eos / brace_eos / end_eos
    explicit_semicolon  = _ ";"
    line_break_eos      = sp line_terminator
    brace_eos           = _ &"}"
    end_eos             = _ end_of_input
    line_terminator     = ~r"(?://[^\n\r]*)?[\n\r]"
    end_of_input        = !~r"[\s\S]"

    # ─────────────────────────────────────────────────────────────
    # Binding patterns
    # ─────────────────────────────────────────────────────────────

    binding_target      = object_pattern / array_pattern / identifier
    binding_element     = binding_target (_ "=" !"=" _ assignment_expression)?
    rest_element        = "..." _ binding_target

    object_pattern      = "{" _ pattern_properties? _ "}"
    pattern_properties  = pattern_property (_ "," _ pattern_property)* (_ ",")?
    pattern_property    = rest_element / keyed_pattern_property / binding_element
    keyed_pattern_property = property_name _ ":" _ binding_element

    array_pattern       = "[" _ array_pattern_item? (_ "," _ array_pattern_item?)* _ "]"
    array_pattern_item  = rest_element / binding_element

    # ─────────────────────────────────────────────────────────────
    # Expressions
    # ─────────────────────────────────────────────────────────────

    expression          = assignment_expression (_ "," _ assignment_expression)*

    assignment_expression = arrow_function
                        / yield_expression
                        / assignment
                        / conditional_expression

    assignment          = left_hand_side_expression _ assignment_operator _ assignment_expression
    assignment_operator = ~r">>>=|<<=|>>=|\*\*=|&&=|\|\|=|\?\?=|[-+*/%&|^]=|=(?![=>])"

    arrow_function      = async_prefix? arrow_parameters sp "=>" _ arrow_body
    arrow_parameters    = identifier / parenthesized_parameters
    parenthesized_parameters = "(" _ formal_parameters? _ ")"
    arrow_body          = function_body / assignment_expression

    yield_expression    = YIELD yield_delegate? yield_argument?
    yield_delegate      = _ "*"
    yield_argument      = sp assignment_expression

    conditional_expression = binary_expression conditional_tail?
    conditional_tail    = _ "?" _ assignment_expression _ ":" _ assignment_expression

    binary_expression   = unary_expression (_ binary_operator _ unary_expression)*
    binary_operator     = ~r"(?:(?:\?\?|\|\||&&|===|!==|==|!=|<=|>=|>>>|<<|>>|\*\*|instanceof(?![\w$])|in(?![\w$])|[*/%<>&|^])(?![=])|\+(?![+=])|-(?![-=]))"

    unary_expression    = prefix_expression / await_expression / postfix_expression
    prefix_expression   = prefix_operator _ unary_expression
    prefix_operator     = ~r"\+\+|--|typeof(?![\w$])|void(?![\w$])|delete(?![\w$])|[!~+-]"
    await_expression    = AWAIT _ unary_expression
    postfix_expression  = left_hand_side_expression postfix_operator?
    postfix_operator    = sp ~r"\+\+|--"

    left_hand_side_expression = lhs_head lhs_tail*
    lhs_head            = new_expression / primary_expression
    lhs_tail            = _ (optional_chain / dot_member / computed_member / arguments / template_literal)

    new_expression      = NEW _ new_callee new_arguments?
    new_callee          = (new_expression / primary_expression) new_callee_tail*
    new_callee_tail     = _ (dot_member / computed_member / template_literal)
    new_arguments       = _ arguments

    dot_member          = ~r"\.(?![.\d])" _ property_identifier
    computed_member     = "[" _ expression _ "]"
    optional_chain      = ~r"\?\.(?!\d)" _ (arguments / computed_member / property_identifier)
    property_identifier = identifier_name / private_name
    private_name        = ~r"#(?:[^\W\d]|\$)[\w$]*"

    arguments           = "(" _ argument_list? _ ")"
    argument_list       = argument (_ "," _ argument)* (_ ",")?
    argument            = spread_element / assignment_expression
    spread_element      = "..." _ assignment_expression

    # ─────────────────────────────────────────────────────────────
    # Primary expressions
    # ─────────────────────────────────────────────────────────────

    primary_expression  = this_expression
                        / super_expression
                        / function_expression
                        / class_expression
                        / keyword_literal
                        / numeric_literal
                        / string_literal
                        / template_literal
                        / regex_literal
                        / array_literal
                        / object_literal
                        / parenthesized_expression
                        / identifier

    this_expression     = ~r"this(?![\w$])"
    super_expression    = ~r"super(?![\w$])"
    function_expression = function_head function_name? _ function_rest
    function_name       = _ identifier
    class_expression    = CLASS class_name? class_tail
    class_name          = _ identifier
    parenthesized_expression = "(" _ expression _ ")"

    array_literal       = "[" _ array_element? (_ "," _ array_element?)* _ "]"
    array_element       = spread_element / assignment_expression

    object_literal      = "{" _ property_definitions? _ "}"
    property_definitions = property_definition (_ "," _ property_definition)* (_ ",")?
    property_definition = spread_element
                        / keyed_property
                        / method_def
                        / shorthand_property
    keyed_property      = property_name _ ":" _ assignment_expression
    shorthand_property  = identifier !(_ "(")

    method_def          = accessor_method / async_method / generator_method / plain_method
    accessor_method     = accessor_kind _ property_name _ function_rest
    accessor_kind       = GET / SET
    async_method        = ASYNC sp method_star? property_name _ function_rest
    generator_method    = "*" _ property_name _ function_rest
    plain_method        = property_name _ function_rest
    method_star         = "*" _

    property_name       = identifier_name / string_literal / numeric_literal / computed_property_name / private_name
    computed_property_name = "[" _ assignment_expression _ "]"

    # ─────────────────────────────────────────────────────────────
    # Literals
    # ─────────────────────────────────────────────────────────────

    keyword_literal     = ~r"(?:true|false|null)(?![\w$])"
    numeric_literal     = ~r"(?:0[xX][0-9a-fA-F_]+|0[oO][0-7_]+|0[bB][01_]+|(?:\d[\d_]*(?:\.[\d_]*)?|\.\d[\d_]*)(?:[eE][+-]?\d[\d_]*)?)n?(?![\w$])"
    string_literal      = ~r'"(?:[^"\\\n\r]|\\[\s\S])*"' / ~r"'(?:[^'\\\n\r]|\\[\s\S])*'"
    regex_literal       = ~r"/(?![*/])(?:\\.|\[(?:\\.|[^\]\\\n\r])*\]|[^/\\\[\n\r])+/[A-Za-z]*"

    template_literal    = "`" template_span* "`"
    template_span       = template_substitution / template_chars
    template_substitution = "${" _ expression _ "}"
    template_chars      = ~r"(?:\\[\s\S]|\$(?!\{)|[^`\\$])+"

    # ─────────────────────────────────────────────────────────────
    # Identifiers & keywords
    # ─────────────────────────────────────────────────────────────

    identifier          = !reserved_word identifier_name
    identifier_name     = ~r"(?:[^\W\d]|\$)[\w$]*"
    reserved_word       = ~r"(?:RESERVED)(?![\w$])"

    ASYNC               = ~r"async(?![\w$])"
    AWAIT               = ~r"await(?![\w$])"
    BREAK               = ~r"break(?![\w$])"
    CASE                = ~r"case(?![\w$])"
    CATCH               = ~r"catch(?![\w$])"
    CLASS               = ~r"class(?![\w$])"
    CONST               = ~r"const(?![\w$])"
    CONTINUE            = ~r"continue(?![\w$])"
    DEBUGGER            = ~r"debugger(?![\w$])"
    DEFAULT             = ~r"default(?![\w$])"
    DO                  = ~r"do(?![\w$])"
    ELSE                = ~r"else(?![\w$])"
    EXTENDS             = ~r"extends(?![\w$])"
    FINALLY             = ~r"finally(?![\w$])"
    FOR                 = ~r"for(?![\w$])"
    FUNCTION            = ~r"function(?![\w$])"
    GET                 = ~r"get(?![\w$])"
    IF                  = ~r"if(?![\w$])"
    IN                  = ~r"in(?![\w$])"
    LET                 = ~r"let(?![\w$])"
    NEW                 = ~r"new(?![\w$])"
    OF                  = ~r"of(?![\w$])"
    RETURN              = ~r"return(?![\w$])"
    SET                 = ~r"set(?![\w$])"
    STATIC              = ~r"static(?![\w$])"
    SWITCH              = ~r"switch(?![\w$])"
    THROW               = ~r"throw(?![\w$])"
    TRY                 = ~r"try(?![\w$])"
    VAR                 = ~r"var(?![\w$])"
    WHILE               = ~r"while(?![\w$])"
    YIELD               = ~r"yield(?![\w$])"

    # ─────────────────────────────────────────────────────────────
    # Whitespace & comments
    # ─────────────────────────────────────────────────────────────

    _                   = ~r"(?:\s+|//[^\n\r]*|/\*[\s\S]*?\*/)*"
    sp                  = ~r"(?:[ \t\f\v]+|/\*(?:(?!\*/)[^\n\r])*\*/)*"
'''.replace("RESERVED", _RESERVED_ALTERNATION)

JS_GRAMMAR = Grammar(JS_GRAMMAR_TEXT)
"""Compiled grammar; the default rule is ``program``."""


__all__ = ["JS_GRAMMAR", "JS_GRAMMAR_TEXT", "RESERVED_WORDS"]
