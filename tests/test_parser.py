## stackterm — Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import pytest

from stackterm import parser
from stackterm.errors import ScriptParseError, ScriptIncompleteParse
from stackterm.statements import (SourceLocation, Literal, Load, Store, Invoke, Call,
                                  Conditional, WhileLoop, FunctionDef)


COMMANDS = {'add', 'print', 'dup', 'mul', '+', '-', '<='}

def _parse(source: str):
    return parser.parse(source, COMMANDS, filename="<test>")


def test_literals_become_pushes():
    program = _parse('42 -7 3.5 "hi there" true false')
    assert all(isinstance(s, Literal) for s in program)
    assert [s.value for s in program] == [42, -7, 3.5, "hi there", True, False]
    assert type(program[0].value) is int
    assert type(program[2].value) is float
    assert type(program[4].value) is bool


def test_string_escapes_are_decoded():
    [stmt] = _parse(r'"say \"hi\"\n"')
    assert stmt.value == 'say "hi"\n'


def test_words_resolve_to_commands_or_variables():
    program = _parse('x add + - <= counter')
    assert [type(s) for s in program] == [Load, Invoke, Invoke, Invoke, Invoke, Load]
    assert [s.name for s in program] == ['x', 'add', '+', '-', '<=', 'counter']


def test_without_commands_every_word_is_a_load():
    program = parser.parse('add print')
    assert [type(s) for s in program] == [Load, Load]


def test_store_and_call_markers():
    program = _parse('=x @f @ call')
    assert program[0] == Store('x', SourceLocation(1, 1))
    assert program[1] == Call('f', SourceLocation(1, 4))
    assert program[2] == Call(None, SourceLocation(1, 7))
    assert program[3] == Call(None, SourceLocation(1, 9))


def test_statements_carry_line_and_column():
    program = _parse('1\n  foo\n    "s"')
    assert [s.location for s in program] == [SourceLocation(1, 1), SourceLocation(2, 3), SourceLocation(3, 5)]


def test_comments_are_ignored():
    program = _parse('1 # the rest is ignored "x" then\n2')
    assert [s.value for s in program] == [1, 2]


def test_keyword_prefixes_are_plain_words():
    program = _parse('iffy ending done')
    assert [type(s) for s in program] == [Load, Load, Load]


def test_conditional_with_elif_and_else():
    [stmt] = _parse('if x then 1 elif y then 2 else 3 end')
    assert isinstance(stmt, Conditional)
    assert len(stmt.branches) == 2
    first, second = stmt.branches
    assert [s.name for s in first.condition] == ['x']
    assert [s.value for s in first.body] == [1]
    assert [s.name for s in second.condition] == ['y']
    assert [s.value for s in second.body] == [2]
    assert [s.value for s in stmt.otherwise] == [3]


def test_conditional_without_else_has_no_otherwise():
    [stmt] = _parse('if true then end')
    assert stmt.otherwise is None
    assert stmt.branches[0].body == ()


def test_conditional_with_empty_else_keeps_it():
    [stmt] = _parse('if true then 1 else end')
    assert stmt.otherwise == ()


def test_while_loop():
    [stmt] = _parse('while x 3 <= do x print end')
    assert isinstance(stmt, WhileLoop)
    assert [type(s) for s in stmt.condition] == [Load, Literal, Invoke]
    assert [type(s) for s in stmt.body] == [Load, Invoke]


def test_named_and_anonymous_functions():
    named, anonymous = _parse('def sq dup mul end fn 1 end')
    assert isinstance(named, FunctionDef) and named.name == 'sq'
    assert [s.name for s in named.body] == ['dup', 'mul']
    assert isinstance(anonymous, FunctionDef) and anonymous.name is None
    assert [s.value for s in anonymous.body] == [1]


def test_nested_bodies():
    [stmt] = _parse('def f while true do if false then fn end end end end')
    [loop] = stmt.body
    [cond] = loop.body
    [inner] = cond.branches[0].body
    assert isinstance(inner, FunctionDef) and inner.body == ()


def test_keywords_are_reserved_outside_blocks():
    with pytest.raises(ScriptParseError) as info:
        _parse('1 then 2')
    assert not isinstance(info.value, ScriptIncompleteParse)
    assert info.value.line == 1
    assert info.value.column == 3
    assert info.value.token == 'then'


def test_unterminated_block_is_incomplete():
    with pytest.raises(ScriptIncompleteParse):
        _parse('if true then 1')


def test_unexpected_character_is_located():
    with pytest.raises(ScriptParseError) as info:
        _parse('1\n2 "open')
    assert info.value.line == 2
    assert info.value.filename == "<test>"


def test_source_context_highlights_the_token():
    text = parser.format_source_context('<test>', 2, 3, 'then', source='1\n2 then\n3\n')
    assert 'line 2' in text
    assert '2 |' in text and 'then' in text


@pytest.mark.parametrize("source", ['"\\N"', '"\\N{NOT A NAME}"', '"\\u12"', '"\\x4"'])
def test_bad_escape_is_a_located_parse_error(source):
    with pytest.raises(ScriptParseError) as info:
        _parse('1\n  ' + source)
    assert not isinstance(info.value, ScriptIncompleteParse)
    assert (info.value.line, info.value.column) == (2, 3)
    assert info.value.token == source
    assert info.value.filename == "<test>"


def test_strings_cannot_span_lines():
    with pytest.raises(ScriptParseError) as info:
        _parse('"a\nb"')
    assert info.value.line == 1


def test_escaped_newline_is_allowed():
    [stmt] = _parse('"a\\nb"')
    assert stmt.value == "a\nb"
