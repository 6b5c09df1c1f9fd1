## stackterm — Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import json

import pytest

from stackterm import codec
from stackterm.runtime import Runtime
from stackterm.interpreter import Context
from stackterm.errors import ScriptCodecError
from stackterm.statements import Literal, Branch, Conditional


SESSION = '''
def sq dup * end
def pick if dup 0 < then drop "neg" elif true then drop "pos" end end
fn 1 + end =inc
1 2.0 "text" true
3 =x
'''


def test_empty_context():
    assert Runtime().new_context().serialize() == {'version': codec.FORMAT_VERSION, 'variables': {}, 'stack': []}


def test_context_survives_json():
    rt = Runtime()
    ctx = rt.new_context()
    rt.submit(SESSION, ctx)

    data = json.loads(json.dumps(ctx.serialize()))
    restored = rt.restore(data)
    assert restored.values() == ctx.values()
    assert restored.variables == ctx.variables
    assert type(restored.values()[1]) is float
    assert type(restored.values()[3]) is bool


def test_restored_functions_run():
    rt = Runtime()
    ctx = rt.new_context()
    rt.submit(SESSION, ctx)

    restored = rt.loads(rt.dumps(ctx))
    assert restored.commands is not ctx.commands
    rt.submit('clear-stack 3 @sq 4 @inc -1 @pick', restored)
    assert restored.values() == [9, 5, "neg"]


def test_missing_else_differs_from_empty_else():
    without = Conditional((Branch((Literal(True),), ()),))
    empty = Conditional((Branch((Literal(True),), ()),), otherwise=())
    assert codec.decode_statement(codec.encode_statement(without)).otherwise is None
    assert codec.decode_statement(codec.encode_statement(empty)).otherwise == ()


def test_value_tags():
    assert codec.encode_value(True) == {'type': 'boolean', 'value': True}
    assert codec.encode_value(1) == {'type': 'number', 'value': 1}
    assert codec.encode_value("s") == {'type': 'string', 'value': "s"}


def test_unsupported_value():
    with pytest.raises(ScriptCodecError):
        codec.encode_value([1, 2])


@pytest.mark.parametrize("data", [
    {'version': 99, 'variables': {}, 'stack': []},
    {'variables': {}, 'stack': []},
    {'version': 1, 'variables': {}},
    {'version': 1, 'variables': [], 'stack': []},
    {'version': 1, 'variables': {}, 'stack': [{'type': 'complex', 'value': 1}]},
    {'version': 1, 'variables': {}, 'stack': [{'type': 'number', 'value': True}]},
    {'version': 1, 'variables': {}, 'stack': [{'type': 'string', 'value': 3}]},
    {'version': 1, 'variables': {}, 'stack': [{'type': 'function', 'body': [{'type': 'goto'}]}]},
    [],
])
def test_malformed_state_is_rejected(data):
    with pytest.raises(ScriptCodecError):
        Context.deserialize(data)


def test_invalid_json():
    with pytest.raises(ScriptCodecError):
        Runtime().loads("{not json")
