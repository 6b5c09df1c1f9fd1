## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘
#
# Explicit, versioned encoding of context state into JSON-compatible data.
# Every variant is written as {"type": tag, ...fields}; commands are never
# stored, the host rebuilds them when the context is restored.
#

import json

from .types import Function
from .errors import ScriptCodecError
from .statements import (SourceLocation, NOWHERE, Literal, Load, Store, Invoke, Call,
                         Branch, Conditional, WhileLoop, FunctionDef)


FORMAT_VERSION = 1


## VALUES
def encode_value(value) -> dict:
    match value:
        case bool():
            return {'type': 'boolean', 'value': value}
        case int() | float():
            return {'type': 'number', 'value': value}
        case str():
            return {'type': 'string', 'value': value}
        case Function(body=body):
            return {'type': 'function', 'body': encode_program(body)}
    raise ScriptCodecError(f"Cannot encode value of type `{type(value).__name__}`.")

def decode_value(data: dict):
    match data.get('type'):
        case 'boolean':
            return _expect(data['value'], bool)
        case 'number':
            value = data['value']
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ScriptCodecError(f"Invalid number `{value!r}`.")
            return value
        case 'string':
            return _expect(data['value'], str)
        case 'function':
            return Function(decode_program(data['body']))
        case tag:
            raise ScriptCodecError(f"Unknown value type `{tag}`.")


## STATEMENTS
def _encode_location(loc: SourceLocation) -> list:
    return [loc.line, loc.column]

def _decode_location(data) -> SourceLocation:
    if data is None: return NOWHERE
    line, column = data
    return SourceLocation(int(line), int(column))


def encode_statement(stmt) -> dict:
    match stmt:
        case Literal(value=value, location=loc):
            return {'type': 'literal', 'value': encode_value(value), 'location': _encode_location(loc)}
        case Load(name=name, location=loc):
            return {'type': 'load', 'name': name, 'location': _encode_location(loc)}
        case Store(name=name, location=loc):
            return {'type': 'store', 'name': name, 'location': _encode_location(loc)}
        case Invoke(name=name, location=loc):
            return {'type': 'invoke', 'name': name, 'location': _encode_location(loc)}
        case Call(name=name, location=loc):
            return {'type': 'call', 'name': name, 'location': _encode_location(loc)}
        case Conditional(branches=branches, otherwise=otherwise):
            return {'type': 'conditional',
                    'branches': [{'condition': encode_program(b.condition), 'body': encode_program(b.body)} for b in branches],
                    'otherwise': None if otherwise is None else encode_program(otherwise)}
        case WhileLoop(condition=condition, body=body):
            return {'type': 'while', 'condition': encode_program(condition), 'body': encode_program(body)}
        case FunctionDef(name=name, body=body):
            return {'type': 'def', 'name': name, 'body': encode_program(body)}
    raise ScriptCodecError(f"Cannot encode statement of type `{type(stmt).__name__}`.")

def decode_statement(data: dict):
    match data.get('type'):
        case 'literal':
            return Literal(decode_value(data['value']), _decode_location(data.get('location')))
        case 'load':
            return Load(_expect(data['name'], str), _decode_location(data.get('location')))
        case 'store':
            return Store(_expect(data['name'], str), _decode_location(data.get('location')))
        case 'invoke':
            return Invoke(_expect(data['name'], str), _decode_location(data.get('location')))
        case 'call':
            return Call(_expect(data['name'], str | None), _decode_location(data.get('location')))
        case 'conditional':
            branches = tuple(Branch(decode_program(b['condition']), decode_program(b['body'])) for b in data['branches'])
            otherwise = data.get('otherwise')
            return Conditional(branches, None if otherwise is None else decode_program(otherwise))
        case 'while':
            return WhileLoop(decode_program(data['condition']), decode_program(data['body']))
        case 'def':
            return FunctionDef(_expect(data['name'], str | None), decode_program(data['body']))
        case tag:
            raise ScriptCodecError(f"Unknown statement type `{tag}`.")


def encode_program(statements) -> list:
    return [encode_statement(s) for s in statements]

def decode_program(data) -> tuple:
    return tuple(decode_statement(s) for s in _expect(data, list))


def _expect(value, type_):
    if not isinstance(value, type_):
        raise ScriptCodecError(f"Expected {getattr(type_, '__name__', type_)}, found `{value!r}`.")
    return value


## CONTEXT
def encode_context(variables: dict, values: list) -> dict:
    """State of a context, stack listed from bottom to top."""
    return {
        'version': FORMAT_VERSION,
        'variables': {name: encode_value(v) for name, v in variables.items()},
        'stack': [encode_value(v) for v in values],
    }

def decode_context(data: dict) -> tuple[dict, list]:
    if not isinstance(data, dict):
        raise ScriptCodecError("Context state must be a mapping.")
    if (version := data.get('version')) != FORMAT_VERSION:
        raise ScriptCodecError(f"Unsupported context state version `{version}`.")
    try:
        variables = {_expect(name, str): decode_value(v) for name, v in _expect(data['variables'], dict).items()}
        values = [decode_value(v) for v in _expect(data['stack'], list)]
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        if isinstance(exc, ScriptCodecError): raise
        raise ScriptCodecError(f"Malformed context state: {exc!r}") from exc
    return variables, values


def dumps(data: dict, **kwargs) -> str:
    return json.dumps(data, ensure_ascii=False, **kwargs)

def loads(text: str) -> dict:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ScriptCodecError(f"Context state is not valid JSON: {exc}") from exc
