## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import ast
import functools
from collections.abc import Container

import lark

from .errors import ScriptParseError, ScriptIncompleteParse
from .statements import (SourceLocation, Literal, Load, Store, Invoke, Call,
                         Branch, Conditional, WhileLoop, FunctionDef)


GRAMMAR = r"""start: _statement*

body: _statement*

_statement: FLOAT | INTEGER | STRING | TRUE | FALSE
          | NAME | STORE | CALL_NAMED | AT | CALL
          | conditional | loop | definition | function

conditional: IF body THEN body (ELIF body THEN body)* (ELSE body)? END
loop: WHILE body DO body END
definition: DEF NAME body END
function: FN body END

// KEYWORDS
IF: "if"
THEN: "then"
ELIF: "elif"
ELSE: "else"
END: "end"
WHILE: "while"
DO: "do"
DEF: "def"
FN: "fn"
CALL: "call"
TRUE: "true"
FALSE: "false"

// COMMENTS
COMMENT: /#[^\r\n]*/

// TOKENS
STRING.3: /"(?:[^"\\\r\n]|\\.)*"/
FLOAT.4: /-?\d+\.\d+(?:[eE][+-]?\d+)?/
INTEGER.3: /-?\d+/
STORE.3: /=[A-Za-z_][A-Za-z0-9_\-?!.]*/
CALL_NAMED.3: /@[A-Za-z_][A-Za-z0-9_\-?!.]*/
AT: "@"
NAME: /(?!-?\d)[^\s"#@]+/

// WHITESPACE
%import common.WS
%ignore WS
%ignore COMMENT
"""


@functools.lru_cache(maxsize=1)
def _get_parser() -> lark.Lark:
    # Basic lexer so keywords are reserved everywhere, not only where the grammar expects them.
    return lark.Lark(GRAMMAR, start='start', parser='lalr', lexer='basic')


def _location(token: lark.Token) -> SourceLocation:
    return SourceLocation(token.line or 0, token.column or 0)


class _StatementBuilder(lark.Transformer):
    """Turns the lark tree into statements; bare words are resolved against `commands`."""

    def __init__(self, commands: Container, filename=None):
        super().__init__(visit_tokens=False)
        self.commands = commands
        self.filename = filename

    def _string(self, token: lark.Token) -> str:
        try:
            return ast.literal_eval(token.value)
        except (SyntaxError, ValueError) as exc:
            detail = exc.msg if isinstance(exc, SyntaxError) else str(exc)
            raise ScriptParseError(f"Invalid string literal at line {token.line}, column {token.column}: {detail}",
                                   filename=self.filename, line=token.line, column=token.column, token=token.value) from None

    def _atom(self, token: lark.Token):
        loc = _location(token)
        match token.type:
            case 'INTEGER':
                return Literal(int(token.value), loc)
            case 'FLOAT':
                return Literal(float(token.value), loc)
            case 'STRING':
                return Literal(self._string(token), loc)
            case 'TRUE' | 'FALSE':
                return Literal(token.type == 'TRUE', loc)
            case 'STORE':
                return Store(token.value[1:], loc)
            case 'CALL_NAMED':
                return Call(token.value[1:], loc)
            case 'AT' | 'CALL':
                return Call(None, loc)
            case 'NAME':
                if token.value in self.commands:
                    return Invoke(token.value, loc)
                return Load(token.value, loc)
        raise NotImplementedError(f"Unexpected token `{token.type}` from parser.")

    def _sequence(self, children) -> tuple:
        return tuple(self._atom(ch) if isinstance(ch, lark.Token) else ch for ch in children)

    def start(self, children):
        return list(self._sequence(children))

    def body(self, children):
        return self._sequence(children)

    def conditional(self, children):
        bodies = [ch for ch in children if not isinstance(ch, lark.Token)]
        has_else = any(isinstance(ch, lark.Token) and ch.type == 'ELSE' for ch in children)
        otherwise = bodies.pop() if has_else else None
        branches = tuple(Branch(cond, body) for cond, body in zip(bodies[0::2], bodies[1::2]))
        return Conditional(branches, otherwise)

    def loop(self, children):
        _, cond, _, body, _ = children
        return WhileLoop(cond, body)

    def definition(self, children):
        _, name, body, _ = children
        return FunctionDef(name.value, body)

    def function(self, children):
        _, body, _ = children
        return FunctionDef(None, body)


def _describe(exc: lark.exceptions.UnexpectedInput, token_val: str) -> str:
    where = f"line {exc.line}, column {exc.column}"
    if isinstance(exc, lark.exceptions.UnexpectedCharacters):
        return f"Unexpected character `{exc.char}` at {where}."
    if token_val == '':
        return "Unexpected end of input, a block is missing its `end`?"
    return f"Unexpected `{token_val}` at {where}."


def parse(source: str, commands: Container = (), filename=None) -> list:
    """Build the statement sequence for `source` without executing anything.

    Bare words that name an entry of `commands` become command invocations,
    every other word is a variable load resolved at run time.
    """
    try:
        tree = _get_parser().parse(source)
    except lark.exceptions.UnexpectedInput as exc:
        def attr(k): return getattr(exc, k, None)
        token_val = getattr(token, 'value', '') if (token := attr('token')) is not None else ''
        if isinstance(exc, lark.exceptions.UnexpectedCharacters):
            token_val = exc.char
        error_class = ScriptIncompleteParse if token_val == '' else ScriptParseError
        raise error_class(_describe(exc, token_val), filename=filename, line=attr('line'), column=attr('column'), token=token_val) from None
    try:
        return _StatementBuilder(commands, filename).transform(tree)
    except lark.exceptions.VisitError as exc:
        if isinstance(exc.orig_exc, ScriptParseError):
            raise exc.orig_exc from None
        raise


def format_source_context(filename, line, column, token_value, source=None):
    lines = source.splitlines(keepends=True) if source is not None else open(filename, 'r').readlines()
    if not line or line < 1:
        line = len(lines)
    start_line, end_line = max(0, line - 3), min(len(lines), line + 2)
    result = [f"\033[97m  File \"{filename}\", line {line}\033[0m"]

    for i in range(start_line, end_line):
        line_content = lines[i].rstrip('\n')
        line_color = '\033[90m'
        if i+1 == line:
            line_color = '\033[97m'
            if column and 0 < column <= len(line_content):
                width = max(1, len(token_value or ''))
                line_content = (
                    line_content[:column-1] +
                    f"\033[48;5;30m\033[1;97m{line_content[column-1:column+width-1]}\033[0m" +
                    line_content[column+width-1:]
                )
        result.append(f"{line_color}{i+1:>5} |\033[0m {line_content}")
    return '\n' + '\n'.join(result) + '\n'
