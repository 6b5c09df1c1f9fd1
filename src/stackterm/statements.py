## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘
#
# Executable program tree.  Statements are pure data, the `Context` in interpreter.py
# matches on them exhaustively; any new variant must be handled there and in codec.py.
#

from dataclasses import dataclass


@dataclass(frozen=True)
class SourceLocation:
    line: int
    column: int

    def __str__(self):
        return f"line {self.line}, column {self.column}"


NOWHERE = SourceLocation(0, 0)


@dataclass(frozen=True)
class Literal:
    value: object
    location: SourceLocation = NOWHERE

@dataclass(frozen=True)
class Load:
    name: str
    location: SourceLocation = NOWHERE

@dataclass(frozen=True)
class Store:
    name: str
    location: SourceLocation = NOWHERE

@dataclass(frozen=True)
class Invoke:
    name: str
    location: SourceLocation = NOWHERE

@dataclass(frozen=True)
class Call:
    """Named form calls the function bound to `name`, otherwise pops one off the stack."""
    name: str | None = None
    location: SourceLocation = NOWHERE


@dataclass(frozen=True)
class Branch:
    condition: tuple
    body: tuple

@dataclass(frozen=True)
class Conditional:
    """Branches are tested in order, the first one true wins; `otherwise` is None when absent."""
    branches: tuple               # tuple[Branch, ...]
    otherwise: tuple | None = None

@dataclass(frozen=True)
class WhileLoop:
    condition: tuple
    body: tuple

@dataclass(frozen=True)
class FunctionDef:
    """Named form binds the function as a variable, otherwise pushes it."""
    name: str | None
    body: tuple


Statement = Literal | Load | Store | Invoke | Call | Conditional | WhileLoop | FunctionDef
LocatedStatement = Literal | Load | Store | Invoke | Call
