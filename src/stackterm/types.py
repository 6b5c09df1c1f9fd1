## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from collections import namedtuple
from dataclasses import dataclass

from .errors import ScriptTypeMismatch


# Stack type is a namedtuple to save memory, yet provide tail/head accessors.
class Stack(namedtuple('Stack', ['tail', 'head'])):
    __slots__ = ()
    _nil_singleton = None

    def __new__(cls, tail, head):
        if tail is None and head is None:
            # Only one singleton creation is allowed, and it's the one just below.
            if cls._nil_singleton is None:
                self = super(Stack, cls).__new__(cls, tail, head)
                cls._nil_singleton = self
                return self
            # By convention, all other code should use `nil` explicitly.
            raise ValueError("Use the canonical `nil` instance for empty stacks")
        return super(Stack, cls).__new__(cls, tail, head)

    def __repr__(self):
        if self is nil:
            return "< nil >"

        items = []
        current = self
        while current is not nil:
            items.append(repr(current.head))
            current = current.tail
        return "< " + " ".join(reversed(items)) + " >"

    def __bool__(self):
        raise TypeError("Stack truth value is ambiguous; compare with `is nil` or `is not nil`.")

    def pushed(self, *items):
        """Push items in order of tail (left) to head (right) onto new Stack and return."""
        stack = self
        for it in items:
            stack = Stack(stack, it)
        return stack


# All checks for empty stack must be done by comparing to this.
nil = Stack(None, None)


@dataclass(frozen=True)
class Function:
    """Function value: only the literal body, no captured variables."""
    body: tuple                   # tuple[Statement, ...]

    def __repr__(self):
        return f"<fn:{len(self.body)}>"




def type_name(value) -> str:
    match value:
        case bool():
            return 'boolean'
        case int() | float():
            return 'number'
        case str():
            return 'string'
        case Function():
            return 'function'
        case _:
            return type(value).__name__


def is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def as_boolean(value) -> bool:
    if not isinstance(value, bool):
        raise ScriptTypeMismatch('boolean', type_name(value))
    return value


def as_function(value) -> Function:
    if not isinstance(value, Function):
        raise ScriptTypeMismatch('function', type_name(value))
    return value
