## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import threading
from typing import Any, Callable

from .types import Stack, nil, Function, as_boolean, as_function
from .errors import (ScriptRuntimeError, ScriptUnknownCommand, ScriptUndefinedVariable,
                     ScriptStackUnderflow, ScriptRecursionError, ScriptCancelled)
from .statements import (Literal, Load, Store, Invoke, Call, Conditional, WhileLoop, FunctionDef,
                         LocatedStatement)
from .formatting import stack_to_list
from .console import ScriptIO, NullIO
from .codec import encode_context, decode_context


class Context:
    """Execution environment of one session: stack, flat global variables, commands and IO.

    Functions run directly against this same object, there are no call frames or
    local scopes.  `cancel()` may be called from another thread; it's observed before
    every statement, loop iteration and function call.
    """

    def __init__(self, commands=None, io: ScriptIO | None = None, *, variables: dict | None = None,
                 stack: Stack = nil, max_steps: int | None = None):
        self.commands = {} if commands is None else commands
        self.io = io or NullIO()
        self.variables: dict[str, Any] = {} if variables is None else dict(variables)
        self.stack: Stack = stack
        self.max_steps = max_steps
        self.checkpoint: Callable[['Context', Any], None] | None = None
        self.steps = 0
        self._cancelled = threading.Event()

    # Stack ───────────────────────────────────────────────────────────────────────────────────
    def push(self, value) -> None:
        self.stack = Stack(self.stack, value)

    def pop(self):
        if self.stack is nil:
            raise ScriptStackUnderflow("Cannot pop from an empty stack.")
        self.stack, head = self.stack
        return head

    def values(self) -> list:
        """Stack content from bottom to top."""
        return list(reversed(stack_to_list(self.stack)))

    # Variables ───────────────────────────────────────────────────────────────────────────────
    def get_var(self, name: str):
        if name not in self.variables:
            raise ScriptUndefinedVariable(name)
        return self.variables[name]

    def set_var(self, name: str, value) -> None:
        self.variables[name] = value

    # Cancellation ────────────────────────────────────────────────────────────────────────────
    def cancel(self) -> None:
        self._cancelled.set()

    def reset_cancel(self) -> None:
        self._cancelled.clear()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def _check(self, stmt) -> None:
        if self._cancelled.is_set():
            raise ScriptCancelled("Execution was cancelled.")
        if self.max_steps is not None and self.steps >= self.max_steps:
            raise ScriptCancelled(f"Step limit of {self.max_steps} reached.")
        if self.checkpoint is not None:
            self.checkpoint(self, stmt)

    # Execution ───────────────────────────────────────────────────────────────────────────────
    def run(self, statements) -> None:
        """Top-level entry for one submission: resets the step budget, then executes."""
        self.steps = 0
        try:
            self.exec(statements)
        except RecursionError:
            raise ScriptRecursionError("Maximum call depth exceeded.") from None

    def exec(self, statements) -> None:
        for stmt in statements:
            self._check(stmt)
            self.steps += 1
            try:
                self.exec_one(stmt)
            except ScriptRuntimeError as exc:
                # Innermost location wins, outer statements leave it alone.
                if exc.location is None and isinstance(stmt, LocatedStatement):
                    exc.location = stmt.location
                raise

    def exec_one(self, stmt) -> None:
        match stmt:
            case Literal(value=value):
                self.push(value)
            case Load(name=name):
                self.push(self.get_var(name))
            case Store(name=name):
                value = self.pop()
                self.set_var(name, value)
            case Invoke(name=name):
                if (command := self.commands.get(name)) is None:
                    raise ScriptUnknownCommand(name)
                command(self)
            case Conditional(branches=branches, otherwise=otherwise):
                for branch in branches:
                    self.exec(branch.condition)
                    if self._pop_boolean():
                        self.exec(branch.body)
                        return
                if otherwise is not None:
                    self.exec(otherwise)
            case WhileLoop(condition=condition, body=body):
                while True:
                    self._check(stmt)
                    self.exec(condition)
                    if not self._pop_boolean():
                        break
                    self.exec(body)
            case FunctionDef(name=None, body=body):
                self.push(Function(body))
            case FunctionDef(name=name, body=body):
                self.set_var(name, Function(body))
            case Call(name=None):
                function = self._pop_function()
                self.exec(function.body)
            case Call(name=name):
                function = as_function(self.get_var(name))
                self.exec(function.body)
            case _:
                raise NotImplementedError(f"Unknown statement type `{type(stmt).__name__}`.")

    def _pop_boolean(self) -> bool:
        if self.stack is nil:
            raise ScriptStackUnderflow("Condition left nothing on the stack.")
        tail, head = self.stack
        result = as_boolean(head)
        self.stack = tail
        return result

    def _pop_function(self) -> Function:
        if self.stack is nil:
            raise ScriptStackUnderflow("Call needs a function on the stack.")
        tail, head = self.stack
        function = as_function(head)
        self.stack = tail
        return function

    # Persistence ─────────────────────────────────────────────────────────────────────────────
    def serialize(self) -> dict:
        return encode_context(self.variables, self.values())

    @classmethod
    def deserialize(cls, data: dict, commands=None, io: ScriptIO | None = None, **kwargs) -> 'Context':
        variables, values = decode_context(data)
        return cls(commands, io, variables=variables, stack=nil.pushed(*values), **kwargs)
