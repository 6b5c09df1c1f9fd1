## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from typing import Callable

from .parser import parse
from .library import Library, Command
from .loader import get_command_effects
from .builtins import load_builtins_library
from .console import ScriptIO
from .interpreter import Context
from .codec import dumps, loads


class Runtime:
    """Host-facing facade: builds contexts with fresh command registries, runs and persists them."""

    def __init__(self, max_steps: int | None = None):
        self.max_steps = max_steps
        self._functions: dict[str, Callable] = {}
        self._commands: dict[str, Command] = {}
        self._extensions: list[str] = []

    # Registration ────────────────────────────────────────────────────────────────────────────
    def register_operation(self, name: str, func: Callable) -> None:
        """Add an annotated Python function to every registry built from now on."""
        get_command_effects(fn=func, name=name)  # Fails early on bad annotations.
        self._functions[name] = func

    def register_command(self, name: str, command: Command) -> None:
        self._commands[name] = command

    def load_extension(self, ns: str) -> None:
        Library().load_extension(ns)
        if ns not in self._extensions:
            self._extensions.append(ns)

    def new_library(self) -> Library:
        lib = load_builtins_library()
        for ns in self._extensions:
            lib.load_extension(ns)
        for name, fn in self._functions.items():
            lib.add_function(name, fn)
        for name, command in self._commands.items():
            lib.add_command(name, command)
        return lib

    # Contexts ────────────────────────────────────────────────────────────────────────────────
    def new_context(self, io: ScriptIO | None = None) -> Context:
        return Context(self.new_library(), io, max_steps=self.max_steps)

    def restore(self, data: dict, io: ScriptIO | None = None) -> Context:
        """Rebuild a context from `Context.serialize()` output with a fresh command registry."""
        return Context.deserialize(data, self.new_library(), io, max_steps=self.max_steps)

    def dumps(self, context: Context, **kwargs) -> str:
        return dumps(context.serialize(), **kwargs)

    def loads(self, text: str, io: ScriptIO | None = None) -> Context:
        return self.restore(loads(text), io)

    # Execution ───────────────────────────────────────────────────────────────────────────────
    def parse(self, source: str, context: Context, filename: str | None = None) -> list:
        return parse(source, context.commands, filename=filename)

    def submit(self, source: str, context: Context, filename: str | None = None) -> None:
        """Parse then execute against `context`; a syntax error means nothing runs at all.

        An earlier cancellation request is dropped on entry, one made while parsing still applies.
        """
        context.reset_cancel()
        program = self.parse(source, context, filename)
        context.run(program)

    def run(self, source: str, context: Context | None = None, filename: str | None = None) -> list:
        """Convenience for embedding and tests: submit, then return the stack bottom to top."""
        context = self.new_context() if context is None else context
        self.submit(source, context, filename)
        return context.values()

    def cancel(self, context: Context) -> None:
        context.cancel()

    # Introspection ───────────────────────────────────────────────────────────────────────────
    def get_signature(self, name: str) -> dict | None:
        return self.new_library().get_signature(name)

    def list_commands(self) -> list[str]:
        return sorted(self.new_library())
