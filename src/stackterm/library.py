## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from typing import Any, Callable
from dataclasses import dataclass, field

from .types import Stack, nil, type_name
from .errors import ScriptStackUnderflow, ScriptTypeMismatch
from .loader import get_command_effects, describe_type, matches_type, iter_module_operators


# A command runs against a Context: it may replace `ctx.stack`, raise and use `ctx.io`.
Command = Callable[[Any], None]


@dataclass
class Library:
    """Registry of commands by name, rebuilt by the host for every context it creates."""
    commands: dict[str, Command] = field(default_factory=dict)
    aliases: dict[str, str] = field(default_factory=dict)
    loaded_modules: set[str] = field(default_factory=set)

    # Registration helpers
    def add_function(self, name: str, fn: Callable[..., Any]) -> None:
        command, meta = _make_wrapper(fn, name)
        command.__script_meta__ = meta
        self.commands[name] = command

    def add_command(self, name: str, command: Command) -> None:
        self.commands[name] = command

    def add_alias(self, alias: str, name: str) -> None:
        self.aliases[alias] = name

    def load_extension(self, ns: str) -> None:
        """Register all operators of a Python extension module as `ns.name`."""
        if ns in self.loaded_modules: return
        for script_name, py_fn in iter_module_operators(ns):
            self.add_function(f"{ns}.{script_name}", py_fn)
        self.loaded_modules.add(ns)

    # Lookup, the mapping protocol used by the parser and the interpreter
    def get(self, name: str, default=None) -> Command | None:
        return self.commands.get(self.aliases.get(name, name), default)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.aliases.get(name, name) in self.commands

    def __iter__(self):
        yield from self.commands
        yield from self.aliases

    def get_signature(self, name: str) -> dict | None:
        return getattr(self.get(name), '__script_meta__', None)

    def ensure_consistent(self) -> None:
        for alias, name in self.aliases.items():
            assert name in self.commands, f"Alias `{alias}` refers to missing command `{name}`."


def _pop_arguments(name: str, meta: dict, stk: Stack) -> tuple[Stack, list]:
    """Pop and type-check the declared inputs, top of the stack is the last argument."""
    args, base = [], stk
    for i, expected in enumerate(meta['inputs']):
        if base is nil:
            raise ScriptStackUnderflow(f"`{name}` needs {len(meta['inputs'])} item(s) on the stack, but {i} available.")
        base, head = base
        if not matches_type(head, expected):
            raise ScriptTypeMismatch(describe_type(expected), type_name(head))
        args.append(head)
    return base, list(reversed(args))


def _make_wrapper(fn: Callable[..., Any], name: str) -> tuple[Command, dict]:
    meta = get_command_effects(fn=fn, name=name)

    match meta['valency']:
        case -1:
            def push(_, res): return res
        case 0:
            def push(base, _): return base
        case 1:
            def push(base, res): return Stack(base, res)
        case _:
            def push(base, res):
                for v in res: base = Stack(base, v)
                return base

    def call(ctx, items):
        items = iter(items)
        return fn(*(ctx.io if kind == 'io' else next(items) for kind in meta['params']))

    # Stack is only assigned once the function returned, so failures leave it untouched.
    match meta['arity']:
        case -2: # pass stack as-is
            def w_s(ctx):
                ctx.stack = push(ctx.stack, call(ctx, [ctx.stack]))
            return w_s, meta
        case 0: # no arguments
            def w_0(ctx):
                ctx.stack = push(ctx.stack, call(ctx, []))
            return w_0, meta
        case _:
            def w_x(ctx):
                base, args = _pop_arguments(name, meta, ctx.stack)
                ctx.stack = push(base, call(ctx, args))
            return w_x, meta
