## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from . import operators
from .loader import get_script_name
from .library import Library


def load_builtins_library() -> Library:
    """Fresh registry with all builtin commands, one per context."""
    aliases = {
        '+': 'add', '-': 'sub', '*': 'mul', '/': 'div', '//': 'idiv', '%': 'rem',
        '=': 'eq', '==': 'eq', '!=': 'ne', '<': 'lt', '<=': 'le', '>': 'gt', '>=': 'ge',
        'pop': 'drop', 'stack-size': 'depth', '.': 'print',
    }

    lib = Library(aliases=aliases)

    for k in dir(operators):
        if not k.startswith('op_'): continue
        lib.add_function(get_script_name(k), getattr(operators, k))

    lib.ensure_consistent()
    return lib
