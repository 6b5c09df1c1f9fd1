## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import re

from .types import Stack, nil, Function
from .statements import (Literal, Load, Store, Invoke, Call, Conditional, WhileLoop, FunctionDef)


def stack_to_list(stk: Stack) -> list:
    """Items from the top of the stack downwards."""
    result = []
    while stk is not nil:
        stk, head = stk
        result.append(head)
    return result


def write_without_ansi(write_fn):
    """Wrapper function that strips ANSI codes before calling the original writer."""
    ansi_re = re.compile(r'\033\[[0-9;]*m')
    return lambda text: write_fn(ansi_re.sub('', text))


def format_item(it, quoted: bool = True) -> str:
    """Source-like rendering of a value; strings unquoted when `quoted` is false, as `print` does."""
    if isinstance(it, bool): return str(it).lower()
    if isinstance(it, str):
        return '"' + it.replace('\\', '\\\\').replace('"', '\\"') + '"' if quoted else it
    if isinstance(it, float) and it.is_integer() and abs(it) < 1e16: return f"{it:.1f}"
    if isinstance(it, Function): return 'fn ' + format_program(it.body) + ' end' if it.body else 'fn end'
    return str(it)


def format_statement(stmt) -> str:
    match stmt:
        case Literal(value=value):
            return format_item(value)
        case Load(name=name) | Invoke(name=name):
            return name
        case Store(name=name):
            return f"={name}"
        case Call(name=None):
            return "@"
        case Call(name=name):
            return f"@{name}"
        case Conditional(branches=branches, otherwise=otherwise):
            parts = []
            for i, branch in enumerate(branches):
                parts += ['if' if i == 0 else 'elif', format_program(branch.condition), 'then', format_program(branch.body)]
            if otherwise is not None:
                parts += ['else', format_program(otherwise)]
            return ' '.join(p for p in parts + ['end'] if p)
        case WhileLoop(condition=condition, body=body):
            return ' '.join(p for p in ('while', format_program(condition), 'do', format_program(body), 'end') if p)
        case FunctionDef(name=name, body=body):
            head = f"def {name}" if name is not None else 'fn'
            return ' '.join(p for p in (head, format_program(body), 'end') if p)
        case _:
            raise NotImplementedError(f"Unknown statement type `{type(stmt).__name__}`.")

def format_program(statements) -> str:
    return ' '.join(format_statement(s) for s in statements)


def format_stack(stack: Stack) -> str:
    if stack is nil: return '∅'
    return ' '.join(format_item(s) for s in reversed(stack_to_list(stack)))

def show_stack(stack, width=72, end='\n', file=None):
    stack_str = format_stack(stack)
    if width is not None and len(stack_str) > width:
        stack_str = '… ' + stack_str[-width+2:]
    print(f"{stack_str:>{width}}" if width else stack_str, end=end, file=file)

def show_statement_and_stack(stmt, stack, width=72, file=None):
    prog_str = format_statement(stmt)
    if len(prog_str) > width:
        prog_str = prog_str[:+width-2] + ' …'
    show_stack(stack, end='', file=file)
    print(f" \033[36m <=> \033[0m {prog_str:<{width}}", file=file)
