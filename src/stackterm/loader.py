## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import os
import inspect
import importlib.util
from pathlib import Path
from types import UnionType
from typing import Any, Callable, get_origin, get_args

from .types import Stack, Function
from .console import ScriptIO
from .errors import ScriptModuleError, ScriptTypeMissing


# Extension modules already imported, by namespace.
_LIB_MODULES: dict[str, object] = {}

_SCRIPT_TYPE_NAMES = {bool: 'boolean', int: 'number', float: 'number', str: 'string', Function: 'function'}


def _search_paths() -> list[Path]:
    entries = os.environ.get("STACKTERM_PATH", "").split(os.pathsep)
    return [Path(os.path.expandvars(entry)).expanduser() for entry in entries if entry]

def get_python_name(script_name: str) -> str:
    """Map a script command name to its Python function name."""
    return 'op_'+script_name.replace('-', '_').replace('!', '_b').replace('?', '_q')


def get_script_name(py_name: str) -> str:
    """Inverse of `get_python_name`, e.g. `op_number_q` becomes `number?`."""
    if not py_name.startswith("op_"):
        raise ScriptModuleError(f"Command function `{py_name}` must be named `op_*`.", token=py_name)
    return py_name.removeprefix("op_").replace('_b', '!').replace('_q', '?').replace('_', '-')


def _module_candidates(ns: str):
    # Packaged modules are `libs/_{ns}.py`, modules on STACKTERM_PATH are plain `{ns}.py`.
    yield Path(__file__).resolve().parent / 'libs' / f'_{ns}.py', f"stackterm.libs._{ns}"
    for directory in _search_paths():
        yield directory / f'{ns}.py', f"stackterm.ext.{ns}"


def load_library_module(ns: str):
    if (module := _LIB_MODULES.get(ns)) is not None:
        return module

    for path, qualified in _module_candidates(ns):
        if not path.is_file(): continue
        spec = importlib.util.spec_from_file_location(qualified, path)
        if spec is None or spec.loader is None:
            raise ScriptModuleError(f"Cannot import `{path}`.", filename=str(path), token=ns)
        module = importlib.util.module_from_spec(spec)
        try:
            spec.loader.exec_module(module)
        except Exception as exc:
            raise ScriptModuleError(str(exc), filename=str(path), token=ns) from exc
        _LIB_MODULES[ns] = module
        return module
    raise ScriptModuleError(f"Module `{ns}` not found.", token=ns)


def iter_module_operators(ns: str):
    """Yield `(script_name, py_function)` for every entry of the module's `__commands__` list."""
    module = load_library_module(ns)
    commands = getattr(module, '__commands__', None)
    if not isinstance(commands, list):
        raise ScriptModuleError(f"Module `{ns}` must list its operators in `__commands__`.",
                                filename=getattr(module, '__file__', None), token=ns)
    for fn in commands:
        yield get_script_name(fn.__name__), fn


def _normalize_expected_type(tp):
    if tp is Any or isinstance(tp, (type, UnionType)):
        return tp
    if isinstance(origin := get_origin(tp), type):
        return origin
    raise ScriptTypeMissing(f"Unsupported type in command annotation: {tp!r}.")


def describe_type(tp) -> str:
    """Script-level name of an expected Python type, as used in type mismatch errors."""
    if tp is Any: return 'value'
    members = get_args(tp) if isinstance(tp, UnionType) else (tp,)
    # `int` alone is an integer, together with `float` it is a number.
    overrides = {} if float in members else {int: 'integer'}
    names = list(dict.fromkeys(overrides.get(m) or _SCRIPT_TYPE_NAMES.get(m, getattr(m, '__name__', str(m))) for m in members))
    return ' or '.join(names)


def matches_type(value, tp) -> bool:
    if tp is Any: return True
    members = get_args(tp) if isinstance(tp, UnionType) else (tp,)
    # Booleans are never numbers in scripts, even though Python says otherwise.
    if isinstance(value, bool):
        return bool in members
    return isinstance(value, tp)


def _parameter_kind(annotation) -> str:
    if annotation is ScriptIO: return 'io'
    if annotation is Stack: return 'stack'
    return 'item'


def get_command_effects(*, fn: Callable, name: str = None) -> dict:
    """Derive the stack effect of a Python command from its type annotations.

    Parameters annotated `ScriptIO` receive the context's output capability and
    pop nothing.  A sole `Stack` parameter receives the whole stack.  Any other
    parameter pops one item, the last parameter being the top of the stack.

    The return annotation sets the valency: `None` pushes nothing (0), `Stack`
    replaces the stack (-1), `tuple[...]` pushes each member in order (n), and
    any other type pushes a single item (1).
    """
    label = name or getattr(fn, '__name__', '<unnamed>')
    signature = inspect.signature(fn)
    params = list(signature.parameters.values())

    positional = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    if any(p.kind not in positional for p in params):
        raise ScriptTypeMissing(f"Command `{label}` may only take plain positional parameters.")
    if missing := [p.name for p in params if p.annotation is inspect.Parameter.empty]:
        raise ScriptTypeMissing(f"Command `{label}` must annotate parameters: {', '.join(missing)}.")
    if (returns := signature.return_annotation) is inspect.Signature.empty:
        raise ScriptTypeMissing(f"Command `{label}` must declare a return annotation.")

    kinds = [_parameter_kind(p.annotation) for p in params]
    items = [_normalize_expected_type(p.annotation) for p, kind in zip(params, kinds) if kind == 'item']
    if 'stack' in kinds and (kinds.count('stack') > 1 or items):
        raise ScriptTypeMissing(f"Command `{label}` taking the whole `Stack` cannot take other items.")

    if returns is None or returns is type(None):
        valency, outputs = 0, []
    elif returns is Stack:
        valency, outputs = -1, []
    elif returns is tuple or get_origin(returns) is tuple:
        outputs = [_normalize_expected_type(t) for t in get_args(returns)]
        valency = len(outputs)
    else:
        valency, outputs = 1, [_normalize_expected_type(returns)]

    return {
        'arity': -2 if 'stack' in kinds else len(items),
        'valency': valency,
        'params': kinds,
        'inputs': items[::-1],
        'outputs': outputs[::-1],
    }
