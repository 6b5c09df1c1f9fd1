## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import math
from typing import Any

from .types import Stack, nil, Function, type_name, is_number
from .errors import ScriptArithmeticError
from .console import ScriptIO
from .formatting import stack_to_list, format_item


num = int | float

## ARITHMETIC
def op_add(b: num, a: num) -> num: return b + a
def op_sub(b: num, a: num) -> num: return b - a
def op_mul(b: num, a: num) -> num: return b * a
def op_neg(x: num) -> num: return -x
def op_abs(x: num) -> num: return abs(x)
def op_min(b: num, a: num) -> num: return min(b, a)
def op_max(b: num, a: num) -> num: return max(b, a)
def op_div(b: num, a: num) -> num:
    if a == 0: raise ScriptArithmeticError("Division by zero.")
    return b / a
def op_idiv(b: num, a: num) -> num:
    if a == 0: raise ScriptArithmeticError("Division by zero.")
    return b // a
def op_rem(b: num, a: num) -> num:
    if a == 0: raise ScriptArithmeticError("Division by zero.")
    return b % a
def op_floor(x: num) -> int:
    if not math.isfinite(x): raise ScriptArithmeticError(f"Cannot round {x}.")
    return math.floor(x)
## COMPARISON & BOOLEAN LOGIC
def op_eq(b: Any, a: Any) -> bool: return type_name(b) == type_name(a) and b == a
def op_ne(b: Any, a: Any) -> bool: return not op_eq(b, a)
def op_lt(b: num, a: num) -> bool: return b < a
def op_le(b: num, a: num) -> bool: return b <= a
def op_gt(b: num, a: num) -> bool: return b > a
def op_ge(b: num, a: num) -> bool: return b >= a
def op_and(b: bool, a: bool) -> bool: return b and a
def op_or(b: bool, a: bool) -> bool: return b or a
def op_not(x: bool) -> bool: return not x
## INTROSPECTION
def op_number_q(x: Any) -> bool: return is_number(x)
def op_boolean_q(x: Any) -> bool: return isinstance(x, bool)
def op_string_q(x: Any) -> bool: return isinstance(x, str)
def op_function_q(x: Any) -> bool: return isinstance(x, Function)
def op_type_of(x: Any) -> str: return type_name(x)
# STACK OPERATIONS
def op_dup(x: Any) -> tuple[Any, Any]: return (x, x)
def op_drop(_: Any) -> None: return None
def op_swap(b: Any, a: Any) -> tuple[Any, Any]: return (a, b)
def op_over(b: Any, a: Any) -> tuple[Any, Any, Any]: return (b, a, b)
def op_rot(c: Any, b: Any, a: Any) -> tuple[Any, Any, Any]: return (b, a, c)
def op_depth(s: Stack) -> int: return len(stack_to_list(s))
def op_clear_stack(s: Stack) -> Stack: return nil
# STRING MANIPULATION
def op_concat(b: str, a: str) -> str: return b + a
def op_str(x: Any) -> str: return format_item(x, quoted=False)
def op_length(x: str) -> int: return len(x)
# INPUT/OUTPUT
def op_print(io: ScriptIO, x: Any) -> None: io.print(format_item(x, quoted=False) + '\n')
def op_write(io: ScriptIO, x: Any) -> None: io.print(format_item(x, quoted=False))
def op_clear(io: ScriptIO) -> None: io.clear()
