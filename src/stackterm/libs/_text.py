## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import os
import re
from typing import Any

from stackterm.errors import ScriptArithmeticError
from stackterm.formatting import format_item


def op_upper(x: str) -> str: return x.upper()
def op_lower(x: str) -> str: return x.lower()
def op_trim(x: str) -> str: return x.strip()
def op_contains_q(b: str, a: str) -> bool: return a in b
def op_replace(c: str, b: str, a: str) -> str: return c.replace(b, a)

MAX_LENGTH = 1 << 20

def op_repeat(b: str, a: int) -> str:
    if a < 0: raise ScriptArithmeticError(f"Cannot repeat a string {a} times.")
    if len(b) * a > MAX_LENGTH: raise ScriptArithmeticError(f"Repeated string would exceed {MAX_LENGTH:,} characters.")
    return b * a

def op_format(b: Any, a: str) -> str:
    # b: value substituted for every %1; a: template, %% for a literal percent.
    return re.sub(r'%(1|%)', lambda m: '%' if m.group(1) == '%' else format_item(b, quoted=False), a)


__commands__ = [ op_upper, op_lower, op_trim, op_contains_q, op_replace, op_repeat, op_format ]

if os.environ.get('STACKTERM_DEBUG'): print('LOADED libs/_text.py')
