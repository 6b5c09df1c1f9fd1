## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import lark


class ScriptError(Exception):
    def __init__(self, message: str = "", *, location=None):
        """Base class for all script-raised errors."""
        super().__init__(message)
        self.location = location

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else ""

class ScriptParseError(ScriptError):
    def __init__(self, message, *, filename=None, line=None, column=None, token=None):
        super().__init__(message)
        self.filename = filename
        self.line = line
        self.column = column
        self.token = token

class ScriptIncompleteParse(ScriptParseError, lark.exceptions.ParseError):
    def __init__(self, message, *, filename=None, line=None, column=None, token=None):
        super().__init__(message, filename=filename, line=line, column=column, token=token)


class ScriptRuntimeError(ScriptError):
    """Run-time failures that abort the rest of a submission."""
    pass

class ScriptUnknownCommand(ScriptRuntimeError, NameError):
    def __init__(self, name: str, *, location=None):
        super().__init__(f"Unknown command `{name}`.", location=location)
        self.name = name

class ScriptUndefinedVariable(ScriptRuntimeError, NameError):
    def __init__(self, name: str, *, location=None):
        super().__init__(f"Variable `{name}` is not defined.", location=location)
        self.name = name

class ScriptStackUnderflow(ScriptRuntimeError, IndexError):
    def __init__(self, message: str = "Stack underflow.", *, location=None):
        super().__init__(message, location=location)

class ScriptTypeMismatch(ScriptRuntimeError, TypeError):
    def __init__(self, expected: str, actual: str, *, location=None):
        super().__init__(f"Expected {expected}, got {actual}.", location=location)
        self.expected = expected
        self.actual = actual

class ScriptArithmeticError(ScriptRuntimeError, ArithmeticError):
    pass

class ScriptRecursionError(ScriptRuntimeError, RecursionError):
    pass


class ScriptCancelled(ScriptError):
    def __init__(self, reason: str = "Execution was cancelled.", *, location=None):
        super().__init__(reason, location=location)
        self.reason = reason


class ScriptTypeMissing(ScriptError, TypeError):
    """Registration-time problems with the annotations of a Python command."""
    pass

class ScriptCodecError(ScriptError, ValueError):
    """Persisted state could not be decoded."""
    pass

class ScriptModuleError(ScriptError, ImportError):
    def __init__(self, message, *, filename=None, token=None):
        super().__init__(message)
        self.filename = filename
        self.token = token
