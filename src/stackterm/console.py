## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘
#
# Output capability handed to a Context.  The engine only ever calls these two
# methods, and only from builtin commands; it never writes to a display itself.
#

from typing import Protocol, runtime_checkable

import click


@runtime_checkable
class ScriptIO(Protocol):
    def print(self, text: str) -> None: ...
    def clear(self) -> None: ...


class NullIO:
    """Discards all output."""
    def print(self, text: str) -> None: pass
    def clear(self) -> None: pass


class BufferIO:
    """Keeps the visible transcript in memory."""

    def __init__(self, text: str = ""):
        self.text = text
        self.clears = 0

    def print(self, text: str) -> None:
        self.text += text

    def clear(self) -> None:
        self.text = ""
        self.clears += 1


class EchoIO:
    """Writes straight to the process terminal, `clear` uses the terminal's own clear."""

    def __init__(self, err: bool = False):
        self.err = err

    def print(self, text: str) -> None:
        click.echo(text, nl=False, err=self.err)

    def clear(self) -> None:
        click.clear()
