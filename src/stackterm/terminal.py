## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘
#
# Reference host session: one context plus the transcript that viewers see.  Input
# runs on a single background worker so the host's own loop never waits on a script.
#

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Protocol

from .errors import ScriptError, ScriptParseError, ScriptCancelled
from .interpreter import Context
from .runtime import Runtime


class Viewer(Protocol):
    def output(self, text: str) -> None: ...
    def contents(self, text: str) -> None: ...


class TerminalIO:
    """Output capability handed to the context, forwarding into the terminal transcript."""

    def __init__(self, terminal: 'Terminal'):
        self.terminal = terminal

    def print(self, text: str) -> None:
        self.terminal.print_to_terminal(text)

    def clear(self) -> None:
        self.terminal.clear_terminal()


def format_error(exc: ScriptError) -> str:
    """Single diagnostic line for a failed submission."""
    if isinstance(exc, ScriptParseError):
        return f"Parse Error: {exc.message}\n"
    where = f" ({exc.location})" if exc.location is not None and exc.location.line > 0 else ""
    return f"Error: {exc.message}{where}\n"


class Terminal:

    def __init__(self, runtime: Runtime, context: Context | None = None, logs: str = ""):
        self.runtime = runtime
        self.logs = logs
        self.io = TerminalIO(self)
        if context is None:
            context = runtime.new_context(self.io)
        context.io = self.io
        context.checkpoint = self._checkpoint
        self.context = context

        self._viewers: list[Viewer] = []
        self._lock = threading.RLock()
        self._running = threading.Lock()
        self._closed = False
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='stackterm')

    # Viewers ─────────────────────────────────────────────────────────────────────────────────
    def attach(self, viewer: Viewer) -> None:
        with self._lock:
            self._viewers.append(viewer)
            viewer.contents(self.logs)

    def detach(self, viewer: Viewer) -> None:
        with self._lock:
            if viewer in self._viewers:
                self._viewers.remove(viewer)

    def print_to_terminal(self, text: str) -> None:
        with self._lock:
            self.logs += text
            for viewer in self._viewers:
                viewer.output(text)

    def clear_terminal(self) -> None:
        with self._lock:
            self.logs = ""
            for viewer in self._viewers:
                viewer.contents(self.logs)

    # Input ───────────────────────────────────────────────────────────────────────────────────
    def _checkpoint(self, ctx: Context, stmt) -> None:
        if self._closed:
            raise ScriptCancelled("Terminal was closed.")

    def handle_input(self, text: str) -> bool:
        """Echo, parse and run one line of input; errors become one line in the transcript."""
        with self._running:
            self.print_to_terminal(f">{text}\n")
            try:
                self.runtime.submit(text, self.context, filename='<TERMINAL>')
            except ScriptError as exc:
                self.print_to_terminal(format_error(exc))
                return False
            return True

    def submit(self, text: str) -> Future:
        """Queue input for the background worker, the future resolves to `handle_input`'s result."""
        if self._closed:
            raise RuntimeError("Terminal is closed.")
        return self._executor.submit(self.handle_input, text)

    def cancel(self) -> None:
        """Stop the script currently running, queued input still runs afterwards."""
        self.context.cancel()

    def close(self, wait: bool = True) -> None:
        self._closed = True
        self.context.cancel()
        self._executor.shutdown(wait=wait, cancel_futures=True)

    # Persistence ─────────────────────────────────────────────────────────────────────────────
    def to_dict(self) -> dict:
        """Snapshot taken between submissions, waits for any running input to finish."""
        with self._running, self._lock:
            return {'context': self.context.serialize(), 'logs': self.logs}

    @classmethod
    def from_dict(cls, runtime: Runtime, data: dict) -> 'Terminal':
        return cls(runtime, runtime.restore(data['context']), logs=data.get('logs', ""))
