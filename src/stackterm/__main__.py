## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘
#
# stackterm — A small concatenative scripting language for embedded terminals.
#

import sys
import time
import traceback
from pathlib import Path
from dataclasses import dataclass

import click

from .errors import (ScriptError, ScriptParseError, ScriptIncompleteParse, ScriptRuntimeError,
                     ScriptCancelled, ScriptModuleError, ScriptCodecError)
from .parser import format_source_context
from .formatting import write_without_ansi, format_item, format_stack, show_statement_and_stack
from .console import EchoIO
from .runtime import Runtime


@dataclass(frozen=True)
class RuntimeConfig:
    verbose: int
    ignore: bool
    stats: bool
    plain: bool
    state: Path | None
    max_steps: int | None
    extensions: tuple[str, ...]


class ScriptRunner:
    """Runs sources against one persistent context and reports failures on the console."""

    def __init__(self, config: RuntimeConfig):
        self.config = config
        if config.plain:
            strip = write_without_ansi(sys.stdout.write)
            sys.stdout.write, sys.stderr.write = strip, strip

        self.runtime = Runtime(max_steps=config.max_steps)
        for ns in config.extensions:
            self.runtime.load_extension(ns)

        self.context = self._restore_context()
        if config.verbose > 0:
            self.context.checkpoint = self._trace

        self.failed = False
        self.completed = 0
        self.total_steps = 0
        self.started = time.time()

    # State file ──────────────────────────────────────────────────────────────────────────────
    def _restore_context(self):
        path = self.config.state
        if path is None or not path.exists():
            return self.runtime.new_context(EchoIO())
        try:
            return self.runtime.loads(path.read_text(encoding='utf-8'), EchoIO())
        except ScriptCodecError as exc:
            raise click.ClickException(f"Could not restore state from `{path}`: {exc}")

    def save_state(self) -> None:
        if (path := self.config.state) is not None:
            path.write_text(self.runtime.dumps(self.context, indent=2) + '\n', encoding='utf-8')

    # Diagnostics ─────────────────────────────────────────────────────────────────────────────
    def _trace(self, ctx, stmt) -> None:
        print(f"\033[90m{ctx.steps:>4} :\033[0m ", end='')
        show_statement_and_stack(stmt, ctx.stack)

    def _report(self, banner: str, detail: str, exc: BaseException, context: str = '', interactive: bool = False) -> None:
        print(f"\033[30;43m {banner} \033[0m {detail} (Exception: \033[33m{type(exc).__name__}\033[0m)\n{context}", file=sys.stderr)
        if interactive: return

        self.failed = True
        if not self.config.ignore:
            self.save_state()
            sys.exit(1)

    def _report_exception(self, exc: Exception, filename: str, source: str, interactive: bool = False) -> None:
        match exc:
            case ScriptParseError(line=line, column=column, token=token):
                context = format_source_context(filename, line, column, token, source=source)
                context += f"\n\033[90m{exc.message}\033[0m\n"
                self._report("SYNTAX ERROR.", f"Parsing `\033[97m{filename}\033[0m` failed.", exc, context, interactive)
            case ScriptCancelled(reason=reason):
                self._report("CANCELLED.", reason, exc, '', interactive)
            case ScriptRuntimeError(location=loc):
                context = ''
                if loc is not None and loc.line > 0:
                    context = format_source_context(filename, loc.line, loc.column, getattr(exc, 'name', ''), source=source)
                context += f"\033[1;33m  Stack content is\033[0;33m\n    {format_stack(self.context.stack)}\033[0m\n"
                self._report("RUNTIME ERROR.", exc.message, exc, context, interactive)
            case ScriptModuleError(filename=module_file, token=ns):
                cause = ''.join(traceback.format_exception(exc.__cause__ or exc, chain=False))
                self._report("IMPORT ERROR.", f"Extension `{ns}` failed to load from \033[97m{module_file}\033[0m", exc, cause, interactive)
            case ScriptError():
                self._report("SCRIPT ERROR.", exc.message, exc, '', interactive)
            case _:
                self._report("PYTHON ERROR.", "A command raised an unexpected exception!", exc,
                             ''.join(traceback.format_exception(exc)), interactive)

    # Execution ───────────────────────────────────────────────────────────────────────────────
    def execute(self, source: str, filename: str, show_top: bool = False) -> None:
        try:
            self.runtime.submit(source, self.context, filename=filename)
        except Exception as exc:
            self._report_exception(exc, filename, source)
        else:
            self.completed += 1
            if show_top and (values := self.context.values()):
                print(format_item(values[-1]))
        finally:
            self.total_steps += self.context.steps

    def repl(self) -> None:
        if sys.platform != "win32": import readline

        print('stackterm - Interactive terminal; type `exit` or Ctrl+D to leave.')
        pending: list[str] = []

        while True:
            try:
                line = input("\033[36m... \033[0m" if pending else "\033[36m<<< \033[0m")
            except (KeyboardInterrupt, EOFError):
                print(""); break

            if not line.strip(): continue
            if not pending and line.strip() in ('exit', 'quit'): break
            pending.append(line)

            source = '\n'.join(pending)
            try:
                self.runtime.submit(source, self.context, filename='<REPL>')
            except ScriptIncompleteParse:
                continue
            except Exception as exc:
                self._report_exception(exc, '<REPL>', source, interactive=True)
            else:
                if (values := self.context.values()):
                    print("\033[90m>>>\033[0m", format_item(values[-1]))
            pending.clear()

    def finalize(self) -> int:
        self.save_state()
        if self.config.stats and self.completed > 0:
            print(f"\n\033[97m\033[48;5;30m STATISTICS. \033[0m")
            print(f"steps\t\033[97m{self.total_steps:,}\033[0m")
            print(f"time\t\033[97m{time.time() - self.started:.3f}s\033[0m")
        return 1 if self.failed else 0


def _iter_actions(tokens):
    """Yield `(kind, payload)` pairs in command-line order for inline code, files and REPL requests."""
    tokens = iter(tokens)
    for token in tokens:
        match token:
            case '--':
                continue
            case '-c' | '--command':
                if (code := next(tokens, None)) is None:
                    raise click.UsageError("Option -c/--command needs inline code.")
                yield 'command', code
            case _ if token.startswith(('-c=', '--command=')):
                if not (code := token.partition('=')[2]):
                    raise click.UsageError("Option -c/--command was given empty code.")
                yield 'command', code
            case '-r' | '--repl':
                yield 'repl', None
            case _ if token.startswith('-'):
                raise click.UsageError(f"Unknown option `{token}`.")
            case _:
                if not (path := Path(token)).is_file():
                    raise click.UsageError(f"Script `{token}` not found.")
                yield 'file', path


@click.group(invoke_without_command=True)
@click.option('--verbose', '-v', default=0, count=True, help='Trace every statement with the stack.')
@click.option('--ignore', '-i', is_flag=True, help='Keep running after errors, still exit with failure.')
@click.option('--stats', is_flag=True, help='Display execution statistics (steps and time).')
@click.option('--plain', '-p', is_flag=True, help='Strip ANSI color codes and send diagnostics to stdout.')
@click.option('--state', type=click.Path(dir_okay=False, path_type=Path), default=None,
              help='JSON file to restore the context from and save it back to.')
@click.option('--max-steps', type=click.IntRange(min=1), default=None, help='Cancel any submission after this many steps.')
@click.option('--extension', '-x', 'extensions', multiple=True, help='Load extension commands from a module (see STACKTERM_PATH).')
@click.pass_context
def cli(ctx: click.Context, verbose: int, ignore: bool, stats: bool, plain: bool,
        state: Path | None, max_steps: int | None, extensions: tuple[str, ...]) -> None:
    ctx.ensure_object(dict)
    ctx.obj['config'] = RuntimeConfig(verbose=verbose, ignore=ignore, stats=stats, plain=plain,
                                      state=state, max_steps=max_steps, extensions=extensions)


def _make_runner(ctx: click.Context) -> ScriptRunner:
    try:
        return ScriptRunner(ctx.obj['config'])
    except ScriptModuleError as exc:
        raise click.ClickException(str(exc))


@cli.command('run-file')
@click.argument('script', type=click.File('r', encoding='utf-8'))
@click.pass_context
def run_file(ctx: click.Context, script) -> None:
    runner = _make_runner(ctx)
    runner.execute(script.read(), script.name or '<STDIN>')
    ctx.exit(runner.finalize())


@cli.command('run-dev', context_settings={'ignore_unknown_options': True, 'allow_extra_args': True})
@click.argument('tokens', nargs=-1)
@click.pass_context
def run_dev(ctx: click.Context, tokens: tuple[str, ...]) -> None:
    actions = list(_iter_actions(tokens))
    runner = _make_runner(ctx)

    for index, (kind, payload) in enumerate(actions, start=1):
        match kind:
            case 'file':
                runner.execute(payload.read_text(encoding='utf-8'), str(payload))
            case 'command':
                runner.execute(payload, f'<INPUT_{index}>', show_top=True)
            case 'repl':
                runner.repl()
            case _:
                raise NotImplementedError(kind)

    if not actions:
        runner.repl()
    ctx.exit(runner.finalize())


@cli.command('run-repl')
@click.pass_context
def run_repl(ctx: click.Context) -> None:
    runner = _make_runner(ctx)
    runner.repl()
    ctx.exit(runner.finalize())


_FLAG_OPTIONS = ('--ignore', '-i', '--stats', '--plain', '-p')
_VALUE_OPTIONS = ('--state', '--max-steps', '--extension', '-x')

def _split_global_options(argv: list[str]) -> tuple[list[str], list[str]]:
    """Separate options of the `cli` group from the rest, wherever they appear."""
    options, rest = [], []
    tokens = iter(argv)
    for token in tokens:
        if token in _VALUE_OPTIONS:
            options += [token, next(tokens, '')]
        elif token in _FLAG_OPTIONS or token.startswith(('-v', '--verbose')) \
                or token.startswith(tuple(o + '=' for o in _VALUE_OPTIONS)):
            options.append(token)
        else:
            rest.append(token)
    return options, rest


def _route(rest: list[str]) -> list[str]:
    """Pick the subcommand: a single existing file or `-` runs a script, no input at all opens the REPL."""
    if not rest:
        return ['run-file', '-'] if not sys.stdin.isatty() else ['run-repl']
    if rest == ['-']:
        return ['run-file', '-']
    if rest in (['-r'], ['--repl']):
        return ['run-repl']
    if len(rest) == 1 and not rest[0].startswith('-') and Path(rest[0]).is_file():
        return ['run-file', *rest]
    return ['run-dev', *rest]


def main(argv: list[str] | None = None) -> None:
    options, rest = _split_global_options(list(sys.argv[1:] if argv is None else argv))
    cli.main(args=[*options, *_route(rest)], prog_name='stackterm')


if __name__ == "__main__":
    main()
