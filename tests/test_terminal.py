## stackterm — Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import json

import pytest

from stackterm.runtime import Runtime
from stackterm.terminal import Terminal


class RecordingViewer:
    def __init__(self):
        self.outputs, self.snapshots = [], []

    def output(self, text):
        self.outputs.append(text)

    def contents(self, text):
        self.snapshots.append(text)


@pytest.fixture
def term():
    terminal = Terminal(Runtime())
    yield terminal
    terminal.close()


def test_input_is_echoed_before_output(term):
    assert term.handle_input('"hi" print') is True
    assert term.logs == '>"hi" print\nhi\n'


def test_runtime_error_becomes_one_line(term):
    assert term.handle_input('nope') is False
    assert term.logs == '>nope\nError: Variable `nope` is not defined. (line 1, column 1)\n'


def test_parse_error_becomes_one_line(term):
    assert term.handle_input('if') is False
    lines = term.logs.splitlines()
    assert lines[0] == '>if'
    assert lines[1].startswith('Parse Error: ')
    assert len(lines) == 2


def test_session_continues_after_errors(term):
    term.handle_input('1 =x nope')
    assert term.handle_input('x print') is True
    assert term.logs.endswith('>x print\n1\n')


def test_clear_empties_transcript(term):
    term.handle_input('"a" print clear')
    assert term.logs == ""
    term.handle_input('"b" print')
    assert term.logs == '>"b" print\nb\n'


def test_viewers_follow_the_transcript(term):
    term.handle_input('1 print')
    viewer = RecordingViewer()
    term.attach(viewer)
    assert viewer.snapshots == ['>1 print\n1\n']

    term.handle_input('2 print')
    assert viewer.outputs == ['>2 print\n', '2\n']

    term.handle_input('clear')
    assert viewer.snapshots[-1] == ""

    term.detach(viewer)
    term.handle_input('3 print')
    assert viewer.outputs == ['>2 print\n', '2\n', '>clear\n']


def test_background_submission(term):
    future = term.submit('1 2 + =x')
    assert future.result(timeout=10) is True
    assert term.context.variables['x'] == 3


def test_cancel_then_continue(term):
    term.cancel()
    assert term.handle_input('1 =y') is True
    assert term.context.variables['y'] == 1


def test_close_stops_a_running_script():
    term = Terminal(Runtime())
    future = term.submit('while true do end')
    term.close(wait=True)
    assert future.cancelled() or future.result(timeout=10) is False
    with pytest.raises(RuntimeError):
        term.submit('1')


def test_persistence_round_trip(term):
    term.handle_input('5 =x "hey" print 7')
    data = json.loads(json.dumps(term.to_dict()))

    restored = Terminal.from_dict(Runtime(), data)
    try:
        assert restored.logs == term.logs
        assert restored.context.values() == [7]
        restored.handle_input('x print')
        assert restored.logs.endswith('>x print\n5\n')
    finally:
        restored.close()


@pytest.mark.parametrize("source", ['"\\N"', '"a\nb"'])
def test_bad_string_literal_becomes_parse_error_line(term, source):
    assert term.submit(source).result(timeout=10) is False
    last = term.logs.splitlines()[-1]
    assert last.startswith('Parse Error: ')
    assert term.handle_input('1 =x') is True
