## stackterm — Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import stackterm.api as J


def test_run_string_add():
    assert J.run("2 3 +") == [5]


def test_store_and_load():
    assert J.run("5 =x x") == [5]


def test_register_operation_and_run():
    def inc(x: int) -> int: return x + 1
    J.register_operation('inc', inc)
    assert J.run("4 inc") == [5]


def test_errors_are_exported():
    try:
        J.run("missing")
    except J.ScriptUndefinedVariable as exc:
        assert isinstance(exc, J.ScriptRuntimeError)
        assert isinstance(exc, NameError)
    else:
        raise AssertionError("expected an error")


def test_introspection_helpers():
    assert J.get_signature('add')['arity'] == 2
    assert 'print' in J.list_commands()


def test_context_round_trip():
    ctx = J.new_context()
    J.submit("fn 1 + end =inc 41", ctx)
    restored = J.loads(J.dumps(ctx))
    J.submit("@inc", restored)
    assert restored.values() == [42]
