import pytest

from stackterm.runtime import Runtime
from stackterm.console import BufferIO
from stackterm.errors import ScriptArithmeticError, ScriptTypeMismatch, ScriptStackUnderflow


@pytest.fixture
def rt():
    return Runtime()


@pytest.mark.parametrize("source, expected", [
    ("2 3 +", [5]),
    ("2 3 add", [5]),
    ("5 3 -", [2]),
    ("4 2.5 *", [10.0]),
    ("7 2 /", [3.5]),
    ("7 2 //", [3]),
    ("7 2 %", [1]),
    ("3 neg", [-3]),
    ("-3 abs", [3]),
    ("2 9 min 2 9 max", [2, 9]),
    ("2.7 floor", [2]),
])
def test_arithmetic(rt, source, expected):
    assert rt.run(source) == expected


@pytest.mark.parametrize("source", ["1 0 /", "1 0 //", "1 0 %"])
def test_division_by_zero(rt, source):
    with pytest.raises(ScriptArithmeticError):
        rt.run(source)


@pytest.mark.parametrize("source, expected", [
    ("1 2 <", [True]),
    ("2 2 <=", [True]),
    ("1 2 >", [False]),
    ("2 1 >=", [True]),
    ("1 1 =", [True]),
    ("1 1.0 ==", [True]),
    ('1 "1" ==', [False]),
    ("true 1 eq", [False]),
    ("1 2 !=", [True]),
    ("true not", [False]),
    ("true false and", [False]),
    ("true false or", [True]),
])
def test_comparison_and_logic(rt, source, expected):
    assert rt.run(source) == expected


@pytest.mark.parametrize("source, expected", [
    ("1 dup", [1, 1]),
    ("1 2 drop", [1]),
    ("1 2 pop", [1]),
    ("1 2 swap", [2, 1]),
    ("1 2 over", [1, 2, 1]),
    ("1 2 3 rot", [2, 3, 1]),
    ("1 2 3 depth", [1, 2, 3, 3]),
    ("1 2 clear-stack", []),
])
def test_stack_operations(rt, source, expected):
    assert rt.run(source) == expected


def test_strings(rt):
    assert rt.run('"a" "b" concat') == ["ab"]
    assert rt.run('"abc" length') == [3]
    assert rt.run('5 str 2.0 str true str') == ["5", "2.0", "true"]


def test_type_predicates(rt):
    assert rt.run('3 number? true number? "s" string? fn end function? false boolean?') == [True, False, True, True, True]
    assert rt.run('"s" type-of 1.5 type-of') == ["string", "number"]


def test_booleans_are_not_numbers(rt):
    with pytest.raises(ScriptTypeMismatch) as info:
        rt.run("true 1 +")
    assert info.value.actual == 'boolean'
    assert info.value.expected == 'number'


def test_strings_are_not_numbers(rt):
    with pytest.raises(ScriptTypeMismatch) as info:
        rt.run('1 "a" +')
    assert info.value.actual == 'string'


def test_missing_arguments(rt):
    with pytest.raises(ScriptStackUnderflow):
        rt.run("1 +")


def test_print_and_write(rt):
    ctx = rt.new_context(BufferIO())
    rt.submit('"hello" print 42 print "a" write 1.5 write true .', ctx)
    assert ctx.io.text == "hello\n42\na1.5true\n"
    assert ctx.values() == []


def test_clear(rt):
    ctx = rt.new_context(BufferIO())
    rt.submit('"x" print clear "y" print', ctx)
    assert ctx.io.text == "y\n"
    assert ctx.io.clears == 1
