# test_environment.py

import pytest

from simple_calculator.environment import Entry, Environment, format_value
from simple_calculator.errors import ConstViolationError, UndefinedNameError


def test_lookup_of_undeclared_name_fails(env):
    with pytest.raises(UndefinedNameError) as e:
        env.lookup("x")
    assert "x" in str(e.value)
    assert len(env) == 0


def test_define_and_lookup(env):
    env.define("x", 5)
    assert env.lookup("x") == 5.0
    assert env.is_declared("x")
    assert not env.is_const("x")
    assert "x" in env


def test_is_const_of_absent_name_is_false(env):
    assert env.is_const("nope") is False
    assert env.is_declared("nope") is False


def test_define_overwrites_unconditionally(env):
    env.define("c", 1.0, is_const=True)
    env.define("c", 2.0)
    assert env.lookup("c") == 2.0
    assert not env.is_const("c")


def test_assign_requires_existing_name(env):
    with pytest.raises(UndefinedNameError):
        env.assign("y", 1.0)
    assert not env.is_declared("y")


def test_assign_rejects_constants(env):
    env.define("pi", 3.14, is_const=True)
    with pytest.raises(ConstViolationError) as e:
        env.assign("pi", 1.0)
    assert "pi constant cannot be modified" in str(e.value)
    assert env.lookup("pi") == 3.14


def test_assign_overwrites_variable(env):
    env.define("x", 1.0)
    env.assign("x", 7.5)
    assert env.lookup("x") == 7.5
    assert not env.is_const("x")


def test_entries_are_sorted_by_name(env):
    env.define("b", 2.0)
    env.define("a", 1.0, is_const=True)
    env.define("c", 3.0)
    assert list(env.entries()) == [Entry("a", 1.0, True), Entry("b", 2.0), Entry("c", 3.0)]
    assert env.names() == ["a", "b", "c"]


def test_separate_environments_do_not_share_state():
    first, second = Environment(), Environment()
    first.define("x", 1.0)
    assert not second.is_declared("x")


@pytest.mark.parametrize("value,precision,expected", [
    (3.14159, 2, "3.14"),
    (2.0, 0, "2"),
    (1.0 / 3.0, 6, "0.333333"),
    (-0.5, 3, "-0.500"),
])
def test_format_value(value, precision, expected):
    assert format_value(value, precision) == expected
