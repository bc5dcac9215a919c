import io

import pytest

from simple_calculator.environment import Environment
from simple_calculator.repl import Session
from simple_calculator.source import StringSource
from simple_calculator.tokenizer import Tokenizer


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    outcome = yield
    report = outcome.get_result()
    if report.when == "call":
        print(f"TEST: {item.name} - {'PASSED' if report.passed else 'FAILED'}")


@pytest.fixture
def env():
    return Environment()


@pytest.fixture
def tokenizer_for():
    def make(text):
        return Tokenizer(StringSource(text))
    return make


@pytest.fixture
def run_session():
    """Run a whole session over ``text``; returns (session, stdout text, stderr text)."""
    def run(text, env=None, precision=6):
        out, err = io.StringIO(), io.StringIO()
        session = Session(StringSource(text), env=env, precision=precision, out=out, err=err)
        session.run()
        return session, out.getvalue(), err.getvalue()
    return run
