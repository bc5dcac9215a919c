# test_persistence.py

import io

import pytest

from simple_calculator.environment import Environment, format_value
from simple_calculator.errors import PersistenceError
from simple_calculator.persistence import (
    KEEP,
    OVERWRITE,
    RENAME,
    EnvironmentStore,
    EnvRecord,
)


class ScriptedAnswers:
    """Stands in for the interactive ask: returns canned choices, records the questions."""

    def __init__(self, *answers):
        self.answers = list(answers)
        self.questions = []

    def __call__(self, question, options):
        self.questions.append((question, list(options)))
        return self.answers.pop(0)


def store_for(env, *answers):
    return EnvironmentStore(env, ScriptedAnswers(*answers), out=io.StringIO())


def write_snapshot(path, *lines):
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return str(path)


# ---------------------------
# Snapshot lines
# ---------------------------

def test_record_line_format():
    record = EnvRecord(name="pi", value=3.14159, is_const=True)
    assert record.to_line(6) == "pi = 3.141590 is_const = 1"
    assert EnvRecord(name="x", value=-2).to_line(0) == "x = -2 is_const = 0"


def test_parse_line():
    record = EnvRecord.parse_line("  rate   =  0.25 is_const =  0")
    assert record == EnvRecord(name="rate", value=0.25, is_const=False)
    assert EnvRecord.parse_line("k = 1e3 is_const = 1").is_const is True


@pytest.mark.parametrize("line", [
    "x = 1",
    "x 1 is_const = 0",
    "x = 1 const = 0",
    "x = one is_const = 0",
    "x = 1 is_const = maybe",
    "x = 1 is_const = 0 extra",
])
def test_malformed_lines_are_rejected(line):
    with pytest.raises(ValueError):
        EnvRecord.parse_line(line)


@pytest.mark.parametrize("name", ["1x", "a_b", "quit", "pow", "show", "sin", ""])
def test_unusable_names_are_rejected(name):
    with pytest.raises(ValueError):
        EnvRecord(name=name, value=1.0)


# ---------------------------
# Save
# ---------------------------

def test_save_writes_header_and_sorted_entries(tmp_path):
    env = Environment()
    env.define("x", 5.0)
    env.define("pi", 3.14159, is_const=True)
    store = store_for(env, 1)
    filename = str(tmp_path / "snap.txt")

    assert store.save(filename) == 6
    assert (tmp_path / "snap.txt").read_text(encoding="utf-8") == (
        "Precision = 6\n"
        "pi = 3.141590 is_const = 1\n"
        "x = 5.000000 is_const = 0\n"
    )
    assert f"Environment saved to {filename} with precision of 6 digits." in store.out.getvalue()


@pytest.mark.parametrize("choice,digits", [(1, 6), (2, 12), (3, 19)])
def test_save_precision_menu(tmp_path, choice, digits):
    env = Environment()
    env.define("third", 1 / 3)
    path = tmp_path / "snap.txt"
    store_for(env, choice).save(str(path))
    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines == [f"Precision = {digits}", f"third = {format_value(1 / 3, digits)} is_const = 0"]


def test_save_empty_environment_fails_without_asking(tmp_path):
    store = store_for(Environment())
    with pytest.raises(PersistenceError) as e:
        store.save(str(tmp_path / "snap.txt"))
    assert "No variables or constants to save" in str(e.value)
    assert store.ask.questions == []
    assert not (tmp_path / "snap.txt").exists()


def test_save_to_unwritable_location(tmp_path):
    env = Environment()
    env.define("x", 1.0)
    with pytest.raises(PersistenceError) as e:
        store_for(env, 1).save(str(tmp_path / "missing" / "snap.txt"))
    assert "Could not open file for writing" in str(e.value)


# ---------------------------
# Load
# ---------------------------

def test_save_then_load_restores_entries(tmp_path):
    original = Environment()
    original.define("x", 5.0)
    original.define("pi", 3.141592653589793, is_const=True)
    filename = str(tmp_path / "snap.txt")
    store_for(original, 2).save(filename)

    restored = Environment()
    store = store_for(restored, 1)
    report = store.load(filename)

    assert report.file_precision == 12
    assert report.apply_precision is True
    assert sorted(report.loaded) == ["pi", "x"]
    assert restored.lookup("x") == 5.0
    assert restored.lookup("pi") == pytest.approx(3.141592653590, abs=1e-12)
    assert restored.is_const("pi")
    assert not restored.is_const("x")
    out = store.out.getvalue()
    assert "Loaded variable : pi = 3.141593 (const)" in out
    assert "Loaded variable : x = 5.000000" in out
    assert f"Environment loaded from {filename}." in out


@pytest.mark.parametrize("name", ["env", "precisionx", "sine", "quitter"])
def test_names_resembling_keywords_round_trip(tmp_path, name):
    original = Environment()
    original.define(name, 5.0)
    filename = str(tmp_path / "snap.txt")
    store_for(original, 1).save(filename)

    restored = Environment()
    report = store_for(restored, 2).load(filename)
    assert report.loaded == [name]
    assert report.skipped == 0
    assert restored.lookup(name) == 5.0


def test_declining_file_precision(tmp_path):
    filename = write_snapshot(tmp_path / "snap.txt", "Precision = 3", "x = 1.000 is_const = 0")
    store = store_for(Environment(), 2)
    report = store.load(filename)
    assert report.file_precision == 3
    assert report.apply_precision is False
    question, options = store.ask.questions[0]
    assert "precision of 3 digits" in question
    assert options == ["Yes", "No"]


def test_conflict_keep(tmp_path):
    env = Environment()
    env.define("x", 5.0)
    filename = write_snapshot(tmp_path / "snap.txt", "Precision = 6", "x = 1.000000 is_const = 1")
    store = store_for(env, 2, KEEP)
    report = store.load(filename)
    assert report.kept == ["x"]
    assert env.lookup("x") == 5.0
    assert not env.is_const("x")
    assert "Keeping existing value for 'x'." in store.out.getvalue()


def test_conflict_overwrite_takes_file_const_flag(tmp_path):
    env = Environment()
    env.define("x", 5.0)
    filename = write_snapshot(tmp_path / "snap.txt", "Precision = 6", "x = 1.000000 is_const = 1")
    store = store_for(env, 2, OVERWRITE)
    report = store.load(filename)
    assert report.overwritten == ["x"]
    assert env.lookup("x") == 1.0
    assert env.is_const("x")
    assert "Overwritten 'x' with value from file." in store.out.getvalue()


def test_conflict_overwrite_replaces_constant(tmp_path):
    env = Environment()
    env.define("k", 2.0, is_const=True)
    filename = write_snapshot(tmp_path / "snap.txt", "Precision = 6", "k = 7.000000 is_const = 0")
    store_for(env, 2, OVERWRITE).load(filename)
    assert env.lookup("k") == 7.0
    assert not env.is_const("k")


def test_conflict_rename_picks_free_name(tmp_path):
    env = Environment()
    env.define("x", 5.0)
    env.define("xfile", 6.0)
    filename = write_snapshot(tmp_path / "snap.txt", "Precision = 6", "x = 1.000000 is_const = 0")
    store = store_for(env, 2, RENAME)
    report = store.load(filename)
    assert report.renamed == {"x": "xfile1"}
    assert env.lookup("x") == 5.0
    assert env.lookup("xfile") == 6.0
    assert env.lookup("xfile1") == 1.0
    assert "Renamed file variable to 'xfile1'." in store.out.getvalue()


def test_conflict_question_shows_both_values(tmp_path):
    env = Environment()
    env.define("x", 5.0, is_const=True)
    filename = write_snapshot(tmp_path / "snap.txt", "Precision = 6", "x = 1.5 is_const = 0")
    store = store_for(env, 2, KEEP)
    store.load(filename)
    question, options = store.ask.questions[1]
    assert "Conflict detected for variable: x." in question
    assert "Existing value: 5.000000 (const: yes)" in question
    assert "File value: 1.500000 (const: no)" in question
    assert len(options) == 3


def test_malformed_and_blank_lines_are_skipped(tmp_path):
    filename = write_snapshot(
        tmp_path / "snap.txt",
        "Precision = 6",
        "",
        "x = 1 is_const = 0",
        "garbage line",
        "y = abc is_const = 0",
        "sin = 1.0 is_const = 0",
        "z = 2.0 is_const = 1",
    )
    env = Environment()
    report = store_for(env, 2).load(filename)
    assert report.loaded == ["x", "z"]
    assert report.skipped == 3
    assert env.names() == ["x", "z"]
    assert env.is_const("z")


def test_missing_header_fails_before_any_change(tmp_path):
    filename = write_snapshot(tmp_path / "snap.txt", "x = 1.000000 is_const = 0")
    env = Environment()
    store = store_for(env)
    with pytest.raises(PersistenceError) as e:
        store.load(filename)
    assert "Precision = N" in str(e.value)
    assert len(env) == 0
    assert store.ask.questions == []


def test_empty_file_loads_nothing(tmp_path):
    path = tmp_path / "snap.txt"
    path.write_text("", encoding="utf-8")
    store = store_for(Environment())
    report = store.load(str(path))
    assert report.file_precision is None
    assert report.loaded == []
    assert store.ask.questions == []


def test_missing_file(tmp_path):
    with pytest.raises(PersistenceError) as e:
        store_for(Environment()).load(str(tmp_path / "nope.txt"))
    assert "Could not open file for reading" in str(e.value)
