"""Tests for env.py — env updates and resolution."""

import pytest

from mapped_command.env import EnvBuilder, EnvUpdate, EnvUpdateKind

AMBIENT = {"HOME": "/home/me", "PATH": "/usr/bin", "LANG": "C"}


def test_update_constructors():
    assert EnvUpdate.set("x") == EnvUpdate(EnvUpdateKind.SET, "x")
    assert EnvUpdate.UNSET.kind is EnvUpdateKind.UNSET
    assert EnvUpdate.INHERIT.kind is EnvUpdateKind.INHERIT


def test_coerce():
    assert EnvUpdate.coerce("v") == EnvUpdate.set("v")
    assert EnvUpdate.coerce(None) is EnvUpdate.UNSET
    assert EnvUpdate.coerce(EnvUpdate.INHERIT) is EnvUpdate.INHERIT


def test_coerce_rejects_other_types():
    with pytest.raises(TypeError):
        EnvUpdate.coerce(42)


def test_inherit_without_updates_is_ambient():
    assert EnvBuilder().build(AMBIENT) == AMBIENT


def test_no_inherit_without_updates_is_empty():
    assert EnvBuilder(inherit_env=False).build(AMBIENT) == {}


def test_set_overwrites_inherited():
    b = EnvBuilder()
    b.insert_update("HOME", "/root")
    b.insert_update("NEW", "1")
    assert b.build(AMBIENT) == {**AMBIENT, "HOME": "/root", "NEW": "1"}


def test_unset_removes_inherited():
    b = EnvBuilder()
    b.insert_update("PATH", EnvUpdate.UNSET)
    assert "PATH" not in b.build(AMBIENT)


def test_inherit_ignores_global_flag():
    b = EnvBuilder(inherit_env=False)
    b.insert_update("LANG", EnvUpdate.INHERIT)
    b.insert_update("MISSING", EnvUpdate.INHERIT)
    assert b.build(AMBIENT) == {"LANG": "C"}


def test_last_write_wins_across_single_and_bulk():
    b = EnvBuilder(inherit_env=False)
    b.insert_update("A", "1")
    b.extend({"A": "2", "B": "x"})
    b.extend([("B", "y"), ("B", None), ("C", "3")])
    b.insert_update("C", "4")
    assert b.build({}) == {"A": "2", "C": "4"}
    assert dict(b.iter_env_updates()) == {
        "A": EnvUpdate.set("2"),
        "B": EnvUpdate.UNSET,
        "C": EnvUpdate.set("4"),
    }


def test_resolution_reads_ambient_lazily(monkeypatch):
    b = EnvBuilder()
    monkeypatch.setenv("LATE_VAR", "late")
    assert b.build()["LATE_VAR"] == "late"


def test_ambient_callable():
    b = EnvBuilder()
    assert b.build(lambda: {"X": "1"}) == {"X": "1"}


def test_build_on_existing_mapping():
    target = {"KEEP": "me"}
    b = EnvBuilder(inherit_env=False)
    b.insert_update("A", "1")
    b.build_on(target, {})
    assert target == {"KEEP": "me", "A": "1"}


def test_env_updates_view_is_read_only():
    b = EnvBuilder()
    b.insert_update("A", "1")
    with pytest.raises(TypeError):
        b.env_updates["B"] = EnvUpdate.set("2")


def test_copy_is_independent():
    a = EnvBuilder()
    a.insert_update("A", "1")
    b = a.copy()
    b.insert_update("B", "2")
    b.set_inherit_env(False)
    assert len(a) == 1
    assert a.inherit_env
    assert len(b) == 2
