"""Metadata index tests: lazy tables, absence handling, error wrapping."""

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from lib_pass_store.adapters.index.sqlite import SqliteIndex
from lib_pass_store.domain.errors import IoError, PersistentIndexError, to_remote_error


@pytest.fixture()
def index(tmp_path: Path):
    idx = SqliteIndex(tmp_path / "meta" / "index.db")
    yield idx
    idx.close()


def test_fresh_index_behaves_like_empty(index: SqliteIndex) -> None:
    assert index.keys("collections") == []
    assert index.get("collections", "login", default=None) is None
    assert index.delete("collections", "login") is False


def test_missing_entry_is_not_found(index: SqliteIndex) -> None:
    with pytest.raises(IoError) as info:
        index.get("collections", "login")
    assert to_remote_error(info.value).name == "org.freedesktop.Secret.Error.NoSuchObject"

    index.put("collections", "default", {"label": "Default"})
    with pytest.raises(IoError) as info:
        index.get("collections", "login")
    assert info.value.is_not_found


def test_put_get_delete(index: SqliteIndex) -> None:
    index.put("items", "web/github", {"attributes": {"user": "octo"}, "label": "GitHub"})
    index.put("items", "web/gitlab", {"label": "GitLab"})
    assert index.get("items", "web/github") == {"attributes": {"user": "octo"}, "label": "GitHub"}
    assert index.keys("items") == ["web/github", "web/gitlab"]

    index.put("items", "web/gitlab", {"label": "GitLab CE"})
    assert index.get("items", "web/gitlab") == {"label": "GitLab CE"}

    assert index.delete("items", "web/github") is True
    assert index.keys("items") == ["web/gitlab"]


def test_data_survives_reopen(tmp_path: Path) -> None:
    path = tmp_path / "index.db"
    with SqliteIndex(path) as first:
        first.put("aliases", "default", "login")
    with SqliteIndex(path) as second:
        assert second.get("aliases", "default") == "login"


def test_invalid_table_name_rejected(index: SqliteIndex) -> None:
    with pytest.raises(ValueError):
        index.put("items; DROP TABLE items", "k", 1)


def test_structural_damage_is_an_index_error(index: SqliteIndex) -> None:
    index._conn.execute('CREATE TABLE "broken" (other TEXT)')
    with pytest.raises(PersistentIndexError) as info:
        index.keys("broken")
    assert isinstance(info.value.cause, sqlite3.OperationalError)
    assert to_remote_error(info.value).name.endswith(".IndexError")
