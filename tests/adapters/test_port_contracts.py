"""Adapter contract tests for the default ports implementation.

Verify the default adapters and the store keep satisfying the protocols in
``src/lib_pass_store/application/ports.py`` so the dependency inversion stays
enforceable.
"""

from __future__ import annotations

from pathlib import Path

from lib_pass_store.adapters.env.default import DefaultEnvLoader
from lib_pass_store.adapters.gpg.process import GpgRunner
from lib_pass_store.adapters.index.sqlite import SqliteIndex
from lib_pass_store.application import ports
from lib_pass_store.application.store import PasswordStore
from lib_pass_store.domain.config import StoreConfig


def test_env_loader_contract() -> None:
    loader = DefaultEnvLoader(environ={"HOME": "/home/demo"})
    assert isinstance(loader, ports.ConfigLoader)
    assert isinstance(loader.load(), StoreConfig)


def test_gpg_runner_contract() -> None:
    assert isinstance(GpgRunner(), ports.EncryptionRunner)


def test_password_store_contract(tmp_path: Path) -> None:
    store = PasswordStore(StoreConfig.from_umask(tmp_path))
    assert isinstance(store, ports.SecretStore)


def test_sqlite_index_contract(tmp_path: Path) -> None:
    with SqliteIndex(tmp_path / "index.db") as index:
        assert isinstance(index, ports.MetadataIndex)
