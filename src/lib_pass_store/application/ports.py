"""Application-layer ports describing adapter responsibilities.

Purpose
-------
Define the structural contracts that adapters must satisfy so the store and
the composition root can orchestrate behaviour without depending on concrete
implementations.

Contents
--------
* :class:`ConfigLoader` – produces the immutable :class:`StoreConfig`.
* :class:`EncryptionRunner` – drives the external encryption tool.
* :class:`SecretStore` – path-keyed interface offered to the protocol front-end.
* :class:`MetadataIndex` – non-secret key-value bookkeeping.

System Role
-----------
These protocols enforce Dependency Inversion (DIP). Each adapter implements one
protocol; tests substitute fakes through the same seams.
"""

from __future__ import annotations

import os
from typing import Any, BinaryIO, Protocol, Sequence, runtime_checkable

from ..domain.config import StoreConfig


@runtime_checkable
class ConfigLoader(Protocol):
    """Materialise the store configuration once at startup."""

    def load(self) -> StoreConfig:
        """Return the configuration or raise ``ConfigError``."""


@runtime_checkable
class EncryptionRunner(Protocol):
    """Encrypt and decrypt byte payloads through an external tool.

    Why
    ----
    The store never implements cryptography; it only needs something that
    turns plaintext into ciphertext for a recipient and back.
    """

    async def decrypt(self, ciphertext: bytes, *, can_prompt: bool = True) -> bytes:
        """Return plaintext or raise ``GpgError`` / ``IoError``."""

    async def encrypt(self, plaintext: bytes, recipient: str) -> bytes:
        """Return ciphertext for *recipient* or raise ``GpgError`` / ``IoError``."""


@runtime_checkable
class SecretStore(Protocol):
    """Operations the protocol front-end calls with store-relative paths."""

    async def read_password(self, path: str, can_prompt: bool = True) -> bytes: ...

    async def write_password(self, path: str, value: bytes) -> None: ...

    async def delete_password(self, path: str) -> None: ...

    async def list_items(self, directory: str = "") -> Sequence[Any]: ...

    async def open_file(self, path: str) -> BinaryIO: ...

    async def stat_file(self, path: str) -> os.stat_result: ...

    async def make_dir(self, directory: str) -> None: ...

    async def remove_dir(self, directory: str) -> None: ...


@runtime_checkable
class MetadataIndex(Protocol):
    """Key-value tables for non-secret bookkeeping.

    Lookups against tables that were never written behave like empty tables.
    """

    def get(self, table: str, key: str, default: Any = ...) -> Any: ...

    def put(self, table: str, key: str, value: Any) -> None: ...

    def delete(self, table: str, key: str) -> bool: ...

    def keys(self, table: str) -> list[str]: ...
