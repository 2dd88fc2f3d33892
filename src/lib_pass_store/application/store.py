"""Encrypted file store: one ``gpg``-encrypted file per secret.

Purpose
-------
Persist secrets as individually encrypted files below a root directory,
choosing the encryption recipient per directory from ``.gpg-id`` markers, and
offer the protocol front-end a small path-keyed API (read, write, delete,
list, plus a few filesystem helpers).

Contents
--------
* :data:`GPG_SUFFIX` / :data:`GPG_ID_FILE` – reserved file names.
* :class:`EntryKind` / :class:`StoreEntry` – listing results.
* :class:`PasswordStore` – the store itself.

System Role
-----------
Sits between the protocol front-end and two adapters: the encryption runner
(:mod:`lib_pass_store.adapters.gpg.process`) and the local filesystem. Every
failure leaves this module as a :class:`~lib_pass_store.domain.errors.PassStoreError`.

Paths given to the store are relative to the root. They are normalised
lexically and rejected with :class:`PermissionDenied` when they would leave
the root; symlinks below the root are trusted and not resolved.

Blocking filesystem calls run through :func:`asyncio.to_thread`. Writes and
deletes on the same secret are serialised by a per-path lock; operations on
different paths never wait on each other.
"""

from __future__ import annotations

import asyncio
import errno
import os
import shutil
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Final, Iterator, NamedTuple
from weakref import WeakValueDictionary

from ..adapters.gpg.process import GpgRunner
from ..domain.config import StoreConfig
from ..domain.errors import NotInitialized, PermissionDenied, translate_errors
from ..observability import log_debug, log_error, log_info, make_event
from .ports import EncryptionRunner

GPG_SUFFIX: Final[str] = ".gpg"
GPG_ID_FILE: Final[str] = ".gpg-id"

StorePath = str | os.PathLike[str]


class EntryKind(str, Enum):
    """Filesystem kind of a listed entry (symlinks are not followed)."""

    FILE = "file"
    DIRECTORY = "directory"
    SYMLINK = "symlink"
    OTHER = "other"


class StoreEntry(NamedTuple):
    kind: EntryKind
    name: str


class PasswordStore:
    """Read, write, delete and list ``gpg``-encrypted secrets below a root.

    Parameters
    ----------
    config:
        Immutable store configuration; never modified by the store.
    runner:
        Encryption tool driver. Defaults to a :class:`GpgRunner` built from
        ``config.gpg_program`` and ``config.gpg_options``.
    """

    def __init__(self, config: StoreConfig, *, runner: EncryptionRunner | None = None) -> None:
        self.config = config
        self.directory = Path(os.path.abspath(config.directory))
        self._runner = runner or GpgRunner(config.gpg_program, config.gpg_options)
        self._locks: WeakValueDictionary[Path, asyncio.Lock] = WeakValueDictionary()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(directory={str(self.directory)!r})"

    # ------------------------------------------------------------------
    # Path handling
    # ------------------------------------------------------------------

    def secret_path(self, path: StorePath) -> Path:
        """Return the backing file for secret *path* (``.gpg`` appended once).

        Examples
        --------
        >>> store = PasswordStore(StoreConfig.from_umask("/srv/pass"))
        >>> store.secret_path("web/github")
        PosixPath('/srv/pass/web/github.gpg')
        >>> store.secret_path("web/github.gpg")
        PosixPath('/srv/pass/web/github.gpg')
        """

        name = os.fspath(path)
        if not name.endswith(GPG_SUFFIX):
            name += GPG_SUFFIX
        return self._resolve(name)

    def _resolve(self, path: StorePath) -> Path:
        candidate = Path(os.path.normpath(self.directory / path))
        if candidate != self.directory and self.directory not in candidate.parents:
            log_error("path_outside_store", **make_event("resolve", os.fspath(path)))
            raise PermissionDenied()
        return candidate

    def _resolve_child(self, path: StorePath) -> Path:
        candidate = self._resolve(path)
        if candidate == self.directory:
            raise PermissionDenied()
        return candidate

    def _ancestors(self, directory: Path) -> Iterator[Path]:
        """Yield *directory* and its parents, stopping after the root."""

        for candidate in (directory, *directory.parents):
            yield candidate
            if candidate == self.directory:
                return

    def _lock_for(self, path: Path) -> asyncio.Lock:
        lock = self._locks.get(path)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[path] = lock
        return lock

    # ------------------------------------------------------------------
    # Recipients and directories
    # ------------------------------------------------------------------

    async def get_gpg_id(self, directory: StorePath) -> str:
        """Return the recipient for secrets stored in *directory*.

        The nearest ``.gpg-id`` between *directory* and the root (inclusive)
        wins. Directories above the root are never consulted.

        Raises
        ------
        NotInitialized
            When no marker exists anywhere on that walk.
        """

        target = self._resolve(directory)
        with translate_errors():
            for candidate in self._ancestors(target):
                try:
                    recipient = await asyncio.to_thread(_read_marker, candidate / GPG_ID_FILE)
                except FileNotFoundError:
                    continue
                log_debug(
                    "recipient_resolved",
                    **make_event("recipient", _relative(self.directory, target), {"marker_dir": str(candidate)}),
                )
                return recipient
        log_error("store_not_initialized", **make_event("recipient", _relative(self.directory, target)))
        raise NotInitialized()

    async def ensure_dirs(self, directory: StorePath) -> None:
        """Create *directory* and any missing parents using ``dir_mode``."""

        await self._ensure(self._resolve(directory))

    async def _ensure(self, directory: Path) -> None:
        with translate_errors():
            await asyncio.to_thread(_make_dirs, directory, self.config.dir_mode)

    # ------------------------------------------------------------------
    # Secrets
    # ------------------------------------------------------------------

    async def read_password(self, path: StorePath, can_prompt: bool = True) -> bytes:
        """Decrypt and return the secret stored at *path*.

        A missing secret raises the not-found :class:`IoError`. With
        *can_prompt* false the tool must not ask for a passphrase.
        """

        full_path = self.secret_path(path)
        with translate_errors():
            ciphertext = await asyncio.to_thread(full_path.read_bytes)
        plaintext = await self._runner.decrypt(ciphertext, can_prompt=can_prompt)
        log_debug("secret_read", **make_event("read", os.fspath(path), {"bytes": len(plaintext)}))
        return plaintext

    async def write_password(self, path: StorePath, value: bytes) -> None:
        """Encrypt *value* for the directory's recipient and store it at *path*.

        The file is only opened after the tool succeeded, so a failed
        encryption never creates or truncates the destination.
        """

        full_path = self.secret_path(path)
        directory = full_path.parent
        async with self._lock_for(full_path):
            await self._ensure(directory)
            recipient = await self.get_gpg_id(directory)
            ciphertext = await self._runner.encrypt(bytes(value), recipient)
            with translate_errors():
                await asyncio.to_thread(_write_file, full_path, ciphertext, self.config.file_mode)
        log_info("secret_written", **make_event("write", os.fspath(path), {"bytes": len(ciphertext)}))

    async def delete_password(self, path: StorePath) -> None:
        """Remove the secret at *path*; deleting a missing secret succeeds."""

        full_path = self.secret_path(path)
        async with self._lock_for(full_path):
            with translate_errors():
                await asyncio.to_thread(full_path.unlink, missing_ok=True)
        log_info("secret_deleted", **make_event("delete", os.fspath(path)))

    # ------------------------------------------------------------------
    # Filesystem helpers
    # ------------------------------------------------------------------

    async def list_items(self, directory: StorePath = "") -> list[StoreEntry]:
        """Return the immediate children of *directory*, creating it if absent.

        Order follows the filesystem and is not guaranteed.
        """

        target = self._resolve(directory)
        await self._ensure(target)
        with translate_errors():
            entries = await asyncio.to_thread(_scan, target)
        log_debug("directory_listed", **make_event("list", os.fspath(directory), {"entries": len(entries)}))
        return entries

    async def open_file(self, path: StorePath) -> BinaryIO:
        """Open *path* for binary read/write, creating it with ``file_mode`` if absent.

        The caller owns the returned handle and must close it.
        """

        full_path = self._resolve_child(path)
        await self._ensure(full_path.parent)
        with translate_errors():
            return await asyncio.to_thread(_open_rw, full_path, self.config.file_mode)

    async def stat_file(self, path: StorePath) -> os.stat_result:
        """Return metadata for *path*.

        Parent directories are created first; a missing file still raises the
        not-found :class:`IoError`.
        """

        full_path = self._resolve_child(path)
        await self._ensure(full_path.parent)
        with translate_errors():
            return await asyncio.to_thread(full_path.stat)

    async def make_dir(self, directory: StorePath) -> None:
        await self._ensure(self._resolve(directory))

    async def remove_dir(self, directory: StorePath) -> None:
        """Recursively delete *directory*. The root itself cannot be removed."""

        target = self._resolve_child(directory)
        with translate_errors():
            await asyncio.to_thread(shutil.rmtree, target)
        log_info("directory_removed", **make_event("remove_dir", os.fspath(directory)))


def _relative(root: Path, path: Path) -> str:
    return path.relative_to(root).as_posix()


def _read_marker(path: Path) -> str:
    data = path.read_bytes()
    try:
        return data.decode("utf-8").strip()
    except UnicodeDecodeError as exc:
        raise OSError(errno.EILSEQ, "recipient marker is not valid UTF-8", str(path)) from exc


def _make_dirs(directory: Path, mode: int) -> None:
    """Create every missing level of *directory* top-down with *mode*.

    ``os.makedirs`` only applies ``mode`` to the leaf, hence the manual walk.
    """

    missing: list[Path] = []
    current = directory
    while not current.exists():
        missing.append(current)
        current = current.parent
    for level in reversed(missing):
        try:
            level.mkdir(mode=mode)
        except FileExistsError:
            if not level.is_dir():
                raise


def _write_file(path: Path, data: bytes, mode: int) -> None:
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
    with os.fdopen(fd, "wb") as handle:
        handle.write(data)


def _open_rw(path: Path, mode: int) -> BinaryIO:
    fd = os.open(path, os.O_RDWR | os.O_CREAT, mode)
    return os.fdopen(fd, "r+b")


def _scan(directory: Path) -> list[StoreEntry]:
    with os.scandir(directory) as iterator:
        return [StoreEntry(_kind(entry), _display_name(entry.name)) for entry in iterator]


def _display_name(name: str) -> str:
    """Undo surrogate escapes so undecodable bytes surface as U+FFFD."""

    return os.fsencode(name).decode("utf-8", errors="replace")


def _kind(entry: os.DirEntry[str]) -> EntryKind:
    if entry.is_symlink():
        return EntryKind.SYMLINK
    if entry.is_dir(follow_symlinks=False):
        return EntryKind.DIRECTORY
    if entry.is_file(follow_symlinks=False):
        return EntryKind.FILE
    return EntryKind.OTHER
