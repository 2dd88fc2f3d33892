"""Public package surface for the encrypted password store backend.

Re-exports the composition root, the store and its result types, the
configuration value object, the error taxonomy with its remote mapping, and
the logging hooks, so consumers only ever need ``import lib_pass_store``.
"""

from __future__ import annotations

from .adapters.gpg.process import GpgRunner
from .adapters.index.sqlite import SqliteIndex
from .application.store import GPG_ID_FILE, GPG_SUFFIX, EntryKind, PasswordStore, StoreEntry
from .core import open_store, read_store_config
from .domain.config import StoreConfig, dir_mode_for, file_mode_for
from .domain.errors import (
    ConfigError,
    GpgError,
    InvalidSession,
    IoError,
    NotInitialized,
    PassStoreError,
    PermissionDenied,
    PersistentIndexError,
    RemoteError,
    TransportError,
    into_store_error,
    missing_table_as_default,
    require_found,
    to_remote_error,
    translate_errors,
)
from .observability import bind_trace_id, get_logger

__all__ = [
    "ConfigError",
    "EntryKind",
    "GPG_ID_FILE",
    "GPG_SUFFIX",
    "GpgError",
    "GpgRunner",
    "InvalidSession",
    "IoError",
    "NotInitialized",
    "PassStoreError",
    "PasswordStore",
    "PermissionDenied",
    "PersistentIndexError",
    "RemoteError",
    "SqliteIndex",
    "StoreConfig",
    "StoreEntry",
    "TransportError",
    "bind_trace_id",
    "dir_mode_for",
    "file_mode_for",
    "get_logger",
    "into_store_error",
    "missing_table_as_default",
    "open_store",
    "read_store_config",
    "require_found",
    "to_remote_error",
    "translate_errors",
]
