"""Error taxonomy tests: remote mapping, conversions and absence handling."""

from __future__ import annotations

import errno
import sqlite3

import pytest

from lib_pass_store.domain.errors import (
    ACCESS_DENIED,
    FAILED,
    GPG_ERROR,
    INDEX_ERROR,
    IO_ERROR,
    NO_SESSION,
    NO_SUCH_OBJECT,
    NOT_INITIALIZED,
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


class FakeTransportFailure(Exception):
    def __init__(self, message: str, description: str | None = None) -> None:
        super().__init__(message)
        self.description = description


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (IoError(FileNotFoundError(errno.ENOENT, "missing")), RemoteError(NO_SUCH_OBJECT, None)),
        (IoError(PermissionError(errno.EACCES, "denied")), RemoteError(IO_ERROR, None)),
        (IoError(OSError(errno.ENOENT, "missing")), RemoteError(NO_SUCH_OBJECT, None)),
        (TransportError(RuntimeError("bus"), "Method failed"), RemoteError(FAILED, "Method failed")),
        (TransportError(RuntimeError("bus")), RemoteError(FAILED, None)),
        (PersistentIndexError(sqlite3.DatabaseError("corrupt")), RemoteError(INDEX_ERROR, None)),
        (GpgError("gpg: decryption failed: No secret key\n"), RemoteError(GPG_ERROR, "gpg: decryption failed: No secret key\n")),
        (NotInitialized(), RemoteError(NOT_INITIALIZED, "Pass is not initialized")),
        (InvalidSession(), RemoteError(NO_SESSION, None)),
        (PermissionDenied(), RemoteError(ACCESS_DENIED, "Access denied")),
    ],
)
def test_remote_mapping(error: PassStoreError, expected: RemoteError) -> None:
    """Each variant maps to exactly one remote identifier and description."""

    assert to_remote_error(error) == expected


def test_every_variant_belongs_to_the_taxonomy() -> None:
    for variant in (IoError, PersistentIndexError, TransportError, GpgError, NotInitialized, InvalidSession, PermissionDenied):
        assert issubclass(variant, PassStoreError)
    assert not issubclass(ConfigError, PassStoreError)


def test_new_variant_without_remote_id_is_rejected() -> None:
    """Adding a variant forces a mapping decision."""

    with pytest.raises(TypeError, match="remote_id"):

        class Unmapped(PassStoreError):
            pass


def test_messages_are_human_readable() -> None:
    assert str(NotInitialized()) == "Pass is not initialized"
    assert str(InvalidSession()) == "Invalid secret service session"
    assert str(PermissionDenied()) == "Access denied"
    assert str(GpgError("bad")) == "GPG Error: bad"
    assert str(IoError(OSError(errno.EIO, "Input/output error"))).startswith("I/O Error: ")


def test_into_store_error_classifies_foreign_exceptions() -> None:
    assert isinstance(into_store_error(FileNotFoundError(errno.ENOENT, "x")), IoError)
    assert isinstance(into_store_error(sqlite3.OperationalError("locked")), PersistentIndexError)
    transport = into_store_error(FakeTransportFailure("bus", "Remote says no"), transport=(FakeTransportFailure,))
    assert isinstance(transport, TransportError)
    assert transport.description == "Remote says no"
    assert into_store_error(FakeTransportFailure("bus")) is None
    original = GpgError("kept")
    assert into_store_error(original) is original


def test_translate_errors_preserves_the_original_cause() -> None:
    cause = PermissionError(errno.EACCES, "denied")
    with pytest.raises(IoError) as info:
        with translate_errors():
            raise cause
    assert info.value.cause is cause
    assert info.value.__cause__ is cause
    assert not info.value.is_not_found


def test_translate_errors_wraps_transport_types() -> None:
    with pytest.raises(TransportError) as info:
        with translate_errors(transport=(FakeTransportFailure,)):
            raise FakeTransportFailure("bus", "Method failed")
    assert to_remote_error(info.value) == RemoteError(FAILED, "Method failed")


def test_translate_errors_leaves_other_exceptions_alone() -> None:
    with pytest.raises(ValueError):
        with translate_errors():
            raise ValueError("not ours")
    with pytest.raises(NotInitialized):
        with translate_errors():
            raise NotInitialized()


def test_require_found() -> None:
    assert require_found(0) == 0
    assert require_found("") == ""
    with pytest.raises(IoError) as info:
        require_found(None, "collection/login")
    assert info.value.is_not_found
    assert to_remote_error(info.value).name == NO_SUCH_OBJECT


def test_missing_table_as_default_uses_default_or_not_found() -> None:
    conn = sqlite3.connect(":memory:")

    def lookup() -> list[tuple[str]]:
        return conn.execute("SELECT key FROM never_created").fetchall()

    assert missing_table_as_default(lookup, default=[]) == []
    assert missing_table_as_default(lookup, default=None) is None
    with pytest.raises(IoError) as info:
        missing_table_as_default(lookup)
    assert info.value.is_not_found
    conn.close()


def test_missing_table_as_default_escalates_other_index_failures() -> None:
    conn = sqlite3.connect(":memory:")
    conn.execute("CREATE TABLE items (key TEXT)")

    def broken() -> object:
        return conn.execute("SELECT nope FROM items").fetchall()

    with pytest.raises(PersistentIndexError):
        missing_table_as_default(broken, default=[])
    conn.close()
