"""Domain-level exception hierarchy.

Purpose
-------
Expose the closed error taxonomy shared by the password store, its adapters,
and the protocol front-end that consumes it. Every fallible operation in the
package raises one of the variants defined here, and each variant knows the
remote error identifier (plus optional human-readable description) the
front-end must answer with.

Contents
--------
* :class:`PassStoreError` – umbrella base class for all operational failures.
* :class:`IoError` / :class:`PersistentIndexError` / :class:`TransportError` –
  wrappers that carry the original exception from the layer that failed.
* :class:`GpgError` – the encryption tool exited with a nonzero status.
* :class:`NotInitialized` / :class:`InvalidSession` / :class:`PermissionDenied`
  – payload-free conditions.
* :class:`RemoteError` / :func:`to_remote_error` – the protocol-facing mapping.
* :func:`into_store_error` / :func:`translate_errors` – funnel foreign
  exceptions into the taxonomy.
* :func:`require_found` / :func:`missing_table_as_default` – the two
  absence-to-not-found conversions used by the store and the metadata index.
* :class:`ConfigError` – startup-time configuration failure, deliberately kept
  outside the operational taxonomy.

System Role
-----------
The hierarchy lives in the domain layer so adapters and the composition root
can depend on it without creating cycles. Callers catch :class:`PassStoreError`
and hand it to :func:`to_remote_error` to build a protocol failure.
"""

from __future__ import annotations

import errno
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Final, Iterator, TypeVar

T = TypeVar("T")

NO_SUCH_OBJECT: Final[str] = "org.freedesktop.Secret.Error.NoSuchObject"
NO_SESSION: Final[str] = "org.freedesktop.Secret.Error.NoSession"
IO_ERROR: Final[str] = "org.freedesktop.DBus.Error.IOError"
FAILED: Final[str] = "org.freedesktop.DBus.Error.Failed"
ACCESS_DENIED: Final[str] = "org.freedesktop.DBus.Error.AccessDenied"

_IMPL_PREFIX: Final[str] = "io.github.lib_pass_store.Error"
INDEX_ERROR: Final[str] = f"{_IMPL_PREFIX}.IndexError"
GPG_ERROR: Final[str] = f"{_IMPL_PREFIX}.GPGError"
NOT_INITIALIZED: Final[str] = f"{_IMPL_PREFIX}.PassNotInitialized"

NOT_INITIALIZED_TEXT: Final[str] = "Pass is not initialized"
ACCESS_DENIED_TEXT: Final[str] = "Access denied"

_MISSING_TABLE_MARKER: Final[str] = "no such table"


class _Missing:
    """Sentinel type distinguishing "no default supplied" from ``None``."""

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Final[Any] = _Missing()


class ConfigError(Exception):
    """Raised when the store configuration cannot be determined at startup.

    Why
    ----
    A missing home directory (with no explicit root) is a deliberate early
    abort, not an operational failure a protocol client should ever see.
    """


@dataclass(frozen=True, slots=True)
class RemoteError:
    """Protocol-facing failure: a remote error identifier plus optional text.

    Examples
    --------
    >>> to_remote_error(PermissionDenied())
    RemoteError(name='org.freedesktop.DBus.Error.AccessDenied', description='Access denied')
    """

    name: str
    description: str | None = None


class PassStoreError(Exception):
    """Base type for every operational failure raised by ``lib_pass_store``.

    Why
    ----
    Provide a single catch-all type whose instances always know how to present
    themselves to the protocol layer.

    What
    ----
    Subclasses must define :attr:`remote_id`; the check in
    :meth:`__init_subclass__` turns a forgotten mapping into an import-time
    ``TypeError`` instead of a silent fallback.
    """

    remote_id: ClassVar[str]

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if not isinstance(cls.__dict__.get("remote_id"), str):
            raise TypeError(f"{cls.__name__} must declare a remote_id for the protocol mapping")

    @property
    def remote_name(self) -> str:
        """Remote error identifier the protocol front-end should reply with."""

        return self.remote_id

    @property
    def description(self) -> str | None:
        """Human-readable text attached to the remote error, if any."""

        return None


class IoError(PassStoreError):
    """Filesystem or process-level failure wrapping the original :class:`OSError`.

    The errno of the cause is preserved, so "not found" can be told apart from
    every other I/O failure.
    """

    remote_id = IO_ERROR

    def __init__(self, cause: OSError) -> None:
        super().__init__(f"I/O Error: {cause}")
        self.cause = cause

    @classmethod
    def not_found(cls, what: str | None = None) -> "IoError":
        """Build the canonical not-found error (``ENOENT``)."""

        return cls(FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), what))

    @property
    def is_not_found(self) -> bool:
        return isinstance(self.cause, FileNotFoundError) or self.cause.errno == errno.ENOENT

    @property
    def remote_name(self) -> str:
        return NO_SUCH_OBJECT if self.is_not_found else IO_ERROR


class PersistentIndexError(PassStoreError):
    """Failure reported by the persistent metadata index (``sqlite3``)."""

    remote_id = INDEX_ERROR

    def __init__(self, cause: Exception) -> None:
        super().__init__(f"Index Error: {cause}")
        self.cause = cause


class TransportError(PassStoreError):
    """Failure reported by the RPC transport carrying protocol requests.

    ``method_description`` holds the transport's own method-error text when it
    supplied one; it becomes the remote description verbatim.
    """

    remote_id = FAILED

    def __init__(self, cause: BaseException, method_description: str | None = None) -> None:
        super().__init__(f"Transport Error: {cause}")
        self.cause = cause
        self.method_description = method_description

    @property
    def description(self) -> str | None:
        return self.method_description


class GpgError(PassStoreError):
    """The encryption tool exited unsuccessfully; carries its stderr text."""

    remote_id = GPG_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(f"GPG Error: {message}")
        self.message = message

    @property
    def description(self) -> str | None:
        return self.message


class NotInitialized(PassStoreError):
    """No recipient marker exists between the target directory and the root."""

    remote_id = NOT_INITIALIZED

    def __init__(self) -> None:
        super().__init__(NOT_INITIALIZED_TEXT)

    @property
    def description(self) -> str | None:
        return NOT_INITIALIZED_TEXT


class InvalidSession(PassStoreError):
    remote_id = NO_SESSION

    def __init__(self) -> None:
        super().__init__("Invalid secret service session")


class PermissionDenied(PassStoreError):
    remote_id = ACCESS_DENIED

    def __init__(self) -> None:
        super().__init__(ACCESS_DENIED_TEXT)

    @property
    def description(self) -> str | None:
        return ACCESS_DENIED_TEXT


def to_remote_error(error: PassStoreError) -> RemoteError:
    """Return the protocol-facing identifier and description for *error*.

    Examples
    --------
    >>> to_remote_error(IoError.not_found("demo")).name
    'org.freedesktop.Secret.Error.NoSuchObject'
    >>> to_remote_error(GpgError("bad key")).description
    'bad key'
    >>> to_remote_error(NotInitialized()).description
    'Pass is not initialized'
    """

    return RemoteError(error.remote_name, error.description)


def into_store_error(
    exc: BaseException,
    *,
    transport: tuple[type[BaseException], ...] = (),
) -> PassStoreError | None:
    """Classify a foreign exception into the taxonomy.

    Why
    ----
    Call sites should not hand-write wrapping for each underlying layer; this
    is the single place that knows which foreign type maps to which variant.

    Returns
    -------
    PassStoreError | None
        The wrapping variant, *exc* itself when it already belongs to the
        taxonomy, or ``None`` when the exception is not one we translate.

    Examples
    --------
    >>> type(into_store_error(PermissionError(13, "denied"))).__name__
    'IoError'
    >>> into_store_error(ValueError("boom")) is None
    True
    """

    if isinstance(exc, PassStoreError):
        return exc
    if isinstance(exc, OSError):
        return IoError(exc)
    if isinstance(exc, sqlite3.Error):
        return PersistentIndexError(exc)
    if transport and isinstance(exc, transport):
        return TransportError(exc, getattr(exc, "description", None))
    return None


@contextmanager
def translate_errors(*, transport: tuple[type[BaseException], ...] = ()) -> Iterator[None]:
    """Re-raise I/O, index and transport failures as taxonomy errors.

    The original exception stays reachable through ``__cause__`` and the
    variant's ``cause`` attribute.

    Examples
    --------
    >>> try:
    ...     with translate_errors():
    ...         raise FileNotFoundError(2, "No such file or directory")
    ... except IoError as exc:
    ...     exc.is_not_found
    True
    """

    try:
        yield
    except PassStoreError:
        raise
    except Exception as exc:
        converted = into_store_error(exc, transport=transport)
        if converted is None:
            raise
        raise converted from exc


def require_found(value: T | None, what: str | None = None) -> T:
    """Return *value* or raise the not-found :class:`IoError` when it is ``None``.

    Examples
    --------
    >>> require_found(5)
    5
    >>> require_found(None, "item")
    Traceback (most recent call last):
    ...
    lib_pass_store.domain.errors.IoError: I/O Error: [Errno 2] No such file or directory: 'item'
    """

    if value is None:
        raise IoError.not_found(what)
    return value


def missing_table_as_default(call: Callable[[], T], default: Any = MISSING) -> T:
    """Run an index lookup treating a not-yet-created table as absence.

    Why
    ----
    A freshly created index has no tables; higher layers should see that as
    "nothing stored yet" instead of corruption.

    What
    ----
    Returns ``call()``; on ``no such table`` returns *default* when supplied,
    otherwise raises the not-found :class:`IoError`. Any other ``sqlite3``
    failure becomes :class:`PersistentIndexError`.
    """

    try:
        return call()
    except sqlite3.OperationalError as exc:
        if _MISSING_TABLE_MARKER not in str(exc):
            raise PersistentIndexError(exc) from exc
        if default is not MISSING:
            return default
        raise IoError.not_found(str(exc)) from exc
    except sqlite3.Error as exc:
        raise PersistentIndexError(exc) from exc


__all__ = [
    "ACCESS_DENIED",
    "ConfigError",
    "FAILED",
    "GPG_ERROR",
    "GpgError",
    "INDEX_ERROR",
    "IO_ERROR",
    "InvalidSession",
    "IoError",
    "MISSING",
    "NOT_INITIALIZED",
    "NO_SESSION",
    "NO_SUCH_OBJECT",
    "NotInitialized",
    "PassStoreError",
    "PermissionDenied",
    "PersistentIndexError",
    "RemoteError",
    "TransportError",
    "into_store_error",
    "missing_table_as_default",
    "require_found",
    "to_remote_error",
    "translate_errors",
]
