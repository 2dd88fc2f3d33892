"""Domain-level configuration value object.

Purpose
-------
Anchor the immutable :class:`StoreConfig` that every store operation reads.
This module belongs to the domain layer and contains no I/O: the environment
adapter builds the value once at startup and the store only ever reads it.

Contents
--------
* :data:`DEFAULT_UMASK` – umask applied when none is configured.
* :func:`dir_mode_for` / :func:`file_mode_for` – permission derivation from a
  umask-style value.
* :class:`StoreConfig` – frozen dataclass carrying root, tool arguments and
  permission modes.

System Role
-----------
Shared read-only by all concurrently running operations; immutability is what
allows it to be shared without locking.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Final, Iterable

DEFAULT_UMASK: Final[int] = 0o077
DEFAULT_GPG_PROGRAM: Final[str] = "gpg"

_PERMISSION_BITS: Final[int] = 0o777
_EXECUTE_BITS: Final[int] = 0o111


def dir_mode_for(umask: int) -> int:
    """Return the directory-creation mode for *umask*.

    Examples
    --------
    >>> oct(dir_mode_for(0o077)), oct(dir_mode_for(0o022))
    ('0o700', '0o755')
    """

    return ~umask & _PERMISSION_BITS


def file_mode_for(umask: int) -> int:
    """Return the file-creation mode for *umask*; execute bits are always cleared.

    Examples
    --------
    >>> oct(file_mode_for(0o077)), oct(file_mode_for(0o022)), oct(file_mode_for(0))
    ('0o600', '0o644', '0o666')
    """

    return ~(umask | _EXECUTE_BITS) & _PERMISSION_BITS


@dataclass(frozen=True, slots=True)
class StoreConfig:
    """Immutable settings for one password store.

    Why
    ----
    Replace ambient, environment-derived global state with an explicit value
    constructed once and handed to the store.

    Parameters
    ----------
    directory:
        Root of the store. Secrets and ``.gpg-id`` markers live below it.
    gpg_options:
        Extra arguments placed before every tool directive.
    dir_mode / file_mode:
        Permission bits used when creating directories and secret files.
    gpg_program:
        Encryption tool executable.

    Examples
    --------
    >>> cfg = StoreConfig.from_umask("/tmp/store", gpg_options=["--batch"])
    >>> cfg.directory, cfg.gpg_options, oct(cfg.dir_mode), oct(cfg.file_mode)
    (PosixPath('/tmp/store'), ('--batch',), '0o700', '0o600')
    """

    directory: Path
    gpg_options: tuple[str, ...] = ()
    dir_mode: int = dir_mode_for(DEFAULT_UMASK)
    file_mode: int = file_mode_for(DEFAULT_UMASK)
    gpg_program: str = DEFAULT_GPG_PROGRAM

    def __post_init__(self) -> None:
        """Normalise field types so equality and hashing stay predictable."""

        object.__setattr__(self, "directory", Path(self.directory))
        object.__setattr__(self, "gpg_options", tuple(self.gpg_options))

    @classmethod
    def from_umask(
        cls,
        directory: str | Path,
        *,
        gpg_options: Iterable[str] = (),
        umask: int = DEFAULT_UMASK,
        gpg_program: str = DEFAULT_GPG_PROGRAM,
    ) -> "StoreConfig":
        """Build a config deriving both permission modes from *umask*."""

        return cls(
            directory=Path(directory),
            gpg_options=tuple(gpg_options),
            dir_mode=dir_mode_for(umask),
            file_mode=file_mode_for(umask),
            gpg_program=gpg_program,
        )

    def as_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly representation (modes rendered in octal).

        Examples
        --------
        >>> StoreConfig.from_umask("/srv/pass").as_dict()["file_mode"]
        '0o600'
        """

        data = asdict(self)
        data["directory"] = str(self.directory)
        data["gpg_options"] = list(self.gpg_options)
        data["dir_mode"] = oct(self.dir_mode)
        data["file_mode"] = oct(self.file_mode)
        return data
