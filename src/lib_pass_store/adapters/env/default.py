"""Environment variable adapter.

Purpose
-------
Translate the process environment into a :class:`StoreConfig`. This is the only
place that reads ``os.environ``; everything downstream receives the resulting
immutable value.

Key behaviours
--------------
* ``PASSWORD_STORE_DIR`` overrides the root; otherwise ``$HOME/.password-store``.
* ``PASSWORD_STORE_GPG_OPTS`` is split on whitespace into extra tool arguments.
* ``PASSWORD_STORE_UMASK`` is parsed as octal; invalid values fall back to
  :data:`DEFAULT_UMASK`.
* ``PASSWORD_STORE_GPG_PROGRAM`` replaces the ``gpg`` executable.
* Emits structured logging via :mod:`lib_pass_store.observability`.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Final, Mapping

from ...domain.config import DEFAULT_GPG_PROGRAM, DEFAULT_UMASK, StoreConfig
from ...domain.errors import ConfigError
from ...observability import log_debug

ENV_DIR: Final[str] = "PASSWORD_STORE_DIR"
ENV_GPG_OPTS: Final[str] = "PASSWORD_STORE_GPG_OPTS"
ENV_UMASK: Final[str] = "PASSWORD_STORE_UMASK"
ENV_GPG_PROGRAM: Final[str] = "PASSWORD_STORE_GPG_PROGRAM"
DEFAULT_STORE_NAME: Final[str] = ".password-store"


class DefaultEnvLoader:
    """Build the store configuration from environment variables."""

    def __init__(self, *, environ: Mapping[str, str] | None = None) -> None:
        """Initialise the loader with a specific ``environ`` mapping for testability.

        Parameters
        ----------
        environ:
            Mapping to read from. Defaults to :data:`os.environ`.
        """

        self._environ = os.environ if environ is None else environ

    def load(self) -> StoreConfig:
        """Return the :class:`StoreConfig` described by the environment.

        Raises
        ------
        ConfigError
            When neither ``PASSWORD_STORE_DIR`` nor ``HOME`` is set.

        Examples
        --------
        >>> env = {
        ...     'PASSWORD_STORE_DIR': '/srv/pass',
        ...     'PASSWORD_STORE_GPG_OPTS': '--batch  --quiet',
        ...     'PASSWORD_STORE_UMASK': '022',
        ... }
        >>> cfg = DefaultEnvLoader(environ=env).load()
        >>> str(cfg.directory), cfg.gpg_options, oct(cfg.dir_mode), oct(cfg.file_mode)
        ('/srv/pass', ('--batch', '--quiet'), '0o755', '0o644')
        """

        directory = self._directory()
        options = tuple(self._environ.get(ENV_GPG_OPTS, "").split())
        umask = parse_umask(self._environ.get(ENV_UMASK))
        program = self._environ.get(ENV_GPG_PROGRAM) or DEFAULT_GPG_PROGRAM
        config = StoreConfig.from_umask(directory, gpg_options=options, umask=umask, gpg_program=program)
        log_debug(
            "store_config_loaded",
            operation="config",
            path=str(config.directory),
            options=len(options),
            umask=oct(umask),
        )
        return config

    def _directory(self) -> Path:
        explicit = self._environ.get(ENV_DIR)
        if explicit:
            return Path(explicit)
        home = self._environ.get("HOME")
        if not home:
            raise ConfigError(f"$HOME must be set when {ENV_DIR} is not configured")
        return Path(home) / DEFAULT_STORE_NAME


def parse_umask(value: str | None) -> int:
    """Parse an octal umask string, falling back to :data:`DEFAULT_UMASK`.

    Bits above ``0o777`` are kept; the mode derivation masks them off.

    Examples
    --------
    >>> oct(parse_umask('027')), oct(parse_umask(None)), oct(parse_umask('9z'))
    ('0o27', '0o77', '0o77')
    >>> oct(parse_umask('1000'))
    '0o1000'
    """

    if not value:
        return DEFAULT_UMASK
    try:
        umask = int(value.strip(), 8)
    except ValueError:
        umask = -1
    if umask < 0:
        log_debug("umask_invalid", operation="config", path=None, value=value)
        return DEFAULT_UMASK
    return umask
