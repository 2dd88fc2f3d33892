"""Composition root for ``lib_pass_store``.

Purpose
-------
Provide the entry points that wire the environment adapter, the encryption
runner and the store together. Applications that already hold a
:class:`StoreConfig` can skip the environment entirely.

Contents
--------
* :func:`read_store_config` – environment → immutable :class:`StoreConfig`.
* :func:`open_store` – build a ready-to-use :class:`PasswordStore`.

System Role
-----------
This module is the canonical place for swapping adapters; everything else
depends on the ports in :mod:`lib_pass_store.application.ports`.
"""

from __future__ import annotations

from typing import Mapping

from .adapters.env.default import DefaultEnvLoader
from .adapters.gpg.process import GpgRunner
from .application.store import PasswordStore
from .domain.config import StoreConfig
from .observability import bind_trace_id, log_info, make_event


def read_store_config(environ: Mapping[str, str] | None = None) -> StoreConfig:
    """Return the store configuration described by *environ* (default ``os.environ``).

    Raises
    ------
    ConfigError
        When no root is configured and ``HOME`` is unset.

    Examples
    --------
    >>> cfg = read_store_config({"HOME": "/home/demo"})
    >>> str(cfg.directory)
    '/home/demo/.password-store'
    """

    return DefaultEnvLoader(environ=environ).load()


def open_store(
    environ: Mapping[str, str] | None = None,
    *,
    config: StoreConfig | None = None,
) -> PasswordStore:
    """Return a :class:`PasswordStore` for *config* or for the environment.

    Side Effects
    ------------
    Clears the active trace identifier and emits a ``store_opened`` event.
    """

    bind_trace_id(None)
    resolved = config if config is not None else read_store_config(environ)
    store = PasswordStore(resolved, runner=GpgRunner(resolved.gpg_program, resolved.gpg_options))
    log_info("store_opened", **make_event("open", str(store.directory), {"gpg_program": resolved.gpg_program}))
    return store


__all__ = ["open_store", "read_store_config"]
