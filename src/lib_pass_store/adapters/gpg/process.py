"""Encryption tool adapter driving ``gpg`` as an asyncio subprocess.

Purpose
-------
Implement the :class:`lib_pass_store.application.ports.EncryptionRunner`
protocol. No cryptography happens in Python: payloads are piped through the
external tool and its exit status decides success.

Key behaviours
--------------
* Command lines are ``<program> [options] [--pinentry-mode=error] --decrypt -``
  and ``<program> [options] --recipient <id> --encrypt -``.
* stdin, stdout and stderr are pipes. :meth:`asyncio.subprocess.Process.communicate`
  feeds stdin from its own task while stdout and stderr are drained, so
  payloads larger than the OS pipe buffer cannot deadlock.
* A nonzero exit raises :class:`GpgError` with stderr decoded leniently; a
  spawn failure raises :class:`IoError`.
"""

from __future__ import annotations

import asyncio
from typing import Final, Iterable, Sequence

from ...domain.errors import GpgError, translate_errors
from ...observability import log_debug, log_error

PINENTRY_ERROR: Final[str] = "--pinentry-mode=error"


class GpgRunner:
    """Run encrypt/decrypt directives through an external ``gpg`` binary."""

    def __init__(self, program: str = "gpg", options: Iterable[str] = ()) -> None:
        self.program = program
        self.options = tuple(options)

    def command(self, directive: Sequence[str]) -> list[str]:
        """Return the full argv for *directive*.

        Examples
        --------
        >>> GpgRunner(options=["--batch"]).command(["--decrypt", "-"])
        ['gpg', '--batch', '--decrypt', '-']
        """

        return [self.program, *self.options, *directive]

    async def decrypt(self, ciphertext: bytes, *, can_prompt: bool = True) -> bytes:
        """Return the plaintext for *ciphertext*.

        When *can_prompt* is false, ``gpg`` is told to fail instead of asking a
        pinentry for a passphrase.
        """

        directive = [] if can_prompt else [PINENTRY_ERROR]
        directive += ["--decrypt", "-"]
        return await self._run(directive, ciphertext)

    async def encrypt(self, plaintext: bytes, recipient: str) -> bytes:
        """Return *plaintext* encrypted for *recipient*."""

        return await self._run(["--recipient", recipient, "--encrypt", "-"], plaintext)

    async def _run(self, directive: Sequence[str], payload: bytes) -> bytes:
        argv = self.command(directive)
        with translate_errors():
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, stderr = await process.communicate(payload)

        if process.returncode != 0:
            message = stderr.decode("utf-8", errors="replace")
            log_error(
                "gpg_failed",
                operation=directive[-2].lstrip("-"),
                path=None,
                returncode=process.returncode,
                stderr=message,
            )
            raise GpgError(message)

        log_debug(
            "gpg_completed",
            operation=directive[-2].lstrip("-"),
            path=None,
            bytes_in=len(payload),
            bytes_out=len(stdout),
        )
        return stdout
