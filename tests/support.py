"""Shared sandbox helpers for store, runner and CLI tests.

The sandbox builds a store root in ``tmp_path`` together with a fake ``gpg``.
The fake is a small Python script executed through ``sys.executable``; its path
is passed as the first extra tool option, so the store's real command line
(``[options] --recipient X --encrypt -``) reaches the script unchanged.

Fake ciphertext is ``FAKEGPG:<recipient>\\n`` followed by the plaintext, which
lets tests read back which recipient a secret was encrypted for. Every
invocation appends its argv as a JSON line to ``calls.jsonl``. Creating a
``fail`` file next to the script makes it print that file's content to stderr
and exit with status 2.
"""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field
from pathlib import Path

from lib_pass_store import PasswordStore, StoreConfig

FAKE_HEADER = b"FAKEGPG:"

_FAKE_GPG = '''\
import json
import sys
from pathlib import Path

HERE = Path(__file__).resolve().parent
HEADER = b"FAKEGPG:"

args = sys.argv[1:]
with open(HERE / "calls.jsonl", "a", encoding="utf-8") as log:
    log.write(json.dumps(args) + "\\n")

data = sys.stdin.buffer.read()
failure = HERE / "fail"
if failure.exists():
    sys.stderr.buffer.write(failure.read_bytes())
    sys.exit(2)

if "--encrypt" in args:
    recipient = args[args.index("--recipient") + 1]
    sys.stdout.buffer.write(HEADER + recipient.encode("utf-8") + b"\\n" + data)
elif "--decrypt" in args:
    header, _, body = data.partition(b"\\n")
    if not header.startswith(HEADER):
        sys.stderr.write("gpg: no valid OpenPGP data found.\\n")
        sys.exit(2)
    sys.stdout.buffer.write(body)
else:
    sys.stderr.write("gpg: unknown directive\\n")
    sys.exit(2)
'''


@dataclass
class StoreSandbox:
    """Store root plus fake tool, with helpers to shape and inspect both."""

    root: Path
    tool_dir: Path
    extra_options: tuple[str, ...] = field(default_factory=tuple)

    @property
    def script(self) -> Path:
        return self.tool_dir / "fake_gpg.py"

    def config(self, *, umask: int = 0o077) -> StoreConfig:
        return StoreConfig.from_umask(
            self.root,
            gpg_options=(str(self.script), *self.extra_options),
            umask=umask,
            gpg_program=sys.executable,
        )

    def store(self, *, umask: int = 0o077) -> PasswordStore:
        return PasswordStore(self.config(umask=umask))

    def environ(self) -> dict[str, str]:
        """Environment variables that make :func:`open_store` use this sandbox."""

        return {
            "PASSWORD_STORE_DIR": str(self.root),
            "PASSWORD_STORE_GPG_OPTS": " ".join((str(self.script), *self.extra_options)),
            "PASSWORD_STORE_GPG_PROGRAM": sys.executable,
        }

    def mark(self, relative: str, recipient: str) -> Path:
        """Write a ``.gpg-id`` marker in ``root/relative``."""

        directory = self.root / relative
        directory.mkdir(parents=True, exist_ok=True)
        marker = directory / ".gpg-id"
        marker.write_text(f"{recipient}\n", encoding="utf-8")
        return marker

    def fail_with(self, stderr: bytes) -> None:
        (self.tool_dir / "fail").write_bytes(stderr)

    def recover(self) -> None:
        (self.tool_dir / "fail").unlink(missing_ok=True)

    def calls(self) -> list[list[str]]:
        log = self.tool_dir / "calls.jsonl"
        if not log.exists():
            return []
        return [json.loads(line) for line in log.read_text(encoding="utf-8").splitlines()]

    def recipient_of(self, relative: str) -> str:
        """Return the recipient recorded in the fake ciphertext at ``root/relative``."""

        header = (self.root / relative).read_bytes().split(b"\n", 1)[0]
        assert header.startswith(FAKE_HEADER), header
        return header[len(FAKE_HEADER) :].decode("utf-8")


def create_store_sandbox(tmp_path: Path, *, extra_options: tuple[str, ...] = ()) -> StoreSandbox:
    """Create a fresh store root and fake tool below *tmp_path*."""

    root = tmp_path / "store"
    tool_dir = tmp_path / "tool"
    root.mkdir()
    tool_dir.mkdir()
    sandbox = StoreSandbox(root=root, tool_dir=tool_dir, extra_options=extra_options)
    sandbox.script.write_text(_FAKE_GPG, encoding="utf-8")
    return sandbox
