"""CLI adapter for ``lib_pass_store`` built on ``lib_cli_exit_tools``.

Purpose
-------
Give operators a way to inspect and exercise a password store without writing
a protocol client: show, insert, delete and list secrets, and print the
configuration resolved from the environment.

Contents
--------
* :data:`CLICK_CONTEXT_SETTINGS` – shared Click settings ensuring ``-h`` works.
* :func:`cli` – root command that wires global traceback handling into
  ``lib_cli_exit_tools``.
* :func:`cli_info` – prints distribution metadata for quick diagnostics.
* :func:`cli_config` – prints the resolved :class:`StoreConfig` as JSON.
* :func:`cli_show` / :func:`cli_insert` / :func:`cli_rm` / :func:`cli_ls` –
  thin wrappers around :class:`PasswordStore` operations.
* :func:`main` – entry point used by ``console_scripts`` registration.

System Role
-----------
The CLI lives in the outermost layer. It calls the composition root
(:func:`open_store`) and reports store failures with the same remote error
identifiers a protocol client would receive.
"""

from __future__ import annotations

import asyncio
import json
import sys
from importlib import metadata
from typing import Any, Coroutine, Final, Optional, Sequence, TypeVar

import lib_cli_exit_tools
import rich_click as click

from .core import open_store, read_store_config
from .domain.errors import PassStoreError, to_remote_error

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
_TRACEBACK_SUMMARY_LIMIT: Final[int] = 500
_TRACEBACK_VERBOSE_LIMIT: Final[int] = 10_000

T = TypeVar("T")


def _resolve_version() -> str:
    """Return the installed package version, or ``"0.0.0"`` when not installed."""

    try:
        return metadata.version("lib_pass_store")
    except metadata.PackageNotFoundError:
        return "0.0.0"


def _run(operation: Coroutine[Any, Any, T]) -> T:
    """Drive a store coroutine to completion, turning store failures into CLI errors."""

    try:
        return asyncio.run(operation)
    except PassStoreError as exc:
        remote = to_remote_error(exc)
        raise click.ClickException(f"{remote.name}: {exc}") from exc


@click.group(
    help="Encrypted password store backend",
    context_settings=CLICK_CONTEXT_SETTINGS,
    invoke_without_command=False,
)
@click.version_option(
    version=_resolve_version(),
    prog_name="lib_pass_store",
    message="lib_pass_store version %(version)s",
)
@click.option(
    "--traceback/--no-traceback",
    is_flag=True,
    default=False,
    help="Show full Python traceback on errors",
)
@click.pass_context
def cli(ctx: click.Context, traceback: bool) -> None:
    """Root command configuring traceback handling for all subcommands.

    Side Effects
        Mutates ``lib_cli_exit_tools.config.traceback`` and
        ``lib_cli_exit_tools.config.traceback_force_color``.
    """

    ctx.ensure_object(dict)
    ctx.obj["traceback"] = traceback
    lib_cli_exit_tools.config.traceback = traceback
    lib_cli_exit_tools.config.traceback_force_color = traceback


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Print basic distribution metadata so users can confirm installation."""

    try:
        meta = metadata.metadata("lib_pass_store")
    except metadata.PackageNotFoundError:
        click.echo("lib_pass_store (metadata unavailable)")
        return
    click.echo(f"Info for {meta.get('Name', 'lib_pass_store')}:")
    click.echo(f"  Version         : {meta.get('Version', _resolve_version())}")
    click.echo(f"  Requires-Python : {meta.get('Requires-Python', '>=3.10')}")
    summary = meta.get("Summary")
    if summary:
        click.echo(f"  Summary         : {summary}")


@cli.command("config", context_settings=CLICK_CONTEXT_SETTINGS)
@click.option("--indent", type=int, default=None, help="Pretty-print JSON output with the provided indent size")
def cli_config(indent: Optional[int]) -> None:
    """Print the store configuration resolved from the environment as JSON."""

    click.echo(json.dumps(read_store_config().as_dict(), indent=indent))


@cli.command("show", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("path")
@click.option(
    "--prompt/--no-prompt",
    default=True,
    show_default=True,
    help="Allow gpg to ask for a passphrase via pinentry",
)
def cli_show(path: str, prompt: bool) -> None:
    """Decrypt the secret at PATH and write it to stdout unchanged."""

    store = open_store()
    data = _run(store.read_password(path, can_prompt=prompt))
    click.echo(data, nl=False)


@cli.command("insert", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("path")
def cli_insert(path: str) -> None:
    """Encrypt everything read from stdin and store it at PATH."""

    value = sys.stdin.buffer.read()
    store = open_store()
    _run(store.write_password(path, value))


@cli.command("rm", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("path")
def cli_rm(path: str) -> None:
    """Delete the secret at PATH (succeeds when it does not exist)."""

    store = open_store()
    _run(store.delete_password(path))


@cli.command("ls", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("directory", required=False, default="")
def cli_ls(directory: str) -> None:
    """List the entries directly below DIRECTORY (default: the store root)."""

    store = open_store()
    entries = _run(store.list_items(directory))
    for entry in sorted(entries, key=lambda item: item.name):
        click.echo(f"{entry.kind.value}\t{entry.name}")


def main(argv: Optional[Sequence[str]] = None, *, restore_traceback: bool = True) -> int:
    """Execute the CLI with shared exit handling and return the exit code."""

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        try:
            return lib_cli_exit_tools.run_cli(
                cli,
                argv=list(argv) if argv is not None else None,
                prog_name="lib_pass_store",
            )
        except BaseException as exc:  # noqa: BLE001 - funnel through shared printers
            lib_cli_exit_tools.print_exception_message(
                trace_back=lib_cli_exit_tools.config.traceback,
                length_limit=(
                    _TRACEBACK_VERBOSE_LIMIT if lib_cli_exit_tools.config.traceback else _TRACEBACK_SUMMARY_LIMIT
                ),
            )
            return lib_cli_exit_tools.get_system_exit_code(exc)
    finally:
        if restore_traceback:
            lib_cli_exit_tools.config.traceback = previous_traceback
            lib_cli_exit_tools.config.traceback_force_color = previous_force_color


if __name__ == "__main__":  # pragma: no cover - exercised via console entry point
    raise SystemExit(main(sys.argv[1:]))
