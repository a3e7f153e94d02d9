"""List command."""

import click
from rich.console import Console
from rich.table import Table

from ..get import list_records
from . import cli, logger, make_remote, remote_options
from .interceptor import Interceptor


@cli.command("list")
@remote_options
def list_cmd(
    repo: str,
    ssh_key: str | None,
    timeout: float,
    verbose: bool,
    quiet: bool,
) -> None:
    """List the binaries published in the repository."""
    logger.configure(verbose, quiet)
    remote = make_remote(repo, ssh_key, timeout)

    interceptor = Interceptor()
    with interceptor:
        records = list_records(remote)
        if not records:
            click.echo("No artifacts published.")
            return

        table = Table(title=f"Artifacts in {repo}")
        table.add_column("MD5", no_wrap=True)
        table.add_column("Binary path")
        table.add_column("Source file")
        table.add_column("Timestamp")
        for record in records:
            table.add_row(record.md5, record.binary_path, record.source_file, record.timestamp)
        Console(width=160).print(table)
    if interceptor.failed:
        raise SystemExit(interceptor.exitcode())
