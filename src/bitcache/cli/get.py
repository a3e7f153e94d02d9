"""Get command."""

from pathlib import Path

import click

from ..get import GetWorkflow
from . import cli, logger, make_remote, remote_options
from .interceptor import Interceptor


@cli.command()
@remote_options
@click.option("--md5", "digest", required=True, help="MD5 hash of the source file")
@click.option(
    "-o",
    "--output-dir",
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Directory where to save the binary (default: current directory)",
)
def get(
    repo: str,
    ssh_key: str | None,
    timeout: float,
    verbose: bool,
    quiet: bool,
    digest: str,
    output_dir: Path | None,
) -> None:
    """Get a binary file from the repository by MD5.

    The binary is saved using its own filename. Nothing is written
    when the repository has no binary for the given MD5.
    """
    logger.configure(verbose, quiet)
    workflow = GetWorkflow(make_remote(repo, ssh_key, timeout))

    interceptor = Interceptor()
    with interceptor:
        result = workflow.run(digest, dest_dir=output_dir)
        click.echo("Successfully retrieved bitstream:")
        click.echo(f"  Source file: {result.record.source_file}")
        click.echo(f"  MD5: {result.record.md5}")
        click.echo(f"  Timestamp: {result.record.timestamp}")
        click.echo(f"  Saved to: {result.path}")
    if interceptor.failed:
        raise SystemExit(interceptor.exitcode())
