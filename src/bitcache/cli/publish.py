"""Publish command."""

from pathlib import Path

import click

from ..config import DEFAULT_MAX_ATTEMPTS, ENV_MAX_ATTEMPTS, RetryPolicy
from ..publish import PublishWorkflow
from . import cli, logger, make_remote, remote_options
from .interceptor import Interceptor


@cli.command()
@remote_options
@click.option(
    "--source",
    required=True,
    type=click.Path(path_type=Path),
    help="Source file whose MD5 identifies the binary",
)
@click.option(
    "--bitstream",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Binary file (bitstream) to publish",
)
@click.option("--path", "target_dir", required=True, help="Target directory path in the repository")
@click.option(
    "--max-attempts",
    type=click.IntRange(min=1),
    default=DEFAULT_MAX_ATTEMPTS,
    show_default=True,
    envvar=ENV_MAX_ATTEMPTS,
    help="Give up after this many attempts if the repository keeps changing",
)
def publish(
    repo: str,
    ssh_key: str | None,
    timeout: float,
    verbose: bool,
    quiet: bool,
    source: Path,
    bitstream: Path,
    target_dir: str,
    max_attempts: int,
) -> None:
    """Publish a binary file to the repository.

    The binary is stored at PATH/<binary filename> in the repository and
    indexed by the MD5 of the source file. When another publisher pushes
    first, we clone again and retry up to --max-attempts times.
    """
    logger.configure(verbose, quiet)
    workflow = PublishWorkflow(
        make_remote(repo, ssh_key, timeout),
        retry=RetryPolicy(max_attempts=max_attempts),
    )

    interceptor = Interceptor()
    with interceptor:
        result = workflow.run(source=source, binary=bitstream, target_dir=target_dir)
        click.echo(f"Successfully published bitstream with MD5: {result.record.md5}")
        click.echo(f"  Binary path: {result.record.binary_path}")
        click.echo(f"  Timestamp: {result.record.timestamp}")
    if interceptor.failed:
        raise SystemExit(interceptor.exitcode())
