"""Hash command."""

from pathlib import Path

import click

from ..hasher import compute_md5
from . import cli


@cli.command("hash")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def hash_cmd(source: Path) -> None:
    """Print the MD5 of SOURCE, i.e., the key to use with `get --md5`."""
    click.echo(compute_md5(source))
