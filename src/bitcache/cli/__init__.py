"""bitcache command-line interface."""

from collections.abc import Callable
from importlib.metadata import version

import click

from ..config import DEFAULT_GIT_TIMEOUT, ENV_GIT_TIMEOUT, ENV_SSH_KEY
from ..store import GitRemote

_PACKAGE_NAME = "bitcache"


def _get_version() -> str:
    """Return the installed package version string."""
    return version(_PACKAGE_NAME)


def remote_options(func: Callable) -> Callable:
    """Add the options shared by commands talking to the remote store."""
    func = click.option(
        "-q", "--quiet", is_flag=True, help="Only log warnings and errors"
    )(func)
    func = click.option("-v", "--verbose", is_flag=True, help="Run in verbose mode")(func)
    func = click.option(
        "--timeout",
        type=click.FloatRange(min=0, min_open=True),
        default=DEFAULT_GIT_TIMEOUT,
        show_default=True,
        envvar=ENV_GIT_TIMEOUT,
        help="Seconds after which a git operation is aborted",
    )(func)
    func = click.option(
        "--ssh-key",
        default=None,
        envvar=ENV_SSH_KEY,
        help="SSH private key used by git to reach the repository",
    )(func)
    func = click.option("--repo", required=True, help="Git repository URL")(func)
    return func


def make_remote(repo: str, ssh_key: str | None, timeout: float) -> GitRemote:
    """Build the GitRemote selected by the remote_options flags."""
    return GitRemote(url=repo, ssh_key=ssh_key, timeout=timeout)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(message="%(version)s", package_name=_PACKAGE_NAME)
def cli() -> None:
    """Binary file cache manager using git and MD5 hashing."""


@cli.command(hidden=True)
def help() -> None:
    """Show usage information."""
    click.echo('Use "bitcache --help" for usage information.')
    click.echo('Use "bitcache <command> --help" for help on a specific command.')


@cli.command("version")
def version_cmd() -> None:
    """Print the version number."""
    click.echo(_get_version())


# Register subcommands (must be after cli is defined)
from . import digest as _digest  # noqa: E402, F401
from . import get as _get  # noqa: E402, F401
from . import listing as _listing  # noqa: E402, F401
from . import publish as _publish  # noqa: E402, F401
