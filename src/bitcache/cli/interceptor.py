"""Convert exceptions raised by CLI commands into error messages and exit codes."""

from __future__ import annotations

import logging

import click

log = logging.getLogger("cli")


class Interceptor:
    """
    Context manager to intercept exceptions.

    Use as a context manager:

        interceptor = Interceptor()
        with interceptor:
            func()
        raise SystemExit(interceptor.exitcode())

    Exceptions are printed as `error: <message>` on the standard error
    and suppressed. The failed field tells you whether there were any
    exceptions. KeyboardInterrupt and SystemExit are not intercepted.
    """

    def __init__(self):
        self.failed = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        if exc_type is None:
            return False
        if not issubclass(exc_type, Exception):
            return False
        log.debug("operation failed", exc_info=(exc_type, exc_value, traceback))
        click.echo(f"error: {exc_value}", err=True)
        self.failed = True
        return True  # suppress the exception

    def exitcode(self) -> int:
        """
        Return the exitcode to pass to sys.exit.

        Zero on success, 1 on failure.
        """
        return int(self.failed)
