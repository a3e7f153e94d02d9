"""Logging helpers for the bitcache CLI."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler


class LocalTZRichHandler(RichHandler):
    """Extend the RichHandler to provide timezone aware timestamps."""

    def render(self, *, record, traceback, message_renderable):
        path = Path(record.pathname).name
        level = self.get_level_text(record)
        time_format = None if self.formatter is None else self.formatter.datefmt
        log_time = datetime.fromtimestamp(record.created).astimezone()
        return self._log_render(
            self.console,
            [message_renderable] if not traceback else [message_renderable, traceback],
            log_time=log_time,
            time_format=time_format,
            level=level,
            path=path,
            line_no=record.lineno,
            link_path=record.pathname if self.enable_link_path else None,
        )


def configure(verbose: bool, quiet: bool = False) -> None:
    """
    Configure the logging subsystem to log on stderr using LocalTZRichHandler.

    Progress is logged at INFO. With `quiet` we only show warnings and
    errors, while `verbose` wins over `quiet` and also shows git commands.
    """
    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    handler = LocalTZRichHandler(
        console=Console(stderr=True),
        show_time=True,
        show_level=True,
        show_path=False,
        log_time_format="[%Y-%m-%d %H:%M:%S %z]",
    )
    logging.basicConfig(
        level=level,
        format="<%(name)s> %(message)s",
        handlers=[handler],
        force=True,
    )
