"""Logging set-up for the command-line entry point."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Initialise the root logger once with a terse CLI format.

    Pass ``force=True`` to reconfigure during tests or when the verbosity is
    only known after argument parsing.
    """

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        force=force,
    )


def level_for_verbosity(verbosity: int, *, quiet: bool = False) -> int:
    """Map the integer ``--verbosity`` scale onto standard logging levels."""

    if quiet or verbosity <= 0:
        return logging.WARNING
    if verbosity < 3:
        return logging.INFO
    return logging.DEBUG
