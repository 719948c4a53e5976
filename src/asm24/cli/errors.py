"""
CLI Error Handling
==================

Exit codes and the last-resort exception handler of the asm24 command.
"""

import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import click


class ExitCode(IntEnum):
    """Exit codes of the asm24 command."""
    SUCCESS = 0
    BUILD_ERROR = 1      # A file had errors or could not be read or written
    INVALID_ARGS = 2     # Usage error (reported by click)
    INTERNAL_ERROR = 3   # Unexpected internal error


def handle_cli_exception(error: Exception, verbose: bool = False) -> NoReturn:
    """
    Report an exception that escaped per-file processing and exit.

    Per-file failures are handled where each file is processed, so what
    reaches here is an assembler invariant violation (InternalError) or
    another unexpected exception.

    Args:
        error: The exception that was raised
        verbose: If True, print full traceback for internal errors

    Raises:
        SystemExit: Always exits with an appropriate exit code
    """
    from asm24.errors import Asm24Error, InternalError

    if isinstance(error, Asm24Error) and not isinstance(error, InternalError):
        click.echo(f"Assembly error: {error}", err=True)
        sys.exit(ExitCode.BUILD_ERROR)

    click.echo(f"Internal error: {error}", err=True)
    if verbose:
        traceback.print_exc()
    sys.exit(ExitCode.INTERNAL_ERROR)
