"""
asm24 - Assembler Command-Line Interface
========================================

Assembles each base name given on the command line. For `prog` the
source is `prog.as` and the outputs are `prog.ob`, `prog.ext` and
`prog.ent`. Files are independent: an error in one file skips only that
file.

Usage Examples
--------------
Assemble two programs:
    $ asm24 prog1 prog2

Write outputs to another directory:
    $ asm24 -o build/ prog

Verbose mode (repeat for debug output):
    $ asm24 -vv prog
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from asm24 import __version__
from asm24.assembler import Assembler
from asm24.config import AssemblerConfig
from asm24.errors import AssemblyFailed
from asm24.cli.errors import ExitCode, handle_cli_exception

logger = logging.getLogger(__name__)


def setup_logging(config: AssemblerConfig, verbose: int) -> None:
    """Configure the root logger from -v count, falling back to the configured level."""
    if verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = getattr(logging, config.log_level, logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )
    logging.getLogger().setLevel(level)


def assemble_one(asm: Assembler, base: str) -> bool:
    """
    Assemble one base name and write its outputs.

    Returns:
        True if the file assembled and its outputs were written
    """
    source = asm.config.source_path(base)
    if not source.is_file():
        click.echo(f"Error: cannot open '{source}': no such file; skipping", err=True)
        return False

    try:
        asm.assemble_file(source)
        paths = asm.write_outputs(base)
    except AssemblyFailed as e:
        click.echo(asm.get_error_report(), err=True)
        click.echo(f"{source}: {e.message}; skipping file", err=True)
        return False
    except OSError as e:
        click.echo(f"Error: {e}; skipping '{source}'", err=True)
        return False

    for path in paths:
        click.echo(f"Created {path}")
    return True


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument("basenames", nargs=-1, required=True)
@click.option(
    "-o", "--output-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory for output files (default: beside each source)",
)
@click.option(
    "--max-errors",
    type=click.IntRange(min=1),
    help="Errors collected per file before giving up on it",
)
@click.option(
    "--empty-tables/--no-empty-tables",
    default=None,
    help="Write .ext/.ent files even when they have no lines. Default: enabled.",
)
@click.option(
    "-v", "--verbose",
    count=True,
    help="Verbose output (-vv for debug detail)",
)
@click.version_option(version=__version__, prog_name="asm24")
def main(
    basenames: tuple[str, ...],
    output_dir: Optional[Path],
    max_errors: Optional[int],
    empty_tables: Optional[bool],
    verbose: int,
) -> None:
    """
    Assemble source files for the 24-bit word machine.

    Each BASENAME names a source file without its suffix: `prog` reads
    `prog.as`.

    \b
    Examples:
        asm24 prog                # Writes prog.ob, prog.ext, prog.ent
        asm24 a b c               # Three independent files
        asm24 -o build/ prog      # Outputs under build/
    """
    config = AssemblerConfig.from_env()
    if output_dir is not None:
        config.output_dir = output_dir
    if max_errors is not None:
        config.max_errors = max_errors
    if empty_tables is not None:
        config.write_empty_tables = empty_tables

    setup_logging(config, verbose)

    asm = Assembler(config)
    failed = 0
    try:
        for base in basenames:
            if not assemble_one(asm, base):
                failed += 1
    except Exception as e:
        handle_cli_exception(e, verbose=verbose > 0)

    logger.info(f"{len(basenames) - failed} of {len(basenames)} files assembled")
    if failed:
        sys.exit(ExitCode.BUILD_ERROR)


if __name__ == "__main__":
    main()
