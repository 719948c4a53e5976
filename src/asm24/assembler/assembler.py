"""
asm24 Assembler - Main Interface
================================

This module provides the Assembler class, the primary interface for
assembling source files. It runs the pipeline for one file at a time:

1. **Validation**: parse and check every line, counting the storage the
   passes will need (symbols, code words, data words, references)
2. **Allocation**: size the code/data images and the reference list once
3. **First pass**: symbol table and partial encoding
4. **Second pass**: entry marking and placeholder resolution
5. **Output**: object image, external-reference and entry tables

Every phase boundary checks the file's error collector; any error stops
the file there and no output is written for it.

Example Usage
-------------
>>> from asm24.assembler import Assembler
>>> asm = Assembler()
>>> text = asm.assemble_string('''
... MAIN: mov #5, r1
... ADD:  add r1, r1
... ''')
>>> asm.get_symbols()
{'MAIN': 100, 'ADD': 102}
>>> asm.write_outputs("prog")
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from asm24.config import AssemblerConfig
from asm24.errors import (
    AssemblerError,
    AssemblyFailed,
    ErrorCollector,
    ResourceError,
    TooManyErrors,
)
from asm24.assembler.codegen import MachineCoder
from asm24.assembler.output import (
    format_entries,
    format_externals,
    format_object,
    write_text,
)
from asm24.assembler.parser import LineParser, ParsedLine
from asm24.assembler.passes import ReferenceList, first_pass, second_pass
from asm24.assembler.symbols import Symbol, SymbolTable

logger = logging.getLogger(__name__)


# =============================================================================
# Per-File State
# =============================================================================

@dataclass
class AssemblyContext:
    """
    All mutable state of one file's assembly.

    A fresh context is created for every file so that nothing leaks
    between files.

    Attributes:
        filename: Source name used in diagnostics
        errors: The file's error collector (its running error count)
        lines: Validated line records
        n_symbols: Symbol declarations counted during validation
        n_code_words: Code words counted during validation
        n_data_words: Data words counted during validation
        n_symbol_refs: Deferred references counted during validation
        coder: Code and data images
        symbols: Symbol table
        references: Deferred references recorded by pass 1
        external_uses: (label, address) of each resolved external reference
    """
    filename: str
    errors: ErrorCollector
    lines: list[ParsedLine] = field(default_factory=list)
    n_symbols: int = 0
    n_code_words: int = 0
    n_data_words: int = 0
    n_symbol_refs: int = 0
    coder: Optional[MachineCoder] = None
    symbols: Optional[SymbolTable] = None
    references: Optional[ReferenceList] = None
    external_uses: list[tuple[str, int]] = field(default_factory=list)

    def add_line(self, line: ParsedLine) -> None:
        """Store a validated line and count what it will need."""
        self.lines.append(line)
        self.n_symbols += line.symbol_count()
        self.n_code_words += line.code_word_count()
        self.n_data_words += line.data_word_count()
        self.n_symbol_refs += line.symbol_ref_count()

    def allocate(self) -> None:
        """Allocate encoder storage, symbol table and reference list at their final sizes."""
        self.coder = MachineCoder(self.n_code_words, self.n_data_words)
        self.symbols = SymbolTable(self.errors, self.coder, self.n_symbols)
        self.references = ReferenceList(self.n_symbol_refs)
        self.external_uses = []

    def release(self) -> None:
        """Drop every per-file structure except the error collector."""
        self.lines = []
        self.coder = None
        self.symbols = None
        self.references = None
        self.external_uses = []


# =============================================================================
# Assembler
# =============================================================================

class Assembler:
    """
    Two-pass assembler for the 24-bit word machine.

    One Assembler can process any number of files in sequence; each call
    to assemble_string/assemble_file starts from fresh state.

    Attributes:
        config: AssemblerConfig controlling suffixes, thresholds and output
    """

    def __init__(self, config: Optional[AssemblerConfig] = None):
        """
        Initialize the assembler.

        Args:
            config: Settings to use (defaults to AssemblerConfig())
        """
        self.config = config or AssemblerConfig()
        self._ctx: Optional[AssemblyContext] = None
        self._object_text: Optional[str] = None

    # =========================================================================
    # Assembly Methods
    # =========================================================================

    def assemble_string(self, source: str, filename: str = "<input>") -> str:
        """
        Assemble source code from a string.

        Args:
            source: Assembly source code
            filename: Virtual filename for error messages

        Returns:
            Object image text

        Raises:
            AssemblyFailed: If any phase found errors (see get_error_report())
        """
        self._object_text = None
        ctx = AssemblyContext(filename, ErrorCollector(self.config.max_errors))
        self._ctx = ctx

        try:
            self._validate(ctx, source)
            self._check(ctx, "validation")

            ctx.allocate()
            self._run_phase(ctx, "first pass", first_pass)
            self._run_phase(ctx, "second pass", second_pass)

            self._object_text = format_object(ctx.coder)
        except AssemblyFailed:
            ctx.release()
            raise

        logger.info(
            f"Assembled {filename}: {ctx.coder.code_size} code words, "
            f"{ctx.coder.data_size} data words"
        )
        return self._object_text

    def assemble_file(self, filepath: str | Path) -> str:
        """
        Assemble source code from a file.

        Args:
            filepath: Path to the source file (suffix included)

        Returns:
            Object image text

        Raises:
            AssemblyFailed: If any phase found errors
            FileNotFoundError: If source file not found
        """
        filepath = Path(filepath)
        logger.info(f"Assembling {filepath}...")
        # Undecodable bytes become U+FFFD, which validation rejects outside comments
        source = filepath.read_text(encoding="utf-8", errors="replace")
        return self.assemble_string(source, str(filepath))

    def _validate(self, ctx: AssemblyContext, source: str) -> None:
        parser = LineParser(ctx.errors, ctx.filename)
        try:
            for line_num, raw in enumerate(source.split("\n"), start=1):
                parsed = parser.parse_line(line_num, raw)
                if parsed is not None:
                    ctx.add_line(parsed)
        except TooManyErrors:
            raise AssemblyFailed("validation", ctx.errors)
        logger.debug(
            f"Validated {len(ctx.lines)} lines: {ctx.n_symbols} symbols, "
            f"{ctx.n_code_words} code words, {ctx.n_data_words} data words, "
            f"{ctx.n_symbol_refs} references"
        )

    def _run_phase(self, ctx: AssemblyContext, phase: str, run) -> None:
        try:
            run(ctx)
        except TooManyErrors:
            raise AssemblyFailed(phase, ctx.errors)
        except ResourceError as e:
            ctx.errors.errors.append(e)
            raise AssemblyFailed(phase, ctx.errors)
        self._check(ctx, phase)

    @staticmethod
    def _check(ctx: AssemblyContext, phase: str) -> None:
        if ctx.errors.has_errors():
            raise AssemblyFailed(phase, ctx.errors)

    # =========================================================================
    # Output Methods
    # =========================================================================

    def _require_result(self) -> AssemblyContext:
        if self._ctx is None or self._object_text is None:
            raise AssemblerError("no successful assembly to write")
        return self._ctx

    def get_object_text(self) -> str:
        """Object image of the last successful assembly."""
        self._require_result()
        return self._object_text

    def get_externals(self) -> str:
        """External-reference table of the last successful assembly."""
        return format_externals(self._require_result().external_uses)

    def get_entries(self) -> str:
        """Entry-symbol table of the last successful assembly."""
        return format_entries(self._require_result().symbols.entries())

    def get_symbols(self) -> dict[str, int]:
        """
        Get the symbol table.

        Returns:
            Dictionary mapping symbol names to final addresses
        """
        if self._ctx is None or self._ctx.symbols is None:
            return {}
        return self._ctx.symbols.as_dict()

    def get_symbol(self, name: str) -> Optional[Symbol]:
        if self._ctx is None or self._ctx.symbols is None:
            return None
        return self._ctx.symbols.get(name)

    @property
    def context(self) -> Optional[AssemblyContext]:
        """State of the most recent file."""
        return self._ctx

    def write_outputs(self, base: str | Path) -> list[Path]:
        """
        Write the object, externals and entries files for a base name.

        Empty externals/entries files are skipped when the configuration's
        write_empty_tables is False.

        Args:
            base: Base name; the configured suffixes are appended

        Returns:
            Paths written, in order
        """
        paths = self.config.output_paths(base)
        written = [write_text(paths["object"], self.get_object_text())]

        for key, text in (("externals", self.get_externals()), ("entries", self.get_entries())):
            if text or self.config.write_empty_tables:
                written.append(write_text(paths[key], text))

        for path in written:
            logger.info(f"Wrote {path}")
        return written

    # =========================================================================
    # Error Handling
    # =========================================================================

    def has_errors(self) -> bool:
        """
        Check if the last assembly produced errors.

        Returns:
            True if errors occurred
        """
        return self._ctx is not None and self._ctx.errors.has_errors()

    def get_errors(self) -> list[AssemblerError]:
        if self._ctx is None:
            return []
        return list(self._ctx.errors.errors)

    def get_warnings(self) -> list[str]:
        if self._ctx is None:
            return []
        return list(self._ctx.errors.warnings)

    def get_error_report(self) -> str:
        """
        Get formatted error report.

        Returns:
            Error report string
        """
        if self._ctx is None:
            return ""
        return self._ctx.errors.report()


# =============================================================================
# Convenience Functions
# =============================================================================

def assemble(source: str, filename: str = "<input>") -> str:
    """
    Convenience function to assemble source code.

    Returns:
        Object image text

    Raises:
        AssemblyFailed: If assembly fails
    """
    asm = Assembler()
    return asm.assemble_string(source, filename)


def assemble_file(filepath: str | Path) -> str:
    """
    Convenience function to assemble a file.

    Returns:
        Object image text

    Raises:
        AssemblyFailed: If assembly fails
    """
    asm = Assembler()
    return asm.assemble_file(filepath)
