"""
asm24 Error Hierarchy
=====================

This module defines the exception hierarchy for the asm24 toolchain.
All exceptions inherit from Asm24Error, allowing callers to catch all
toolchain errors with a single except clause if desired.

Exception Hierarchy
-------------------
Asm24Error (base)
└── AssemblerError (assembler-related)
    ├── AssemblySyntaxError - malformed label, literal or statement
    │   ├── CommaFormatError - dangling, doubled or missing commas
    │   └── DirectiveError - unknown directive or bad directive arguments
    ├── AddressingModeError - addressing mode illegal for an operand
    ├── DuplicateSymbolError - symbol declared twice
    ├── UndefinedSymbolError - reference to an undeclared symbol
    ├── EntrySymbolError - .entry naming a missing or external symbol
    ├── ResourceError - storage sized by the counting pass overflowed
    ├── InternalError - assembler invariant broken (never a user error)
    ├── TooManyErrors - error threshold reached
    └── AssemblyFailed - a phase finished with errors

Error messages follow this format:
    filename:line: error: description
        source_line_text
    hint: suggestion for fixing (when available)
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class Asm24Error(Exception):
    """
    Base exception for all asm24 errors.

        try:
            assembler.assemble_file("prog.as")
        except Asm24Error as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in source code for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
    """
    filename: str
    line: int

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}"


# =============================================================================
# Assembler Exceptions
# =============================================================================

class AssemblerError(Asm24Error):
    """
    Base exception for all assembler-related errors.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
        source_line: The actual source text at the error location (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    @property
    def line(self) -> Optional[int]:
        """Line number of the error, if known."""
        return self.location.line if self.location else None

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

        Example output:
            prog.as:7: error: unrecognized symbol 'LOPP'
                jmp &LOPP
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class AssemblySyntaxError(AssemblerError):
    """
    Syntax error in assembly source code.

    Examples:
        - Label not starting with a letter, or longer than 31 characters
        - Label only (no operation or directive)
        - Unrecognized operation
        - Wrong number of operands
        - Malformed integer or string literal
    """
    pass


class CommaFormatError(AssemblySyntaxError):
    """
    Bad comma formatting in an argument list.

    A single comma is required between each pair of arguments; leading,
    trailing and consecutive commas are all rejected.
    """

    def __init__(
        self,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        super().__init__(
            "bad comma formatting",
            location=location,
            hint="a single comma is required between each argument",
            source_line=source_line,
        )


class DirectiveError(AssemblySyntaxError):
    """
    Error in an assembler directive.

    Examples:
        - Unrecognized directive name
        - .string with no argument
        - .entry with more than one label
    """
    pass


class AddressingModeError(AssemblerError):
    """
    Addressing mode not permitted for an operand position.

    Example:
        mov r1, #5   ; Error: immediate destination is not allowed
    """

    def __init__(
        self,
        mnemonic: str,
        role: str,
        operand: str,
        mode: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        valid_modes: Optional[list[str]] = None,
        hint: Optional[str] = None,
    ):
        self.mnemonic = mnemonic
        self.role = role
        self.operand = operand
        self.mode = mode
        self.valid_modes = valid_modes or []

        if not hint and self.valid_modes:
            modes_str = ", ".join(self.valid_modes)
            hint = f"{role} operand of '{mnemonic}' supports: {modes_str}"

        super().__init__(
            f"{role} operand '{operand}' of '{mnemonic}' "
            f"cannot use {mode} addressing",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class DuplicateSymbolError(AssemblerError):
    """
    Symbol declared more than once in the same source file.

    Includes the location of the original declaration when available.
    """

    def __init__(
        self,
        symbol: str,
        location: Optional[SourceLocation] = None,
        original_location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.symbol = symbol
        self.original_location = original_location

        hint = None
        if original_location:
            hint = f"'{symbol}' was first declared at {original_location}"

        super().__init__(
            f"symbol '{symbol}' already exists",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class UndefinedSymbolError(AssemblerError):
    """
    Reference to an undeclared symbol.

    Raised during the second pass when a deferred reference cannot be
    resolved because no declaration (label or .extern) was found.
    """

    def __init__(
        self,
        symbol: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.symbol = symbol
        super().__init__(
            f"unrecognized symbol '{symbol}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class EntrySymbolError(AssemblerError):
    """
    .entry directive that cannot be honoured.

    The named symbol must be declared in this file as a code or data
    label; a missing symbol or an .extern symbol cannot be exported.
    """

    def __init__(
        self,
        symbol: str,
        reason: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.symbol = symbol
        self.reason = reason
        super().__init__(
            f"cannot export entry '{symbol}': {reason}",
            location=location,
            source_line=source_line,
        )


class ResourceError(AssemblerError):
    """
    Storage sized by the counting pass was exceeded.

    This is fatal for the current file only.
    """
    pass


class InternalError(AssemblerError):
    """
    An assembler invariant was broken.

    Raised for conditions that indicate a bug in the assembler rather
    than in the user's source, such as a word with an unknown
    relocation flag reaching output generation.
    """
    pass


# =============================================================================
# Error Collection for Multiple Error Reporting
# =============================================================================

class ErrorCollector:
    """
    Collects multiple errors for batch reporting.

    The assembler uses one collector per input file as its running error
    count: validation keeps scanning after an error so that every problem
    in the file is reported in one run, and each phase boundary checks
    has_errors() before moving on.

    Example:
        collector = ErrorCollector(max_errors=100)
        collector.add(UndefinedSymbolError("LOOP", location))
        if collector.has_errors():
            print(collector.report())
    """

    def __init__(self, max_errors: int = 1000):
        """
        Initialize the error collector.

        Args:
            max_errors: Maximum errors to collect before raising TooManyErrors
        """
        self.errors: list[AssemblerError] = []
        self.warnings: list[str] = []
        self.max_errors = max_errors

    def add(self, error: AssemblerError) -> None:
        """
        Add an error to the collection.

        Raises:
            TooManyErrors: If max_errors has been reached
        """
        self.errors.append(error)
        if len(self.errors) >= self.max_errors:
            raise TooManyErrors(f"Too many errors ({self.max_errors}), stopping")

    def add_warning(self, message: str) -> None:
        """Add a warning message."""
        self.warnings.append(message)

    def has_errors(self) -> bool:
        """Return True if any errors have been collected."""
        return len(self.errors) > 0

    def error_count(self) -> int:
        """Return the number of collected errors."""
        return len(self.errors)

    def warning_count(self) -> int:
        """Return the number of collected warnings."""
        return len(self.warnings)

    def report(self) -> str:
        """
        Format all errors and warnings for display.

        Returns:
            Formatted string with all errors and warnings
        """
        lines = []

        for error in self.errors:
            lines.append(str(error))
            lines.append("")

        if self.warnings:
            lines.append("Warnings:")
            for warning in self.warnings:
                lines.append(f"  {warning}")

        error_word = "error" if len(self.errors) == 1 else "errors"
        warning_word = "warning" if len(self.warnings) == 1 else "warnings"
        lines.append(
            f"\n{len(self.errors)} {error_word}, {len(self.warnings)} {warning_word}"
        )

        return "\n".join(lines)


class TooManyErrors(AssemblerError):
    """
    Raised when too many errors have been encountered.

    This stops the current file early when there are fundamental
    problems with the source code.
    """

    def __init__(self, message: str = "Too many errors"):
        super().__init__(message)


class AssemblyFailed(AssemblerError):
    """
    A phase of the pipeline finished with errors.

    Carries the phase name and the collector so that callers can report
    every diagnostic gathered for the file.

    Attributes:
        phase: "validation", "first pass" or "second pass"
        collector: The per-file ErrorCollector
    """

    def __init__(self, phase: str, collector: ErrorCollector):
        self.phase = phase
        self.collector = collector
        count = collector.error_count()
        error_word = "error" if count == 1 else "errors"
        super().__init__(f"{phase} found {count} {error_word}")
