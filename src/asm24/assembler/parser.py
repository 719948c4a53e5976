"""
asm24 Line Parser and Validator
===============================

This module parses assembly source one line at a time. Each line is
checked against the instruction-set tables and restructured into a
ParsedLine record that the two passes consume without re-reading the
source.

Line Grammar
------------
    [label:] operation [operand [, operand]]
    [label:] directive argument [, argument ...]
    ; comment

Validation keeps going after the first problem on a line where further
diagnostics are cheap to gather, so one run reports as much as possible.
A line with any error produces no record.

Sizing
------
ParsedLine also answers the questions asked by the counting sub-pass
(code words, data words, symbol declarations, deferred references) so
that the encoder's storage can be sized exactly once per file.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from asm24.errors import (
    AddressingModeError,
    AssemblerError,
    AssemblySyntaxError,
    CommaFormatError,
    DirectiveError,
    ErrorCollector,
    SourceLocation,
)
from asm24.cpu import (
    AddressingMode,
    ArgType,
    COMMENT_CHAR,
    DATA_DIRECTIVE,
    DIRECTIVE_PREFIX,
    EXTERN_DIRECTIVE,
    IMMEDIATE_PREFIX,
    LABEL_SUFFIX,
    LINKAGE_DIRECTIVES,
    MAX_LABEL_LEN,
    MAX_LINE_LEN,
    OPERAND_VALUE_BITS,
    RELATIVE_PREFIX,
    STORAGE_DIRECTIVES,
    STRING_DIRECTIVE,
    WORD_BITS,
    get_directive,
    get_op,
    get_register,
    get_valid_modes,
    is_reserved_word,
)

logger = logging.getLogger(__name__)

# Signed ranges of the value fields
IMMEDIATE_MIN = -(1 << (OPERAND_VALUE_BITS - 1))
IMMEDIATE_MAX = (1 << (OPERAND_VALUE_BITS - 1)) - 1
DATA_MIN = -(1 << (WORD_BITS - 1))
DATA_MAX = (1 << (WORD_BITS - 1)) - 1


# =============================================================================
# Parsed Line Record
# =============================================================================

@dataclass
class ParsedLine:
    """
    One validated source line.

    Exactly one of op/directive is set. Arguments are stored as written,
    trimmed; a .string argument keeps its quotes.

    Attributes:
        location: Source position of the line
        label: Optional label declared on the line (without ':')
        op: Operation mnemonic, if the line is an instruction
        directive: Directive name (with '.'), if the line is a directive
        args: Argument tokens in source order
    """
    location: SourceLocation
    label: Optional[str] = None
    op: Optional[str] = None
    directive: Optional[str] = None
    args: list[str] = field(default_factory=list)

    @property
    def line_num(self) -> int:
        return self.location.line

    @property
    def n_args(self) -> int:
        return len(self.args)

    # -------------------------------------------------------------------------
    # Sizing helpers for the counting sub-pass
    # -------------------------------------------------------------------------

    def code_word_count(self) -> int:
        """Instruction word plus one operand word per non-register argument."""
        if self.op is None:
            return 0
        return 1 + sum(1 for arg in self.args if get_register(arg) is None)

    def data_word_count(self) -> int:
        """One word per integer, or one per character plus the terminator."""
        if self.directive == DATA_DIRECTIVE:
            return len(self.args)
        if self.directive == STRING_DIRECTIVE:
            return len(self.args[0]) - 2 + 1
        return 0

    def symbol_count(self) -> int:
        """
        Number of symbols this line declares.

        A label on an operation, .data or .string line declares a symbol,
        and so does the argument of .extern. Labels on .entry/.extern lines
        are ignored.
        """
        if self.directive == EXTERN_DIRECTIVE:
            return 1
        if self.label is not None and (
            self.op is not None or self.directive in STORAGE_DIRECTIVES
        ):
            return 1
        return 0

    def symbol_ref_count(self) -> int:
        """Number of DIRECT or RELATIVE operands (each becomes a deferred reference)."""
        if self.op is None:
            return 0
        return sum(
            1 for arg in self.args
            if detect_addressing_mode(arg) in (AddressingMode.DIRECT, AddressingMode.RELATIVE)
        )


# =============================================================================
# Token Helpers
# =============================================================================

def detect_addressing_mode(operand: str) -> AddressingMode:
    """
    Determine the addressing mode of an operand from its syntax.

    '#' prefix is immediate, '&' prefix is relative, a register name is
    register; anything else is a direct label reference.
    """
    if operand.startswith(IMMEDIATE_PREFIX):
        return AddressingMode.IMMEDIATE
    if operand.startswith(RELATIVE_PREFIX):
        return AddressingMode.RELATIVE
    if get_register(operand) is not None:
        return AddressingMode.REGISTER
    return AddressingMode.DIRECT


def is_integer(text: str) -> bool:
    """Optional sign followed by one or more ASCII digits."""
    if text[:1] in ("+", "-"):
        text = text[1:]
    return text.isascii() and text.isdigit()


def is_label_shape(text: str) -> bool:
    """Starts with an ASCII letter, remaining characters ASCII alphanumeric."""
    return (
        bool(text)
        and text.isascii()
        and text[0].isalpha()
        and text.isalnum()
    )


def check_comma_formatting(arg_text: str) -> bool:
    """
    Check for dangling or consecutive commas.

    Whitespace between commas does not separate them: "a, ,b" has two
    consecutive commas.

    Returns:
        True if no comma is leading, trailing or doubled
    """
    if arg_text.startswith(",") or arg_text.endswith(","):
        return False

    run = 0
    for ch in arg_text:
        if ch.isspace():
            continue
        if ch == ",":
            run += 1
            if run > 1:
                return False
        else:
            run = 0
    return True


def split_arguments(arg_text: str) -> list[str]:
    """Split on commas and whitespace, dropping empty tokens."""
    return arg_text.replace(",", " ").split()


def is_quoted(text: str) -> bool:
    return len(text) >= 2 and text[0] == '"' and text[-1] == '"'


# =============================================================================
# Line Parser
# =============================================================================

class LineParser:
    """
    Parses and validates source lines into ParsedLine records.

    Every violation is added to the shared ErrorCollector with the line's
    location; the parser never raises for user errors.

    Usage:
        errors = ErrorCollector()
        parser = LineParser(errors, "prog.as")
        line = parser.parse_line(1, "MAIN: mov #5, r1")
    """

    def __init__(self, errors: ErrorCollector, filename: str = "<input>"):
        self._errors = errors
        self._filename = filename
        self._location = SourceLocation(filename, 0)
        self._source_line: Optional[str] = None
        self._line_ok = True

    # =========================================================================
    # Public Interface
    # =========================================================================

    def parse_line(self, line_num: int, raw: str) -> Optional[ParsedLine]:
        """
        Parse one source line.

        Args:
            line_num: 1-based line number
            raw: Line text, with or without its trailing newline

        Returns:
            ParsedLine, or None for blank/comment lines and lines with errors
        """
        text = raw.rstrip("\r\n").strip()
        if not text or text.startswith(COMMENT_CHAR):
            return None

        self._location = SourceLocation(self._filename, line_num)
        self._source_line = text
        self._line_ok = True

        if len(text) > MAX_LINE_LEN:
            self._report(AssemblySyntaxError(
                f"line exceeds max length of {MAX_LINE_LEN} characters",
                self._location,
            ))

        head, rest = self._next_token(text)

        label = None
        if head.endswith(LABEL_SUFFIX):
            label = head[:-1]
            self._validate_label(label)
            head, rest = self._next_token(rest)

        if not head:
            self._report(AssemblySyntaxError(
                "no operation or directive given",
                self._location,
                source_line=self._source_line,
            ))
            return None

        args, n_commas, commas_ok = self._tokenize_arguments(head, rest)

        op = directive = None
        if head.startswith(DIRECTIVE_PREFIX):
            directive = head
            self._validate_directive(directive, args)
        else:
            op = head
            self._validate_op(op, args)

        # Comma count must agree with the argument count
        if args:
            commas_ok = commas_ok and n_commas == len(args) - 1
        else:
            commas_ok = commas_ok and n_commas == 0
        if not commas_ok:
            self._report(CommaFormatError(self._location, self._source_line))

        if not self._line_ok:
            return None

        if label is not None and directive in LINKAGE_DIRECTIVES:
            message = (
                f"line {line_num}: ignoring redundant label '{label}' "
                f"in directive '{directive}'"
            )
            self._errors.add_warning(message)
            logger.warning(message)
            label = None

        parsed = ParsedLine(
            location=self._location,
            label=label,
            op=op,
            directive=directive,
            args=list(args),
        )
        logger.debug(f"Parsed line {line_num}: {parsed}")
        return parsed

    # =========================================================================
    # Tokenizing
    # =========================================================================

    @staticmethod
    def _next_token(text: str) -> tuple[str, str]:
        """Split off the first whitespace-delimited token."""
        parts = text.split(None, 1)
        if not parts:
            return "", ""
        if len(parts) == 1:
            return parts[0], ""
        return parts[0], parts[1].strip()

    @staticmethod
    def _tokenize_arguments(head: str, rest: str) -> tuple[list[str], int, bool]:
        """
        Split the argument text.

        A .string argument, or any argument text wrapped in one pair of
        quotes, is kept whole since it may contain commas and spaces.

        Returns:
            (arguments, comma count, comma layout valid)
        """
        if not rest:
            return [], 0, True
        if head == STRING_DIRECTIVE or is_quoted(rest):
            return [rest], 0, True
        return split_arguments(rest), rest.count(","), check_comma_formatting(rest)

    # =========================================================================
    # Validation
    # =========================================================================

    def _report(self, error: AssemblerError) -> bool:
        self._errors.add(error)
        self._line_ok = False
        return False

    def _validate_label(self, label: str) -> bool:
        """Check label shape, length and that it is not a reserved word."""
        if not is_label_shape(label):
            return self._report(AssemblySyntaxError(
                f"invalid label '{label}'",
                self._location,
                hint="labels must start with a letter and contain only letters and digits",
                source_line=self._source_line,
            ))
        if len(label) > MAX_LABEL_LEN:
            return self._report(AssemblySyntaxError(
                f"label exceeds max length ({MAX_LABEL_LEN}): '{label}'",
                self._location,
                source_line=self._source_line,
            ))
        if is_reserved_word(label):
            return self._report(AssemblySyntaxError(
                f"invalid label '{label}'",
                self._location,
                hint="register, operation and directive names are reserved",
                source_line=self._source_line,
            ))
        return True

    def _validate_integer(self, text: str, minimum: int, maximum: int) -> bool:
        if not is_integer(text):
            return self._report(AssemblySyntaxError(
                f"invalid integer value '{text}'",
                self._location,
                source_line=self._source_line,
            ))
        value = int(text)
        if not minimum <= value <= maximum:
            return self._report(AssemblySyntaxError(
                f"integer value {value} out of range",
                self._location,
                hint=f"value must be between {minimum} and {maximum}",
                source_line=self._source_line,
            ))
        return True

    def _validate_string(self, text: str) -> bool:
        if not is_quoted(text):
            return self._report(AssemblySyntaxError(
                f"string literal missing quotes: {text}",
                self._location,
                source_line=self._source_line,
            ))
        if text.count('"') > 2:
            return self._report(AssemblySyntaxError(
                f"quotes found inside string literal: {text}",
                self._location,
                source_line=self._source_line,
            ))
        if not (text.isascii() and text.isprintable()):
            return self._report(AssemblySyntaxError(
                f"invalid string literal {text}",
                self._location,
                hint="strings may contain only printable characters",
                source_line=self._source_line,
            ))
        return True

    def _validate_directive(self, name: str, args: list[str]) -> bool:
        directive = get_directive(name)
        if directive is None:
            return self._report(DirectiveError(
                f"unrecognized directive '{name}'",
                self._location,
                source_line=self._source_line,
            ))

        if not args or (directive.max_args is not None and len(args) > directive.max_args):
            expected = "at least 1" if directive.max_args is None else f"{directive.max_args}"
            return self._report(DirectiveError(
                f"incorrect number of args for '{name}': expected {expected} but got {len(args)}",
                self._location,
                source_line=self._source_line,
            ))

        ok = True
        for arg in args:
            if directive.arg_type is ArgType.LABEL:
                ok = self._validate_label(arg) and ok
            elif directive.arg_type is ArgType.INTEGER:
                ok = self._validate_integer(arg, DATA_MIN, DATA_MAX) and ok
            else:
                ok = self._validate_string(arg) and ok
        return ok

    def _validate_op(self, name: str, args: list[str]) -> bool:
        op = get_op(name)
        if op is None:
            return self._report(AssemblySyntaxError(
                f"unrecognized operation '{name}'",
                self._location,
                source_line=self._source_line,
            ))

        if len(args) != op.n_args:
            return self._report(AssemblySyntaxError(
                f"incorrect number of args for '{name}': expected {op.n_args} but got {len(args)}",
                self._location,
                source_line=self._source_line,
            ))

        if not args:
            return True

        # The last argument is always the destination
        ok = self._validate_operand(name, args[-1], "destination", 2)
        if len(args) == 2:
            ok = self._validate_operand(name, args[0], "source", 1) and ok
        return ok

    def _validate_operand(self, op_name: str, operand: str, role: str, position: int) -> bool:
        mode = detect_addressing_mode(operand)
        valid_modes = get_valid_modes(op_name, position)
        if mode not in valid_modes:
            return self._report(AddressingModeError(
                op_name,
                role,
                operand,
                str(mode),
                location=self._location,
                source_line=self._source_line,
                valid_modes=[str(m) for m in valid_modes],
            ))

        if mode is AddressingMode.IMMEDIATE:
            return self._validate_integer(operand[1:], IMMEDIATE_MIN, IMMEDIATE_MAX)
        if mode is AddressingMode.RELATIVE:
            return self._validate_label(operand[1:])
        if mode is AddressingMode.DIRECT:
            return self._validate_label(operand)
        return True


# =============================================================================
# Convenience Functions
# =============================================================================

def parse_source(
    source: str,
    errors: ErrorCollector,
    filename: str = "<input>",
) -> list[ParsedLine]:
    """
    Parse a whole source text into validated line records.

    Args:
        source: Assembly source code
        errors: Collector receiving every diagnostic
        filename: Name used in diagnostics

    Returns:
        Records for every line that declared something, in source order
    """
    parser = LineParser(errors, filename)
    lines = []
    # Only '\n' ends a line; '\f' and '\v' are whitespace inside it
    for line_num, raw in enumerate(source.split("\n"), start=1):
        parsed = parser.parse_line(line_num, raw)
        if parsed is not None:
            lines.append(parsed)
    return lines
