# =============================================================================
# test_parser.py - Line Parser and Validator Tests
# =============================================================================
# Tests for source line validation and restructuring.
#
# Test coverage includes:
#   - Labels, operations and directives
#   - Comma formatting and argument counts
#   - Addressing mode legality per operand position
#   - Integer and string literal checks
#   - Sizing helpers used to pre-size the encoder
# =============================================================================

import pytest

from asm24.assembler.parser import (
    LineParser,
    ParsedLine,
    check_comma_formatting,
    detect_addressing_mode,
    is_integer,
    is_label_shape,
    parse_source,
)
from asm24.cpu import AddressingMode
from asm24.errors import (
    AddressingModeError,
    AssemblySyntaxError,
    CommaFormatError,
    DirectiveError,
    ErrorCollector,
)


def parse(line: str, line_num: int = 1):
    """Parse one line; return (ParsedLine or None, collector)."""
    errors = ErrorCollector()
    parsed = LineParser(errors, "test.as").parse_line(line_num, line)
    return parsed, errors


def assert_rejected(line: str, error_type=AssemblySyntaxError):
    """Line produces no record and at least one error of the given type."""
    parsed, errors = parse(line)
    assert parsed is None
    assert errors.has_errors()
    assert any(isinstance(e, error_type) for e in errors.errors), errors.report()
    return errors


# =============================================================================
# Token Helper Tests
# =============================================================================

class TestTokenHelpers:
    """Tests for the standalone token predicates."""

    def test_addressing_mode_detection(self):
        """Prefix and register name decide the mode."""
        assert detect_addressing_mode("#5") == AddressingMode.IMMEDIATE
        assert detect_addressing_mode("&LOOP") == AddressingMode.RELATIVE
        assert detect_addressing_mode("r7") == AddressingMode.REGISTER
        assert detect_addressing_mode("COUNT") == AddressingMode.DIRECT

    def test_register_lookalikes_are_direct(self):
        """Only r0-r7 are registers."""
        assert detect_addressing_mode("r8") == AddressingMode.DIRECT
        assert detect_addressing_mode("R1") == AddressingMode.DIRECT

    def test_is_integer(self):
        assert is_integer("42")
        assert is_integer("-1")
        assert is_integer("+7")
        assert not is_integer("")
        assert not is_integer("-")
        assert not is_integer("1a")
        assert not is_integer("0x10")

    def test_is_label_shape(self):
        assert is_label_shape("MAIN")
        assert is_label_shape("x1")
        assert not is_label_shape("1x")
        assert not is_label_shape("a_b")
        assert not is_label_shape("")

    def test_comma_formatting(self):
        """Leading, trailing and doubled commas are rejected."""
        assert check_comma_formatting("1, 2, 3")
        assert check_comma_formatting("1 ,2")
        assert not check_comma_formatting(",1")
        assert not check_comma_formatting("1,")
        assert not check_comma_formatting("1,,2")

    def test_whitespace_does_not_separate_commas(self):
        assert not check_comma_formatting("1, ,2")


# =============================================================================
# Basic Line Tests
# =============================================================================

class TestBasicLines:
    """Tests for the overall line structure."""

    def test_blank_line(self):
        """Blank lines produce nothing."""
        parsed, errors = parse("   \t ")
        assert parsed is None
        assert not errors.has_errors()

    def test_comment_line(self):
        """Lines starting with ';' after trimming are comments."""
        parsed, errors = parse("   ; mov #5, r1")
        assert parsed is None
        assert not errors.has_errors()

    def test_labelled_operation(self):
        """Label, operation and arguments are split apart."""
        parsed, errors = parse("MAIN: mov #5, r1", line_num=7)
        assert not errors.has_errors()
        assert parsed.label == "MAIN"
        assert parsed.op == "mov"
        assert parsed.directive is None
        assert parsed.args == ["#5", "r1"]
        assert parsed.line_num == 7

    def test_unlabelled_operation_with_indent(self):
        parsed, _ = parse("\t\tstop")
        assert parsed.label is None
        assert parsed.op == "stop"
        assert parsed.args == []

    def test_data_directive(self):
        parsed, errors = parse(".data 3, -1, +7")
        assert not errors.has_errors()
        assert parsed.directive == ".data"
        assert parsed.args == ["3", "-1", "+7"]

    def test_string_keeps_commas_and_spaces(self):
        """A string argument is kept whole, quotes included."""
        parsed, errors = parse('MSG: .string "hello, world"')
        assert not errors.has_errors()
        assert parsed.args == ['"hello, world"']

    def test_label_only_line(self):
        """A label with nothing after it is an error."""
        errors = assert_rejected("MAIN:")
        assert "no operation or directive given" in errors.errors[0].message

    def test_line_too_long(self):
        line = ".data " + ", ".join(["1"] * 30)
        errors = assert_rejected(line)
        assert any("max length" in e.message for e in errors.errors)

    def test_error_carries_location(self):
        parsed, errors = parse("foo r1", line_num=12)
        assert parsed is None
        assert errors.errors[0].line == 12
        assert errors.errors[0].location.filename == "test.as"


# =============================================================================
# Label Tests
# =============================================================================

class TestLabels:
    """Tests for label validation."""

    def test_label_must_start_with_letter(self):
        assert_rejected("1ABC: stop")

    def test_label_must_be_alphanumeric(self):
        assert_rejected("A_B: stop")

    def test_max_label_length(self):
        """31 characters is legal, 32 is not."""
        parsed, errors = parse("A" * 31 + ": stop")
        assert not errors.has_errors()
        assert parsed.label == "A" * 31
        assert_rejected("A" * 32 + ": stop")

    @pytest.mark.parametrize("name", ["r3", "mov", "stop", "data", "extern"])
    def test_reserved_words(self, name):
        """Registers, operations and directive names cannot be labels."""
        assert_rejected(f"{name}: stop")

    def test_labels_are_case_sensitive(self):
        parsed, errors = parse("Mov: stop")
        assert not errors.has_errors()
        assert parsed.label == "Mov"

    def test_label_on_entry_is_dropped_with_warning(self):
        """Labels on .entry/.extern are ignored, not declared."""
        parsed, errors = parse("X: .entry MAIN")
        assert not errors.has_errors()
        assert errors.warning_count() == 1
        assert parsed.label is None
        assert parsed.symbol_count() == 0

    def test_label_on_extern_is_dropped_with_warning(self):
        parsed, errors = parse("X: .extern EXT")
        assert errors.warning_count() == 1
        assert parsed.label is None
        assert parsed.symbol_count() == 1


# =============================================================================
# Comma Tests
# =============================================================================

class TestCommas:
    """Tests for comma placement and count."""

    @pytest.mark.parametrize("line", [
        ".data 1,,2",
        ".data ,1",
        ".data 1,",
        ".data 1, ,2",
        "mov r1, , r2",
    ])
    def test_bad_commas(self, line):
        assert_rejected(line, CommaFormatError)

    def test_missing_comma(self):
        """Arguments separated only by whitespace need a comma."""
        assert_rejected(".data 1 2", CommaFormatError)
        assert_rejected("mov r1 r2", CommaFormatError)

    def test_space_around_comma_is_fine(self):
        parsed, errors = parse("mov r1 ,r2")
        assert not errors.has_errors()
        assert parsed.args == ["r1", "r2"]

    def test_comma_error_reported_with_other_errors(self):
        """A bad comma layout is reported even when the line has other errors."""
        errors = assert_rejected(".data 1,,x")
        assert any(isinstance(e, CommaFormatError) for e in errors.errors)


# =============================================================================
# Operation Tests
# =============================================================================

class TestOperations:
    """Tests for operation names, arity and addressing modes."""

    def test_unknown_operation(self):
        errors = assert_rejected("foo r1")
        assert "unrecognized operation" in errors.errors[0].message

    @pytest.mark.parametrize("line", ["stop r1", "inc", "mov r1", "rts r1, r2", "prn #1, #2"])
    def test_wrong_argument_count(self, line):
        errors = assert_rejected(line)
        assert "incorrect number of args" in errors.errors[0].message

    @pytest.mark.parametrize("line", [
        "mov #5, r1",
        "mov COUNT, r7",
        "cmp #1, #2",
        "add r1, COUNT",
        "lea STR, r1",
        "clr r2",
        "jmp &LOOP",
        "bne LOOP",
        "jsr FUNC",
        "red r0",
        "prn #-48",
        "rts",
        "stop",
    ])
    def test_legal_operations(self, line):
        parsed, errors = parse(line)
        assert not errors.has_errors(), errors.report()
        assert parsed is not None

    @pytest.mark.parametrize("line", [
        "mov r1, #5",
        "lea #1, r2",
        "lea r1, r2",
        "jmp r1",
        "jmp #3",
        "inc &X",
        "red #1",
        "add &X, r1",
    ])
    def test_illegal_addressing_modes(self, line):
        assert_rejected(line, AddressingModeError)

    def test_single_operand_is_destination(self):
        """The one operand of a 1-argument operation uses the destination modes."""
        errors = assert_rejected("clr #1", AddressingModeError)
        assert errors.errors[0].role == "destination"

    def test_destination_checked_before_source(self):
        """Both operands are reported, destination first."""
        errors = assert_rejected("lea r1, #2", AddressingModeError)
        roles = [e.role for e in errors.errors if isinstance(e, AddressingModeError)]
        assert roles == ["destination", "source"]

    def test_addressing_mode_hint_lists_legal_modes(self):
        errors = assert_rejected("mov r1, #5", AddressingModeError)
        assert "direct" in errors.errors[0].hint
        assert "register" in errors.errors[0].hint

    def test_invalid_immediate(self):
        assert_rejected("prn #abc")
        assert_rejected("prn #")

    def test_immediate_range(self):
        """Immediates must fit the 21-bit signed operand field."""
        assert parse("prn #1048575")[0] is not None
        assert parse("prn #-1048576")[0] is not None
        assert_rejected("prn #1048576")
        assert_rejected("prn #-1048577")

    def test_relative_operand_must_be_label(self):
        assert_rejected("jmp &1X")
        assert_rejected("jmp &")

    def test_direct_operand_must_be_label(self):
        assert_rejected("inc 5")


# =============================================================================
# Directive Tests
# =============================================================================

class TestDirectives:
    """Tests for directive names and arguments."""

    def test_unknown_directive(self):
        assert_rejected(".word 5", DirectiveError)

    @pytest.mark.parametrize("line", [".data", ".string", ".entry", ".extern"])
    def test_missing_arguments(self, line):
        assert_rejected(line, DirectiveError)

    def test_entry_takes_one_label(self):
        assert_rejected(".entry A, B", DirectiveError)

    def test_extern_argument_must_be_label(self):
        assert_rejected(".extern 1abc")

    def test_quoted_argument_text_stays_whole(self):
        """Quoted argument text is one argument for any directive."""
        parsed, errors = parse('.data "1,2"')
        assert parsed is None
        assert errors.error_count() == 1
        error = errors.errors[0]
        assert not isinstance(error, CommaFormatError)
        assert error.message == "invalid integer value '\"1,2\"'"

    def test_quoted_label_argument(self):
        parsed, errors = parse('.extern "A, B"')
        assert parsed is None
        assert errors.error_count() == 1
        assert not isinstance(errors.errors[0], CommaFormatError)

    def test_data_must_be_integers(self):
        assert_rejected(".data 1, x, 3")

    def test_data_range(self):
        """Data values must fit a 24-bit signed word."""
        assert parse(".data 8388607, -8388608")[0] is not None
        assert_rejected(".data 8388608")

    def test_string_requires_quotes(self):
        assert_rejected(".string abc")

    def test_string_rejects_inner_quotes(self):
        assert_rejected('.string "a"b"')

    def test_empty_string(self):
        """An empty string is legal and holds only the terminator."""
        parsed, errors = parse('.string ""')
        assert not errors.has_errors()
        assert parsed.data_word_count() == 1


# =============================================================================
# Sizing Helper Tests
# =============================================================================

class TestSizing:
    """Tests for the counting helpers of ParsedLine."""

    def test_code_words(self):
        """One instruction word plus one per non-register operand."""
        assert parse("mov #5, r1")[0].code_word_count() == 2
        assert parse("mov r1, r2")[0].code_word_count() == 1
        assert parse("lea X, Y")[0].code_word_count() == 3
        assert parse("stop")[0].code_word_count() == 1
        assert parse(".data 1")[0].code_word_count() == 0

    def test_data_words(self):
        assert parse(".data 1, 2, 3")[0].data_word_count() == 3
        assert parse('.string "hi"')[0].data_word_count() == 3
        assert parse("mov #1, r1")[0].data_word_count() == 0

    def test_symbol_declarations(self):
        assert parse("L: stop")[0].symbol_count() == 1
        assert parse("L: .data 1")[0].symbol_count() == 1
        assert parse(".extern X")[0].symbol_count() == 1
        assert parse(".entry X")[0].symbol_count() == 0
        assert parse("stop")[0].symbol_count() == 0

    def test_symbol_references(self):
        """Only DIRECT and RELATIVE operands are deferred."""
        assert parse("lea X, Y")[0].symbol_ref_count() == 2
        assert parse("jmp &L")[0].symbol_ref_count() == 1
        assert parse("mov #1, r1")[0].symbol_ref_count() == 0
        assert parse("L: .data 1")[0].symbol_ref_count() == 0


# =============================================================================
# Whole-Source Tests
# =============================================================================

class TestParseSource:
    """Tests for parse_source."""

    def test_keeps_good_lines_and_reports_bad_ones(self):
        """Validation continues past bad lines."""
        source = "MAIN: stop\nfoo\n; comment\n\nmov r1, #2\nEND: rts\n"
        errors = ErrorCollector()
        lines = parse_source(source, errors, "prog.as")
        assert [line.label for line in lines] == ["MAIN", "END"]
        assert [line.line_num for line in lines] == [1, 6]
        assert errors.error_count() == 2

    def test_form_feed_does_not_split_a_line(self):
        """Only '\\n' ends a line; '\\f' and '\\v' are whitespace inside it."""
        errors = ErrorCollector()
        lines = parse_source("MAIN: mov #5,\x0c r1\nstop\x0b\nfoo\n", errors)
        assert [line.line_num for line in lines] == [1, 2]
        assert lines[0].args == ["#5", "r1"]
        assert errors.error_count() == 1
        assert errors.errors[0].line == 3

    def test_carriage_returns_stripped(self):
        errors = ErrorCollector()
        lines = parse_source("MAIN: stop\r\nrts\r\n", errors)
        assert not errors.has_errors()
        assert [line.op for line in lines] == ["stop", "rts"]

    def test_records_are_parsed_lines(self):
        lines = parse_source("stop", ErrorCollector())
        assert isinstance(lines[0], ParsedLine)
