"""
asm24 Instruction Set Definition
================================

This module defines the fixed instruction set of the 24-bit word machine:
eight registers, sixteen operations, four directives and four addressing
modes. The tables here are the single source of truth for both syntax
validation and encoding; they are immutable after import.

Addressing Modes
----------------
| Syntax   | Mode      | Extra word | Example      |
|----------|-----------|------------|--------------|
| #value   | Immediate | yes        | prn #-48     |
| label    | Direct    | yes        | inc COUNT    |
| &label   | Relative  | yes        | jmp &LOOP    |
| r0 - r7  | Register  | no         | clr r3       |

Word Layout
-----------
Instruction word (24 bits; the top two bits are always 0):

    21..18   17..16   15..13   12..11   10..8    7..3    2..0
    [opcode][src md][src reg][dst md][dst reg][funct ][A R E]

Operand and data words hold a signed value; operand words keep the low
3 bits for the A/R/E flag, data words use the full 24 bits.
"""

from dataclasses import dataclass
from enum import Enum, IntEnum, auto
from typing import Optional


# =============================================================================
# Machine Constants
# =============================================================================

# The code image starts at this address; data follows the code.
MEM_START_ADDRESS = 100

# Longest legal source line (after trimming)
MAX_LINE_LEN = 80

# Longest legal label
MAX_LABEL_LEN = 31

WORD_BITS = 24
WORD_MASK = (1 << WORD_BITS) - 1

# Operand words keep the low 3 bits for the A/R/E flag
FLAG_BITS = 3
OPERAND_VALUE_BITS = WORD_BITS - FLAG_BITS

COMMENT_CHAR = ";"
IMMEDIATE_PREFIX = "#"
RELATIVE_PREFIX = "&"
DIRECTIVE_PREFIX = "."
LABEL_SUFFIX = ":"


# =============================================================================
# Addressing Mode Enumeration
# =============================================================================

class AddressingMode(IntEnum):
    """
    Operand addressing modes.

    The integer values are the 2-bit mode fields of the instruction word.
    """
    IMMEDIATE = 0   # #value
    DIRECT = 1      # label
    RELATIVE = 2    # &label
    REGISTER = 3    # r0-r7

    def __str__(self) -> str:
        """Return human-readable name for error messages."""
        return self.name.lower()


# =============================================================================
# Relocation Flag (A/R/E)
# =============================================================================

class LinkerFlag(IntEnum):
    """
    A/R/E field occupying the low 3 bits of every code word.

    The values are one bit each (not a sequence) because downstream
    tooling tests the bits independently. UNKNOWN marks a pass-1
    placeholder and must never reach output.
    """
    UNKNOWN = 0      # 000
    EXTERNAL = 1     # 001 - E
    RELOCATABLE = 2  # 010 - R
    ABSOLUTE = 4     # 100 - A

    @property
    def letter(self) -> str:
        """Single-letter name used in listings ("A", "R", "E" or "?")."""
        return {
            LinkerFlag.UNKNOWN: "?",
            LinkerFlag.EXTERNAL: "E",
            LinkerFlag.RELOCATABLE: "R",
            LinkerFlag.ABSOLUTE: "A",
        }[self]


# =============================================================================
# Directive Argument Kinds
# =============================================================================

class ArgType(Enum):
    """Kind of argument a directive expects."""
    LABEL = auto()    # .entry / .extern
    INTEGER = auto()  # .data
    STRING = auto()   # .string


# =============================================================================
# Operation and Directive Information
# =============================================================================

@dataclass(frozen=True)
class OpInfo:
    """
    Definition of one operation.

    Attributes:
        name: Mnemonic (lowercase, as written in source)
        opcode: 4-bit opcode, shared by operations in the same group
        funct: 5-bit function code distinguishing operations sharing an opcode
        n_args: Exact number of operands (0, 1 or 2)
        src_modes: Legal addressing modes for the source (first) operand
        dest_modes: Legal addressing modes for the destination operand
    """
    name: str
    opcode: int
    funct: int
    n_args: int
    src_modes: frozenset[AddressingMode]
    dest_modes: frozenset[AddressingMode]

    def modes_for(self, position: int) -> frozenset[AddressingMode]:
        """Legal modes for operand position 1 (source) or 2 (destination)."""
        return self.src_modes if position == 1 else self.dest_modes

    def __repr__(self) -> str:
        return f"OpInfo({self.name}, opcode={self.opcode}, funct={self.funct}, args={self.n_args})"


@dataclass(frozen=True)
class DirectiveInfo:
    """
    Definition of one directive.

    Attributes:
        name: Directive name including the leading '.'
        max_args: Maximum argument count (None for unlimited)
        arg_type: Kind every argument must be
    """
    name: str
    max_args: Optional[int]
    arg_type: ArgType


def _modes(*modes: AddressingMode) -> frozenset[AddressingMode]:
    return frozenset(modes)


_I = AddressingMode.IMMEDIATE
_D = AddressingMode.DIRECT
_R = AddressingMode.RELATIVE
_G = AddressingMode.REGISTER
_NONE: frozenset[AddressingMode] = frozenset()


# =============================================================================
# Register Table
# =============================================================================

REGISTERS: dict[str, int] = {f"r{i}": i for i in range(8)}


# =============================================================================
# Operation Table
# =============================================================================
# Key: mnemonic
# Value: OpInfo(name, opcode, funct, n_args, src_modes, dest_modes)
# =============================================================================

OP_TABLE: dict[str, OpInfo] = {
    # Two-operand operations
    "mov": OpInfo("mov", 0, 0, 2, _modes(_I, _D, _G), _modes(_D, _G)),
    "cmp": OpInfo("cmp", 1, 0, 2, _modes(_I, _D, _G), _modes(_I, _D, _G)),
    "add": OpInfo("add", 2, 1, 2, _modes(_I, _D, _G), _modes(_D, _G)),
    "sub": OpInfo("sub", 2, 2, 2, _modes(_I, _D, _G), _modes(_D, _G)),
    "lea": OpInfo("lea", 4, 0, 2, _modes(_D), _modes(_D, _G)),

    # Single-operand operations (the operand is always the destination)
    "clr": OpInfo("clr", 5, 1, 1, _NONE, _modes(_D, _G)),
    "not": OpInfo("not", 5, 2, 1, _NONE, _modes(_D, _G)),
    "inc": OpInfo("inc", 5, 3, 1, _NONE, _modes(_D, _G)),
    "dec": OpInfo("dec", 5, 4, 1, _NONE, _modes(_D, _G)),
    "jmp": OpInfo("jmp", 9, 1, 1, _NONE, _modes(_D, _R)),
    "bne": OpInfo("bne", 9, 2, 1, _NONE, _modes(_D, _R)),
    "jsr": OpInfo("jsr", 9, 3, 1, _NONE, _modes(_D, _R)),
    "red": OpInfo("red", 12, 0, 1, _NONE, _modes(_D, _G)),
    "prn": OpInfo("prn", 13, 0, 1, _NONE, _modes(_I, _D, _G)),

    # No-operand operations
    "rts": OpInfo("rts", 14, 0, 0, _NONE, _NONE),
    "stop": OpInfo("stop", 15, 0, 0, _NONE, _NONE),
}


# =============================================================================
# Directive Table
# =============================================================================

DATA_DIRECTIVE = ".data"
STRING_DIRECTIVE = ".string"
ENTRY_DIRECTIVE = ".entry"
EXTERN_DIRECTIVE = ".extern"

DIRECTIVE_TABLE: dict[str, DirectiveInfo] = {
    STRING_DIRECTIVE: DirectiveInfo(STRING_DIRECTIVE, 1, ArgType.STRING),
    DATA_DIRECTIVE: DirectiveInfo(DATA_DIRECTIVE, None, ArgType.INTEGER),
    ENTRY_DIRECTIVE: DirectiveInfo(ENTRY_DIRECTIVE, 1, ArgType.LABEL),
    EXTERN_DIRECTIVE: DirectiveInfo(EXTERN_DIRECTIVE, 1, ArgType.LABEL),
}

# Directives that reserve storage (and so may carry a label)
STORAGE_DIRECTIVES: frozenset[str] = frozenset({DATA_DIRECTIVE, STRING_DIRECTIVE})

# Directives whose label is ignored with a warning
LINKAGE_DIRECTIVES: frozenset[str] = frozenset({ENTRY_DIRECTIVE, EXTERN_DIRECTIVE})


# =============================================================================
# Lookup Functions
# =============================================================================

def get_register(name: str) -> Optional[int]:
    """
    Look up a register id by name.

    Returns:
        Register id 0-7, or None if name is not a register
    """
    return REGISTERS.get(name)


def get_op(name: str) -> Optional[OpInfo]:
    """Look up an operation by mnemonic; None if unrecognized."""
    return OP_TABLE.get(name)


def get_directive(name: str) -> Optional[DirectiveInfo]:
    """Look up a directive by name (including the '.'); None if unrecognized."""
    return DIRECTIVE_TABLE.get(name)


def is_reserved_word(name: str) -> bool:
    """
    Check whether a name is reserved (register, operation or directive).

    Directive names are matched both with and without the leading '.'
    so that a label like 'data' cannot shadow '.data'.
    """
    return (
        name in REGISTERS
        or name in OP_TABLE
        or name in DIRECTIVE_TABLE
        or f"{DIRECTIVE_PREFIX}{name}" in DIRECTIVE_TABLE
    )


def get_valid_modes(name: str, position: int) -> list[AddressingMode]:
    """
    Get the legal addressing modes for one operand position of an operation.

    Args:
        name: Operation mnemonic
        position: 1 for the source operand, 2 for the destination

    Returns:
        Sorted list of legal modes (empty for unknown operations)
    """
    op = get_op(name)
    if op is None:
        return []
    return sorted(op.modes_for(position))
