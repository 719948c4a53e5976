"""
asm24 CPU Package
=================

Instruction-set definitions shared by the assembler passes, the word
encoder and the decoders: registers, operations, directives, addressing
modes and the A/R/E relocation flag.

Usage:
    from asm24.cpu import (
        AddressingMode,
        LinkerFlag,
        OP_TABLE,
        get_op,
    )
"""

from asm24.cpu.isa import (
    # Constants
    MEM_START_ADDRESS,
    MAX_LINE_LEN,
    MAX_LABEL_LEN,
    WORD_BITS,
    WORD_MASK,
    FLAG_BITS,
    OPERAND_VALUE_BITS,
    COMMENT_CHAR,
    IMMEDIATE_PREFIX,
    RELATIVE_PREFIX,
    DIRECTIVE_PREFIX,
    LABEL_SUFFIX,
    # Core types
    AddressingMode,
    LinkerFlag,
    ArgType,
    OpInfo,
    DirectiveInfo,
    # Tables
    REGISTERS,
    OP_TABLE,
    DIRECTIVE_TABLE,
    DATA_DIRECTIVE,
    STRING_DIRECTIVE,
    ENTRY_DIRECTIVE,
    EXTERN_DIRECTIVE,
    STORAGE_DIRECTIVES,
    LINKAGE_DIRECTIVES,
    # Lookup functions
    get_register,
    get_op,
    get_directive,
    is_reserved_word,
    get_valid_modes,
)

__all__ = [
    "MEM_START_ADDRESS",
    "MAX_LINE_LEN",
    "MAX_LABEL_LEN",
    "WORD_BITS",
    "WORD_MASK",
    "FLAG_BITS",
    "OPERAND_VALUE_BITS",
    "COMMENT_CHAR",
    "IMMEDIATE_PREFIX",
    "RELATIVE_PREFIX",
    "DIRECTIVE_PREFIX",
    "LABEL_SUFFIX",
    "AddressingMode",
    "LinkerFlag",
    "ArgType",
    "OpInfo",
    "DirectiveInfo",
    "REGISTERS",
    "OP_TABLE",
    "DIRECTIVE_TABLE",
    "DATA_DIRECTIVE",
    "STRING_DIRECTIVE",
    "ENTRY_DIRECTIVE",
    "EXTERN_DIRECTIVE",
    "STORAGE_DIRECTIVES",
    "LINKAGE_DIRECTIVES",
    "get_register",
    "get_op",
    "get_directive",
    "is_reserved_word",
    "get_valid_modes",
]
