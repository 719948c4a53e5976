"""
asm24 Machine-Word Encoder
==========================

This module owns the code and data images of one file and the bit
packing of 24-bit words.

Images
------
The code image holds instruction and operand words addressed from
MEM_START_ADDRESS; a parallel list records the kind of each slot. The
data image holds data words addressed from 0 until the data segment is
placed after the code. Both images are allocated once at the size found
by the counting sub-pass; emitting past that size is a ResourceError.

Word Formats
------------
Instruction word:

    Bits   Field
    -----  ---------------------------
    23-22  unused (always 0)
    21-18  opcode
    17-16  source addressing mode
    15-13  source register (0 if unused)
    12-11  destination addressing mode
    10-8   destination register
    7-3    function code
    2-0    A/R/E flag

Operand word: signed value << 3 | A/R/E flag, two's complement over 24 bits.
Data word: signed value, two's complement over 24 bits.
"""

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, Optional, Union

from asm24.errors import InternalError, ResourceError, SourceLocation
from asm24.cpu import (
    AddressingMode,
    FLAG_BITS,
    LinkerFlag,
    MEM_START_ADDRESS,
    WORD_BITS,
    WORD_MASK,
)
from asm24.assembler.symbols import Symbol, SymbolTable

logger = logging.getLogger(__name__)


# =============================================================================
# Bit Layout
# =============================================================================

_OPCODE_SHIFT = 18
_SRC_MODE_SHIFT = 16
_SRC_REG_SHIFT = 13
_DEST_MODE_SHIFT = 11
_DEST_REG_SHIFT = 8
_FUNCT_SHIFT = 3

_OPCODE_MASK = 0xF
_MODE_MASK = 0x3
_REG_MASK = 0x7
_FUNCT_MASK = 0x1F
_FLAG_MASK = (1 << FLAG_BITS) - 1


# =============================================================================
# Word Records
# =============================================================================

class WordKind(Enum):
    """Kind of a slot in the output image."""
    INSTRUCTION = auto()
    OPERAND = auto()
    DATA = auto()


@dataclass
class InstructionWord:
    """
    Fields of an instruction word.

    Unused operand positions carry mode IMMEDIATE (0) and register 0.
    """
    opcode: int
    src_mode: AddressingMode = AddressingMode.IMMEDIATE
    src_reg: int = 0
    dest_mode: AddressingMode = AddressingMode.IMMEDIATE
    dest_reg: int = 0
    funct: int = 0
    flag: LinkerFlag = LinkerFlag.ABSOLUTE


@dataclass
class OperandWord:
    """Value word following an instruction: literal, address or displacement."""
    value: int
    flag: LinkerFlag


@dataclass
class DataWord:
    """Word of the data segment."""
    value: int


CodeWord = Union[InstructionWord, OperandWord]


# =============================================================================
# Encoding Functions
# =============================================================================

def twos_complement(value: int, bits: int = WORD_BITS) -> int:
    """Represent a signed value in the given number of bits."""
    return value & ((1 << bits) - 1)


def from_twos_complement(value: int, bits: int = WORD_BITS) -> int:
    """Inverse of twos_complement."""
    value &= (1 << bits) - 1
    if value & (1 << (bits - 1)):
        return value - (1 << bits)
    return value


def encode_instruction(word: InstructionWord) -> int:
    """Pack an instruction word into its 24-bit value."""
    return (
        ((word.opcode & _OPCODE_MASK) << _OPCODE_SHIFT)
        | ((int(word.src_mode) & _MODE_MASK) << _SRC_MODE_SHIFT)
        | ((word.src_reg & _REG_MASK) << _SRC_REG_SHIFT)
        | ((int(word.dest_mode) & _MODE_MASK) << _DEST_MODE_SHIFT)
        | ((word.dest_reg & _REG_MASK) << _DEST_REG_SHIFT)
        | ((word.funct & _FUNCT_MASK) << _FUNCT_SHIFT)
        | (int(word.flag) & _FLAG_MASK)
    )


def encode_operand(word: OperandWord) -> int:
    """Pack an operand word: shifted two's-complement value plus flag."""
    return twos_complement(word.value << FLAG_BITS) | (int(word.flag) & _FLAG_MASK)


def encode_data(word: DataWord) -> int:
    return twos_complement(word.value)


def decode_instruction(value: int) -> InstructionWord:
    """Unpack a 24-bit instruction word."""
    return InstructionWord(
        opcode=(value >> _OPCODE_SHIFT) & _OPCODE_MASK,
        src_mode=AddressingMode((value >> _SRC_MODE_SHIFT) & _MODE_MASK),
        src_reg=(value >> _SRC_REG_SHIFT) & _REG_MASK,
        dest_mode=AddressingMode((value >> _DEST_MODE_SHIFT) & _MODE_MASK),
        dest_reg=(value >> _DEST_REG_SHIFT) & _REG_MASK,
        funct=(value >> _FUNCT_SHIFT) & _FUNCT_MASK,
        flag=LinkerFlag(value & _FLAG_MASK),
    )


def decode_operand(value: int) -> OperandWord:
    """Unpack a 24-bit operand word, sign-extending the value field."""
    return OperandWord(
        value=from_twos_complement(value & WORD_MASK) >> FLAG_BITS,
        flag=LinkerFlag(value & _FLAG_MASK),
    )


# =============================================================================
# Machine Coder
# =============================================================================

class MachineCoder:
    """
    Code and data images of one file.

    Usage:
        coder = MachineCoder(n_code_words=3, n_data_words=2)
        coder.emit_instruction(opcode=0, dest_mode=AddressingMode.REGISTER, dest_reg=1)
        coder.emit_operand(5, LinkerFlag.ABSOLUTE)
        coder.emit_data(7)
        for address, value in coder.encoded_words():
            ...
    """

    def __init__(self, n_code_words: int = 0, n_data_words: int = 0):
        """
        Allocate both images at their final size.

        Args:
            n_code_words: Instruction plus operand words counted in advance
            n_data_words: Data words counted in advance
        """
        self._code: list[Optional[CodeWord]] = [None] * n_code_words
        self._kinds: list[Optional[WordKind]] = [None] * n_code_words
        self._data: list[int] = [0] * n_data_words
        self._ic = MEM_START_ADDRESS
        self._dc = 0

    # =========================================================================
    # Counters
    # =========================================================================

    @property
    def ic(self) -> int:
        """Address of the next code word."""
        return self._ic

    @property
    def dc(self) -> int:
        """Offset of the next data word within the data segment."""
        return self._dc

    @property
    def code_size(self) -> int:
        """Number of code words emitted so far."""
        return self._ic - MEM_START_ADDRESS

    @property
    def data_size(self) -> int:
        """Number of data words emitted so far."""
        return self._dc

    # =========================================================================
    # Emission
    # =========================================================================

    def _claim_code_slot(self) -> int:
        index = self._ic - MEM_START_ADDRESS
        if index >= len(self._code):
            raise ResourceError(
                f"code image overflow: {len(self._code)} words were allocated"
            )
        return index

    def emit_instruction(
        self,
        opcode: int,
        src_mode: AddressingMode = AddressingMode.IMMEDIATE,
        src_reg: int = 0,
        dest_mode: AddressingMode = AddressingMode.IMMEDIATE,
        dest_reg: int = 0,
        funct: int = 0,
    ) -> int:
        """
        Append an instruction word (always Absolute).

        Returns:
            Address of the new word
        """
        index = self._claim_code_slot()
        self._code[index] = InstructionWord(
            opcode, src_mode, src_reg, dest_mode, dest_reg, funct, LinkerFlag.ABSOLUTE
        )
        self._kinds[index] = WordKind.INSTRUCTION
        address = self._ic
        self._ic += 1
        return address

    def emit_operand(self, value: int, flag: LinkerFlag) -> int:
        """
        Append an operand word.

        Returns:
            Address of the new word
        """
        index = self._claim_code_slot()
        self._code[index] = OperandWord(value, flag)
        self._kinds[index] = WordKind.OPERAND
        address = self._ic
        self._ic += 1
        return address

    def emit_data(self, value: int) -> int:
        """
        Append a data word.

        Returns:
            Offset of the new word within the data segment
        """
        if self._dc >= len(self._data):
            raise ResourceError(
                f"data image overflow: {len(self._data)} words were allocated"
            )
        self._data[self._dc] = value
        offset = self._dc
        self._dc += 1
        return offset

    # =========================================================================
    # Second-Pass Patching
    # =========================================================================

    def patch_operand(
        self,
        address: int,
        label: str,
        mode: AddressingMode,
        symbols: SymbolTable,
        location: Optional[SourceLocation] = None,
    ) -> Optional[Symbol]:
        """
        Fill in a placeholder operand from the completed symbol table.

        DIRECT operands receive the symbol's address, flagged External for
        .extern symbols and Relocatable otherwise. RELATIVE operands receive
        the word distance (symbol address - operand address + 1), flagged
        Absolute.

        Nothing changes if the label cannot be resolved (the lookup records
        the error) or the slot is not an operand word.

        Returns:
            The resolved symbol, or None
        """
        symbol = symbols.lookup(label, location)
        if symbol is None:
            return None

        word = self.word_at(address)
        if not isinstance(word, OperandWord):
            return symbol

        if mode is AddressingMode.DIRECT:
            word.value = symbol.address
            word.flag = LinkerFlag.EXTERNAL if symbol.is_external else LinkerFlag.RELOCATABLE
        elif mode is AddressingMode.RELATIVE:
            word.value = symbol.address - address + 1
            word.flag = LinkerFlag.ABSOLUTE

        logger.debug(
            f"Patched {address:07d} -> {word.value} [{word.flag.letter}] ({mode} '{label}')"
        )
        return symbol

    # =========================================================================
    # Access
    # =========================================================================

    def word_at(self, address: int) -> Optional[CodeWord]:
        """Code word at an absolute address, or None outside the image."""
        index = address - MEM_START_ADDRESS
        if 0 <= index < self.code_size:
            return self._code[index]
        return None

    def kind_at(self, address: int) -> Optional[WordKind]:
        index = address - MEM_START_ADDRESS
        if 0 <= index < self.code_size:
            return self._kinds[index]
        return None

    def data_words(self) -> list[int]:
        """Data values in emission order."""
        return self._data[:self._dc]

    def words(self) -> Iterator[tuple[int, WordKind, Union[CodeWord, DataWord]]]:
        """
        Iterate every emitted word in output order.

        Code words come first from MEM_START_ADDRESS; data words continue
        at the address following the last code word.

        Yields:
            (address, kind, word)
        """
        for index in range(self.code_size):
            yield MEM_START_ADDRESS + index, self._kinds[index], self._code[index]
        for index in range(self._dc):
            yield self._ic + index, WordKind.DATA, DataWord(self._data[index])

    def encode(self, word: Union[CodeWord, DataWord]) -> int:
        """
        Final 24-bit value of a word.

        Raises:
            InternalError: For a word still flagged UNKNOWN (an unresolved
                placeholder reaching output)
        """
        if isinstance(word, InstructionWord):
            return encode_instruction(word)
        if isinstance(word, OperandWord):
            if word.flag is LinkerFlag.UNKNOWN:
                raise InternalError("unresolved operand placeholder reached output")
            return encode_operand(word)
        return encode_data(word)

    def encoded_words(self) -> Iterator[tuple[int, int]]:
        """
        Iterate (address, encoded value) for every word in output order.
        """
        for address, _kind, word in self.words():
            yield address, self.encode(word)
