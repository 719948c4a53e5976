"""
Two-Pass Assembler for the 24-bit Word Machine
==============================================

This package turns assembly source files into an object image plus
external-reference and entry-symbol tables for a downstream linker.

Main Components
---------------
- **Assembler**: Orchestrates validation, both passes and output per file
- **LineParser**: Validates source lines into ParsedLine records
- **SymbolTable**: Ordered label registry with data shifting and entry marking
- **MachineCoder**: Code/data images and 24-bit word encoding
- **first_pass / second_pass**: Symbol collection and reference resolution

Assembly Process
----------------
1. **Validation**: every line is checked and counted; errors stop the file
2. **First pass**: symbols declared, words emitted, references deferred
3. **Second pass**: .entry symbols marked, placeholders patched
4. **Output**: .ob, .ext and .ent text

Example Usage
-------------
>>> from asm24.assembler import Assembler
>>> asm = Assembler()
>>> asm.assemble_string('''
... MAIN: mov #5, r1
...       stop
... ''')
>>> asm.write_outputs("prog")
"""

from asm24.assembler.assembler import (
    Assembler,
    AssemblyContext,
    assemble,
    assemble_file,
)
from asm24.assembler.parser import LineParser, ParsedLine, parse_source
from asm24.assembler.symbols import Symbol, SymbolLocation, SymbolTable, SymbolType
from asm24.assembler.codegen import (
    DataWord,
    InstructionWord,
    MachineCoder,
    OperandWord,
    WordKind,
    decode_instruction,
    decode_operand,
)
from asm24.assembler.passes import DeferredReference, first_pass, second_pass

__all__ = [
    # Main class and functions
    "Assembler",
    "AssemblyContext",
    "assemble",
    "assemble_file",
    # Parser
    "LineParser",
    "ParsedLine",
    "parse_source",
    # Symbols
    "Symbol",
    "SymbolLocation",
    "SymbolTable",
    "SymbolType",
    # Encoder
    "MachineCoder",
    "InstructionWord",
    "OperandWord",
    "DataWord",
    "WordKind",
    "decode_instruction",
    "decode_operand",
    # Passes
    "DeferredReference",
    "first_pass",
    "second_pass",
]
