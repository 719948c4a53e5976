"""
asm24 - Two-Pass Assembler for a 24-bit Word Machine
====================================================

This package assembles source files for a small educational machine
with 24-bit words, eight registers, sixteen operations and four
addressing modes.

Main Components
---------------
- **assembler**: Validation, two-pass resolution and output generation
- **cpu**: Instruction set tables (operations, directives, registers)
- **cli**: The `asm24` command

For each base name given, the assembler reads `<base>.as` and writes:
- `<base>.ob`: object image (code words from address 100, then data)
- `<base>.ext`: addresses of operand words referring to external symbols
- `<base>.ent`: symbols exported with .entry

Quick Start
-----------
    >>> from asm24.assembler import Assembler
    >>> asm = Assembler()
    >>> text = asm.assemble_file("prog.as")
"""

__version__ = "1.0.0"

from asm24.errors import (
    Asm24Error,
    AssemblerError,
    AssemblyFailed,
    SourceLocation,
)
from asm24.config import AssemblerConfig

__all__ = [
    "__version__",
    "Asm24Error",
    "AssemblerError",
    "AssemblyFailed",
    "SourceLocation",
    "AssemblerConfig",
]
