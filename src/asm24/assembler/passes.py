"""
asm24 Two-Pass Resolution
=========================

Pass 1 (Symbol Collection and Encoding)
---------------------------------------
- Declare labels of operations (CODE) and of .data/.string (DATA)
- Declare .extern arguments (EXTERNAL, address 0)
- Emit instruction words with modes and register ids
- Emit operand words: immediates are final, label references get an
  Unknown-flagged placeholder and a DeferredReference
- Emit data words for .data and .string
- Shift data symbols past the code segment

Pass 2 (Resolution)
-------------------
- Mark .entry symbols
- Patch every placeholder, in emission order, from the completed table

Pass 2 depends on the completed, shifted symbol table, so pass 1 must
finish first.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from asm24.errors import AddressingModeError, ResourceError, SourceLocation
from asm24.cpu import (
    AddressingMode,
    DATA_DIRECTIVE,
    ENTRY_DIRECTIVE,
    EXTERN_DIRECTIVE,
    LinkerFlag,
    STRING_DIRECTIVE,
    get_op,
    get_register,
)
from asm24.assembler.parser import ParsedLine, detect_addressing_mode
from asm24.assembler.symbols import SymbolLocation, SymbolType

if TYPE_CHECKING:
    from asm24.assembler.assembler import AssemblyContext

logger = logging.getLogger(__name__)


@dataclass
class DeferredReference:
    """
    A pass-1 placeholder awaiting resolution.

    Attributes:
        location: Source line of the reference (for diagnostics)
        address: Address of the placeholder operand word
        label: Referenced label, without the '&' of relative operands
        mode: DIRECT or RELATIVE
        op: Mnemonic of the referencing operation
    """
    location: SourceLocation
    address: int
    label: str
    mode: AddressingMode
    op: str = ""

    @property
    def line_num(self) -> int:
        return self.location.line


class ReferenceList:
    """
    Deferred references, allocated once at the size found by the counting pass.
    """

    def __init__(self, capacity: int):
        self._refs: list[Optional[DeferredReference]] = [None] * capacity
        self._count = 0

    def append(self, ref: DeferredReference) -> None:
        if self._count >= len(self._refs):
            raise ResourceError(
                f"reference list overflow: {len(self._refs)} references were allocated"
            )
        self._refs[self._count] = ref
        self._count += 1

    def __len__(self) -> int:
        return self._count

    def __iter__(self):
        for index in range(self._count):
            yield self._refs[index]


# =============================================================================
# Pass 1
# =============================================================================

def first_pass(ctx: "AssemblyContext") -> None:
    """
    Build the symbol table and encode everything that does not need it.
    """
    for line in ctx.lines:
        if line.op is not None:
            _handle_op(ctx, line)
        elif line.directive is not None:
            _handle_directive(ctx, line)

    ctx.symbols.shift_data_addresses(ctx.coder.ic)
    logger.info(
        f"First pass: {ctx.coder.code_size} code words, {ctx.coder.data_size} data words, "
        f"{len(ctx.symbols)} symbols, {len(ctx.references)} deferred references"
    )


def _handle_op(ctx: "AssemblyContext", line: ParsedLine) -> None:
    """Emit the instruction word and its operand words."""
    if line.label is not None:
        ctx.symbols.add(line.label, SymbolType.CODE, SymbolLocation.UNRESOLVED, line.location)

    op = get_op(line.op)
    if op is None:
        # Unreachable after validation
        return

    src_mode = dest_mode = AddressingMode.IMMEDIATE
    src_reg = dest_reg = 0
    src_arg: Optional[str] = None
    dest_arg: Optional[str] = None

    # With two operands the first is the source; a single operand is the destination
    if line.n_args == 2:
        src_arg = line.args[0]
        src_mode = detect_addressing_mode(src_arg)
        if src_mode is AddressingMode.REGISTER:
            src_reg = get_register(src_arg)
    if line.n_args >= 1:
        dest_arg = line.args[-1]
        dest_mode = detect_addressing_mode(dest_arg)
        if dest_mode is AddressingMode.REGISTER:
            dest_reg = get_register(dest_arg)

    ctx.coder.emit_instruction(op.opcode, src_mode, src_reg, dest_mode, dest_reg, op.funct)

    if src_arg is not None:
        _emit_operand(ctx, line, src_arg, src_mode)
    if dest_arg is not None:
        _emit_operand(ctx, line, dest_arg, dest_mode)


def _emit_operand(ctx: "AssemblyContext", line: ParsedLine, arg: str, mode: AddressingMode) -> None:
    """
    Emit the operand word of a non-register argument.

    Immediates are resolved now. Label references get a zero placeholder
    flagged UNKNOWN and a deferred reference for pass 2.
    """
    if mode is AddressingMode.REGISTER:
        return

    if mode is AddressingMode.IMMEDIATE:
        ctx.coder.emit_operand(int(arg[1:]), LinkerFlag.ABSOLUTE)
        return

    label = arg[1:] if mode is AddressingMode.RELATIVE else arg
    ctx.references.append(DeferredReference(line.location, ctx.coder.ic, label, mode, line.op))
    ctx.coder.emit_operand(0, LinkerFlag.UNKNOWN)


def _handle_directive(ctx: "AssemblyContext", line: ParsedLine) -> None:
    """Emit data words and declare data/external symbols."""
    if line.directive in (DATA_DIRECTIVE, STRING_DIRECTIVE):
        if line.label is not None:
            ctx.symbols.add(line.label, SymbolType.DATA, SymbolLocation.UNRESOLVED, line.location)

        if line.directive == DATA_DIRECTIVE:
            for arg in line.args:
                ctx.coder.emit_data(int(arg))
        else:
            for ch in line.args[0][1:-1]:
                ctx.coder.emit_data(ord(ch))
            ctx.coder.emit_data(0)

    elif line.directive == EXTERN_DIRECTIVE:
        ctx.symbols.add(line.args[0], SymbolType.UNKNOWN, SymbolLocation.EXTERNAL, line.location)


# =============================================================================
# Pass 2
# =============================================================================

def second_pass(ctx: "AssemblyContext") -> None:
    """
    Mark entry symbols, then resolve every deferred reference.
    """
    for line in ctx.lines:
        if line.directive == ENTRY_DIRECTIVE:
            ctx.symbols.mark_entry(line.args[0], line.location)

    for ref in ctx.references:
        symbol = ctx.coder.patch_operand(ref.address, ref.label, ref.mode, ctx.symbols, ref.location)
        if symbol is None:
            continue
        if symbol.is_external:
            if ref.mode is AddressingMode.RELATIVE:
                ctx.errors.add(AddressingModeError(
                    ref.op,
                    "destination",
                    f"&{ref.label}",
                    str(ref.mode),
                    location=ref.location,
                    hint=f"'{ref.label}' is external; its distance is only known after linking",
                ))
            else:
                ctx.external_uses.append((ref.label, ref.address))

    logger.info(
        f"Second pass: {len(ctx.symbols.entries())} entries, "
        f"{len(ctx.external_uses)} external references"
    )
