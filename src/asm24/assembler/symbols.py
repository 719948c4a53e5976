"""
asm24 Symbol Table
==================

Ordered registry of the labels declared in one source file.

Addresses are taken from the encoder's counters at the moment a symbol
is declared: code symbols get the current instruction counter, data
symbols the current data counter, external symbols always 0. Once the
first pass is complete the data symbols are shifted by the final
instruction counter so that the data segment follows the code segment.

Insertion order is preserved (a plain dict), which is the order the
entry table is exported in.
"""

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, Optional, Protocol

from asm24.errors import (
    DuplicateSymbolError,
    EntrySymbolError,
    ErrorCollector,
    InternalError,
    ResourceError,
    SourceLocation,
    UndefinedSymbolError,
)

logger = logging.getLogger(__name__)


class SymbolType(Enum):
    """Whether a symbol labels code or data."""
    UNKNOWN = auto()  # .extern
    CODE = auto()
    DATA = auto()


class SymbolLocation(Enum):
    """Linkage class of a symbol."""
    UNRESOLVED = auto()  # declared here, not exported
    ENTRY = auto()       # declared here and exported by .entry
    EXTERNAL = auto()    # declared elsewhere (.extern)


class CounterSource(Protocol):
    """Anything exposing the current instruction and data counters."""

    @property
    def ic(self) -> int: ...

    @property
    def dc(self) -> int: ...


@dataclass
class Symbol:
    """
    Symbol table entry.

    Attributes:
        name: Label text
        address: Segment-relative address (final once data is shifted)
        type: CODE, DATA or UNKNOWN (external)
        location: UNRESOLVED, ENTRY or EXTERNAL
        defined_at: Where the symbol was declared
    """
    name: str
    address: int
    type: SymbolType
    location: SymbolLocation
    defined_at: Optional[SourceLocation] = None

    @property
    def is_external(self) -> bool:
        return self.location is SymbolLocation.EXTERNAL

    @property
    def is_entry(self) -> bool:
        return self.location is SymbolLocation.ENTRY


class SymbolTable:
    """
    Insertion-ordered symbol table for one source file.

    Usage:
        table = SymbolTable(errors, coder)
        table.add("MAIN", SymbolType.CODE, SymbolLocation.UNRESOLVED, location)
        ...
        table.shift_data_addresses(coder.ic)
        table.mark_entry("MAIN", location)
    """

    def __init__(
        self,
        errors: ErrorCollector,
        counters: CounterSource,
        capacity: Optional[int] = None,
    ):
        """
        Args:
            errors: Collector receiving duplicate/undefined/entry errors
            counters: Source of the instruction and data counters
            capacity: Declarations counted in advance (None: unbounded)
        """
        self._errors = errors
        self._counters = counters
        self._capacity = capacity
        self._symbols: dict[str, Symbol] = {}
        self._data_shift: Optional[int] = None

    def __len__(self) -> int:
        return len(self._symbols)

    def __contains__(self, label: str) -> bool:
        return label in self._symbols

    def __iter__(self) -> Iterator[Symbol]:
        return iter(self._symbols.values())

    def get(self, label: str) -> Optional[Symbol]:
        """Look up a symbol without reporting anything."""
        return self._symbols.get(label)

    def add(
        self,
        label: str,
        sym_type: SymbolType,
        sym_loc: SymbolLocation,
        location: Optional[SourceLocation] = None,
    ) -> bool:
        """
        Declare a symbol at the end of the table.

        The address is 0 for external symbols, otherwise the encoder's
        current instruction counter (CODE) or data counter (DATA), read
        before the word being labelled is emitted.

        Returns:
            True on success, False (with an error recorded) for a duplicate

        Raises:
            ResourceError: If more symbols are declared than were counted
        """
        existing = self._symbols.get(label)
        if existing is not None:
            self._errors.add(DuplicateSymbolError(
                label,
                location=location,
                original_location=existing.defined_at,
            ))
            return False

        if self._capacity is not None and len(self._symbols) >= self._capacity:
            raise ResourceError(
                f"symbol table overflow: {self._capacity} symbols were allocated"
            )

        if sym_loc is SymbolLocation.EXTERNAL:
            address = 0
        elif sym_type is SymbolType.CODE:
            address = self._counters.ic
        else:
            address = self._counters.dc

        self._symbols[label] = Symbol(label, address, sym_type, sym_loc, location)
        logger.debug(f"Declared {sym_type.name} symbol '{label}' at {address}")
        return True

    def lookup(self, label: str, location: Optional[SourceLocation] = None) -> Optional[Symbol]:
        """
        Look up a symbol, recording an error if it is absent.

        Returns:
            The symbol, or None (with an "unrecognized symbol" error recorded)
        """
        symbol = self._symbols.get(label)
        if symbol is None:
            self._errors.add(UndefinedSymbolError(label, location=location))
        return symbol

    def shift_data_addresses(self, by: int) -> None:
        """
        Move every DATA symbol past the code segment.

        Must be called exactly once per file, after the first pass.

        Raises:
            InternalError: If the shift has already been applied
        """
        if self._data_shift is not None:
            raise InternalError(
                f"data addresses already shifted by {self._data_shift}; "
                "shift must be applied exactly once per file"
            )
        self._data_shift = by
        for symbol in self._symbols.values():
            if symbol.type is SymbolType.DATA:
                symbol.address += by
        logger.debug(f"Shifted data symbols by {by}")

    @property
    def data_shifted(self) -> bool:
        return self._data_shift is not None

    def mark_entry(self, label: str, location: Optional[SourceLocation] = None) -> bool:
        """
        Flag a symbol as exported by an .entry directive.

        Returns:
            True on success, False (with an error recorded) if the symbol
            is missing or external
        """
        symbol = self._symbols.get(label)
        if symbol is None:
            self._errors.add(EntrySymbolError(label, "symbol is not declared in this file", location))
            return False
        if symbol.is_external:
            self._errors.add(EntrySymbolError(label, "symbol is declared .extern", location))
            return False
        symbol.location = SymbolLocation.ENTRY
        return True

    def entries(self) -> list[Symbol]:
        """Entry symbols in declaration order."""
        return [s for s in self._symbols.values() if s.is_entry]

    def externals(self) -> list[Symbol]:
        """External symbols in declaration order."""
        return [s for s in self._symbols.values() if s.is_external]

    def as_dict(self) -> dict[str, int]:
        """Map of symbol name to address."""
        return {name: s.address for name, s in self._symbols.items()}
