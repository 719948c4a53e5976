"""
asm24 Output Files
==================

Text formats of the three artifacts written for a cleanly assembled file.
The layouts are consumed by the downstream linker and are reproduced
byte for byte, trailing padding included.

Object file (.ob)
-----------------
For `MAIN: mov #5, r1` / `stop` / `STR: .string "a"`:
```
      3 2
0000100 001904
0000101 00002c
0000102 3c0004
0000103 000061
0000104 000000
```
The header gives the code word count (right-aligned in 7 columns) and the
data word count (left-aligned in 6 columns). Each following line is a
7-digit zero-padded decimal address and a 6-digit hex word. Data words
follow the code words.

Externals file (.ext)
---------------------
One `LABEL 0000102 ` line per operand word referring to an external
symbol, in emission order (labels repeat). The address is followed by a
single space.

Entries file (.ent)
-------------------
One `LABEL 0000100 ` line per .entry symbol, in declaration order, in the
same layout.
"""

import logging
from pathlib import Path
from typing import Iterable

from asm24.assembler.codegen import MachineCoder
from asm24.assembler.symbols import Symbol

logger = logging.getLogger(__name__)


def format_address(address: int) -> str:
    return f"{address:07d}"


def format_word(value: int) -> str:
    return f"{value:06x}"


def format_header(code_count: int, data_count: int) -> str:
    return f"{code_count:>7} {data_count:<6}"


def format_object(coder: MachineCoder) -> str:
    """
    Render the object image.

    Raises:
        InternalError: If any operand is still an unresolved placeholder
    """
    lines = [format_header(coder.code_size, coder.data_size)]
    for address, value in coder.encoded_words():
        lines.append(f"{format_address(address)} {format_word(value)}")
    return "\n".join(lines) + "\n"


def _table_line(label: str, address: int) -> str:
    return f"{label} {format_address(address)} \n"


def format_externals(uses: Iterable[tuple[str, int]]) -> str:
    """Render (label, operand address) pairs of external references."""
    return "".join(_table_line(label, address) for label, address in uses)


def format_entries(entries: Iterable[Symbol]) -> str:
    """Render entry symbols with their final addresses."""
    return "".join(_table_line(s.name, s.address) for s in entries)


def write_text(filepath: str | Path, text: str) -> Path:
    """Write one artifact, creating the parent directory if needed."""
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    logger.debug(f"Wrote {len(text)} characters to {path}")
    return path
