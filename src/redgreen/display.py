# redgreen/display.py
"""
Display sink: a fixed-size grid of cells, each with a glyph, a foreground and
a background colour.

Colours are rich colour names ("green", "red", "default", ...). CellBuffer is
the in-memory implementation; the textual adapter in tui.py paints one onto
the terminal.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

DEFAULT = "default"


@dataclass(frozen=True)
class Cell:
    glyph: str = " "
    fg: str = DEFAULT
    bg: str = DEFAULT


BLANK = Cell()


class Display(Protocol):
    def size(self) -> tuple[int, int]:
        """Current (width, height) in cells."""
        ...

    def clear(self) -> None:
        """Reset every cell to BLANK, adopting the current size."""
        ...

    def set_cell(self, x: int, y: int, glyph: str, fg: str, bg: str) -> None: ...

    def flush(self) -> None:
        """Make everything drawn since clear() visible at once."""
        ...


class CellBuffer:
    """In-memory Display. Also used as the back buffer of the textual display."""

    def __init__(self, width: int = 0, height: int = 0):
        self._width = 0
        self._height = 0
        self._cells: list[Cell] = []
        self.flushes = 0
        self.resize(width, height)

    def resize(self, width: int, height: int) -> None:
        if width < 0 or height < 0:
            raise ValueError(f"invalid size {width}x{height}")
        self._width = width
        self._height = height
        self._cells = [BLANK] * (width * height)

    def size(self) -> tuple[int, int]:
        return self._width, self._height

    def clear(self) -> None:
        self._cells = [BLANK] * (self._width * self._height)

    def set_cell(self, x: int, y: int, glyph: str, fg: str, bg: str) -> None:
        if not (0 <= x < self._width and 0 <= y < self._height):
            return
        self._cells[y * self._width + x] = Cell(glyph, fg, bg)

    def flush(self) -> None:
        self.flushes += 1

    def cell(self, x: int, y: int) -> Cell:
        return self._cells[y * self._width + x]

    def row(self, y: int) -> list[Cell]:
        start = y * self._width
        return self._cells[start : start + self._width]

    def copy(self) -> CellBuffer:
        other = CellBuffer()
        other._width, other._height = self._width, self._height
        other._cells = list(self._cells)
        return other

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CellBuffer):
            return NotImplemented
        return self.size() == other.size() and self._cells == other._cells

    def __repr__(self) -> str:
        return f"CellBuffer({self._width}x{self._height})"
