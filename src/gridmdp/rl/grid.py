from __future__ import annotations

import copy
from typing import Callable, Generic, Iterator, List, Optional, Tuple, TypeVar

T = TypeVar("T")


class Grid(Generic[T]):
    """
    Bounds-checked rectangular table of owned values.

    - Coordinates: (x, y), x=0..width-1 (column, left to right), y=0..height-1 (row, top to bottom)
    - Storage is row-major: row y holds the values for x=0..width-1
    - Out-of-range reads return None and out-of-range writes return False; neither raises

    The grid knows nothing about what it stores.
    """

    def __init__(self, default: T, width: int, height: int):
        if width < 0 or height < 0:
            raise ValueError(f"Grid dimensions must be >= 0, got {width}x{height}")
        self._width = int(width)
        self._height = int(height)
        # every position owns its own copy of the default
        self._rows: List[List[T]] = [
            [copy.deepcopy(default) for _ in range(self._width)] for _ in range(self._height)
        ]

    # ---------- basic properties ----------

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def shape(self) -> Tuple[int, int]:
        # numpy order
        return self._height, self._width

    def in_range(self, x: int, y: int) -> bool:
        return 0 <= x < self._width and 0 <= y < self._height

    # ---------- access ----------

    def read(self, x: int, y: int) -> Optional[T]:
        if not self.in_range(x, y):
            return None
        return self._rows[y][x]

    def write(self, x: int, y: int, value: T) -> bool:
        if not self.in_range(x, y):
            return False
        self._rows[y][x] = value
        return True

    # ---------- traversal ----------

    def items(self) -> Iterator[Tuple[int, int, T]]:
        for y, row in enumerate(self._rows):
            for x, value in enumerate(row):
                yield x, y, value

    def for_each(self, visitor: Callable[[int, int, T], None]) -> None:
        for x, y, value in self.items():
            visitor(x, y, value)

    def clone(self) -> "Grid[T]":
        return copy.deepcopy(self)

    def __len__(self) -> int:
        return self._width * self._height

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Grid):
            return NotImplemented
        return self.shape == other.shape and self._rows == other._rows

    def __repr__(self) -> str:
        return f"Grid(width={self._width}, height={self._height})"
