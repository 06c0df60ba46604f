from __future__ import annotations

from dataclasses import dataclass, replace
from enum import IntEnum
from typing import ClassVar, Dict, Optional, Tuple, Type


class CellKindError(TypeError):
    """
    A cell was asked to do something its kind cannot do: change kind through an
    update, or report a reward while being prohibited. Always a caller bug.
    """


class Action(IntEnum):
    # same codes as the tabular policy arrays: 0=up, 1=right, 2=down, 3=left
    UP = 0
    RIGHT = 1
    DOWN = 2
    LEFT = 3

    def __str__(self) -> str:
        return _ARROWS[self]


_ARROWS = {Action.UP: "^", Action.RIGHT: ">", Action.DOWN: "v", Action.LEFT: "<"}

# (dx, dy) with the origin at the top-left corner, y growing downwards
DELTA: Dict[Action, Tuple[int, int]] = {
    Action.UP: (0, -1),
    Action.RIGHT: (1, 0),
    Action.DOWN: (0, 1),
    Action.LEFT: (-1, 0),
}


def left_of(a: Action) -> Action:
    """Up -> Left -> Down -> Right -> Up."""
    return Action((a - 1) % 4)


def right_of(a: Action) -> Action:
    return Action((a + 1) % 4)


def reverse_of(a: Action) -> Action:
    return Action((a + 2) % 4)


# ---------- cells ----------


@dataclass(frozen=True)
class Cell:
    """
    One grid position. The concrete class is the kind and is fixed for the life
    of the cell; sweeps only ever swap in a same-kind copy via with_value().
    """

    mutable: ClassVar[bool] = True
    letter: ClassVar[str] = "?"

    @property
    def kind(self) -> str:
        return type(self).__name__.lower()

    @property
    def reward(self) -> float:
        return self.value  # type: ignore[attr-defined]

    def with_value(self, value: float) -> "Cell":
        return replace(self, value=float(value))

    def same_kind(self, other: "Cell") -> bool:
        return type(self) is type(other)

    def __str__(self) -> str:
        return f"{self.letter}({self.value:.3f})"  # type: ignore[attr-defined]


@dataclass(frozen=True)
class Prohibited(Cell):
    mutable: ClassVar[bool] = False
    letter: ClassVar[str] = "F"

    @property
    def reward(self) -> float:
        raise CellKindError("Prohibited cells have no reward")

    def with_value(self, value: float) -> "Cell":
        return self

    def __str__(self) -> str:
        return self.letter


@dataclass(frozen=True)
class Start(Cell):
    letter: ClassVar[str] = "S"
    value: float = 0.0


@dataclass(frozen=True)
class Terminal(Cell):
    mutable: ClassVar[bool] = False
    letter: ClassVar[str] = "T"
    value: float = 0.0


@dataclass(frozen=True)
class Special(Cell):
    """A normal cell whose step cost overrides the world default."""

    letter: ClassVar[str] = "B"
    value: float = 0.0
    move_cost: float = 0.0


@dataclass(frozen=True)
class Normal(Cell):
    letter: ClassVar[str] = "N"
    value: float = 0.0


CELL_KINDS: Dict[str, Type[Cell]] = {
    cls.__name__.lower(): cls for cls in (Prohibited, Start, Terminal, Special, Normal)
}


def payload_change(old: Cell, new: Cell) -> float:
    """|new - old| for valued cells, 0.0 for prohibited ones."""
    if not old.same_kind(new):
        raise CellKindError(f"Cell kind changed from {old.kind} to {new.kind}")
    if isinstance(old, Prohibited):
        return 0.0
    return abs(new.reward - old.reward)


@dataclass(frozen=True)
class Field:
    """Updated cell plus the action that produced its value (None when nothing was chosen)."""

    cell: Cell
    action: Optional[Action] = None
