from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from gridmdp.core.io import load_config

from .grid import Grid
from .gridworld import CELL_KINDS, Cell, Normal, Prohibited, Special
from .value_iteration import MDPParams, Solver

log = logging.getLogger("gridmdp.rl")


class ScenarioError(ValueError):
    """Malformed scenario; raised before any solver is built."""


# -------------------------------
# Config dataclasses
# -------------------------------


@dataclass
class CellSpec:
    kind: str  # prohibited | start | terminal | special | normal
    x: int
    y: int
    value: Optional[float] = None  # defaults to 0.0; must stay unset for prohibited
    move_cost: Optional[float] = None  # special only

    def to_cell(self) -> Cell:
        cls = CELL_KINDS.get(str(self.kind).lower())
        if cls is None:
            raise ScenarioError(f"Unknown cell kind {self.kind!r}; expected one of {sorted(CELL_KINDS)}")
        if cls is not Special and self.move_cost is not None:
            raise ScenarioError(f"move_cost is only valid on special cells, got it on {self.kind!r}")
        if cls is Prohibited:
            if self.value is not None:
                raise ScenarioError(f"Prohibited cell at ({self.x}, {self.y}) cannot carry a value")
            return Prohibited()
        value = 0.0 if self.value is None else float(self.value)
        if cls is Special:
            if self.move_cost is None:
                raise ScenarioError(f"Special cell at ({self.x}, {self.y}) needs a move_cost")
            return Special(value, float(self.move_cost))
        return cls(value)


@dataclass
class ScenarioConfig:
    width: int = 4
    height: int = 3
    gamma: float = 1.0
    move_cost: float = -0.04  # default step cost, special cells override it
    p1: float = 0.8  # intended direction
    p2: float = 0.1  # deflected left
    p3: float = 0.1  # deflected right
    p4: Optional[float] = None  # reversed; derived from p1..p3 when unset
    cells: List[CellSpec] = field(default_factory=list)

    # driver loop
    tol: float = 1e-4
    max_iter: int = 1000

    def params(self) -> MDPParams:
        try:
            p4 = MDPParams.derive_p4(self.p1, self.p2, self.p3) if self.p4 is None else self.p4
            return MDPParams(
                gamma=float(self.gamma),
                move_cost=float(self.move_cost),
                p1=float(self.p1),
                p2=float(self.p2),
                p3=float(self.p3),
                p4=float(p4),
            )
        except (TypeError, ValueError) as e:
            raise ScenarioError(str(e)) from e


# -------------------------------
# Builder
# -------------------------------


def build_solver(cfg: ScenarioConfig) -> Solver:
    """
    Grid of Normal(0.0) cells with cfg.cells applied in order; a later override at the
    same coordinate replaces the earlier one.
    """
    _as_int(cfg.width, "width")
    _as_int(cfg.height, "height")
    if cfg.width < 0 or cfg.height < 0:
        raise ScenarioError(f"Grid dimensions must be >= 0, got {cfg.width}x{cfg.height}")
    if _as_int(cfg.max_iter, "max_iter") < 1:
        raise ScenarioError(f"max_iter must be >= 1, got {cfg.max_iter}")
    if not (isinstance(cfg.tol, (int, float)) and math.isfinite(cfg.tol) and cfg.tol > 0.0):
        raise ScenarioError(f"tol must be a finite number > 0, got {cfg.tol!r}")
    params = cfg.params()

    grid: Grid[Cell] = Grid(Normal(0.0), cfg.width, cfg.height)
    placed: Dict[tuple, int] = {}
    for i, spec in enumerate(cfg.cells):
        _as_int(spec.x, f"cells[{i}].x")
        _as_int(spec.y, f"cells[{i}].y")
        cell = spec.to_cell()
        pos = (spec.x, spec.y)
        if not grid.write(spec.x, spec.y, cell):
            raise ScenarioError(f"cells[{i}]: {pos} is outside the {cfg.width}x{cfg.height} grid")
        if pos in placed:
            log.warning(f"cells[{i}]: {cell} at {pos} replaces the override from cells[{placed[pos]}]")
        else:
            log.debug(f"Created {cell} at {pos}")
        placed[pos] = i

    log.debug(
        f"Built {cfg.width}x{cfg.height} world: gamma={params.gamma}, move_cost={params.move_cost}, "
        f"p=({params.p1}, {params.p2}, {params.p3}, {params.p4})"
    )
    return Solver(grid, params)


def standard_world() -> ScenarioConfig:
    """The classic 4x3 world: start bottom-left, one wall, +1/-1 exits on the right."""
    return ScenarioConfig(
        cells=[
            CellSpec("start", 0, 2),
            CellSpec("prohibited", 1, 1),
            CellSpec("terminal", 3, 0, value=1.0),
            CellSpec("terminal", 3, 1, value=-1.0),
        ]
    )


# -------------------------------
# Loading
# -------------------------------


def _as_int(value: Any, name: str) -> int:
    """Whole numbers only: 2 and 2.0 pass, 1.5, True and "2" do not."""
    if isinstance(value, bool):
        raise ScenarioError(f"{name} must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise ScenarioError(f"{name} must be an integer, got {value!r}")


_TOP_KEYS = {"width", "height", "gamma", "move_cost", "p1", "p2", "p3", "p4", "cells", "tol", "max_iter"}
_CELL_KEYS = {"kind", "x", "y", "value", "move_cost"}


def _cell_spec(d: Any, i: int) -> CellSpec:
    if not isinstance(d, dict):
        raise ScenarioError(f"cells[{i}] must be a mapping, got {type(d).__name__}")
    unknown = set(d) - _CELL_KEYS
    if unknown:
        raise ScenarioError(f"cells[{i}]: unknown keys {sorted(unknown)}")
    try:
        return CellSpec(
            kind=str(d["kind"]),
            x=_as_int(d["x"], f"cells[{i}].x"),
            y=_as_int(d["y"], f"cells[{i}].y"),
            value=None if d.get("value") is None else float(d["value"]),
            move_cost=None if d.get("move_cost") is None else float(d["move_cost"]),
        )
    except ScenarioError:
        raise
    except KeyError as e:
        raise ScenarioError(f"cells[{i}]: missing required key {e.args[0]!r}") from e
    except (TypeError, ValueError) as e:
        raise ScenarioError(f"cells[{i}]: {e}") from e


def scenario_from_dict(d: Any) -> ScenarioConfig:
    """
    Build a ScenarioConfig from a parsed document. width and height are required;
    everything else falls back to the ScenarioConfig defaults.
    """
    if not isinstance(d, dict):
        raise ScenarioError(f"Scenario must be a mapping, got {type(d).__name__}")
    unknown = set(d) - _TOP_KEYS
    if unknown:
        raise ScenarioError(f"Unknown scenario keys {sorted(unknown)}")
    for key in ("width", "height"):
        if key not in d:
            raise ScenarioError(f"Scenario is missing required key {key!r}")

    base = ScenarioConfig()
    raw_cells = d.get("cells")
    if raw_cells is None:
        raw_cells = []
    if not isinstance(raw_cells, list):
        raise ScenarioError(f"cells must be a list, got {type(raw_cells).__name__}")
    cells = [_cell_spec(c, i) for i, c in enumerate(raw_cells)]
    try:
        return ScenarioConfig(
            width=_as_int(d["width"], "width"),
            height=_as_int(d["height"], "height"),
            gamma=float(d.get("gamma", base.gamma)),
            move_cost=float(d.get("move_cost", base.move_cost)),
            p1=float(d.get("p1", base.p1)),
            p2=float(d.get("p2", base.p2)),
            p3=float(d.get("p3", base.p3)),
            p4=None if d.get("p4") is None else float(d["p4"]),
            cells=cells,
            tol=float(d.get("tol", base.tol)),
            max_iter=_as_int(d.get("max_iter", base.max_iter), "max_iter"),
        )
    except ScenarioError:
        raise
    except (TypeError, ValueError) as e:
        raise ScenarioError(f"Invalid scenario value: {e}") from e


def load_scenario(path: Path | str) -> ScenarioConfig:
    try:
        d = load_config(path)
    except (ValueError, yaml.YAMLError) as e:
        raise ScenarioError(f"Cannot parse {path}: {e}") from e
    return scenario_from_dict(d)
