from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

import numpy as np

from .grid import Grid
from .gridworld import (
    DELTA,
    Action,
    Cell,
    Field,
    Prohibited,
    Special,
    Terminal,
    left_of,
    payload_change,
    reverse_of,
    right_of,
)

log = logging.getLogger("gridmdp.rl")

# arg-max candidates in priority order; a later one wins only on a strict improvement
_TIE_BREAK = (Action.DOWN, Action.RIGHT, Action.LEFT, Action.UP)
_PROB_ATOL = 1e-6


@dataclass(frozen=True)
class MDPParams:
    """
    Discount, default step cost and the outcome distribution of an action:
    p1 intended, p2 deflected left, p3 deflected right, p4 reversed.
    """

    gamma: float = 1.0
    move_cost: float = -0.04
    p1: float = 0.8
    p2: float = 0.1
    p3: float = 0.1
    p4: float = 0.0

    def __post_init__(self) -> None:
        # NaN slips through every comparison below
        values = (self.gamma, self.move_cost, self.p1, self.p2, self.p3, self.p4)
        if not all(math.isfinite(v) for v in values):
            raise ValueError(f"parameters must be finite, got {self}")
        if not 0.0 < self.gamma <= 1.0:
            raise ValueError(f"gamma must be in (0, 1], got {self.gamma}")
        probs = (self.p1, self.p2, self.p3, self.p4)
        if any(p < 0.0 for p in probs):
            raise ValueError(f"transition probabilities must be >= 0, got {probs}")
        total = sum(probs)
        if abs(total - 1.0) > _PROB_ATOL:
            raise ValueError(f"transition probabilities must sum to 1, got {total:.6f}")

    @staticmethod
    def derive_p4(p1: float, p2: float, p3: float) -> float:
        return abs(1.0 - p1 - p2 - p3)


class Solver:
    """
    Synchronous value iteration over a grid of typed cells.

    Each sweep computes every new cell from the pre-sweep grid only, writes the
    results into a clone and swaps the clone in once the whole pass is done.
    """

    def __init__(self, grid: Grid[Cell], params: MDPParams):
        self.grid = grid
        self.params = params
        self.policy: Grid[Optional[Action]] = Grid(None, grid.width, grid.height)
        self.sweeps = 0

    # ---------- dynamics ----------

    def cell_at(self, x: int, y: int) -> Cell:
        cell = self.grid.read(x, y)
        if cell is None:
            raise IndexError(f"({x}, {y}) is outside the {self.grid.width}x{self.grid.height} grid")
        return cell

    def resulting_cell(self, action: Action, x: int, y: int) -> Cell:
        """Cell reached by moving once; blocked or off-grid moves bump back to (x, y)."""
        dx, dy = DELTA[action]
        neighbor = self.grid.read(x + dx, y + dy)
        if neighbor is None or isinstance(neighbor, Prohibited):
            return self.cell_at(x, y)
        return neighbor

    def outcome_value(self, action: Action, x: int, y: int) -> float:
        p = self.params
        forward = self.resulting_cell(action, x, y)
        left = self.resulting_cell(left_of(action), x, y)
        right = self.resulting_cell(right_of(action), x, y)
        backward = self.resulting_cell(reverse_of(action), x, y)
        return (
            p.p1 * forward.reward
            + p.p2 * left.reward
            + p.p3 * right.reward
            + p.p4 * backward.reward
        )

    def move_cost(self, cell: Cell) -> float:
        if isinstance(cell, Special):
            return cell.move_cost
        return self.params.move_cost

    def expected_value(self, action: Action, x: int, y: int) -> float:
        cell = self.cell_at(x, y)
        return self.params.gamma * self.outcome_value(action, x, y) + self.move_cost(cell)

    # ---------- update ----------

    def evaluate_field(self, cell: Cell, x: int, y: int) -> Field:
        if isinstance(cell, (Terminal, Prohibited)):
            return Field(cell, None)

        best_action = _TIE_BREAK[0]
        best = self.expected_value(best_action, x, y)
        for a in _TIE_BREAK[1:]:
            q = self.expected_value(a, x, y)
            if q > best:
                best, best_action = q, a

        return Field(cell.with_value(best), best_action)

    def evaluate(self) -> float:
        """Run one sweep and return the summed absolute payload change."""
        new_grid = self.grid.clone()
        new_policy: Grid[Optional[Action]] = Grid(None, self.grid.width, self.grid.height)
        error = 0.0

        for x, y, cell in self.grid.items():
            field = self.evaluate_field(cell, x, y)
            error += payload_change(cell, field.cell)
            new_grid.write(x, y, field.cell)
            new_policy.write(x, y, field.action)

        self.grid = new_grid
        self.policy = new_policy
        self.sweeps += 1
        log.debug(f"sweep {self.sweeps}: error={error:.6e}")
        return error

    # ---------- export ----------

    def values(self) -> np.ndarray:
        V = np.full(self.grid.shape, np.nan, dtype=np.float64)
        for x, y, cell in self.grid.items():
            if not isinstance(cell, Prohibited):
                V[y, x] = cell.reward
        return V

    def policy_array(self) -> np.ndarray:
        pi = np.full(self.grid.shape, -1, dtype=int)
        for x, y, a in self.policy.items():
            if a is not None:
                pi[y, x] = int(a)
        return pi


def value_iteration(
    solver: Solver,
    tol: float = 1e-4,
    max_iter: int = 1000,
) -> Dict[str, Any]:
    """
    Sweep until the error drops below tol or max_iter sweeps have run.
    Returns info: {"iters": int, "residual": float, "converged": bool}
    """
    if max_iter < 1 or not tol > 0.0:
        raise ValueError(f"need max_iter >= 1 and tol > 0, got max_iter={max_iter}, tol={tol}")
    residual = np.inf
    iters = 0
    for it in range(max_iter):
        iters = it + 1
        residual = solver.evaluate()
        if residual < tol:
            break

    converged = bool(residual < tol)
    if converged:
        log.info(f"converged after {iters} sweeps, residual={residual:.3e}")
    else:
        log.warning(f"no convergence after {iters} sweeps, residual={residual:.3e}")
    return {"iters": iters, "residual": float(residual), "converged": converged}
