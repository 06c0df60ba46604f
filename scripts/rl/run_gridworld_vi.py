#!/usr/bin/env python
from __future__ import annotations

import logging
import math
from dataclasses import asdict
from pathlib import Path
from typing import Optional

import typer

from gridmdp.core import save_json, timed
from gridmdp.rl.scenario import ScenarioError, build_solver, load_scenario, standard_world
from gridmdp.rl.value_iteration import Solver, value_iteration

app = typer.Typer(add_completion=False)


def _init_logger(level_name: str, log_file: Optional[Path]) -> logging.Logger:
    log = logging.getLogger("gridmdp")
    # Avoid adding multiple handlers on repeated runs
    if not log.handlers:
        level = getattr(logging, level_name.upper(), logging.INFO)
        log.setLevel(level)
        fmt = logging.Formatter("%(asctime)s | %(levelname)s | %(message)s")
        ch = logging.StreamHandler()
        ch.setLevel(level)
        ch.setFormatter(fmt)
        log.addHandler(ch)
        if log_file is not None:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            fh = logging.FileHandler(log_file)
            fh.setLevel(level)
            fh.setFormatter(fmt)
            log.addHandler(fh)
    return log


def _print_world(solver: Solver) -> None:
    grid = solver.grid
    typer.echo(" - values:")
    for y in range(grid.height):
        typer.echo("   " + " ".join(f"{str(grid.read(x, y)):>10}" for x in range(grid.width)))
    typer.echo(" - policy:")
    for y in range(grid.height):
        row = []
        for x in range(grid.width):
            a = solver.policy.read(x, y)
            row.append(grid.read(x, y).letter if a is None else str(a))
        typer.echo("   " + " ".join(row))


@app.command()
def main(
    config: Optional[Path] = typer.Option(None, help="Scenario YAML/JSON; the standard 4x3 world if omitted"),
    tol: Optional[float] = typer.Option(None, help="Stop once a sweep changes less than this (overrides config)"),
    max_iter: Optional[int] = typer.Option(None, help="Sweep limit (overrides config)"),
    out_json: Optional[Path] = typer.Option(None, help="Write values, policy and run info here"),
    log_level: str = typer.Option("INFO", help="DEBUG shows every sweep"),
    log_file: Optional[Path] = typer.Option(None),
):
    log = _init_logger(log_level, log_file)

    try:
        cfg = load_scenario(config) if config is not None else standard_world()
        if tol is not None:
            cfg.tol = tol
        if max_iter is not None:
            cfg.max_iter = max_iter
        solver = build_solver(cfg)
    except (ScenarioError, FileNotFoundError) as e:
        log.error(f"Invalid scenario: {e}")
        raise typer.Exit(code=2) from e

    with timed("value iteration", log):
        info = value_iteration(solver, tol=cfg.tol, max_iter=cfg.max_iter)

    typer.echo("Value Iteration:")
    typer.echo(f" - iters: {info['iters']}, residual: {info['residual']:.3e}, converged: {info['converged']}")
    _print_world(solver)

    if out_json is not None:
        V = solver.values()
        save_json(
            out_json,
            {
                "scenario": asdict(cfg),
                "info": info,
                # JSON has no NaN; prohibited cells become null
                "values": [[None if math.isnan(v) else float(v) for v in row] for row in V.tolist()],
                "policy": solver.policy_array().tolist(),
            },
        )
        log.info(f"Wrote {out_json}")

    if not info["converged"]:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
