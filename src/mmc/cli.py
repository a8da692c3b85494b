from __future__ import annotations

import argparse
import json
import logging
import shutil
import sys
from pathlib import Path
from typing import Any, Callable, Dict, Mapping

from pydantic import ValidationError

from . import __version__
from .models import OptimizerInputs, SearchBounds, UnitCell
from .report import fit_columns, fit_rows, grid_frame, render_summary, render_table
from .search import build_grid, build_outputs, run_search
from .settings import (
    SettingsError,
    inputs_to_settings,
    load_settings,
    prompt_float,
    save_settings,
    settings_to_inputs,
)

logger = logging.getLogger(__name__)

TITLE = f"MMC Calculator v{__version__}"

# Component capacitor used when none is given: 0.15 uF / 1200 V
DEFAULT_UNIT_CELL = {"capacitance_f": 0.15e-6, "voltage_rating_v": 1200.0}


def _merge(data: Dict[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    for key, value in overrides.items():
        if isinstance(value, Mapping):
            section = dict(data.get(key) or {})
            section.update(value)
            data[key] = section
        else:
            data[key] = value
    return data


def _flag_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    flags = {
        ("unit_cell", "capacitance_f"): args.cell_capacitance,
        ("unit_cell", "voltage_rating_v"): args.cell_voltage,
        ("target", "capacitance_f"): args.target_capacitance,
        ("target", "voltage_floor_v"): args.target_voltage,
        ("target", "tolerance_f"): args.tolerance,
        ("bounds", "max_series"): args.max_series,
        ("bounds", "max_parallel"): args.max_parallel,
    }
    out: Dict[str, Any] = {}
    for (section, field), value in flags.items():
        if value is not None:
            out.setdefault(section, {})[field] = value
    if args.metric is not None:
        out["distance_metric"] = args.metric
    if args.policy is not None:
        out["policy"] = args.policy
    return out


def default_bounds() -> Dict[str, int]:
    """Search bounds that fill the current terminal."""
    size = shutil.get_terminal_size()
    return {"max_series": fit_rows(size.lines), "max_parallel": fit_columns(size.columns)}


def load_inputs(
    path: str | None,
    *,
    settings_path: str | None = None,
    overrides: Mapping[str, Any] | None = None,
    interactive: bool = False,
    need_target: bool = True,
    input_fn: Callable[[str], str] = input,
) -> Dict[str, Any]:
    """
    Collect raw inputs: JSON file, then settings file, then explicit overrides,
    then prompts for anything still missing (when interactive).
    """
    data: Dict[str, Any] = {}
    if path:
        p = Path(path)
        if not p.exists():
            raise FileNotFoundError(f"Input JSON not found: {path}")
        data = json.loads(p.read_text())
        if not isinstance(data, dict):
            raise TypeError(f"Input JSON must be an object, got {type(data).__name__}: {path}")

    if settings_path:
        _merge(data, settings_to_inputs(load_settings(settings_path)))
    if overrides:
        _merge(data, overrides)

    cell = dict(data.get("unit_cell") or {})
    target = dict(data.get("target") or {})

    # Ask for required fields if missing
    if interactive:
        if "capacitance_f" not in cell:
            cell["capacitance_f"] = prompt_float("Capacitor capacitance (F): ", min_v=1e-15, input_fn=input_fn)
        if "voltage_rating_v" not in cell:
            cell["voltage_rating_v"] = prompt_float("Capacitor voltage rating (V): ", min_v=1e-3, input_fn=input_fn)
        if need_target:
            if "capacitance_f" not in target:
                target["capacitance_f"] = prompt_float("Target capacitance (F): ", min_v=1e-15, input_fn=input_fn)
            if "voltage_floor_v" not in target:
                target["voltage_floor_v"] = prompt_float("Minimum array voltage (V): ", min_v=1e-3, input_fn=input_fn)
            if "tolerance_f" not in target:
                target["tolerance_f"] = prompt_float("Capacitance tolerance (F): ", min_v=0.0, input_fn=input_fn)

    for field, value in DEFAULT_UNIT_CELL.items():
        cell.setdefault(field, value)
    data["unit_cell"] = cell
    if need_target:
        data["target"] = target

    bounds = dict(data.get("bounds") or {})
    for field, value in default_bounds().items():
        bounds.setdefault(field, value)
    data["bounds"] = bounds

    return data


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mmc-calc",
        description="Series/parallel MMC capacitor array calculator.",
    )
    parser.add_argument(
        "--input",
        "-i",
        help="Path to input JSON (unit_cell / target / bounds sections).",
    )
    parser.add_argument(
        "--settings",
        "-s",
        help="Path to a flat key<TAB>value settings file.",
    )
    parser.add_argument(
        "--save-settings",
        help="Write the final parameters to this settings file.",
    )
    parser.add_argument("--cell-capacitance", type=float, help="Component capacitance (F).")
    parser.add_argument("--cell-voltage", type=float, help="Component voltage rating (V).")
    parser.add_argument("--target-capacitance", type=float, help="Target array capacitance (F).")
    parser.add_argument("--target-voltage", type=float, help="Minimum array voltage (V).")
    parser.add_argument("--tolerance", type=float, help="Allowed capacitance deviation (F).")
    parser.add_argument("--max-series", type=int, help="Largest series count (default: fit terminal).")
    parser.add_argument("--max-parallel", type=int, help="Largest parallel count (default: fit terminal).")
    parser.add_argument(
        "--metric",
        choices=["absolute", "weighted"],
        default=None,
        help="Distance metric used to rank accepted arrays.",
    )
    parser.add_argument(
        "--policy",
        choices=["global", "per_parallel"],
        default=None,
        help="Recommend the closest match (global) or the smallest parallel count (per_parallel).",
    )
    parser.add_argument(
        "--interactive",
        action="store_true",
        help="Prompt for missing required inputs.",
    )
    parser.add_argument(
        "--grid-only",
        action="store_true",
        help="Print the plain capacitance table without a target.",
    )
    parser.add_argument("--no-color", action="store_true", help="Disable ANSI highlighting.")
    parser.add_argument("--output", "-o", help="Path to write the full results JSON.")
    parser.add_argument("--csv", help="Path to write the capacitance grid as CSV.")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging to stderr.")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    color = not args.no_color and sys.stdout.isatty()
    columns = fit_columns(shutil.get_terminal_size().columns)

    try:
        raw = load_inputs(
            args.input,
            settings_path=args.settings,
            overrides=_flag_overrides(args),
            interactive=args.interactive,
            need_target=not args.grid_only,
        )
        if args.grid_only:
            unit_cell = UnitCell.model_validate(raw["unit_cell"])
            bounds = SearchBounds.model_validate(raw["bounds"])
        else:
            inputs = OptimizerInputs.model_validate(raw)
    except (FileNotFoundError, json.JSONDecodeError, TypeError, SettingsError) as e:
        print(f"Input error: {e}", file=sys.stderr)
        return 2
    except ValidationError as e:
        print("Input validation error:", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    if args.grid_only:
        grid = build_grid(unit_cell, bounds)
        print(render_table(grid, title=TITLE, color=color, max_columns=columns))
        if args.save_settings:
            save_settings(
                args.save_settings,
                inputs_to_settings({"unit_cell": unit_cell.model_dump(), "bounds": bounds.model_dump()}),
            )
        if args.csv:
            grid_frame(grid).to_csv(args.csv)
        return 0

    res = run_search(inputs)
    out = build_outputs(res)

    print(
        render_table(
            res.grid,
            title=TITLE,
            author=inputs.name,
            color=color,
            max_columns=columns,
            winners=[(w.series, w.parallel) for w in out.winners],
        )
    )
    print(render_summary(out))

    if args.save_settings:
        save_settings(args.save_settings, inputs_to_settings(inputs.model_dump()))
    if args.output:
        Path(args.output).write_text(out.model_dump_json(indent=2))
        logger.info("Wrote results to %s", args.output)
    if args.csv:
        grid_frame(res.grid).to_csv(args.csv)
        logger.info("Wrote grid to %s", args.csv)

    if not out.feasible:
        print("\nNo feasible array within the search bounds.", file=sys.stderr)
    return 0 if out.feasible else 1


if __name__ == "__main__":
    raise SystemExit(main())
