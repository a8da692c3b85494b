"""
Report Rendering
================

Fixed-width text output for the MMC grid:

+---------------------------------------------------+
|               MMC Calculator v1.2.0               |
|                 Capacitance in nF                 |
+-----+---------+-----------+-----------+-----------+
| SER | VOLTAGE |   PAR 1   |   PAR 2   |   PAR 3   |
+-----+---------+-----------+-----------+-----------+
|   1 |    1200 |     150.0 |     300.0 |     450.0 |

Accepted cells and winners are highlighted with ANSI colors, or with
'*' / '#' markers when color is off.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Set, Tuple

import pandas as pd

from .models import OptimizerOutputs, Winner
from .search import SearchGrid
from .units import format_si, si_scale

ACCEPTED_COLOR = "\033[32m"
WINNER_COLOR = "\033[1;7m"
RESET = "\033[0m"

# "| SER | VOLTAGE |" plus borders, then 12 chars per parallel column
_FIXED_WIDTH = 17
_COLUMN_WIDTH = 12

# value column of the summary lines, wide enough for "Recommended (per_parallel):"
_LABEL_WIDTH = 28

POLICY_LABELS = {
    "global": "Closest match",
    "per_parallel": "Smallest array",
}


def center(text: str, width: int, pad: str = " ") -> str:
    """Center `text` with one space either side, padded with `pad` to `width`."""
    left = int(0.5 * (width - len(text) - 2))
    out = pad * max(0, left)
    out += f" {text} " if text else pad * 2
    used = left + 2 + len(text)
    out += pad * max(0, width - used)
    return out


def fit_columns(terminal_width: int) -> int:
    """Number of parallel columns that fit in a terminal `terminal_width` wide."""
    return max(1, (int(terminal_width) - _FIXED_WIDTH) // _COLUMN_WIDTH)


def fit_rows(terminal_height: int) -> int:
    """Number of series rows that fit below the header box."""
    return max(1, int(terminal_height) - 7)


def _rule(n_cols: int) -> str:
    return "+-----+---------+" + "-----------+" * n_cols


def _cell(value: float, accepted: bool, winner: bool, color: bool) -> str:
    text = f"{value:9.1f}"
    if color:
        if winner:
            text = f"{WINNER_COLOR}{text}{RESET}"
        elif accepted:
            text = f"{ACCEPTED_COLOR}{text}{RESET}"
        return f" {text} |"
    marker = "#" if winner else ("*" if accepted else " ")
    return f" {text}{marker}|"


def render_table(
    grid: SearchGrid,
    *,
    title: str,
    author: str = "",
    color: bool = True,
    max_columns: Optional[int] = None,
    winners: Iterable[Tuple[int, int]] = (),
) -> str:
    """
    Render the capacitance grid as a boxed text table.

    Capacitances share one SI prefix, chosen from the 1S x 1P cell (the unit
    cell capacitance), and the unit is printed under the title.
    """
    n_series, n_parallel = grid.shape
    n_cols = n_parallel if max_columns is None else min(n_parallel, max(0, int(max_columns)))
    width = _COLUMN_WIDTH * n_cols + _FIXED_WIDTH - 2
    marked: Set[Tuple[int, int]] = set(winners)

    if n_series and n_parallel:
        factor, prefix = si_scale(float(grid.capacitance_f[0, 0]))
    else:
        factor, prefix = 1.0, " "
    unit = f"Capacitance in {prefix.strip()}F"

    lines: List[str] = ["+" + "-" * width + "+"]
    lines.append("|" + center(title, width) + "|")
    if author:
        lines.append("|" + center(author, width) + "|")
    lines.append("|" + center(unit, width) + "|")
    lines.append(_rule(n_cols))
    lines.append("| SER | VOLTAGE |" + "".join(f"   PAR{int(p):2d}   |" for p in grid.parallel_counts[:n_cols]))
    lines.append(_rule(n_cols))

    for i, s in enumerate(grid.series_counts):
        row = f"| {int(s):3d} | {float(grid.rated_voltage_v[i]):7.0f} |"
        for j in range(n_cols):
            p = int(grid.parallel_counts[j])
            row += _cell(
                float(grid.capacitance_f[i, j]) * factor,
                accepted=bool(grid.accepted[i, j]),
                winner=(int(s), p) in marked,
                color=color,
            )
        lines.append(row)

    lines.append(_rule(n_cols))
    return "\n".join(lines)


def _describe(w: Winner) -> str:
    return (
        f"{w.series}S x {w.parallel}P ({w.series * w.parallel} caps) = "
        f"{format_si(w.equivalent_capacitance_f, 'F').strip()} @ "
        f"{format_si(w.rated_voltage_v, 'V').strip()} "
        f"(off by {format_si(w.deviation_f, 'F').strip()})"
    )


def render_summary(outputs: OptimizerOutputs) -> str:
    t = outputs.inputs.target
    lines = [
        f"{'Target:':<{_LABEL_WIDTH}}{format_si(t.capacitance_f, 'F').strip()} "
        f"+/- {format_si(t.tolerance_f, 'F').strip()}, "
        f">= {format_si(t.voltage_floor_v, 'V').strip()}"
    ]

    by_policy = {w.policy: w for w in outputs.winners}
    for policy, label in POLICY_LABELS.items():
        w = by_policy.get(policy)
        lines.append(f"{label + ':':<{_LABEL_WIDTH}}{_describe(w) if w is not None else 'no match'}")

    rec = outputs.recommended
    label = f"Recommended ({outputs.inputs.policy}):"
    lines.append(f"{label:<{_LABEL_WIDTH}}{_describe(rec) if rec is not None else 'no match'}")
    return "\n".join(lines)


def grid_frame(grid: SearchGrid) -> pd.DataFrame:
    """Capacitance grid as a DataFrame (index = series count) for CSV export."""
    df = pd.DataFrame(
        grid.capacitance_f,
        index=pd.Index([int(s) for s in grid.series_counts], name="series"),
        columns=[f"par_{int(p)}_f" for p in grid.parallel_counts],
    )
    df.insert(0, "voltage_v", grid.rated_voltage_v)
    return df
