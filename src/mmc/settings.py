from __future__ import annotations

import logging
import math
import sys
from pathlib import Path
from typing import Callable, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

# Settings file key -> (section, field) in the OptimizerInputs JSON layout
SETTINGS_KEYS: Dict[str, tuple] = {
    "cell_capacitance": ("unit_cell", "capacitance_f"),
    "cell_voltage": ("unit_cell", "voltage_rating_v"),
    "target_capacitance": ("target", "capacitance_f"),
    "target_voltage": ("target", "voltage_floor_v"),
    "tolerance": ("target", "tolerance_f"),
    "max_series": ("bounds", "max_series"),
    "max_parallel": ("bounds", "max_parallel"),
}

_INT_KEYS = {"max_series", "max_parallel"}


class SettingsError(ValueError):
    """Malformed settings file."""

    def __init__(self, message: str, path: Optional[Path] = None, line_no: Optional[int] = None):
        where = ""
        if path is not None:
            where = f"{path}:{line_no}: " if line_no is not None else f"{path}: "
        super().__init__(where + message)
        self.path = path
        self.line_no = line_no


def load_settings(path: str | Path) -> Dict[str, float]:
    """
    Read a flat settings file, one `key<TAB>value` pair per line.

    Blank lines and lines starting with '#' are skipped. Values are floats
    (scientific notation is expected but any float literal is accepted).
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Settings file not found: {path}")

    values: Dict[str, float] = {}
    for line_no, raw in enumerate(p.read_text().splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split()
        if len(parts) != 2:
            raise SettingsError(f"expected 'key<TAB>value', got {raw!r}", p, line_no)
        key, text = parts
        try:
            values[key] = float(text)
        except ValueError:
            raise SettingsError(f"value for {key!r} is not a number: {text!r}", p, line_no) from None
        if key in _INT_KEYS and not (math.isfinite(values[key]) and values[key].is_integer()):
            raise SettingsError(f"value for {key!r} must be a whole number: {text!r}", p, line_no)
        if key not in SETTINGS_KEYS:
            logger.warning("Unknown settings key %r in %s (line %d)", key, p, line_no)

    logger.info("Loaded %d settings from %s", len(values), p)
    return values


def save_settings(path: str | Path, values: Mapping[str, float]) -> None:
    p = Path(path)
    lines = [f"{key}\t{float(v):e}" for key, v in values.items()]
    p.write_text("\n".join(lines) + "\n")
    logger.info("Saved %d settings to %s", len(lines), p)


def settings_to_inputs(values: Mapping[str, float]) -> Dict[str, dict]:
    """Nest flat settings into the sections used by OptimizerInputs."""
    data: Dict[str, dict] = {}
    for key, v in values.items():
        if key not in SETTINGS_KEYS:
            continue
        section, field = SETTINGS_KEYS[key]
        data.setdefault(section, {})[field] = int(v) if key in _INT_KEYS else float(v)
    return data


def inputs_to_settings(data: Mapping[str, Mapping[str, float]]) -> Dict[str, float]:
    """Flatten OptimizerInputs-style sections back into settings keys."""
    values: Dict[str, float] = {}
    for key, (section, field) in SETTINGS_KEYS.items():
        sec = data.get(section) or {}
        if field in sec and sec[field] is not None:
            values[key] = float(sec[field])
    return values


def prompt_float(
    prompt: str,
    *,
    min_v: float | None = None,
    max_v: float | None = None,
    input_fn: Callable[[str], str] = input,
) -> float:
    while True:
        raw = input_fn(prompt).strip()
        try:
            v = float(raw)
        except ValueError:
            print("Please enter a number.", file=sys.stderr)
            continue
        if min_v is not None and v < min_v:
            print(f"Must be >= {min_v}.", file=sys.stderr)
            continue
        if max_v is not None and v > max_v:
            print(f"Must be <= {max_v}.", file=sys.stderr)
            continue
        return v
