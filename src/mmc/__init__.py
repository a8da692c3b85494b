"""
MMC Calculator
==============

Sizing tool for multiple-mini-capacitor (MMC) arrays:
- Capacitance model for series/parallel strings of identical capacitors
- Grid search over (series x parallel) configurations
- Best-match tracking (global closest match or smallest parallel count)
- Fixed-width text report with SI autoscaled values

Architecture:
- models.py: input/output models
- capacitance.py: closed-form array formulas
- search.py: enumerator, evaluator, trackers
- report.py / units.py: text rendering
- settings.py: flat key/value settings file and prompts
- cli.py: command-line entry point
"""

from .models import (
    ArrayConfig,
    ArrayResult,
    MatchCandidate,
    OptimizerInputs,
    OptimizerOutputs,
    SearchBounds,
    Target,
    UnitCell,
    Winner,
)
from .search import optimize_array, run_search

__version__ = "1.2.0"

__all__ = [
    "ArrayConfig",
    "ArrayResult",
    "MatchCandidate",
    "OptimizerInputs",
    "OptimizerOutputs",
    "SearchBounds",
    "Target",
    "UnitCell",
    "Winner",
    "optimize_array",
    "run_search",
]
