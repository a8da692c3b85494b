import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

import pytest

from mmc.models import OptimizerInputs


@pytest.fixture
def scenario_a() -> OptimizerInputs:
    """0.15 uF / 1200 V caps aiming at 14.31 nF, >= 9 kV."""
    return OptimizerInputs.model_validate(
        {
            "unit_cell": {"capacitance_f": 0.15e-6, "voltage_rating_v": 1200.0},
            "target": {"capacitance_f": 14.31e-9, "voltage_floor_v": 9000.0, "tolerance_f": 1e-9},
            "bounds": {"max_series": 80, "max_parallel": 10},
        }
    )


@pytest.fixture(autouse=True)
def _fixed_terminal(monkeypatch):
    """Pin terminal geometry so default bounds and column fitting are stable."""
    monkeypatch.setenv("COLUMNS", "137")
    monkeypatch.setenv("LINES", "37")
