from __future__ import annotations

from .models import ArrayConfig, ArrayResult, UnitCell


def equivalent_capacitance(unit_cell: UnitCell, series: int, parallel: int) -> float:
    """Net capacitance of `parallel` strings of `series` capacitors each (F)."""
    return parallel * float(unit_cell.capacitance_f) / series


def rated_voltage(unit_cell: UnitCell, series: int) -> float:
    """Voltage rating of one string of `series` capacitors (V)."""
    return series * float(unit_cell.voltage_rating_v)


def array_result(unit_cell: UnitCell, config: ArrayConfig) -> ArrayResult:
    return ArrayResult(
        equivalent_capacitance_f=equivalent_capacitance(unit_cell, config.series, config.parallel),
        rated_voltage_v=rated_voltage(unit_cell, config.series),
    )
