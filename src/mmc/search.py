from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

import numpy as np

from .capacitance import array_result
from .models import (
    ArrayConfig,
    DistanceMetric,
    MatchCandidate,
    OptimizerInputs,
    OptimizerOutputs,
    SearchBounds,
    Target,
    UnitCell,
    Winner,
)

logger = logging.getLogger(__name__)


def enumerate_configs(bounds: SearchBounds) -> Iterator[ArrayConfig]:
    """
    Yield every (series, parallel) pair inside the bounds.

    Series is the outer loop and parallel the inner one; the trackers rely on
    this order for tie-breaking. Either bound at 0 gives an empty sequence.
    """
    for series in range(1, int(bounds.max_series) + 1):
        for parallel in range(1, int(bounds.max_parallel) + 1):
            yield ArrayConfig(series=series, parallel=parallel)


def evaluate(
    unit_cell: UnitCell,
    target: Target,
    config: ArrayConfig,
    metric: DistanceMetric = "absolute",
) -> MatchCandidate:
    result = array_result(unit_cell, config)
    deviation = abs(result.equivalent_capacitance_f - float(target.capacitance_f))

    if metric == "weighted":
        # penalize bigger arrays among equally close matches
        distance = deviation * config.series**2 * config.parallel**2
    else:
        distance = deviation

    accepted = deviation <= float(target.tolerance_f) and result.rated_voltage_v >= float(target.voltage_floor_v)
    return MatchCandidate(
        config=config,
        result=result,
        deviation_f=deviation,
        distance=distance,
        accepted=accepted,
    )


class GlobalBestTracker:
    """Single running best over the whole enumeration."""

    policy = "global"

    def __init__(self) -> None:
        self.best: Optional[MatchCandidate] = None

    def consider(self, candidate: MatchCandidate) -> bool:
        """Keep `candidate` if it is accepted and strictly closer. Returns True on update."""
        if not candidate.accepted:
            return False
        if self.best is None or candidate.distance < self.best.distance:
            self.best = candidate
            return True
        return False


class PerParallelTracker:
    """
    One running best per parallel count.

    The final answer is the smallest parallel count holding a candidate, i.e. the
    simplest array that meets the constraints, not necessarily the closest one.
    """

    policy = "per_parallel"

    def __init__(self, max_parallel: int = 0) -> None:
        self._trackers: Dict[int, GlobalBestTracker] = {
            p: GlobalBestTracker() for p in range(1, int(max_parallel) + 1)
        }

    def consider(self, candidate: MatchCandidate) -> bool:
        tracker = self._trackers.setdefault(candidate.config.parallel, GlobalBestTracker())
        return tracker.consider(candidate)

    def best_for(self, parallel: int) -> Optional[MatchCandidate]:
        tracker = self._trackers.get(parallel)
        return None if tracker is None else tracker.best

    def items(self) -> List[Tuple[int, Optional[MatchCandidate]]]:
        return [(p, self._trackers[p].best) for p in sorted(self._trackers)]

    def final(self) -> Optional[MatchCandidate]:
        for _, best in self.items():
            if best is not None:
                return best
        return None


@dataclass(frozen=True)
class SearchGrid:
    series_counts: np.ndarray      # 1..max_series
    parallel_counts: np.ndarray    # 1..max_parallel
    rated_voltage_v: np.ndarray    # per series row
    capacitance_f: np.ndarray      # (n_series, n_parallel)
    deviation_f: np.ndarray        # NaN when no target was given
    accepted: np.ndarray           # bool mask

    @property
    def shape(self) -> Tuple[int, int]:
        return (int(self.series_counts.size), int(self.parallel_counts.size))


def build_grid(unit_cell: UnitCell, bounds: SearchBounds) -> SearchGrid:
    """Capacitance/voltage table with no target applied (nothing accepted)."""
    s = np.arange(1, int(bounds.max_series) + 1, dtype=int)
    p = np.arange(1, int(bounds.max_parallel) + 1, dtype=int)
    cap = p[np.newaxis, :].astype(float) * float(unit_cell.capacitance_f) / s[:, np.newaxis]
    volts = s.astype(float) * float(unit_cell.voltage_rating_v)
    return SearchGrid(
        series_counts=s,
        parallel_counts=p,
        rated_voltage_v=volts,
        capacitance_f=cap.reshape(s.size, p.size),
        deviation_f=np.full((s.size, p.size), np.nan),
        accepted=np.zeros((s.size, p.size), dtype=bool),
    )


@dataclass(frozen=True)
class SearchResult:
    inputs: OptimizerInputs
    grid: SearchGrid
    global_best: Optional[MatchCandidate]
    per_parallel: PerParallelTracker
    evaluated: int

    @property
    def per_parallel_best(self) -> Optional[MatchCandidate]:
        return self.per_parallel.final()

    @property
    def recommended(self) -> Optional[MatchCandidate]:
        if self.inputs.policy == "per_parallel":
            return self.per_parallel_best
        return self.global_best

    @property
    def feasible(self) -> bool:
        return self.recommended is not None


def run_search(inputs: OptimizerInputs) -> SearchResult:
    """
    Evaluate every configuration in the bounds and feed both trackers.

    A single pass fills the deviation/accepted grids, the global tracker and
    the per-parallel tracker. No accepted candidate leaves both trackers empty.
    """
    base = build_grid(inputs.unit_cell, inputs.bounds)
    deviation = np.full(base.capacitance_f.shape, np.nan)
    accepted = np.zeros(base.capacitance_f.shape, dtype=bool)

    global_tracker = GlobalBestTracker()
    per_parallel = PerParallelTracker(inputs.bounds.max_parallel)

    n = 0
    for config in enumerate_configs(inputs.bounds):
        cand = evaluate(inputs.unit_cell, inputs.target, config, inputs.distance_metric)
        i, j = config.series - 1, config.parallel - 1
        deviation[i, j] = cand.deviation_f
        accepted[i, j] = cand.accepted
        n += 1

        if global_tracker.consider(cand):
            logger.debug(
                "global best -> %dS x %dP (C=%.4e F, V=%.0f V, distance=%.4e)",
                config.series,
                config.parallel,
                cand.result.equivalent_capacitance_f,
                cand.result.rated_voltage_v,
                cand.distance,
            )
        if per_parallel.consider(cand):
            logger.debug("best for %dP -> %dS (distance=%.4e)", config.parallel, config.series, cand.distance)

    grid = SearchGrid(
        series_counts=base.series_counts,
        parallel_counts=base.parallel_counts,
        rated_voltage_v=base.rated_voltage_v,
        capacitance_f=base.capacitance_f,
        deviation_f=deviation,
        accepted=accepted,
    )
    result = SearchResult(
        inputs=inputs,
        grid=grid,
        global_best=global_tracker.best,
        per_parallel=per_parallel,
        evaluated=n,
    )

    logger.info(
        "Evaluated %d configurations, %d accepted, feasible=%s",
        n,
        int(accepted.sum()),
        result.feasible,
    )
    return result


def optimize_array(inputs: OptimizerInputs) -> OptimizerOutputs:
    """
    MMC sizing:
    - enumerates series/parallel strings within the bounds
    - accepts configurations within tolerance of the target capacitance that
      meet the voltage floor
    - reports the closest accepted array and the smallest-parallel accepted array
    """
    return build_outputs(run_search(inputs))


def build_outputs(res: SearchResult) -> OptimizerOutputs:
    inputs = res.inputs
    grid = res.grid

    winners: List[Winner] = []
    if res.global_best is not None:
        winners.append(Winner.from_candidate("global", res.global_best))
    if res.per_parallel_best is not None:
        winners.append(Winner.from_candidate("per_parallel", res.per_parallel_best))

    per_parallel_best: Dict[int, Optional[Winner]] = {
        p: (None if best is None else Winner.from_candidate("per_parallel", best))
        for p, best in res.per_parallel.items()
    }

    recommended = None
    if res.recommended is not None:
        recommended = Winner.from_candidate(inputs.policy, res.recommended)

    return OptimizerOutputs(
        inputs=inputs,
        series_counts=[int(s) for s in grid.series_counts],
        parallel_counts=[int(p) for p in grid.parallel_counts],
        rated_voltage_v=[float(v) for v in grid.rated_voltage_v],
        capacitance_grid_f=grid.capacitance_f.tolist(),
        accepted_grid=grid.accepted.tolist(),
        winners=winners,
        per_parallel_best=per_parallel_best,
        recommended=recommended,
        feasible=res.feasible,
    )
