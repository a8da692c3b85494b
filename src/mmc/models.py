from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, PositiveFloat, confloat, conint

DistanceMetric = Literal["absolute", "weighted"]
TrackerPolicy = Literal["global", "per_parallel"]


class UnitCell(BaseModel):
    model_config = ConfigDict(frozen=True)

    capacitance_f: PositiveFloat = Field(..., description="Capacitance of one component capacitor (F).")
    voltage_rating_v: PositiveFloat = Field(..., description="Voltage rating of one component capacitor (V).")


class Target(BaseModel):
    model_config = ConfigDict(frozen=True)

    capacitance_f: PositiveFloat = Field(..., description="Desired array capacitance (F).")
    voltage_floor_v: PositiveFloat = Field(..., description="Minimum acceptable array voltage rating (V).")
    tolerance_f: confloat(ge=0) = Field(
        0.0, description="Maximum absolute deviation from the target capacitance (F)."
    )


class SearchBounds(BaseModel):
    model_config = ConfigDict(frozen=True)

    # 0 is allowed and yields an empty search
    max_series: conint(ge=0) = Field(30, description="Largest series count to try.")
    max_parallel: conint(ge=0) = Field(5, description="Largest parallel count to try.")


class OptimizerInputs(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field("MMCArray", description="Array name used in report headers.")

    unit_cell: UnitCell
    target: Target
    bounds: SearchBounds = Field(default_factory=SearchBounds)

    distance_metric: DistanceMetric = Field(
        "absolute",
        description="'absolute' ranks by |C_eq - C_target|; 'weighted' multiplies by series^2 * parallel^2.",
    )
    policy: TrackerPolicy = Field(
        "global",
        description="Which tracker's winner is reported as the recommended array.",
    )


@dataclass(frozen=True)
class ArrayConfig:
    series: int
    parallel: int

    def __post_init__(self):
        if self.series < 1:
            raise ValueError("series must be >= 1")
        if self.parallel < 1:
            raise ValueError("parallel must be >= 1")

    @property
    def count(self) -> int:
        """Total number of component capacitors."""
        return self.series * self.parallel


@dataclass(frozen=True)
class ArrayResult:
    equivalent_capacitance_f: float
    rated_voltage_v: float


@dataclass(frozen=True)
class MatchCandidate:
    config: ArrayConfig
    result: ArrayResult
    deviation_f: float  # |C_eq - C_target|, always unweighted
    distance: float     # ranking score, depends on the metric
    accepted: bool


class Winner(BaseModel):
    policy: TrackerPolicy
    series: int
    parallel: int
    equivalent_capacitance_f: float
    rated_voltage_v: float
    deviation_f: float
    distance: float

    @classmethod
    def from_candidate(cls, policy: TrackerPolicy, candidate: MatchCandidate) -> "Winner":
        return cls(
            policy=policy,
            series=candidate.config.series,
            parallel=candidate.config.parallel,
            equivalent_capacitance_f=float(candidate.result.equivalent_capacitance_f),
            rated_voltage_v=float(candidate.result.rated_voltage_v),
            deviation_f=float(candidate.deviation_f),
            distance=float(candidate.distance),
        )


class OptimizerOutputs(BaseModel):
    inputs: OptimizerInputs

    # Grid (rows = series 1..max_series, columns = parallel 1..max_parallel)
    series_counts: List[int]
    parallel_counts: List[int]
    rated_voltage_v: List[float]
    capacitance_grid_f: List[List[float]]
    accepted_grid: List[List[bool]]

    # Winners, tagged by the policy that produced them
    winners: List[Winner] = Field(default_factory=list)
    per_parallel_best: Dict[int, Optional[Winner]] = Field(default_factory=dict)
    recommended: Optional[Winner] = None
    feasible: bool
