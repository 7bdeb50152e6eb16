"""LCOE sensitivity across cable voltage and route distance.

Each matrix cell re-runs the projection engine with a grid connection cost
derived for that (distance, voltage) pair. Cells are independent, so they
can be evaluated on a thread pool without changing the result.
"""

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from src.models.calculations import compute_projection
from src.models.grid_costs import (
    CableVoltage,
    CostBounds,
    GridConnectionParams,
    estimate_grid_connection_cost,
)
from src.models.project import InputsPatch, ProjectInputs

logger = logging.getLogger(__name__)

GridCostFn = Callable[[float, float], CostBounds]

DEFAULT_VOLTAGES_KV = [6.0, 11.0, 33.0, 66.0, 132.0]
DEFAULT_DISTANCES_KM = [1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0, 8.0, 9.0, 10.0]


@dataclass(frozen=True)
class SensitivityMatrix:
    """LCOE outcomes indexed [distance_index][voltage_index].

    Attributes:
        voltages: Cable voltages in kV, column order.
        distances: Route distances in km, row order.
        data: LCOE (currency/MWh) per cell.
        min_lcoe: Smallest LCOE in the matrix.
        max_lcoe: Largest LCOE in the matrix.
    """

    voltages: Tuple[float, ...]
    distances: Tuple[float, ...]
    data: Tuple[Tuple[float, ...], ...]
    min_lcoe: float
    max_lcoe: float

    def cell(self, distance: float, voltage: float) -> float:
        """Return the LCOE for an exact (distance, voltage) pair."""
        return self.data[self.distances.index(distance)][self.voltages.index(voltage)]

    def to_dict(self) -> dict:
        return {
            "voltages": list(self.voltages),
            "distances": list(self.distances),
            "data": [list(row) for row in self.data],
            "min_lcoe": self.min_lcoe,
            "max_lcoe": self.max_lcoe,
        }


def default_grid_cost_fn(
    road_percentage: float = 50.0,
    stepup_transformer_count: int = 1,
    stepdown_transformer_count: int = 1,
    road_crossings: int = 2,
) -> GridCostFn:
    """Build a grid cost function over (distance, voltage) from the estimator.

    Route parameters other than distance and voltage are held fixed.
    """

    def grid_cost(distance_km: float, voltage_kv: float) -> CostBounds:
        params = GridConnectionParams(
            distance_km=distance_km,
            road_percentage=road_percentage,
            cable_voltage=CableVoltage.from_kv(voltage_kv),
            stepup_transformer_count=stepup_transformer_count,
            stepdown_transformer_count=stepdown_transformer_count,
            road_crossings=road_crossings,
        )
        return estimate_grid_connection_cost(params).total

    return grid_cost


def _cell_lcoe(
    base_inputs: ProjectInputs,
    distance: float,
    voltage: float,
    grid_cost_fn: GridCostFn,
) -> float:
    grid_cost = grid_cost_fn(distance, voltage).midpoint
    # The wire build cost is what the route estimate replaces
    scenario = base_inputs.apply_patch(
        InputsPatch(private_wire_cost=grid_cost, grid_connection_cost=grid_cost)
    )
    return compute_projection(scenario).summary.lcoe


def compute_sensitivity_matrix(
    base_inputs: ProjectInputs,
    voltages: Sequence[float],
    distances: Sequence[float],
    grid_cost_fn: Optional[GridCostFn] = None,
    max_workers: Optional[int] = None,
) -> SensitivityMatrix:
    """Compute discounted LCOE for every (distance, voltage) combination.

    Args:
        base_inputs: Inputs shared by every scenario.
        voltages: Cable voltages in kV (matrix columns).
        distances: Route distances in km (matrix rows).
        grid_cost_fn: Maps (distance_km, voltage_kv) to a CostBounds. The
            midpoint is used as the connection cost. Defaults to
            default_grid_cost_fn().
        max_workers: Evaluate cells on a thread pool of this size. None or 1
            evaluates sequentially.

    Returns:
        SensitivityMatrix with data[distance_index][voltage_index].

    Raises:
        ValueError: If either list is empty.
    """
    if not voltages or not distances:
        raise ValueError("voltages and distances must both be non-empty")
    if grid_cost_fn is None:
        grid_cost_fn = default_grid_cost_fn()

    pairs = [(d, v) for d in distances for v in voltages]
    if max_workers and max_workers > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            flat: List[float] = list(
                pool.map(lambda p: _cell_lcoe(base_inputs, p[0], p[1], grid_cost_fn), pairs)
            )
    else:
        flat = [_cell_lcoe(base_inputs, d, v, grid_cost_fn) for d, v in pairs]

    width = len(voltages)
    data = tuple(tuple(flat[i * width:(i + 1) * width]) for i in range(len(distances)))

    matrix = SensitivityMatrix(
        voltages=tuple(voltages),
        distances=tuple(distances),
        data=data,
        min_lcoe=min(flat),
        max_lcoe=max(flat),
    )
    logger.debug(
        "Sensitivity matrix %dx%d: LCOE %.2f-%.2f",
        len(distances),
        len(voltages),
        matrix.min_lcoe,
        matrix.max_lcoe,
    )
    return matrix


def heatmap_color(value: float, min_value: float, max_value: float) -> Tuple[int, int, int]:
    """Map a value to an RGB colour running green, amber, red.

    Equal bounds map to green. Non-finite values map to red.
    """
    if not math.isfinite(value):
        return (255, 0, 0)
    span = max_value - min_value
    ratio = 0.0 if span <= 0 else (value - min_value) / span
    ratio = min(max(ratio, 0.0), 1.0)
    if ratio < 0.5:
        # green (0,255,0) to amber (255,200,0)
        t = ratio / 0.5
        return (round(255 * t), round(255 - 55 * t), 0)
    t = (ratio - 0.5) / 0.5
    return (255, round(200 * (1 - t)), 0)
