"""Grid connection cost estimator for private-wire schemes.

Multiplies fixed per-unit benchmark rates against physical quantities
(cable route length, road share, transformers, road crossings) to give a
min/max cost range per component. Rates are UK industry benchmarks based on
SSEN charging statements.

Each rate table is an explicit mapping from CableVoltage to a CostBounds
record. Lookups for a tier a table does not cover fall back to the table's
default tier (33 kV, or 33/11 kV for step-down transformers).
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple, Union

logger = logging.getLogger(__name__)

METRES_PER_JOINT = 500.0


class CableVoltage(Enum):
    """Cable voltage tiers in kV."""

    LV_0_4 = 0.4
    KV_6 = 6.0
    KV_11 = 11.0
    KV_33 = 33.0
    KV_66 = 66.0
    KV_132 = 132.0

    @property
    def kv(self) -> float:
        return self.value

    @property
    def label(self) -> str:
        return f"{self.value:g} kV"

    @classmethod
    def from_kv(cls, value: Union[float, str, "CableVoltage"]) -> "CableVoltage":
        """Resolve a kV number or string (e.g. 33, "33", "33kV") to a tier.

        Unknown tiers resolve to DEFAULT_VOLTAGE.
        """
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        if text.endswith("kv"):
            text = text[:-2].strip()
        try:
            kv = float(text)
        except ValueError:
            kv = math.nan
        for tier in cls:
            if math.isclose(tier.value, kv):
                return tier
        logger.warning("Unknown cable voltage %r, using %s", value, DEFAULT_VOLTAGE.label)
        return DEFAULT_VOLTAGE


DEFAULT_VOLTAGE = CableVoltage.KV_33


@dataclass(frozen=True)
class CostBounds:
    """A cost range in currency units."""

    min: float = 0.0
    max: float = 0.0

    @property
    def midpoint(self) -> float:
        return (self.min + self.max) / 2

    def scale(self, factor: float) -> "CostBounds":
        return CostBounds(self.min * factor, self.max * factor)

    def __add__(self, other: "CostBounds") -> "CostBounds":
        return CostBounds(self.min + other.min, self.max + other.max)

    def to_dict(self) -> dict:
        return {"min": self.min, "max": self.max}


@dataclass(frozen=True)
class TrenchRates:
    """Cable supply and install cost per km by trench type."""

    agricultural: float
    road: float


# Underground cable, per km
CABLE_COSTS: Dict[CableVoltage, TrenchRates] = {
    CableVoltage.LV_0_4: TrenchRates(agricultural=80000, road=250000),
    CableVoltage.KV_6: TrenchRates(agricultural=120000, road=350000),
    CableVoltage.KV_11: TrenchRates(agricultural=150000, road=400000),
    CableVoltage.KV_33: TrenchRates(agricultural=200000, road=600000),
    CableVoltage.KV_66: TrenchRates(agricultural=300000, road=900000),
    CableVoltage.KV_132: TrenchRates(agricultural=450000, road=1200000),
}

# Step-up from 0.4 kV inverter output to cable voltage
STEPUP_TRANSFORMER_COSTS: Dict[CableVoltage, CostBounds] = {
    CableVoltage.KV_6: CostBounds(150000, 250000),
    CableVoltage.KV_11: CostBounds(180000, 300000),
    CableVoltage.KV_33: CostBounds(250000, 400000),
    CableVoltage.KV_66: CostBounds(350000, 550000),
    CableVoltage.KV_132: CostBounds(500000, 800000),
}

# Step-down from cable voltage to end-user voltage, keyed (cable tier, end-user kV)
STEPDOWN_TRANSFORMER_COSTS: Dict[Tuple[CableVoltage, float], CostBounds] = {
    (CableVoltage.KV_6, 0.4): CostBounds(100000, 180000),
    (CableVoltage.KV_11, 0.4): CostBounds(120000, 220000),
    (CableVoltage.KV_33, 0.4): CostBounds(200000, 350000),
    (CableVoltage.KV_33, 6.6): CostBounds(180000, 320000),
    (CableVoltage.KV_33, 11.0): CostBounds(250000, 400000),
    (CableVoltage.KV_66, 11.0): CostBounds(350000, 550000),
    (CableVoltage.KV_66, 33.0): CostBounds(300000, 500000),
    (CableVoltage.KV_132, 33.0): CostBounds(450000, 750000),
    (CableVoltage.KV_132, 66.0): CostBounds(400000, 650000),
}
DEFAULT_STEPDOWN = (CableVoltage.KV_33, 11.0)

JOINT_BAY_COSTS: Dict[CableVoltage, CostBounds] = {
    CableVoltage.LV_0_4: CostBounds(15000, 25000),
    CableVoltage.KV_6: CostBounds(20000, 35000),
    CableVoltage.KV_11: CostBounds(25000, 40000),
    CableVoltage.KV_33: CostBounds(30000, 50000),
    CableVoltage.KV_66: CostBounds(40000, 65000),
    CableVoltage.KV_132: CostBounds(50000, 80000),
}

# Directional drill under a major road
ROAD_CROSSING_COSTS: Dict[CableVoltage, CostBounds] = {
    CableVoltage.LV_0_4: CostBounds(80000, 150000),
    CableVoltage.KV_6: CostBounds(100000, 180000),
    CableVoltage.KV_11: CostBounds(120000, 220000),
    CableVoltage.KV_33: CostBounds(150000, 300000),
    CableVoltage.KV_66: CostBounds(200000, 400000),
    CableVoltage.KV_132: CostBounds(300000, 600000),
}

TERMINATION_COSTS: Dict[CableVoltage, CostBounds] = {
    CableVoltage.LV_0_4: CostBounds(20000, 40000),
    CableVoltage.KV_6: CostBounds(30000, 60000),
    CableVoltage.KV_11: CostBounds(40000, 80000),
    CableVoltage.KV_33: CostBounds(60000, 120000),
    CableVoltage.KV_66: CostBounds(80000, 160000),
    CableVoltage.KV_132: CostBounds(120000, 240000),
}

# Not voltage dependent
LAND_RIGHTS_COSTS: Dict[str, CostBounds] = {
    "compensation": CostBounds(20000, 60000),
    "legal": CostBounds(50000, 90000),
    "planning": CostBounds(600, 1200),
    "surveys": CostBounds(15000, 40000),
}


def _lookup(table: Dict[CableVoltage, CostBounds], voltage: CableVoltage) -> CostBounds:
    return table.get(voltage, table[DEFAULT_VOLTAGE])


@dataclass(frozen=True)
class GridConnectionParams:
    """Physical parameters of a private-wire route.

    Attributes:
        distance_km: Cable route length in km.
        road_percentage: Share of the route in road trench (0-100).
        cable_voltage: Cable voltage tier.
        stepup_transformer_count: Transformers at the solar site (usually 1).
        stepdown_transformer_count: End-user connection points.
        road_crossings: Number of major road crossings.
        end_user_kv: End-user voltage for the step-down transformers.
    """

    distance_km: float = 3.0
    road_percentage: float = 50.0
    cable_voltage: CableVoltage = DEFAULT_VOLTAGE
    stepup_transformer_count: int = 1
    stepdown_transformer_count: int = 1
    road_crossings: int = 2
    end_user_kv: float = 11.0

    def __post_init__(self):
        if self.distance_km < 0:
            raise ValueError(f"distance_km must be >= 0, got {self.distance_km}")
        if not 0 <= self.road_percentage <= 100:
            raise ValueError(f"road_percentage must be 0-100, got {self.road_percentage}")
        if self.stepup_transformer_count < 0 or self.stepdown_transformer_count < 0:
            raise ValueError("transformer counts must be >= 0")
        if self.road_crossings < 0:
            raise ValueError(f"road_crossings must be >= 0, got {self.road_crossings}")

    @property
    def joint_count(self) -> int:
        """Joint bays needed, one per 500 m of cable."""
        return math.ceil(self.distance_km * 1000 / METRES_PER_JOINT)


@dataclass(frozen=True)
class GridCostBreakdown:
    """Cost range per component and in total."""

    cable: CostBounds
    stepup_transformers: CostBounds
    stepdown_transformers: CostBounds
    joint_bays: CostBounds
    road_crossings: CostBounds
    terminations: CostBounds
    land_rights: CostBounds

    @property
    def construction(self) -> CostBounds:
        return (
            self.cable
            + self.stepup_transformers
            + self.stepdown_transformers
            + self.joint_bays
            + self.road_crossings
            + self.terminations
        )

    @property
    def total(self) -> CostBounds:
        return self.construction + self.land_rights

    def to_dict(self) -> dict:
        return {
            "cable": self.cable.to_dict(),
            "stepup_transformers": self.stepup_transformers.to_dict(),
            "stepdown_transformers": self.stepdown_transformers.to_dict(),
            "joint_bays": self.joint_bays.to_dict(),
            "road_crossings": self.road_crossings.to_dict(),
            "terminations": self.terminations.to_dict(),
            "land_rights": self.land_rights.to_dict(),
            "total": self.total.to_dict(),
        }


def estimate_grid_connection_cost(params: GridConnectionParams) -> GridCostBreakdown:
    """Estimate the cost range of building a private-wire grid connection.

    Args:
        params: Route and equipment parameters.

    Returns:
        GridCostBreakdown with min/max per component.
    """
    voltage = params.cable_voltage

    rates = CABLE_COSTS.get(voltage, CABLE_COSTS[DEFAULT_VOLTAGE])
    road_km = params.distance_km * params.road_percentage / 100
    agricultural_km = params.distance_km * (100 - params.road_percentage) / 100
    cable_cost = agricultural_km * rates.agricultural + road_km * rates.road

    stepdown_rate = STEPDOWN_TRANSFORMER_COSTS.get(
        (voltage, params.end_user_kv), STEPDOWN_TRANSFORMER_COSTS[DEFAULT_STEPDOWN]
    )
    terminations = params.stepup_transformer_count + params.stepdown_transformer_count

    land_rights = CostBounds()
    for bounds in LAND_RIGHTS_COSTS.values():
        land_rights = land_rights + bounds

    return GridCostBreakdown(
        cable=CostBounds(cable_cost, cable_cost),
        stepup_transformers=_lookup(STEPUP_TRANSFORMER_COSTS, voltage).scale(
            params.stepup_transformer_count
        ),
        stepdown_transformers=stepdown_rate.scale(params.stepdown_transformer_count),
        joint_bays=_lookup(JOINT_BAY_COSTS, voltage).scale(params.joint_count),
        road_crossings=_lookup(ROAD_CROSSING_COSTS, voltage).scale(params.road_crossings),
        terminations=_lookup(TERMINATION_COSTS, voltage).scale(terminations),
        land_rights=land_rights,
    )
