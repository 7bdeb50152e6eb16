"""Data models for Solar Private-Wire Analyzer.

Defines dataclasses for projection inputs, partial input updates, per-year
cash-flow records and summary financial results. Input and result models
support JSON serialization via to_dict()/from_dict() methods.
"""

import math
import numbers
from dataclasses import dataclass, field, fields, replace
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class ProjectInputs:
    """Techno-economic inputs for a private-wire solar project.

    Defaults reproduce the 28 MW reference scenario.

    Attributes:
        mw: Installed capacity in megawatts.
        capex_per_mw: Base EPC cost per MW (currency/MW).
        private_wire_cost: One-time private wire construction cost.
        grid_connection_cost: Estimated grid connection cost, carried for
            reporting and persistence. Not part of upfront capital.
        development_premium_per_mw: Developer premium per MW.
        opex_per_mw: Year-1 operating cost per MW.
        opex_escalation: Annual opex escalation as decimal (0.02 = 2%).
        generation_per_mw: Year-1 generation per MW (MWh/MW).
        degradation_rate: Annual generation degradation as decimal.
        project_life: Operating life in years.
        discount_rate: Discount rate as decimal (0.10 = 10%).
        power_price: PPA price for consumed generation (currency/MWh).
        percent_consumption_ppa: Share of generation sold at the PPA price (%).
        percent_consumption_export: Share of generation exported (%).
        export_price: Price for exported generation (currency/MWh).
    """

    mw: float = 28.0
    capex_per_mw: float = 437590.0
    private_wire_cost: float = 6400000.0
    grid_connection_cost: float = 0.0
    development_premium_per_mw: float = 50000.0
    opex_per_mw: float = 15100.0
    opex_escalation: float = 0.0
    generation_per_mw: float = 944.82
    degradation_rate: float = 0.004
    project_life: int = 15
    discount_rate: float = 0.10
    power_price: float = 110.0
    percent_consumption_ppa: float = 100.0
    percent_consumption_export: float = 0.0
    export_price: float = 50.0

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, numbers.Real):
                raise ValueError(f"{f.name} must be a number, got {value!r}")
            if not math.isfinite(value):
                raise ValueError(f"{f.name} must be finite, got {value}")
        if self.mw <= 0:
            raise ValueError(f"mw must be > 0, got {self.mw}")
        if not isinstance(self.project_life, numbers.Integral) or self.project_life < 1:
            raise ValueError(f"project_life must be an integer >= 1, got {self.project_life}")
        object.__setattr__(self, "project_life", int(self.project_life))
        if not 0 <= self.degradation_rate < 1:
            raise ValueError(f"degradation_rate must be 0 <= x < 1, got {self.degradation_rate}")
        if self.opex_escalation <= -1:
            raise ValueError(f"opex_escalation must be > -1, got {self.opex_escalation}")
        if self.discount_rate <= -1:
            raise ValueError(f"discount_rate must be > -1, got {self.discount_rate}")
        for name in (
            "capex_per_mw",
            "private_wire_cost",
            "grid_connection_cost",
            "development_premium_per_mw",
            "opex_per_mw",
            "generation_per_mw",
            "power_price",
            "percent_consumption_ppa",
            "percent_consumption_export",
            "export_price",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")

    @property
    def total_upfront_capital(self) -> float:
        """Year-0 capital: EPC + private wire + development premium."""
        return (
            self.mw * self.capex_per_mw
            + self.private_wire_cost
            + self.mw * self.development_premium_per_mw
        )

    def apply_patch(self, patch: "InputsPatch") -> "ProjectInputs":
        """Return a new ProjectInputs with the patch's set fields applied.

        Fields left as None in the patch keep their current value. The
        receiver is never modified.
        """
        changes = patch.changes()
        if not changes:
            return self
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: dict) -> "ProjectInputs":
        # Scenarios saved before the revenue split existed lack these keys
        valid_fields = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in data.items() if k in valid_fields}
        filtered.setdefault("percent_consumption_ppa", 100.0)
        filtered.setdefault("percent_consumption_export", 0.0)
        filtered.setdefault("export_price", 50.0)
        if "project_life" in filtered and isinstance(filtered["project_life"], float):
            if filtered["project_life"].is_integer():
                filtered["project_life"] = int(filtered["project_life"])
        return cls(**filtered)


@dataclass(frozen=True)
class InputsPatch:
    """Partial update for ProjectInputs. None means "leave unchanged"."""

    mw: Optional[float] = None
    capex_per_mw: Optional[float] = None
    private_wire_cost: Optional[float] = None
    grid_connection_cost: Optional[float] = None
    development_premium_per_mw: Optional[float] = None
    opex_per_mw: Optional[float] = None
    opex_escalation: Optional[float] = None
    generation_per_mw: Optional[float] = None
    degradation_rate: Optional[float] = None
    project_life: Optional[int] = None
    discount_rate: Optional[float] = None
    power_price: Optional[float] = None
    percent_consumption_ppa: Optional[float] = None
    percent_consumption_export: Optional[float] = None
    export_price: Optional[float] = None

    def changes(self) -> dict:
        """Return only the fields that are set."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }

    @classmethod
    def from_dict(cls, data: dict) -> "InputsPatch":
        valid_fields = {f.name for f in fields(cls)}
        unknown = set(data) - valid_fields
        if unknown:
            raise KeyError(f"Unknown input fields: {sorted(unknown)}")
        return cls(**data)


@dataclass(frozen=True)
class YearRecord:
    """Cash-flow record for a single project year.

    Year 0 is the commissioning year and carries only capital expenditure.
    Cumulative fields are running sums over all prior years.
    """

    year: int
    capex: float
    opex: float
    generation: float
    revenue: float
    cash_flow: float
    cumulative_cash_flow: float
    discount_factor: float
    discounted_cost: float
    discounted_energy: float
    discounted_revenue: float
    discounted_cash_flow: float
    cumulative_discounted_cash_flow: float

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: dict) -> "YearRecord":
        return cls(**data)


@dataclass(frozen=True)
class IRRResult:
    """Outcome of an internal rate of return solve.

    Attributes:
        rate: IRR as a decimal, or NaN when no rate was found.
        converged: True when the rate satisfies the solver tolerance.
        iterations: Newton-Raphson iterations performed.
        method: "newton", "polynomial" (numpy_financial fallback) or "none".
    """

    rate: float
    converged: bool
    iterations: int = 0
    method: str = "newton"


@dataclass(frozen=True)
class ProjectSummary:
    """Aggregate financial metrics over the whole project life.

    Attributes:
        total_capex: Upfront capital at year 0.
        total_opex: Sum of operating costs over years 1..N.
        total_generation: Sum of generation (MWh).
        total_revenue: Sum of revenue.
        total_cash_flow: Sum of nominal net cash flow.
        total_discounted_cost: Discounted costs, year-0 capex counted once.
        total_discounted_energy: Discounted generation (MWh).
        total_discounted_revenue: Discounted revenue.
        total_discounted_cash_flow: Net present value of the project.
        lcoe: Discounted levelized cost (currency/MWh), inf if no energy.
        undiscounted_lcoe: Nominal cost over nominal generation.
        irr: Internal rate of return as decimal, NaN if undefined.
        irr_converged: Whether the IRR solve converged.
        payback_period: Discounted payback in years; project_life + 1 when
            the project never pays back.
        capex_per_mw: Total upfront capital per MW.
    """

    total_capex: float = 0.0
    total_opex: float = 0.0
    total_generation: float = 0.0
    total_revenue: float = 0.0
    total_cash_flow: float = 0.0
    total_discounted_cost: float = 0.0
    total_discounted_energy: float = 0.0
    total_discounted_revenue: float = 0.0
    total_discounted_cash_flow: float = 0.0
    lcoe: float = 0.0
    undiscounted_lcoe: float = 0.0
    irr: float = math.nan
    irr_converged: bool = False
    payback_period: float = 0.0
    capex_per_mw: float = 0.0

    @property
    def npv(self) -> float:
        return self.total_discounted_cash_flow

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: dict) -> "ProjectSummary":
        valid_fields = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in valid_fields})


@dataclass(frozen=True)
class ProjectionResult:
    """Year-indexed cash-flow table plus summary metrics."""

    yearly_data: Tuple[YearRecord, ...] = field(default_factory=tuple)
    summary: ProjectSummary = field(default_factory=ProjectSummary)

    def column(self, name: str) -> List[float]:
        """Return one YearRecord field across all years, e.g. "cash_flow"."""
        return [getattr(record, name) for record in self.yearly_data]

    def to_dict(self) -> dict:
        return {
            "yearly_data": [record.to_dict() for record in self.yearly_data],
            "summary": self.summary.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ProjectionResult":
        return cls(
            yearly_data=tuple(YearRecord.from_dict(r) for r in data.get("yearly_data", [])),
            summary=ProjectSummary.from_dict(data.get("summary", {})),
        )
