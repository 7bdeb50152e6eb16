"""Financial projection engine for Solar Private-Wire Analyzer.

Implements the year-by-year cash-flow simulation for a private-wire solar
asset and the standard metrics derived from it: NPV, discounted and
undiscounted LCOE, IRR (Newton-Raphson) and discounted payback period.
Every function here is pure; identical inputs give identical outputs.
"""

import logging
import math
from typing import List, Sequence

import numpy as np
import numpy_financial as npf

from src.models.project import (
    IRRResult,
    ProjectInputs,
    ProjectionResult,
    ProjectSummary,
    YearRecord,
)

logger = logging.getLogger(__name__)

IRR_INITIAL_GUESS = 0.10
IRR_MAX_ITERATIONS = 1000
IRR_TOLERANCE = 1e-7


def _growth(rate: float, periods: int) -> float:
    """Return (1 + rate) ** periods, saturating to inf on overflow."""
    try:
        return (1 + rate) ** periods
    except OverflowError:
        return math.inf


def _discount_factor(rate: float, periods: int) -> float:
    """Return 1 / (1 + rate) ** periods, saturating to 0.0 or inf."""
    growth = _growth(rate, periods)
    if growth == 0:
        return math.inf
    return 1 / growth


def calculate_npv(cash_flows: Sequence[float], discount_rate: float) -> float:
    r"""Calculate net present value of a cash flow series.

    Formula:
        NPV = \sum_{t=0}^{N} \frac{CF_t}{(1+r)^t}

    Args:
        cash_flows: Cash flows starting at year 0. Positive values are
            inflows, negative are outflows.
        discount_rate: Annual discount rate as decimal (e.g., 0.10 for 10%).

    Returns:
        Net present value in the same currency units as cash_flows.

    Example:
        >>> round(calculate_npv([-1000, 500, 500, 500], 0.10), 2)
        243.43
    """
    pv = 0.0
    for t, cf in enumerate(cash_flows):
        pv += cf * _discount_factor(discount_rate, t)
    return pv


def _has_sign_change(cash_flows: Sequence[float]) -> bool:
    return any(cf > 0 for cf in cash_flows) and any(cf < 0 for cf in cash_flows)


def _newton_irr(cash_flows: Sequence[float], guess: float) -> IRRResult:
    """Newton-Raphson on NPV(r) = 0.

    Returns the last iterate with converged=False when the tolerance is not
    reached, the derivative vanishes or the iterate leaves the domain r > -1.
    """
    rate = guess
    for iteration in range(1, IRR_MAX_ITERATIONS + 1):
        if rate <= -1:
            return IRRResult(rate=rate, converged=False, iterations=iteration - 1)
        npv = 0.0
        d_npv = 0.0
        try:
            for t, cf in enumerate(cash_flows):
                df = (1 + rate) ** t
                npv += cf / df
                d_npv -= t * cf / (df * (1 + rate))
        except (OverflowError, ZeroDivisionError):
            return IRRResult(rate=rate, converged=False, iterations=iteration)

        if d_npv == 0 or not math.isfinite(d_npv) or not math.isfinite(npv):
            return IRRResult(rate=rate, converged=False, iterations=iteration)

        new_rate = rate - npv / d_npv
        if abs(new_rate - rate) < IRR_TOLERANCE:
            return IRRResult(rate=new_rate, converged=True, iterations=iteration)
        rate = new_rate

    return IRRResult(rate=rate, converged=False, iterations=IRR_MAX_ITERATIONS)


def calculate_irr(cash_flows: Sequence[float], guess: float = IRR_INITIAL_GUESS) -> IRRResult:
    r"""Calculate internal rate of return for a cash flow series.

    The IRR is the rate r that makes NPV = 0:
        0 = \sum_{t=0}^{N} \frac{CF_t}{(1+IRR)^t}

    Solved by Newton-Raphson from ``guess`` (up to 1000 iterations, stop when
    |delta r| < 1e-7). If Newton does not converge to a finite rate above
    -100%, the polynomial root from numpy_financial is used instead. A series
    without a sign change, or with a non-finite value, has no IRR.

    Args:
        cash_flows: Cash flows starting at year 0.
        guess: Starting rate for the Newton iteration.

    Returns:
        IRRResult; ``rate`` is NaN and ``converged`` False when no IRR exists.
    """
    if (
        len(cash_flows) < 2
        or not all(math.isfinite(cf) for cf in cash_flows)
        or not _has_sign_change(cash_flows)
    ):
        return IRRResult(rate=math.nan, converged=False, iterations=0, method="none")

    newton = _newton_irr(cash_flows, guess)
    if newton.converged and math.isfinite(newton.rate) and newton.rate > -1:
        return newton

    logger.warning(
        "Newton-Raphson IRR did not converge after %d iterations (last rate %r); "
        "falling back to polynomial root",
        newton.iterations,
        newton.rate,
    )
    try:
        fallback = float(npf.irr(cash_flows))
    except (ValueError, np.linalg.LinAlgError):
        fallback = math.nan

    if np.isfinite(fallback) and fallback > -1:
        return IRRResult(
            rate=fallback, converged=True, iterations=newton.iterations, method="polynomial"
        )

    logger.warning("No real IRR found for cash flow series of length %d", len(cash_flows))
    return IRRResult(rate=math.nan, converged=False, iterations=newton.iterations, method="none")


def _safe_ratio(numerator: float, denominator: float) -> float:
    """Ratio used for levelized costs; no energy gives an infinite cost."""
    if denominator <= 0 or not math.isfinite(numerator):
        return math.inf
    return numerator / denominator


def calculate_lcoe(
    annual_costs: Sequence[float],
    annual_energy_mwh: Sequence[float],
    discount_rate: float,
) -> float:
    r"""Calculate levelized cost of energy.

    Formula:
        LCOE = \frac{\sum_{t=0}^{N} \frac{Cost_t}{(1+r)^t}}
                    {\sum_{t=1}^{N} \frac{Energy_t}{(1+r)^t}}

    Args:
        annual_costs: Annual costs starting at year 0 (CapEx at year 0).
        annual_energy_mwh: Annual generation (MWh) starting at year 0.
        discount_rate: Annual discount rate as decimal.

    Returns:
        LCOE in currency/MWh, or ``math.inf`` when discounted energy is zero.
    """
    pv_costs = sum(
        c * _discount_factor(discount_rate, t) for t, c in enumerate(annual_costs)
    )
    pv_energy = sum(
        e * _discount_factor(discount_rate, t) for t, e in enumerate(annual_energy_mwh)
    )
    return _safe_ratio(pv_costs, pv_energy)


def calculate_payback(cumulative_discounted: Sequence[float], project_life: int) -> float:
    """Calculate discounted payback period from cumulative discounted cash flow.

    Finds the first year i >= 1 where the cumulative value is non-negative
    and interpolates linearly within that year.

    Args:
        cumulative_discounted: Cumulative discounted cash flow, years 0..N.
        project_life: Project life N in years.

    Returns:
        Payback period in years, or project_life + 1 if never achieved.
    """
    for i in range(1, len(cumulative_discounted)):
        curr = cumulative_discounted[i]
        if curr >= 0:
            prev = cumulative_discounted[i - 1]
            step = curr - prev
            fraction = abs(prev) / step if step != 0 else 0.0
            return (i - 1) + fraction
    return float(project_life + 1)


def _build_yearly_records(inputs: ProjectInputs) -> List[YearRecord]:
    """Simulate years 0..N and return one record per year."""
    total_capex = inputs.total_upfront_capital
    annual_opex_year1 = inputs.opex_per_mw * inputs.mw
    annual_gen_year1 = inputs.generation_per_mw * inputs.mw
    ppa_share = inputs.percent_consumption_ppa / 100
    export_share = inputs.percent_consumption_export / 100

    records = [
        YearRecord(
            year=0,
            capex=total_capex,
            opex=0.0,
            generation=0.0,
            revenue=0.0,
            cash_flow=-total_capex,
            cumulative_cash_flow=-total_capex,
            discount_factor=1.0,
            discounted_cost=total_capex,
            discounted_energy=0.0,
            discounted_revenue=0.0,
            discounted_cash_flow=-total_capex,
            cumulative_discounted_cash_flow=-total_capex,
        )
    ]

    cumulative = -total_capex
    cumulative_discounted = -total_capex
    for year in range(1, inputs.project_life + 1):
        opex = annual_opex_year1 * _growth(inputs.opex_escalation, year - 1)
        generation = annual_gen_year1 * (1 - inputs.degradation_rate) ** (year - 1)

        # Generation outside the two channels is curtailed or unsold
        revenue = (
            generation * ppa_share * inputs.power_price
            + generation * export_share * inputs.export_price
        )
        cash_flow = revenue - opex
        cumulative += cash_flow

        discount_factor = _discount_factor(inputs.discount_rate, year)
        discounted_cash_flow = cash_flow * discount_factor
        cumulative_discounted += discounted_cash_flow

        records.append(
            YearRecord(
                year=year,
                capex=0.0,
                opex=opex,
                generation=generation,
                revenue=revenue,
                cash_flow=cash_flow,
                cumulative_cash_flow=cumulative,
                discount_factor=discount_factor,
                discounted_cost=opex * discount_factor,
                discounted_energy=generation * discount_factor,
                discounted_revenue=revenue * discount_factor,
                discounted_cash_flow=discounted_cash_flow,
                cumulative_discounted_cash_flow=cumulative_discounted,
            )
        )
    return records


def compute_projection(inputs: ProjectInputs) -> ProjectionResult:
    """Run the complete financial projection for a private-wire solar project.

    Args:
        inputs: Validated project inputs.

    Returns:
        ProjectionResult with one YearRecord per year (0..project_life) and
        the ProjectSummary aggregated from them.
    """
    records = _build_yearly_records(inputs)

    total_capex = sum(r.capex for r in records)
    total_opex = sum(r.opex for r in records)
    total_generation = sum(r.generation for r in records)

    # Year 0 discounted cost is the undiscounted capex; it is included once here
    total_discounted_cost = sum(r.discounted_cost for r in records)
    total_discounted_energy = sum(r.discounted_energy for r in records)

    irr = calculate_irr([r.cash_flow for r in records])
    payback = calculate_payback(
        [r.cumulative_discounted_cash_flow for r in records], inputs.project_life
    )

    summary = ProjectSummary(
        total_capex=total_capex,
        total_opex=total_opex,
        total_generation=total_generation,
        total_revenue=sum(r.revenue for r in records),
        total_cash_flow=sum(r.cash_flow for r in records),
        total_discounted_cost=total_discounted_cost,
        total_discounted_energy=total_discounted_energy,
        total_discounted_revenue=sum(r.discounted_revenue for r in records),
        total_discounted_cash_flow=sum(r.discounted_cash_flow for r in records),
        lcoe=_safe_ratio(total_discounted_cost, total_discounted_energy),
        undiscounted_lcoe=_safe_ratio(total_capex + total_opex, total_generation),
        irr=irr.rate,
        irr_converged=irr.converged,
        payback_period=payback,
        capex_per_mw=total_capex / inputs.mw,
    )
    logger.debug(
        "Projection complete: %d years, LCOE %.2f/MWh, IRR %s",
        inputs.project_life,
        summary.lcoe,
        f"{irr.rate:.4%}" if irr.converged else "n/a",
    )
    return ProjectionResult(yearly_data=tuple(records), summary=summary)
