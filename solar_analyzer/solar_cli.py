#!/usr/bin/env python3
"""
Solar Private-Wire Analyzer CLI - Solar Project Financial Viability Tool

A command-line interface to the projection engine:
- Load preset assumption libraries or saved scenario JSON
- Override any project input from the command line
- Calculate LCOE (discounted and undiscounted), IRR, NPV and payback
- Print the year-by-year cash-flow table
- LCOE sensitivity matrix across cable voltage and route distance
- Grid connection cost breakdown for a private-wire route
- Render heatmap and cash-flow charts as PNG

Usage:
    python solar_cli.py                              # Reference 28 MW scenario
    python solar_cli.py --preset split --years-table # Preset plus yearly table
    python solar_cli.py --load scenario.json -s      # Load and run sensitivity
    python solar_cli.py --help                       # Show all options
"""

import argparse
import logging
import math
import sys
from pathlib import Path
from typing import List, Optional

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from src.data.libraries import AssumptionLibrary
from src.data.storage import load_inputs, save_inputs
from src.data.validators import InputValidationError, require_valid_inputs, validate_inputs
from src.models.calculations import compute_projection
from src.models.grid_costs import CableVoltage, GridConnectionParams, estimate_grid_connection_cost
from src.models.project import InputsPatch, ProjectInputs, ProjectionResult
from src.models.sensitivity import (
    DEFAULT_DISTANCES_KM,
    DEFAULT_VOLTAGES_KV,
    SensitivityMatrix,
    compute_sensitivity_matrix,
    default_grid_cost_fn,
)
from src.utils.formatters import (
    format_currency,
    format_currency_exact,
    format_number,
    format_payback,
    format_per_mwh,
    format_percent,
)
from src.utils.logging_setup import configure_logging

logger = logging.getLogger("solar_cli")

# (argparse dest, ProjectInputs field, type, help)
INPUT_OPTIONS = [
    ("mw", "mw", float, "Installed capacity (MW)"),
    ("capex_per_mw", "capex_per_mw", float, "EPC cost per MW"),
    ("private_wire_cost", "private_wire_cost", float, "Private wire cost"),
    ("grid_connection_cost", "grid_connection_cost", float, "Grid connection cost (reporting)"),
    ("development_premium_per_mw", "development_premium_per_mw", float,
     "Development premium per MW"),
    ("opex_per_mw", "opex_per_mw", float, "Year-1 opex per MW"),
    ("opex_escalation", "opex_escalation", float, "Opex escalation as decimal"),
    ("generation_per_mw", "generation_per_mw", float, "Year-1 generation (MWh/MW)"),
    ("degradation_rate", "degradation_rate", float, "Annual degradation as decimal"),
    ("project_life", "project_life", int, "Project life (years)"),
    ("discount_rate", "discount_rate", float, "Discount rate as decimal"),
    ("power_price", "power_price", float, "PPA price (£/MWh)"),
    ("percent_ppa", "percent_consumption_ppa", float, "Generation sold under PPA (%%)"),
    ("percent_export", "percent_consumption_export", float, "Generation exported (%%)"),
    ("export_price", "export_price", float, "Export price (£/MWh)"),
]


# ============================================================================
# FORMATTING UTILITIES
# ============================================================================

def print_header(text: str, char: str = "=") -> None:
    """Print a formatted section header."""
    width = 70
    print(f"\n{char * width}")
    print(f" {text}")
    print(f"{char * width}")


def print_subheader(text: str) -> None:
    """Print a formatted subsection header."""
    print(f"\n--- {text} ---")


def print_table(headers: List[str], rows: List[List[str]],
                col_widths: Optional[List[int]] = None) -> None:
    """Print a formatted ASCII table."""
    if col_widths is None:
        col_widths = [max(len(str(row[i])) for row in [headers] + rows) + 2
                      for i in range(len(headers))]

    header_line = "|".join(h.center(w) for h, w in zip(headers, col_widths))
    separator = "+".join("-" * w for w in col_widths)
    print(f"+{separator}+")
    print(f"|{header_line}|")
    print(f"+{separator}+")

    for row in rows:
        row_line = "|".join(str(cell).rjust(w - 1) + " " for cell, w in zip(row, col_widths))
        print(f"|{row_line}|")
    print(f"+{separator}+")


# ============================================================================
# DISPLAY FUNCTIONS
# ============================================================================

def print_inputs_summary(inputs: ProjectInputs) -> None:
    """Display project configuration summary."""

    print_header("PROJECT CONFIGURATION", "=")

    print_subheader("Sizing & Capital")
    print(f"  Capacity:          {inputs.mw:,.1f} MW")
    print(f"  EPC Cost:          {format_currency_exact(inputs.capex_per_mw)}/MW")
    print(f"  Private Wire:      {format_currency_exact(inputs.private_wire_cost)}")
    print(f"  Dev Premium:       {format_currency_exact(inputs.development_premium_per_mw)}/MW")
    print(f"  Grid Connection:   {format_currency_exact(inputs.grid_connection_cost)}")
    print(f"  Upfront Capital:   {format_currency_exact(inputs.total_upfront_capital)}")

    print_subheader("Operations")
    print(f"  Opex (Year 1):     {format_currency_exact(inputs.opex_per_mw)}/MW")
    print(f"  Opex Escalation:   {format_percent(inputs.opex_escalation)}")
    print(f"  Generation:        {format_number(inputs.generation_per_mw, 2)} MWh/MW")
    print(f"  Degradation:       {format_percent(inputs.degradation_rate, 2)}")
    print(f"  Project Life:      {inputs.project_life} years")
    print(f"  Discount Rate:     {format_percent(inputs.discount_rate)}")

    print_subheader("Revenue")
    print(f"  PPA Price:         {format_per_mwh(inputs.power_price)}")
    print(f"  PPA Share:         {inputs.percent_consumption_ppa:.1f}%")
    print(f"  Export Price:      {format_per_mwh(inputs.export_price)}")
    print(f"  Export Share:      {inputs.percent_consumption_export:.1f}%")


def print_results(inputs: ProjectInputs, result: ProjectionResult) -> None:
    """Display financial projection results."""

    summary = result.summary
    print_header("FINANCIAL RESULTS", "=")

    print_subheader("KEY FINANCIAL METRICS")
    irr_text = format_percent(summary.irr, 2) if summary.irr_converged else "N/A"
    metrics = [
        ("LCOE (discounted)", format_per_mwh(summary.lcoe), ""),
        ("LCOE (undiscounted)", format_per_mwh(summary.undiscounted_lcoe), ""),
        ("Net Present Value (NPV)", format_currency(summary.npv, 2),
         "[+]" if summary.npv > 0 else "[-]"),
        ("Internal Rate of Return", irr_text,
         "[+]" if summary.irr_converged and summary.irr > inputs.discount_rate else ""),
        ("Discounted Payback", format_payback(summary.payback_period, inputs.project_life), ""),
        ("Capital Cost per MW", format_currency_exact(summary.capex_per_mw), ""),
    ]
    print()
    for name, value, indicator in metrics:
        print(f"  {name:<30} {value:>22} {indicator}")

    print_subheader("LIFETIME TOTALS")
    totals = [
        ("Capital Expenditure", format_currency(summary.total_capex, 2)),
        ("Operating Expenditure", format_currency(summary.total_opex, 2)),
        ("Generation", f"{format_number(summary.total_generation, 0)} MWh"),
        ("Revenue", format_currency(summary.total_revenue, 2)),
        ("Net Cash Flow", format_currency(summary.total_cash_flow, 2)),
        ("Discounted Cost", format_currency(summary.total_discounted_cost, 2)),
        ("Discounted Energy", f"{format_number(summary.total_discounted_energy, 0)} MWh"),
        ("Discounted Revenue", format_currency(summary.total_discounted_revenue, 2)),
    ]
    print()
    for name, value in totals:
        print(f"  {name:<30} {value:>22}")


def print_yearly_table(result: ProjectionResult) -> None:
    """Print the year-by-year cash-flow table."""

    print_header("ANNUAL CASH FLOWS", "=")
    headers = ["Year", "Capex", "Opex", "MWh", "Revenue", "Net CF", "Cumulative",
               "DF", "Cum. Disc. CF"]
    rows = [
        [
            str(r.year),
            format_currency(r.capex, 1),
            format_currency(r.opex, 1),
            format_number(r.generation, 0),
            format_currency(r.revenue, 1),
            format_currency(r.cash_flow, 1),
            format_currency(r.cumulative_cash_flow, 1),
            f"{r.discount_factor:.4f}",
            format_currency(r.cumulative_discounted_cash_flow, 1),
        ]
        for r in result.yearly_data
    ]
    print()
    print_table(headers, rows)


def print_sensitivity_matrix(matrix: SensitivityMatrix) -> None:
    """Print the LCOE sensitivity matrix, distances down, voltages across."""

    print_header("LCOE SENSITIVITY (£/MWh)", "=")
    print(f"\n{'Distance':>10}", end="")
    for voltage in matrix.voltages:
        print(f" {voltage:>8g}kV", end="")
    print()
    print("-" * (10 + 11 * len(matrix.voltages)))

    for distance, row in zip(matrix.distances, matrix.data):
        print(f"{distance:>8g}km", end="")
        for lcoe in row:
            text = f"{lcoe:.2f}" if math.isfinite(lcoe) else "N/A"
            print(f" {text:>10}", end="")
        print()

    print(f"\n  Lowest LCOE:  {format_per_mwh(matrix.min_lcoe)}")
    print(f"  Highest LCOE: {format_per_mwh(matrix.max_lcoe)}")
    print(f"  Difference:   {format_per_mwh(matrix.max_lcoe - matrix.min_lcoe)}")


def print_grid_costs(params: GridConnectionParams) -> None:
    """Print a grid connection cost breakdown."""

    breakdown = estimate_grid_connection_cost(params)
    print_header("GRID CONNECTION COST ESTIMATE", "=")
    print(f"\n  Route: {params.distance_km:g} km at {params.cable_voltage.label}, "
          f"{params.road_percentage:g}% in road, {params.road_crossings} crossings, "
          f"{params.joint_count} joint bays")

    components = [
        ("Cable & Trenching", breakdown.cable),
        ("Step-up Transformers", breakdown.stepup_transformers),
        ("Step-down Transformers", breakdown.stepdown_transformers),
        ("Joint Bays", breakdown.joint_bays),
        ("Road Crossings", breakdown.road_crossings),
        ("Terminations", breakdown.terminations),
        ("Land Rights & Planning", breakdown.land_rights),
        ("TOTAL", breakdown.total),
    ]
    rows = [
        [name, format_currency_exact(b.min), format_currency_exact(b.max),
         format_currency_exact(b.midpoint)]
        for name, b in components
    ]
    print()
    print_table(["Component", "Min", "Max", "Average"], rows)


def print_methodology() -> None:
    """Print methodology documentation."""

    print_header("METHODOLOGY", "=")

    print("""
KEY FORMULAS:

1. Upfront Capital (Year 0)
   Capex = MW x EPC/MW + Private Wire + MW x Development Premium/MW

2. Annual Flows (Years 1..N)
   Opex_t = MW x Opex/MW x (1 + escalation)^(t-1)
   Generation_t = MW x MWh/MW x (1 - degradation)^(t-1)
   Revenue_t = Gen_t x PPA% x PPA Price + Gen_t x Export% x Export Price

3. Levelized Cost of Energy (LCOE)
   LCOE = PV(Capex + Opex) / PV(Generation)

4. Internal Rate of Return (IRR)
   Rate r where sum CF_t / (1+r)^t = 0, solved by Newton-Raphson

5. Discounted Payback
   First year cumulative discounted cash flow >= 0, linearly interpolated
""")


# ============================================================================
# MAIN CLI
# ============================================================================

def _parse_list(text: str) -> List[float]:
    return [float(x) for x in text.split(",") if x.strip()]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Solar Private-Wire Analyzer CLI - Solar Project Financial Viability",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python solar_cli.py                              # Reference scenario
  python solar_cli.py --preset split               # Use a preset library
  python solar_cli.py --mw 40 --power-price 95     # Override inputs
  python solar_cli.py --years-table                # Show the yearly table
  python solar_cli.py -s --voltages 11,33 --distances 1,5,10
  python solar_cli.py --grid-cost --distance 4 --voltage 33
  python solar_cli.py --load scenario.json --chart charts/
        """
    )

    parser.add_argument("--preset", "-p", type=str,
                        help="Assumption preset (name or part of it)")
    parser.add_argument("--load", type=str, help="Load inputs from JSON file")
    parser.add_argument("--save", type=str, help="Save inputs to JSON file")

    inputs_group = parser.add_argument_group("project inputs")
    for dest, _, arg_type, help_text in INPUT_OPTIONS:
        inputs_group.add_argument(f"--{dest.replace('_', '-')}", dest=dest, type=arg_type,
                                  help=help_text)

    parser.add_argument("--years-table", "-y", action="store_true",
                        help="Show the year-by-year cash-flow table")
    parser.add_argument("--sensitivity", "-s", action="store_true",
                        help="Show the LCOE voltage/distance sensitivity matrix")
    parser.add_argument("--voltages", type=_parse_list,
                        default=list(DEFAULT_VOLTAGES_KV),
                        help="Comma-separated cable voltages in kV")
    parser.add_argument("--distances", type=_parse_list,
                        default=list(DEFAULT_DISTANCES_KM),
                        help="Comma-separated route distances in km")
    parser.add_argument("--workers", type=int, default=None,
                        help="Thread pool size for the sensitivity matrix")

    grid_group = parser.add_argument_group("grid connection route")
    grid_group.add_argument("--grid-cost", action="store_true",
                            help="Show the grid connection cost breakdown")
    grid_group.add_argument("--distance", type=float, default=3.0,
                            help="Route distance in km (default: 3)")
    grid_group.add_argument("--voltage", type=str, default="33",
                            help="Cable voltage in kV (default: 33)")
    grid_group.add_argument("--road-pct", type=float, default=50.0,
                            help="Share of route in road trench (default: 50)")
    grid_group.add_argument("--crossings", type=int, default=2,
                            help="Major road crossings (default: 2)")
    grid_group.add_argument("--stepup", type=int, default=1,
                            help="Step-up transformers (default: 1)")
    grid_group.add_argument("--stepdown", type=int, default=1,
                            help="Step-down transformers (default: 1)")

    parser.add_argument("--chart", type=str,
                        help="Directory to write heatmap and cash-flow PNG charts")
    parser.add_argument("--methodology", "-m", action="store_true",
                        help="Show calculation methodology")
    parser.add_argument("--quiet", "-q", action="store_true",
                        help="Suppress detailed output")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Enable debug logging")
    return parser


def build_inputs(args: argparse.Namespace) -> ProjectInputs:
    """Resolve inputs from a loaded file or preset, then command-line overrides."""
    if args.load:
        inputs = load_inputs(args.load)
    elif args.preset:
        library = AssumptionLibrary()
        name = library.find(args.preset)
        if name is None:
            raise KeyError(f"No preset matches '{args.preset}'. "
                           f"Available: {library.get_library_names()}")
        inputs = library.build_inputs(name)
    else:
        inputs = ProjectInputs()

    overrides = {field_name: getattr(args, dest)
                 for dest, field_name, _, _ in INPUT_OPTIONS}
    return inputs.apply_patch(InputsPatch(**overrides))


def build_grid_params(args: argparse.Namespace) -> GridConnectionParams:
    """Build the grid connection route from command-line options."""
    return GridConnectionParams(
        distance_km=args.distance,
        road_percentage=args.road_pct,
        cable_voltage=CableVoltage.from_kv(args.voltage),
        stepup_transformer_count=args.stepup,
        stepdown_transformer_count=args.stepdown,
        road_crossings=args.crossings,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""

    args = build_parser().parse_args(argv)
    configure_logging("DEBUG" if args.verbose else "WARNING")

    if args.methodology:
        print_methodology()
        return 0

    try:
        inputs = require_valid_inputs(build_inputs(args))
        if (args.sensitivity or args.chart) and not (args.voltages and args.distances):
            raise ValueError("--voltages and --distances must each list at least one value")
        grid_params = build_grid_params(args) if args.grid_cost else None
    except InputValidationError as e:
        print("Invalid inputs:", file=sys.stderr)
        for msg in e.messages:
            print(f"  - {msg}", file=sys.stderr)
        return 2
    except (KeyError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    _, warnings = validate_inputs(inputs)
    for msg in warnings:
        logger.warning(msg)

    result = compute_projection(inputs)

    if not args.quiet:
        print_inputs_summary(inputs)
        print_results(inputs, result)

    if args.years_table:
        print_yearly_table(result)

    matrix = None
    if args.sensitivity or args.chart:
        matrix = compute_sensitivity_matrix(
            inputs, args.voltages, args.distances, default_grid_cost_fn(),
            max_workers=args.workers,
        )
    if args.sensitivity:
        print_sensitivity_matrix(matrix)

    if grid_params is not None:
        print_grid_costs(grid_params)

    if args.save:
        save_inputs(inputs, args.save)
        print(f"\nInputs saved to {args.save}")

    if args.chart:
        from src.reports.charts import create_cashflow_chart, create_sensitivity_heatmap

        out_dir = Path(args.chart)
        out_dir.mkdir(parents=True, exist_ok=True)
        create_sensitivity_heatmap(matrix, str(out_dir / "lcoe_sensitivity.png"))
        create_cashflow_chart(result, str(out_dir / "cash_flows.png"))
        print(f"\nCharts written to {out_dir}")

    if not args.quiet:
        summary = result.summary
        irr_text = format_percent(summary.irr, 2) if summary.irr_converged else "N/A"
        print_header("ANALYSIS COMPLETE", "=")
        print(f"\n  LCOE: {format_per_mwh(summary.lcoe)}  |  NPV: {format_currency(summary.npv, 1)}"
              f"  |  IRR: {irr_text}  |  Payback: "
              f"{format_payback(summary.payback_period, inputs.project_life)}")
        print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
