"""Chart generation for Solar Private-Wire Analyzer reports.

Creates publication-quality matplotlib charts for the LCOE sensitivity
heatmap and the project cash flows. Charts are saved as PNG files.
"""

import math

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import matplotlib.ticker as mticker
from matplotlib.colors import LinearSegmentedColormap

from src.models.project import ProjectionResult
from src.models.sensitivity import SensitivityMatrix

# Same green-amber-red ramp as heatmap_color()
_LCOE_CMAP = LinearSegmentedColormap.from_list(
    "lcoe", ["#00ff00", "#ffc800", "#ff0000"]
)


def create_sensitivity_heatmap(matrix: SensitivityMatrix, output_path: str) -> None:
    """Create a heatmap of LCOE by cable voltage (columns) and distance (rows).

    Args:
        matrix: Computed sensitivity matrix.
        output_path: File path to save the PNG chart.
    """
    fig, ax = plt.subplots(
        figsize=(1.2 * len(matrix.voltages) + 2, 0.6 * len(matrix.distances) + 2), dpi=150
    )
    # Cells without energy have infinite LCOE and are left blank
    finite = [v for row in matrix.data for v in row if math.isfinite(v)]
    vmin, vmax = (min(finite), max(finite)) if finite else (0.0, 1.0)
    image = ax.imshow(
        [[v if math.isfinite(v) else math.nan for v in row] for row in matrix.data],
        cmap=_LCOE_CMAP,
        vmin=vmin,
        vmax=vmax,
        aspect="auto",
    )

    ax.set_xticks(range(len(matrix.voltages)))
    ax.set_xticklabels([f"{v:g}kV" for v in matrix.voltages], fontsize=9)
    ax.set_yticks(range(len(matrix.distances)))
    ax.set_yticklabels([f"{d:g}km" for d in matrix.distances], fontsize=9)

    for i, row in enumerate(matrix.data):
        for j, lcoe in enumerate(row):
            label = f"£{lcoe:.0f}" if math.isfinite(lcoe) else "N/A"
            ax.text(j, i, label, ha="center", va="center", fontsize=8, fontweight="bold")

    ax.set_xlabel("Cable Voltage", fontsize=11)
    ax.set_ylabel("Distance", fontsize=11)
    ax.set_title("LCOE Sensitivity (£/MWh)", fontsize=13, fontweight="bold")
    fig.colorbar(image, ax=ax, label="£/MWh")

    fig.tight_layout()
    fig.savefig(output_path, bbox_inches="tight", facecolor="white")
    plt.close(fig)


def create_cashflow_chart(result: ProjectionResult, output_path: str) -> None:
    """Create annual net cash flow bars with cumulative discounted cash flow.

    Args:
        result: Projection to chart.
        output_path: File path to save the PNG chart.
    """
    years = result.column("year")
    cash_flows = [cf / 1e6 for cf in result.column("cash_flow")]
    cumulative = [c / 1e6 for c in result.column("cumulative_discounted_cash_flow")]

    fig, ax = plt.subplots(figsize=(8, 4.5), dpi=150)
    colors = ["#c62828" if cf < 0 else "#2e7d32" for cf in cash_flows]
    ax.bar(years, cash_flows, 0.6, color=colors, alpha=0.8, label="Net Cash Flow")
    ax.plot(years, cumulative, color="#1565c0", marker="o", linewidth=2,
            label="Cumulative Discounted")

    ax.set_xlabel("Year", fontsize=11)
    ax.set_ylabel("£ Millions", fontsize=11)
    ax.set_title("Project Cash Flows", fontsize=13, fontweight="bold")
    ax.legend(fontsize=10)
    ax.axhline(y=0, color="black", linewidth=0.5)
    ax.yaxis.set_major_formatter(mticker.FuncFormatter(lambda x, _: f"£{x:,.1f}M"))
    ax.grid(axis="y", alpha=0.3)

    fig.tight_layout()
    fig.savefig(output_path, bbox_inches="tight", facecolor="white")
    plt.close(fig)
