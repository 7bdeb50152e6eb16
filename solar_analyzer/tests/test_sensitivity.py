"""Tests for the grid connection cost estimator and LCOE sensitivity matrix."""

import math

import pytest

from src.models.calculations import compute_projection
from src.models.grid_costs import (
    CABLE_COSTS,
    DEFAULT_VOLTAGE,
    CableVoltage,
    CostBounds,
    GridConnectionParams,
    STEPDOWN_TRANSFORMER_COSTS,
    STEPUP_TRANSFORMER_COSTS,
    estimate_grid_connection_cost,
)
from src.models.project import InputsPatch, ProjectInputs
from src.models.sensitivity import (
    DEFAULT_DISTANCES_KM,
    DEFAULT_VOLTAGES_KV,
    SensitivityMatrix,
    compute_sensitivity_matrix,
    default_grid_cost_fn,
    heatmap_color,
)


# ---- Cable Voltage ----

class TestCableVoltage:
    @pytest.mark.parametrize("value,expected", [
        (33, CableVoltage.KV_33),
        (33.0, CableVoltage.KV_33),
        ("11", CableVoltage.KV_11),
        ("132kV", CableVoltage.KV_132),
        (" 6 kV ", CableVoltage.KV_6),
        (0.4, CableVoltage.LV_0_4),
        (CableVoltage.KV_66, CableVoltage.KV_66),
    ])
    def test_from_kv(self, value, expected):
        assert CableVoltage.from_kv(value) is expected

    @pytest.mark.parametrize("value", [99, "abc", "", 3.3])
    def test_unknown_voltage_uses_default(self, value):
        assert CableVoltage.from_kv(value) is DEFAULT_VOLTAGE

    def test_every_tier_has_cable_rates(self):
        assert set(CABLE_COSTS) == set(CableVoltage)

    def test_label(self):
        assert CableVoltage.LV_0_4.label == "0.4 kV"
        assert CableVoltage.KV_33.label == "33 kV"


# ---- Grid Connection Costs ----

class TestGridConnectionCost:
    def test_default_route_breakdown(self):
        """3 km at 33 kV, 50% road, 1 up, 1 down, 2 crossings."""
        breakdown = estimate_grid_connection_cost(GridConnectionParams())
        assert breakdown.cable == CostBounds(1_200_000, 1_200_000)
        assert breakdown.stepup_transformers == CostBounds(250_000, 400_000)
        assert breakdown.stepdown_transformers == CostBounds(250_000, 400_000)
        assert breakdown.joint_bays == CostBounds(180_000, 300_000)
        assert breakdown.road_crossings == CostBounds(300_000, 600_000)
        assert breakdown.terminations == CostBounds(120_000, 240_000)
        assert breakdown.land_rights == CostBounds(85_600, 191_200)
        assert breakdown.total == CostBounds(2_385_600, 3_331_200)

    def test_construction_excludes_land_rights(self):
        breakdown = estimate_grid_connection_cost(GridConnectionParams())
        assert breakdown.construction.min == 2_385_600 - 85_600
        assert breakdown.construction.max == 3_331_200 - 191_200

    def test_all_agricultural_route(self):
        params = GridConnectionParams(distance_km=2, road_percentage=0,
                                      cable_voltage=CableVoltage.KV_11)
        breakdown = estimate_grid_connection_cost(params)
        assert breakdown.cable.min == 2 * 150_000

    @pytest.mark.parametrize("distance,joints", [(0, 0), (0.5, 1), (2.5, 5), (2.6, 6), (10, 20)])
    def test_joint_count(self, distance, joints):
        assert GridConnectionParams(distance_km=distance).joint_count == joints

    def test_low_voltage_stepup_falls_back(self):
        """No 0.4/0.4 kV step-up exists; the 0.4/33 kV rate applies."""
        params = GridConnectionParams(cable_voltage=CableVoltage.LV_0_4)
        breakdown = estimate_grid_connection_cost(params)
        assert breakdown.stepup_transformers == STEPUP_TRANSFORMER_COSTS[CableVoltage.KV_33]

    def test_stepdown_falls_back_to_33_11(self):
        params = GridConnectionParams(cable_voltage=CableVoltage.KV_11)
        breakdown = estimate_grid_connection_cost(params)
        assert breakdown.stepdown_transformers == \
            STEPDOWN_TRANSFORMER_COSTS[(CableVoltage.KV_33, 11.0)]

    def test_stepdown_by_end_user_voltage(self):
        params = GridConnectionParams(cable_voltage=CableVoltage.KV_11, end_user_kv=0.4,
                                      stepdown_transformer_count=3)
        breakdown = estimate_grid_connection_cost(params)
        assert breakdown.stepdown_transformers == CostBounds(360_000, 660_000)

    def test_zero_quantities(self):
        params = GridConnectionParams(distance_km=0, stepup_transformer_count=0,
                                      stepdown_transformer_count=0, road_crossings=0)
        breakdown = estimate_grid_connection_cost(params)
        assert breakdown.total == breakdown.land_rights

    def test_cost_grows_with_voltage(self):
        totals = [
            estimate_grid_connection_cost(GridConnectionParams(cable_voltage=v)).total.min
            for v in (CableVoltage.KV_6, CableVoltage.KV_33, CableVoltage.KV_132)
        ]
        assert totals == sorted(totals)

    @pytest.mark.parametrize("kwargs", [
        {"distance_km": -1},
        {"road_percentage": 120},
        {"road_percentage": -5},
        {"road_crossings": -1},
        {"stepup_transformer_count": -1},
    ])
    def test_invalid_params_raise(self, kwargs):
        with pytest.raises(ValueError):
            GridConnectionParams(**kwargs)

    def test_cost_bounds_helpers(self):
        bounds = CostBounds(100, 300)
        assert bounds.midpoint == 200
        assert bounds.scale(2) == CostBounds(200, 600)
        assert bounds + CostBounds(1, 2) == CostBounds(101, 302)

    def test_breakdown_to_dict(self):
        data = estimate_grid_connection_cost(GridConnectionParams()).to_dict()
        assert data["total"] == {"min": 2_385_600, "max": 3_331_200}


# ---- Sensitivity Matrix ----

class TestSensitivityMatrix:
    def test_shape(self):
        voltages = [11, 33, 66]
        distances = [1, 2, 5, 10]
        matrix = compute_sensitivity_matrix(ProjectInputs(), voltages, distances)
        assert len(matrix.data) == len(distances)
        assert all(len(row) == len(voltages) for row in matrix.data)
        assert matrix.voltages == tuple(voltages)
        assert matrix.distances == tuple(distances)

    def test_bounds_cover_every_cell(self):
        matrix = compute_sensitivity_matrix(
            ProjectInputs(), DEFAULT_VOLTAGES_KV, DEFAULT_DISTANCES_KM
        )
        cells = [v for row in matrix.data for v in row]
        assert all(matrix.min_lcoe <= v <= matrix.max_lcoe for v in cells)
        assert matrix.min_lcoe == min(cells)
        assert matrix.max_lcoe == max(cells)

    def test_cell_uses_midpoint_as_wire_cost(self):
        base = ProjectInputs()
        matrix = compute_sensitivity_matrix(
            base, [33], [4], lambda d, v: CostBounds(1_000_000, 3_000_000)
        )
        expected = compute_projection(
            base.apply_patch(InputsPatch(private_wire_cost=2_000_000,
                                         grid_connection_cost=2_000_000))
        ).summary.lcoe
        assert matrix.data[0][0] == expected

    def test_grid_cost_fn_receives_distance_and_voltage(self):
        calls = []

        def grid_cost(distance, voltage):
            calls.append((distance, voltage))
            return CostBounds(distance * 1e6, voltage * 1e4)

        compute_sensitivity_matrix(ProjectInputs(), [11, 33], [1, 2, 3], grid_cost)
        assert sorted(calls) == sorted((d, v) for d in (1, 2, 3) for v in (11, 33))

    def test_indexing_is_distance_then_voltage(self):
        """A cost that depends only on distance varies down rows only."""
        matrix = compute_sensitivity_matrix(
            ProjectInputs(), [6, 33, 132], [1, 5],
            lambda d, v: CostBounds(d * 1e6, d * 1e6),
        )
        for row in matrix.data:
            assert len(set(row)) == 1
        assert matrix.data[0][0] < matrix.data[1][0]
        assert matrix.cell(5, 33) == matrix.data[1][1]

    def test_constant_grid_cost_gives_flat_matrix(self):
        matrix = compute_sensitivity_matrix(
            ProjectInputs(), [11, 33], [1, 2], lambda d, v: CostBounds(5e5, 5e5)
        )
        assert matrix.min_lcoe == matrix.max_lcoe

    def test_lcoe_rises_with_distance(self):
        matrix = compute_sensitivity_matrix(ProjectInputs(), [33], [1, 3, 5, 10])
        column = [row[0] for row in matrix.data]
        assert column == sorted(column)
        assert column[0] < column[-1]

    def test_parallel_matches_sequential(self):
        base = ProjectInputs(opex_escalation=0.02)
        sequential = compute_sensitivity_matrix(base, [6, 11, 33], [1, 2, 3, 4])
        parallel = compute_sensitivity_matrix(base, [6, 11, 33], [1, 2, 3, 4], max_workers=4)
        assert parallel == sequential

    def test_base_inputs_unchanged(self):
        base = ProjectInputs()
        compute_sensitivity_matrix(base, [33], [5])
        assert base.private_wire_cost == 6400000

    @pytest.mark.parametrize("voltages,distances", [([], [1]), ([33], []), ([], [])])
    def test_empty_axes_raise(self, voltages, distances):
        with pytest.raises(ValueError):
            compute_sensitivity_matrix(ProjectInputs(), voltages, distances)

    def test_default_grid_cost_fn_matches_estimator(self):
        grid_cost = default_grid_cost_fn()
        assert grid_cost(3, 33) == CostBounds(2_385_600, 3_331_200)

    def test_to_dict(self):
        matrix = compute_sensitivity_matrix(ProjectInputs(), [33], [1, 2])
        data = matrix.to_dict()
        assert data["voltages"] == [33]
        assert len(data["data"]) == 2
        assert isinstance(matrix, SensitivityMatrix)


# ---- Heatmap Colours ----

class TestHeatmapColor:
    def test_endpoints(self):
        assert heatmap_color(50, 50, 150) == (0, 255, 0)
        assert heatmap_color(100, 50, 150) == (255, 200, 0)
        assert heatmap_color(150, 50, 150) == (255, 0, 0)

    def test_clamped(self):
        assert heatmap_color(10, 50, 150) == (0, 255, 0)
        assert heatmap_color(500, 50, 150) == (255, 0, 0)

    def test_flat_range_is_green(self):
        assert heatmap_color(80, 80, 80) == (0, 255, 0)

    def test_infinite_is_red(self):
        assert heatmap_color(math.inf, 50, 150) == (255, 0, 0)
