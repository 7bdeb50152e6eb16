"""Tests for input validation, scenario persistence and assumption presets."""

import json

import pytest

from src.data.libraries import AssumptionLibrary
from src.data.storage import (
    SavedScenario,
    ScenarioNotFoundError,
    ScenarioStore,
    load_inputs,
    save_inputs,
)
from src.data.validators import (
    InputValidationError,
    require_valid_inputs,
    validate_capacity,
    validate_discount_rate,
    validate_inputs,
    validate_project_life,
    validate_revenue_split,
)
from src.models.calculations import compute_projection
from src.models.project import InputsPatch, ProjectInputs


# =============================================================================
# VALIDATORS
# =============================================================================

class TestValidators:
    def test_capacity(self):
        assert validate_capacity(28) == (True, "")
        assert validate_capacity(0)[0] is False
        valid, msg = validate_capacity(800)
        assert valid and msg.startswith("Warning")

    def test_discount_rate(self):
        assert validate_discount_rate(0.10) == (True, "")
        assert validate_discount_rate(-1.0)[0] is False
        assert "Warning" in validate_discount_rate(-0.02)[1]

    def test_project_life(self):
        assert validate_project_life(15) == (True, "")
        assert validate_project_life(0)[0] is False
        assert validate_project_life(12.5)[0] is False

    def test_revenue_split_warns_only(self):
        assert validate_revenue_split(100, 0) == (True, "")
        valid, msg = validate_revenue_split(70, 20)
        assert valid and "10.0% of generation is unmonetized" in msg
        valid, msg = validate_revenue_split(80, 40)
        assert valid and "120.0%" in msg
        assert validate_revenue_split(-1, 50)[0] is False

    def test_reference_inputs_are_clean(self):
        assert validate_inputs(ProjectInputs()) == (True, [])

    def test_zero_prices_warn(self):
        valid, messages = validate_inputs(ProjectInputs(power_price=0, export_price=0))
        assert valid
        assert any("no revenue" in m for m in messages)

    def test_require_valid_inputs_from_dict(self):
        inputs = require_valid_inputs({"mw": 10, "project_life": 20})
        assert inputs.mw == 10
        assert inputs.project_life == 20

    def test_require_valid_inputs_rejects_bad_dict(self):
        with pytest.raises(InputValidationError) as exc_info:
            require_valid_inputs({"mw": -5})
        assert exc_info.value.messages

    def test_validation_error_is_value_error(self):
        with pytest.raises(ValueError):
            require_valid_inputs({"discount_rate": -2})


# =============================================================================
# SAVE / LOAD
# =============================================================================

class TestSaveLoad:
    def test_round_trip(self, tmp_path):
        inputs = ProjectInputs(mw=12.5, opex_escalation=0.03, project_life=20)
        path = tmp_path / "nested" / "inputs.json"
        save_inputs(inputs, str(path))
        assert load_inputs(str(path)) == inputs

    def test_legacy_file_without_revenue_split(self, tmp_path):
        data = ProjectInputs().to_dict()
        for key in ("percent_consumption_ppa", "percent_consumption_export", "export_price"):
            del data[key]
        path = tmp_path / "legacy.json"
        path.write_text(json.dumps(data), encoding="utf-8")
        loaded = load_inputs(str(path))
        assert loaded.percent_consumption_ppa == 100
        assert loaded.percent_consumption_export == 0
        assert loaded.export_price == 50

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_inputs(str(tmp_path / "missing.json"))


# =============================================================================
# SCENARIO STORE
# =============================================================================

@pytest.fixture
def store(tmp_path):
    return ScenarioStore(str(tmp_path / "scenarios.json"))


@pytest.fixture
def reference_summary():
    return compute_projection(ProjectInputs()).summary


class TestScenarioStore:
    def test_create_assigns_ids(self, store):
        first = store.create("alice", "Base", ProjectInputs())
        second = store.create("alice", "High price", ProjectInputs(power_price=130))
        assert (first.id, second.id) == (1, 2)
        assert first.owner_id == "alice"

    def test_get_returns_saved_inputs(self, store):
        created = store.create("alice", "Base", ProjectInputs(mw=40))
        loaded = store.get(created.id, "alice")
        assert loaded.inputs == ProjectInputs(mw=40)
        assert loaded.name == "Base"

    def test_cached_summary_strings(self, store, reference_summary):
        created = store.create("alice", "Base", ProjectInputs(), summary=reference_summary)
        assert created.lcoe == f"{reference_summary.lcoe:.2f}"
        assert created.irr == f"{reference_summary.irr * 100:.2f}"
        assert created.payback_period == "16.0"
        assert created.total_npv == f"{reference_summary.total_discounted_cash_flow:.0f}"

    def test_owner_isolation(self, store):
        created = store.create("alice", "Base", ProjectInputs())
        store.create("bob", "Other", ProjectInputs())
        assert [s.name for s in store.list("alice")] == ["Base"]
        with pytest.raises(ScenarioNotFoundError):
            store.get(created.id, "bob")
        with pytest.raises(ScenarioNotFoundError):
            store.delete(created.id, "bob")
        assert store.get(created.id, "alice").name == "Base"

    def test_numeric_owner_ids_match_strings(self, store):
        created = store.create(42, "Base", ProjectInputs())
        assert store.get(created.id, "42").owner_id == "42"

    def test_list_empty_store(self, store):
        assert store.list("alice") == []

    def test_update_patch_clears_cache(self, store, reference_summary):
        created = store.create("alice", "Base", ProjectInputs(), summary=reference_summary)
        updated = store.update(created.id, "alice", patch=InputsPatch(power_price=150))
        assert updated.inputs.power_price == 150
        assert updated.inputs.mw == 28
        assert updated.lcoe is None
        assert updated.total_npv is None
        assert store.get(created.id, "alice").lcoe is None

    def test_update_with_new_summary(self, store, reference_summary):
        created = store.create("alice", "Base", ProjectInputs())
        new_inputs = ProjectInputs(power_price=150)
        summary = compute_projection(new_inputs).summary
        updated = store.update(created.id, "alice", patch=InputsPatch(power_price=150),
                               summary=summary)
        assert updated.lcoe == f"{summary.lcoe:.2f}"

    def test_update_name_keeps_cache(self, store, reference_summary):
        created = store.create("alice", "Base", ProjectInputs(), summary=reference_summary)
        updated = store.update(created.id, "alice", name="Renamed", description="notes")
        assert updated.name == "Renamed"
        assert updated.description == "notes"
        assert updated.lcoe == created.lcoe

    def test_update_missing_raises(self, store):
        with pytest.raises(ScenarioNotFoundError):
            store.update(99, "alice", name="x")

    def test_delete(self, store):
        created = store.create("alice", "Base", ProjectInputs())
        store.delete(created.id, "alice")
        with pytest.raises(ScenarioNotFoundError):
            store.get(created.id, "alice")

    def test_ids_not_reused_after_delete(self, store):
        first = store.create("alice", "A", ProjectInputs())
        store.delete(first.id, "alice")
        assert store.create("alice", "B", ProjectInputs()).id == 2

    def test_empty_name_rejected(self, store):
        with pytest.raises(ValueError):
            store.create("alice", "   ", ProjectInputs())

    def test_persists_across_instances(self, tmp_path):
        path = str(tmp_path / "scenarios.json")
        ScenarioStore(path).create("alice", "Base", ProjectInputs())
        assert [s.name for s in ScenarioStore(path).list("alice")] == ["Base"]

    def test_not_found_is_key_error(self):
        assert issubclass(ScenarioNotFoundError, KeyError)

    def test_saved_scenario_round_trip(self, reference_summary):
        scenario = SavedScenario(id=3, owner_id="alice", name="Base", inputs=ProjectInputs())
        scenario.cache_summary(reference_summary)
        assert SavedScenario.from_dict(scenario.to_dict()) == scenario


# =============================================================================
# ASSUMPTION LIBRARIES
# =============================================================================

class TestAssumptionLibrary:
    def test_default_presets_load(self):
        names = AssumptionLibrary().get_library_names()
        assert "Reference 28 MW Private Wire" in names
        assert "Split Export 25 Year" in names

    def test_reference_preset_matches_defaults(self):
        lib = AssumptionLibrary()
        assert lib.build_inputs("Reference 28 MW Private Wire") == ProjectInputs()

    def test_split_export_preset(self):
        inputs = AssumptionLibrary().build_inputs("Split Export 25 Year")
        assert inputs.project_life == 25
        assert inputs.percent_consumption_ppa == 70
        assert inputs.percent_consumption_export == 30
        assert inputs.export_price == 55
        assert inputs.mw == 28

    def test_preset_over_custom_base(self):
        inputs = AssumptionLibrary().build_inputs("Split Export 25 Year", ProjectInputs(mw=5))
        assert inputs.mw == 5
        assert inputs.project_life == 25

    def test_find_is_case_insensitive(self):
        lib = AssumptionLibrary()
        assert lib.find("split") == "Split Export 25 Year"
        assert lib.find("no such preset") is None

    def test_metadata(self):
        meta = AssumptionLibrary().get_library_metadata("Split Export 25 Year")
        assert meta["version"] == "1.0"

    def test_unknown_preset_raises(self):
        with pytest.raises(KeyError):
            AssumptionLibrary().build_inputs("Missing")

    def test_malformed_and_unknown_fields(self, tmp_path):
        (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")
        (tmp_path / "bad_field.json").write_text(
            json.dumps({"name": "Bad", "inputs": {"wattage": 3}}), encoding="utf-8"
        )
        lib = AssumptionLibrary(str(tmp_path))
        assert lib.get_library_names() == ["Bad"]
        with pytest.raises(KeyError):
            lib.build_inputs("Bad")

    def test_missing_directory(self, tmp_path):
        assert AssumptionLibrary(str(tmp_path / "none")).get_library_names() == []
