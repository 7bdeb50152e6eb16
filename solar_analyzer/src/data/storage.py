"""Scenario save/load functionality using JSON serialization.

Provides single-file save/load of ProjectInputs and a small file-backed
scenario store keyed by owner identity and record id.
"""

import json
import logging
import os
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from src.models.project import InputsPatch, ProjectInputs, ProjectSummary

logger = logging.getLogger(__name__)


def save_inputs(inputs: ProjectInputs, filepath: str) -> None:
    """Save project inputs to a JSON file.

    Args:
        inputs: Inputs to save.
        filepath: Output file path (should end in .json).

    Raises:
        OSError: If file cannot be written.
    """
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(inputs.to_dict(), f, indent=2)


def load_inputs(filepath: str) -> ProjectInputs:
    """Load project inputs from a JSON file.

    Args:
        filepath: Path to the JSON inputs file.

    Returns:
        Reconstructed ProjectInputs.

    Raises:
        FileNotFoundError: If file does not exist.
        json.JSONDecodeError: If file is not valid JSON.
        ValueError: If a field is out of range.
    """
    with open(filepath, "r", encoding="utf-8") as f:
        data = json.load(f)
    return ProjectInputs.from_dict(data)


class ScenarioNotFoundError(KeyError):
    """No scenario with this id exists for the requesting owner."""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class SavedScenario:
    """A persisted scenario with cached headline results.

    Cached results are display strings: LCOE to 2 dp, IRR as a percentage
    to 2 dp, payback to 1 dp and NPV to 0 dp. They are None when the inputs
    changed after the last cached summary; IRR is also None when it did
    not converge.
    """

    id: int
    owner_id: str
    name: str
    inputs: ProjectInputs
    description: str = ""
    lcoe: Optional[str] = None
    irr: Optional[str] = None
    payback_period: Optional[str] = None
    total_npv: Optional[str] = None
    created_at: str = field(default_factory=_now)
    updated_at: str = field(default_factory=_now)

    def cache_summary(self, summary: Optional[ProjectSummary]) -> None:
        if summary is None:
            self.lcoe = self.irr = self.payback_period = self.total_npv = None
            return
        self.lcoe = f"{summary.lcoe:.2f}"
        self.irr = f"{summary.irr * 100:.2f}" if summary.irr_converged else None
        self.payback_period = f"{summary.payback_period:.1f}"
        self.total_npv = f"{summary.total_discounted_cash_flow:.0f}"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "name": self.name,
            "description": self.description,
            "inputs": self.inputs.to_dict(),
            "lcoe": self.lcoe,
            "irr": self.irr,
            "payback_period": self.payback_period,
            "total_npv": self.total_npv,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SavedScenario":
        data = dict(data)
        data["inputs"] = ProjectInputs.from_dict(data["inputs"])
        return cls(**data)


class ScenarioStore:
    """File-backed CRUD store for saved scenarios.

    Every record belongs to one owner; reads and writes by any other owner
    behave as if the record does not exist. Writes are serialised with a
    lock and replace the file atomically.

    Args:
        filepath: JSON file holding all scenarios. Created on first write.
    """

    def __init__(self, filepath: str):
        self.filepath = Path(filepath)
        self._lock = threading.Lock()

    def _read(self) -> dict:
        if not self.filepath.exists():
            return {"next_id": 1, "scenarios": []}
        with open(self.filepath, "r", encoding="utf-8") as f:
            return json.load(f)

    def _write(self, state: dict) -> None:
        self.filepath.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.filepath.with_suffix(self.filepath.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(state, f, indent=2)
        os.replace(tmp_path, self.filepath)

    @staticmethod
    def _find(state: dict, record_id: int, owner_id: str) -> int:
        for i, row in enumerate(state["scenarios"]):
            if row["id"] == record_id and row["owner_id"] == str(owner_id):
                return i
        raise ScenarioNotFoundError(f"Scenario {record_id} not found")

    def create(
        self,
        owner_id: str,
        name: str,
        inputs: ProjectInputs,
        summary: Optional[ProjectSummary] = None,
        description: str = "",
    ) -> SavedScenario:
        """Persist a new scenario and return it with its assigned id."""
        if not name.strip():
            raise ValueError("Scenario name must not be empty.")
        with self._lock:
            state = self._read()
            scenario = SavedScenario(
                id=state["next_id"],
                owner_id=str(owner_id),
                name=name,
                inputs=inputs,
                description=description,
            )
            scenario.cache_summary(summary)
            state["scenarios"].append(scenario.to_dict())
            state["next_id"] += 1
            self._write(state)
        logger.info("Created scenario %d for owner %s", scenario.id, scenario.owner_id)
        return scenario

    def list(self, owner_id: str) -> List[SavedScenario]:
        """Return the owner's scenarios, most recently updated first."""
        with self._lock:
            state = self._read()
        rows = [r for r in state["scenarios"] if r["owner_id"] == str(owner_id)]
        rows.sort(key=lambda r: r["updated_at"], reverse=True)
        return [SavedScenario.from_dict(r) for r in rows]

    def get(self, record_id: int, owner_id: str) -> SavedScenario:
        """Return one scenario.

        Raises:
            ScenarioNotFoundError: If the id does not exist for this owner.
        """
        with self._lock:
            state = self._read()
        return SavedScenario.from_dict(state["scenarios"][self._find(state, record_id, owner_id)])

    def update(
        self,
        record_id: int,
        owner_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        patch: Optional[InputsPatch] = None,
        summary: Optional[ProjectSummary] = None,
    ) -> SavedScenario:
        """Apply a partial update and return the stored result.

        Inputs are merged field by field from ``patch``. If the inputs change
        and no new summary is supplied, cached results are cleared.

        Raises:
            ScenarioNotFoundError: If the id does not exist for this owner.
        """
        with self._lock:
            state = self._read()
            index = self._find(state, record_id, owner_id)
            scenario = SavedScenario.from_dict(state["scenarios"][index])
            if name is not None:
                if not name.strip():
                    raise ValueError("Scenario name must not be empty.")
                scenario.name = name
            if description is not None:
                scenario.description = description
            if patch is not None:
                new_inputs = scenario.inputs.apply_patch(patch)
                if new_inputs != scenario.inputs and summary is None:
                    scenario.cache_summary(None)
                scenario.inputs = new_inputs
            if summary is not None:
                scenario.cache_summary(summary)
            scenario.updated_at = _now()
            state["scenarios"][index] = scenario.to_dict()
            self._write(state)
        return scenario

    def delete(self, record_id: int, owner_id: str) -> None:
        """Remove a scenario.

        Raises:
            ScenarioNotFoundError: If the id does not exist for this owner.
        """
        with self._lock:
            state = self._read()
            index = self._find(state, record_id, owner_id)
            del state["scenarios"][index]
            self._write(state)
        logger.info("Deleted scenario %d for owner %s", record_id, owner_id)
