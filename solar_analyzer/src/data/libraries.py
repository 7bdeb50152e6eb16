"""Assumption library loader for Solar Private-Wire Analyzer.

Loads preset scenario assumptions from JSON files and turns them into
ProjectInputs. A preset only needs the fields it changes; the rest come
from the ProjectInputs defaults.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

from src.models.project import InputsPatch, ProjectInputs

logger = logging.getLogger(__name__)

_DEFAULT_LIBRARY_DIR = Path(__file__).resolve().parent.parent.parent / "resources" / "libraries"


class AssumptionLibrary:
    """Manages loading and applying assumption presets.

    Scans a directory for JSON preset files. Each file has a ``name``,
    optional metadata (source, version, date_published, notes) and an
    ``inputs`` block of ProjectInputs fields.

    Args:
        library_dir: Path to directory containing preset JSON files.
            Defaults to resources/libraries/.
    """

    def __init__(self, library_dir: str = ""):
        self.library_dir = Path(library_dir) if library_dir else _DEFAULT_LIBRARY_DIR
        self._libraries: Dict[str, dict] = {}
        self._load_all()

    def _load_all(self) -> None:
        """Load all JSON files from the library directory."""
        if not self.library_dir.exists():
            logger.warning("Library directory %s does not exist", self.library_dir)
            return
        for path in sorted(self.library_dir.glob("*.json")):
            try:
                with open(path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except json.JSONDecodeError as e:
                logger.warning("Skipping malformed library %s: %s", path.name, e)
                continue
            key = data.get("name", path.stem)
            self._libraries[key] = data

    def get_library_names(self) -> List[str]:
        """Return sorted list of available preset names."""
        return sorted(self._libraries.keys())

    def find(self, query: str) -> Optional[str]:
        """Return the first preset name containing ``query`` (case-insensitive)."""
        for name in self.get_library_names():
            if query.lower() in name.lower():
                return name
        return None

    def get_library_metadata(self, name: str) -> Dict[str, str]:
        """Return metadata for a preset (source, version, date, notes)."""
        lib = self._libraries.get(name, {})
        return {
            "source": lib.get("source", ""),
            "version": lib.get("version", ""),
            "date_published": lib.get("date_published", ""),
            "notes": lib.get("notes", ""),
        }

    def build_inputs(self, name: str, base: Optional[ProjectInputs] = None) -> ProjectInputs:
        """Overlay a preset onto base inputs.

        Args:
            name: Preset name as returned by get_library_names().
            base: Inputs to start from. Defaults to ProjectInputs().

        Returns:
            New ProjectInputs with the preset's fields applied.

        Raises:
            KeyError: If the preset is not found or has unknown fields.
        """
        if name not in self._libraries:
            raise KeyError(f"Library '{name}' not found. Available: {self.get_library_names()}")
        base = base if base is not None else ProjectInputs()
        patch = InputsPatch.from_dict(self._libraries[name].get("inputs", {}))
        return base.apply_patch(patch)
