"""Persist and load CLI column-mapping profiles."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict


@dataclass
class MappingProfile:
    salaries_mapping: Dict[str, str] = field(default_factory=dict)
    projection_mapping: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def load(cls, path: Path) -> "MappingProfile":
        data = json.loads(path.read_text(encoding="utf-8"))
        return cls(
            salaries_mapping=dict(data.get("salaries_mapping", {})),
            projection_mapping=dict(data.get("projection_mapping", {})),
        )

    def save(self, path: Path) -> None:
        payload = {
            "salaries_mapping": self.salaries_mapping,
            "projection_mapping": self.projection_mapping,
        }
        path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")

    def overlay(self, salaries: Dict[str, str], projections: Dict[str, str]) -> "MappingProfile":
        """Return a profile where explicit command-line entries win."""

        return MappingProfile(
            salaries_mapping=self.salaries_mapping | salaries,
            projection_mapping=self.projection_mapping | projections,
        )
