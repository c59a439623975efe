"""Historical risk snapshots for trend reporting.

Assessments are appended to ``risk_snapshots.jsonl`` keyed by
``(company_id, computed_at)``.  Snapshots are a record of what was computed,
never an input to scoring.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from modrisk.risk.models import CompanyRiskAssessment
from modrisk.utils.json_store import lock_for


class RiskSnapshotStore:
    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        base = Path(base_dir) if base_dir else Path.home() / ".modrisk" / "risk"
        base.mkdir(parents=True, exist_ok=True)
        self._path = base / "risk_snapshots.jsonl"

    def append(self, assessment: CompanyRiskAssessment) -> None:
        with lock_for(self._path):
            with self._path.open("a", encoding="utf-8") as fh:
                fh.write(json.dumps(assessment.to_dict()) + "\n")

    def history(self, company_id: Optional[str] = None) -> list[CompanyRiskAssessment]:
        """Snapshots grouped by company, oldest first within each company."""
        if not self._path.exists():
            return []
        items: list[CompanyRiskAssessment] = []
        for line in self._path.read_text(encoding="utf-8").splitlines():
            if not line.strip():
                continue
            d = json.loads(line)
            if company_id and d.get("company_id") != company_id:
                continue
            items.append(CompanyRiskAssessment(**d))
        items.sort(key=lambda a: (a.company_id, a.computed_at))
        return items
