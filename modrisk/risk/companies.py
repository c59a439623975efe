"""File-based JSON storage for company records.

The marketplace owns company data; this directory holds the subset the risk
scorer reads.  Storage path: ``<base_dir>/companies.json``.
"""

from __future__ import annotations

from dataclasses import asdict, fields
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from modrisk.errors import NotFoundError, ValidationError
from modrisk.risk.models import Company, VerificationStatus
from modrisk.utils.json_store import JsonCollection

_FIELDS = {f.name for f in fields(Company)}


def _company_to_dict(c: Company) -> dict:
    d = asdict(c)
    d["verification_status"] = c.verification_status.value
    return d


def _company_from_dict(d: dict) -> Company:
    return Company(**{k: v for k, v in d.items() if k in _FIELDS})


class CompanyDirectory:
    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        base = Path(base_dir) if base_dir else Path.home() / ".modrisk" / "risk"
        self._companies = JsonCollection(base / "companies.json")

    def upsert(self, company_id: str, **attrs: Any) -> Company:
        """Create or update a company.  ``legal_name`` is required on create."""
        unknown = set(attrs) - (_FIELDS - {"id"})
        if unknown:
            raise ValidationError(f"Unknown company field(s): {', '.join(sorted(unknown))}")
        if "verification_status" in attrs:
            try:
                attrs["verification_status"] = VerificationStatus(attrs["verification_status"]).value
            except ValueError:
                raise ValidationError(
                    f"Unknown verification status '{attrs['verification_status']}'"
                ) from None
        if "disputed_payments_count" in attrs:
            try:
                count = int(attrs["disputed_payments_count"])
            except (TypeError, ValueError):
                raise ValidationError(
                    f"disputed_payments_count must be a whole number, got '{attrs['disputed_payments_count']}'"
                ) from None
            if count < 0:
                raise ValidationError("disputed_payments_count cannot be negative")
            attrs["disputed_payments_count"] = count

        with self._companies.transaction() as records:
            for record in records:
                if record["id"] == company_id:
                    record.update(attrs)
                    return _company_from_dict(record)
            if not attrs.get("legal_name"):
                raise ValidationError("legal_name is required for a new company")
            attrs.setdefault("created_at", datetime.now(timezone.utc).isoformat())
            company = Company(id=company_id, **attrs)
            records.append(_company_to_dict(company))
        return company

    def get(self, company_id: str) -> Company:
        for d in self._companies.load():
            if d["id"] == company_id:
                return _company_from_dict(d)
        raise NotFoundError("Company", company_id)

    def list_companies(self) -> list[Company]:
        return [_company_from_dict(d) for d in self._companies.load()]

    def delete(self, company_id: str) -> None:
        with self._companies.transaction() as records:
            remaining = [d for d in records if d["id"] != company_id]
            if len(remaining) == len(records):
                raise NotFoundError("Company", company_id)
            records[:] = remaining
