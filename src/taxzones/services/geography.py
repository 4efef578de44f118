"""GeographyService — the country/state reference catalog.

Reads used by callers to build addresses, plus seeding from a YAML
document so a catalog can be populated without hand-written SQL::

    countries:
      - iso: US
        name: United States
        states:
          - code: NY
            name: New York
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from taxzones.domain.errors import CatalogIntegrityError
from taxzones.domain.geography import Address
from taxzones.services.base import BaseService
from taxzones.services.result import ErrorCode, ServiceResult
from taxzones.services.telemetry import traced

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Seed document schema
# ---------------------------------------------------------------------------


class _SeedState(BaseModel):
    code: str
    name: str = ""


class _SeedCountry(BaseModel):
    iso: str
    name: str = ""
    states: list[_SeedState] = Field(default_factory=list)


class _SeedDocument(BaseModel):
    countries: list[_SeedCountry] = Field(default_factory=list)


class GeographyService(BaseService):
    """Handles country and state lookups and catalog seeding."""

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @traced
    def list_countries(self) -> ServiceResult:
        with self._catalog.snapshot() as snap:
            found = snap.geography.list_countries()
        return ServiceResult(
            ok=True, op="list_countries", data={"countries": found, "count": len(found)}
        )

    @traced
    def list_states(self, country_iso: str) -> ServiceResult:
        op = "list_states"
        with self._catalog.snapshot() as snap:
            country = snap.geography.get_country_by_iso(country_iso)
            if country is None:
                return self._not_found(op, f"Unknown country {country_iso!r}", iso=country_iso)
            found = snap.geography.list_states(country)
        return ServiceResult(ok=True, op=op, data={"states": found, "count": len(found)})

    @traced
    def address_for(self, country_iso: str, state_code: str | None = None) -> ServiceResult:
        """Build an :class:`Address` from catalog codes."""
        op = "address_for"
        with self._catalog.snapshot() as snap:
            country = snap.geography.get_country_by_iso(country_iso)
            if country is None:
                return self._not_found(op, f"Unknown country {country_iso!r}", iso=country_iso)
            state = None
            if state_code is not None:
                try:
                    state = snap.geography.get_state_by_code(country, state_code)
                except CatalogIntegrityError as exc:
                    return self._integrity_failure(op, exc)
                if state is None:
                    return self._not_found(
                        op,
                        f"Unknown state {state_code!r} in {country.iso}",
                        iso=country.iso,
                        code=state_code,
                    )
        address = Address(country=country, state=state)
        return ServiceResult(ok=True, op=op, data={"address": address})

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @traced
    def add_country(self, iso: str, name: str = "") -> ServiceResult:
        op = "add_country"
        with self._catalog.transaction() as txn:
            if txn.geography.get_country_by_iso(iso) is not None:
                return ServiceResult.failure(
                    op, ErrorCode.DUPLICATE_COUNTRY, f"Country {iso!r} already exists", iso=iso
                )
            country = txn.geography.insert_country(iso, name)
        return ServiceResult(ok=True, op=op, data={"country": country})

    @traced
    def add_state(self, country_iso: str, code: str, name: str = "") -> ServiceResult:
        op = "add_state"
        with self._catalog.transaction() as txn:
            country = txn.geography.get_country_by_iso(country_iso)
            if country is None:
                return self._not_found(op, f"Unknown country {country_iso!r}", iso=country_iso)
            if txn.geography.get_state_by_code(country, code) is not None:
                return ServiceResult.failure(
                    op,
                    ErrorCode.DUPLICATE_STATE,
                    f"State {code!r} already exists in {country.iso}",
                    iso=country.iso,
                    code=code,
                )
            state = txn.geography.insert_state(country, code, name)
        return ServiceResult(ok=True, op=op, data={"state": state})

    @traced
    def seed(self, path: Path) -> ServiceResult:
        """Load countries and states from a YAML file.

        Existing countries (by ISO) and states (by code within their
        country) are left untouched, so seeding is repeatable.
        """
        op = "seed"
        try:
            raw = YAML(typ="safe", pure=True).load(path.read_text(encoding="utf-8"))
            doc = _SeedDocument.model_validate(raw or {})
        except (OSError, UnicodeError, YAMLError, ValidationError) as exc:
            return ServiceResult.failure(
                op, ErrorCode.SEED_FAILED, f"Cannot read seed file {path}: {exc}", path=str(path)
            )

        countries_added = 0
        states_added = 0
        with self._catalog.transaction() as txn:
            for entry in doc.countries:
                country = txn.geography.get_country_by_iso(entry.iso)
                if country is None:
                    country = txn.geography.insert_country(entry.iso, entry.name)
                    countries_added += 1
                known = {s.code for s in txn.geography.list_states(country)}
                for state in entry.states:
                    if state.code in known:
                        continue
                    txn.geography.insert_state(country, state.code, state.name)
                    known.add(state.code)
                    states_added += 1

        logger.info("Seeded %d countries, %d states from %s", countries_added, states_added, path)
        return ServiceResult(
            ok=True,
            op=op,
            data={"countries_added": countries_added, "states_added": states_added},
        )