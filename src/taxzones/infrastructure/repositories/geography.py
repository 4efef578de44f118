"""Read and seed access to the country/state reference catalog."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import insert, select

from taxzones.domain.errors import CatalogIntegrityError
from taxzones.domain.geography import Country, State
from taxzones.infrastructure.database.schema import countries, states

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy import Connection


def _country(row: Any) -> Country:
    return Country(id=row.id, iso=row.iso, name=row.name)


class GeographyRepository:
    """Encapsulates SQL for the geographic catalog on one connection."""

    def __init__(self, conn: Connection) -> None:
        self._conn = conn

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_countries(self) -> list[Country]:
        rows = self._conn.execute(select(countries).order_by(countries.c.id)).fetchall()
        return [_country(r) for r in rows]

    def get_country(self, country_id: int) -> Country | None:
        row = self._conn.execute(select(countries).where(countries.c.id == country_id)).first()
        return _country(row) if row is not None else None

    def get_country_by_iso(self, iso: str) -> Country | None:
        row = self._conn.execute(select(countries).where(countries.c.iso == iso.upper())).first()
        return _country(row) if row is not None else None

    def get_countries(self, country_ids: Iterable[int]) -> dict[int, Country]:
        """Fetch countries by id; missing ids are simply absent."""
        ids = sorted(set(country_ids))
        if not ids:
            return {}
        rows = self._conn.execute(select(countries).where(countries.c.id.in_(ids))).fetchall()
        return {r.id: _country(r) for r in rows}

    def list_states(self, country: Country) -> list[State]:
        rows = self._conn.execute(
            select(states).where(states.c.country_id == country.id).order_by(states.c.id)
        ).fetchall()
        return [State(id=r.id, code=r.code, name=r.name, country=country) for r in rows]

    def get_state(self, state_id: int) -> State | None:
        return self.get_states([state_id]).get(state_id)

    def get_state_by_code(self, country: Country, code: str) -> State | None:
        row = self._conn.execute(
            select(states.c.id).where(states.c.country_id == country.id, states.c.code == code)
        ).first()
        return self.get_state(row.id) if row is not None else None

    def get_states(self, state_ids: Iterable[int]) -> dict[int, State]:
        """Fetch states with their owning countries.

        Raises:
            CatalogIntegrityError: If a state's owning country is missing.
        """
        ids = sorted(set(state_ids))
        if not ids:
            return {}
        rows = self._conn.execute(select(states).where(states.c.id.in_(ids))).fetchall()
        owners = self.get_countries(r.country_id for r in rows)

        result: dict[int, State] = {}
        for r in rows:
            owner = owners.get(r.country_id)
            if owner is None:
                msg = f"State {r.code!r} (id={r.id}) references missing country {r.country_id}"
                raise CatalogIntegrityError(msg)
            result[r.id] = State(id=r.id, code=r.code, name=r.name, country=owner)
        return result

    # ------------------------------------------------------------------
    # Seeding
    # ------------------------------------------------------------------

    def insert_country(self, iso: str, name: str = "") -> Country:
        result = self._conn.execute(insert(countries).values(iso=iso.upper(), name=name))
        (country_id,) = result.inserted_primary_key
        return Country(id=country_id, iso=iso.upper(), name=name)

    def insert_state(self, country: Country, code: str, name: str = "") -> State:
        result = self._conn.execute(
            insert(states).values(country_id=country.id, code=code, name=name)
        )
        (state_id,) = result.inserted_primary_key
        return State(id=state_id, code=code, name=name, country=country)
