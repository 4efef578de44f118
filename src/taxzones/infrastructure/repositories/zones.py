"""SQL for loading, querying, and writing zones and their members."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, delete, insert, or_, select, update

from taxzones.domain.errors import CatalogIntegrityError
from taxzones.domain.geography import Country, State
from taxzones.domain.types import ZoneKind
from taxzones.domain.zones import Zone, ZoneMember
from taxzones.infrastructure.database.schema import states, zone_members, zones
from taxzones.infrastructure.repositories.geography import GeographyRepository

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from sqlalchemy import Connection


class ZoneRepository:
    """Encapsulates zone SQL on one connection.

    Loading is done in three queries regardless of zone count: zone
    rows, member rows, then the referenced countries and states.
    """

    def __init__(self, conn: Connection) -> None:
        self._conn = conn
        self._geo = GeographyRepository(conn)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_zones(self, zone_ids: Iterable[int] | None = None) -> list[Zone]:
        """Load zones with members, ordered by id.

        Pass ``None`` to load the whole catalog.

        Raises:
            CatalogIntegrityError: If a member references a missing
                country or state, or a state's country is missing.
        """
        stmt = select(zones).order_by(zones.c.id)
        if zone_ids is not None:
            ids = sorted(set(zone_ids))
            if not ids:
                return []
            stmt = stmt.where(zones.c.id.in_(ids))
        zone_rows = self._conn.execute(stmt).fetchall()
        if not zone_rows:
            return []

        member_rows = self._conn.execute(
            select(zone_members)
            .where(zone_members.c.zone_id.in_([r.id for r in zone_rows]))
            .order_by(zone_members.c.id)
        ).fetchall()

        country_ids = [
            m.zoneable_id for m in member_rows if m.zoneable_type == ZoneKind.COUNTRY
        ]
        state_ids = [m.zoneable_id for m in member_rows if m.zoneable_type == ZoneKind.STATE]
        found_countries = self._geo.get_countries(country_ids)
        found_states = self._geo.get_states(state_ids)

        members_by_zone: dict[int, list[ZoneMember]] = {r.id: [] for r in zone_rows}
        for m in member_rows:
            lookup: dict[int, Any] = (
                found_countries if m.zoneable_type == ZoneKind.COUNTRY else found_states
            )
            zoneable = lookup.get(m.zoneable_id)
            if zoneable is None:
                msg = (
                    f"Zone member {m.id} references missing "
                    f"{m.zoneable_type} {m.zoneable_id}"
                )
                raise CatalogIntegrityError(msg, zone_id=m.zone_id)
            members_by_zone[m.zone_id].append(ZoneMember(id=m.id, zoneable=zoneable))

        return [
            Zone(
                id=r.id,
                name=r.name,
                description=r.description,
                default_tax=bool(r.default_tax),
                created_at=r.created_at,
                members=tuple(members_by_zone[r.id]),
            )
            for r in zone_rows
        ]

    def load_zone(self, zone_id: int) -> Zone | None:
        loaded = self.load_zones([zone_id])
        return loaded[0] if loaded else None

    # ------------------------------------------------------------------
    # Candidate queries
    # ------------------------------------------------------------------

    def zone_id_by_name(self, name: str) -> int | None:
        row = self._conn.execute(select(zones.c.id).where(zones.c.name == name)).first()
        return row.id if row is not None else None

    def zone_exists(self, zone_id: int) -> bool:
        row = self._conn.execute(select(zones.c.id).where(zones.c.id == zone_id)).first()
        return row is not None

    def default_tax_zone_ids(self) -> list[int]:
        rows = self._conn.execute(
            select(zones.c.id).where(zones.c.default_tax == 1).order_by(zones.c.id)
        ).fetchall()
        return [r.id for r in rows]

    def zone_ids_referencing(
        self,
        *,
        country_ids: Sequence[int] = (),
        state_ids: Sequence[int] = (),
    ) -> list[int]:
        """Zones with a member pointing directly at any given country or state."""
        clauses = []
        if country_ids:
            clauses.append(
                and_(
                    zone_members.c.zoneable_type == ZoneKind.COUNTRY.value,
                    zone_members.c.zoneable_id.in_(list(country_ids)),
                )
            )
        if state_ids:
            clauses.append(
                and_(
                    zone_members.c.zoneable_type == ZoneKind.STATE.value,
                    zone_members.c.zoneable_id.in_(list(state_ids)),
                )
            )
        if not clauses:
            return []
        rows = self._conn.execute(
            select(zone_members.c.zone_id)
            .where(or_(*clauses))
            .distinct()
            .order_by(zone_members.c.zone_id)
        ).fetchall()
        return [r.zone_id for r in rows]

    def zone_ids_covering_countries(self, country_ids: Sequence[int]) -> list[int]:
        """Zones whose country list shares a country with *country_ids*.

        Matches country members directly and state members through the
        state's owning country.
        """
        if not country_ids:
            return []
        ids = list(country_ids)
        states_in_countries = select(states.c.id).where(states.c.country_id.in_(ids))
        rows = self._conn.execute(
            select(zone_members.c.zone_id)
            .where(
                or_(
                    and_(
                        zone_members.c.zoneable_type == ZoneKind.COUNTRY.value,
                        zone_members.c.zoneable_id.in_(ids),
                    ),
                    and_(
                        zone_members.c.zoneable_type == ZoneKind.STATE.value,
                        zone_members.c.zoneable_id.in_(states_in_countries),
                    ),
                )
            )
            .distinct()
            .order_by(zone_members.c.zone_id)
        ).fetchall()
        return [r.zone_id for r in rows]

    def missing_zoneables(self, members: Iterable[ZoneMember]) -> list[Country | State]:
        """Members whose country or state is not in the catalog."""
        members = list(members)
        known_countries = self._geo.get_countries(
            m.zoneable.id for m in members if isinstance(m.zoneable, Country)
        )
        known_states = self._geo.get_states(
            m.zoneable.id for m in members if isinstance(m.zoneable, State)
        )
        missing: list[Country | State] = []
        for m in members:
            known = known_countries if isinstance(m.zoneable, Country) else known_states
            if m.zoneable.id not in known:
                missing.append(m.zoneable)
        return missing

    # ------------------------------------------------------------------
    # Writes (caller owns the transaction)
    # ------------------------------------------------------------------

    def insert_zone(
        self,
        *,
        name: str,
        description: str,
        default_tax: bool,
        created_at: str,
    ) -> int:
        result = self._conn.execute(
            insert(zones).values(
                name=name,
                description=description,
                default_tax=int(default_tax),
                created_at=created_at,
                updated_at=created_at,
            )
        )
        (zone_id,) = result.inserted_primary_key
        return int(zone_id)

    def update_zone(
        self,
        zone_id: int,
        *,
        name: str,
        description: str,
        default_tax: bool,
        updated_at: str,
    ) -> None:
        self._conn.execute(
            update(zones)
            .where(zones.c.id == zone_id)
            .values(
                name=name,
                description=description,
                default_tax=int(default_tax),
                updated_at=updated_at,
            )
        )

    def clear_default_tax(self, *, except_zone_id: int) -> list[int]:
        """Clear the default-tax flag on every zone but one.

        Returns the ids of the zones that were cleared.
        """
        cleared = [zid for zid in self.default_tax_zone_ids() if zid != except_zone_id]
        if cleared:
            self._conn.execute(
                update(zones).where(zones.c.id.in_(cleared)).values(default_tax=0)
            )
        return cleared

    def sync_members(self, zone_id: int, members: Sequence[ZoneMember], now: str) -> None:
        """Make the stored member rows of *zone_id* equal *members*.

        Saved members of this zone keep their row (and insertion order);
        everything else is inserted after them. Duplicate references are
        stored once.
        """
        stored_rows = self._conn.execute(
            select(zone_members.c.id).where(zone_members.c.zone_id == zone_id)
        ).fetchall()
        stored_ids = {r.id for r in stored_rows}
        keep_ids = [m.id for m in members if m.id in stored_ids]

        stmt = delete(zone_members).where(zone_members.c.zone_id == zone_id)
        if keep_ids:
            stmt = stmt.where(zone_members.c.id.not_in(keep_ids))
        self._conn.execute(stmt)

        seen = {
            (m.kind.value, m.zoneable.id) for m in members if m.id in stored_ids
        }
        for m in members:
            if m.id in stored_ids:
                continue
            ref = (m.kind.value, m.zoneable.id)
            if ref in seen:
                continue
            seen.add(ref)
            self._conn.execute(
                insert(zone_members).values(
                    zone_id=zone_id,
                    zoneable_type=ref[0],
                    zoneable_id=ref[1],
                    created_at=now,
                )
            )
