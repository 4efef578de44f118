"""ZoneService — zone retrieval and the zone save path.

Save pipeline: VALIDATE → NORMALIZE → APPLY → RESPOND

Everything runs inside one catalog transaction, so member normalization
and default-tax exclusivity are committed together or not at all.
Validation failures return before the first write.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any

from taxzones.domain.errors import CatalogIntegrityError
from taxzones.domain.geography import Country, State
from taxzones.domain.types import ZoneKind
from taxzones.domain.zones import Zone, ZoneMember, normalize_members
from taxzones.services._helpers import now_iso
from taxzones.services.base import BaseService
from taxzones.services.result import ErrorCode, ServiceResult
from taxzones.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from taxzones.infrastructure.catalog import CatalogSession

logger = logging.getLogger(__name__)


class ZoneService(BaseService):
    """Handles loading and saving zones and their members."""

    # ------------------------------------------------------------------
    # Retrieval
    # ------------------------------------------------------------------

    @traced
    def get_zone(self, zone_id: int) -> ServiceResult:
        op = "get_zone"
        try:
            with self._catalog.snapshot() as snap:
                zone = snap.zones.load_zone(zone_id)
        except CatalogIntegrityError as exc:
            return self._integrity_failure(op, exc)
        if zone is None:
            return self._not_found(op, f"No zone with id {zone_id}", zone_id=zone_id)
        return ServiceResult(ok=True, op=op, data={"zone": zone})

    @traced
    def get_zone_by_name(self, name: str) -> ServiceResult:
        op = "get_zone_by_name"
        try:
            with self._catalog.snapshot() as snap:
                zone_id = snap.zones.zone_id_by_name(name)
                zone = snap.zones.load_zone(zone_id) if zone_id is not None else None
        except CatalogIntegrityError as exc:
            return self._integrity_failure(op, exc)
        if zone is None:
            return self._not_found(op, f"No zone named {name!r}", name=name)
        return ServiceResult(ok=True, op=op, data={"zone": zone})

    @traced
    def list_zones(self) -> ServiceResult:
        op = "list_zones"
        try:
            with self._catalog.snapshot() as snap:
                loaded = snap.zones.load_zones()
        except CatalogIntegrityError as exc:
            return self._integrity_failure(op, exc)
        return ServiceResult(ok=True, op=op, data={"zones": loaded, "count": len(loaded)})

    # ------------------------------------------------------------------
    # Save path
    # ------------------------------------------------------------------

    @traced
    def save_zone(self, zone: Zone) -> ServiceResult:
        """Insert or update *zone* with its member list.

        Members of mixed kinds are reduced to the kind of the most
        recently added member. When ``zone.default_tax`` is set, the flag
        is cleared on every other zone in the same transaction.
        """
        op = "save_zone"
        try:
            with self._catalog.transaction() as txn:
                return self._save(txn, zone, op=op)
        except CatalogIntegrityError as exc:
            return self._integrity_failure(op, exc)

    @traced
    def add_members(self, zone_id: int, zoneables: Iterable[Country | State]) -> ServiceResult:
        """Append members to a saved zone, then save it.

        Adding a country to a state zone (or the reverse) leaves only the
        newly added kind once saved.
        """
        op = "add_members"
        try:
            with self._catalog.transaction() as txn:
                zone = txn.zones.load_zone(zone_id)
                if zone is None:
                    return self._not_found(op, f"No zone with id {zone_id}", zone_id=zone_id)
                for zoneable in zoneables:
                    zone = zone.with_member(zoneable)
                return self._save(txn, zone, op=op)
        except CatalogIntegrityError as exc:
            return self._integrity_failure(op, exc)

    @traced
    def replace_members(
        self,
        zone_id: int,
        kind: ZoneKind | str,
        zoneable_ids: Sequence[int],
    ) -> ServiceResult:
        """Replace every member of a zone with the given countries or states.

        Members already present are kept as-is; an empty id list leaves
        the zone without members.
        """
        op = "replace_members"
        kind = ZoneKind(kind)
        try:
            with self._catalog.transaction() as txn:
                zone = txn.zones.load_zone(zone_id)
                if zone is None:
                    return self._not_found(op, f"No zone with id {zone_id}", zone_id=zone_id)

                ids = list(dict.fromkeys(zoneable_ids))
                found: dict[int, Any]
                if kind is ZoneKind.COUNTRY:
                    found = txn.geography.get_countries(ids)
                else:
                    found = txn.geography.get_states(ids)
                missing = [i for i in ids if i not in found]
                if missing:
                    return _invalid_members(op, [{"kind": kind.value, "id": i} for i in missing])

                existing = {(m.kind, m.zoneable.id): m for m in zone.members}
                members = tuple(
                    existing.get((kind, i)) or ZoneMember(zoneable=found[i]) for i in ids
                )
                return self._save(txn, zone.model_copy(update={"members": members}), op=op)
        except CatalogIntegrityError as exc:
            return self._integrity_failure(op, exc)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _save(self, txn: CatalogSession, zone: Zone, *, op: str) -> ServiceResult:
        """Run the save pipeline inside the caller's transaction."""
        warnings: list[str] = []
        now = now_iso()

        # ── VALIDATE ─────────────────────────────────────────
        name = zone.name.strip()
        if not name:
            return ServiceResult.failure(op, ErrorCode.INVALID_NAME, "Zone name cannot be empty")
        if zone.id is not None and not txn.zones.zone_exists(zone.id):
            return self._not_found(op, f"No zone with id {zone.id}", zone_id=zone.id)
        owner = txn.zones.zone_id_by_name(name)
        if owner is not None and owner != zone.id:
            return ServiceResult.failure(
                op,
                ErrorCode.DUPLICATE_NAME,
                f"A zone named {name!r} already exists",
                name=name,
                zone_id=owner,
            )

        # ── NORMALIZE ────────────────────────────────────────
        with trace_span("normalize"):
            kept, dropped = normalize_members(zone.members)
            missing = txn.zones.missing_zoneables(kept)
        if missing:
            return _invalid_members(op, [{"kind": z.kind, "id": z.id} for z in missing])
        if dropped:
            msg = (
                f"Dropped {len(dropped)} {dropped[0].kind} member(s) from zone {name!r}; "
                f"zone kind is {kept[-1].kind}"
            )
            logger.info(msg)
            warnings.append(msg)

        # ── APPLY ────────────────────────────────────────────
        with trace_span("apply"):
            if zone.id is None:
                zone_id = txn.zones.insert_zone(
                    name=name,
                    description=zone.description,
                    default_tax=zone.default_tax,
                    created_at=zone.created_at or now,
                )
            else:
                zone_id = zone.id
                txn.zones.update_zone(
                    zone_id,
                    name=name,
                    description=zone.description,
                    default_tax=zone.default_tax,
                    updated_at=now,
                )
            txn.zones.sync_members(zone_id, kept, now)

            cleared: list[int] = []
            if zone.default_tax:
                cleared = txn.zones.clear_default_tax(except_zone_id=zone_id)
                if cleared:
                    logger.info("Default tax moved to zone %s; cleared %s", zone_id, cleared)

        # ── RESPOND ──────────────────────────────────────────
        saved = txn.zones.load_zone(zone_id)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "zone": saved,
                "dropped_members": len(dropped),
                "cleared_default_tax": cleared,
            },
            warnings=warnings,
        )


def _invalid_members(op: str, missing: list[dict[str, Any]]) -> ServiceResult:
    return ServiceResult.failure(
        op,
        ErrorCode.INVALID_MEMBER,
        f"{len(missing)} member(s) reference unknown countries or states",
        missing=missing,
    )
