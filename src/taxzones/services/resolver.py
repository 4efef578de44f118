"""ZoneResolverService — which zones apply to an address.

Read-only surfaces, each on a single snapshot connection so a query sees
one consistent state of the catalog:

- for_address: every zone that includes the address
- match: the single most specific zone for the address
- default_tax_zone: the zone flagged as the default for tax
- with_shared_members: zones overlapping a zone at country level
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from taxzones.domain.errors import CatalogIntegrityError
from taxzones.domain.zones import Zone, best_match
from taxzones.services.base import BaseService
from taxzones.services.result import ServiceResult
from taxzones.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from taxzones.domain.geography import Address
    from taxzones.infrastructure.catalog import CatalogSession

logger = logging.getLogger(__name__)


class ZoneResolverService(BaseService):
    """Resolves addresses to zones and finds overlapping zones."""

    # ------------------------------------------------------------------
    # for_address
    # ------------------------------------------------------------------

    @traced
    def for_address(self, address: Address | None) -> ServiceResult:
        """All zones that include *address*, ordered by zone id.

        An absent address (or one without a country) yields no zones.
        """
        op = "for_address"
        try:
            with self._catalog.snapshot() as snap:
                candidates = self._candidates(snap, address)
        except CatalogIntegrityError as exc:
            return self._integrity_failure(op, exc)

        return ServiceResult(
            ok=True,
            op=op,
            data={"zones": candidates, "count": len(candidates)},
        )

    # ------------------------------------------------------------------
    # match
    # ------------------------------------------------------------------

    @traced
    def match(self, address: Address | None) -> ServiceResult:
        """The single best zone for *address*, or ``None``.

        State zones beat country zones; then fewer members wins; then
        the earliest created; then the lowest id.
        """
        op = "match"
        try:
            with self._catalog.snapshot() as snap:
                candidates = self._candidates(snap, address)
        except CatalogIntegrityError as exc:
            return self._integrity_failure(op, exc)

        with trace_span("rank") as span:
            best = best_match(candidates)
            if span is not None:
                span.annotate("winner", best.id if best is not None else None)

        return ServiceResult(
            ok=True,
            op=op,
            data={"zone": best, "candidates": len(candidates)},
        )

    # ------------------------------------------------------------------
    # default_tax_zone
    # ------------------------------------------------------------------

    @traced
    def default_tax_zone(self) -> ServiceResult:
        """The zone flagged ``default_tax``, or ``None``."""
        op = "default_tax_zone"
        warnings: list[str] = []
        try:
            with self._catalog.snapshot() as snap:
                flagged = snap.zones.default_tax_zone_ids()
                zone = snap.zones.load_zone(flagged[0]) if flagged else None
        except CatalogIntegrityError as exc:
            return self._integrity_failure(op, exc)

        if len(flagged) > 1:
            logger.warning("Multiple default tax zones flagged: %s", flagged)
            warnings.append(f"Multiple default tax zones flagged: {flagged}")

        return ServiceResult(ok=True, op=op, data={"zone": zone}, warnings=warnings)

    # ------------------------------------------------------------------
    # with_shared_members
    # ------------------------------------------------------------------

    @traced
    def with_shared_members(self, zone: Zone | None) -> ServiceResult:
        """Zones sharing at least one covered country with *zone*.

        Overlap is measured on ``country_list``: state zones contribute
        their states' countries. The reference zone itself is included
        when it is saved. Each zone appears once, ordered by id.
        """
        op = "with_shared_members"
        if zone is None or not zone.members:
            return ServiceResult(ok=True, op=op, data={"zones": [], "count": 0})

        country_ids = [c.id for c in zone.country_list()]
        try:
            with self._catalog.snapshot() as snap:
                with trace_span("load_overlapping"):
                    zone_ids = snap.zones.zone_ids_covering_countries(country_ids)
                    shared = snap.zones.load_zones(zone_ids)
        except CatalogIntegrityError as exc:
            return self._integrity_failure(op, exc)

        return ServiceResult(ok=True, op=op, data={"zones": shared, "count": len(shared)})

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _candidates(self, snap: CatalogSession, address: Address | None) -> list[Zone]:
        """Load zones referencing the address's country or state, then filter."""
        if address is None or address.country is None:
            return []

        with trace_span("load_candidates") as span:
            zone_ids = snap.zones.zone_ids_referencing(
                country_ids=[address.country.id],
                state_ids=[address.state.id] if address.state is not None else [],
            )
            loaded = snap.zones.load_zones(zone_ids)
            if span is not None:
                span.annotate("loaded", len(loaded))

        candidates = [z for z in loaded if z.includes(address)]
        if self._catalog.settings.resolver.log_candidates:
            logger.info(
                "Zone candidates for %s/%s: %s",
                address.country.iso,
                address.state.code if address.state is not None else "-",
                [z.name for z in candidates],
            )
        return candidates
