"""Zones, zone members, and the matching rules between zones and addresses.

A zone is a named, ordered collection of members. Every member points at
exactly one zoneable, a Country or a State, and a saved zone never mixes
the two. All rules here are pure: they operate on fully loaded models and
never touch the catalog.

Resolution order for a single zone (:func:`specificity_key`):

1. Kind rank: state zones before country zones.
2. Member count, fewest first.
3. Creation timestamp, earliest first.
4. Zone id, lowest first.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from pydantic import BaseModel

from taxzones.domain.geography import Address, Country, State, Zoneable
from taxzones.domain.types import KIND_RANK, ZoneKind


class ZoneMember(BaseModel):
    """Link between a zone and a single Country or State."""

    model_config = {"frozen": True}

    id: int | None = None
    zoneable: Zoneable

    @property
    def kind(self) -> ZoneKind:
        return ZoneKind(self.zoneable.kind)


class Zone(BaseModel):
    """A named set of geographic members used to match addresses.

    Members are kept in insertion order. Unsaved members (``id=None``)
    appended with :meth:`with_member` sort after every saved member.
    """

    model_config = {"frozen": True}

    id: int | None = None
    name: str
    description: str = ""
    default_tax: bool = False
    created_at: str | None = None
    members: tuple[ZoneMember, ...] = ()

    # ------------------------------------------------------------------
    # Membership inspection
    # ------------------------------------------------------------------

    @property
    def kind(self) -> ZoneKind | None:
        """Kind of the most recently added member, or None when empty.

        For a saved zone this is the kind shared by every member.
        """
        if not self.members:
            return None
        return self.members[-1].kind

    @property
    def countries(self) -> list[Country]:
        """Countries referenced directly by members."""
        return [m.zoneable for m in self.members if isinstance(m.zoneable, Country)]

    @property
    def states(self) -> list[State]:
        """States referenced directly by members."""
        return [m.zoneable for m in self.members if isinstance(m.zoneable, State)]

    def country_list(self) -> list[Country]:
        """De-duplicated countries covered by this zone, in first-seen order.

        Country zones return their member countries; state zones return
        the countries owning their member states.
        """
        kind = self.kind
        if kind is None:
            return []
        if kind is ZoneKind.COUNTRY:
            return _unique_countries(self.countries)
        return _unique_countries(s.country for s in self.states)

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------

    def includes(self, address: Address | None) -> bool:
        """Whether *address* falls inside this zone.

        A country zone matches any address in one of its countries.
        A state zone matches only an address whose state is a member.
        """
        if address is None or address.country is None:
            return False
        if address.country.id not in {c.id for c in self.country_list()}:
            return False
        if self.kind is ZoneKind.STATE:
            if address.state is None:
                return False
            return address.state.id in {s.id for s in self.states}
        return True

    def contains(self, other: Zone) -> bool:
        """Whether every geographic unit of *other* is also covered here."""
        if self.is_same(other):
            return True
        if not self.members or not other.members:
            return False

        if self.kind is ZoneKind.STATE:
            if other.kind is ZoneKind.COUNTRY:
                return False
            return {s.id for s in other.states} <= {s.id for s in self.states}

        own_countries = {c.id for c in self.countries}
        if other.kind is ZoneKind.COUNTRY:
            return {c.id for c in other.countries} <= own_countries
        return {s.country.id for s in other.states} <= own_countries

    def is_same(self, other: Zone) -> bool:
        """Identity check: the same object, or the same saved zone."""
        if other is self:
            return True
        return self.id is not None and self.id == other.id

    # ------------------------------------------------------------------
    # Editing (returns new zones; models are frozen)
    # ------------------------------------------------------------------

    def with_member(self, zoneable: Country | State) -> Zone:
        """Return a copy with *zoneable* appended as an unsaved member."""
        member = ZoneMember(zoneable=zoneable)
        return self.model_copy(update={"members": (*self.members, member)})

    def normalized(self) -> Zone:
        """Return a copy holding only members of the most recent kind."""
        kept, dropped = normalize_members(self.members)
        if not dropped:
            return self
        return self.model_copy(update={"members": tuple(kept)})


# ---------------------------------------------------------------------------
# Module-level rules
# ---------------------------------------------------------------------------


def _unique_countries(countries: Iterable[Country]) -> list[Country]:
    seen: set[int] = set()
    result: list[Country] = []
    for country in countries:
        if country.id not in seen:
            seen.add(country.id)
            result.append(country)
    return result


def normalize_members(
    members: Sequence[ZoneMember],
) -> tuple[list[ZoneMember], list[ZoneMember]]:
    """Split *members* into (kept, dropped) by the most recently added kind.

    A homogeneous sequence is returned unchanged with nothing dropped.
    """
    if not members:
        return [], []
    surviving = members[-1].kind
    kept = [m for m in members if m.kind is surviving]
    dropped = [m for m in members if m.kind is not surviving]
    return kept, dropped


def specificity_key(zone: Zone) -> tuple[int, int, str, int]:
    """Total order over candidate zones; the smallest key is the best match."""
    kind = zone.kind
    rank = KIND_RANK[kind] if kind is not None else len(KIND_RANK)
    return (rank, len(zone.members), zone.created_at or "", zone.id or 0)


def best_match(candidates: Iterable[Zone]) -> Zone | None:
    """Pick the most specific zone from *candidates*, or None if empty."""
    return min(candidates, key=specificity_key, default=None)
