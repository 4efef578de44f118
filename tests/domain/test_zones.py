"""Tests for the pure zone rules — kind, coverage, containment, ranking."""

from __future__ import annotations

from taxzones.domain.geography import Address, Country, State
from taxzones.domain.types import ZoneKind
from taxzones.domain.zones import (
    Zone,
    ZoneMember,
    best_match,
    normalize_members,
    specificity_key,
)

# ---------------------------------------------------------------------------
# Fixtures as module constants (domain rules need no catalog)
# ---------------------------------------------------------------------------

US = Country(id=1, iso="US")
CA = Country(id=2, iso="CA")
MX = Country(id=3, iso="MX")
NY = State(id=10, code="NY", country=US)
AL = State(id=11, code="AL", country=US)
ON = State(id=20, code="ON", country=CA)


def _zone(
    name: str,
    *zoneables: Country | State,
    zone_id: int | None = None,
    **kw: object,
) -> Zone:
    zone = Zone(id=zone_id, name=name, **kw)  # type: ignore[arg-type]
    for zoneable in zoneables:
        zone = zone.with_member(zoneable)
    return zone


# ---------------------------------------------------------------------------
# kind
# ---------------------------------------------------------------------------


class TestKind:
    def test_country_zone(self) -> None:
        assert _zone("c", US, CA).kind is ZoneKind.COUNTRY

    def test_state_zone(self) -> None:
        assert _zone("s", NY).kind is ZoneKind.STATE

    def test_empty_zone_has_no_kind(self) -> None:
        assert _zone("empty").kind is None

    def test_mixed_zone_reports_latest_member(self) -> None:
        assert _zone("m", NY, US).kind is ZoneKind.COUNTRY
        assert _zone("m", US, NY).kind is ZoneKind.STATE


class TestAssociations:
    def test_countries_and_states(self) -> None:
        zone = _zone("m", NY, US, AL)
        assert zone.countries == [US]
        assert zone.states == [NY, AL]

    def test_member_kind(self) -> None:
        assert ZoneMember(zoneable=ON).kind is ZoneKind.STATE


# ---------------------------------------------------------------------------
# country_list
# ---------------------------------------------------------------------------


class TestCountryList:
    def test_country_zone(self) -> None:
        assert _zone("c", CA, US).country_list() == [CA, US]

    def test_state_zone_returns_owning_countries(self) -> None:
        assert _zone("s", NY).country_list() == [US]

    def test_state_zone_deduplicates_in_first_seen_order(self) -> None:
        assert _zone("s", ON, NY, AL).country_list() == [CA, US]

    def test_empty_zone(self) -> None:
        assert _zone("empty").country_list() == []


# ---------------------------------------------------------------------------
# includes
# ---------------------------------------------------------------------------


class TestIncludes:
    def test_country_zone_matches_any_state_in_country(self) -> None:
        zone = _zone("us", US)
        assert zone.includes(Address(state=NY))
        assert zone.includes(Address(country=US))

    def test_country_zone_rejects_other_country(self) -> None:
        assert not _zone("us", US).includes(Address(state=ON))

    def test_state_zone_requires_state_member(self) -> None:
        zone = _zone("ny", NY)
        assert zone.includes(Address(state=NY))
        assert not zone.includes(Address(state=AL))

    def test_state_zone_rejects_country_only_address(self) -> None:
        assert not _zone("ny", NY).includes(Address(country=US))

    def test_absent_address(self) -> None:
        zone = _zone("us", US)
        assert not zone.includes(None)
        assert not zone.includes(Address())

    def test_empty_zone_includes_nothing(self) -> None:
        assert not _zone("empty").includes(Address(state=NY))


# ---------------------------------------------------------------------------
# contains
# ---------------------------------------------------------------------------


class TestContains:
    def test_reflexive(self) -> None:
        zone = _zone("source")
        assert zone.contains(zone)

    def test_same_saved_zone(self) -> None:
        assert _zone("a", zone_id=5).contains(_zone("a", US, zone_id=5))

    def test_both_empty(self) -> None:
        assert not _zone("source").contains(_zone("target"))

    def test_target_empty(self) -> None:
        assert not _zone("source", US).contains(_zone("target"))

    def test_source_empty(self) -> None:
        assert not _zone("source").contains(_zone("target", US))

    def test_country_contains_subset_of_countries(self) -> None:
        assert _zone("s", US, CA).contains(_zone("t", US, CA))
        assert _zone("s", US, CA).contains(_zone("t", CA))

    def test_country_does_not_contain_superset(self) -> None:
        assert not _zone("s", US, CA).contains(_zone("t", US, CA, MX))

    def test_country_does_not_contain_disjoint(self) -> None:
        assert not _zone("s", US, CA).contains(_zone("t", MX))

    def test_state_never_contains_country(self) -> None:
        assert not _zone("s", NY).contains(_zone("t", US))

    def test_country_contains_states_in_its_countries(self) -> None:
        assert _zone("s", US).contains(_zone("t", NY, AL))

    def test_country_does_not_contain_states_partly_outside(self) -> None:
        assert not _zone("s", US).contains(_zone("t", NY, ON))

    def test_country_does_not_contain_states_all_outside(self) -> None:
        assert not _zone("s", MX).contains(_zone("t", NY, ON))

    def test_state_contains_subset_of_states(self) -> None:
        assert _zone("s", NY, AL).contains(_zone("t", AL))
        assert not _zone("s", NY).contains(_zone("t", NY, AL))


# ---------------------------------------------------------------------------
# normalization
# ---------------------------------------------------------------------------


class TestNormalize:
    def test_homogeneous_untouched(self) -> None:
        zone = _zone("c", US, CA)
        kept, dropped = normalize_members(zone.members)
        assert [m.zoneable for m in kept] == [US, CA]
        assert dropped == []
        assert zone.normalized() is zone

    def test_keeps_latest_kind(self) -> None:
        zone = _zone("m", NY, AL, US)
        normalized = zone.normalized()
        assert [m.zoneable for m in normalized.members] == [US]
        assert normalized.kind is ZoneKind.COUNTRY

    def test_interleaved_members(self) -> None:
        kept, dropped = normalize_members(_zone("m", US, NY, CA, AL).members)
        assert [m.zoneable for m in kept] == [NY, AL]
        assert [m.zoneable for m in dropped] == [US, CA]

    def test_empty(self) -> None:
        assert normalize_members([]) == ([], [])


# ---------------------------------------------------------------------------
# specificity ordering
# ---------------------------------------------------------------------------


class TestSpecificity:
    def test_state_beats_country(self) -> None:
        country = _zone("us", US, zone_id=1, created_at="2026-01-01")
        state = _zone("ny", NY, AL, zone_id=2, created_at="2026-02-01")
        assert best_match([country, state]) is state

    def test_fewer_members_wins(self) -> None:
        broad = _zone("na", US, CA, zone_id=1, created_at="2026-01-01")
        narrow = _zone("us", US, zone_id=2, created_at="2026-02-01")
        assert best_match([broad, narrow]) is narrow

    def test_earliest_created_wins(self) -> None:
        first = _zone("a", US, zone_id=2, created_at="2026-01-01T00:00:00")
        second = _zone("b", US, zone_id=1, created_at="2026-01-02T00:00:00")
        assert best_match([second, first]) is first

    def test_lowest_id_breaks_timestamp_tie(self) -> None:
        a = _zone("a", US, zone_id=7, created_at="2026-01-01")
        b = _zone("b", US, zone_id=3, created_at="2026-01-01")
        assert best_match([a, b]) is b

    def test_key_shape(self) -> None:
        zone = _zone("ny", NY, zone_id=4, created_at="2026-01-01")
        assert specificity_key(zone) == (0, 1, "2026-01-01", 4)

    def test_no_candidates(self) -> None:
        assert best_match([]) is None
