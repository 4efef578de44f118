"""Shared pytest fixtures and test helpers for taxzones tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from pathlib import Path

import pytest

from taxzones.config.settings import ZoneSettings
from taxzones.domain.geography import Country, State
from taxzones.domain.zones import Zone
from taxzones.infrastructure.catalog import Catalog
from taxzones.services.geography import GeographyService
from taxzones.services.zones import ZoneService


@pytest.fixture
def settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> ZoneSettings:
    """Settings rooted at a temp directory, isolated from the environment."""
    monkeypatch.delenv("TAXZONES_CONFIG", raising=False)
    return ZoneSettings.load(catalog_root=tmp_path)


@pytest.fixture
def catalog(settings: ZoneSettings) -> Iterator[Catalog]:
    """Fully initialized catalog on a temp directory."""
    c = Catalog(settings)
    try:
        yield c
    finally:
        c.close()


@dataclass(frozen=True)
class World:
    """Seeded geography: two countries, three states, one empty country."""

    us: Country
    ca: Country
    fr: Country
    ny: State
    al: State
    on: State


@pytest.fixture
def world(catalog: Catalog) -> World:
    svc = GeographyService(catalog)

    def country(iso: str, name: str) -> Country:
        result = svc.add_country(iso, name)
        assert result.ok, result.error
        return result.data["country"]

    def state(iso: str, code: str, name: str) -> State:
        result = svc.add_state(iso, code, name)
        assert result.ok, result.error
        return result.data["state"]

    us = country("US", "United States")
    ca = country("CA", "Canada")
    fr = country("FR", "France")
    return World(
        us=us,
        ca=ca,
        fr=fr,
        ny=state("US", "NY", "New York"),
        al=state("US", "AL", "Alabama"),
        on=state("CA", "ON", "Ontario"),
    )


MakeZone = Callable[..., Zone]


@pytest.fixture
def make_zone(catalog: Catalog) -> MakeZone:
    """Factory saving a zone with the given members, asserting success."""

    def _make(name: str, *zoneables: Country | State, default_tax: bool = False) -> Zone:
        zone = Zone(name=name, default_tax=default_tax)
        for zoneable in zoneables:
            zone = zone.with_member(zoneable)
        result = ZoneService(catalog).save_zone(zone)
        assert result.ok, result.error
        return result.data["zone"]

    return _make
