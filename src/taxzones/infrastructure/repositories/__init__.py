"""Repositories encapsulating catalog SQL."""

from taxzones.infrastructure.repositories.geography import GeographyRepository
from taxzones.infrastructure.repositories.zones import ZoneRepository

__all__ = ["GeographyRepository", "ZoneRepository"]
