"""Domain exceptions.

Absence (no match, no kind, empty address) is never an exception.
These are raised only for broken catalog data.
"""

from __future__ import annotations


class ZoneError(Exception):
    """Base class for taxzones errors."""


class CatalogIntegrityError(ZoneError):
    """Catalog rows that cannot be resolved into a consistent zone.

    Raised when a State member's owning Country is missing, or a member
    references a Country/State that does not exist.
    """

    def __init__(self, message: str, *, zone_id: int | None = None) -> None:
        super().__init__(message)
        self.zone_id = zone_id
