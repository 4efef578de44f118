"""Zone member kinds and their specificity ranking."""

from __future__ import annotations

from enum import StrEnum


class ZoneKind(StrEnum):
    """Homogeneous member kind of a zone."""

    COUNTRY = "country"
    STATE = "state"


# Lower rank wins when resolving a single zone for an address.
KIND_RANK: dict[str, int] = {
    ZoneKind.STATE: 0,
    ZoneKind.COUNTRY: 1,
}
