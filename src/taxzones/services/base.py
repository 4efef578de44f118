"""BaseService — foundation for all taxzones services.

Every service receives a :class:`Catalog` at construction time. Services
own their unit-of-work boundaries via ``self._catalog.snapshot()`` for
reads and ``self._catalog.transaction()`` for writes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from taxzones.domain.errors import CatalogIntegrityError
from taxzones.services.result import ErrorCode, ServiceResult

if TYPE_CHECKING:
    from taxzones.infrastructure.catalog import Catalog


class BaseService:
    """Base for all service-layer classes.

    Usage::

        class ZoneService(BaseService):
            def save_zone(self, zone: Zone) -> ServiceResult:
                with self._catalog.transaction() as txn:
                    ...
    """

    def __init__(self, catalog: Catalog) -> None:
        self._catalog = catalog

    @staticmethod
    def _integrity_failure(op: str, exc: CatalogIntegrityError) -> ServiceResult:
        detail = {"zone_id": exc.zone_id} if exc.zone_id is not None else {}
        return ServiceResult.failure(op, ErrorCode.INTEGRITY_ERROR, str(exc), **detail)

    @staticmethod
    def _not_found(op: str, message: str, /, **detail: object) -> ServiceResult:
        return ServiceResult.failure(op, ErrorCode.NOT_FOUND, message, **detail)
