"""ZoneContext — the in-process entry point for consumers of the library.

Created once by the host application. Configures logging and telemetry
from settings and hands out services bound to a lazily opened Catalog::

    ctx = ZoneContext(ZoneSettings.load(catalog_root=path))
    result = ctx.resolver.match(address)
    zone = result.data["zone"]
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from taxzones.config.logging import configure_logging
from taxzones.services.geography import GeographyService
from taxzones.services.resolver import ZoneResolverService
from taxzones.services.telemetry import enable_telemetry
from taxzones.services.zones import ZoneService

if TYPE_CHECKING:
    from taxzones.config.settings import ZoneSettings
    from taxzones.infrastructure.catalog import Catalog


class ZoneContext:
    """Shared context owning the catalog and its services.

    The catalog is opened on first use so constructing a context never
    touches the database.
    """

    def __init__(self, settings: ZoneSettings, *, configure: bool = True) -> None:
        self.settings = settings
        self._catalog: Catalog | None = None

        if configure:
            configure_logging(verbose=settings.verbose, log_json=settings.log_json)

        if settings.verbose:
            enable_telemetry()

    @property
    def catalog(self) -> Catalog:
        """The catalog instance (created lazily on first access)."""
        if self._catalog is None:
            from taxzones.infrastructure.catalog import Catalog

            self._catalog = Catalog(self.settings)
        return self._catalog

    @property
    def resolver(self) -> ZoneResolverService:
        return ZoneResolverService(self.catalog)

    @property
    def zones(self) -> ZoneService:
        return ZoneService(self.catalog)

    @property
    def geography(self) -> GeographyService:
        return GeographyService(self.catalog)

    def close(self) -> None:
        if self._catalog is not None:
            self._catalog.close()
            self._catalog = None
