"""ZoneSettings — how a host application configures a zone catalog.

An application usually calls ``ZoneSettings.load(catalog_root=...)`` once
and hands the result to :class:`taxzones.context.ZoneContext`. Values are
merged from, highest priority first:

1. keyword arguments to :meth:`ZoneSettings.load`,
2. ``TAXZONES_*`` environment variables (``__`` separates sections, e.g.
   ``TAXZONES_CATALOG__BUSY_TIMEOUT=5``),
3. the ``[catalog]`` / ``[resolver]`` tables of ``taxzones.toml``,
4. the defaults in :mod:`taxzones.config.models`.
"""

from __future__ import annotations

from contextvars import ContextVar
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from taxzones.config.discovery import find_config, read_toml
from taxzones.config.models import CatalogConfig, ResolverConfig

# Parsed TOML for the ZoneSettings instance currently being built.
_toml_data: ContextVar[dict[str, Any] | None] = ContextVar("_toml_data", default=None)


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Settings source over an already-parsed ``taxzones.toml`` document."""

    def __init__(self, settings_cls: type[BaseSettings], data: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._data = data

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return self._data.get(field_name), field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return {k: v for k, v in self._data.items() if k in self.settings_cls.model_fields}


class ZoneSettings(BaseSettings):
    """Frozen settings for one zone catalog.

    Attributes:
        catalog_root: Directory holding ``.taxzones/zones.db``. Defaults to
            the directory of the discovered ``taxzones.toml``, else CWD.
        config_path: The TOML file that was read, if any.
        verbose: DEBUG logging for ``taxzones`` and telemetry spans in
            ``ServiceResult.meta``.
        log_json: JSON log lines instead of console output.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "TAXZONES_",
        "env_nested_delimiter": "__",
    }

    catalog_root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None
    verbose: bool = False
    log_json: bool = False

    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    resolver: ResolverConfig = Field(default_factory=ResolverConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        toml = TomlSettingsSource(settings_cls, _toml_data.get() or {})
        return (init_settings, env_settings, toml)

    @classmethod
    def load(
        cls,
        *,
        config_path: str | Path | None = None,
        catalog_root: Path | None = None,
        **overrides: Any,
    ) -> ZoneSettings:
        """Read ``taxzones.toml`` (explicit path or walk-up) and build settings.

        Raises:
            ConfigError: If the TOML file cannot be parsed.
        """
        if config_path is not None:
            toml_path: Path | None = Path(config_path)
            if not toml_path.is_file():
                toml_path = None
        else:
            toml_path = find_config(catalog_root)

        if catalog_root is None:
            catalog_root = toml_path.parent if toml_path is not None else Path.cwd()

        token = _toml_data.set(read_toml(toml_path) if toml_path is not None else {})
        try:
            return cls(catalog_root=catalog_root, config_path=toml_path, **overrides)
        finally:
            _toml_data.reset(token)
