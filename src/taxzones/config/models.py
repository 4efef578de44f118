"""Section models for ``taxzones.toml``.

Every field has a default, so the file only lists overrides and a
catalog needs no config file at all.
"""

from __future__ import annotations

from pydantic import BaseModel


class CatalogConfig(BaseModel):
    """[catalog] section."""

    model_config = {"frozen": True}

    db_filename: str = "zones.db"
    busy_timeout: float = 30.0
    echo: bool = False


class ResolverConfig(BaseModel):
    """[resolver] section."""

    model_config = {"frozen": True}

    log_candidates: bool = False

