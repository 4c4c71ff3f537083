"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, bizpipe.toml only contains overrides.
"""

from __future__ import annotations

from pydantic import BaseModel


class TelemetryConfig(BaseModel):
    """[telemetry] section."""

    model_config = {"frozen": True}

    enabled: bool = False


class EventsConfig(BaseModel):
    """[events] section."""

    model_config = {"frozen": True}

    enabled: bool = True
    sync: bool = True
    max_workers: int = 2
    load_entrypoints: bool = True
