"""
Process configuration for namedquery.

Holds the data-port provider queries run against, plus a small set of
settings that can also come from the environment:

    NAMEDQUERY_PRIMARY_KEY   primary key column used by ``...ById`` (default: id)
    NAMEDQUERY_LOG_LEVEL     level for ``setup_logging`` (default: WARNING)
    NAMEDQUERY_STRICT        make ``QueryHandle.run`` raise on not-found (default: off)

Usage:
    from namedquery.adapters.memory import MemoryStore
    from namedquery.config import configure

    configure(MemoryStore(models), primary_key="id")

State is process-wide. ``configure`` and ``reset`` take a lock; readers see
either the old or the new state, never a mix.
"""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from namedquery.errors import AdapterNotConfigured
from namedquery.logging import log_with_context

if TYPE_CHECKING:
    from namedquery.ports import PortProvider

logger = logging.getLogger(__name__)

ENV_PREFIX = "NAMEDQUERY_"

_TRUTHY = {"1", "true", "yes", "on"}


class Settings(BaseModel):
    """Runtime settings."""

    primary_key: str = Field(default="id", description="Primary key attribute name")
    log_level: str = Field(default="WARNING", description="Logging level name")
    strict_by_default: bool = Field(
        default=False, description="Raise NotFound from run() as well as run_strict()"
    )

    model_config = ConfigDict(frozen=True)

    @field_validator("primary_key")
    @classmethod
    def _primary_key_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("primary_key cannot be blank")
        return value.strip()

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper().strip()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level '{value}'")
        return level

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from NAMEDQUERY_* environment variables."""
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}

        if primary_key := env.get(f"{ENV_PREFIX}PRIMARY_KEY"):
            values["primary_key"] = primary_key
        if log_level := env.get(f"{ENV_PREFIX}LOG_LEVEL"):
            values["log_level"] = log_level
        if strict := env.get(f"{ENV_PREFIX}STRICT"):
            values["strict_by_default"] = strict.lower().strip() in _TRUTHY

        return cls(**values)


# =============================================================================
# Global State
# =============================================================================


_lock = threading.Lock()
_settings: Settings | None = None
_provider: PortProvider | None = None


def get_settings() -> Settings:
    """Get the active settings, loading them from the environment on first use."""
    global _settings
    settings = _settings
    if settings is not None:
        return settings
    with _lock:
        if _settings is None:
            _settings = Settings.from_env()
        return _settings


def configure(provider: PortProvider | None = None, **overrides: Any) -> Settings:
    """
    Install a data-port provider and/or override settings.

    Args:
        provider: Object implementing ``port_for(model)``; kept if None
        **overrides: Settings fields to replace

    Returns:
        The settings now in effect
    """
    global _settings, _provider

    current = get_settings()
    settings = current
    if overrides:
        settings = Settings.model_validate({**current.model_dump(), **overrides})

    with _lock:
        _settings = settings
        if provider is not None:
            _provider = provider

    if settings.primary_key != current.primary_key:
        # Cached ...ById specs hold the old key name
        from namedquery.parser import get_spec_cache

        get_spec_cache().clear()

    log_with_context(
        logger,
        logging.DEBUG,
        "Configured namedquery",
        provider=type(_provider).__name__,
        **settings.model_dump(),
    )
    return settings


def get_provider() -> PortProvider:
    """
    Get the configured data-port provider.

    Raises:
        AdapterNotConfigured: If ``configure`` has not installed one
    """
    provider = _provider
    if provider is None:
        raise AdapterNotConfigured()
    return provider


def reset() -> None:
    """
    Reset all process-wide state (mainly for testing).

    Clears the provider, settings, parsed specs, generated view types and
    registrations together so no generated type outlives its registration.
    """
    global _settings, _provider

    from namedquery.parser import get_spec_cache
    from namedquery.view_registry import get_view_registry

    with _lock:
        _settings = None
        _provider = None
    get_spec_cache().clear()
    get_view_registry().reset()
