"""pyadvice Logging — logging port, adapters and engine logger access."""

from __future__ import annotations

from pyadvice.core.config import Config
from pyadvice.kernel.exceptions import ConfigurationException
from pyadvice.logging.adapters import StdlibLoggingAdapter, StructlogAdapter
from pyadvice.logging.port import ENGINE_LOGGER, LoggingPort

_ADAPTERS: dict[str, type] = {
    "structlog": StructlogAdapter,
    "stdlib": StdlibLoggingAdapter,
}


def configure_logging(config: Config) -> LoggingPort:
    """Build the adapter named by ``pyadvice.logging.adapter`` and configure it."""
    name = str(config.get("pyadvice.logging.adapter", "structlog")).lower()
    adapter_cls = _ADAPTERS.get(name)
    if adapter_cls is None:
        raise ConfigurationException(
            f"Unknown logging adapter '{name}'",
            code="CONFIG_010",
            context={"known": sorted(_ADAPTERS)},
        )
    adapter: LoggingPort = adapter_cls()
    adapter.configure(config)
    return adapter


__all__ = [
    "ENGINE_LOGGER",
    "LoggingPort",
    "StdlibLoggingAdapter",
    "StructlogAdapter",
    "configure_logging",
]
