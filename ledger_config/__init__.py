"""
ledger_config -- single public entrypoint for ledger configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files
    directly.  Returns a frozen ``LedgerSettings``.

Architecture position:
    Configuration -- sits above ``ledger_kernel``.  The kernel MUST NEVER
    import from ``ledger_config``; ``ledger_config.bridges`` translates
    settings into kernel-compatible inputs (``LedgerPolicy``, engine
    keyword arguments).

Invariants enforced:
    - Single entrypoint: all runtime config flows through ``get_active_config()``.
    - Deterministic identity: the same document always yields the same
      SHA-256 checksum.

Failure modes:
    - ``FileNotFoundError`` -- the requested settings file does not exist.
    - ``ValueError`` -- unknown keys or invalid values.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``LEDGER_CONFIG_TRACE`` log entry carrying the source path and checksum,
    tying posted entries back to the settings that governed them.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ledger_config.loader import load_settings
from ledger_config.schema import DatabaseSettings, LedgerSettings

_logger = logging.getLogger("ledger_kernel.config")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(config_path: Path | str | None = None) -> LedgerSettings:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: Settings file to load.  Defaults to the packaged
            ``ledger_config/sets/default.yaml``.

    Returns:
        LedgerSettings with ``source`` and ``checksum`` populated.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the document fails validation.
    """
    path = Path(config_path) if config_path is not None else _DEFAULT_CONFIG_PATH
    settings = load_settings(path)

    _logger.info(
        "LEDGER_CONFIG_TRACE",
        extra={
            "trace_type": "LEDGER_CONFIG_TRACE",
            "config_source": settings.source,
            "checksum": settings.checksum,
            "balance_tolerance": str(settings.balance_tolerance),
            "reversal_status": settings.reversal_status,
            "code_prefix": settings.code_prefix,
        },
    )
    return settings


__all__ = [
    "DatabaseSettings",
    "LedgerSettings",
    "get_active_config",
]
