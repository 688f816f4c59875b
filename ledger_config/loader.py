"""
Configuration Loader (``ledger_config.loader``).

Responsibility
--------------
Loads a YAML settings document and parses it into a frozen
``LedgerSettings``.  Runtime callers go through
``ledger_config.get_active_config()``; this module is the parsing layer
underneath it.

Invariants enforced
-------------------
* YAML is read with ``yaml.safe_load`` only.
* Unknown keys are rejected, never ignored.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the parsed
  document for configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown key, wrong type or out-of-range value  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from ledger_config.schema import DatabaseSettings, LedgerSettings

REVERSAL_STATUSES = ("posted", "draft")

# A journal entry always has a debit side and a credit side.
MIN_ENTRY_LINES = 2

_POSITIVE_INTS = (
    "min_lines",
    "max_description_length",
    "max_line_description_length",
    "edit_history_capacity",
    "code_width",
)
_BOOLS = ("reject_future_transaction_dates", "protect_auto_generated_drafts")
_LEDGER_KEYS = frozenset(
    (
        "balance_tolerance",
        "reversal_status",
        "code_prefix",
        "database",
    )
    + _POSITIVE_INTS
    + _BOOLS
)
_DATABASE_KEYS = frozenset(("url", "echo", "pool_size", "max_overflow"))


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(data).__name__}")
    return data


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON form of a parsed document."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def _reject_unknown(data: dict[str, Any], allowed: frozenset[str], where: str) -> None:
    unknown = sorted(set(data) - allowed)
    if unknown:
        raise ValueError(f"Unknown {where} key(s): {', '.join(map(str, unknown))}")


def _positive_int(name: str, value: Any, minimum: int = 1) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"{name} must be a positive integer, got {value!r}")
    if value < minimum:
        raise ValueError(f"{name} must be at least {minimum}, got {value!r}")
    return value


def _boolean(name: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"{name} must be true or false, got {value!r}")
    return value


def parse_tolerance(value: Any) -> Decimal:
    """Parse balance_tolerance; floats go through str() to keep their literal."""
    if isinstance(value, bool):
        raise ValueError(f"balance_tolerance must be a number, got {value!r}")
    try:
        tolerance = Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"balance_tolerance must be a number, got {value!r}") from exc
    if not tolerance.is_finite() or tolerance <= 0:
        raise ValueError(f"balance_tolerance must be positive, got {value!r}")
    return tolerance


def parse_database(data: Any) -> DatabaseSettings:
    """Parse the ``database`` block."""
    if data is None:
        return DatabaseSettings()
    if not isinstance(data, dict):
        raise ValueError(f"database must be a mapping, got {type(data).__name__}")
    _reject_unknown(data, _DATABASE_KEYS, "database")

    defaults = DatabaseSettings()
    url = data.get("url", defaults.url)
    if not isinstance(url, str) or not url:
        raise ValueError(f"database.url must be a non-empty string, got {url!r}")
    max_overflow = data.get("max_overflow", defaults.max_overflow)
    if isinstance(max_overflow, bool) or not isinstance(max_overflow, int) or max_overflow < 0:
        raise ValueError(
            f"database.max_overflow must be a non-negative integer, got {max_overflow!r}"
        )
    return DatabaseSettings(
        url=url,
        echo=_boolean("database.echo", data.get("echo", defaults.echo)),
        pool_size=_positive_int("database.pool_size", data.get("pool_size", defaults.pool_size)),
        max_overflow=max_overflow,
    )


def parse_settings(
    data: dict[str, Any], source: str | None = None
) -> LedgerSettings:
    """
    Parse a settings document into ``LedgerSettings``.

    Missing keys take their defaults.

    Raises:
        ValueError: on unknown keys or invalid values.
    """
    _reject_unknown(data, _LEDGER_KEYS, "ledger setting")

    values: dict[str, Any] = {}
    if "balance_tolerance" in data:
        values["balance_tolerance"] = parse_tolerance(data["balance_tolerance"])
    for name in _POSITIVE_INTS:
        if name in data:
            minimum = MIN_ENTRY_LINES if name == "min_lines" else 1
            values[name] = _positive_int(name, data[name], minimum)
    for name in _BOOLS:
        if name in data:
            values[name] = _boolean(name, data[name])
    if "reversal_status" in data:
        status = str(data["reversal_status"]).lower()
        if status not in REVERSAL_STATUSES:
            raise ValueError(
                f"reversal_status must be one of {REVERSAL_STATUSES}, "
                f"got {data['reversal_status']!r}"
            )
        values["reversal_status"] = status
    if "code_prefix" in data:
        prefix = data["code_prefix"]
        if not isinstance(prefix, str) or not prefix.strip():
            raise ValueError(f"code_prefix must be a non-empty string, got {prefix!r}")
        values["code_prefix"] = prefix.strip()

    return LedgerSettings(
        database=parse_database(data.get("database")),
        source=source,
        checksum=compute_checksum(data),
        **values,
    )


def load_settings(path: Path) -> LedgerSettings:
    """Load and parse a settings file."""
    return parse_settings(load_yaml_file(path), source=str(path))
