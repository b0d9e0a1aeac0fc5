"""
Configuration Loader (``relief_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into a frozen
``relief_config.schema.ReliefConfig``.  Internal tooling: runtime code
calls ``relief_config.get_active_config()``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown keys, wrong types or out-of-range values  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from relief_config.schema import ReliefConfig

_INT_KEYS = ("default_low_stock_threshold", "report_top_n")
_BOOL_KEYS = ("echo_sql",)
_STR_KEYS = ("database_url", "log_level")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(data).__name__}")
    return data


def compute_checksum(data: dict[str, Any]) -> str:
    """Deterministic SHA-256 of the parsed settings, for the config trace."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def parse_config(data: dict[str, Any]) -> ReliefConfig:
    """Validate a raw mapping and build a ReliefConfig."""
    section = data.get("relief", data)
    if not isinstance(section, dict):
        raise ValueError("'relief' section must be a mapping")

    known = {f.name for f in fields(ReliefConfig)} - {"checksum"}
    unknown = sorted(set(section) - known)
    if unknown:
        raise ValueError(f"Unknown configuration keys: {', '.join(unknown)}")

    values: dict[str, Any] = {}
    for key, val in section.items():
        if key in _INT_KEYS:
            if isinstance(val, bool) or not isinstance(val, int):
                raise ValueError(f"{key} must be an integer, got {val!r}")
        elif key in _BOOL_KEYS:
            if not isinstance(val, bool):
                raise ValueError(f"{key} must be true or false, got {val!r}")
        elif key in _STR_KEYS:
            if not isinstance(val, str):
                raise ValueError(f"{key} must be a string, got {val!r}")
            if key == "log_level":
                val = val.upper()
        values[key] = val

    return ReliefConfig(**values, checksum=compute_checksum(values))
