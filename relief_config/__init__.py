"""
relief_config -- single public entrypoint for runtime configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files
    directly.

Architecture position:
    Configuration -- sits above ``relief_kernel``.  The kernel MUST NEVER
    import from ``relief_config``; ``relief_config.bridges`` translates the
    config into kernel constructor arguments.

Failure modes:
    - ``FileNotFoundError`` -- the requested file does not exist.
    - ``ValueError`` -- unknown keys, wrong types or out-of-range values.
    - ``yaml.YAMLError`` -- malformed YAML.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``relief_config_loaded`` log record with the source path and checksum.
"""

from __future__ import annotations

from pathlib import Path

from relief_config.loader import load_yaml_file, parse_config
from relief_config.schema import ReliefConfig
from relief_kernel.logging_config import get_logger

_logger = get_logger("config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"


def get_active_config(config_path: Path | str | None = None) -> ReliefConfig:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: YAML file to read.  Defaults to the packaged
            ``defaults.yaml``.

    Returns:
        Frozen, validated ReliefConfig.
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    config = parse_config(load_yaml_file(path))

    _logger.info(
        "relief_config_loaded",
        extra={
            "config_path": str(path),
            "checksum": config.checksum,
            "database_url": config.database_url,
            "report_top_n": config.report_top_n,
        },
    )
    return config


__all__ = ["DEFAULT_CONFIG_PATH", "ReliefConfig", "get_active_config"]
