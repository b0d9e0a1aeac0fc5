"""
ReliefConfig schema.

The runtime configuration artifact: parsed from YAML by the loader,
validated, and handed out frozen by ``get_active_config()``.
"""

from __future__ import annotations

from dataclasses import dataclass

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class ReliefConfig:
    """Settings for one deployment of the relief ledger."""

    database_url: str = "sqlite:///relief.db"
    echo_sql: bool = False
    default_low_stock_threshold: int = 10
    report_top_n: int = 10
    log_level: str = "INFO"
    checksum: str = ""

    def __post_init__(self):
        if not self.database_url:
            raise ValueError("database_url must not be empty")
        if self.default_low_stock_threshold < 0:
            raise ValueError(
                f"default_low_stock_threshold must be >= 0, got {self.default_low_stock_threshold}"
            )
        if self.report_top_n <= 0:
            raise ValueError(f"report_top_n must be > 0, got {self.report_top_n}")
        if self.log_level not in VALID_LOG_LEVELS:
            raise ValueError(
                f"log_level must be one of {', '.join(VALID_LOG_LEVELS)}, got {self.log_level!r}"
            )
