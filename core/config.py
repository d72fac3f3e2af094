"""
Reconciler Configuration

Settings are read from environment variables. Command line flags override
them.

Environment:
    LOG_LEVEL               DEBUG, INFO, WARNING, ERROR (default INFO)
    LOT_REMAINDER_MODE      product | legacy_sum (default product)
    LOT_REPORT_DATE_FORMAT  strftime pattern for report dates (default %m-%d-%Y)
    LOT_REPORT_DECIMALS     max decimals printed in the report (default 6)

Copyright (c) 2026 Andreas Wagner. All rights reserved.
"""

import os
from dataclasses import dataclass, replace
from typing import Optional

from calculators.lot_events import RemainderTotalMode


DEFAULT_DATE_FORMAT = "%m-%d-%Y"
DEFAULT_DECIMALS = 6


@dataclass(frozen=True)
class ReconcilerConfig:
    """Runtime settings for a reconciliation run."""

    log_level: str = "INFO"
    remainder_mode: RemainderTotalMode = RemainderTotalMode.PRODUCT
    date_format: str = DEFAULT_DATE_FORMAT
    decimals: int = DEFAULT_DECIMALS

    @classmethod
    def from_env(cls) -> 'ReconcilerConfig':
        """
        Build configuration from environment variables.

        Raises:
            ValueError: If a variable holds an unsupported value
        """
        decimals_raw = os.getenv('LOT_REPORT_DECIMALS', str(DEFAULT_DECIMALS))
        try:
            decimals = int(decimals_raw)
        except ValueError:
            raise ValueError(f"LOT_REPORT_DECIMALS must be an integer, got '{decimals_raw}'")
        if decimals < 0:
            raise ValueError(f"LOT_REPORT_DECIMALS cannot be negative: {decimals}")

        return cls(
            log_level=os.getenv('LOG_LEVEL', 'INFO').upper(),
            remainder_mode=RemainderTotalMode.parse(
                os.getenv('LOT_REMAINDER_MODE', RemainderTotalMode.PRODUCT.value)
            ),
            date_format=os.getenv('LOT_REPORT_DATE_FORMAT', DEFAULT_DATE_FORMAT),
            decimals=decimals,
        )

    def with_overrides(
        self,
        remainder_mode: Optional[str] = None,
        log_level: Optional[str] = None
    ) -> 'ReconcilerConfig':
        """Return a copy with the non-None overrides applied."""
        config = self
        if remainder_mode is not None:
            config = replace(config, remainder_mode=RemainderTotalMode.parse(remainder_mode))
        if log_level is not None:
            config = replace(config, log_level=log_level.upper())
        return config
