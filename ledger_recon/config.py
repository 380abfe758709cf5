"""
Reconciliation settings.

All matching and parsing constants live on ``ReconcileConfig`` so callers can
tune them per run. ``ReconcileConfig.from_env`` applies overrides from the
environment the same way the logging setup reads ``LOG_FILE``.
"""

import os
import logging
from dataclasses import dataclass, replace

logger = logging.getLogger(__name__)

# Environment variable -> (field name, converter)
_ENV_OVERRIDES = {
    'RECON_DATE_TOLERANCE_DAYS': ('date_tolerance_days', int),
    'RECON_NAME_THRESHOLD': ('name_threshold', int),
    'RECON_CARD_UTC_OFFSET_HOURS': ('card_utc_offset_hours', int),
    'RECON_STRIPE_CHANNEL': ('stripe_channel', str),
    'RECON_BANK_CHANNEL': ('bank_channel', str),
    'RECON_LEDGER_CHANNEL': ('ledger_channel', str),
}


@dataclass(frozen=True)
class ReconcileConfig:
    """Tunable constants for parsing, deduplication and matching."""

    date_tolerance_days: int = 2
    date_points: int = 30
    value_points: int = 30
    name_points: int = 40
    name_threshold: int = 50
    value_epsilon: float = 0.01
    manual_candidate_limit: int = 10
    # UTC -> US Eastern shift applied to processor timestamps. Historically
    # both 4 (EDT) and 5 (EST) were used.
    card_utc_offset_hours: int = 4
    stripe_channel: str = 'Stripe'
    bank_channel: str = 'Wells Fargo'
    ledger_channel: str = 'Google Sheets'

    @classmethod
    def from_env(cls, environ=None):
        """Build a config from defaults plus ``RECON_*`` environment overrides.

        Args:
            environ (Mapping, optional): Environment to read. Defaults to os.environ.

        Returns:
            ReconcileConfig: Configured instance

        Raises:
            ValueError: If a numeric override cannot be converted
        """
        environ = os.environ if environ is None else environ
        overrides = {}
        for var, (field_name, convert) in _ENV_OVERRIDES.items():
            raw = environ.get(var)
            if raw is None or raw.strip() == '':
                continue
            try:
                overrides[field_name] = convert(raw.strip())
            except ValueError:
                raise ValueError(f"Invalid value for {var}: {raw!r}")
            logger.debug(f"Config override {var}={overrides[field_name]!r}")
        return replace(cls(), **overrides)


DEFAULT_CONFIG = ReconcileConfig()
