# riordino/config.py
"""
Global settings and default values for the reorder system.
"""

import os
from dataclasses import dataclass


# Default SQLite database path (overridable through RIORDINO_DB)
DB_PATH = os.environ.get("RIORDINO_DB") or os.path.join(os.getcwd(), "riordino.db")


@dataclass
class DefaultConfig:
    """Default values used when a record or a caller leaves them out."""
    # purchasing defaults for items created by an import
    lead_time_days: int = 2
    min_order_qty: int = 1
    order_multiple: int = 1
    ubicazione: str = "N/D"
    description_prefix: str = "Nuovo articolo"

    # days since last sale when the snapshot has no date ("never sold recently")
    days_since_sale_sentinel: int = 9999
    forecast_horizon_days: int = 60
    days_per_year: int = 365

    unknown_supplier: str = "Unknown"
    sheet_name_limit: int = 31          # xlsx limit on worksheet titles
    max_messages: int = 10              # errors/warnings shown per import


# Global instance of the defaults
DEFAULTS = DefaultConfig()
