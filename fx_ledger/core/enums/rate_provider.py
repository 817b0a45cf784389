# fx_ledger/core/enums/rate_provider.py

from enum import Enum

class RateProvider(str, Enum):
    """
    Upstream sources of exchange rates.
    PRIMARY is the authoritative historical provider (central bank),
    SECONDARY the live market provider used for "today" disposals.
    """
    PRIMARY = "PRIMARY"
    SECONDARY = "SECONDARY"
