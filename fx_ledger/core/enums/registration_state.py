# fx_ledger/core/enums/registration_state.py

from enum import Enum

class RegistrationState(str, Enum):
    """
    Lifecycle of an owner in the notification state store.
    UNREGISTERED owners have no entry in the store at all.
    """
    UNREGISTERED = "UNREGISTERED"
    IDLE = "IDLE"
    NOTIFIED = "NOTIFIED"
