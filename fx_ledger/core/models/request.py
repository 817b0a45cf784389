# fx_ledger/core/models/request.py

from datetime import date
from pydantic import BaseModel, Field, ConfigDict, condecimal


class QuantityOnDateRequest(BaseModel):
    """
    Input payload for acquisitions and disposals: how much foreign currency, and on which calendar day.
    """
    quantity: condecimal(gt=0) = Field(..., description="Foreign-currency quantity, strictly positive")
    operation_date: date = Field(..., alias="date", description="Calendar date of the operation (ISO format)")

    model_config = ConfigDict(
        json_schema_extra = {
            "example": {
                "quantity": "100.00",
                "date": "2026-02-01"
            }
        },
        populate_by_name=True,
        extra='ignore'
    )


class RegistrationRequest(BaseModel):
    """
    Input payload for subscribing an owner to P&L notifications.
    """
    destination: str = Field(..., min_length=1, description="Where notifications are delivered, e.g. a chat id")

    model_config = ConfigDict(
        json_schema_extra = {
            "example": {"destination": "123456789"}
        },
        extra='ignore'
    )
