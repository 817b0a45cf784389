# fx_ledger/api/v1/router.py

from fastapi import APIRouter
from fx_ledger.api.v1.ledger import router as ledger_router
from fx_ledger.api.v1.notifications import router as notifications_router

# Create a main router for API version 1
router = APIRouter()

# Include individual routers for v1 endpoints, applying tags here for clarity
router.include_router(ledger_router, tags=["Ledger"])
router.include_router(notifications_router, tags=["Notifications"])
