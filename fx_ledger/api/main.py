# fx_ledger/api/main.py

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse
import uvicorn
import logging
import decimal

from fx_ledger.api.v1.router import router as v1_router
from fx_ledger.core.config.settings import settings
from fx_ledger.core.enums.error_kind import ErrorKind
from fx_ledger.core.models.response import OperationResult

# Configure logging
logging.basicConfig(level=settings.LOG_LEVEL, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(settings.APP_NAME)

# Sync endpoints run in a thread pool; new threads copy DefaultContext
decimal.DefaultContext.prec = settings.DECIMAL_PRECISION
decimal.getcontext().prec = settings.DECIMAL_PRECISION

# Create FastAPI app instance
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG_MODE,
    description=f"FIFO ledger of {settings.FOREIGN_CURRENCY} lots with realized and unrealized profit in {settings.LOCAL_CURRENCY}."
)

# Include API routers
app.include_router(v1_router, prefix=settings.API_V1_STR)


@app.exception_handler(RequestValidationError)
async def invalid_input_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies are reported in the same shape as a rejected operation."""
    reasons = "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors())
    logger.info(f"Rejected request to {request.url.path}: {reasons}")
    result = OperationResult(success=False, error_kind=ErrorKind.INVALID_INPUT, error_message=reasons)
    return JSONResponse(status_code=422, content=result.model_dump(mode="json"))


@app.get("/", include_in_schema=False)
async def root():
    """Redirects to the API documentation."""
    return RedirectResponse(url="/docs")

# Entry point for running with Uvicorn directly (for development)
if __name__ == "__main__":
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION} in {'DEBUG' if settings.DEBUG_MODE else 'PRODUCTION'} mode...")
    uvicorn.run(
        "fx_ledger.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG_MODE,
        log_level=settings.LOG_LEVEL.lower()
    )
