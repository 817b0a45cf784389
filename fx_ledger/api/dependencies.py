# fx_ledger/api/dependencies.py

from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, HTTPException, Path, Response, status

from fx_ledger.core.config.settings import Settings, settings
from fx_ledger.core.enums.error_kind import ErrorKind
from fx_ledger.core.models.response import OperationResult
from fx_ledger.services.container import Services, build_services

HTTP_STATUS_BY_KIND = {
    ErrorKind.INVALID_INPUT: 422,
    ErrorKind.INSUFFICIENT_BALANCE: status.HTTP_409_CONFLICT,
    ErrorKind.RATE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.RATE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def get_settings() -> Settings:
    return settings


@lru_cache
def get_services() -> Services:
    """
    One object graph per process: notification state and per-owner locks live
    in memory, so every request must see the same instances.
    """
    return build_services(settings)


def require_owner_access(
    owner_id: int = Path(..., description="Owner of the ledger"),
    app_settings: Settings = Depends(get_settings)
) -> int:
    """Rejects every owner but the configured one when ALLOWED_OWNER_ID is set."""
    allowed: Optional[int] = app_settings.ALLOWED_OWNER_ID
    if allowed is not None and owner_id != allowed:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Access denied for owner {owner_id}."
        )
    return owner_id


def require_sweep_access(
    x_owner_id: Optional[int] = Header(None, description="Owner triggering the sweep"),
    app_settings: Settings = Depends(get_settings)
) -> None:
    """With ALLOWED_OWNER_ID set, only that owner (named in the X-Owner-Id header) may run a sweep."""
    allowed: Optional[int] = app_settings.ALLOWED_OWNER_ID
    if allowed is not None and x_owner_id != allowed:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Sweep is restricted to the allowed owner."
        )


def apply_result_status(result: OperationResult, response: Response, success_status: int = status.HTTP_200_OK) -> None:
    if result.success:
        response.status_code = success_status
    else:
        response.status_code = HTTP_STATUS_BY_KIND.get(result.error_kind, status.HTTP_400_BAD_REQUEST)
