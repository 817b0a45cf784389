# fx_ledger/api/v1/ledger.py

from typing import List

from fastapi import APIRouter, Depends, Response, status

from fx_ledger.api.dependencies import apply_result_status, get_services, require_owner_access
from fx_ledger.core.models.disposal import DisposalRecord
from fx_ledger.core.models.request import QuantityOnDateRequest
from fx_ledger.core.models.response import AcquisitionResult, DisposalResult, LotView, StatusResult
from fx_ledger.services.container import Services

router = APIRouter(prefix="/owners/{owner_id}")


@router.post(
    "/acquisitions",
    response_model=AcquisitionResult,
    status_code=status.HTTP_201_CREATED,
    summary="Record a foreign-currency purchase",
    description="Creates a new lot valued at the official central-bank rate for the given date."
)
def acquire_endpoint(
    request: QuantityOnDateRequest,
    response: Response,
    owner_id: int = Depends(require_owner_access),
    services: Services = Depends(get_services)
) -> AcquisitionResult:
    result = services.ledger_service.acquire(owner_id, request.quantity, request.operation_date)
    apply_result_status(result, response, status.HTTP_201_CREATED)
    return result


@router.post(
    "/disposals",
    response_model=DisposalResult,
    summary="Sell foreign currency",
    description="Consumes the owner's lots First-In, First-Out and returns the realized profit. "
                "Today's disposals use the bank's live buy rate, any other date the official rate."
)
def dispose_endpoint(
    request: QuantityOnDateRequest,
    response: Response,
    owner_id: int = Depends(require_owner_access),
    services: Services = Depends(get_services)
) -> DisposalResult:
    result = services.ledger_service.dispose(owner_id, request.quantity, request.operation_date)
    apply_result_status(result, response)
    return result


@router.get(
    "/status",
    response_model=StatusResult,
    summary="Unrealized profit at the live rate"
)
def status_endpoint(
    response: Response,
    owner_id: int = Depends(require_owner_access),
    services: Services = Depends(get_services)
) -> StatusResult:
    result = services.ledger_service.status(owner_id)
    apply_result_status(result, response)
    return result


@router.get("/lots", response_model=List[LotView], summary="Acquisition lots in FIFO order")
def lots_endpoint(
    owner_id: int = Depends(require_owner_access),
    services: Services = Depends(get_services)
) -> List[LotView]:
    return services.ledger_service.lots(owner_id)


@router.get("/disposals", response_model=List[DisposalRecord], summary="Disposal history")
def disposals_endpoint(
    owner_id: int = Depends(require_owner_access),
    services: Services = Depends(get_services)
) -> List[DisposalRecord]:
    return services.ledger_service.disposals(owner_id)
