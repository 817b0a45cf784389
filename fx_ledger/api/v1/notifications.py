# fx_ledger/api/v1/notifications.py

from fastapi import APIRouter, Depends, Response, status

from fx_ledger.api.dependencies import get_services, require_owner_access, require_sweep_access
from fx_ledger.core.enums.notification_outcome import NotificationOutcome
from fx_ledger.core.models.notification import NotificationResult, NotificationState, RegistrationStatus, SweepReport
from fx_ledger.core.models.request import RegistrationRequest
from fx_ledger.services.container import Services

router = APIRouter()


@router.put(
    "/owners/{owner_id}/notifications",
    response_model=NotificationState,
    summary="Subscribe an owner to periodic P&L notifications"
)
def register_endpoint(
    request: RegistrationRequest,
    owner_id: int = Depends(require_owner_access),
    services: Services = Depends(get_services)
) -> NotificationState:
    return services.notification_service.register(owner_id, request.destination)


@router.get(
    "/owners/{owner_id}/notifications",
    response_model=RegistrationStatus,
    summary="Show whether an owner is subscribed and has been notified"
)
def registration_endpoint(
    owner_id: int = Depends(require_owner_access),
    services: Services = Depends(get_services)
) -> RegistrationStatus:
    return RegistrationStatus(owner_id=owner_id, registration=services.notification_service.registration_of(owner_id))


@router.delete(
    "/owners/{owner_id}/notifications",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Unsubscribe an owner"
)
def unregister_endpoint(
    owner_id: int = Depends(require_owner_access),
    services: Services = Depends(get_services)
) -> Response:
    services.notification_service.unregister(owner_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/owners/{owner_id}/notifications/test",
    response_model=NotificationResult,
    summary="Send a P&L notification now, ignoring the minimum interval"
)
def notify_now_endpoint(
    request: RegistrationRequest,
    response: Response,
    owner_id: int = Depends(require_owner_access),
    services: Services = Depends(get_services)
) -> NotificationResult:
    result = services.notification_service.notify_now(owner_id, request.destination)
    if result.outcome == NotificationOutcome.FAILED:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return result


@router.post(
    "/notifications/sweep",
    response_model=SweepReport,
    summary="Check every registered owner and notify those that are due",
    description="Meant to be triggered by an external scheduler. Expired rate-cache entries are purged afterwards.",
    dependencies=[Depends(require_sweep_access)]
)
def sweep_endpoint(services: Services = Depends(get_services)) -> SweepReport:
    report = services.notification_service.sweep()
    services.rate_cache.purge_expired()
    return report
