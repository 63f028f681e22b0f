from fastapi import APIRouter, Query

from cryptotrend.alerts.models import AlertPriority, AlertStatus, AlertType
from cryptotrend.alerts.schemas import (
    AlertCheckResult,
    AlertCreate,
    AlertFilters,
    AlertNotificationResponse,
    AlertResponse,
    AlertStats,
    AlertTemplate,
    AlertTriggerResponse,
    AlertUpdate,
)
from cryptotrend.dependencies import AlertServiceDep, CurrentUserId

router = APIRouter()


@router.post("/", status_code=201, response_model=AlertResponse)
async def create_alert(
    data: AlertCreate,
    service: AlertServiceDep,
    user_id: CurrentUserId,
) -> AlertResponse:
    return await service.create(user_id, data)


@router.get("/", response_model=list[AlertResponse])
async def list_alerts(
    service: AlertServiceDep,
    user_id: CurrentUserId,
    type: list[AlertType] | None = Query(default=None),
    status: list[AlertStatus] | None = Query(default=None),
    priority: list[AlertPriority] | None = Query(default=None),
    coin_id: list[str] | None = Query(default=None),
    is_enabled: bool | None = None,
) -> list[AlertResponse]:
    filters = AlertFilters(
        type=type, status=status, priority=priority, coin_id=coin_id, is_enabled=is_enabled
    )
    return await service.list_for_user(user_id, filters)


@router.get("/stats", response_model=AlertStats)
async def get_alert_stats(service: AlertServiceDep, user_id: CurrentUserId) -> AlertStats:
    return await service.get_stats(user_id)


@router.get("/templates", response_model=list[AlertTemplate])
async def get_alert_templates(service: AlertServiceDep, _user: CurrentUserId) -> list[AlertTemplate]:
    return service.get_templates()


@router.post("/check", response_model=AlertCheckResult)
async def check_alerts_now(service: AlertServiceDep, user_id: CurrentUserId) -> AlertCheckResult:
    return await service.check_alerts(user_id)


@router.get("/notifications", response_model=list[AlertNotificationResponse])
async def list_notifications(
    service: AlertServiceDep,
    user_id: CurrentUserId,
    unread_only: bool = False,
    limit: int = Query(default=50, ge=1, le=200),
) -> list[AlertNotificationResponse]:
    return await service.list_notifications(user_id, unread_only=unread_only, limit=limit)


@router.post("/notifications/{notification_id}/read", status_code=204)
async def mark_notification_read(
    notification_id: str,
    service: AlertServiceDep,
    user_id: CurrentUserId,
) -> None:
    await service.mark_notification_read(user_id, notification_id)


@router.get("/{alert_id}", response_model=AlertResponse)
async def get_alert(alert_id: str, service: AlertServiceDep, user_id: CurrentUserId) -> AlertResponse:
    return await service.get(user_id, alert_id)


@router.put("/{alert_id}", response_model=AlertResponse)
async def update_alert(
    alert_id: str,
    data: AlertUpdate,
    service: AlertServiceDep,
    user_id: CurrentUserId,
) -> AlertResponse:
    return await service.update(user_id, alert_id, data)


@router.delete("/{alert_id}", status_code=204)
async def delete_alert(alert_id: str, service: AlertServiceDep, user_id: CurrentUserId) -> None:
    await service.delete(user_id, alert_id)


@router.post("/{alert_id}/toggle", response_model=AlertResponse)
async def toggle_alert(
    alert_id: str, service: AlertServiceDep, user_id: CurrentUserId
) -> AlertResponse:
    return await service.toggle(user_id, alert_id)


@router.get("/{alert_id}/triggers", response_model=list[AlertTriggerResponse])
async def list_alert_triggers(
    alert_id: str,
    service: AlertServiceDep,
    user_id: CurrentUserId,
    limit: int = Query(default=50, ge=1, le=200),
) -> list[AlertTriggerResponse]:
    return await service.list_triggers(user_id, alert_id, limit=limit)
