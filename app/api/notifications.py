"""
Notification endpoints
"""
from fastapi import APIRouter, Depends

from app.database.schemas import NotificationInput
from app.services.notifications import NotificationService
from app.api.utils import get_notifications

router = APIRouter()


@router.get("/notifications")
async def list_notifications(service: NotificationService = Depends(get_notifications)):
    return {"success": True, "notifications": service.list_notifications()}


@router.post("/notifications")
async def add_notification(notification: NotificationInput, service: NotificationService = Depends(get_notifications)):
    created = service.add_notification(notification.title, notification.message)
    return {"success": True, "notification": created}


@router.put("/notifications/{notification_id}/read")
async def mark_notification_read(notification_id: int, service: NotificationService = Depends(get_notifications)):
    service.mark_read(notification_id)
    return {"success": True}
