"""
Staff notifications (newest first)
"""
from typing import Any, Callable, Dict, List, Optional

from app.core.errors import NotFound, ValidationFailed
from app.database.schemas import Notification
from app.database.storage import NOTIFICATIONS, DocumentStore
from app.services.utils import to_document, utc_now


def default_notifications(now) -> List[Dict[str, Any]]:
    welcome = [
        Notification(
            id=1,
            title="به سیستم خوش آمدید",
            message="سیستم مدیریت مرکز ترک اعتیاد آماده استفاده است.",
            date=now,
        ),
        Notification(
            id=2,
            title="آخرین بروزرسانی",
            message="نسخه 1.0 سیستم منتشر شد. ویژگی‌های جدید شامل مدیریت پیشرفته سهمیه و گزارش‌گیری اضافه شده است.",
            date=now,
        ),
    ]
    return [to_document(n, ("date",)) for n in welcome]


class NotificationService:
    def __init__(self, store: DocumentStore, clock: Callable = utc_now):
        self.store = store
        self.clock = clock

    def _load(self) -> List[Dict[str, Any]]:
        return self.store.load(NOTIFICATIONS, default_notifications(self.clock()))

    def list_notifications(self) -> List[Dict[str, Any]]:
        return self._load()

    def add_notification(self, title: Optional[str], message: Optional[str]) -> Dict[str, Any]:
        if not title or not message:
            raise ValidationFailed(["عنوان و متن اعلان الزامی است"])

        notifications = self._load()
        next_id = max((n.get("id", 0) for n in notifications), default=0) + 1
        notification = to_document(
            Notification(id=next_id, title=title, message=message, date=self.clock()),
            ("date",),
        )
        notifications.insert(0, notification)
        self.store.save(NOTIFICATIONS, notifications)
        return notification

    def mark_read(self, notification_id: int) -> Dict[str, Any]:
        notifications = self._load()
        for notification in notifications:
            if notification.get("id") == notification_id:
                notification["read"] = True
                self.store.save(NOTIFICATIONS, notifications)
                return notification
        raise NotFound("اعلان یافت نشد")
