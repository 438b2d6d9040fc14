from datetime import datetime

from ninja import Schema


class NotificationSchema(Schema):
    """Notification as returned to the dashboard"""
    id: str
    type: str
    title: str
    message: str
    link: str
    isRead: bool
    createdAt: datetime

    @staticmethod
    def from_model(notification):
        return NotificationSchema(
            id=str(notification.notification_id),
            type=notification.type,
            title=notification.title,
            message=notification.message,
            link=notification.link,
            isRead=notification.is_read,
            createdAt=notification.created_at,
        )


class MarkReadResponse(Schema):
    success: bool
