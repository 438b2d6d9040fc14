"""Notification router: the caller's in-app notifications"""
from typing import List

from django.http import HttpRequest
from ninja import Router
from ninja.errors import HttpError

from core.jwt_auth import JWTAuth

from apps.notification.schemas import MarkReadResponse, NotificationSchema
from apps.notification.services.notification_service import NotificationService

router = Router(tags=["notifications"])
notification_service = NotificationService()


@router.get("/", response=List[NotificationSchema], auth=JWTAuth())
def list_notifications(request: HttpRequest, unread_only: bool = False):
    return [
        NotificationSchema.from_model(n)
        for n in notification_service.list_for_user(request.auth, unread_only=unread_only)
    ]


@router.post("/{notification_id}/read", response=MarkReadResponse, auth=JWTAuth())
def mark_notification_read(request: HttpRequest, notification_id: str):
    if not notification_service.mark_read(request.auth, notification_id):
        raise HttpError(404, "Notification not found")
    return MarkReadResponse(success=True)
