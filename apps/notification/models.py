import uuid

from django.conf import settings
from django.db import models


class NotificationType(models.TextChoices):
    PAYMENT = 'payment', 'Payment'
    SUBSCRIPTION = 'subscription', 'Subscription'
    SYSTEM = 'system', 'System'


class UserNotification(models.Model):
    """In-app notification shown in the user's dashboard"""
    notification_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='notifications'
    )
    type = models.CharField(max_length=20, choices=NotificationType.choices, default=NotificationType.PAYMENT)
    title = models.CharField(max_length=255)
    message = models.TextField()
    link = models.CharField(max_length=500, blank=True, help_text='Frontend path the notification points to')
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'user_notifications'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'is_read'], name='idx_notifications_user_read'),
            models.Index(fields=['created_at'], name='idx_notifications_created'),
        ]

    def __str__(self):
        return f"{self.user_id} - {self.title}"
