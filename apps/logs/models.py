from django.db import models


class LogEntry(models.Model):
    """
    Audit log rows written by DatabaseLogHandler.
    Payment and delivery events land here with channel="payment" / "delivery".
    """
    created_at = models.DateTimeField(auto_now_add=True, db_comment="Timestamp when log was created")
    level = models.CharField(max_length=20, db_comment="Log level: debug, info, warning, error, critical")
    channel = models.CharField(max_length=50, db_comment="Log channel: app, payment, delivery, web, etc.")
    message = models.TextField(db_comment="Log message content")
    context = models.JSONField(
        default=dict,
        blank=True,
        db_comment="Structured metadata: user_id, order_id, payment_id, ip, url, exception"
    )
    extra = models.JSONField(
        default=dict,
        blank=True,
        db_comment="Optional extra data"
    )
    environment = models.CharField(
        max_length=50,
        null=True,
        blank=True,
        db_comment="Environment: production, staging, local"
    )

    class Meta:
        db_table = "logs"
        db_table_comment = "System logs for auditing and debugging"
        indexes = [
            models.Index(fields=["-created_at"], name="idx_logs_created_at"),
            models.Index(fields=["level"], name="idx_logs_level"),
            models.Index(fields=["channel"], name="idx_logs_channel"),
        ]
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"[{self.created_at}] {self.level.upper()} - {self.channel}: {self.message[:50]}"

