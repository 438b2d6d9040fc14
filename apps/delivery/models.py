import uuid

from django.contrib.auth import get_user_model
from django.db import models
from django.db.models import F
from django.utils import timezone

from apps.catalog.models import CourseLesson, Product

User = get_user_model()


class DownloadTokenQuerySet(models.QuerySet):
    def consume(self, token, product_id, now=None) -> bool:
        """Spend one download in a single conditional UPDATE. True if a use was granted."""
        now = now or timezone.now()
        updated = self.filter(
            token=token,
            product_id=product_id,
            download_count__lt=F('max_downloads'),
            expires_at__gt=now,
        ).update(download_count=F('download_count') + 1)
        return updated == 1


class DownloadToken(models.Model):
    """
    Short-lived, use-limited permission to fetch a bot package.
    """
    token = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='download_tokens',
    )
    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name='download_tokens',
    )
    issued_at = models.DateTimeField(default=timezone.now)
    expires_at = models.DateTimeField()
    max_downloads = models.PositiveIntegerField(default=3)
    download_count = models.PositiveIntegerField(
        default=0,
        db_comment="Only ever incremented, never above max_downloads"
    )

    objects = DownloadTokenQuerySet.as_manager()

    class Meta:
        db_table = "download_tokens"
        db_table_comment = "Download tokens for bot products. Expired or spent tokens are never revived."
        indexes = [
            models.Index(fields=['user', 'product'], name='idx_download_tokens_user_prod'),
            models.Index(fields=['expires_at'], name='idx_download_tokens_expires'),
        ]

    def __str__(self):
        return f"{self.token} ({self.download_count}/{self.max_downloads})"

    @property
    def remaining_downloads(self) -> int:
        return max(self.max_downloads - self.download_count, 0)

    def is_expired(self, now=None) -> bool:
        return (now or timezone.now()) >= self.expires_at


class LessonProgress(models.Model):
    """
    Watch position of one user in one lesson.
    """
    progress_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='lesson_progress',
    )
    lesson = models.ForeignKey(
        CourseLesson,
        on_delete=models.CASCADE,
        related_name='progress',
    )
    progress_seconds = models.PositiveIntegerField(default=0)
    completed = models.BooleanField(default=False)
    last_watched_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "lesson_progress"
        constraints = [
            models.UniqueConstraint(fields=['user', 'lesson'], name='uniq_lesson_progress_user_lesson'),
        ]

    def __str__(self):
        return f"{self.user_id} @ {self.lesson_id}: {self.progress_seconds}s"
