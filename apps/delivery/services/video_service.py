import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from urllib.parse import quote, urlencode

from django.conf import settings
from django.core.exceptions import ValidationError
from django.utils import timezone

from apps.catalog.models import CourseLesson
from apps.delivery.models import LessonProgress
from apps.entitlements.services.access_service import AccessService
from apps.logs.utils import log_event
from apps.payments.errors import AuthenticationRequired, InvalidRequest, LessonNotFound
from apps.payments.utils.signature import compute_hmac_sha256, verify_hmac_sha256

logger = logging.getLogger(__name__)

URL_LIFETIME_SECONDS = 3600


def _signing_payload(public_id: str, expires: int) -> str:
    return f"{public_id}:{expires}"


def sign_video_url(public_id: str, expires: int) -> str:
    signature = compute_hmac_sha256(settings.VIDEO_URL_SIGNING_KEY, _signing_payload(public_id, expires))
    base_url = settings.VIDEO_DELIVERY_BASE_URL.rstrip('/')
    query = urlencode({'expires': expires, 'signature': signature})
    return f"{base_url}/{quote(public_id)}?{query}"


def verify_video_signature(public_id: str, expires, signature: str, now: Optional[float] = None) -> bool:
    """Check a streaming URL presented to the media edge."""
    try:
        expires = int(expires)
    except (TypeError, ValueError):
        return False
    now = time.time() if now is None else now
    if expires <= now:
        return False
    return verify_hmac_sha256(settings.VIDEO_URL_SIGNING_KEY, _signing_payload(public_id, expires), signature)


@dataclass
class SignedVideoUrl:
    url: str
    expires_in: int
    expires_at: int


class ContentGatekeeper:
    """Hands out time-limited streaming URLs for course lessons."""

    def __init__(self, access_service: Optional[AccessService] = None) -> None:
        self.access_service = access_service or AccessService()

    @staticmethod
    def _get_lesson(lesson_id) -> CourseLesson:
        try:
            lesson = CourseLesson.objects.select_related('course').filter(lesson_id=lesson_id).first()
        except (ValueError, ValidationError):
            lesson = None
        if lesson is None:
            raise LessonNotFound("Video not found")
        return lesson

    def _require_course_access(self, user, lesson: CourseLesson) -> None:
        if user is None or not getattr(user, 'is_authenticated', False):
            raise AuthenticationRequired("Unauthorized")
        self.access_service.require_access(
            user, lesson.course_id,
            denied_message="Access denied. Please purchase this course first.",
        )

    def issue_video_url(self, user, lesson_id, now: Optional[float] = None) -> SignedVideoUrl:
        lesson = self._get_lesson(lesson_id)
        if not lesson.is_preview:
            self._require_course_access(user, lesson)

        now = time.time() if now is None else now
        expires = int(now) + URL_LIFETIME_SECONDS
        url = sign_video_url(lesson.storage_public_id, expires)

        log_event(
            "Video URL issued",
            channel="delivery",
            context={
                "user_id": getattr(user, 'id', None),
                "lesson_id": str(lesson.lesson_id),
                "course_id": str(lesson.course_id),
                "preview": lesson.is_preview,
            },
        )
        return SignedVideoUrl(url=url, expires_in=URL_LIFETIME_SECONDS, expires_at=expires)

    def record_progress(
        self,
        user,
        lesson_id,
        progress_seconds: int,
        completed: bool = False,
        now: Optional[datetime] = None,
    ) -> LessonProgress:
        """Save the watch position; one row per user and lesson."""
        if user is None or not getattr(user, 'is_authenticated', False):
            raise AuthenticationRequired("Unauthorized")
        if progress_seconds is None or progress_seconds < 0:
            raise InvalidRequest("progressSeconds must be zero or more")

        lesson = self._get_lesson(lesson_id)
        if not lesson.is_preview:
            self._require_course_access(user, lesson)

        progress, _ = LessonProgress.objects.update_or_create(
            user=user,
            lesson=lesson,
            defaults={
                'progress_seconds': progress_seconds,
                'completed': completed,
                'last_watched_at': now or timezone.now(),
            },
        )
        logger.debug("Progress for lesson %s saved at %ss", lesson.lesson_id, progress_seconds)
        return progress
