import logging

from django.http import HttpRequest
from ninja import Router

from core.jwt_auth import JWTAuth, cookie_or_bearer_jwt_auth

from apps.delivery.schemas import (
    IssueDownloadResponse,
    LessonProgressRequest,
    LessonProgressResponse,
    RedeemDownloadRequest,
    RedeemDownloadResponse,
    VideoUrlResponse,
)
from apps.delivery.services.download_service import MAX_DOWNLOADS, TOKEN_LIFETIME, DownloadService
from apps.delivery.services.video_service import ContentGatekeeper
from apps.payments.errors import EntitlementError

logger = logging.getLogger(__name__)

downloads_router = Router(tags=["downloads"])
videos_router = Router(tags=["videos"])
download_service = DownloadService()
gatekeeper = ContentGatekeeper()


@downloads_router.get("/{product_id}", response=IssueDownloadResponse, auth=JWTAuth())
def issue_download(request: HttpRequest, product_id: str):
    try:
        issued = download_service.issue(request.auth, product_id)
    except EntitlementError as exc:
        raise exc.to_http()

    bot = issued.bot
    return IssueDownloadResponse(
        success=True,
        token=str(issued.token.token),
        productName=issued.product.name,
        downloadUrl=bot.download_url,
        version=bot.version,
        setupInstructions=bot.setup_instructions,
        requirements=[str(item) for item in (bot.requirements or [])],
        expiresIn=int(TOKEN_LIFETIME.total_seconds()),
        maxDownloads=MAX_DOWNLOADS,
    )


@downloads_router.post("/{product_id}", response=RedeemDownloadResponse, auth=JWTAuth())
def redeem_download(request: HttpRequest, product_id: str, data: RedeemDownloadRequest):
    try:
        redeemed = download_service.redeem(request.auth, data.token, product_id)
    except EntitlementError as exc:
        raise exc.to_http()
    return RedeemDownloadResponse(
        success=True,
        downloadUrl=redeemed.download_url,
        version=redeemed.version,
        remainingDownloads=redeemed.remaining_downloads,
    )


# No route auth: preview lessons are public, the gatekeeper checks the rest.
@videos_router.get("/{lesson_id}", response=VideoUrlResponse)
def stream_video(request: HttpRequest, lesson_id: str):
    try:
        signed = gatekeeper.issue_video_url(cookie_or_bearer_jwt_auth(request), lesson_id)
    except EntitlementError as exc:
        raise exc.to_http()
    return VideoUrlResponse(url=signed.url, expiresIn=signed.expires_in)


@videos_router.post("/{lesson_id}", response=LessonProgressResponse, auth=JWTAuth())
def save_progress(request: HttpRequest, lesson_id: str, data: LessonProgressRequest):
    try:
        progress = gatekeeper.record_progress(request.auth, lesson_id, data.progressSeconds, data.completed)
    except EntitlementError as exc:
        raise exc.to_http()
    return LessonProgressResponse(
        success=True,
        progressSeconds=progress.progress_seconds,
        completed=progress.completed,
        lastWatchedAt=progress.last_watched_at,
    )
