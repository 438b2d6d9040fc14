import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from django.core.exceptions import ValidationError
from django.utils import timezone

from apps.catalog.models import Product, ProductType, TradingBot
from apps.delivery.models import DownloadToken
from apps.entitlements.services.access_service import AccessService
from apps.logs.utils import log_event
from apps.payments.errors import (
    AlreadyExpired,
    AuthorizationDenied,
    InvalidRequest,
    LimitExceeded,
    NotFound,
    ProductNotFound,
    TokenNotFound,
)

logger = logging.getLogger(__name__)

TOKEN_LIFETIME = timedelta(hours=24)
MAX_DOWNLOADS = 3


@dataclass
class IssuedDownload:
    token: DownloadToken
    product: Product
    bot: TradingBot


@dataclass
class RedeemedDownload:
    download_url: str
    version: str
    remaining_downloads: int


class DownloadService:
    """Issues and redeems bot download tokens."""

    def __init__(self, access_service: Optional[AccessService] = None) -> None:
        self.access_service = access_service or AccessService()

    def issue(self, user, product_id, now: Optional[datetime] = None) -> IssuedDownload:
        now = now or timezone.now()
        try:
            product = Product.objects.filter(product_id=product_id, type=ProductType.BOT).first()
        except (ValueError, ValidationError):
            product = None
        if product is None:
            raise ProductNotFound("Product not found or not a bot")

        self.access_service.require_access(
            user, product.product_id,
            denied_message="Access denied. Please purchase this bot first.",
            now=now,
        )

        bot = TradingBot.objects.filter(product=product).first()
        if bot is None:
            raise NotFound("Bot details not found")

        token = DownloadToken.objects.create(
            user=user,
            product=product,
            issued_at=now,
            expires_at=now + TOKEN_LIFETIME,
            max_downloads=MAX_DOWNLOADS,
            download_count=0,
        )
        log_event(
            "Download token issued",
            channel="delivery",
            context={"user_id": user.id, "product_id": str(product.product_id), "token": str(token.token)},
        )
        return IssuedDownload(token=token, product=product, bot=bot)

    @staticmethod
    def _load_token(token, product_id) -> DownloadToken:
        try:
            token = uuid.UUID(str(token))
            record = DownloadToken.objects.filter(token=token, product_id=product_id).first()
        except (ValueError, ValidationError):
            raise TokenNotFound("Invalid download token") from None
        if record is None:
            raise TokenNotFound("Invalid download token")
        return record

    @staticmethod
    def _rejection(record: DownloadToken, now: datetime):
        if record.is_expired(now):
            return AlreadyExpired("Token has expired")
        if record.download_count >= record.max_downloads:
            return LimitExceeded("Download limit reached")
        return LimitExceeded("Download not available")

    def redeem(self, user, token, product_id, now: Optional[datetime] = None) -> RedeemedDownload:
        if not token:
            raise InvalidRequest("Token required")
        now = now or timezone.now()

        record = self._load_token(token, product_id)
        if user is not None and record.user_id != user.id:
            raise AuthorizationDenied("This download token belongs to another user")

        bot = TradingBot.objects.filter(product_id=product_id).first()
        if bot is None or not bot.download_url:
            raise NotFound("Download not available")

        if not DownloadToken.objects.consume(record.token, product_id, now):
            # Lost the race or the token is spent/expired; report without mutating.
            record.refresh_from_db()
            raise self._rejection(record, now)

        record.refresh_from_db()
        log_event(
            "Bot downloaded",
            channel="delivery",
            context={
                "user_id": record.user_id,
                "product_id": str(product_id),
                "token": str(record.token),
                "download_count": record.download_count,
            },
        )
        return RedeemedDownload(
            download_url=bot.download_url,
            version=bot.version,
            remaining_downloads=record.remaining_downloads,
        )
