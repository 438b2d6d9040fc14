from datetime import timedelta
from decimal import Decimal
from typing import Optional

from django.contrib.auth import get_user_model
from django.utils import timezone

from apps.catalog.models import CourseLesson, Product, ProductType, SignalPlan, TradingBot
from apps.delivery.models import DownloadToken
from apps.entitlements.models import UserAccess
from apps.payments.models import Order, OrderStatus, Payment, PaymentStatus

User = get_user_model()


def create_user(username: str = "buyer", password: str = "testpass123") -> User:
    return User.objects.create_user(
        username=username,
        email=f"{username}@example.com",
        password=password,
    )


def create_product(
    *,
    name: str = "Forex Masterclass",
    type: str = ProductType.COURSE,
    price: Decimal = Decimal("49.99"),
    currency: str = "USD",
    is_active: bool = True,
    metadata: Optional[dict] = None,
) -> Product:
    return Product.objects.create(
        name=name,
        type=type,
        price=price,
        currency=currency,
        is_active=is_active,
        metadata=metadata or {},
    )


def create_signal_product(interval: str = "monthly", name: str = "Gold Signals") -> Product:
    product = create_product(name=name, type=ProductType.SIGNAL, price=Decimal("29.00"))
    SignalPlan.objects.create(product=product, interval=interval, features=["Daily entries"])
    return product


def create_bot_product(
    name: str = "Scalper Bot",
    download_url: str = "https://files.test/scalper-2.1.zip",
) -> Product:
    product = create_product(name=name, type=ProductType.BOT, price=Decimal("199.00"))
    TradingBot.objects.create(
        product=product,
        download_url=download_url,
        version="2.1.0",
        setup_instructions="Unzip into the MT5 Experts folder.",
        requirements=["MetaTrader 5", "Windows 10+"],
    )
    return product


def create_lesson(course: Product, *, is_preview: bool = False, order_index: int = 1) -> CourseLesson:
    return CourseLesson.objects.create(
        course=course,
        title=f"Lesson {order_index}",
        storage_public_id=f"courses/{course.product_id}/lesson-{order_index}",
        order_index=order_index,
        is_preview=is_preview,
    )


def create_order_with_payment(
    user: User,
    product: Product,
    *,
    provider: str = "stripe",
    reference: str = "pi_test_123",
    order_status: str = OrderStatus.PENDING,
    payment_status: str = PaymentStatus.PENDING,
) -> tuple[Order, Payment]:
    order = Order.objects.create(
        user=user,
        product=product,
        product_type=product.type,
        amount=product.price,
        currency=product.currency,
        status=order_status,
        payment_method=provider,
    )
    payment = Payment.objects.create(
        order=order,
        user=user,
        amount=product.price,
        currency=product.currency,
        provider=provider,
        provider_payment_id=reference,
        status=payment_status,
    )
    return order, payment


def grant_access(user: User, product: Product, *, expires_in: Optional[timedelta] = None, is_active: bool = True) -> UserAccess:
    now = timezone.now()
    return UserAccess.objects.create(
        user=user,
        product=product,
        product_type=product.type,
        is_active=is_active,
        access_granted_at=now,
        access_expires_at=now + expires_in if expires_in is not None else None,
    )


def create_download_token(
    user: User,
    product: Product,
    *,
    expires_in: timedelta = timedelta(hours=24),
    download_count: int = 0,
) -> DownloadToken:
    now = timezone.now()
    return DownloadToken.objects.create(
        user=user,
        product=product,
        issued_at=now,
        expires_at=now + expires_in,
        download_count=download_count,
    )
