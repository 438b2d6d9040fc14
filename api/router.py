from ninja import NinjaAPI
from apps.payments.api import router as payments_router
from apps.payments.api import webhooks_router
from apps.delivery.api import downloads_router, videos_router
from apps.entitlements.api import router as access_router
from apps.notification.api import router as notification_router
api = NinjaAPI(title="Entitlement Engine API", version="1.0.0")

# Routers
api.add_router("/payments/", payments_router, tags=["Payments"])
api.add_router("/webhooks/", webhooks_router, tags=["Webhooks"])
api.add_router("/downloads/", downloads_router, tags=["Downloads"])
api.add_router("/videos/", videos_router, tags=["Videos"])
api.add_router("/access/", access_router, tags=["Access"])
api.add_router("/notifications/", notification_router, tags=["Notifications"])
