from .base import *

# Use SQLite for tests to avoid external DB dependencies
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

# Faster password hashing in tests
PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.MD5PasswordHasher",
]

AUTH_PASSWORD_VALIDATORS = []

DEBUG = True

CORS_ALLOWED_ORIGINS = []

ALLOWED_HOSTS = ["testserver", "localhost", "127.0.0.1"]

JWT_SECRET = "test-jwt-secret"
JWT_ALGORITHM = "HS256"

STRIPE_SECRET_KEY = "sk_test_dummy"
STRIPE_WEBHOOK_SECRET = "whsec_test_secret"

MTN_MOMO_SUBSCRIPTION_KEY = "test-subscription-key"
MTN_MOMO_API_USER = "test-api-user"
MTN_MOMO_API_KEY = "test-api-key"
MTN_MOMO_ENVIRONMENT = "sandbox"
MTN_MOMO_CALLBACK_URL = "https://testserver/api/webhooks/mtn"
MOMO_CALLBACK_SECRET = ""

PAYMENTS = {
    "CARD_WEBHOOK_REQUERY": False,
    "PROVIDER_TIMEOUT": 5,
    "POLL_MIN_AGE_SECONDS": 0,
}

VIDEO_URL_SIGNING_KEY = "test-video-key"
VIDEO_DELIVERY_BASE_URL = "https://media.test/video"

# The database log handler writes from background threads, which cannot see
# the in-memory test database.
LOGGING["handlers"].pop("db")
for _logger in LOGGING["loggers"].values():
    _logger["handlers"] = [h for h in _logger["handlers"] if h != "db"]
